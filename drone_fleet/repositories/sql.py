from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Generic, Iterator, Mapping, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from drone_fleet.db.base import Base
from drone_fleet.db.models import (
    AccessoryCatalogEntry,
    Equipment,
    EquipmentAccessoryLink,
    EquipmentHistoryRecord,
    EquipmentSequence,
    UserRole,
    utcnow,
)
from drone_fleet.services.errors import ConflictError, NotFoundError, TransientError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

SEQUENCE_COUNTER_ID = 1


@contextmanager
def translate_db_errors(db: Session, action: str) -> Iterator[None]:
    """Map SQLAlchemy failures onto the service error taxonomy.

    The session is rolled back before re-raising so no partial write survives.
    """
    try:
        yield
    except IntegrityError as exc:
        db.rollback()
        logger.warning("%s rejected by constraint: %s", action, exc.orig)
        raise ConflictError(f"{action} violates a store constraint") from exc
    except OperationalError as exc:
        db.rollback()
        logger.warning("%s failed on store connectivity: %s", action, exc.orig)
        raise TransientError(f"{action} failed: store unavailable") from exc
    except DBAPIError as exc:
        db.rollback()
        if exc.connection_invalidated:
            logger.warning("%s lost its connection: %s", action, exc.orig)
            raise TransientError(f"{action} failed: connection lost") from exc
        raise


class SqlRepository(Generic[ModelT]):
    def __init__(self, db: Session, model: Type[ModelT], resource: str) -> None:
        self.db = db
        self.model = model
        self.resource = resource
        self._columns = {c.key for c in model.__table__.columns}

    def _column(self, name: str):
        if name not in self._columns:
            raise ValueError(f"{self.resource} has no column {name!r}")
        return getattr(self.model, name)

    def list(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        exclude: Optional[Mapping[str, Any]] = None,
        order_by: Sequence[str] = (),
    ) -> list[ModelT]:
        stmt = select(self.model)
        for key, value in (filters or {}).items():
            stmt = stmt.where(self._column(key) == value)
        for key, value in (exclude or {}).items():
            stmt = stmt.where(self._column(key) != value)
        for key in order_by:
            if key.startswith("-"):
                stmt = stmt.order_by(self._column(key[1:]).desc())
            else:
                stmt = stmt.order_by(self._column(key).asc())
        stmt = stmt.order_by(self.model.id.asc())
        with translate_db_errors(self.db, f"list {self.resource}"):
            return list(self.db.execute(stmt).scalars().all())

    def get(self, row_id: int) -> ModelT:
        with translate_db_errors(self.db, f"get {self.resource}"):
            row = self.db.get(self.model, int(row_id))
        if row is None:
            raise NotFoundError(self.resource, row_id)
        return row

    def insert(self, values: Mapping[str, Any]) -> ModelT:
        row = self.model(**{k: v for k, v in values.items() if k in self._columns and k != "id"})
        with translate_db_errors(self.db, f"insert {self.resource}"):
            self.db.add(row)
            self.db.flush()
        return row

    def update(self, row_id: int, partial: Mapping[str, Any]) -> ModelT:
        row = self.get(row_id)
        for key, value in partial.items():
            if key == "id":
                continue
            self._column(key)
            setattr(row, key, value)
        with translate_db_errors(self.db, f"update {self.resource}"):
            self.db.add(row)
            self.db.flush()
        return row

    def delete(self, row_id: int) -> None:
        row = self.get(row_id)
        with translate_db_errors(self.db, f"delete {self.resource}"):
            self.db.delete(row)
            self.db.flush()


class SqlFleetStore:
    """SQLAlchemy-backed unit of work for the fleet services."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.equipments: SqlRepository[Equipment] = SqlRepository(db, Equipment, "equipment")
        self.catalog: SqlRepository[AccessoryCatalogEntry] = SqlRepository(db, AccessoryCatalogEntry, "accessory catalog entry")
        self.links: SqlRepository[EquipmentAccessoryLink] = SqlRepository(db, EquipmentAccessoryLink, "accessory link")
        self.history: SqlRepository[EquipmentHistoryRecord] = SqlRepository(db, EquipmentHistoryRecord, "equipment history")

    def _increment_counter(self) -> Optional[int]:
        stmt = (
            update(EquipmentSequence)
            .where(EquipmentSequence.id == SEQUENCE_COUNTER_ID)
            .values(
                last_sequence_number=EquipmentSequence.last_sequence_number + 1,
                updated_at=utcnow(),
            )
            .returning(EquipmentSequence.last_sequence_number)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def allocate_next_sequence(self) -> int:
        """Atomically bump the counter row and return the new value.

        The increment happens inside the database (UPDATE ... RETURNING), so
        concurrent callers serialize on the row lock instead of racing.
        """
        with translate_db_errors(self.db, "allocate sequence"):
            value = self._increment_counter()
            if value is None:
                seed_sequence_counter(self.db)
                value = self._increment_counter()
        if value is None:
            raise TransientError("allocate sequence failed: counter row missing")
        return int(value)

    def has_role(self, user_id: str, role: str) -> bool:
        if not user_id or not role:
            return False
        stmt = select(UserRole.id).where(UserRole.user_id == str(user_id), UserRole.role == str(role)).limit(1)
        with translate_db_errors(self.db, "check role"):
            return self.db.execute(stmt).first() is not None

    def commit(self) -> None:
        with translate_db_errors(self.db, "commit"):
            self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


def highest_used_sequence(db: Session) -> int:
    live = db.execute(select(func.max(Equipment.sequence_number))).scalar() or 0
    archived = db.execute(select(func.max(EquipmentHistoryRecord.sequence_number))).scalar() or 0
    return int(max(live, archived))


def seed_sequence_counter(db: Session) -> None:
    """Create the counter row if missing, starting after any number already issued.

    Runs in a savepoint so a concurrent seeder losing the race does not undo
    the caller's pending work.
    """
    if db.get(EquipmentSequence, SEQUENCE_COUNTER_ID) is not None:
        return
    start = highest_used_sequence(db)
    try:
        with db.begin_nested():
            db.add(EquipmentSequence(id=SEQUENCE_COUNTER_ID, last_sequence_number=start))
    except IntegrityError:
        logger.info("Sequence counter already seeded by a concurrent caller")
