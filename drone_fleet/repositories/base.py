from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence, TypeVar

RowT = TypeVar("RowT")


class Repository(Protocol[RowT]):
    """Per-table persistence boundary used by the fleet services.

    ``filters`` and ``exclude`` are column -> value equality maps.
    ``order_by`` entries are column names, prefixed with ``-`` for descending.
    """

    def list(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        exclude: Optional[Mapping[str, Any]] = None,
        order_by: Sequence[str] = (),
    ) -> list[RowT]: ...

    def get(self, row_id: int) -> RowT: ...

    def insert(self, values: Mapping[str, Any]) -> RowT: ...

    def update(self, row_id: int, partial: Mapping[str, Any]) -> RowT: ...

    def delete(self, row_id: int) -> None: ...


class FleetStore(Protocol):
    """Unit of work over the fleet tables.

    Writes made through the repositories become durable only on ``commit``.
    """

    equipments: Repository[Any]
    catalog: Repository[Any]
    links: Repository[Any]
    history: Repository[Any]

    def allocate_next_sequence(self) -> int: ...

    def has_role(self, user_id: str, role: str) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
