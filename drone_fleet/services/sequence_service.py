from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from drone_fleet.repositories.base import FleetStore
from drone_fleet.repositories.sql import SEQUENCE_COUNTER_ID, seed_sequence_counter
from drone_fleet.db.models import EquipmentSequence

logger = logging.getLogger(__name__)


def format_sequence_number(value: int | None) -> str:
    """Display form used across the dashboard, e.g. ``#0042``."""
    if value is None:
        return "#----"
    return f"#{int(value):04d}"


class SequenceService:
    """Hands out equipment display numbers.

    Numbers come from the store's atomic counter and are never reused, even
    after the equipment that held them is deleted.
    """

    def __init__(self, store: FleetStore) -> None:
        self._store = store

    def next_sequence_number(self) -> int:
        value = self._store.allocate_next_sequence()
        logger.debug("Allocated equipment sequence %s", value)
        return value


def ensure_counter(db: Session) -> int:
    """Make sure the single counter row exists; returns its current value."""
    seed_sequence_counter(db)
    db.commit()
    row = db.get(EquipmentSequence, SEQUENCE_COUNTER_ID)
    current = int(row.last_sequence_number) if row is not None else 0
    logger.info("Equipment sequence counter at %s", current)
    return current
