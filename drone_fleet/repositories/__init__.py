from .base import FleetStore, Repository
from .sql import SqlFleetStore, SqlRepository

__all__ = ["FleetStore", "Repository", "SqlFleetStore", "SqlRepository"]
