"""Database package.

SQLAlchemy models + session management. Schema changes ship as Alembic
migrations under ``alembic/versions``.
"""

from .base import Base
from .session import create_engine_and_sessionmaker

__all__ = ["Base", "create_engine_and_sessionmaker"]
