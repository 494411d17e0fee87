from __future__ import annotations

from pathlib import Path
import sys

# Ensure repo root is importable
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))


import pytest
from fastapi.testclient import TestClient

from drone_fleet.api.app import create_app
from drone_fleet.core.settings import Settings
from drone_fleet.db.base import Base
from drone_fleet.db import models  # noqa: F401
from drone_fleet.db.session import create_engine_and_sessionmaker
from drone_fleet.repositories.sql import SqlFleetStore
from drone_fleet.services.sequence_service import ensure_counter


class RecordingSink:
    """Collects notifications instead of showing them."""

    def __init__(self) -> None:
        self.notifications = []

    def notify(self, notification) -> None:
        self.notifications.append(notification)

    @property
    def last(self):
        return self.notifications[-1] if self.notifications else None


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    db_path = tmp_path / "test.db"

    return Settings(
        env="dev",
        database_url=f"sqlite:///{db_path}",
        auto_create_db=True,
        seed_accessory_catalog=False,
        accessory_catalog_file=str(REPO_ROOT / "config" / "accessory_catalog.yaml"),
        initial_admin_user_id="",
        enable_db_log_handler=False,
    )


@pytest.fixture()
def client(settings: Settings):
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def session_factory(tmp_path: Path):
    rt = create_engine_and_sessionmaker(f"sqlite:///{tmp_path / 'services.db'}")
    Base.metadata.create_all(bind=rt.engine)
    with rt.SessionLocal() as db:
        ensure_counter(db)
    yield rt.SessionLocal
    rt.engine.dispose()


@pytest.fixture()
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture()
def store(db) -> SqlFleetStore:
    return SqlFleetStore(db)


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()
