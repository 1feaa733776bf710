"""Shared test fixtures for all test modules."""

from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
import sqlalchemy as sa
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from paymigrate.core.config import settings
from paymigrate.services.billing_migration import charges, owner_table, subscriptions

ALEMBIC_DIR = Path(__file__).resolve().parents[1] / "paymigrate" / "alembic"

LEGACY_REVISION = "a1c3e5f7b9d2"
EXPAND_REVISION = "b4d6f8a0c2e4"
DATA_REVISION = "c6e8a0b2d4f6"
HEAD_REVISION = "d8f0b2c4e6a8"

# Fixed clock shared by seeded rows and migration runs
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


class LegacySeeder:
    """Inserts Pay v2 shaped rows."""

    def __init__(self, connection: sa.Connection):
        self.connection = connection

    def user(self, email: str = "owner@example.com", **values: Any) -> int:
        users = sa.table("users", sa.column("id"), sa.column("email"))
        result = self.connection.execute(sa.insert(users).values(email=email))
        user_id = int(result.lastrowid)
        if values:
            owners = owner_table("users")
            self.connection.execute(
                sa.update(owners).where(owners.c.id == user_id).values(**values)
            )
        return user_id

    def team(self, name: str = "Team", **values: Any) -> int:
        teams = sa.table("teams", sa.column("id"), sa.column("name"))
        result = self.connection.execute(sa.insert(teams).values(name=name))
        team_id = int(result.lastrowid)
        if values:
            owners = owner_table("teams")
            self.connection.execute(
                sa.update(owners).where(owners.c.id == team_id).values(**values)
            )
        return team_id

    def charge(
        self,
        owner_id: int,
        owner_type: str = "User",
        processor: str = "stripe",
        **values: Any,
    ) -> int:
        values.setdefault("processor_id", f"ch_{owner_type}_{owner_id}_{processor}")
        values.setdefault("amount", 1000)
        result = self.connection.execute(
            sa.insert(charges).values(
                owner_type=owner_type, owner_id=owner_id, processor=processor, **values
            )
        )
        return int(result.lastrowid)

    def subscription(
        self,
        owner_id: int,
        owner_type: str = "User",
        processor: str = "stripe",
        **values: Any,
    ) -> int:
        values.setdefault("name", "default")
        values.setdefault("processor_id", f"sub_{owner_type}_{owner_id}_{processor}")
        values.setdefault("processor_plan", "pro")
        values.setdefault("quantity", 1)
        values.setdefault("status", "active")
        result = self.connection.execute(
            sa.insert(subscriptions).values(
                owner_type=owner_type, owner_id=owner_id, processor=processor, **values
            )
        )
        return int(result.lastrowid)


@pytest.fixture(autouse=True)
def no_request_pacing(monkeypatch):
    monkeypatch.setattr(settings, "PROCESSOR_REQUEST_INTERVAL", 0.0)


@pytest.fixture
def engine():
    # In-memory SQLite with StaticPool so every connection shares one database
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def connection(engine):
    with engine.connect() as conn:
        yield conn


@pytest.fixture
def alembic_config(connection):
    cfg = Config()
    cfg.set_main_option("script_location", str(ALEMBIC_DIR))
    cfg.attributes["connection"] = connection
    return cfg


@pytest.fixture
def migrate(alembic_config):
    """Upgrade the test database to the given revision."""

    def _upgrade(revision: str) -> None:
        command.upgrade(alembic_config, revision)

    return _upgrade


@pytest.fixture
def legacy_db(connection, migrate):
    """Legacy Pay v2 tables plus the new, still empty, customer tables."""
    migrate(EXPAND_REVISION)
    return connection


@pytest.fixture
def seed(legacy_db):
    return LegacySeeder(legacy_db)


@pytest.fixture
def db_session(connection):
    session = Session(bind=connection)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def future_trial():
    return NOW + timedelta(days=10)
