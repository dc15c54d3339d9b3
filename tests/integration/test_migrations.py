"""Test Alembic migrations: upgrade, downgrade, and structural checks.

Runs against a throwaway SQLite file so no database server is needed.
"""

import os
import uuid

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ROOT = os.path.join(os.path.dirname(__file__), "..", "..")
ALEMBIC_INI = os.path.join(ROOT, "alembic.ini")

EXPECTED_TABLES = {
    "accounts",
    "auth_sessions",
    "auth_tokens",
    "users",
    "seller_applications",
    "events",
    "tickets",
    "review_history",
}


@pytest.fixture()
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'migrations.db'}"


@pytest.fixture()
def alembic_cfg(database_url):
    cfg = Config(ALEMBIC_INI)
    cfg.set_main_option("script_location", os.path.join(ROOT, "marketplace", "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    # Keep pytest's log capture intact
    cfg.attributes["configure_logger"] = False
    return cfg


@pytest.fixture()
def engine(database_url):
    engine = create_engine(database_url)
    yield engine
    engine.dispose()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


@pytest.mark.integration
class TestMigrations:
    """Run upgrade -> verify -> downgrade -> verify cycle."""

    def test_upgrade_creates_all_tables(self, alembic_cfg, engine):
        command.upgrade(alembic_cfg, "head")
        tables = set(inspect(engine).get_table_names())
        assert EXPECTED_TABLES <= tables
        assert "alembic_version" in tables

    def test_upgrade_is_idempotent(self, alembic_cfg):
        command.upgrade(alembic_cfg, "head")
        command.upgrade(alembic_cfg, "head")

    def test_downgrade_removes_tables(self, alembic_cfg, engine):
        command.upgrade(alembic_cfg, "head")
        command.downgrade(alembic_cfg, "base")
        assert not EXPECTED_TABLES & set(inspect(engine).get_table_names())

    def test_events_columns(self, alembic_cfg, engine):
        command.upgrade(alembic_cfg, "head")
        columns = {c["name"] for c in inspect(engine).get_columns("events")}
        assert {
            "id", "title", "description", "date", "time", "location", "price", "capacity",
            "category", "image_url", "organizer_id", "status", "reviewed_by", "reviewed_at",
            "created_at", "updated_at",
        } <= columns

    def test_users_role_is_constrained(self, alembic_cfg, engine):
        command.upgrade(alembic_cfg, "head")
        with pytest.raises(IntegrityError):
            with engine.begin() as conn:
                conn.execute(
                    text("INSERT INTO users (id, email, role, seller_status) VALUES (:id, :email, 'owner', 'none')"),
                    {"id": uuid.uuid4().hex, "email": "x@example.com"},
                )

    def test_event_status_is_constrained(self, alembic_cfg, engine):
        command.upgrade(alembic_cfg, "head")
        with pytest.raises(IntegrityError):
            with engine.begin() as conn:
                conn.execute(
                    text(
                        "INSERT INTO events (id, title, date, time, location, price, capacity, category, status) "
                        "VALUES (:id, 'T', '2030-01-01', '20:00:00', 'L', 10, 5, 'music', 'archived')"
                    ),
                    {"id": uuid.uuid4().hex},
                )
