"""Tests for seeding the first admin."""

from marketplace.core.access.roles import Role
from marketplace.db.models import Account, User
from marketplace.db.seed import seed_admin
from marketplace.services import AuthProvider


def test_seed_creates_confirmed_admin(db_session):
    admin = seed_admin(db_session, " Root@Example.com ", "admin-password", full_name="Root")
    db_session.commit()

    assert admin.role == Role.ADMIN.value
    assert admin.email == "root@example.com"
    assert db_session.get(Account, admin.id).is_confirmed

    session = AuthProvider(db_session).sign_in("root@example.com", "admin-password")
    assert session.account_id == admin.id


def test_seed_is_idempotent(db_session):
    first = seed_admin(db_session, "root@example.com", "admin-password")
    second = seed_admin(db_session, "root@example.com", "other-password")
    db_session.commit()

    assert first.id == second.id
    assert db_session.query(Account).count() == 1
    assert db_session.query(User).count() == 1


def test_seed_promotes_existing_profile(db_session):
    account = Account(email="boss@example.com", password_hash="!", full_name="Boss")
    db_session.add(account)
    db_session.flush()
    db_session.add(User(id=account.id, email=account.email, role="user", seller_status="none"))
    db_session.flush()

    admin = seed_admin(db_session, "boss@example.com", "ignored")
    assert admin.id == account.id
    assert admin.role == Role.ADMIN.value
