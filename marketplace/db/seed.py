"""Database seeding for the marketplace.

Creates the first admin. Admins are never created through sign-up or the
review workflow.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from marketplace.core.access.roles import Role, SellerStatus
from marketplace.core.security import get_password_hash
from marketplace.db.models import Account, User


def seed_admin(
    db: Session,
    email: str,
    password: str,
    *,
    full_name: Optional[str] = None,
) -> User:
    """
    Create (or promote) a confirmed admin account with its profile.

    Idempotent - running it again for the same email only ensures the
    profile has the admin role.

    Returns:
        The admin's profile
    """
    email = email.strip().lower()
    account = db.query(Account).filter(Account.email == email).first()
    if account is None:
        account = Account(
            email=email,
            password_hash=get_password_hash(password),
            full_name=full_name,
            email_confirmed_at=datetime.utcnow(),
        )
        db.add(account)
        db.flush()

    profile = db.get(User, account.id)
    if profile is None:
        profile = User(
            id=account.id,
            email=account.email,
            full_name=full_name or account.full_name,
            seller_status=SellerStatus.NONE.value,
        )
        db.add(profile)
    profile.role = Role.ADMIN.value

    db.flush()
    return profile


# CLI script for seeding
if __name__ == "__main__":
    import argparse
    import getpass
    import sys

    from marketplace.db.session import SessionLocal

    parser = argparse.ArgumentParser(description="Create the first marketplace admin")
    parser.add_argument("email")
    parser.add_argument("--name", default=None)
    args = parser.parse_args()

    db = SessionLocal()
    try:
        admin = seed_admin(db, args.email, getpass.getpass("Admin password: "), full_name=args.name)
        db.commit()
        print(f"Admin ready: {admin.email} (ID: {admin.id})")
    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()
