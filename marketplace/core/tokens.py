"""Single-use account tokens (email confirmation, password reset)."""

import secrets
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from marketplace.core.security import hash_token
from marketplace.db.models import AuthToken, TokenPurpose


def generate_token() -> tuple[str, str]:
    """Generate an account token.

    Returns:
        (token, token_hash) tuple
        - token: The actual token mailed to the account holder
        - token_hash: Hash to store in database
    """
    token = secrets.token_urlsafe(32)
    return token, hash_token(token)


def create_account_token(
    account_id: UUID,
    purpose: TokenPurpose,
    db: Session,
    expires_in_hours: int = 1,
) -> tuple[AuthToken, str]:
    """Create a token for an account, invalidating earlier unused ones of the same purpose.

    Returns:
        (token_model, plain_token) tuple
    """
    purpose = TokenPurpose(purpose)
    existing_tokens = db.query(AuthToken).filter(
        AuthToken.account_id == account_id,
        AuthToken.purpose == purpose.value,
        AuthToken.is_used == False,  # noqa: E712
        AuthToken.expires_at > datetime.utcnow(),
    ).all()

    for token in existing_tokens:
        token.is_used = True

    plain_token, token_hash = generate_token()
    account_token = AuthToken(
        account_id=account_id,
        purpose=purpose.value,
        token_hash=token_hash,
        expires_at=datetime.utcnow() + timedelta(hours=expires_in_hours),
    )

    db.add(account_token)
    db.commit()
    db.refresh(account_token)

    return account_token, plain_token


def verify_account_token(token: str, purpose: TokenPurpose, db: Session) -> Optional[AuthToken]:
    """Return the stored token if it is unused, unexpired and of ``purpose``."""
    return db.query(AuthToken).filter(
        AuthToken.token_hash == hash_token(token),
        AuthToken.purpose == TokenPurpose(purpose).value,
        AuthToken.is_used == False,  # noqa: E712
        AuthToken.expires_at > datetime.utcnow(),
    ).first()


def consume_account_token(token: str, purpose: TokenPurpose, db: Session) -> Optional[UUID]:
    """Mark a valid token used.

    The caller commits together with whatever change the token authorizes.

    Returns:
        account_id if the token was valid, None otherwise
    """
    account_token = verify_account_token(token, purpose, db)
    if not account_token:
        return None

    account_token.is_used = True
    account_token.used_at = datetime.utcnow()
    return account_token.account_id
