from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID
import hashlib
import secrets
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from marketplace.core.config import get_settings
from marketplace.db.models import AuthSessionRecord

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)


def hash_token(token: str) -> str:
    """SHA-256 digest stored in place of opaque tokens."""
    return hashlib.sha256(token.encode()).hexdigest()


def create_session_tokens(
    account_id: UUID,
    email: str,
    db: Session,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
    refresh_delta: Optional[timedelta] = None,
) -> tuple[str, str, AuthSessionRecord]:
    """
    Create a JWT access token plus an opaque refresh token and track the session.

    Returns:
        (access_token, refresh_token, session_record) tuple
    """
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    refresh_expire = now + (refresh_delta or timedelta(days=settings.refresh_token_expire_days))

    # Unique JWT ID for session tracking
    jti = str(uuid.uuid4())

    to_encode = {
        "sub": str(account_id),
        "email": email,
        "exp": expire,
        "jti": jti,
        "type": "access",
    }
    access_token = jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)
    refresh_token = secrets.token_urlsafe(32)

    record = AuthSessionRecord(
        account_id=account_id,
        token_jti=jti,
        refresh_token_hash=hash_token(refresh_token),
        ip_address=ip_address,
        user_agent=user_agent,
        created_at=now,
        expires_at=expire,
        refresh_expires_at=refresh_expire,
    )
    db.add(record)
    db.commit()
    db.refresh(record)

    return access_token, refresh_token, record


def decode_token(token: str, db: Session) -> Optional[AuthSessionRecord]:
    """Decode and validate a JWT access token. Returns its session if valid and not revoked."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    account_id = payload.get("sub")
    jti = payload.get("jti")
    if account_id is None or jti is None or payload.get("type") != "access":
        return None

    record = db.query(AuthSessionRecord).filter(
        AuthSessionRecord.token_jti == jti,
        AuthSessionRecord.revoked_at.is_(None),
    ).first()

    if record is None or str(record.account_id) != account_id:
        # Session was revoked or doesn't exist
        return None
    return record


def find_refreshable_session(refresh_token: str, db: Session) -> Optional[AuthSessionRecord]:
    """Look up an unrevoked, unexpired session by its refresh token."""
    return db.query(AuthSessionRecord).filter(
        AuthSessionRecord.refresh_token_hash == hash_token(refresh_token),
        AuthSessionRecord.revoked_at.is_(None),
        AuthSessionRecord.refresh_expires_at > datetime.utcnow(),
    ).first()


def revoke_session(jti: str, db: Session) -> bool:
    """Revoke a session by JWT ID."""
    record = db.query(AuthSessionRecord).filter(AuthSessionRecord.token_jti == jti).first()
    if record and record.revoked_at is None:
        record.revoked_at = datetime.utcnow()
        db.commit()
        return True
    return False


def revoke_account_sessions(account_id: UUID, db: Session, except_jti: Optional[str] = None) -> int:
    """Revoke all sessions for an account (except optionally one session)."""
    query = db.query(AuthSessionRecord).filter(
        AuthSessionRecord.account_id == account_id,
        AuthSessionRecord.revoked_at.is_(None),
    )

    if except_jti:
        query = query.filter(AuthSessionRecord.token_jti != except_jti)

    count = 0
    for record in query.all():
        record.revoked_at = datetime.utcnow()
        count += 1

    if count > 0:
        db.commit()

    return count
