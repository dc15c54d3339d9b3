"""Authentication provider.

Owns accounts, issued sessions and single-use account tokens. The domain
profile (``users``) is provisioned separately by ``ProfileService`` once a
session exists.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional, Union
from uuid import UUID

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.orm import Session

from marketplace.core.config import Settings, get_settings
from marketplace.core.errors import AuthError
from marketplace.core.security import (
    create_session_tokens,
    decode_token,
    find_refreshable_session,
    get_password_hash,
    revoke_account_sessions,
    revoke_session,
    verify_password,
)
from marketplace.core.session import AuthSession
from marketplace.core.tokens import consume_account_token, create_account_token
from marketplace.db.errors import store_errors
from marketplace.db.models import Account, AuthSessionRecord, TokenPurpose

logger = logging.getLogger(__name__)


class SessionEvent(str, Enum):
    """Session change notifications delivered to subscribers."""

    INITIAL_SESSION = "initial_session"
    SIGNED_IN = "signed_in"
    TOKEN_REFRESHED = "token_refreshed"
    SIGNED_OUT = "signed_out"
    PASSWORD_RECOVERY = "password_recovery"


@dataclass(frozen=True)
class PendingConfirmation:
    """Sign-up accepted; the account must confirm its email before signing in."""

    account_id: UUID
    email: str
    confirmation_token: str


SessionListener = Callable[[SessionEvent, Optional[AuthSession]], None]


class AuthProvider:
    """Email/password authentication over the accounts tables."""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self._listeners: list[SessionListener] = []

    # Subscriptions

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        """Subscribe to session changes. Returns a callable that unsubscribes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: SessionEvent, session: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception:
                # A failing subscriber must not undo the auth operation
                logger.exception("Session listener failed on %s", event.value)

    # Sign up / confirmation

    def sign_up(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None,
    ) -> Union[PendingConfirmation, AuthSession]:
        """
        Register an account.

        Returns ``PendingConfirmation`` while email confirmation is required,
        otherwise signs the account in straight away.

        Raises:
            AuthError: Invalid email, weak password, or email already registered
        """
        email = self._normalize_email(email)
        if len(password or "") < self.settings.min_password_length:
            raise AuthError(
                f"Password should be at least {self.settings.min_password_length} characters",
                reason="weak_password",
            )

        with store_errors(self.db, "sign up"):
            if self._find_account(email):
                raise AuthError("User already registered", reason="email_taken")

            account = Account(
                email=email,
                password_hash=get_password_hash(password),
                full_name=(full_name or "").strip() or None,
            )
            if not self.settings.email_confirmation_required:
                account.email_confirmed_at = datetime.utcnow()
            self.db.add(account)
            self.db.commit()
            self.db.refresh(account)

            logger.info("Account %s registered", account.id)

            if not self.settings.email_confirmation_required:
                session = self._issue(account)
            else:
                _, token = create_account_token(
                    account.id,
                    TokenPurpose.EMAIL_CONFIRMATION,
                    self.db,
                    expires_in_hours=self.settings.confirmation_token_expire_hours,
                )
                return PendingConfirmation(account.id, account.email, token)

        self._notify(SessionEvent.SIGNED_IN, session)
        return session

    def confirm_email(self, token: str) -> AuthSession:
        """
        Exchange an emailed confirmation token for a session.

        Raises:
            AuthError: Token unknown, used or expired
        """
        with store_errors(self.db, "confirm email"):
            account_id = consume_account_token(token, TokenPurpose.EMAIL_CONFIRMATION, self.db)
            if account_id is None:
                raise AuthError("Confirmation link is invalid or has expired", reason="invalid_token")

            account = self.db.get(Account, account_id)
            account.email_confirmed_at = account.email_confirmed_at or datetime.utcnow()
            self.db.commit()
            session = self._issue(account)

        logger.info("Account %s confirmed its email", account_id)
        self._notify(SessionEvent.SIGNED_IN, session)
        return session

    # Sessions

    def sign_in(
        self,
        email: str,
        password: str,
        *,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuthSession:
        """
        Sign in with email and password.

        Raises:
            AuthError: Bad credentials, unconfirmed email or disabled account
        """
        with store_errors(self.db, "sign in"):
            account = self._find_account((email or "").strip().lower())
            if not account or not verify_password(password or "", account.password_hash):
                logger.info("Failed sign-in for %s", email)
                raise AuthError("Invalid login credentials")
            if not account.is_active:
                raise AuthError("Account is disabled", reason="inactive")
            if not account.is_confirmed:
                raise AuthError("Email not confirmed", reason="email_not_confirmed")

            account.last_sign_in_at = datetime.utcnow()
            self.db.commit()
            session = self._issue(account, ip_address=ip_address, user_agent=user_agent)

        self._notify(SessionEvent.SIGNED_IN, session)
        return session

    def get_session(self, access_token: Optional[str]) -> Optional[AuthSession]:
        """Current session for ``access_token``; None when absent, expired or revoked."""
        if not access_token:
            return None
        with store_errors(self.db, "get session"):
            record = decode_token(access_token, self.db)
            if record is None or record.expires_at <= datetime.utcnow():
                return None
            account = record.account
            if account is None or not account.is_active:
                return None
        return self._to_session(account, record, access_token)

    def refresh_session(self, refresh_token: str) -> AuthSession:
        """
        Rotate a refresh token into a new session, revoking the old one.

        Raises:
            AuthError: Refresh token unknown, revoked or expired
        """
        with store_errors(self.db, "refresh session"):
            record = find_refreshable_session(refresh_token or "", self.db)
            if record is None:
                raise AuthError("Invalid refresh token", reason="invalid_token")

            account = record.account
            if not account.is_active:
                raise AuthError("Account is disabled", reason="inactive")

            revoke_session(record.token_jti, self.db)
            session = self._issue(account, ip_address=record.ip_address, user_agent=record.user_agent)

        self._notify(SessionEvent.TOKEN_REFRESHED, session)
        return session

    def sign_out(self, access_token: Optional[str]) -> None:
        """Revoke the session behind ``access_token``. Listeners are always notified."""
        if access_token:
            with store_errors(self.db, "sign out"):
                record = decode_token(access_token, self.db)
                if record is not None:
                    revoke_session(record.token_jti, self.db)
                    logger.info("Account %s signed out", record.account_id)
        self._notify(SessionEvent.SIGNED_OUT, None)

    # Password reset

    def reset_password(self, email: str, redirect_to: Optional[str] = None) -> Optional[str]:
        """
        Create a password reset link for ``email``.

        Unknown emails yield None so callers cannot probe for accounts.
        """
        try:
            email = self._normalize_email(email)
        except AuthError:
            return None

        with store_errors(self.db, "reset password"):
            account = self._find_account(email)
            if account is None or not account.is_active:
                logger.info("Password reset requested for unknown email")
                return None

            _, token = create_account_token(
                account.id,
                TokenPurpose.PASSWORD_RESET,
                self.db,
                expires_in_hours=self.settings.password_reset_expire_hours,
            )

        target = redirect_to or f"{self.settings.site_url.rstrip('/')}/reset-password"
        separator = "&" if "?" in target else "?"
        return f"{target}{separator}token={token}"

    def complete_password_reset(self, token: str, new_password: str) -> None:
        """
        Set a new password with a reset token and revoke every session.

        Raises:
            AuthError: Token invalid/expired or password too weak
        """
        if len(new_password or "") < self.settings.min_password_length:
            raise AuthError(
                f"Password should be at least {self.settings.min_password_length} characters",
                reason="weak_password",
            )

        with store_errors(self.db, "complete password reset"):
            account_id = consume_account_token(token, TokenPurpose.PASSWORD_RESET, self.db)
            if account_id is None:
                raise AuthError("Reset link is invalid or has expired", reason="invalid_token")

            account = self.db.get(Account, account_id)
            account.password_hash = get_password_hash(new_password)
            self.db.commit()
            revoked = revoke_account_sessions(account_id, self.db)

        logger.info("Password reset for account %s, %d sessions revoked", account_id, revoked)
        self._notify(SessionEvent.PASSWORD_RECOVERY, None)

    # Helpers

    def _find_account(self, email: str) -> Optional[Account]:
        return self.db.query(Account).filter(Account.email == email).first()

    def _normalize_email(self, email: str) -> str:
        try:
            return validate_email(email or "", check_deliverability=False).normalized.lower()
        except EmailNotValidError as exc:
            raise AuthError(str(exc), reason="invalid_email") from None

    def _issue(
        self,
        account: Account,
        *,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuthSession:
        access_token, refresh_token, record = create_session_tokens(
            account.id,
            account.email,
            self.db,
            ip_address=ip_address,
            user_agent=user_agent,
            expires_delta=timedelta(minutes=self.settings.access_token_expire_minutes),
            refresh_delta=timedelta(days=self.settings.refresh_token_expire_days),
        )
        return self._to_session(account, record, access_token, refresh_token)

    @staticmethod
    def _to_session(
        account: Account,
        record: AuthSessionRecord,
        access_token: str,
        refresh_token: str = "",
    ) -> AuthSession:
        return AuthSession(
            account_id=account.id,
            email=account.email,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=record.expires_at,
            metadata={"full_name": account.full_name} if account.full_name else {},
        )
