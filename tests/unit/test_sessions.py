"""Tests for session tokens and single-use account tokens."""

from datetime import datetime, timedelta

from jose import jwt

from marketplace.core.config import get_settings
from marketplace.core.security import (
    create_session_tokens,
    decode_token,
    find_refreshable_session,
    get_password_hash,
    revoke_account_sessions,
    revoke_session,
    verify_password,
)
from marketplace.core.tokens import (
    consume_account_token,
    create_account_token,
    verify_account_token,
)
from marketplace.db.models import AuthSessionRecord, TokenPurpose

from tests.factories import create_account


settings = get_settings()


def test_password_hashing():
    hashed = get_password_hash("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


class TestSessionTokens:

    def test_create_tracks_session(self, db_session):
        account = create_account(db_session)
        access_token, refresh_token, record = create_session_tokens(
            account.id, account.email, db_session, ip_address="10.0.0.1", user_agent="pytest"
        )

        payload = jwt.decode(access_token, settings.secret_key, algorithms=[settings.algorithm])
        assert payload["sub"] == str(account.id)
        assert payload["jti"] == record.token_jti
        assert payload["type"] == "access"
        assert record.ip_address == "10.0.0.1"
        assert record.refresh_token_hash != refresh_token
        assert db_session.query(AuthSessionRecord).count() == 1

    def test_decode_valid_token(self, db_session):
        account = create_account(db_session)
        access_token, _, record = create_session_tokens(account.id, account.email, db_session)
        assert decode_token(access_token, db_session).id == record.id

    def test_decode_rejects_garbage_and_foreign_keys(self, db_session):
        account = create_account(db_session)
        forged = jwt.encode(
            {"sub": str(account.id), "jti": "x", "type": "access", "exp": datetime.utcnow() + timedelta(hours=1)},
            "some-other-secret",
            algorithm=settings.algorithm,
        )
        assert decode_token("not-a-jwt", db_session) is None
        assert decode_token(forged, db_session) is None

    def test_revoked_session_no_longer_decodes(self, db_session):
        account = create_account(db_session)
        access_token, _, record = create_session_tokens(account.id, account.email, db_session)

        assert revoke_session(record.token_jti, db_session) is True
        assert revoke_session(record.token_jti, db_session) is False
        assert decode_token(access_token, db_session) is None

    def test_refresh_lookup(self, db_session):
        account = create_account(db_session)
        _, refresh_token, record = create_session_tokens(account.id, account.email, db_session)

        assert find_refreshable_session(refresh_token, db_session).id == record.id
        assert find_refreshable_session("unknown", db_session) is None
        revoke_session(record.token_jti, db_session)
        assert find_refreshable_session(refresh_token, db_session) is None

    def test_revoke_all_sessions_except_one(self, db_session):
        account = create_account(db_session)
        records = [create_session_tokens(account.id, account.email, db_session)[2] for _ in range(3)]

        assert revoke_account_sessions(account.id, db_session, except_jti=records[0].token_jti) == 2
        assert revoke_account_sessions(account.id, db_session) == 1


class TestAccountTokens:

    def test_consume_once(self, db_session):
        account = create_account(db_session)
        _, token = create_account_token(account.id, TokenPurpose.PASSWORD_RESET, db_session)

        assert consume_account_token(token, TokenPurpose.PASSWORD_RESET, db_session) == account.id
        db_session.commit()
        assert consume_account_token(token, TokenPurpose.PASSWORD_RESET, db_session) is None

    def test_purpose_must_match(self, db_session):
        account = create_account(db_session)
        _, token = create_account_token(account.id, TokenPurpose.EMAIL_CONFIRMATION, db_session)
        assert verify_account_token(token, TokenPurpose.PASSWORD_RESET, db_session) is None
        assert verify_account_token(token, TokenPurpose.EMAIL_CONFIRMATION, db_session) is not None

    def test_new_token_invalidates_previous(self, db_session):
        account = create_account(db_session)
        _, first = create_account_token(account.id, TokenPurpose.PASSWORD_RESET, db_session)
        _, second = create_account_token(account.id, TokenPurpose.PASSWORD_RESET, db_session)

        assert verify_account_token(first, TokenPurpose.PASSWORD_RESET, db_session) is None
        assert verify_account_token(second, TokenPurpose.PASSWORD_RESET, db_session) is not None

    def test_expired_token_rejected(self, db_session):
        account = create_account(db_session)
        stored, token = create_account_token(account.id, TokenPurpose.PASSWORD_RESET, db_session)
        stored.expires_at = datetime.utcnow() - timedelta(minutes=1)
        db_session.commit()

        assert verify_account_token(token, TokenPurpose.PASSWORD_RESET, db_session) is None
