from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from notes_backend.api.errors import (
    InvalidCredentials,
    InvalidInput,
    InvalidToken,
    TokenExpired,
    UsernameTaken,
)
from notes_backend.api.identity import IdentityService
from notes_database.models import User

from conftest import TEST_SALT, TEST_SECRET


def test_register_stores_digest_not_password(identity, db_session):
    user_id = identity.register(db_session, "alice", "pw1")
    user = db_session.get(User, user_id)
    assert user.username == "alice"
    assert user.password_hash != "pw1"
    assert "pw1" not in user.password_hash
    assert user.password_hash == identity.hash_password("pw1")
    assert user.created_at is not None


def test_digest_depends_on_salt(identity):
    other = IdentityService(secret_key=TEST_SECRET, password_salt="another-salt")
    assert identity.hash_password("pw1") == identity.hash_password("pw1")
    assert identity.hash_password("pw1") != other.hash_password("pw1")


def test_register_duplicate_username(identity, db_session):
    identity.register(db_session, "alice", "pw1")
    with pytest.raises(UsernameTaken):
        identity.register(db_session, "alice", "other")
    # usernames are case-sensitive
    assert identity.register(db_session, "Alice", "pw1")


@pytest.mark.parametrize("username,password", [("", "pw"), ("bob", ""), ("", "")])
def test_register_requires_username_and_password(identity, db_session, username, password):
    with pytest.raises(InvalidInput):
        identity.register(db_session, username, password)


def test_authenticate(identity, db_session):
    user_id = identity.register(db_session, "alice", "pw1")
    assert identity.authenticate(db_session, "alice", "pw1") == user_id
    with pytest.raises(InvalidCredentials):
        identity.authenticate(db_session, "alice", "wrong")
    with pytest.raises(InvalidCredentials):
        identity.authenticate(db_session, "nobody", "pw1")


def test_login_issues_verifiable_token(identity, db_session):
    user_id = identity.register(db_session, "alice", "pw1")
    token = identity.login(db_session, "alice", "pw1")
    assert identity.verify_token(token) == user_id


def test_token_claims(identity):
    now = datetime.now(timezone.utc)
    token = identity.issue_token(7, now=now)
    claims = jwt.get_unverified_claims(token)
    assert claims["user_id"] == 7
    assert claims["iat"] == int(now.timestamp())
    assert claims["exp"] == int((now + timedelta(hours=12)).timestamp())
    assert jwt.get_unverified_header(token)["alg"] == "HS256"


def test_expired_token(identity):
    issued = datetime.now(timezone.utc) - timedelta(hours=13)
    token = identity.issue_token(7, now=issued)
    with pytest.raises(TokenExpired):
        identity.verify_token(token)


def test_token_signed_with_other_key(identity):
    forger = IdentityService(secret_key="not-the-key", password_salt=TEST_SALT)
    with pytest.raises(InvalidToken):
        identity.verify_token(forger.issue_token(7))


def test_token_with_other_algorithm(identity):
    other = IdentityService(secret_key=TEST_SECRET, password_salt=TEST_SALT, algorithm="HS512")
    with pytest.raises(InvalidToken):
        identity.verify_token(other.issue_token(7))


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token(identity, token):
    with pytest.raises(InvalidToken):
        identity.verify_token(token)


def test_token_without_user_id(identity):
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode({"iat": now, "exp": now + 60}, TEST_SECRET, algorithm="HS256")
    with pytest.raises(InvalidToken):
        identity.verify_token(token)


def test_token_without_expiry(identity):
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode({"user_id": 1, "iat": now}, TEST_SECRET, algorithm="HS256")
    with pytest.raises(InvalidToken):
        identity.verify_token(token)


def test_secrets_are_required():
    with pytest.raises(ValueError):
        IdentityService(secret_key="", password_salt=TEST_SALT)
    with pytest.raises(ValueError):
        IdentityService(secret_key=TEST_SECRET, password_salt="")
