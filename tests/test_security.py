import uuid
from datetime import UTC, datetime

import pytest
from jose import jwt

from admissions.config import Settings
from admissions.models import User, UserRole
from admissions.services import security
from admissions.services.security import (
    generate_token,
    generate_verification_token,
    get_user_id_from_token,
    hash_password,
    validate_token,
    verify_password,
)
from tests.conftest import FixedClock


def _user() -> User:
    return User(id=uuid.uuid4(), email="token@example.com", role=UserRole.parent)


def test_password_hash_round_trip():
    hashed = hash_password("Sup3rSecret")
    assert hashed != "Sup3rSecret"
    assert verify_password("Sup3rSecret", hashed)
    assert not verify_password("wrong-password", hashed)


@pytest.mark.parametrize("stored", [None, "", "not-a-bcrypt-hash"])
def test_verify_password_with_unusable_hash(stored):
    assert verify_password("anything", stored) is False


def test_verification_tokens_are_unique():
    assert generate_verification_token() != generate_verification_token()


def test_access_token_claims():
    user = _user()
    token, expires_at = generate_token(user)

    claims = validate_token(token)
    assert claims["sub"] == str(user.id)
    assert claims["role"] == "parent"
    assert claims["typ"] == "access"
    assert expires_at > datetime.now(UTC)
    assert get_user_id_from_token(token) == user.id


def test_expired_token_is_rejected():
    user = _user()
    token, _ = generate_token(user, FixedClock(datetime(2020, 1, 1, tzinfo=UTC)))
    assert validate_token(token) is None
    assert get_user_id_from_token(token) is None


def test_tampered_token_is_rejected():
    token, _ = generate_token(_user())
    other, _ = generate_token(_user())
    header, _, signature = token.split(".")
    forged = ".".join([header, other.split(".")[1], signature])
    assert validate_token(forged) is None


def test_token_of_another_type_is_rejected():
    now = int(datetime.now(UTC).timestamp())
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "typ": "refresh", "iat": now, "exp": now + 60},
        security.settings.jwt_secret,
        algorithm=security.settings.jwt_algorithm,
    )
    assert validate_token(token) is None


def test_missing_secret_refuses_to_sign(monkeypatch):
    monkeypatch.setattr(security, "settings", Settings(jwt_secret=""))
    with pytest.raises(RuntimeError, match="JWT_SECRET"):
        generate_token(_user())
