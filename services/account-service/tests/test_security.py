from __future__ import annotations

import jwt
import pytest

from account_service.config import Settings
from account_service.security.passwords import PasswordHasher
from account_service.security.tokens import decode_access_token, issue_access_token


def test_hash_uses_fresh_salt(hasher):
    first = hasher.hash("s3cret")
    second = hasher.hash("s3cret")

    assert first != second
    assert hasher.verify("s3cret", first)
    assert hasher.verify("s3cret", second)
    assert not hasher.verify("other", first)


@pytest.mark.parametrize("stored", ["", "not-a-bcrypt-hash", "$2b$04$short"])
def test_verify_returns_false_for_malformed_hash(hasher, stored):
    assert hasher.verify("s3cret", stored) is False


def test_cost_factor_is_encoded_in_hash():
    assert PasswordHasher(rounds=5).hash("s3cret").startswith("$2b$05$")


def test_token_signed_with_other_secret_is_rejected(settings):
    token, _ = issue_access_token(settings, subject="acc-1", login_id="alice")
    other = Settings(jwt_secret="another-secret-0123456789abcdef0123456789", jwt_issuer=settings.jwt_issuer)

    with pytest.raises(jwt.PyJWTError):
        decode_access_token(other, token)
