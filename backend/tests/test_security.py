from datetime import timedelta
from types import SimpleNamespace

import pytest
from jose import jwt

from mycoris_api.core.errors import InvalidTokenError
from mycoris_api.core.roles import Role
from mycoris_api.core.security import (
    TokenIssuer,
    TokenSettings,
    get_password_hash,
    verify_password,
)


def make_user(**overrides):
    fields = dict(id=7, email="awa@mycoris.ci", role="client", code_apporteur=None,
                  password_hash="should-never-leak")
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_hash_verifies_its_own_password():
    hashed = get_password_hash("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)


def test_hash_rejects_other_password():
    assert not verify_password("s3cret?", get_password_hash("s3cret!"))


def test_hash_is_salted():
    assert get_password_hash("same") != get_password_hash("same")


@pytest.mark.parametrize("bad_hash", ["", None, "not-a-hash", "$2b$10$short"])
def test_verify_never_raises_on_malformed_hash(bad_hash):
    assert verify_password("whatever", bad_hash) is False


def test_issue_and_verify_round_trip(token_issuer):
    token = token_issuer.issue(make_user(role="commercial", code_apporteur="AP-001"))
    claims = token_issuer.verify(token)

    assert claims.id == 7
    assert claims.email == "awa@mycoris.ci"
    assert claims.role is Role.COMMERCIAL
    assert claims.code_apporteur == "AP-001"


def test_token_carries_no_password_material(token_issuer):
    token = token_issuer.issue(make_user())
    claims = jwt.get_unverified_claims(token)

    assert set(claims) == {"sub", "id", "email", "role", "code_apporteur", "iat", "exp"}
    assert "should-never-leak" not in str(claims)


def test_expiry_follows_settings():
    issuer = TokenIssuer(TokenSettings(secret="k", expires=timedelta(days=30)))
    claims = jwt.get_unverified_claims(issuer.issue(make_user()))
    assert claims["exp"] - claims["iat"] == 30 * 24 * 3600


def test_expired_token_is_rejected():
    issuer = TokenIssuer(TokenSettings(secret="k", expires=timedelta(seconds=-10)))
    token = issuer.issue(make_user())
    with pytest.raises(InvalidTokenError):
        issuer.verify(token)


def test_token_signed_with_another_secret_is_rejected(token_issuer):
    forged = TokenIssuer(TokenSettings(secret="other-secret")).issue(make_user(role="admin"))
    with pytest.raises(InvalidTokenError):
        token_issuer.verify(forged)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_garbled_token_is_rejected(token_issuer, token):
    with pytest.raises(InvalidTokenError):
        token_issuer.verify(token)


def test_token_with_unknown_role_is_rejected(token_issuer):
    token = token_issuer.issue(make_user(role="superuser"))
    with pytest.raises(InvalidTokenError):
        token_issuer.verify(token)


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        TokenIssuer(TokenSettings(secret=""))
