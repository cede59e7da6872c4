import pytest

from mycoris_api.core.errors import (
    AccountNotFoundError,
    AuthenticationError,
    ConflictError,
    InvalidCredentialError,
    InvalidEmailError,
    MissingCommercialCodeError,
    MissingFieldError,
    NotFoundError,
    RoleMismatchError,
    UnexpectedCommercialCodeError,
)
from mycoris_api.models.user import User
from mycoris_api.schemas.auth import RegistrationData
from mycoris_api.services.auth_service import AuthService, validate_registration


def registration(**overrides) -> RegistrationData:
    fields = dict(
        email="awa.kone@mycoris.ci",
        password="motdepasse",
        nom="Kone",
        prenom="Awa",
        telephone="+2250700000000",
        civilite="Mme",
        date_naissance="1990-04-12",
        lieu_naissance="Abidjan",
        adresse="Cocody",
        pays="Côte d'Ivoire",
    )
    fields.update(overrides)
    return RegistrationData(**fields)


@pytest.fixture
def auth_service(db, token_issuer):
    return AuthService(db, token_issuer)


@pytest.mark.parametrize("field", ["email", "password", "nom", "prenom", "telephone"])
def test_missing_required_field_is_named(field):
    with pytest.raises(MissingFieldError) as exc_info:
        validate_registration(registration(**{field: ""}))
    assert exc_info.value.field == field
    assert field in exc_info.value.message


def test_first_missing_field_is_reported():
    data = RegistrationData(email="", password="x", nom="x", prenom="x", telephone="x")
    with pytest.raises(MissingFieldError) as exc_info:
        validate_registration(data)
    assert exc_info.value.field == "email"


def test_whitespace_counts_as_missing():
    with pytest.raises(MissingFieldError):
        validate_registration(registration(nom="   "))


def test_commercial_code_required_for_commercials():
    data = registration(email="yao.coriscomvi25@mycoris.ci")
    with pytest.raises(MissingCommercialCodeError):
        validate_registration(data, require_commercial_code=True)


def test_commercial_email_must_carry_marker():
    data = registration(email="yao@mycoris.ci", code_apporteur="AP-12")
    with pytest.raises(RoleMismatchError):
        validate_registration(data, require_commercial_code=True)


def test_admin_email_is_not_a_commercial_email():
    data = registration(email="yao.adminvi25.coriscomvi25@mycoris.ci", code_apporteur="AP-12")
    with pytest.raises(RoleMismatchError):
        validate_registration(data, require_commercial_code=True)


def test_clients_cannot_claim_a_commercial_code():
    with pytest.raises(UnexpectedCommercialCodeError):
        validate_registration(registration(code_apporteur="AP-12"))


def test_malformed_email_is_rejected():
    with pytest.raises(InvalidEmailError):
        validate_registration(registration(email="not-an-email"))


def test_valid_registrations_pass():
    validate_registration(registration())
    validate_registration(
        registration(email="yao.coriscomvi25@mycoris.ci", code_apporteur="AP-12"),
        require_commercial_code=True,
    )


def test_register_client_stores_hash_and_profile(auth_service, db):
    user = auth_service.register_client(registration())

    assert user.id is not None
    assert user.role == "client"
    assert user.code_apporteur is None
    assert user.password_hash != "motdepasse"
    assert user.date_naissance.isoformat() == "1990-04-12"
    assert db.query(User).count() == 1


def test_register_client_resolves_admin_role(auth_service):
    user = auth_service.register_client(registration(email="chef.adminvi25@mycoris.ci"))
    assert user.role == "admin"


def test_register_client_refuses_commercial_emails(auth_service, db):
    with pytest.raises(RoleMismatchError):
        auth_service.register_client(registration(email="yao.coriscomvi25@mycoris.ci"))
    assert db.query(User).count() == 0


def test_duplicate_email_is_a_conflict(auth_service):
    auth_service.register_client(registration())
    with pytest.raises(ConflictError):
        auth_service.register_client(registration(nom="Autre"))


def test_register_commercial_forces_role_and_keeps_code(auth_service):
    user = auth_service.register_commercial(
        registration(email="yao.coriscomvi25@mycoris.ci", code_apporteur=" AP-12 "))
    assert user.role == "commercial"
    assert user.code_apporteur == "AP-12"


def test_login_returns_token_for_identity(auth_service, token_issuer):
    auth_service.register_commercial(
        registration(email="yao.coriscomvi25@mycoris.ci", code_apporteur="AP-12"))

    result = auth_service.login("yao.coriscomvi25@mycoris.ci", "motdepasse")
    claims = token_issuer.verify(result.token)

    assert claims.id == result.user.id
    assert claims.role == "commercial"
    assert claims.code_apporteur == "AP-12"


def test_login_failures_share_one_message(auth_service):
    auth_service.register_client(registration())

    with pytest.raises(AccountNotFoundError) as unknown:
        auth_service.login("nobody@mycoris.ci", "motdepasse")
    with pytest.raises(InvalidCredentialError) as wrong:
        auth_service.login("awa.kone@mycoris.ci", "mauvais")

    assert isinstance(unknown.value, AuthenticationError)
    assert isinstance(wrong.value, AuthenticationError)
    assert unknown.value.message == wrong.value.message


def test_get_profile(auth_service):
    user = auth_service.register_client(registration())
    assert auth_service.get_profile(user.id).email == "awa.kone@mycoris.ci"
    with pytest.raises(NotFoundError):
        auth_service.get_profile(user.id + 100)
