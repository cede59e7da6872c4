import logging
from dataclasses import dataclass
from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from mycoris_api.core.errors import (
    AccountNotFoundError,
    ConflictError,
    InvalidCredentialError,
    InvalidEmailError,
    MissingCommercialCodeError,
    MissingFieldError,
    NotFoundError,
    RoleMismatchError,
    UnexpectedCommercialCodeError,
)
from mycoris_api.core.roles import Role, resolve_role
from mycoris_api.core.security import TokenIssuer, get_password_hash, verify_password
from mycoris_api.models.user import User
from mycoris_api.schemas.auth import RegistrationData

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("email", "password", "nom", "prenom", "telephone")

EMAIL_TAKEN_MESSAGE = "Cet email est déjà utilisé"


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_registration(data: RegistrationData, require_commercial_code: bool = False) -> None:
    """
    Check a registration payload without touching the database.

    Raises the first failure found: a missing required field, a missing
    commercial code, or an email whose role does not match the requested
    account type.
    """
    for field in REQUIRED_FIELDS:
        if _is_blank(getattr(data, field)):
            raise MissingFieldError(field)

    if require_commercial_code and _is_blank(data.code_apporteur):
        raise MissingCommercialCodeError()

    role = resolve_role(data.email)
    if require_commercial_code and role != Role.COMMERCIAL:
        raise RoleMismatchError()
    if not require_commercial_code and not _is_blank(data.code_apporteur):
        raise UnexpectedCommercialCodeError()

    try:
        validate_email(data.email, check_deliverability=False)
    except EmailNotValidError:
        raise InvalidEmailError()


@dataclass
class LoginResult:
    token: str
    user: User


class AuthService:
    """Registration and login; issues session tokens, never exposes hashes"""

    def __init__(self, db: Session, token_issuer: TokenIssuer):
        self.db = db
        self.token_issuer = token_issuer

    def register_client(self, data: RegistrationData) -> User:
        validate_registration(data, require_commercial_code=False)

        role = resolve_role(data.email)
        if role == Role.COMMERCIAL:
            # Commercial accounts need a code and are created by an admin
            raise RoleMismatchError(
                "Les comptes commerciaux sont créés par un administrateur")

        return self._create_user(data, role=role, code_apporteur=None)

    def register_commercial(self, data: RegistrationData) -> User:
        """
        Create a commercial account.

        Only an admin may call this; the route enforces it, not this method.
        """
        validate_registration(data, require_commercial_code=True)
        return self._create_user(data, role=Role.COMMERCIAL,
                                 code_apporteur=data.code_apporteur.strip())

    def login(self, email: str, password: str) -> LoginResult:
        user = self.db.query(User).filter(User.email == email).first()
        if user is None:
            logger.info("Login refused: unknown account")
            raise AccountNotFoundError()

        if not verify_password(password, user.password_hash):
            logger.info(f"Login refused: wrong password for user {user.id}")
            raise InvalidCredentialError()

        token = self.token_issuer.issue(user)
        logger.info(f"User {user.id} logged in ({user.role})")
        return LoginResult(token=token, user=user)

    def get_profile(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("Utilisateur non trouvé")
        return user

    def _create_user(self, data: RegistrationData, role: Role, code_apporteur: str | None) -> User:
        # Explicit check gives a clear error; the unique constraint covers races
        if self.db.query(User).filter(User.email == data.email).first():
            raise ConflictError(EMAIL_TAKEN_MESSAGE)

        user = User(
            email=data.email,
            password_hash=get_password_hash(data.password),
            role=role.value,
            nom=data.nom,
            prenom=data.prenom,
            civilite=data.civilite,
            date_naissance=data.date_naissance,
            lieu_naissance=data.lieu_naissance,
            telephone=data.telephone,
            adresse=data.adresse,
            pays=data.pays,
            code_apporteur=code_apporteur,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Two requests registered the same email simultaneously
            self.db.rollback()
            raise ConflictError(EMAIL_TAKEN_MESSAGE)
        self.db.refresh(user)

        logger.info(f"Registered {role.value} account {user.id} <{user.email}>")
        return user
