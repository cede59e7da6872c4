from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from mycoris_api.core.errors import InvalidTokenError
from mycoris_api.core.roles import Role

# CryptContext handles password hashing using bcrypt
# bcrypt generates a fresh salt per hash and stores it inside the hash string,
# so the same password never produces the same hash twice
# 10 rounds is the cost factor: each extra round doubles the hashing time
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against a hash; malformed hashes simply don't match"""
    # An empty password or a missing hash can never match
    if not plain_password or not hashed_password:
        return False
    try:
        # Comparison is constant-time inside passlib
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # passlib raises when the stored value is not a recognisable hash
        return False


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    # Only the hash is stored; the plaintext never leaves this function
    return pwd_context.hash(password)


@dataclass(frozen=True)
class TokenSettings:
    """Signing configuration, built from Settings and injected into TokenIssuer"""
    # Anyone holding the secret can mint tokens for any user
    secret: str
    algorithm: str = "HS256"
    expires: timedelta = timedelta(days=30)


@dataclass(frozen=True)
class TokenClaims:
    """Identity asserted by a verified session token"""
    id: int
    email: str
    role: Role
    code_apporteur: Optional[str] = None


class TokenIssuer:
    """
    Mints and verifies signed, time-limited session tokens.

    Tokens are self-contained: there is no server-side session table, so a
    token stays valid until it expires.
    """

    def __init__(self, token_settings: TokenSettings):
        # An empty secret would make every token trivially forgeable
        if not token_settings.secret:
            raise ValueError("Token secret must not be empty")
        self._settings = token_settings

    def issue(self, user: Any) -> str:
        """Create a token for a persisted user (id, email, role, code_apporteur)"""
        # Use timezone-aware UTC; jose turns datetimes into epoch seconds
        now = datetime.now(timezone.utc)
        # Models store the role as a plain string, claims always carry the string form
        role = user.role.value if isinstance(user.role, Role) else user.role
        # Identity only - the password and its hash are never embedded
        # "sub" is the JWT standard subject claim; "id" is what clients read
        claims = {
            "sub": str(user.id),
            "id": user.id,
            "email": user.email,
            "role": role,
            "code_apporteur": user.code_apporteur,
            "iat": now,
            "exp": now + self._settings.expires,
        }
        return jwt.encode(claims, self._settings.secret, algorithm=self._settings.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Check signature and expiry, then extract the identity claims"""
        if not token:
            raise InvalidTokenError()
        try:
            # Verifies the signature and the exp claim in one call
            payload = jwt.decode(token, self._settings.secret,
                                 algorithms=[self._settings.algorithm])
        except JWTError:
            # Expired, tampered with, or signed with another secret
            raise InvalidTokenError()

        # A correctly signed token can still lack claims or carry an unknown role
        try:
            return TokenClaims(
                id=int(payload["id"]),
                email=str(payload["email"]),
                role=Role(payload["role"]),
                code_apporteur=payload.get("code_apporteur"),
            )
        except (KeyError, ValueError, TypeError):
            raise InvalidTokenError()
