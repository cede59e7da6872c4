from typing import Callable
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from mycoris_api.core.config import settings
from mycoris_api.core.database import get_db
from mycoris_api.core.errors import AuthorizationError, InvalidTokenError
from mycoris_api.core.roles import Role
from mycoris_api.core.security import TokenClaims, TokenIssuer
from mycoris_api.services.auth_service import AuthService
from mycoris_api.services.subscription_service import SubscriptionService
from mycoris_api.storage.local_storage import LocalStorage, storage

# Extracts "Authorization: Bearer <token>"
# auto_error=False so that a missing header is reported with our own 401 envelope
bearer_scheme = HTTPBearer(auto_error=False)


def get_token_issuer() -> TokenIssuer:
    """Token issuer configured from settings; overridden in tests"""
    return TokenIssuer(settings.token_settings())


def get_storage() -> LocalStorage:
    # Tests swap this for a storage rooted in a temporary directory
    return storage


def get_auth_service(
    db: Session = Depends(get_db),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> AuthService:
    # One service per request, bound to that request's session
    return AuthService(db, token_issuer)


def get_subscription_service(db: Session = Depends(get_db)) -> SubscriptionService:
    return SubscriptionService(db)


async def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> TokenClaims:
    """
    Identity of the caller, taken from a verified session token.

    Missing, malformed, expired or forged tokens all raise 401.
    """
    # No Authorization header, or a scheme other than Bearer
    if credentials is None:
        raise InvalidTokenError("Token manquant")

    # Signature and expiry are checked here; the database is not consulted,
    # so handlers that need the user row must load it themselves
    return token_issuer.verify(credentials.credentials)


def require_roles(*roles: Role) -> Callable[..., TokenClaims]:
    """
    Build a dependency admitting only callers whose role is in `roles`.

    Usage:

        @router.post("/admin-only")
        async def handler(claims: TokenClaims = Depends(require_roles(Role.ADMIN))):
            ...
    """
    # Every role-gated route goes through this one check
    allowed = frozenset(roles)

    async def check_role(claims: TokenClaims = Depends(get_current_claims)) -> TokenClaims:
        # Authenticated but not permitted: 403, not 401
        if claims.role not in allowed:
            raise AuthorizationError()
        return claims

    return check_role
