from fastapi import APIRouter, Depends, status
from mycoris_api.api.dependencies import get_auth_service, get_current_claims, require_roles
from mycoris_api.core.roles import Role
from mycoris_api.core.security import TokenClaims
from mycoris_api.schemas.auth import LoginRequest, RegistrationData, UserProfile, UserPublic
from mycoris_api.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    user_data: RegistrationData,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Register a new client"""
    user = auth_service.register_client(user_data)
    return {"success": True, "user": UserPublic.model_validate(user)}


@router.post("/register-commercial", status_code=status.HTTP_201_CREATED)
def register_commercial(
    user_data: RegistrationData,
    _admin: TokenClaims = Depends(require_roles(Role.ADMIN)),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Create a commercial account (admins only)"""
    user = auth_service.register_commercial(user_data)
    return {"success": True, "user": UserPublic.model_validate(user)}


@router.post("/login")
def login(
    credentials: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Login and get a session token"""
    result = auth_service.login(credentials.email, credentials.password)
    return {
        "success": True,
        "token": result.token,
        "user": UserPublic.model_validate(result.user),
    }


@router.get("/profile")
def get_profile(
    claims: TokenClaims = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Get the profile of the authenticated user"""
    user = auth_service.get_profile(claims.id)
    return {"success": True, "user": UserProfile.model_validate(user)}
