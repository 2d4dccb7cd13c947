from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from qbuilder.core.db import get_db
from qbuilder.core.rate_limit import auth_rate_limit
from qbuilder.schemas.auth.auth_schemas import (
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    ProfileUpdate,
    ChangePasswordRequest,
    AuthResult,
    TokenPair,
    UserOut,
    OAuthUrlOut,
    OAuthCallbackRequest,
)
from qbuilder.services.auth.auth_service import (
    register_user,
    login_user,
    login_oauth_user,
    refresh_tokens,
    logout_user,
    get_profile,
    update_profile,
    change_password,
)
from qbuilder.services.auth.oauth_service import oauth_service
from qbuilder.utils.get_user import get_current_user
from qbuilder.utils.response import APIResponse, success_response
from qbuilder.utils.logger import get_logger

logger = get_logger("auth.router")

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=APIResponse[AuthResult],
    dependencies=[Depends(auth_rate_limit)],
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Register attempt", extra={"email": payload.email})
    result = await register_user(db, payload)
    return success_response("Registration successful", result)


@router.post(
    "/login",
    response_model=APIResponse[AuthResult],
    dependencies=[Depends(auth_rate_limit)],
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Login attempt", extra={"email": payload.email})
    result = await login_user(db, payload.email, payload.password)
    return success_response("Login successful", result)


@router.post("/refresh", response_model=APIResponse[TokenPair])
async def refresh(
    payload: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    logger.info("Token refresh attempt")
    tokens = await refresh_tokens(db, payload.refresh_token)
    return success_response("Token refreshed", tokens)


@router.post("/logout", response_model=APIResponse[None])
async def logout(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    logger.info(
        "Logout request",
        extra={"user_id": current_user.id, "email": current_user.email},
    )
    await logout_user(db, current_user)
    return success_response("Logged out successfully")


# =====================================================
# PROFILE
# =====================================================
@router.get("/me", response_model=APIResponse[UserOut])
async def me(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    user = await get_profile(db, current_user)
    return success_response("Profile fetched successfully", user)


@router.put("/profile", response_model=APIResponse[UserOut])
async def update_profile_api(
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    logger.info("Update profile", extra={"user_id": current_user.id})
    user = await update_profile(db, current_user, payload)
    return success_response("Profile updated successfully", user)


@router.post("/change-password", response_model=APIResponse[None])
async def change_password_api(
    payload: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    logger.info("Change password", extra={"user_id": current_user.id})
    await change_password(db, current_user, payload)
    return success_response("Password changed successfully")


# =====================================================
# OAUTH
# =====================================================
@router.get("/oauth/{provider}/url", response_model=APIResponse[OAuthUrlOut])
async def oauth_url(
    provider: str,
    redirect_uri: str = Query(..., min_length=1),
):
    logger.info("OAuth URL requested", extra={"provider": provider})
    data = oauth_service.get_authorization_url(provider, redirect_uri)
    return success_response("Authorization URL created", data)


@router.post(
    "/oauth/{provider}/callback",
    response_model=APIResponse[AuthResult],
    dependencies=[Depends(auth_rate_limit)],
)
async def oauth_callback(
    provider: str,
    payload: OAuthCallbackRequest,
    db: AsyncSession = Depends(get_db),
):
    logger.info("OAuth callback", extra={"provider": provider})
    identity = await oauth_service.resolve_identity(
        provider, payload.code, payload.state, payload.redirect_uri
    )
    result = await login_oauth_user(db, identity)
    return success_response("Login successful", result)
