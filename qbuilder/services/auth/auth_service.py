from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from qbuilder.models.users.user_models import User, RefreshToken
from qbuilder.models.catalog.profession_models import Profession
from qbuilder.models.enums.auth_provider import AuthProvider
from qbuilder.schemas.auth.auth_schemas import (
    RegisterRequest,
    ProfileUpdate,
    ChangePasswordRequest,
    UserOut,
)
from qbuilder.core.security import (
    hash_password,
    verify_password,
    password_strength_errors,
    create_access_token,
    generate_refresh_token,
)
from qbuilder.core.config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    REFRESH_TOKEN_EXPIRE_DAYS,
    DEFAULT_VAT_RATE,
)
from qbuilder.core.exceptions import AppException
from qbuilder.constants.error_codes import ErrorCode
from qbuilder.utils.activity_helpers import emit_activity
from qbuilder.constants.activity_codes import ActivityCode
from qbuilder.utils.logger import get_logger

logger = get_logger("auth.service")


def _weak_password(password: str):
    errors = password_strength_errors(password)
    if errors:
        raise AppException(
            400,
            "Password does not meet the strength requirements",
            ErrorCode.WEAK_PASSWORD,
            details=errors,
        )


async def _check_profession_ids(db: AsyncSession, profession_ids: list[int]):
    if not profession_ids:
        return
    found = set(
        await db.scalars(select(Profession.id).where(Profession.id.in_(profession_ids)))
    )
    missing = sorted(set(profession_ids) - found)
    if missing:
        raise AppException(
            400,
            "Unknown profession ids",
            ErrorCode.PROFESSION_NOT_FOUND,
            details={"missing": missing},
        )


async def _issue_tokens(db: AsyncSession, user: User) -> dict:
    """Stage a fresh refresh token and mint an access token; caller commits."""
    access_token = create_access_token(
        subject=str(user.id),
        token_version=user.token_version,
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )

    refresh_value = generate_refresh_token()
    db.add(
        RefreshToken(
            user_id=user.id,
            token=refresh_value,
            expires_at=datetime.now(timezone.utc) + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
        )
    )

    return {
        "access_token": access_token,
        "refresh_token": refresh_value,
        "token_type": "bearer",
    }


async def _auth_result(db: AsyncSession, user: User, tokens: dict) -> dict:
    await db.commit()
    await db.refresh(user)
    return {
        "auth": tokens,
        "user": UserOut.model_validate(user),
    }


# =====================================================
# REGISTER
# =====================================================
async def register_user(db: AsyncSession, payload: RegisterRequest):
    email = payload.email.lower()
    logger.info("Registering user", extra={"email": email})

    _weak_password(payload.password)

    exists = await db.scalar(select(User.id).where(User.email == email))
    if exists:
        raise AppException(
            409,
            "A user with this email already exists",
            ErrorCode.USER_EXISTS,
        )

    await _check_profession_ids(db, payload.profession_ids)

    user = User(
        name=payload.name,
        email=email,
        password_hash=hash_password(payload.password),
        provider=AuthProvider.local,
        business_name=payload.business_name,
        phone=payload.phone,
        address=payload.address,
        profession_ids=list(payload.profession_ids),
        vat_rate=DEFAULT_VAT_RATE,
        last_login=datetime.now(timezone.utc),
    )
    db.add(user)
    await db.flush()

    tokens = await _issue_tokens(db, user)

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.REGISTER,
    )

    result = await _auth_result(db, user, tokens)
    logger.info("User registered", extra={"user_id": user.id})
    return result


# =====================================================
# LOGIN
# =====================================================
async def login_user(db: AsyncSession, email: str, password: str):
    email = email.lower()
    logger.info("Authenticating user", extra={"email": email})

    user = await db.scalar(select(User).where(User.email == email))

    if user and not user.password_hash:
        logger.warning("Password login on OAuth account", extra={"email": email})
        raise AppException(
            401,
            f"This account signs in with {user.provider.value}",
            ErrorCode.OAUTH_REQUIRED,
            details={"provider": user.provider.value},
        )

    if not user or not verify_password(password, user.password_hash):
        logger.warning("Invalid credentials", extra={"email": email})
        raise AppException(
            401,
            "Invalid credentials",
            ErrorCode.INVALID_CREDENTIALS,
        )

    if not user.is_active:
        logger.warning("Inactive user login blocked", extra={"email": email})
        raise AppException(
            403,
            "User account is inactive",
            ErrorCode.PERMISSION_DENIED,
        )

    user.last_login = datetime.now(timezone.utc)
    tokens = await _issue_tokens(db, user)

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.LOGIN,
    )

    result = await _auth_result(db, user, tokens)
    logger.info("Login successful", extra={"user_id": user.id})
    return result


# =====================================================
# OAUTH USERS
# =====================================================
async def login_oauth_user(db: AsyncSession, identity) -> dict:
    """
    Sign in the account matching ``identity.email``, creating it on first use.

    An existing account is linked to the provider that just vouched for it.
    """
    email = identity.email.lower()
    user = await db.scalar(select(User).where(User.email == email))

    if user is None:
        user = User(
            name=identity.name or email.split("@")[0],
            email=email,
            password_hash=None,
            provider=AuthProvider(identity.provider),
            provider_id=identity.subject,
            email_verified=identity.email_verified,
            business_name=identity.name or email.split("@")[0],
            phone="",
            address="",
            profession_ids=[],
            vat_rate=DEFAULT_VAT_RATE,
        )
        db.add(user)
        await db.flush()
        logger.info("OAuth user created", extra={"user_id": user.id, "provider": identity.provider})

        await emit_activity(
            db=db,
            user_id=user.id,
            email=user.email,
            code=ActivityCode.REGISTER,
        )
    else:
        if not user.is_active:
            logger.warning("Inactive user OAuth login blocked", extra={"user_id": user.id})
            raise AppException(
                403,
                "User account is inactive",
                ErrorCode.PERMISSION_DENIED,
            )
        user.provider = AuthProvider(identity.provider)
        user.provider_id = identity.subject
        user.email_verified = user.email_verified or identity.email_verified

    user.last_login = datetime.now(timezone.utc)
    tokens = await _issue_tokens(db, user)

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.OAUTH_LOGIN,
        provider=identity.provider,
    )

    return await _auth_result(db, user, tokens)


# =====================================================
# REFRESH
# =====================================================
async def refresh_tokens(db: AsyncSession, refresh_token_value: str):
    logger.info("Refreshing token")

    token = await db.scalar(
        select(RefreshToken).where(
            RefreshToken.token == refresh_token_value,
            RefreshToken.revoked.is_(False),
            RefreshToken.expires_at > datetime.now(timezone.utc),
        )
    )

    if not token:
        logger.warning("Invalid refresh token")
        raise AppException(
            401,
            "Invalid or expired refresh token",
            ErrorCode.UNAUTHORIZED,
        )

    user = await db.get(User, token.user_id)
    if not user or not user.is_active:
        logger.warning("Refresh blocked for inactive user", extra={"user_id": token.user_id})
        raise AppException(
            401,
            "User invalid or inactive",
            ErrorCode.UNAUTHORIZED,
        )

    token.revoked = True
    tokens = await _issue_tokens(db, user)

    await db.commit()

    logger.info("Token refreshed", extra={"user_id": user.id})
    return tokens


# =====================================================
# LOGOUT
# =====================================================
async def logout_user(db: AsyncSession, user: User):
    logger.info("Logging out user", extra={"user_id": user.id})

    user.token_version += 1

    await db.execute(
        update(RefreshToken)
        .where(RefreshToken.user_id == user.id)
        .values(revoked=True)
    )

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.LOGOUT,
    )

    await db.commit()

    logger.info("Logout successful", extra={"user_id": user.id})


# =====================================================
# PROFILE
# =====================================================
async def get_profile(db: AsyncSession, user: User):
    await db.refresh(user)
    return UserOut.model_validate(user)


async def update_profile(db: AsyncSession, user: User, payload: ProfileUpdate):
    data = payload.model_dump(exclude_unset=True)

    if "profession_ids" in data and data["profession_ids"] is not None:
        await _check_profession_ids(db, data["profession_ids"])

    changes: list[str] = []
    for field, value in data.items():
        if value is None:
            continue
        if getattr(user, field) != value:
            setattr(user, field, value)
            changes.append(field)

    if not changes:
        raise AppException(
            400,
            "No changes detected",
            ErrorCode.VALIDATION_ERROR,
        )

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.UPDATE_PROFILE,
        changes=", ".join(changes),
    )

    await db.commit()
    await db.refresh(user)

    logger.info("Profile updated", extra={"user_id": user.id, "fields": changes})
    return UserOut.model_validate(user)


async def change_password(db: AsyncSession, user: User, payload: ChangePasswordRequest):
    if not user.password_hash:
        raise AppException(
            400,
            "Accounts signed in through an OAuth provider have no password",
            ErrorCode.OAUTH_ACCOUNT,
        )

    if not verify_password(payload.current_password, user.password_hash):
        logger.warning("Wrong current password", extra={"user_id": user.id})
        raise AppException(
            401,
            "Current password is incorrect",
            ErrorCode.INVALID_PASSWORD,
        )

    _weak_password(payload.new_password)

    user.password_hash = hash_password(payload.new_password)

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.CHANGE_PASSWORD,
    )

    await db.commit()
    logger.info("Password changed", extra={"user_id": user.id})
