from fastapi import Depends, HTTPException, Header, status, Request
from sqlalchemy.ext.asyncio import AsyncSession

from qbuilder.core.db import get_db
from qbuilder.core.security import decode_access_token
from qbuilder.models.users.user_models import User
from qbuilder.utils.logger import get_logger

logger = get_logger("auth.guard")


async def get_current_user(
    request: Request,
    authorization: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not authorization or not authorization.startswith("Bearer "):
        logger.warning("Missing bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header",
        )

    token = authorization.split("Bearer ", 1)[1].strip()
    payload = decode_access_token(token)

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token subject")

    token_version = payload.get("token_version")

    user = await db.get(User, user_id)

    if not user:
        logger.warning("Token user not found", extra={"user_id": user_id})
        raise HTTPException(status_code=401, detail="User not found")

    if not user.is_active:
        logger.warning("Inactive user access blocked", extra={"user_id": user.id})
        raise HTTPException(status_code=403, detail="User account is inactive")

    if user.token_version != token_version:
        logger.warning("Token version mismatch", extra={"user_id": user.id})
        raise HTTPException(status_code=401, detail="Session expired")

    request.state.user = user
    return user


def require_role(roles: list[str]):
    """Dependency factory: the caller's role must be one of ``roles``."""
    allowed = {r.lower() for r in roles}

    async def role_checker(user: User = Depends(get_current_user)) -> User:
        if user.role.lower() not in allowed:
            logger.warning(
                "Role check failed",
                extra={"user_id": user.id, "role": user.role, "allowed": sorted(allowed)},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permission denied",
            )
        return user

    return role_checker
