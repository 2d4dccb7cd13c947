# qbuilder/services/support/activity_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc, asc

from qbuilder.models.support.activity_models import UserActivity
from qbuilder.models.users.user_models import User
from qbuilder.schemas.support.activity_schemas import (
    UserActivityOut,
    UserActivityFilters,
)
from qbuilder.utils.response import page_data
from qbuilder.utils.logger import get_logger

logger = get_logger(__name__)


async def list_user_activities(
    *,
    db: AsyncSession,
    user: User,
    filters: UserActivityFilters,
):
    # -------------------------
    # Own entries only
    # -------------------------
    conditions = [UserActivity.user_id == user.id]

    if filters.search:
        conditions.append(UserActivity.message.ilike(f"%{filters.search}%"))

    # -------------------------
    # Sorting
    # -------------------------
    order_fn = desc if filters.sort_order == "desc" else asc

    query = (
        select(UserActivity)
        .where(*conditions)
        .order_by(order_fn(UserActivity.created_at), order_fn(UserActivity.id))
        .limit(filters.page_size)
        .offset((filters.page - 1) * filters.page_size)
    )

    # -------------------------
    # Execute
    # -------------------------
    total = await db.scalar(select(func.count(UserActivity.id)).where(*conditions))
    activities = (await db.scalars(query)).all()

    logger.info(
        "User activities fetched",
        extra={
            "user_id": user.id,
            "total": total,
            "page": filters.page,
        },
    )

    return page_data(
        [UserActivityOut.model_validate(a) for a in activities],
        total or 0,
        filters.page,
        filters.page_size,
    )
