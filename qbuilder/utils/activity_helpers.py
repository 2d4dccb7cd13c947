from sqlalchemy.ext.asyncio import AsyncSession
from qbuilder.models.support.activity_models import UserActivity
from qbuilder.constants.activity_templates import ACTIVITY_TEMPLATES
from qbuilder.constants.activity_codes import ActivityCode


async def emit_activity(
    db: AsyncSession,
    *,
    user_id: int | None,
    email: str,
    code: ActivityCode,
    **context,
):
    """Stage an audit entry; it is persisted by the caller's commit."""
    template = ACTIVITY_TEMPLATES.get(code)
    if not template:
        raise ValueError(f"No activity template for code {code}")

    try:
        message = template.format(actor_email=email, **context)
    except KeyError as e:
        raise ValueError(
            f"Missing activity context key: {e.args[0]} for {code}"
        )

    db.add(
        UserActivity(
            user_id=user_id,
            email_snapshot=email,
            message=message,
        )
    )
