# qbuilder/services/catalog/profession_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, asc

from qbuilder.models.catalog.profession_models import Profession
from qbuilder.models.catalog.catalog_item_models import CatalogItem
from qbuilder.models.users.user_models import User
from qbuilder.schemas.catalog.catalog_schemas import (
    ProfessionCreate,
    ProfessionUpdate,
    ProfessionOut,
    ProfessionWithCount,
)
from qbuilder.constants.professions import DEFAULT_PROFESSIONS
from qbuilder.core.exceptions import AppException
from qbuilder.constants.error_codes import ErrorCode
from qbuilder.utils.activity_helpers import emit_activity
from qbuilder.constants.activity_codes import ActivityCode
from qbuilder.utils.logger import get_logger

logger = get_logger(__name__)


async def get_profession_or_404(db: AsyncSession, profession_id: int) -> Profession:
    profession = await db.get(Profession, profession_id)
    if not profession:
        raise AppException(
            404,
            "Profession not found",
            ErrorCode.PROFESSION_NOT_FOUND,
        )
    return profession


async def _name_taken(db: AsyncSession, name: str, exclude_id: int | None = None) -> bool:
    query = select(Profession.id).where(func.lower(Profession.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Profession.id != exclude_id)
    return (await db.scalar(query)) is not None


async def list_professions(db: AsyncSession):
    result = await db.scalars(select(Profession).order_by(asc(Profession.name)))
    return [ProfessionOut.model_validate(p) for p in result]


async def list_professions_with_counts(db: AsyncSession):
    rows = (
        await db.execute(
            select(Profession, func.count(CatalogItem.id))
            .outerjoin(CatalogItem, CatalogItem.profession_id == Profession.id)
            .group_by(Profession.id)
            .order_by(asc(Profession.name))
        )
    ).all()

    return [
        ProfessionWithCount(
            **ProfessionOut.model_validate(p).model_dump(),
            catalog_items_count=count,
        )
        for p, count in rows
    ]


async def get_profession(db: AsyncSession, profession_id: int):
    return ProfessionOut.model_validate(await get_profession_or_404(db, profession_id))


async def create_profession(db: AsyncSession, payload: ProfessionCreate, user: User):
    if await _name_taken(db, payload.name):
        raise AppException(
            409,
            "Profession already exists",
            ErrorCode.PROFESSION_EXISTS,
        )

    profession = Profession(name=payload.name, name_hebrew=payload.name_hebrew)
    db.add(profession)
    await db.flush()

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.CREATE_PROFESSION,
        target_name=profession.name,
    )

    await db.commit()
    await db.refresh(profession)

    logger.info("Profession created", extra={"profession_id": profession.id})
    return ProfessionOut.model_validate(profession)


async def update_profession(db: AsyncSession, profession_id: int, payload: ProfessionUpdate, user: User):
    profession = await get_profession_or_404(db, profession_id)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)

    if not data:
        raise AppException(
            400,
            "No changes detected",
            ErrorCode.VALIDATION_ERROR,
        )

    if "name" in data and await _name_taken(db, data["name"], exclude_id=profession.id):
        raise AppException(
            409,
            "Profession already exists",
            ErrorCode.PROFESSION_EXISTS,
        )

    for field, value in data.items():
        setattr(profession, field, value)

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.UPDATE_PROFESSION,
        target_name=profession.name,
    )

    await db.commit()
    await db.refresh(profession)
    return ProfessionOut.model_validate(profession)


async def delete_profession(db: AsyncSession, profession_id: int, user: User):
    profession = await get_profession_or_404(db, profession_id)

    items = await db.scalar(
        select(func.count(CatalogItem.id)).where(CatalogItem.profession_id == profession.id)
    )
    if items:
        raise AppException(
            409,
            "Profession has catalog items and cannot be deleted",
            ErrorCode.PROFESSION_HAS_ITEMS,
            details={"catalog_items_count": items},
        )

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.DELETE_PROFESSION,
        target_name=profession.name,
    )

    await db.delete(profession)
    await db.commit()

    logger.info("Profession deleted", extra={"profession_id": profession_id})


async def seed_professions(db: AsyncSession) -> dict:
    """Insert the default professions that are missing. Safe to re-run."""
    existing = {
        name.lower() for name in await db.scalars(select(Profession.name))
    }

    created = 0
    for name, name_hebrew in DEFAULT_PROFESSIONS:
        if name.lower() in existing:
            continue
        db.add(Profession(name=name, name_hebrew=name_hebrew))
        created += 1

    await db.commit()

    logger.info("Professions seeded", extra={"created_count": created})
    return {"created": created, "existing": len(DEFAULT_PROFESSIONS) - created}
