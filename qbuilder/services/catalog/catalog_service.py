# qbuilder/services/catalog/catalog_service.py

from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, asc, delete

from qbuilder.models.catalog.catalog_item_models import CatalogItem
from qbuilder.models.catalog.profession_models import Profession
from qbuilder.models.users.user_models import User
from qbuilder.schemas.catalog.catalog_schemas import (
    CatalogItemCreate,
    CatalogItemUpdate,
    CatalogItemOut,
)
from qbuilder.services.catalog.profession_service import get_profession_or_404
from qbuilder.services.catalog.csv_import import parse_catalog_csv, CatalogCSVError
from qbuilder.core.exceptions import AppException
from qbuilder.constants.error_codes import ErrorCode
from qbuilder.utils.activity_helpers import emit_activity
from qbuilder.constants.activity_codes import ActivityCode
from qbuilder.utils.decimal_utils import to_decimal
from qbuilder.utils.logger import get_logger

logger = get_logger(__name__)


def _map_item(item: CatalogItem) -> CatalogItemOut:
    return CatalogItemOut(
        id=item.id,
        profession_id=item.profession_id,
        profession_name=item.profession.name,
        profession_name_hebrew=item.profession.name_hebrew,
        name=item.name,
        unit=item.unit,
        default_price=item.default_price,
        description=item.description,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


async def _load_item(db: AsyncSession, item_id: int) -> Optional[CatalogItem]:
    return await db.scalar(
        select(CatalogItem)
        .where(CatalogItem.id == item_id)
        .execution_options(populate_existing=True)
    )


async def get_item_or_404(db: AsyncSession, item_id: int) -> CatalogItem:
    item = await db.get(CatalogItem, item_id)
    if not item:
        raise AppException(
            404,
            "Catalog item not found",
            ErrorCode.CATALOG_ITEM_NOT_FOUND,
        )
    return item


# =========================
# READ
# =========================
async def list_catalog_items(db: AsyncSession, profession_id: Optional[int] = None, search: Optional[str] = None):
    query = select(CatalogItem).order_by(asc(CatalogItem.name), asc(CatalogItem.id))
    if profession_id is not None:
        query = query.where(CatalogItem.profession_id == profession_id)
    if search:
        query = query.where(CatalogItem.name.ilike(f"%{search.strip()}%"))

    result = await db.scalars(query)
    return [_map_item(i) for i in result]


async def get_catalog_item(db: AsyncSession, item_id: int):
    return _map_item(await get_item_or_404(db, item_id))


async def catalog_statistics(db: AsyncSession):
    total_items = await db.scalar(select(func.count(CatalogItem.id))) or 0

    prices = list(
        await db.scalars(
            select(CatalogItem.default_price).where(CatalogItem.default_price.is_not(None))
        )
    )
    average = to_decimal(sum(prices, Decimal("0")) / len(prices)) if prices else None

    rows = (
        await db.execute(
            select(Profession, func.count(CatalogItem.id))
            .outerjoin(CatalogItem, CatalogItem.profession_id == Profession.id)
            .group_by(Profession.id)
            .order_by(asc(Profession.name))
        )
    ).all()

    return {
        "total_items": total_items,
        "average_default_price": average,
        "by_profession": [
            {
                "profession_id": p.id,
                "profession_name": p.name,
                "profession_name_hebrew": p.name_hebrew,
                "count": count,
            }
            for p, count in rows
        ],
    }


# =========================
# WRITE (ADMIN)
# =========================
async def create_catalog_item(db: AsyncSession, payload: CatalogItemCreate, user: User):
    await get_profession_or_404(db, payload.profession_id)

    item = CatalogItem(**payload.model_dump())
    db.add(item)
    await db.flush()

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.CREATE_CATALOG_ITEM,
        target_name=item.name,
    )

    await db.commit()
    item = await _load_item(db, item.id)

    logger.info("Catalog item created", extra={"item_id": item.id, "profession_id": item.profession_id})
    return _map_item(item)


async def update_catalog_item(db: AsyncSession, item_id: int, payload: CatalogItemUpdate, user: User):
    item = await get_item_or_404(db, item_id)
    data = payload.model_dump(exclude_unset=True)

    # only default_price and description may be cleared
    data = {
        k: v for k, v in data.items()
        if v is not None or k in {"default_price", "description"}
    }
    if not data:
        raise AppException(
            400,
            "No changes detected",
            ErrorCode.VALIDATION_ERROR,
        )

    if "profession_id" in data:
        await get_profession_or_404(db, data["profession_id"])

    for field, value in data.items():
        setattr(item, field, value)

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.UPDATE_CATALOG_ITEM,
        target_name=item.name,
    )

    await db.commit()
    item = await _load_item(db, item_id)
    return _map_item(item)


async def delete_catalog_item(db: AsyncSession, item_id: int, user: User):
    item = await get_item_or_404(db, item_id)

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.DELETE_CATALOG_ITEM,
        target_name=item.name,
    )

    await db.delete(item)
    await db.commit()

    logger.info("Catalog item deleted", extra={"item_id": item_id})


async def clear_profession_items(db: AsyncSession, profession_id: int, user: User):
    profession = await get_profession_or_404(db, profession_id)

    result = await db.execute(
        delete(CatalogItem).where(CatalogItem.profession_id == profession.id)
    )
    deleted = result.rowcount or 0

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.CLEAR_CATALOG,
        target_name=profession.name,
        count=deleted,
    )

    await db.commit()

    logger.info("Catalog cleared", extra={"profession_id": profession_id, "deleted": deleted})
    return {"profession_id": profession.id, "deleted": deleted}


async def import_catalog_csv(db: AsyncSession, profession_id: int, content: bytes, user: User):
    profession = await get_profession_or_404(db, profession_id)

    try:
        parsed = parse_catalog_csv(content)
    except CatalogCSVError as e:
        raise AppException(
            400,
            str(e),
            ErrorCode.CATALOG_IMPORT_FAILED,
        )

    existing = {
        name.casefold()
        for name in await db.scalars(
            select(CatalogItem.name).where(CatalogItem.profession_id == profession.id)
        )
    }

    skipped = list(parsed.skipped)
    new_items: list[CatalogItem] = []

    for row in parsed.rows:
        if row.name.casefold() in existing:
            skipped.append({"row": row.row, "reason": f"Item already exists: {row.name}"})
            continue
        item = CatalogItem(
            profession_id=profession.id,
            name=row.name,
            unit=row.unit,
            default_price=row.default_price,
            description=row.description,
        )
        db.add(item)
        new_items.append(item)

    await db.flush()

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.IMPORT_CATALOG,
        target_name=profession.name,
        count=len(new_items),
    )

    await db.commit()

    created = []
    for item in new_items:
        created.append(_map_item(await _load_item(db, item.id)))

    skipped.sort(key=lambda s: s["row"])

    logger.info(
        "Catalog imported",
        extra={"profession_id": profession.id, "created_count": len(created), "skipped_count": len(skipped)},
    )
    return {"profession_id": profession.id, "created": created, "skipped": skipped}
