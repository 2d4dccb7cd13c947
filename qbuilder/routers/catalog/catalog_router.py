# qbuilder/routers/catalog/catalog_router.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession

from qbuilder.core.db import get_db
from qbuilder.schemas.catalog.catalog_schemas import (
    CatalogItemCreate,
    CatalogItemUpdate,
    CatalogItemOut,
    CatalogStatistics,
    ClearResult,
    ImportResult,
)
from qbuilder.services.catalog.catalog_service import (
    list_catalog_items,
    get_catalog_item,
    catalog_statistics,
    create_catalog_item,
    update_catalog_item,
    delete_catalog_item,
    clear_profession_items,
    import_catalog_csv,
)
from qbuilder.utils.get_user import get_current_user, require_role
from qbuilder.utils.response import APIResponse, success_response
from qbuilder.utils.logger import get_logger

router = APIRouter(prefix="/catalog", tags=["Catalog"])
logger = get_logger(__name__)


@router.get("/", response_model=APIResponse[List[CatalogItemOut]])
async def list_catalog_items_api(
    profession_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    data = await list_catalog_items(db, profession_id, search)
    return success_response("Catalog items fetched successfully", data)


@router.get("/statistics", response_model=APIResponse[CatalogStatistics])
async def catalog_statistics_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    data = await catalog_statistics(db)
    return success_response("Catalog statistics fetched successfully", data)


@router.post(
    "/professions/{profession_id}/import",
    response_model=APIResponse[ImportResult],
)
async def import_catalog_api(
    profession_id: int,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    logger.info(
        "Import catalog CSV",
        extra={"profession_id": profession_id, "upload_name": file.filename},
    )
    content = await file.read()
    data = await import_catalog_csv(db, profession_id, content, admin)
    return success_response("Catalog imported successfully", data)


@router.delete(
    "/professions/{profession_id}/items",
    response_model=APIResponse[ClearResult],
)
async def clear_catalog_api(
    profession_id: int,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    logger.info("Clear catalog", extra={"profession_id": profession_id})
    data = await clear_profession_items(db, profession_id, admin)
    return success_response("Catalog items removed successfully", data)


@router.get("/{item_id}", response_model=APIResponse[CatalogItemOut])
async def get_catalog_item_api(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    data = await get_catalog_item(db, item_id)
    return success_response("Catalog item fetched successfully", data)


@router.post("/", status_code=201, response_model=APIResponse[CatalogItemOut])
async def create_catalog_item_api(
    payload: CatalogItemCreate,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    logger.info("Create catalog item", extra={"profession_id": payload.profession_id})
    data = await create_catalog_item(db, payload, admin)
    return success_response("Catalog item created successfully", data)


@router.put("/{item_id}", response_model=APIResponse[CatalogItemOut])
async def update_catalog_item_api(
    item_id: int,
    payload: CatalogItemUpdate,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    logger.info("Update catalog item", extra={"item_id": item_id})
    data = await update_catalog_item(db, item_id, payload, admin)
    return success_response("Catalog item updated successfully", data)


@router.delete("/{item_id}", response_model=APIResponse[None])
async def delete_catalog_item_api(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    logger.info("Delete catalog item", extra={"item_id": item_id})
    await delete_catalog_item(db, item_id, admin)
    return success_response("Catalog item deleted successfully")
