# qbuilder/routers/catalog/profession_router.py

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qbuilder.core.db import get_db
from qbuilder.schemas.catalog.catalog_schemas import (
    ProfessionCreate,
    ProfessionUpdate,
    ProfessionOut,
    ProfessionWithCount,
    SeedResult,
)
from qbuilder.services.catalog.profession_service import (
    list_professions,
    list_professions_with_counts,
    get_profession,
    create_profession,
    update_profession,
    delete_profession,
    seed_professions,
)
from qbuilder.utils.get_user import get_current_user, require_role
from qbuilder.utils.response import APIResponse, success_response
from qbuilder.utils.logger import get_logger

router = APIRouter(prefix="/professions", tags=["Professions"])
logger = get_logger(__name__)


@router.get("/", response_model=APIResponse[List[ProfessionOut]])
async def list_professions_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    data = await list_professions(db)
    return success_response("Professions fetched successfully", data)


@router.get("/counts", response_model=APIResponse[List[ProfessionWithCount]])
async def list_professions_with_counts_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    data = await list_professions_with_counts(db)
    return success_response("Professions fetched successfully", data)


@router.post("/seed", response_model=APIResponse[SeedResult])
async def seed_professions_api(
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    logger.info("Seed professions", extra={"user_id": admin.id})
    data = await seed_professions(db)
    return success_response("Professions seeded successfully", data)


@router.get("/{profession_id}", response_model=APIResponse[ProfessionOut])
async def get_profession_api(
    profession_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    data = await get_profession(db, profession_id)
    return success_response("Profession fetched successfully", data)


@router.post("/", status_code=201, response_model=APIResponse[ProfessionOut])
async def create_profession_api(
    payload: ProfessionCreate,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    logger.info("Create profession", extra={"profession_name": payload.name})
    data = await create_profession(db, payload, admin)
    return success_response("Profession created successfully", data)


@router.put("/{profession_id}", response_model=APIResponse[ProfessionOut])
async def update_profession_api(
    profession_id: int,
    payload: ProfessionUpdate,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    logger.info("Update profession", extra={"profession_id": profession_id})
    data = await update_profession(db, profession_id, payload, admin)
    return success_response("Profession updated successfully", data)


@router.delete("/{profession_id}", response_model=APIResponse[None])
async def delete_profession_api(
    profession_id: int,
    db: AsyncSession = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    logger.info("Delete profession", extra={"profession_id": profession_id})
    await delete_profession(db, profession_id, admin)
    return success_response("Profession deleted successfully")
