from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qbuilder.core.db import get_db
from qbuilder.schemas.projects.project_schemas import (
    ProjectCreate,
    ProjectFromQuote,
    ProjectUpdate,
    ProjectStatusUpdate,
    ProjectOut,
    ProjectFilters,
    ProjectListData,
)
from qbuilder.services.projects.project_service import (
    create_project,
    create_project_from_quote,
    get_project,
    list_projects,
    list_outstanding_projects,
    update_project,
    change_project_status,
    delete_project,
)
from qbuilder.utils.get_user import get_current_user
from qbuilder.utils.response import APIResponse, success_response
from qbuilder.utils.logger import get_logger

router = APIRouter(prefix="/projects", tags=["Projects"])
logger = get_logger(__name__)


@router.get("/", response_model=APIResponse[ProjectListData])
async def list_projects_api(
    filters: ProjectFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("List projects", extra={"search": filters.search, "page": filters.page})
    data = await list_projects(db, user, filters)
    return success_response("Projects fetched successfully", data)


@router.get("/outstanding-balance", response_model=APIResponse[List[ProjectOut]])
async def list_outstanding_projects_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    data = await list_outstanding_projects(db, user)
    return success_response("Outstanding projects fetched successfully", data)


@router.post("/", status_code=201, response_model=APIResponse[ProjectOut])
async def create_project_api(
    payload: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Create project", extra={"client_id": payload.client_id, "origin_quote_id": payload.origin_quote_id})
    project = await create_project(db, payload, user)
    return success_response("Project created successfully", project)


@router.post("/from-quote/{quote_id}", status_code=201, response_model=APIResponse[ProjectOut])
async def create_project_from_quote_api(
    quote_id: int,
    payload: Optional[ProjectFromQuote] = None,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Create project from quote", extra={"quote_id": quote_id})
    project = await create_project_from_quote(db, quote_id, payload or ProjectFromQuote(), user)
    return success_response("Project created successfully", project)


@router.get("/{project_id}", response_model=APIResponse[ProjectOut])
async def get_project_api(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    project = await get_project(db, project_id, user)
    return success_response("Project fetched successfully", project)


@router.put("/{project_id}", response_model=APIResponse[ProjectOut])
async def update_project_api(
    project_id: int,
    payload: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Update project", extra={"project_id": project_id})
    project = await update_project(db, project_id, payload, user)
    return success_response("Project updated successfully", project)


@router.patch("/{project_id}/status", response_model=APIResponse[ProjectOut])
async def change_project_status_api(
    project_id: int,
    payload: ProjectStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Change project status", extra={"project_id": project_id, "to_status": payload.status.value})
    project = await change_project_status(db, project_id, payload.status, user, payload.version)
    return success_response("Project status updated successfully", project)


@router.delete("/{project_id}", response_model=APIResponse[None])
async def delete_project_api(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Delete project", extra={"project_id": project_id})
    await delete_project(db, project_id, user)
    return success_response("Project deleted successfully")
