"""Project endpoints - owner-scoped aggregate CRUD and dashboard reads.

Domain errors (validation, not found, partial sync) are turned into
responses by the handlers in core.exceptions.
"""

from fastapi import APIRouter, HTTPException, status

from src.dashboard.api.dependencies import CurrentOwner, ProjectRepo
from src.dashboard.schemas.project import (
    FinancialReportRow,
    FinancialSummary,
    ProjectAggregate,
    ProjectDraft,
    ProjectPatch,
    ProjectStats,
    StatusCountPoint,
    StatusHistoryEntry,
)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get(
    "",
    response_model=list[ProjectAggregate],
    summary="List projects",
    description="List the caller's projects, newest first. Empty without an identity.",
)
async def list_projects(repo: ProjectRepo, owner_id: CurrentOwner) -> list[ProjectAggregate]:
    return await repo.list(owner_id)


@router.post(
    "/refetch",
    response_model=list[ProjectAggregate],
    summary="Refetch projects",
    description="Invalidate every cached view for the caller and re-read the projects.",
)
async def refetch_projects(repo: ProjectRepo, owner_id: CurrentOwner) -> list[ProjectAggregate]:
    return await repo.refetch(owner_id)


@router.get(
    "/reports/financial",
    response_model=list[FinancialReportRow],
    summary="Financial reports",
    description="Per-project financial projection, served from the report cache.",
)
async def list_financial_reports(
    repo: ProjectRepo, owner_id: CurrentOwner
) -> list[FinancialReportRow]:
    return await repo.financial_reports(owner_id)


@router.get("/reports/summary", response_model=FinancialSummary, summary="Financial summary")
async def get_financial_summary(repo: ProjectRepo, owner_id: CurrentOwner) -> FinancialSummary:
    return await repo.summary(owner_id)


@router.get("/stats", response_model=ProjectStats, summary="Project counts per status")
async def get_project_stats(repo: ProjectRepo, owner_id: CurrentOwner) -> ProjectStats:
    return await repo.stats(owner_id)


@router.get(
    "/timeline",
    response_model=list[StatusCountPoint],
    summary="Status timeline",
    description="Counts of projects per status after each recorded status change.",
)
async def get_status_timeline(
    repo: ProjectRepo, owner_id: CurrentOwner
) -> list[StatusCountPoint]:
    return await repo.timeline(owner_id)


@router.get(
    "/{project_id}",
    response_model=ProjectAggregate,
    summary="Get project",
    responses={404: {"description": "Project not found"}},
)
async def get_project(
    project_id: int, repo: ProjectRepo, owner_id: CurrentOwner
) -> ProjectAggregate:
    project = await repo.get(owner_id, project_id)
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Project {project_id} not found",
        )
    return project


@router.get(
    "/{project_id}/history",
    response_model=list[StatusHistoryEntry],
    summary="Status history",
)
async def get_project_history(
    project_id: int, repo: ProjectRepo, owner_id: CurrentOwner
) -> list[StatusHistoryEntry]:
    return await repo.status_history(owner_id, project_id)


@router.post(
    "",
    response_model=ProjectAggregate,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
    responses={
        201: {"description": "Project created"},
        401: {"description": "No owner identity"},
        502: {"description": "Project partially created; do not retry blindly"},
    },
)
async def create_project(
    request: ProjectDraft, repo: ProjectRepo, owner_id: CurrentOwner
) -> ProjectAggregate:
    return await repo.create(owner_id, request)


@router.patch(
    "/{project_id}",
    response_model=ProjectAggregate,
    summary="Update project",
    responses={
        404: {"description": "Project not found"},
        502: {"description": "Update partially applied; safe to retry"},
    },
)
async def update_project(
    project_id: int, request: ProjectPatch, repo: ProjectRepo, owner_id: CurrentOwner
) -> ProjectAggregate:
    await repo.update(owner_id, project_id, request)
    project = await repo.get(owner_id, project_id)
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Project {project_id} not found",
        )
    return project


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete project",
    responses={404: {"description": "Project not found"}},
)
async def delete_project(project_id: int, repo: ProjectRepo, owner_id: CurrentOwner) -> None:
    await repo.remove(owner_id, project_id)
