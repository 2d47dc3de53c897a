"""Projects of the session company: paginated listing, details, create, delete."""

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse

from projecthub.api.deps import CompanyUser, CurrentUser, DbSession
from projecthub.models.enums import ProjectStatus
from projecthub.models.project import Project
from projecthub.schemas.envelope import ResponseError, build_envelope, envelope_response
from projecthub.schemas.project import ProjectCreate, ProjectDetailsOut, ProjectOut
from projecthub.services import scoping
from projecthub.services.listing import ListingSpec, SqlAlchemyListingStore, list_page, listing_error
from projecthub.services.pagination import coerce_int

router = APIRouter(prefix="/projects", tags=["projects"])

PROJECTS_LISTING = ListingSpec(
    entity="projects",
    schema=ProjectOut,
    sortable={"name": "name", "startDate": "start_date", "endDate": "end_date", "status": "status"},
    default_sort="startDate",
    default_limit=4,
)


@router.get("/company", summary="List projects of the session company (paginated)")
async def list_company_projects(
    session: DbSession,
    user: CurrentUser,
    page: str | None = None,
    limit: str | None = None,
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_dir: str | None = Query(None, alias="sortDir"),
    status: str | None = None,
) -> JSONResponse:
    status_filter = None
    if status:
        try:
            status_filter = ProjectStatus(status)
        except ValueError:
            return envelope_response(
                listing_error(
                    PROJECTS_LISTING,
                    page,
                    ResponseError.VALIDATION_ERROR,
                    f"Unknown project status '{status}'",
                )
            )
    envelope = await list_page(
        SqlAlchemyListingStore(session, Project),
        PROJECTS_LISTING,
        scope={"company_id": user.company_id},
        filters={"status": status_filter},
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return envelope_response(envelope)


@router.get("/details", summary="Project details")
async def get_project_details(
    session: DbSession,
    user: CompanyUser,
    project_id: str | None = Query(None, alias="projectId"),
) -> JSONResponse:
    pid = coerce_int(project_id)
    if pid is None:
        raise HTTPException(status_code=404, detail="Please provide a project ID.")
    project = await scoping.get_company_project(session, user.company_id, pid)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found.")
    return envelope_response(
        build_envelope(ProjectDetailsOut.model_validate(project).model_dump(mode="json", by_alias=True))
    )


@router.post("", summary="Create a project in the session company")
async def create_project(session: DbSession, user: CompanyUser, body: ProjectCreate) -> JSONResponse:
    if not body.manager_id:
        raise HTTPException(status_code=400, detail="Please provide a manager ID.")
    if await scoping.get_company_user(session, user.company_id, body.manager_id) is None:
        raise HTTPException(status_code=400, detail="Manager must belong to the company.")
    if body.start_date and body.end_date and body.end_date < body.start_date:
        raise HTTPException(status_code=400, detail="endDate must not be before startDate.")
    project = Project(**body.model_dump(), company_id=user.company_id)
    session.add(project)
    await session.flush()
    await session.refresh(project)
    return envelope_response(
        build_envelope(ProjectOut.model_validate(project).model_dump(mode="json", by_alias=True)),
        success_status=201,
    )


@router.delete("", summary="Delete a project of the session company")
async def delete_project(
    session: DbSession,
    user: CompanyUser,
    project_id: str | None = Query(None, alias="projectId"),
) -> JSONResponse:
    pid = coerce_int(project_id)
    if pid is None:
        raise HTTPException(status_code=400, detail="Please provide a project ID.")
    project = await scoping.get_company_project(session, user.company_id, pid)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found.")
    data = ProjectOut.model_validate(project).model_dump(mode="json", by_alias=True)
    await session.delete(project)
    await session.flush()
    return envelope_response(build_envelope(data))
