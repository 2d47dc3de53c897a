"""Tasks: per team and member paginated listing with optional status filter; assign, update, delete."""

import logging

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse

from projecthub.api.deps import CompanyUser, DbSession
from projecthub.models.enums import TaskStatus
from projecthub.models.task import Task
from projecthub.schemas.envelope import ResponseError, build_envelope, envelope_response
from projecthub.schemas.task import TaskCreate, TaskOut, TaskStatusUpdate, TaskUpdate
from projecthub.services import scoping
from projecthub.services.listing import ListingSpec, SqlAlchemyListingStore, list_page, listing_error
from projecthub.services.pagination import coerce_int

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/tasks", tags=["tasks"])

TASKS_LISTING = ListingSpec(
    entity="tasks",
    schema=TaskOut,
    sortable={
        "title": "title",
        "status": "status",
        "priority": "priority",
        "dueDate": "due_date",
        "createdAt": "created_at",
    },
    default_sort="createdAt",
    default_limit=5,
)


def _task_out(task: Task) -> dict:
    return TaskOut.model_validate(task).model_dump(mode="json", by_alias=True)


async def _load_task(session: DbSession, company_id: int, task_id: int) -> Task:
    task = await scoping.get_company_task(session, company_id, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.get("/team", summary="List a member's tasks in a team (paginated)")
async def list_team_tasks(
    session: DbSession,
    user: CompanyUser,
    team_id: str | None = Query(None, alias="teamId"),
    member_id: str | None = Query(None, alias="memberId"),
    status: str | None = None,
    page: str | None = None,
    limit: str | None = None,
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_dir: str | None = Query(None, alias="sortDir"),
) -> JSONResponse:
    status_filter = None
    if status:
        try:
            status_filter = TaskStatus(status)
        except ValueError:
            return envelope_response(
                listing_error(TASKS_LISTING, page, ResponseError.VALIDATION_ERROR, f"Unknown task status '{status}'")
            )
    tid = coerce_int(team_id)
    if tid is not None and await scoping.get_company_team(session, user.company_id, tid) is None:
        return envelope_response(listing_error(TASKS_LISTING, page, ResponseError.NOT_FOUND, "Team not found"))
    envelope = await list_page(
        SqlAlchemyListingStore(session, Task),
        TASKS_LISTING,
        scope={"team_id": tid, "assigned_to": coerce_int(member_id)},
        filters={"status": status_filter},
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return envelope_response(envelope)


@router.post("/assign-task", summary="Create a task assigned to a company user")
async def assign_task_to_user(session: DbSession, user: CompanyUser, body: TaskCreate) -> JSONResponse:
    if not body.team_id:
        raise HTTPException(status_code=400, detail="Please provide a team ID")
    if not body.assigned_to:
        raise HTTPException(status_code=400, detail="Please provide a user ID")
    if await scoping.get_company_team(session, user.company_id, body.team_id) is None:
        raise HTTPException(status_code=404, detail="Team not found")
    if await scoping.get_company_user(session, user.company_id, body.assigned_to) is None:
        raise HTTPException(status_code=400, detail="Assignee must belong to the company")
    task = Task(**body.model_dump())
    session.add(task)
    await session.flush()
    await session.refresh(task)
    logger.info("Task %s assigned to user %s in team %s", task.id, task.assigned_to, task.team_id)
    return envelope_response(build_envelope(_task_out(task)), success_status=201)


@router.put("/{task_id}", summary="Update task fields")
async def update_task(session: DbSession, user: CompanyUser, task_id: int, body: TaskUpdate) -> JSONResponse:
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="Please provide a task object to update")
    task = await _load_task(session, user.company_id, task_id)
    if changes.get("assigned_to") is not None:
        if await scoping.get_company_user(session, user.company_id, changes["assigned_to"]) is None:
            raise HTTPException(status_code=400, detail="Assignee must belong to the company")
    for key, value in changes.items():
        if value is None and key in ("title", "status", "priority", "assigned_to"):
            continue
        setattr(task, key, value)
    await session.flush()
    return envelope_response(build_envelope(_task_out(task)))


@router.patch("/update-status/{task_id}", summary="Update task status only")
async def update_task_status(
    session: DbSession, user: CompanyUser, task_id: int, body: TaskStatusUpdate
) -> JSONResponse:
    task = await _load_task(session, user.company_id, task_id)
    task.status = body.status
    await session.flush()
    return envelope_response(build_envelope({"id": task.id, "status": task.status.value}))


@router.delete("/{task_id}", summary="Delete a task")
async def delete_task(session: DbSession, user: CompanyUser, task_id: int) -> JSONResponse:
    task = await _load_task(session, user.company_id, task_id)
    await session.delete(task)
    await session.flush()
    return envelope_response(build_envelope())
