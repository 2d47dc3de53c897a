"""Teams of a project: paginated listing, create with members, details, update, membership changes."""

import logging

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from projecthub.api.deps import CompanyUser, DbSession
from projecthub.models.enums import TeamRole
from projecthub.models.team import Team, TeamMember
from projecthub.schemas.envelope import ResponseError, build_envelope, envelope_response
from projecthub.schemas.team import (
    TeamCreate,
    TeamDetailsOut,
    TeamMemberAdd,
    TeamMemberOut,
    TeamOut,
    TeamUpdate,
)
from projecthub.services import scoping
from projecthub.services.listing import ListingSpec, SqlAlchemyListingStore, list_page, listing_error
from projecthub.services.pagination import coerce_int

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/teams", tags=["teams"])

TEAMS_LISTING = ListingSpec(
    entity="teams",
    schema=TeamOut,
    sortable={"name": "name"},
    default_sort="name",
    default_limit=3,
)

_TEAM_DETAIL_OPTIONS = (selectinload(Team.leader), selectinload(Team.members), selectinload(Team.project))


def _dump(schema, obj) -> dict:
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)


async def _load_team(session: DbSession, company_id: int, team_id: int) -> Team:
    team = await scoping.get_company_team(session, company_id, team_id, *_TEAM_DETAIL_OPTIONS)
    if team is None:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


async def _reload_team(session: DbSession, team_id: int) -> Team:
    r = await session.execute(
        select(Team)
        .options(*_TEAM_DETAIL_OPTIONS)
        .where(Team.id == team_id)
        .execution_options(populate_existing=True)
    )
    return r.scalar_one()


async def _ensure_company_users(session: DbSession, company_id: int, user_ids: list[int]) -> None:
    if await scoping.count_company_users(session, company_id, user_ids) != len(set(user_ids)):
        raise HTTPException(status_code=400, detail="All members must belong to the company")


@router.get("/project/{project_id}", summary="List teams of a project (paginated)")
async def list_project_teams(
    session: DbSession,
    user: CompanyUser,
    project_id: str,
    page: str | None = None,
    limit: str | None = None,
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_dir: str | None = Query(None, alias="sortDir"),
) -> JSONResponse:
    pid = coerce_int(project_id)
    if pid is not None and await scoping.get_company_project(session, user.company_id, pid) is None:
        return envelope_response(listing_error(TEAMS_LISTING, page, ResponseError.NOT_FOUND, "Project not found"))
    envelope = await list_page(
        SqlAlchemyListingStore(session, Team, options=(selectinload(Team.leader), selectinload(Team.members))),
        TEAMS_LISTING,
        scope={"project_id": pid},
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return envelope_response(envelope)


@router.post("", summary="Create a team with its initial members")
async def add_new_team(session: DbSession, user: CompanyUser, body: TeamCreate) -> JSONResponse:
    fields = body.team
    if await scoping.get_company_project(session, user.company_id, fields.project_id) is None:
        raise HTTPException(status_code=404, detail="Project not found")
    member_ids = list(dict.fromkeys(body.members))
    await _ensure_company_users(session, user.company_id, member_ids)
    if fields.leader_id is not None:
        await _ensure_company_users(session, user.company_id, [fields.leader_id])

    team = Team(**fields.model_dump())
    session.add(team)
    await session.flush()
    memberships = [TeamMember(team_id=team.id, user_id=uid, role=TeamRole.MEMBER) for uid in member_ids]
    session.add_all(memberships)
    await session.flush()

    team = await _reload_team(session, team.id)
    logger.info("Team %s created in project %s with %d members", team.id, team.project_id, len(memberships))
    return envelope_response(
        build_envelope(
            {
                "team": _dump(TeamDetailsOut, team),
                "addedMembers": [_dump(TeamMemberOut, m) for m in memberships],
            }
        ),
        success_status=201,
    )


@router.delete("/remove-member", summary="Remove one member from a team")
async def remove_team_member(
    session: DbSession,
    user: CompanyUser,
    team_id: str | None = Query(None, alias="teamId"),
    team_member_id: str | None = Query(None, alias="teamMemberId"),
) -> JSONResponse:
    tid, uid = coerce_int(team_id), coerce_int(team_member_id)
    if tid is None:
        raise HTTPException(status_code=400, detail="teamId is required")
    if uid is None:
        raise HTTPException(status_code=400, detail="teamMemberId is required")
    team = await _load_team(session, user.company_id, tid)
    result = await session.execute(
        delete(TeamMember).where(TeamMember.team_id == tid, TeamMember.user_id == uid)
    )
    if not result.rowcount:
        raise HTTPException(status_code=404, detail="Team member not found")
    if team.leader_id == uid:
        team.leader_id = None
        await session.flush()
        logger.info("Removed leader %s from team %s", uid, tid)
    team = await _reload_team(session, tid)
    return envelope_response(build_envelope(_dump(TeamDetailsOut, team)))


@router.delete("/clear/{team_id}", summary="Remove every member from a team")
async def clear_team_members(session: DbSession, user: CompanyUser, team_id: int) -> JSONResponse:
    team = await _load_team(session, user.company_id, team_id)
    r = await session.execute(select(TeamMember.user_id).where(TeamMember.team_id == team_id))
    member_ids = set(r.scalars().all())
    result = await session.execute(delete(TeamMember).where(TeamMember.team_id == team_id))
    if team.leader_id in member_ids:
        team.leader_id = None
        await session.flush()
    return envelope_response(build_envelope({"count": result.rowcount or 0}))


@router.patch("/add-member/{team_id}", summary="Add members to a team")
async def add_team_member(
    session: DbSession, user: CompanyUser, team_id: int, body: list[TeamMemberAdd]
) -> JSONResponse:
    if not body:
        raise HTTPException(status_code=400, detail="Please provide members to add")
    if any(m.role == TeamRole.LEADER for m in body):
        raise HTTPException(status_code=400, detail="Team leader role is not allowed here, members only")
    await _load_team(session, user.company_id, team_id)
    user_ids = [m.id for m in body]
    await _ensure_company_users(session, user.company_id, user_ids)
    r = await session.execute(
        select(TeamMember.user_id).where(TeamMember.team_id == team_id, TeamMember.user_id.in_(user_ids))
    )
    existing = sorted(r.scalars().all())
    if existing:
        raise HTTPException(status_code=400, detail=f"Already team members: {', '.join(map(str, existing))}")
    added = [TeamMember(team_id=team_id, user_id=m.id, role=m.role) for m in body]
    session.add_all(added)
    await session.flush()
    team = await _reload_team(session, team_id)
    return envelope_response(
        build_envelope(
            {
                "addedMembers": [_dump(TeamMemberOut, m) for m in added],
                "team": _dump(TeamDetailsOut, team),
            }
        )
    )


@router.get("/{team_id}", summary="Team details with leader, members and project")
async def get_team_details(session: DbSession, user: CompanyUser, team_id: int) -> JSONResponse:
    team = await _load_team(session, user.company_id, team_id)
    return envelope_response(build_envelope(_dump(TeamDetailsOut, team)))


@router.patch("/{team_id}", summary="Update team name, description or leader")
async def update_team(session: DbSession, user: CompanyUser, team_id: int, body: TeamUpdate) -> JSONResponse:
    team = await _load_team(session, user.company_id, team_id)
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="Please provide fields to update")
    if changes.get("leader_id") is not None:
        await _ensure_company_users(session, user.company_id, [changes["leader_id"]])
    for key, value in changes.items():
        if key == "name" and value is None:
            continue
        setattr(team, key, value)
    await session.flush()
    team = await _reload_team(session, team_id)
    return envelope_response(build_envelope(_dump(TeamDetailsOut, team)))


@router.delete("/{team_id}", summary="Delete a team and its memberships")
async def delete_team(session: DbSession, user: CompanyUser, team_id: int) -> JSONResponse:
    team = await _load_team(session, user.company_id, team_id)
    data = _dump(TeamOut, team)
    await session.execute(delete(TeamMember).where(TeamMember.team_id == team_id))
    await session.delete(team)
    await session.flush()
    return envelope_response(build_envelope(data))
