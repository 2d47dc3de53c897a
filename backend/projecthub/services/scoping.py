"""Tenant checks: load a project or team only if it belongs to the given company."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.models.project import Project
from projecthub.models.task import Task
from projecthub.models.team import Team
from projecthub.models.user import User


async def get_company_project(session: AsyncSession, company_id: int, project_id: int) -> Project | None:
    r = await session.execute(
        select(Project).where(Project.id == project_id, Project.company_id == company_id)
    )
    return r.scalar_one_or_none()


async def get_company_team(session: AsyncSession, company_id: int, team_id: int, *options) -> Team | None:
    stmt = (
        select(Team)
        .join(Project, Team.project_id == Project.id)
        .where(Team.id == team_id, Project.company_id == company_id)
    )
    if options:
        stmt = stmt.options(*options)
    r = await session.execute(stmt)
    return r.scalar_one_or_none()


async def get_company_user(session: AsyncSession, company_id: int, user_id: int) -> User | None:
    r = await session.execute(select(User).where(User.id == user_id, User.company_id == company_id))
    return r.scalar_one_or_none()


async def count_company_users(session: AsyncSession, company_id: int, user_ids: list[int]) -> int:
    if not user_ids:
        return 0
    r = await session.execute(
        select(User.id).where(User.id.in_(set(user_ids)), User.company_id == company_id)
    )
    return len(r.all())


async def get_company_task(session: AsyncSession, company_id: int, task_id: int) -> Task | None:
    r = await session.execute(
        select(Task)
        .join(Team, Task.team_id == Team.id)
        .join(Project, Team.project_id == Project.id)
        .where(Task.id == task_id, Project.company_id == company_id)
    )
    return r.scalar_one_or_none()
