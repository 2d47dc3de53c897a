"""Team schemas. Listing rows show the first few members only; details show all."""

from datetime import datetime

from pydantic import Field, field_validator

from projecthub.models.enums import TeamRole, UserRole
from projecthub.schemas.common import CamelModel
from projecthub.schemas.project import ProjectOut

LISTING_MEMBER_PREVIEW = 6


class TeamUserOut(CamelModel):
    id: int
    name: str
    email: str
    joined_at: datetime | None = None
    role: UserRole | None = None


class TeamOut(CamelModel):
    id: int
    name: str
    description: str | None = None
    leader: TeamUserOut | None = None
    members: list[TeamUserOut] = []

    @field_validator("members", mode="before")
    @classmethod
    def _preview_members(cls, value):
        return list(value or [])[:LISTING_MEMBER_PREVIEW]


class TeamDetailsOut(CamelModel):
    id: int
    name: str
    description: str | None = None
    leader: TeamUserOut | None = None
    members: list[TeamUserOut] = []
    project: ProjectOut | None = None


class TeamCreateFields(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    project_id: int
    leader_id: int | None = None


class TeamCreate(CamelModel):
    team: TeamCreateFields
    members: list[int] = Field(min_length=1)


class TeamUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    leader_id: int | None = None


class TeamMemberAdd(CamelModel):
    id: int
    role: TeamRole = TeamRole.MEMBER


class TeamMemberOut(CamelModel):
    id: int
    team_id: int
    user_id: int
    role: TeamRole
