from datetime import datetime

from pydantic import Field

from projecthub.models.enums import ProjectStatus
from projecthub.schemas.common import CamelModel


class ProjectCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    status: ProjectStatus = ProjectStatus.NOT_STARTED
    manager_id: int | None = None


class ProjectOut(CamelModel):
    id: int
    name: str
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    status: ProjectStatus


class ProjectDetailsOut(ProjectOut):
    company_id: int
    manager_id: int | None = None
