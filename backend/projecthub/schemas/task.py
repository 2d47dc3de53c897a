from datetime import datetime

from pydantic import Field

from projecthub.models.enums import TaskPriority, TaskStatus
from projecthub.schemas.common import CamelModel


class TaskCreate(CamelModel):
    title: str = Field(min_length=1, max_length=512)
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    team_id: int | None = None
    assigned_to: int | None = None


class TaskUpdate(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=512)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    assigned_to: int | None = None


class TaskStatusUpdate(CamelModel):
    status: TaskStatus


class TaskOut(CamelModel):
    id: int
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime | None = None
    team_id: int
    assigned_to: int
    created_at: datetime | None = None
