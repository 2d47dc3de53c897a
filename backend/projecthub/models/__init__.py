from projecthub.models.company import Company
from projecthub.models.user import User
from projecthub.models.project import Project
from projecthub.models.team import Team, TeamMember
from projecthub.models.task import Task
from projecthub.models.invitation import Invitation

__all__ = [
    "Company",
    "User",
    "Project",
    "Team",
    "TeamMember",
    "Task",
    "Invitation",
]
