from datetime import datetime

from projecthub.models.enums import InvitationStatus, UserRole
from projecthub.schemas.common import CamelModel
from projecthub.schemas.company import CompanyOut


class InvitationCreate(CamelModel):
    email: str
    role: UserRole = UserRole.MEMBER


class InvitationOut(CamelModel):
    id: int | None = None
    email: str
    status: InvitationStatus
    role: UserRole
    expires_at: datetime | None = None
    company: CompanyOut | None = None
