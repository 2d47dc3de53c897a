from datetime import datetime

from pydantic import Field

from projecthub.schemas.common import CamelModel


class CompanyCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    owner_name: str | None = Field(None, max_length=255)
    bio: str | None = None


class CompanyOut(CamelModel):
    id: int
    name: str
    owner_name: str | None = None
    bio: str | None = None
    created_at: datetime | None = None
