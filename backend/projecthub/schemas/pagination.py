"""Value types for paginated listings."""

from pydantic import BaseModel, ConfigDict, Field

from projecthub.schemas.common import CamelModel


class PageRequest(BaseModel):
    """Resolved ?page=&limit= pair; built per request, never mutated."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(ge=1)


class SkipTake(BaseModel):
    """Offset/limit directive for a single bulk fetch."""

    model_config = ConfigDict(frozen=True)

    skip: int = Field(ge=0)
    take: int = Field(ge=1)


class PageInfo(CamelModel):
    """The `pagination` block of a listing response."""

    page: int
    total_pages: int = Field(ge=0)
    remaining_pages: int
