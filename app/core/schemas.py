from typing import Annotated, Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

T = TypeVar("T")

# Largest value an INTEGER id column holds on PostgreSQL
MAX_ROW_ID = 2**31 - 1

# Whitespace is stripped before the length check, so "   " is rejected
NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
CodeStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]

RowId = Annotated[int, Field(ge=1, le=MAX_ROW_ID)]


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python. Accepts both on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationMeta(CamelModel):
    page: int = Field(..., ge=1, description="Current page number")
    limit: int = Field(..., ge=1, description="Page size used")
    total: int = Field(..., ge=0, description="Total number of rows matching the predicate")
    total_pages: int = Field(..., ge=0, description="ceil(total / limit)")


class PaginatedResponse(CamelModel, Generic[T]):
    """Envelope for every list endpoint."""

    data: List[T]
    pagination: PaginationMeta


class DataResponse(CamelModel, Generic[T]):
    data: T
