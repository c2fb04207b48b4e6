from math import ceil
from typing import Annotated, Generic, List, Optional, TypeVar
from pydantic import AfterValidator, BaseModel, Field
from app.core.security import password_policy_violations

MAX_PAGE_SIZE = 100

T = TypeVar("T")


def _check_password_strength(value: str) -> str:
    problems = password_policy_violations(value)
    if problems:
        raise ValueError("Password must contain " + ", ".join(problems))
    return value


# Password that satisfies the strength policy: at least 8 characters with
# uppercase, lowercase, number and special character.
StrongPassword = Annotated[str, AfterValidator(_check_password_strength)]


class PaginationParams(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=MAX_PAGE_SIZE)
    search: Optional[str] = None

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    meta: PageMeta

    @classmethod
    def build(cls, data: List[T], total: int, params: PaginationParams) -> "PaginatedResponse[T]":
        return cls(
            data=data,
            meta=PageMeta(
                total=total,
                page=params.page,
                limit=params.limit,
                total_pages=ceil(total / params.limit) if total else 0,
            ),
        )


class MessageResponse(BaseModel):
    message: str
