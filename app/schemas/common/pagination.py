import math
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field, field_validator

from app.core.config import settings

T = TypeVar("T")


class PaginationParams(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(default_factory=lambda: settings.DEFAULT_PAGE_SIZE, ge=1)

    @field_validator("page", mode="before")
    @classmethod
    def default_page(cls, v):
        # 0 means "not given"
        return 1 if v is None or v == 0 else v

    @field_validator("limit", mode="before")
    @classmethod
    def default_limit(cls, v):
        return settings.DEFAULT_PAGE_SIZE if v is None or v == 0 else v

    @field_validator("limit")
    @classmethod
    def cap_limit(cls, v):
        # Requests above the ceiling are clamped, not rejected
        return min(v, settings.MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PageInfo(BaseModel):
    has_next_page: bool
    has_previous_page: bool
    total_count: int
    total_pages: int
    current_page: int

    @classmethod
    def build(cls, page: int, limit: int, total_count: int) -> "PageInfo":
        total_pages = math.ceil(total_count / limit) if limit else 0
        return cls(
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
            total_count=total_count,
            total_pages=total_pages,
            current_page=page,
        )


class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    page_info: PageInfo
