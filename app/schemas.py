from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.config import settings
from app.dates import RFC3339_ERROR, parse_rfc3339

T = TypeVar("T")


class CamelModel(BaseModel):
    """Wire models use camelCase keys; Python code keeps snake_case names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Tag ---

class TagDTO(CamelModel):
    name: str = Field(max_length=100)
    description: str = ""
    slug: str = Field("", max_length=150)


class TagResponse(CamelModel):
    id: int
    name: str
    description: str
    slug: str
    created_at: datetime
    updated_at: datetime


# --- Category ---

class CategoryDTO(CamelModel):
    name: str = Field(max_length=150)
    description: str = ""
    slug: str = Field("", max_length=200)
    parent_id: int | None = None


class CategorySummary(CamelModel):
    id: int
    name: str
    description: str
    slug: str
    parent_id: int | None = None
    created_at: datetime
    updated_at: datetime


class CategoryResponse(CategorySummary):
    children: list[CategorySummary] = []


# --- Article ---

class ArticleDTO(CamelModel):
    title: str = Field(min_length=1, max_length=300)
    content: str
    slug: str = Field("", max_length=350)
    published_at: AwareDatetime | None = None
    # An empty list leaves the stored associations untouched on update.
    category_ids: list[int] = []
    tag_ids: list[int] = []

    @field_validator("published_at", mode="before")
    @classmethod
    def parse_published_at(cls, value):
        if value is None or isinstance(value, datetime):
            return value
        if not isinstance(value, str):
            raise ValueError(RFC3339_ERROR)
        return parse_rfc3339(value)


class ArticleResponse(CamelModel):
    id: int
    title: str
    content: str
    slug: str
    published_at: datetime | None
    is_published: bool
    categories: list[CategorySummary] = []
    tags: list[TagResponse] = []
    created_at: datetime
    updated_at: datetime


# --- Envelopes ---

class MessageResponse(CamelModel):
    status: int
    message: str


class DataResponse(CamelModel, Generic[T]):
    status: int
    message: str = ""
    data: T


class PageMetadata(CamelModel):
    page: int
    limit: int
    total: int
    count: int
    has_prev: bool
    has_next: bool

    @classmethod
    def build(cls, pagination: "Pagination", total: int, count: int) -> "PageMetadata":
        page, limit = pagination.effective_page, pagination.effective_limit
        return cls(
            page=page,
            limit=limit,
            total=total,
            count=count,
            has_prev=page > 1,
            has_next=page * limit < total,
        )


class PageResult(CamelModel, Generic[T]):
    metadata: PageMetadata
    result: list[T]


# --- Queries ---

@dataclass
class Pagination:
    page: int = 1
    limit: int = 10

    @property
    def effective_page(self) -> int:
        return max(1, self.page)

    @property
    def effective_limit(self) -> int:
        """Non-positive limits fall back to the default page size."""
        if self.limit <= 0:
            return settings.DEFAULT_PAGE_SIZE
        return self.limit

    @property
    def offset(self) -> int:
        return (self.effective_page - 1) * self.effective_limit


@dataclass
class ArticleQuery:
    pagination: Pagination = field(default_factory=Pagination)
    keyword: str = ""
    category_id: int | None = None
    tag_id: int | None = None
    is_published: bool | None = None


@dataclass
class CategoryQuery:
    pagination: Pagination = field(default_factory=Pagination)
    keyword: str = ""
    # None: no filter, 0: roots only, >0: direct children of that id
    parent_id: int | None = None


@dataclass
class TagQuery:
    pagination: Pagination = field(default_factory=Pagination)
    keyword: str = ""
