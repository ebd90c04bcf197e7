"""Listing parameters and paginated result shapes."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from inkpress.configs import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RECENT_LIMIT,
    MAX_PAGE_SIZE,
    MAX_RECENT_LIMIT,
)
from inkpress.schemas.post import PostResponse


class PostListParams(BaseModel):
    """
    Filter and pagination parameters for the post listing.

    Out-of-range ``page``/``limit`` are rejected, never clamped. The legacy
    single ``categoryId`` is folded into ``categoryIds`` so equal filters
    always normalize to equal parameter sets.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    published: bool | None = None
    search: str | None = None
    category_ids: tuple[int, ...] = Field(default=(), alias="categoryIds")
    category_id: int | None = Field(default=None, alias="categoryId")
    page: int = Field(default=DEFAULT_PAGE, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @field_validator("search", mode="after")
    @classmethod
    def blank_search_is_no_search(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("category_ids", mode="after")
    @classmethod
    def normalize_category_ids(cls, v: tuple[int, ...]) -> tuple[int, ...]:
        return tuple(sorted(set(v)))

    @model_validator(mode="before")
    @classmethod
    def fold_legacy_category_id(cls, data: Any) -> Any:  # noqa: ANN401
        if not isinstance(data, dict):
            return data
        legacy = data.get("categoryId", data.get("category_id"))
        ids = data.get("categoryIds", data.get("category_ids"))
        if legacy is not None and not ids:
            data = {k: v for k, v in data.items() if k != "category_ids"}
            data["categoryIds"] = [legacy]
        return data

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def to_query(self) -> dict[str, Any]:
        """Render as HTTP query parameters, omitting inactive filters."""
        query: dict[str, Any] = {"page": self.page, "limit": self.limit}
        if self.published is not None:
            query["published"] = str(self.published).lower()
        if self.search:
            query["search"] = self.search
        if self.category_ids:
            query["categoryIds"] = list(self.category_ids)
        return query

    def cache_params(self) -> dict[str, Any]:
        """Canonical parameter set identifying this listing in a query cache."""
        return {
            "published": self.published,
            "search": self.search,
            "categoryIds": list(self.category_ids),
            "page": self.page,
            "limit": self.limit,
        }


class RecentParams(BaseModel):
    """Parameters for the recent-posts strip."""

    model_config = ConfigDict(frozen=True)

    limit: int = Field(default=DEFAULT_RECENT_LIMIT, ge=1, le=MAX_RECENT_LIMIT)
    published: bool = True


class PostPage(BaseModel):
    """One page of posts plus the total matching count."""

    items: list[PostResponse]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    limit: int = Field(ge=1)


class PostCounts(BaseModel):
    """Aggregate post counts (``draft = total - published``)."""

    total: int = Field(ge=0)
    published: int = Field(ge=0)
    draft: int = Field(ge=0)
