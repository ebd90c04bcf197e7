"""Category request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreate(BaseModel):
    """Category creation model (slug is derived from the name)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Category name",
        examples=["Web Development"],
    )
    description: str | None = Field(
        default=None,
        description="Optional description",
        examples=["Web development tutorials and tips"],
    )


class CategoryUpdate(BaseModel):
    """Category update model (all fields optional, renaming re-derives the slug)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None


class CategorySummary(BaseModel):
    """Category as attached to a post in listings."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str


class CategoryResponse(CategorySummary):
    """Full category representation."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    description: str | None = None
    created_at: datetime = Field(alias="createdAt")
