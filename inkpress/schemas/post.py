"""
Post schemas for the Inkpress application.

Request models validate input before anything touches the store;
response models expose camelCase field names to API consumers.
"""

from datetime import datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from inkpress.schemas.category import CategorySummary

_http_url = TypeAdapter(HttpUrl)


def _check_cover_image_url(value: str | None) -> str | None:
    """Accept an http(s) URL or an inline ``data:image/`` URI."""
    if value is None or value.startswith("data:image/"):
        return value
    try:
        _http_url.validate_python(value)
    except ValidationError as e:
        mssg = "coverImageUrl must be an http(s) URL or a data:image/ URI"
        raise ValueError(mssg) from e
    return value


class PostCreate(BaseModel):
    """Post creation model (slug is derived from the title)."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(
        ...,
        min_length=1,
        description="Post title",
        examples=["Getting Started with FastAPI"],
    )
    content: str = Field(
        ...,
        min_length=1,
        description="Post content (markdown)",
        examples=["# Getting Started\n\nFastAPI is a modern web framework."],
    )
    author: str | None = Field(default=None, description="Author display name")
    published: bool = Field(default=False, description="Publish immediately")
    category_ids: list[int] | None = Field(
        default=None,
        alias="categoryIds",
        description="Categories to attach",
        examples=[[1, 2]],
    )
    cover_image_url: str | None = Field(
        default=None,
        alias="coverImageUrl",
        description="Cover image URL or data:image/ URI",
    )

    @field_validator("cover_image_url", mode="after")
    @classmethod
    def validate_cover_image_url(cls, v: str | None) -> str | None:
        return _check_cover_image_url(v)


class PostUpdate(BaseModel):
    """
    Post update model (all fields optional).

    Only fields present in the payload are written. A present
    ``categoryIds`` (even empty) replaces every category link of the post.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "title": "Getting Started with FastAPI (2nd edition)",
                "published": True,
                "categoryIds": [1],
            },
        },
    )

    title: str | None = Field(default=None, min_length=1)
    content: str | None = Field(default=None, min_length=1)
    author: str | None = None
    published: bool | None = None
    category_ids: list[int] | None = Field(default=None, alias="categoryIds")
    cover_image_url: str | None = Field(default=None, alias="coverImageUrl")

    @field_validator("cover_image_url", mode="after")
    @classmethod
    def validate_cover_image_url(cls, v: str | None) -> str | None:
        return _check_cover_image_url(v)


class PostResponse(BaseModel):
    """Post with its attached categories."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    title: str
    slug: str
    content: str
    author: str | None = None
    cover_image_url: str | None = Field(default=None, alias="coverImageUrl")
    published: bool
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    categories: list[CategorySummary] = Field(default_factory=list)


class PostDetailResponse(PostResponse):
    """Single post lookup by id, with a flattened ``categoryIds`` for edit forms."""

    category_ids: list[int] = Field(default_factory=list, alias="categoryIds")


class RecentPost(BaseModel):
    """Lightweight projection for the featured/recent strip."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    title: str
    slug: str
    created_at: datetime = Field(alias="createdAt")
    cover_image_url: str | None = Field(default=None, alias="coverImageUrl")
    author: str | None = None


class SuccessResponse(BaseModel):
    """Acknowledgement for deletions."""

    success: bool = True
