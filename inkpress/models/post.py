"""Post database model using SQLModel."""

from datetime import UTC, datetime
from typing import cast

from pydantic import ConfigDict
from sqlalchemy import Boolean, DateTime, Index, Text
from sqlalchemy.orm import declared_attr
from sqlmodel import Column, Field, SQLModel


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class PostDB(SQLModel, table=True):
    """
    Post database model.

    Categories are not mapped as an ORM relationship; they are attached
    per page through a single batched lookup on ``post_categories``.
    """

    __tablename__ = cast("declared_attr[str]", "posts")

    __table_args__ = (
        Index("ix_posts_published_created", "published", "created_at"),
    )

    id: int | None = Field(
        default=None,
        primary_key=True,
        description="Post ID",
    )

    # Required fields
    title: str = Field(
        sa_column=Column(Text, nullable=False),
        description="Post title",
    )
    slug: str = Field(
        sa_column=Column(Text, unique=True, nullable=False, index=True),
        description="URL-friendly slug (unique)",
    )
    content: str = Field(
        sa_column=Column(Text, nullable=False),
        description="Post content (markdown)",
    )

    # Optional fields
    author: str | None = Field(
        default=None,
        sa_column=Column(Text),
        description="Author display name",
    )
    cover_image_url: str | None = Field(
        default=None,
        sa_column=Column("cover_image_url", Text),
        description="Cover image URL or inline data URI",
    )

    published: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Whether the post is publicly visible",
    )

    # Timestamps (timezone-aware, full precision)
    created_at: datetime = Field(
        default_factory=_utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
        description="Creation timestamp",
    )
    updated_at: datetime = Field(
        default_factory=_utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Last update timestamp",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Getting Started with FastAPI",
                "slug": "getting-started-with-fastapi",
                "content": "# Getting Started\n\nFastAPI is a modern web framework...",
                "author": "Jane Doe",
                "cover_image_url": None,
                "published": True,
            },
        },
    )
