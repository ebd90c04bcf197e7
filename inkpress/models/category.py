"""Category and post/category association models."""

from datetime import UTC, datetime
from typing import cast

from sqlalchemy import DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import declared_attr
from sqlmodel import Column, Field, SQLModel, String


class CategoryDB(SQLModel, table=True):
    """Category database model."""

    __tablename__ = cast("declared_attr[str]", "categories")

    id: int | None = Field(
        default=None,
        primary_key=True,
        description="Category ID",
    )
    name: str = Field(
        sa_column=Column(String(255), unique=True, nullable=False),
        description="Category name (unique)",
    )
    slug: str = Field(
        sa_column=Column(Text, unique=True, nullable=False, index=True),
        description="URL-friendly slug (unique)",
    )
    description: str | None = Field(
        default=None,
        sa_column=Column(Text),
        description="Optional description",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Creation timestamp",
    )


class PostCategoryDB(SQLModel, table=True):
    """
    Junction table for the many-to-many post/category relationship.

    Rows disappear with either parent through ``ON DELETE CASCADE``.
    """

    __tablename__ = cast("declared_attr[str]", "post_categories")

    post_id: int = Field(
        sa_column=Column(
            "post_id",
            Integer,
            ForeignKey("posts.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    category_id: int = Field(
        sa_column=Column(
            "category_id",
            Integer,
            ForeignKey("categories.id", ondelete="CASCADE"),
            primary_key=True,
            index=True,
        ),
    )
