"""Database models for the application."""

from inkpress.models.category import CategoryDB, PostCategoryDB
from inkpress.models.post import PostDB

__all__ = ["CategoryDB", "PostCategoryDB", "PostDB"]
