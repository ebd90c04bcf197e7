from inkpress.repositories.base import BaseRepository
from inkpress.repositories.category import CategoryRepository
from inkpress.repositories.filters import build_post_predicates
from inkpress.repositories.post import PostRepository, to_post_response
from inkpress.repositories.related import attach_related

__all__ = [
    "BaseRepository",
    "CategoryRepository",
    "PostRepository",
    "attach_related",
    "build_post_predicates",
    "to_post_response",
]
