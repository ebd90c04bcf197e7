"""
Listing predicates.

Each active filter dimension contributes one independent predicate. The
page query and the count query are built from the same list, so the
reported ``total`` always describes the rows being paged over.
"""

from collections.abc import Callable

from sqlalchemy import ColumnElement, or_, select

from inkpress.models import PostCategoryDB, PostDB
from inkpress.schemas.listing import PostListParams

type PostPredicate = Callable[[PostListParams], ColumnElement[bool] | None]


def published_predicate(params: PostListParams) -> ColumnElement[bool] | None:
    if params.published is None:
        return None
    return PostDB.published.is_(params.published)  # pyrefly: ignore [missing-attribute]


def search_predicate(params: PostListParams) -> ColumnElement[bool] | None:
    """Case-insensitive substring match on title OR author (content is not searched)."""
    if not params.search:
        return None
    term = params.search
    return or_(
        PostDB.title.icontains(term, autoescape=True),  # pyrefly: ignore [missing-attribute]
        PostDB.author.icontains(term, autoescape=True),  # pyrefly: ignore [missing-attribute]
    )


def category_predicate(params: PostListParams) -> ColumnElement[bool] | None:
    """
    Post belongs to ANY of the requested categories.

    Expressed as a membership subquery rather than a join so a post
    linked to several requested categories still counts once.
    """
    if not params.category_ids:
        return None
    linked_posts = select(PostCategoryDB.post_id).where(
        PostCategoryDB.category_id.in_(params.category_ids),  # pyrefly: ignore [missing-attribute]
    )
    return PostDB.id.in_(linked_posts)  # pyrefly: ignore [missing-attribute]


POST_PREDICATES: tuple[PostPredicate, ...] = (
    published_predicate,
    search_predicate,
    category_predicate,
)


def build_post_predicates(params: PostListParams) -> list[ColumnElement[bool]]:
    """
    Collect the predicates for every active filter (AND-combined by the caller).

    Args:
        params: Normalized listing parameters.

    Returns:
        list[ColumnElement[bool]]: Empty when no filter is active.
    """
    return [predicate for build in POST_PREDICATES if (predicate := build(params)) is not None]
