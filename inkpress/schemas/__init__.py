from inkpress.schemas.category import (
    CategoryCreate,
    CategoryResponse,
    CategorySummary,
    CategoryUpdate,
)
from inkpress.schemas.health import HealthCheckResponse
from inkpress.schemas.listing import PostCounts, PostListParams, PostPage, RecentParams
from inkpress.schemas.post import (
    PostCreate,
    PostDetailResponse,
    PostResponse,
    PostUpdate,
    RecentPost,
    SuccessResponse,
)

__all__ = [
    "CategoryCreate",
    "CategoryResponse",
    "CategorySummary",
    "CategoryUpdate",
    "HealthCheckResponse",
    "PostCounts",
    "PostCreate",
    "PostDetailResponse",
    "PostListParams",
    "PostPage",
    "PostResponse",
    "PostUpdate",
    "RecentParams",
    "RecentPost",
    "SuccessResponse",
]
