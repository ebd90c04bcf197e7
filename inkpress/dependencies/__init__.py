from inkpress.dependencies.dependencies import (
    CategoryRepoDep,
    PostListParamsDep,
    PostRepoDep,
    RecentParamsDep,
    SessionDep,
    get_category_repository,
    get_post_list_params,
    get_post_repository,
    get_recent_params,
)

__all__ = [
    "CategoryRepoDep",
    "PostListParamsDep",
    "PostRepoDep",
    "RecentParamsDep",
    "SessionDep",
    "get_category_repository",
    "get_post_list_params",
    "get_post_repository",
    "get_recent_params",
]
