from inkpress.managers.optimistic import (
    EVICT,
    OptimisticMutation,
    QueryTarget,
    count_created,
    count_deleted,
    count_toggled,
    insert_post,
    is_temporary_id,
    listing_accepts,
    remove_post,
    replace_post_fields,
    swap_post,
    temporary_id,
    toggle_post,
)
from inkpress.managers.query_cache import QueryCache, QueryKey, Snapshot
from inkpress.managers.reconciler import (
    CATEGORIES_LIST,
    POSTS_BY_ID,
    POSTS_COUNTS,
    POSTS_LIST,
    PostReconciler,
)

__all__ = [
    "CATEGORIES_LIST",
    "EVICT",
    "POSTS_BY_ID",
    "POSTS_COUNTS",
    "POSTS_LIST",
    "OptimisticMutation",
    "PostReconciler",
    "QueryCache",
    "QueryKey",
    "QueryTarget",
    "Snapshot",
    "count_created",
    "count_deleted",
    "count_toggled",
    "insert_post",
    "is_temporary_id",
    "listing_accepts",
    "remove_post",
    "replace_post_fields",
    "swap_post",
    "temporary_id",
    "toggle_post",
]
