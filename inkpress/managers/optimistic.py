# inkpress/managers/optimistic.py
"""
Optimistic mutation protocol and the pure functions that apply it to posts.

Apply functions never modify their inputs: they return new page/counts
objects, so a snapshot taken before the write still holds the exact
pre-mutation state for rollback.
"""

from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from logging import getLogger
from time import time
from typing import Any

from inkpress.configs import file_logger
from inkpress.managers.query_cache import QueryCache, QueryKey, Snapshot
from inkpress.schemas import PostCounts, PostListParams, PostPage, PostResponse

logger = file_logger(getLogger(__name__))

# Returned by an apply function to drop the cached entry
EVICT: Any = object()

type ApplyFn = Callable[[QueryKey, Any], Any]

_last_temporary_id = 0


def temporary_id() -> int:
    """
    Placeholder ID for a post the server has not created yet.

    Negative millisecond timestamp, strictly decreasing between calls so
    two creates in the same millisecond do not share an ID.
    """
    global _last_temporary_id  # noqa: PLW0603
    candidate = -int(time() * 1000)
    if _last_temporary_id and candidate >= _last_temporary_id:
        candidate = _last_temporary_id - 1
    _last_temporary_id = candidate
    return candidate


def is_temporary_id(post_id: int) -> bool:
    return post_id < 0


def listing_accepts(
    params: PostListParams,
    post: PostResponse,
    category_ids: Iterable[int] | None = None,
) -> bool:
    """
    Whether ``post`` satisfies the filters of a listing.

    Mirrors the server predicates: published state, case-insensitive
    title/author substring, and membership in ANY requested category.
    ``category_ids`` overrides the post's attached categories.
    """
    if params.published is not None and post.published != params.published:
        return False

    if params.search:
        term = params.search.lower()
        haystacks = (post.title, post.author or "")
        if not any(term in text.lower() for text in haystacks):
            return False

    if params.category_ids:
        ids = set(category_ids) if category_ids is not None else {c.id for c in post.categories}
        if ids.isdisjoint(params.category_ids):
            return False

    return True


def insert_post(
    page: PostPage,
    params: PostListParams,
    post: PostResponse,
    category_ids: Iterable[int] | None = None,
) -> PostPage:
    """
    Add a new post to a cached listing when the listing would include it.

    Every page of a matching listing gains one in ``total``; only page 1
    shows the post, at the top, with items trimmed to ``limit``.
    """
    if not listing_accepts(params, post, category_ids):
        return page

    items = list(page.items)
    if params.page == 1:
        items = [post, *items][: params.limit]
    return page.model_copy(update={"items": items, "total": page.total + 1})


def replace_post_fields(
    page: PostPage,
    params: PostListParams,
    post_id: int,
    changes: Mapping[str, Any],
    category_ids: Iterable[int] | None = None,
) -> PostPage:
    """
    Apply field changes to a post on a cached page.

    A post that no longer matches the listing's filters is dropped and
    ``total`` decremented.
    """
    index = _index_of(page, post_id)
    if index is None:
        return page

    updated = page.items[index].model_copy(update=dict(changes))
    items = list(page.items)
    if listing_accepts(params, updated, category_ids):
        items[index] = updated
        return page.model_copy(update={"items": items})

    del items[index]
    return page.model_copy(update={"items": items, "total": max(page.total - 1, 0)})


def toggle_post(page: PostPage, params: PostListParams, post_id: int) -> PostPage:
    """Flip ``published`` of a post on a cached page."""
    index = _index_of(page, post_id)
    if index is None:
        return page
    published = not page.items[index].published
    return replace_post_fields(page, params, post_id, {"published": published})


def remove_post(page: PostPage, post_id: int) -> PostPage:
    index = _index_of(page, post_id)
    if index is None:
        return page
    items = [item for item in page.items if item.id != post_id]
    return page.model_copy(update={"items": items, "total": max(page.total - 1, 0)})


def swap_post(page: PostPage, post_id: int, post: PostResponse) -> PostPage:
    """Replace the item ``post_id`` (typically a temporary one) with ``post``."""
    index = _index_of(page, post_id)
    if index is None:
        return page
    items = list(page.items)
    items[index] = post
    return page.model_copy(update={"items": items})


def count_created(counts: PostCounts, *, published: bool) -> PostCounts:
    return _counts(counts.total + 1, counts.published + int(published))


def count_deleted(counts: PostCounts, *, published: bool) -> PostCounts:
    return _counts(counts.total - 1, counts.published - int(published))


def count_toggled(counts: PostCounts, *, now_published: bool) -> PostCounts:
    delta = 1 if now_published else -1
    return _counts(counts.total, counts.published + delta)


def _counts(total: int, published: int) -> PostCounts:
    total = max(total, 0)
    published = min(max(published, 0), total)
    return PostCounts(total=total, published=published, draft=total - published)


def _index_of(page: PostPage, post_id: int) -> int | None:
    for index, item in enumerate(page.items):
        if item.id == post_id:
            return index
    return None


@dataclass(frozen=True)
class QueryTarget:
    """A query family (``params`` None) or a single query touched by a mutation."""

    name: str
    params: Any = None

    @property
    def key(self) -> QueryKey:
        return QueryKey.of(self.name, self.params)


@dataclass
class OptimisticMutation[ResultT]:
    """
    Run a server mutation with an immediate optimistic cache update.

    Protocol, in order:
        1. lock every target key (mutations on the same keys serialize)
        2. cancel in-flight fetches for the targets
        3. snapshot the cached entries, by reference, before any write
           (``prepare`` runs here and still sees the pre-mutation cache)
        4. write the result of ``apply`` for every snapshotted entry
        5. await ``mutate``
        6. on failure restore every snapshot and re-raise
        7. on success call ``on_success`` with the server result
        8. always invalidate the targets so they refetch

    Attributes:
        cache: The query cache to update.
        targets: Queries the mutation may change.
        apply: Maps ``(key, cached value)`` to the optimistic value, or
            ``EVICT`` to drop the entry.
        mutate: The server call.
        prepare: Optional hook run after locking, before any write.
        on_success: Optional hook receiving the server result.
    """

    cache: QueryCache
    targets: Sequence[QueryTarget]
    apply: ApplyFn
    mutate: Callable[[], Awaitable[ResultT]]
    on_success: Callable[[ResultT], None] | None = None
    prepare: Callable[[], None] | None = None
    snapshots: list[Snapshot] = field(default_factory=list, init=False)

    async def run(self) -> ResultT:
        async with self.cache.lock(target.key for target in self.targets):
            for target in self.targets:
                self.cache.cancel(target.name, target.params)

            self.snapshots = [
                snapshot
                for target in self.targets
                for snapshot in self.cache.snapshot_matching(target.name, target.params)
            ]
            if self.prepare is not None:
                self.prepare()
            self._apply()

            try:
                try:
                    result = await self.mutate()
                except BaseException:
                    self._rollback()
                    raise
                if self.on_success is not None:
                    self.on_success(result)
                return result
            finally:
                for target in self.targets:
                    self.cache.invalidate(target.name, target.params)

    def _apply(self) -> None:
        for snapshot in self.snapshots:
            if not snapshot.present:
                continue
            value = self.apply(snapshot.key, snapshot.value)
            if value is EVICT:
                self.cache.remove(snapshot.key)
            elif value is not snapshot.value:
                self.cache.write(snapshot.key, value)

    def _rollback(self) -> None:
        logger.info(f"Mutation failed; restoring {len(self.snapshots)} cached entries")
        for snapshot in self.snapshots:
            self.cache.restore(snapshot)
