# inkpress/managers/reconciler.py
"""Optimistic post mutations over the query cache and the blog API client."""

from collections.abc import Iterable
from logging import getLogger
from typing import Any

from inkpress.clients import BlogClient
from inkpress.configs import file_logger
from inkpress.managers.optimistic import (
    EVICT,
    OptimisticMutation,
    QueryTarget,
    count_created,
    count_deleted,
    count_toggled,
    insert_post,
    is_temporary_id,
    remove_post,
    replace_post_fields,
    swap_post,
    temporary_id,
    toggle_post,
)
from inkpress.managers.query_cache import QueryCache, QueryKey
from inkpress.schemas import (
    CategoryResponse,
    CategorySummary,
    PostCounts,
    PostCreate,
    PostDetailResponse,
    PostListParams,
    PostPage,
    PostResponse,
    PostUpdate,
)
from inkpress.utils import MAX_SLUG_LENGTH, slugify, utc_now

logger = file_logger(getLogger(__name__))

POSTS_LIST = "posts.list"
POSTS_COUNTS = "posts.counts"
POSTS_BY_ID = "posts.by_id"
CATEGORIES_LIST = "categories.list"


def _detail_from(post: PostResponse) -> PostDetailResponse:
    return PostDetailResponse.model_validate(
        {**post.model_dump(), "category_ids": [c.id for c in post.categories]},
    )


class PostReconciler:
    """
    Keeps cached post queries consistent with optimistic local mutations.

    Cached queries:
        - ``posts.list`` keyed by the canonical listing parameters
        - ``posts.counts``
        - ``posts.by_id`` keyed by ``{"id": post_id}``
        - ``categories.list``, used to label category ids on optimistic posts

    Every mutation updates all cached listings at once, then invalidates
    them so the server's view replaces the optimistic one.
    """

    def __init__(
        self,
        client: BlogClient,
        cache: QueryCache | None = None,
        view: PostListParams | None = None,
    ) -> None:
        self.client = client
        self.cache = cache or QueryCache()
        self.view = view or PostListParams()

        self.cache.register(POSTS_LIST, self._fetch_listing)
        self.cache.register(POSTS_COUNTS, self._fetch_counts)
        self.cache.register(POSTS_BY_ID, self._fetch_post)
        self.cache.register(CATEGORIES_LIST, self._fetch_categories)

    # Keys

    @staticmethod
    def listing_key(params: PostListParams) -> QueryKey:
        return QueryKey.of(POSTS_LIST, params.cache_params())

    @staticmethod
    def counts_key() -> QueryKey:
        return QueryKey.of(POSTS_COUNTS)

    @staticmethod
    def post_key(post_id: int) -> QueryKey:
        return QueryKey.of(POSTS_BY_ID, {"id": post_id})

    @staticmethod
    def categories_key() -> QueryKey:
        return QueryKey.of(CATEGORIES_LIST)

    # Queries

    async def load_listing(self, params: PostListParams | None = None) -> PostPage:
        """Fetch a listing (the current view by default) into the cache."""
        return await self.cache.fetch(self.listing_key(params or self.view))

    async def load_counts(self) -> PostCounts:
        return await self.cache.fetch(self.counts_key())

    async def load_post(self, post_id: int) -> PostDetailResponse:
        return await self.cache.fetch(self.post_key(post_id))

    async def load_categories(self) -> list[CategoryResponse]:
        return await self.cache.fetch(self.categories_key())

    # Mutations

    async def create(self, post: PostCreate) -> PostResponse:
        """
        Create a post, showing it immediately under a temporary ID.

        On success the temporary item is swapped for the server's post.
        """
        temp_id = temporary_id()
        now = utc_now()
        category_ids = post.category_ids or []
        optimistic = PostResponse(
            id=temp_id,
            title=post.title,
            slug=slugify(post.title, max_length=MAX_SLUG_LENGTH),
            content=post.content,
            author=post.author,
            cover_image_url=post.cover_image_url,
            published=post.published,
            created_at=now,
            updated_at=now,
            categories=self._categories_for(category_ids),
        )

        def apply(key: QueryKey, value: Any) -> Any:  # noqa: ANN401
            if key.name == POSTS_LIST:
                params = PostListParams.model_validate(key.params)
                return insert_post(value, params, optimistic, category_ids)
            if key.name == POSTS_COUNTS:
                return count_created(value, published=post.published)
            return value

        def on_success(created: PostResponse) -> None:
            for key, page in self.cache.entries(POSTS_LIST):
                swapped = swap_post(page, temp_id, created)
                if swapped is not page:
                    self.cache.write(key, swapped)

        return await OptimisticMutation(
            cache=self.cache,
            targets=[QueryTarget(POSTS_LIST), QueryTarget(POSTS_COUNTS)],
            apply=apply,
            mutate=lambda: self.client.create_post(post),
            on_success=on_success,
        ).run()

    async def update(self, post_id: int, changes: PostUpdate) -> PostResponse:
        """Apply a partial update to every cached copy of the post."""
        fields = changes.model_dump(exclude_unset=True)
        category_ids = fields.pop("category_ids", None)
        for required in ("title", "content", "published"):
            if fields.get(required, "") is None:
                fields.pop(required)
        if "title" in fields:
            fields["slug"] = slugify(fields["title"], max_length=MAX_SLUG_LENGTH)
        fields["updated_at"] = utc_now()

        published = fields.get("published")
        previous: PostResponse | None = None

        def prepare() -> None:
            nonlocal previous
            previous = self._cached_post(post_id)
            if category_ids is not None:
                fields["categories"] = self._categories_for(category_ids)

        def apply(key: QueryKey, value: Any) -> Any:  # noqa: ANN401
            if key.name == POSTS_LIST:
                params = PostListParams.model_validate(key.params)
                return replace_post_fields(value, params, post_id, fields, category_ids)
            if key.name == POSTS_BY_ID:
                detail = value.model_copy(update=fields)
                if category_ids is not None:
                    detail = detail.model_copy(update={"category_ids": sorted(set(category_ids))})
                return detail
            if key.name == POSTS_COUNTS and previous is not None and published is not None:
                if published == previous.published:
                    return value
                return count_toggled(value, now_published=bool(published))
            return value

        return await OptimisticMutation(
            cache=self.cache,
            targets=self._post_targets(post_id),
            apply=apply,
            mutate=lambda: self.client.update_post(post_id, changes),
            prepare=prepare,
            on_success=self._store_detail,
        ).run()

    async def delete(self, post_id: int) -> None:
        """Remove the post from every cached query before the server confirms."""
        if is_temporary_id(post_id):
            mssg = f"Post {post_id} has not been created on the server yet"
            raise ValueError(mssg)

        previous: PostResponse | None = None

        def prepare() -> None:
            nonlocal previous
            previous = self._cached_post(post_id)

        def apply(key: QueryKey, value: Any) -> Any:  # noqa: ANN401
            if key.name == POSTS_LIST:
                return remove_post(value, post_id)
            if key.name == POSTS_BY_ID:
                return EVICT
            if key.name == POSTS_COUNTS and previous is not None:
                return count_deleted(value, published=previous.published)
            return value

        await OptimisticMutation(
            cache=self.cache,
            targets=self._post_targets(post_id),
            apply=apply,
            mutate=lambda: self.client.delete_post(post_id),
            prepare=prepare,
        ).run()

    async def toggle_published(self, post_id: int) -> PostResponse:
        """Flip ``published`` locally, then on the server."""
        previous: PostResponse | None = None

        def prepare() -> None:
            nonlocal previous
            previous = self._cached_post(post_id)

        def apply(key: QueryKey, value: Any) -> Any:  # noqa: ANN401
            if key.name == POSTS_LIST:
                params = PostListParams.model_validate(key.params)
                return toggle_post(value, params, post_id)
            if key.name == POSTS_BY_ID:
                return value.model_copy(update={"published": not value.published})
            if key.name == POSTS_COUNTS and previous is not None:
                return count_toggled(value, now_published=not previous.published)
            return value

        return await OptimisticMutation(
            cache=self.cache,
            targets=self._post_targets(post_id),
            apply=apply,
            mutate=lambda: self.client.toggle_published(post_id),
            prepare=prepare,
            on_success=self._store_detail,
        ).run()

    # Internals

    async def _fetch_listing(self, params: Any) -> PostPage:  # noqa: ANN401
        return await self.client.list_posts(PostListParams.model_validate(params))

    async def _fetch_counts(self, _params: Any) -> PostCounts:  # noqa: ANN401
        return await self.client.get_counts()

    async def _fetch_post(self, params: Any) -> PostDetailResponse:  # noqa: ANN401
        return await self.client.get_post(params["id"])

    async def _fetch_categories(self, _params: Any) -> list[CategoryResponse]:  # noqa: ANN401
        return await self.client.list_categories()

    def _post_targets(self, post_id: int) -> list[QueryTarget]:
        return [
            QueryTarget(POSTS_LIST),
            QueryTarget(POSTS_COUNTS),
            QueryTarget(POSTS_BY_ID, {"id": post_id}),
        ]

    def _cached_post(self, post_id: int) -> PostResponse | None:
        """The post as currently cached, from its detail entry or any listing."""
        detail = self.cache.peek(self.post_key(post_id))
        if detail is not None:
            return detail
        for _key, page in self.cache.entries(POSTS_LIST):
            for item in page.items:
                if item.id == post_id:
                    return item
        return None

    def _categories_for(self, category_ids: Iterable[int]) -> list[CategorySummary]:
        """
        Summaries for ``category_ids`` from the cached category list and posts.

        Ids not cached anywhere are left out until the refetch fills them in.
        Ordered by id, as the server attaches them.
        """
        known: dict[int, CategorySummary] = {}
        for category in self.cache.peek(self.categories_key()) or []:
            known[category.id] = CategorySummary(
                id=category.id,
                name=category.name,
                slug=category.slug,
            )
        cached_posts = [
            *(item for _key, page in self.cache.entries(POSTS_LIST) for item in page.items),
            *(detail for _key, detail in self.cache.entries(POSTS_BY_ID)),
        ]
        for cached in cached_posts:
            for category in cached.categories:
                known.setdefault(category.id, category)
        return [known[cid] for cid in sorted(set(category_ids)) if cid in known]

    def _store_detail(self, post: PostResponse) -> None:
        key = self.post_key(post.id)
        if self.cache.peek(key) is not None:
            self.cache.write(key, _detail_from(post))
