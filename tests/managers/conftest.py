# tests/managers/conftest.py
"""In-memory blog API double and fixtures for the client-side cache tests."""

from asyncio import Event, sleep

from pytest import fixture

from inkpress.errors import NotFoundError
from inkpress.managers import PostReconciler, QueryCache, listing_accepts
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
from inkpress.utils import slugify, utc_now


async def settle(rounds: int = 10) -> None:
    """Let scheduled tasks run until they block."""
    for _ in range(rounds):
        await sleep(0)


class FakeBlogClient:
    """
    Stands in for `BlogClient` with an in-memory post table.

    ``mutation_gate`` and ``query_gate`` hold calls until they are set, so
    tests can observe the cache while a request is still outstanding.
    Query results are computed before waiting on the gate, like a response
    that is already on the wire.
    """

    def __init__(self) -> None:
        self.posts: dict[int, PostResponse] = {}
        self.categories: dict[int, CategoryResponse] = {}
        self.next_id = 1
        self.mutation_gate = Event()
        self.mutation_gate.set()
        self.query_gate = Event()
        self.query_gate.set()
        self.fail: Exception | None = None
        self.calls: list[str] = []

    def seed(
        self,
        title: str,
        *,
        published: bool = False,
        category_ids: list[int] | None = None,
    ) -> PostResponse:
        now = utc_now()
        post = PostResponse(
            id=self.next_id,
            title=title,
            slug=slugify(title),
            content=f"Body of {title}",
            published=published,
            created_at=now,
            updated_at=now,
            categories=self._summaries(category_ids or []),
        )
        self.posts[post.id] = post
        self.next_id += 1
        return post

    def seed_category(self, name: str) -> CategoryResponse:
        category = CategoryResponse(
            id=len(self.categories) + 1,
            name=name,
            slug=slugify(name),
            created_at=utc_now(),
        )
        self.categories[category.id] = category
        return category

    # Queries

    async def list_posts(self, params: PostListParams) -> PostPage:
        self.calls.append("list_posts")
        matching = [
            post
            for post in sorted(self.posts.values(), key=lambda p: p.id, reverse=True)
            if listing_accepts(params, post)
        ]
        page = PostPage(
            items=matching[params.offset : params.offset + params.limit],
            total=len(matching),
            page=params.page,
            limit=params.limit,
        )
        await self.query_gate.wait()
        return page

    async def get_counts(self) -> PostCounts:
        self.calls.append("get_counts")
        published = sum(post.published for post in self.posts.values())
        counts = PostCounts(
            total=len(self.posts),
            published=published,
            draft=len(self.posts) - published,
        )
        await self.query_gate.wait()
        return counts

    async def get_post(self, post_id: int) -> PostDetailResponse:
        self.calls.append("get_post")
        post = self._get(post_id)
        await self.query_gate.wait()
        detail = {**post.model_dump(), "category_ids": [c.id for c in post.categories]}
        return PostDetailResponse.model_validate(detail)

    async def list_categories(self) -> list[CategoryResponse]:
        self.calls.append("list_categories")
        await self.query_gate.wait()
        return sorted(self.categories.values(), key=lambda c: c.id, reverse=True)

    # Mutations

    async def create_post(self, post: PostCreate) -> PostResponse:
        await self._mutation("create_post")
        created = self.seed(post.title, published=post.published, category_ids=post.category_ids)
        return created

    async def update_post(self, post_id: int, changes: PostUpdate) -> PostResponse:
        await self._mutation("update_post")
        fields = changes.model_dump(exclude_unset=True, exclude={"category_ids"})
        if "title" in fields:
            fields["slug"] = slugify(fields["title"])
        if changes.category_ids is not None:
            fields["categories"] = self._summaries(changes.category_ids)
        updated = self._get(post_id).model_copy(update={**fields, "updated_at": utc_now()})
        self.posts[post_id] = updated
        return updated

    async def delete_post(self, post_id: int) -> None:
        await self._mutation("delete_post")
        self._get(post_id)
        del self.posts[post_id]

    async def toggle_published(self, post_id: int) -> PostResponse:
        await self._mutation("toggle_published")
        post = self._get(post_id)
        toggled = post.model_copy(update={"published": not post.published, "updated_at": utc_now()})
        self.posts[post_id] = toggled
        return toggled

    async def _mutation(self, name: str) -> None:
        self.calls.append(name)
        await self.mutation_gate.wait()
        if self.fail is not None:
            raise self.fail

    def _summaries(self, category_ids: list[int]) -> list[CategorySummary]:
        return [
            CategorySummary(id=c.id, name=c.name, slug=c.slug)
            for c in sorted(self.categories.values(), key=lambda c: c.id)
            if c.id in category_ids
        ]

    def _get(self, post_id: int) -> PostResponse:
        if post_id not in self.posts:
            mssg = f"Post with ID {post_id} not found"
            raise NotFoundError(mssg)
        return self.posts[post_id]


@fixture
def fake_client() -> FakeBlogClient:
    return FakeBlogClient()


@fixture
def cache() -> QueryCache:
    return QueryCache()


@fixture
def reconciler(fake_client: FakeBlogClient, cache: QueryCache) -> PostReconciler:
    return PostReconciler(fake_client, cache)  # pyrefly: ignore [bad-argument-type]
