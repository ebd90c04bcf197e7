"""Post repository: the listing query service and post mutations."""

from collections.abc import Sequence
from logging import getLogger

from sqlalchemy import delete, desc, func, insert, not_, select, update

from inkpress.configs import file_logger
from inkpress.errors.database import RecordNotFoundError
from inkpress.errors.validation import ValidationError
from inkpress.models import CategoryDB, PostCategoryDB, PostDB
from inkpress.repositories.base import BaseRepository
from inkpress.repositories.filters import build_post_predicates
from inkpress.repositories.related import attach_related
from inkpress.schemas.category import CategorySummary
from inkpress.schemas.listing import PostCounts, PostListParams, PostPage, RecentParams
from inkpress.schemas.post import (
    PostCreate,
    PostDetailResponse,
    PostResponse,
    PostUpdate,
    RecentPost,
)
from inkpress.utils import utc_now

logger = file_logger(getLogger(__name__))


def to_post_response(post: PostDB, categories: Sequence[CategoryDB]) -> PostResponse:
    """Combine a post row with its attached categories."""
    return PostResponse.model_validate(
        {
            **post.model_dump(),
            "categories": [CategorySummary.model_validate(c) for c in categories],
        },
    )


class PostRepository(BaseRepository[PostDB]):
    """
    Repository for Post database operations.

    Reads never issue one query per post: categories for a whole page are
    attached with a single batched lookup.
    """

    model = PostDB
    label = "Post"

    async def list_posts(self, params: PostListParams) -> PostPage:
        """
        Return one page of posts matching the filters, newest first.

        The total is counted with the same predicates as the page query.
        Paging past the last page yields an empty page with the true total.

        Args:
            params: Normalized listing parameters

        Returns:
            PostPage: Page of posts with the total number of matches
        """
        predicates = build_post_predicates(params)

        count_statement = select(func.count()).select_from(PostDB).where(*predicates)
        total = (await self.session.execute(count_statement)).scalar_one()

        page_statement = (
            select(PostDB)
            .where(*predicates)
            # pyrefly: ignore [bad-argument-type]
            .order_by(desc(PostDB.created_at), desc(PostDB.id))
            .offset(params.offset)
            .limit(params.limit)
        )
        posts = list((await self.session.execute(page_statement)).scalars().all())

        items = await self._with_categories(posts)
        return PostPage(items=items, total=total, page=params.page, limit=params.limit)

    async def get_recent(self, params: RecentParams) -> list[RecentPost]:
        """
        Lightweight projection of the most recent posts.

        Args:
            params: Limit and published filter

        Returns:
            list[RecentPost]: At most ``params.limit`` posts, newest first
        """
        statement = (
            select(
                PostDB.id,
                PostDB.title,
                PostDB.slug,
                PostDB.created_at,
                PostDB.cover_image_url,
                PostDB.author,
            )
            .where(PostDB.published.is_(params.published))  # pyrefly: ignore [missing-attribute]
            # pyrefly: ignore [bad-argument-type]
            .order_by(desc(PostDB.created_at), desc(PostDB.id))
            .limit(params.limit)
        )
        rows = (await self.session.execute(statement)).mappings().all()
        return [RecentPost.model_validate(dict(row)) for row in rows]

    async def get_counts(self) -> PostCounts:
        """Total, published and draft counts from one aggregate statement."""
        statement = select(
            func.count(PostDB.id),
            # pyrefly: ignore [missing-attribute]
            func.count(PostDB.id).filter(PostDB.published.is_(True)),
        )
        total, published = (await self.session.execute(statement)).one()
        return PostCounts(total=total, published=published, draft=total - published)

    async def get_detail(self, post_id: int) -> PostDetailResponse:
        """
        Get a post by ID with categories and flattened category IDs.

        Raises:
            RecordNotFoundError: If the post does not exist
        """
        post = await self.get_or_raise(post_id)
        response = (await self._with_categories([post]))[0]
        return PostDetailResponse.model_validate(
            {
                **response.model_dump(),
                "category_ids": [c.id for c in response.categories],
            },
        )

    async def get_by_slug(self, slug: str) -> PostResponse:
        """
        Get a post by its slug.

        Raises:
            RecordNotFoundError: If no post has this slug
        """
        post = await self.get_by_field_or_raise("slug", slug)
        return (await self._with_categories([post]))[0]

    async def create(self, schema: PostCreate) -> PostResponse:
        """
        Create a post, deriving a unique slug from its title.

        Args:
            schema: Validated post payload

        Returns:
            PostResponse: The stored post with its categories

        Raises:
            ValidationError: If the title has no slug-able characters or a
                category does not exist
            DuplicateEntryError: If a concurrent insert took the same slug
        """
        slug = await self._derive_slug(schema.title)
        category_ids = list(dict.fromkeys(schema.category_ids or []))
        await self._ensure_categories_exist(category_ids)

        now = utc_now()
        post = await self._add_and_refresh(
            PostDB(
                title=schema.title,
                slug=slug,
                content=schema.content,
                author=schema.author,
                cover_image_url=schema.cover_image_url,
                published=schema.published,
                created_at=now,
                updated_at=now,
            ),
        )
        if post.id is None:
            mssg = "Post was not assigned an ID"
            raise RuntimeError(mssg)

        await self._link_categories(post.id, category_ids)
        logger.info(f"Created post {post.id} with slug '{post.slug}'")
        return (await self._with_categories([post]))[0]

    async def update(self, post_id: int, schema: PostUpdate) -> PostResponse:
        """
        Apply a partial update.

        Only fields present in the payload are written. A new title
        re-derives the slug; a present ``categoryIds`` replaces all links.
        ``updated_at`` always moves forward.

        Raises:
            RecordNotFoundError: If the post does not exist
            ValidationError: If a category does not exist
        """
        post = await self.get_or_raise(post_id)

        fields = schema.model_dump(exclude_unset=True)
        category_ids = fields.pop("category_ids", None)
        if category_ids is not None:
            category_ids = list(dict.fromkeys(category_ids))
            await self._ensure_categories_exist(category_ids)

        # Required columns cannot be cleared by an explicit null
        for required in ("title", "content", "published"):
            if fields.get(required, "") is None:
                fields.pop(required)

        if "title" in fields:
            fields["slug"] = await self._derive_slug(fields["title"], exclude_id=post_id)

        for field, value in fields.items():
            setattr(post, field, value)
        post.updated_at = utc_now()
        post = await self._add_and_refresh(post)

        if category_ids is not None:
            await self.session.execute(
                # pyrefly: ignore [bad-argument-type]
                delete(PostCategoryDB).where(PostCategoryDB.post_id == post_id),
            )
            await self._link_categories(post_id, category_ids)

        return (await self._with_categories([post]))[0]

    async def delete(self, post_id: int) -> None:
        """
        Hard delete a post; its category links cascade away.

        Raises:
            RecordNotFoundError: If the post does not exist
        """
        await self.delete_or_raise(post_id)
        logger.info(f"Deleted post {post_id}")

    async def toggle_published(self, post_id: int) -> PostResponse:
        """
        Flip ``published`` in a single atomic statement.

        The new value is computed by the store from the current row, so two
        concurrent toggles always flip twice.

        Raises:
            RecordNotFoundError: If the post does not exist
        """
        statement = (
            update(PostDB)
            # pyrefly: ignore [bad-argument-type]
            .where(PostDB.id == post_id)
            .values(published=not_(PostDB.published), updated_at=utc_now())
            .returning(PostDB.id)
            .execution_options(synchronize_session=False)
        )
        toggled = (await self.session.execute(statement)).scalar_one_or_none()
        if toggled is None:
            raise RecordNotFoundError.for_id(self.label, post_id)

        post = await self.session.get(PostDB, post_id, populate_existing=True)
        if post is None:
            raise RecordNotFoundError.for_id(self.label, post_id)
        return (await self._with_categories([post]))[0]

    async def _with_categories(self, posts: Sequence[PostDB]) -> list[PostResponse]:
        post_ids = [post.id for post in posts if post.id is not None]
        categories = await attach_related(
            self.session,
            post_ids,
            PostCategoryDB.post_id,  # pyrefly: ignore [bad-argument-type]
            PostCategoryDB.category_id,  # pyrefly: ignore [bad-argument-type]
            CategoryDB,
        )
        return [to_post_response(post, categories.get(post.id or 0, [])) for post in posts]

    async def _ensure_categories_exist(self, category_ids: Sequence[int]) -> None:
        if not category_ids:
            return
        statement = select(CategoryDB.id).where(
            CategoryDB.id.in_(category_ids),  # pyrefly: ignore [missing-attribute]
        )
        found = set((await self.session.execute(statement)).scalars().all())
        missing = sorted(set(category_ids) - found)
        if missing:
            mssg = f"Unknown category IDs: {missing}"
            raise ValidationError(mssg)

    async def _link_categories(self, post_id: int, category_ids: Sequence[int]) -> None:
        if not category_ids:
            return
        await self.session.execute(
            insert(PostCategoryDB),
            [{"post_id": post_id, "category_id": cid} for cid in category_ids],
        )
