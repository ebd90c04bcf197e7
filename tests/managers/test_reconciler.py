# tests/managers/test_reconciler.py
"""Tests for optimistic post mutations in inkpress/managers/reconciler.py."""

from asyncio import create_task, gather

import pytest
from pytest import mark

from inkpress.errors import ApiError
from inkpress.managers import PostReconciler, QueryCache, is_temporary_id
from inkpress.schemas import PostCounts, PostCreate, PostListParams, PostUpdate
from tests.managers.conftest import FakeBlogClient, settle


class TestCreate:
    """Tests for PostReconciler.create."""

    @mark.asyncio
    async def test_temporary_post_shown_until_server_answers(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test temporary post shown until server answers."""
        fake_client.seed("Existing", published=True)
        listing = reconciler.listing_key(reconciler.view)
        await reconciler.load_listing()
        await reconciler.load_counts()
        fake_client.mutation_gate.clear()

        task = create_task(
            reconciler.create(PostCreate(title="Fresh Post", content="Body", published=True)),
        )
        await settle()

        page = cache.peek(listing)
        assert [p.title for p in page.items] == ["Fresh Post", "Existing"]
        assert is_temporary_id(page.items[0].id)
        assert page.items[0].slug == "fresh-post"
        assert page.total == 2
        assert cache.peek(reconciler.counts_key()) == PostCounts(total=2, published=2, draft=0)

        fake_client.mutation_gate.set()
        created = await task

        assert [p.id for p in cache.peek(listing).items] == [created.id, 1]
        await cache.wait_idle()
        assert [p.id for p in cache.peek(listing).items] == [created.id, 1]
        assert not cache.is_stale(listing)

    @mark.asyncio
    async def test_draft_not_inserted_into_published_listing(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test draft not inserted into published listing."""
        published_view = PostListParams(published=True)
        await reconciler.load_listing(published_view)
        fake_client.mutation_gate.clear()

        task = create_task(reconciler.create(PostCreate(title="Draft", content="Body")))
        await settle()

        assert cache.peek(reconciler.listing_key(published_view)).items == []
        fake_client.mutation_gate.set()
        await task


    @mark.asyncio
    async def test_failure_reverts_to_empty_page(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test a rejected create removes the temporary post and restores totals."""
        listing = reconciler.listing_key(reconciler.view)
        await reconciler.load_listing()
        await reconciler.load_counts()
        assert (cache.peek(listing).items, cache.peek(listing).total) == ([], 0)

        fake_client.mutation_gate.clear()
        fake_client.fail = ApiError(500, "boom")
        task = create_task(
            reconciler.create(PostCreate(title="Doomed", content="Body", published=True)),
        )
        await settle()

        page = cache.peek(listing)
        assert len(page.items) == 1
        assert page.total == 1
        assert is_temporary_id(page.items[0].id)
        assert cache.peek(reconciler.counts_key()) == PostCounts(total=1, published=1, draft=0)

        fake_client.mutation_gate.set()
        with pytest.raises(ApiError):
            await task

        page = cache.peek(listing)
        assert (page.items, page.total) == ([], 0)
        assert cache.peek(reconciler.counts_key()) == PostCounts(total=0, published=0, draft=0)
        await cache.wait_idle()
        assert cache.peek(listing).total == 0

    @mark.asyncio
    async def test_temporary_post_carries_known_categories(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test the temporary post is labelled with categories already cached."""
        python = fake_client.seed_category("Python")
        web = fake_client.seed_category("Web")
        listing = reconciler.listing_key(reconciler.view)
        await reconciler.load_categories()
        await reconciler.load_listing()
        fake_client.mutation_gate.clear()

        task = create_task(
            reconciler.create(
                PostCreate(title="Typed", content="Body", category_ids=[web.id, python.id]),
            ),
        )
        await settle()

        item = cache.peek(listing).items[0]
        assert is_temporary_id(item.id)
        assert [c.name for c in item.categories] == ["Python", "Web"]

        fake_client.mutation_gate.set()
        created = await task
        await cache.wait_idle()
        assert [c.id for c in cache.peek(listing).items[0].categories] == [python.id, web.id]
        assert created.id == cache.peek(listing).items[0].id


class TestToggle:
    """Tests for PostReconciler.toggle_published."""

    @mark.asyncio
    async def test_failure_rolls_back(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test failure rolls back."""
        post = fake_client.seed("Hello")
        listing = reconciler.listing_key(reconciler.view)
        await reconciler.load_listing()
        await reconciler.load_counts()
        before = cache.peek(listing)

        fake_client.mutation_gate.clear()
        fake_client.fail = ApiError(500, "boom")
        task = create_task(reconciler.toggle_published(post.id))
        await settle()

        assert cache.peek(listing).items[0].published is True
        assert cache.peek(reconciler.counts_key()).published == 1

        fake_client.mutation_gate.set()
        with pytest.raises(ApiError):
            await task

        assert cache.peek(listing) is before
        await cache.wait_idle()
        assert cache.peek(listing) == before
        assert cache.peek(reconciler.counts_key()).published == 0

    @mark.asyncio
    async def test_success_updates_detail(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test success updates detail."""
        post = fake_client.seed("Hello")
        await reconciler.load_post(post.id)

        toggled = await reconciler.toggle_published(post.id)

        assert toggled.published is True
        assert cache.peek(reconciler.post_key(post.id)).published is True
        await cache.wait_idle()
        assert cache.peek(reconciler.post_key(post.id)).published is True

    @mark.asyncio
    async def test_same_post_toggles_serialize(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test same post toggles serialize."""
        post = fake_client.seed("Hello")
        listing = reconciler.listing_key(reconciler.view)
        await reconciler.load_listing()
        fake_client.mutation_gate.clear()

        first = create_task(reconciler.toggle_published(post.id))
        second = create_task(reconciler.toggle_published(post.id))
        await settle()

        assert cache.peek(listing).items[0].published is True
        assert fake_client.calls.count("toggle_published") == 1

        fake_client.mutation_gate.set()
        await gather(first, second)
        await cache.wait_idle()

        assert fake_client.calls.count("toggle_published") == 2
        assert fake_client.posts[post.id].published is False
        assert cache.peek(listing).items[0].published is False

    @mark.asyncio
    async def test_in_flight_fetch_does_not_overwrite(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test in flight fetch does not overwrite."""
        post = fake_client.seed("Hello")
        listing = reconciler.listing_key(reconciler.view)
        await reconciler.load_listing()

        # Response computed while the post is still a draft, delivered late
        fake_client.query_gate.clear()
        stale = create_task(cache.fetch(listing))
        await settle()

        await reconciler.toggle_published(post.id)
        assert cache.peek(listing).items[0].published is True

        fake_client.query_gate.set()
        await stale
        await cache.wait_idle()
        assert cache.peek(listing).items[0].published is True


class TestUpdate:
    """Tests for PostReconciler.update."""

    @mark.asyncio
    async def test_fields_applied_everywhere(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test fields applied everywhere."""
        post = fake_client.seed("Old Title")
        listing = reconciler.listing_key(reconciler.view)
        await reconciler.load_listing()
        await reconciler.load_post(post.id)
        fake_client.mutation_gate.clear()

        task = create_task(reconciler.update(post.id, PostUpdate(title="New Title")))
        await settle()

        item = cache.peek(listing).items[0]
        detail = cache.peek(reconciler.post_key(post.id))
        assert (item.title, item.slug) == ("New Title", "new-title")
        assert detail.title == "New Title"
        assert detail.content == post.content

        fake_client.mutation_gate.set()
        await task
        await cache.wait_idle()
        assert cache.peek(reconciler.post_key(post.id)).slug == "new-title"

    @mark.asyncio
    async def test_unpublish_leaves_published_listing(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test unpublish leaves published listing."""
        post = fake_client.seed("Hello", published=True)
        published_view = PostListParams(published=True)
        listing = reconciler.listing_key(published_view)
        await reconciler.load_listing(published_view)
        await reconciler.load_counts()
        fake_client.mutation_gate.clear()

        task = create_task(reconciler.update(post.id, PostUpdate(published=False)))
        await settle()

        assert cache.peek(listing).items == []
        assert cache.peek(listing).total == 0
        assert cache.peek(reconciler.counts_key()) == PostCounts(total=1, published=0, draft=1)

        fake_client.mutation_gate.set()
        await task
        await cache.wait_idle()
        assert cache.peek(listing).total == 0


    @mark.asyncio
    async def test_category_change_relabels_cached_copies(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test changed category ids and category labels stay in step."""
        python = fake_client.seed_category("Python")
        web = fake_client.seed_category("Web")
        post = fake_client.seed("Hello", category_ids=[python.id])
        listing = reconciler.listing_key(reconciler.view)
        await reconciler.load_listing()
        await reconciler.load_post(post.id)
        # "Web" is only known from the category list
        await reconciler.load_categories()
        fake_client.mutation_gate.clear()

        task = create_task(reconciler.update(post.id, PostUpdate(category_ids=[web.id])))
        await settle()

        detail = cache.peek(reconciler.post_key(post.id))
        assert detail.category_ids == [web.id]
        assert [c.name for c in detail.categories] == ["Web"]
        assert [c.name for c in cache.peek(listing).items[0].categories] == ["Web"]

        fake_client.mutation_gate.set()
        await task
        await cache.wait_idle()
        detail = cache.peek(reconciler.post_key(post.id))
        assert detail.category_ids == [web.id]
        assert [c.name for c in detail.categories] == ["Web"]

    @mark.asyncio
    async def test_unlinked_category_dropped_without_category_list(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test removing a category drops its label even when no category list is cached."""
        python = fake_client.seed_category("Python")
        web = fake_client.seed_category("Web")
        post = fake_client.seed("Hello", category_ids=[python.id, web.id])
        await reconciler.load_post(post.id)
        fake_client.mutation_gate.clear()

        task = create_task(reconciler.update(post.id, PostUpdate(category_ids=[python.id])))
        await settle()

        detail = cache.peek(reconciler.post_key(post.id))
        assert detail.category_ids == [python.id]
        assert [c.name for c in detail.categories] == ["Python"]

        fake_client.mutation_gate.set()
        await task


class TestDelete:
    """Tests for PostReconciler.delete."""

    @mark.asyncio
    async def test_removed_from_every_query(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test removed from every query."""
        keep = fake_client.seed("Keep")
        doomed = fake_client.seed("Doomed", published=True)
        listing = reconciler.listing_key(reconciler.view)
        await reconciler.load_listing()
        await reconciler.load_counts()
        await reconciler.load_post(doomed.id)
        fake_client.mutation_gate.clear()

        task = create_task(reconciler.delete(doomed.id))
        await settle()

        assert [p.id for p in cache.peek(listing).items] == [keep.id]
        assert cache.peek(listing).total == 1
        assert cache.peek(reconciler.counts_key()) == PostCounts(total=1, published=0, draft=1)
        assert cache.peek(reconciler.post_key(doomed.id)) is None

        fake_client.mutation_gate.set()
        await task
        await cache.wait_idle()
        assert [p.id for p in cache.peek(listing).items] == [keep.id]

    @mark.asyncio
    async def test_failed_delete_restores_detail(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test failed delete restores detail."""
        post = fake_client.seed("Hello")
        await reconciler.load_post(post.id)
        fake_client.fail = ApiError(500, "boom")

        with pytest.raises(ApiError):
            await reconciler.delete(post.id)

        assert cache.peek(reconciler.post_key(post.id)).id == post.id

    @mark.asyncio
    async def test_temporary_id_rejected(self, reconciler: PostReconciler) -> None:
        """Test temporary id rejected."""
        with pytest.raises(ValueError, match="has not been created"):
            await reconciler.delete(-5)

    @mark.asyncio
    async def test_full_page_refills_after_refetch(
        self,
        reconciler: PostReconciler,
        fake_client: FakeBlogClient,
        cache: QueryCache,
    ) -> None:
        """Test a delete shrinks a full page until the refetch pulls in the next post."""
        for n in range(23):
            fake_client.seed(f"Post {n + 1}")
        listing = reconciler.listing_key(reconciler.view)
        await reconciler.load_listing()
        page = cache.peek(listing)
        assert (len(page.items), page.total) == (9, 23)

        fake_client.mutation_gate.clear()
        task = create_task(reconciler.delete(20))
        await settle()

        page = cache.peek(listing)
        assert (len(page.items), page.total) == (8, 22)
        assert 20 not in [p.id for p in page.items]

        fake_client.mutation_gate.set()
        await task
        await cache.wait_idle()

        page = cache.peek(listing)
        assert [p.id for p in page.items] == [23, 22, 21, 19, 18, 17, 16, 15, 14]
        assert page.total == 22
