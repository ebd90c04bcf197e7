"""Category repository for database operations."""

from logging import getLogger

from sqlalchemy import desc, select

from inkpress.configs import file_logger
from inkpress.errors.database import DuplicateEntryError
from inkpress.models import CategoryDB, PostCategoryDB
from inkpress.repositories.base import BaseRepository
from inkpress.schemas.category import CategoryCreate, CategoryUpdate

logger = file_logger(getLogger(__name__))


class CategoryRepository(BaseRepository[CategoryDB]):
    """Repository for Category database operations."""

    model = CategoryDB
    label = "Category"

    async def list_all(self) -> list[CategoryDB]:
        """Return every category, newest first."""
        statement = select(CategoryDB).order_by(
            desc(CategoryDB.created_at),  # pyrefly: ignore [bad-argument-type]
            desc(CategoryDB.id),  # pyrefly: ignore [bad-argument-type]
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def get_by_slug(self, slug: str) -> CategoryDB:
        """
        Get a category by slug.

        Raises:
            RecordNotFoundError: If no category has this slug
        """
        return await self.get_by_field_or_raise("slug", slug)

    async def get_by_post_id(self, post_id: int) -> list[CategoryDB]:
        """Categories attached to a post, ordered by ID."""
        statement = (
            select(CategoryDB)
            # pyrefly: ignore [bad-argument-type]
            .join(PostCategoryDB, PostCategoryDB.category_id == CategoryDB.id)
            # pyrefly: ignore [bad-argument-type]
            .where(PostCategoryDB.post_id == post_id)
            .order_by(CategoryDB.id)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def create(self, schema: CategoryCreate) -> CategoryDB:
        """
        Create a category, deriving a unique slug from its name.

        Raises:
            DuplicateEntryError: If the name is already taken
            ValidationError: If the name has no slug-able characters
        """
        if await self._check_exists_by_field("name", schema.name):
            raise DuplicateEntryError(detail=f"Category '{schema.name}' already exists")

        slug = await self._derive_slug(schema.name)
        category = await self._add_and_refresh(
            CategoryDB(name=schema.name, slug=slug, description=schema.description),
        )
        logger.info(f"Created category {category.id} with slug '{category.slug}'")
        return category

    async def update(self, category_id: int, schema: CategoryUpdate) -> CategoryDB:
        """
        Partially update a category; renaming re-derives the slug.

        Raises:
            RecordNotFoundError: If the category does not exist
            DuplicateEntryError: If the new name is already taken
        """
        category = await self.get_or_raise(category_id)
        fields = schema.model_dump(exclude_unset=True)

        name = fields.pop("name", None)
        if name is not None and name != category.name:
            if await self._check_exists_by_field("name", name, exclude_id=category_id):
                raise DuplicateEntryError(detail=f"Category '{name}' already exists")
            category.name = name
            category.slug = await self._derive_slug(name, exclude_id=category_id)

        if "description" in fields:
            category.description = fields["description"]

        return await self._add_and_refresh(category)

    async def delete(self, category_id: int) -> None:
        """
        Delete a category; links to posts cascade away, the posts stay.

        Raises:
            RecordNotFoundError: If the category does not exist
        """
        await self.delete_or_raise(category_id)
        logger.info(f"Deleted category {category_id}")
