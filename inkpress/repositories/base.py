"""Base repository for database operations."""

from datetime import datetime
from typing import Any

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from inkpress.errors.database import (
    DatabaseConnectionError,
    RecordNotFoundError,
    translate_integrity_error,
)
from inkpress.errors.validation import ValidationError
from inkpress.utils import MAX_SLUG_LENGTH, next_free_slug, slugify

type FilterValue = str | int | float | bool | datetime | None


class BaseRepository[ModelT: SQLModel]:
    """
    Base repository implementing common lookup and persistence helpers.

    Attributes:
        model: The SQLModel database model type.
        label: Human readable entity name used in error messages.
        id_field: The name of the primary key field (default: "id").
    """

    model: type[ModelT]
    label: str = "Record"
    id_field: str = "id"

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize repository with database session.

        Args:
            session: Async database session
        """
        self.session = session

    async def get_by_id(self, record_id: int) -> ModelT | None:
        """
        Get a record by its ID.

        Args:
            record_id: Record ID

        Returns:
            ModelT | None: Record if found, None otherwise
        """
        id_column = getattr(self.model, self.id_field)
        statement = select(self.model).where(id_column == record_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_field(
        self,
        field_name: str,
        value: FilterValue,
    ) -> ModelT | None:
        """
        Get a record by a specific field value.

        Args:
            field_name: Name of the field to search
            value: Value to search for

        Returns:
            ModelT | None: Record if found, None otherwise
        """
        field = getattr(self.model, field_name)
        statement = select(self.model).where(field == value)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_or_raise(self, record_id: int) -> ModelT:
        """
        Get a record by ID or raise an exception if not found.

        Raises:
            RecordNotFoundError: If record is not found
        """
        record = await self.get_by_id(record_id)
        if record is None:
            raise RecordNotFoundError.for_id(self.label, record_id)
        return record

    async def get_by_field_or_raise(self, field_name: str, value: FilterValue) -> ModelT:
        """
        Get a record by field value or raise if not found.

        Raises:
            RecordNotFoundError: If record is not found
        """
        record = await self.get_by_field(field_name, value)
        if record is None:
            raise RecordNotFoundError.for_field(self.label, field_name, value)
        return record

    async def delete_or_raise(self, record_id: int) -> None:
        """
        Hard delete a record in a single statement.

        Dependent rows are removed by the store's ``ON DELETE CASCADE``.

        Raises:
            RecordNotFoundError: If no row matched
        """
        id_column = getattr(self.model, self.id_field)
        statement = delete(self.model).where(id_column == record_id).returning(id_column)
        result = await self.session.execute(statement)
        if result.scalar_one_or_none() is None:
            raise RecordNotFoundError.for_id(self.label, record_id)

    async def _add_and_refresh(self, record: ModelT) -> ModelT:
        """
        Add a record and refresh it from the database with error handling.

        Raises:
            DuplicateEntryError: If a unique constraint is violated
            DatabaseError: For other database errors
        """
        try:
            self.session.add(record)
            await self.session.flush()
            await self.session.refresh(record)
            return record
        except IntegrityError as e:
            await self.session.rollback()
            raise translate_integrity_error(e) from e
        except Exception as e:
            await self.session.rollback()
            raise DatabaseConnectionError(
                detail=f"Failed to save record: {e}",
            ) from e

    async def _check_exists_by_field(
        self,
        field_name: str,
        value: FilterValue,
        exclude_id: int | None = None,
    ) -> bool:
        """
        Check if a record exists with a specific field value.

        Args:
            field_name: Name of the field to check
            value: Value to check for
            exclude_id: Optional ID to exclude from check (for updates)

        Returns:
            bool: True if record exists, False otherwise
        """
        field = getattr(self.model, field_name)
        statement = select(1).where(field == value)

        if exclude_id is not None:
            id_column = getattr(self.model, self.id_field)
            statement = statement.where(id_column != exclude_id)

        result = await self.session.execute(statement.limit(1))
        return result.scalar_one_or_none() is not None

    async def _derive_slug(self, source: str, exclude_id: int | None = None) -> str:
        """
        Slugify ``source`` and disambiguate against slugs already stored.

        Collisions get the smallest free numeric suffix (``-2``, ``-3``, ...).
        The unique constraint still rejects a concurrent insert that races
        past this check.

        Raises:
            ValidationError: If ``source`` has no slug-able characters
        """
        base = slugify(source, max_length=MAX_SLUG_LENGTH)
        if not base:
            mssg = f"Could not generate valid slug from '{source}'"
            raise ValidationError(mssg)

        slug_column = getattr(self.model, "slug")  # noqa: B009
        statement = select(slug_column).where(
            or_(slug_column == base, slug_column.startswith(f"{base}-", autoescape=True)),
        )
        if exclude_id is not None:
            id_column = getattr(self.model, self.id_field)
            statement = statement.where(id_column != exclude_id)

        result = await self.session.execute(statement)
        taken: set[Any] = set(result.scalars().all())
        return next_free_slug(base, taken)
