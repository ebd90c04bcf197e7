"""Batched loading of one-to-many related rows for a page of parents."""

from collections import defaultdict
from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute
from sqlmodel import SQLModel


async def attach_related[TargetT: SQLModel](
    session: AsyncSession,
    parent_ids: Sequence[int],
    link_parent: InstrumentedAttribute[Any],
    link_target: InstrumentedAttribute[Any],
    target: type[TargetT],
) -> dict[int, list[TargetT]]:
    """
    Fetch related rows for every parent in one query and group them in memory.

    Replaces one query per parent (N+1) with a single join through the
    association table.

    Args:
        session: Async database session.
        parent_ids: Parent primary keys on the current page.
        link_parent: Association column pointing at the parent.
        link_target: Association column pointing at the target.
        target: Target model; its ``id`` is joined against ``link_target``.

    Returns:
        dict[int, list[TargetT]]: Parent id to related rows, ordered by target id.
        Parents without related rows are absent.
    """
    if not parent_ids:
        return {}

    target_id = getattr(target, "id")  # noqa: B009
    statement = (
        select(link_parent, target)
        .join(target, link_target == target_id)
        .where(link_parent.in_(set(parent_ids)))
        .order_by(link_parent, target_id)
    )
    result = await session.execute(statement)

    grouped: defaultdict[int, list[TargetT]] = defaultdict(list)
    for parent_id, related in result.all():
        grouped[parent_id].append(related)
    return dict(grouped)
