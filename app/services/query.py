"""Small query helpers shared by the list endpoints."""
from typing import Any, List, Tuple

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

LIKE_ESCAPE = "\\"


async def paginate(db: AsyncSession, stmt: Select, skip: int, limit: int) -> Tuple[List[Any], int]:
    """
    Run ``stmt`` for one page and count the whole result.

    ``stmt`` should already carry its filters and ordering.
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar() or 0

    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all()), total


def like(search: str) -> str:
    """Substring pattern for ``ilike(..., escape=LIKE_ESCAPE)``; ``%`` and ``_`` in ``search`` match literally."""
    term = search.strip()
    for char in (LIKE_ESCAPE, "%", "_"):
        term = term.replace(char, LIKE_ESCAPE + char)
    return f"%{term}%"
