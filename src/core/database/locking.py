"""Per-row write serialization helpers.

Rows that aggregate a ledger (admissions) are written with two guards:
``SELECT ... FOR UPDATE`` while the request holds the row, and a
programmatic version counter checked by the UPDATE itself. The second
guard is what catches conflicts on backends that ignore row locks (SQLite).
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from src.core.exceptions import ConcurrencyConflictError

logger = logging.getLogger(__name__)


def bump_version(entity: Any) -> None:
    """Increment the version counter so the next flush issues a checked UPDATE."""
    entity.version = (entity.version or 0) + 1


async def commit_serialized(session: AsyncSession, resource: str, identifier: Any) -> None:
    """Commit, translating an optimistic-lock violation into ConcurrencyConflictError."""
    try:
        await session.commit()
    except StaleDataError as exc:
        await session.rollback()
        logger.warning("Concurrent write rejected for %s id=%s: %s", resource, identifier, exc)
        raise ConcurrencyConflictError(resource, identifier) from exc


async def flush_serialized(session: AsyncSession, resource: str, identifier: Any) -> None:
    """Flush pending writes, with the same conflict translation as ``commit_serialized``."""
    try:
        await session.flush()
    except StaleDataError as exc:
        await session.rollback()
        logger.warning("Concurrent write rejected for %s id=%s: %s", resource, identifier, exc)
        raise ConcurrencyConflictError(resource, identifier) from exc
