"""Folio (human-facing ticket number) allocation.

Folios are random fixed-width numbers, checked against both partitions and
retried on collision so no two orders ever share one.
"""

from __future__ import annotations

import logging
import secrets

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.errors import ValidationError
from app.models import ActiveWorkOrder, HistoricalWorkOrder

logger = logging.getLogger(__name__)

_settings = get_settings()


def random_folio(digits: int | None = None) -> int:
    digits = digits or _settings.folio.digits
    low = 10 ** (digits - 1)
    return low + secrets.randbelow(9 * low)


async def folio_in_use(db: AsyncSession, folio: int) -> bool:
    for model in (ActiveWorkOrder, HistoricalWorkOrder):
        result = await db.execute(select(model.id).where(model.folio == folio))
        if result.first() is not None:
            return True
    return False


async def allocate_folio(db: AsyncSession) -> int:
    """Return a folio not used by any order in either partition."""
    for attempt in range(_settings.folio.max_attempts):
        folio = random_folio()
        if not await folio_in_use(db, folio):
            return folio
        logger.info("Folio %s already taken (attempt %d)", folio, attempt + 1)
    raise ValidationError("No fue posible asignar un folio único.")
