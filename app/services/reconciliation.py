"""Identity reconciliation over both work order partitions.

Older orders were written without ``owner_id`` (and sometimes without
``technician_id``), which hides them from the people who created them. This
pass fills those ids from the personnel directory, drops the deprecated
``supervisor_id`` and refreshes cached client and technician names from
their ids. It is idempotent and commits everything in one transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, asdict

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import crud
from app.errors import AuthorizationError
from app.models import ActiveWorkOrder, HistoricalWorkOrder
from app.models.base import utcnow
from app.services.auth import AuthContext

logger = logging.getLogger(__name__)


@dataclass
class RecordCorrection:
    order_id: str
    folio: int
    partition: str
    changes: dict


@dataclass
class ReconciliationReport:
    scanned: int = 0
    corrections: list[RecordCorrection] = field(default_factory=list)
    unresolved: list[dict] = field(default_factory=list)
    dry_run: bool = False

    @property
    def updated(self) -> int:
        return len(self.corrections)

    def as_dict(self) -> dict:
        data = asdict(self)
        data["updated"] = self.updated
        return data


class _NameResolver:
    """Personnel and client lookups, cached per pass."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._cache: dict[str, list[str]] = {}
        self._people: dict[str, str | None] = {}
        self._clients: dict[str, str | None] = {}

    async def resolve(self, name: str) -> str | None:
        if name not in self._cache:
            people = await crud.find_personnel_by_name(self.db, name)
            self._cache[name] = [p.id for p in people]
        matches = self._cache[name]
        return matches[0] if len(matches) == 1 else None

    async def person_name(self, person_id: str) -> str | None:
        if person_id not in self._people:
            person = await crud.get_person(self.db, person_id)
            self._people[person_id] = person.full_name if person else None
        return self._people[person_id]

    async def client_name(self, client_id: str) -> str | None:
        if client_id not in self._clients:
            client = await crud.get_client(self.db, client_id)
            self._clients[client_id] = client.display_name if client else None
        return self._clients[client_id]


async def _corrections_for(order, partition: str, resolver: _NameResolver, report: ReconciliationReport) -> dict:
    changes: dict = {}

    if order.supervisor_id is not None:
        changes["supervisor_id"] = None

    if not order.owner_id:
        if order.technician_id:
            changes["owner_id"] = order.technician_id
        elif order.tech_name:
            owner = await resolver.resolve(order.tech_name)
            if owner:
                changes["owner_id"] = owner
            else:
                logger.info("No unique person named %r for folio %s (owner)", order.tech_name, order.folio)
                report.unresolved.append(
                    {"order_id": order.id, "folio": order.folio, "field": "owner_id", "name": order.tech_name}
                )

    if partition == "active" and not order.technician_id and order.tech_name:
        technician = await resolver.resolve(order.tech_name)
        if technician:
            changes["technician_id"] = technician
        else:
            logger.info("No unique person named %r for folio %s (technician)", order.tech_name, order.folio)
            report.unresolved.append(
                {"order_id": order.id, "folio": order.folio, "field": "technician_id", "name": order.tech_name}
            )

    if order.client_id:
        name = await resolver.client_name(order.client_id)
        if name and name != order.client_name:
            changes["client_name"] = name

    technician_id = changes.get("technician_id", order.technician_id)
    if technician_id:
        name = await resolver.person_name(technician_id)
        if name and name != order.tech_name:
            changes["tech_name"] = name

    return changes


async def reconcile_identities(db: AsyncSession, auth: AuthContext, dry_run: bool = False) -> ReconciliationReport:
    """Backfill owner/technician ids and refresh cached names on both partitions.

    Only admins may run it; the role is checked before anything is read.
    With ``dry_run`` the report is computed and nothing is written.
    """
    if not auth.is_admin:
        raise AuthorizationError("Solo los administradores pueden ejecutar la reconciliación.")

    report = ReconciliationReport(dry_run=dry_run)
    resolver = _NameResolver(db)
    stamp = utcnow()

    for model, partition in ((HistoricalWorkOrder, "historical"), (ActiveWorkOrder, "active")):
        result = await db.execute(select(model).order_by(model.folio))
        for order in result.scalars().all():
            report.scanned += 1
            changes = await _corrections_for(order, partition, resolver, report)
            if not changes:
                continue
            report.corrections.append(RecordCorrection(order.id, order.folio, partition, dict(changes)))
            if not dry_run:
                for key, value in changes.items():
                    setattr(order, key, value)
                order.migrated_at = stamp

    if dry_run or not report.corrections:
        logger.info("Reconciliation scanned %d records, %d to update (dry_run=%s)",
                    report.scanned, report.updated, dry_run)
        return report

    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Reconciliation rolled back")
        raise

    logger.info("Reconciliation updated %d of %d records by %s", report.updated, report.scanned, auth.user_id)
    return report
