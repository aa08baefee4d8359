"""
Compliance rollup over guard training records and guard documents.

Records are bucketed by type and each bucket is classified on its
expiry dates:
- non-compliant: at least one record already expired
- warning:       none expired, at least one expiring within the window
- compliant:     everything else (including records without expiry)
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from guarddb.apps.accounts.schemas import ApiResponse
from guarddb.apps.guards import models as guard_models
from guarddb.repository import UnitOfWork
from . import schemas

logger = logging.getLogger(__name__)

EXPIRING_SOON_DAYS = 30
DUE_DATE_FORMAT = "%b %d, %Y"

STATUS_COMPLIANT = "compliant"
STATUS_WARNING = "warning"
STATUS_NON_COMPLIANT = "non-compliant"

_STATUS_RANK = {
    STATUS_NON_COMPLIANT: 0,
    STATUS_WARNING: 1,
    STATUS_COMPLIANT: 2,
}

TENANT_CONTEXT_MISSING = "Tenant context not found"
SUMMARY_MESSAGE = "Compliance summary retrieved"


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _group(records: Iterable, key_func) -> "OrderedDict[str, List]":
    groups: "OrderedDict[str, List]" = OrderedDict()
    for record in records:
        groups.setdefault(key_func(record), []).append(record)
    return groups


def _training_key(record: guard_models.TrainingRecord) -> str:
    return record.training_type or record.training_name or "Other"


def _document_key(document: guard_models.GuardDocument) -> str:
    return document.document_type or "Document"


def build_item(
    *,
    key: str,
    category: str,
    expiry_dates: Sequence[Optional[datetime]],
    now: datetime,
) -> schemas.ComplianceItem:
    """
    Pure classification of one bucket. `expiry_dates` holds one entry per
    record; records without an expiry never count against compliance.
    """
    window_end = now + timedelta(days=EXPIRING_SOON_DAYS)
    dates = [d for d in (_as_utc(v) for v in expiry_dates) if d is not None]

    expired = sum(1 for d in dates if d < now)
    expiring_soon = sum(1 for d in dates if now <= d <= window_end)

    due_date: Optional[str] = None
    if expired:
        status = STATUS_NON_COMPLIANT
        affected = expired
        if category == "training":
            details = f"{expired} guard(s) have expired {key}"
        else:
            details = f"{expired} document(s) expired for {key}"
    elif expiring_soon:
        status = STATUS_WARNING
        affected = expiring_soon
        due_date = min(dates).strftime(DUE_DATE_FORMAT)
        if category == "training":
            details = f"{expiring_soon} guard(s) have {key} expiring soon"
        else:
            details = f"{expiring_soon} document(s) for {key} expiring soon"
    else:
        status = STATUS_COMPLIANT
        affected = 0
        if category == "training":
            details = f"All guards with {key} are valid"
        else:
            details = f"All {key} documents valid"

    return schemas.ComplianceItem(
        id=f"{category}-{key.replace(' ', '-')}",
        title=key,
        category=category,
        status=status,
        due_date=due_date,
        details=details,
        affected_count=affected,
    )


def overview_item() -> schemas.ComplianceItem:
    return schemas.ComplianceItem(
        id="overview",
        title="Compliance Overview",
        category="audit",
        status=STATUS_COMPLIANT,
        details="No training or document data to assess. Add guards, training records and documents.",
        affected_count=0,
    )


def summarise(items: List[schemas.ComplianceItem]) -> schemas.ComplianceSummary:
    """Counts, score and ordering for a list of classified items."""
    counts: Dict[str, int] = {status: 0 for status in _STATUS_RANK}
    for item in items:
        counts[item.status] += 1

    total = len(items)
    score = round(counts[STATUS_COMPLIANT] * 100 / total) if total else 100

    ordered = sorted(items, key=lambda item: (_STATUS_RANK[item.status], item.title))
    return schemas.ComplianceSummary(
        compliant_count=counts[STATUS_COMPLIANT],
        warning_count=counts[STATUS_WARNING],
        non_compliant_count=counts[STATUS_NON_COMPLIANT],
        overall_score_percent=score,
        items=ordered,
    )


def get_compliance_summary(
    uow: UnitOfWork,
    *,
    tenant_id: Optional[str],
    supervisor_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ApiResponse[schemas.ComplianceSummary]:
    if not tenant_id:
        return ApiResponse.fail(TENANT_CONTEXT_MISSING)

    now = _as_utc(now) or datetime.now(timezone.utc)

    guard_criteria = [guard_models.SecurityGuard.tenant_id == tenant_id]
    if supervisor_id:
        guard_criteria.append(guard_models.SecurityGuard.supervisor_id == supervisor_id)
    guard_ids = sorted({g.id for g in uow.find(guard_models.SecurityGuard, *guard_criteria)})

    items: List[schemas.ComplianceItem] = []
    if guard_ids:
        training = uow.find(
            guard_models.TrainingRecord,
            guard_models.TrainingRecord.tenant_id == tenant_id,
            guard_models.TrainingRecord.is_active.is_(True),
            guard_models.TrainingRecord.guard_id.in_(guard_ids),
        )
        for key, records in _group(training, _training_key).items():
            items.append(
                build_item(
                    key=key,
                    category="training",
                    expiry_dates=[r.expiry_date for r in records],
                    now=now,
                )
            )

        documents = uow.find(
            guard_models.GuardDocument,
            guard_models.GuardDocument.guard_id.in_(guard_ids),
        )
        for key, records in _group(documents, _document_key).items():
            items.append(
                build_item(
                    key=key,
                    category="document",
                    expiry_dates=[d.expiry_date for d in records],
                    now=now,
                )
            )

    if not items:
        items.append(overview_item())

    summary = summarise(items)
    logger.info(
        "Compliance summary tenant=%s supervisor=%s compliant=%d warning=%d non_compliant=%d score=%d",
        tenant_id,
        supervisor_id,
        summary.compliant_count,
        summary.warning_count,
        summary.non_compliant_count,
        summary.overall_score_percent,
    )
    return ApiResponse.ok(summary, SUMMARY_MESSAGE)
