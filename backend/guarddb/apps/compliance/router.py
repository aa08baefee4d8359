# backend/guarddb/apps/compliance/router.py

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from guarddb.apps.accounts.schemas import ApiResponse
from guarddb.database import get_read_db
from guarddb.repository import SqlAlchemyUnitOfWork
from guarddb.security import get_current_tenant_id
from . import schemas, services

router = APIRouter(prefix="/compliance", tags=["compliance"])


@router.get(
    "/summary",
    response_model=ApiResponse[schemas.ComplianceSummary],
    summary="Training and document compliance for the agency's guards",
)
def get_compliance_summary(
    supervisor_id: Optional[str] = Query(
        default=None,
        description="Only include guards reporting to this supervisor (user id).",
    ),
    db: Session = Depends(get_read_db),
    tenant_id: Optional[str] = Depends(get_current_tenant_id),
):
    """
    Scored compliance rollup.

    Each training type and document type becomes one item, classified as
    compliant / warning / non-compliant from the records' expiry dates.
    Items are ordered non-compliant first.
    """
    result = services.get_compliance_summary(
        SqlAlchemyUnitOfWork(db),
        tenant_id=tenant_id,
        supervisor_id=supervisor_id,
    )
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.message,
        )
    return result
