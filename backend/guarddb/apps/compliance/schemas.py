# backend/guarddb/apps/compliance/schemas.py

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel

ComplianceStatus = Literal["compliant", "warning", "non-compliant"]
ComplianceCategory = Literal["training", "document", "audit"]


class ComplianceItem(BaseModel):
    id: str
    title: str
    category: ComplianceCategory
    status: ComplianceStatus
    due_date: Optional[str] = None
    details: str
    affected_count: int = 0


class ComplianceSummary(BaseModel):
    compliant_count: int
    warning_count: int
    non_compliant_count: int
    overall_score_percent: int
    items: List[ComplianceItem]
