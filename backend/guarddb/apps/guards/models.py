# backend/guarddb/apps/guards/models.py

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from guarddb.database import Base
from guarddb.user_id import generate_user_id


class SecurityGuard(Base):
    """
    Guard on an agency's roster.

    user_id links the guard to a login account (mobile app access);
    supervisor_id is the user responsible for the guard and drives
    supervisor-scoped reports such as the compliance summary.
    """

    __tablename__ = "security_guards"
    __table_args__ = (
        UniqueConstraint("tenant_id", "guard_code", name="uq_security_guards_tenant_code"),
        Index("idx_security_guards_tenant_supervisor", "tenant_id", "supervisor_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_user_id)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    guard_code = Column(String(32), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    email = Column(String(100), nullable=True)
    phone_number = Column(String(20), nullable=False)
    joining_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    supervisor_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    training_records = relationship("TrainingRecord", back_populates="guard", lazy="selectin")
    documents = relationship("GuardDocument", back_populates="guard", lazy="selectin")

    def __repr__(self) -> str:
        return f"<SecurityGuard {self.tenant_id}:{self.guard_code}>"


class TrainingRecord(Base):
    __tablename__ = "training_records"
    __table_args__ = (
        Index("idx_training_records_tenant_active", "tenant_id", "is_active"),
    )

    id = Column(String(36), primary_key=True, default=generate_user_id)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    guard_id = Column(
        String(36),
        ForeignKey("security_guards.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    training_name = Column(String(200), nullable=True)
    training_type = Column(
        String(100),
        nullable=True,
        doc="Grouping key for compliance, e.g. 'Fire Safety', 'First Aid'",
    )
    training_date = Column(DateTime(timezone=True), nullable=True)
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(32), nullable=True)
    remarks = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    guard = relationship("SecurityGuard", back_populates="training_records")

    def __repr__(self) -> str:
        return f"<TrainingRecord {self.guard_id}:{self.training_type or self.training_name}>"


class GuardDocument(Base):
    __tablename__ = "guard_documents"

    id = Column(String(36), primary_key=True, default=generate_user_id)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    guard_id = Column(
        String(36),
        ForeignKey("security_guards.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    document_type = Column(
        String(100),
        nullable=True,
        doc="Grouping key for compliance, e.g. 'Police Verification', 'Aadhar'",
    )
    document_number = Column(String(100), nullable=True)
    file_path = Column(Text, nullable=True)
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)

    guard = relationship("SecurityGuard", back_populates="documents")

    def __repr__(self) -> str:
        return f"<GuardDocument {self.guard_id}:{self.document_type}>"
