#!/usr/bin/env python3
"""
Seed a demo agency for local development.

The agency is created through the normal registration workflow, then a
demo guard (with a GUARD login) is added so the mobile app can be tried
right away. Running it twice is a no-op.
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

from guarddb.database import Base, SessionLocal, engine
from guarddb.repository import SqlAlchemyUnitOfWork
from guarddb.security import get_password_hash
from guarddb.apps.accounts import catalog
from guarddb.apps.accounts import models as account_models
from guarddb.apps.accounts import schemas as account_schemas
from guarddb.apps.accounts import services as account_services
from guarddb.apps.guards import models as guard_models

logger = logging.getLogger(__name__)

DEMO_REGISTRATION_NUMBER = "REG001"
DEMO_AGENCY_EMAIL = "admin@demoagency.com"
DEMO_GUARD_CODE = "GRD0001"


def seed_demo(
    db: Session,
    *,
    admin_password: str,
    guard_password: str,
    hash_password: Optional[Callable[[str], str]] = None,
) -> Optional[account_models.Tenant]:
    """Return the new demo tenant, or None when it already exists."""
    hash_password = hash_password or get_password_hash

    existing = (
        db.query(account_models.Tenant)
        .filter(account_models.Tenant.registration_number == DEMO_REGISTRATION_NUMBER)
        .first()
    )
    if existing:
        logger.info("Demo agency already present (tenant %s)", existing.id)
        return None

    uow = SqlAlchemyUnitOfWork(db)
    result = account_services.register_agency(
        uow,
        account_schemas.RegisterAgencyRequest(
            company_name="Demo Security Agency",
            registration_number=DEMO_REGISTRATION_NUMBER,
            email=DEMO_AGENCY_EMAIL,
            phone="1234567890",
            address="123 Demo Street",
            city="Demo City",
            state="Demo State",
            pin_code="123456",
            admin_user_name="admin",
            admin_email=DEMO_AGENCY_EMAIL,
            admin_password=admin_password,
            admin_first_name="System",
            admin_last_name="Administrator",
            admin_phone_number="1234567890",
        ),
        hash_password=hash_password,
    )
    if not result.success:
        raise RuntimeError(f"Demo agency registration failed: {result.message}")

    tenant_id = result.data.tenant_id
    guard_role = uow.first(
        account_models.Role,
        account_models.Role.tenant_id == tenant_id,
        account_models.Role.code == catalog.ROLE_GUARD,
    )
    now = datetime.now(timezone.utc)

    with uow.transaction():
        guard_user = account_models.User(
            tenant_id=tenant_id,
            user_name="guard",
            email="guard@demoagency.com",
            hashed_password=hash_password(guard_password),
            first_name="Demo",
            last_name="Guard",
            phone_number="9876543210",
            is_active=True,
        )
        uow.add(guard_user)
        uow.flush()
        uow.add(account_models.UserRole(user_id=guard_user.id, role_id=guard_role.id))

        guard = guard_models.SecurityGuard(
            tenant_id=tenant_id,
            guard_code=DEMO_GUARD_CODE,
            first_name="Demo",
            last_name="Guard",
            email="guard@demoagency.com",
            phone_number="9876543210",
            joining_date=now,
            is_active=True,
            user_id=guard_user.id,
            supervisor_id=result.data.admin_user_id,
        )
        uow.add(guard)
        uow.flush()

        uow.add(
            guard_models.TrainingRecord(
                tenant_id=tenant_id,
                guard_id=guard.id,
                training_name="Basic Security Induction",
                training_type="Induction",
                training_date=now,
                expiry_date=now + timedelta(days=365),
                is_active=True,
            )
        )
        uow.add(
            guard_models.GuardDocument(
                tenant_id=tenant_id,
                guard_id=guard.id,
                document_type="Police Verification",
                expiry_date=now + timedelta(days=20),
            )
        )

    logger.info("Seeded demo agency %s", tenant_id)
    return db.get(account_models.Tenant, tenant_id)


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the demo security agency.")
    parser.add_argument("--admin-password", required=True, help="Password for the 'admin' user.")
    parser.add_argument("--guard-password", required=True, help="Password for the 'guard' user.")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before seeding (local SQLite databases).",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    if args.create_tables:
        Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        tenant = seed_demo(
            session,
            admin_password=args.admin_password,
            guard_password=args.guard_password,
        )
        if tenant is None:
            print("Demo agency already exists; nothing to do.")
        else:
            print("OK:", tenant.company_name, "tenant_id =", tenant.id)
    finally:
        session.close()


if __name__ == "__main__":
    main()
