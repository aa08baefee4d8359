from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"

from guarddb.database import Base  # noqa: E402
from guarddb.apps.accounts import models as account_models  # noqa: E402
from guarddb.apps.guards import models as guard_models  # noqa: E402


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(
        bind=engine,
        tables=[
            account_models.Tenant.__table__,
            account_models.Department.__table__,
            account_models.User.__table__,
            account_models.Role.__table__,
            account_models.Permission.__table__,
            account_models.UserRole.__table__,
            account_models.RolePermission.__table__,
            account_models.Menu.__table__,
            account_models.SubMenu.__table__,
            account_models.RoleMenu.__table__,
            account_models.RoleSubMenu.__table__,
            guard_models.SecurityGuard.__table__,
            guard_models.TrainingRecord.__table__,
            guard_models.GuardDocument.__table__,
        ],
    )
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def plain_hasher():
    """Cheap stand-in for Argon2 so provisioning tests stay fast."""
    return lambda password: f"plain-hash::{password}"
