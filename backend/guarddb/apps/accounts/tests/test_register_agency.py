from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from guarddb.apps.accounts import catalog
from guarddb.apps.accounts import models as account_models
from guarddb.apps.accounts import schemas as account_schemas
from guarddb.apps.accounts import services as account_services
from guarddb.repository import SqlAlchemyUnitOfWork


def _request(**overrides) -> account_schemas.RegisterAgencyRequest:
    data = dict(
        company_name="Shield Force Security",
        registration_number="REG-100",
        email="ops@shieldforce.example",
        phone="9800000000",
        city="Pune",
        admin_user_name="shieldadmin",
        admin_email="admin@shieldforce.example",
        admin_password="secret123",
        admin_first_name="Asha",
        admin_last_name="Rao",
    )
    data.update(overrides)
    return account_schemas.RegisterAgencyRequest(**data)


def _register(db_session, hasher, **overrides):
    return account_services.register_agency(
        SqlAlchemyUnitOfWork(db_session),
        _request(**overrides),
        hash_password=hasher,
    )


def _role(db_session, tenant_id: str, code: str) -> account_models.Role:
    return (
        db_session.query(account_models.Role)
        .filter(account_models.Role.tenant_id == tenant_id, account_models.Role.code == code)
        .one()
    )


def _granted_menu_names(db_session, role: account_models.Role) -> set[str]:
    return {
        rm.menu.name
        for rm in db_session.query(account_models.RoleMenu)
        .filter(account_models.RoleMenu.role_id == role.id)
        .all()
    }


def _granted_sub_menus(db_session, role: account_models.Role) -> set[tuple[str, str]]:
    return {
        (rs.sub_menu.menu.name, rs.sub_menu.name)
        for rs in db_session.query(account_models.RoleSubMenu)
        .filter(account_models.RoleSubMenu.role_id == role.id)
        .all()
    }


def _catalog_sub_menus(*menu_names: str) -> set[tuple[str, str]]:
    return {
        (menu.name, sub.name)
        for menu in catalog.MENUS
        if menu.name in menu_names
        for sub in menu.sub_menus
    }


def test_register_agency_provisions_full_tenant(db_session, plain_hasher):
    now = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
    result = account_services.register_agency(
        SqlAlchemyUnitOfWork(db_session),
        _request(),
        hash_password=plain_hasher,
        now=now,
    )

    assert result.success is True
    assert result.message == "Agency registered successfully"
    assert result.data.company_name == "Shield Force Security"
    assert result.data.admin_user_name == "shieldadmin"
    assert "You can now login" in result.data.message

    tenant = db_session.get(account_models.Tenant, result.data.tenant_id)
    assert tenant.country == "India"
    assert tenant.is_active is True
    assert tenant.subscription_end_date.year == 2027
    assert tenant.subscription_end_date.month == 3
    assert tenant.subscription_end_date.day == 1

    roles = db_session.query(account_models.Role).filter(account_models.Role.tenant_id == tenant.id).all()
    assert {r.code for r in roles} == {"ADMIN", "GUARD", "SUPERVISOR", "ACCOUNTS"}
    assert all(r.is_system_role for r in roles)

    assert db_session.query(account_models.Menu).filter(account_models.Menu.tenant_id == tenant.id).count() == 6
    assert db_session.query(account_models.SubMenu).filter(account_models.SubMenu.tenant_id == tenant.id).count() == 30

    department = db_session.query(account_models.Department).filter(account_models.Department.tenant_id == tenant.id).one()
    assert department.name == "Administration"

    admin = db_session.get(account_models.User, result.data.admin_user_id)
    assert admin.department_id == department.id
    assert admin.is_email_verified is False
    assert admin.hashed_password == "plain-hash::secret123"
    assert not hasattr(admin, "password")
    assert admin.role_codes == ["ADMIN"]


def test_fresh_system_seeds_twenty_permissions_for_admin(db_session, plain_hasher):
    result = _register(db_session, plain_hasher)

    assert db_session.query(account_models.Permission).count() == 20
    admin_role = _role(db_session, result.data.tenant_id, "ADMIN")
    granted = {(rp.permission.resource, rp.permission.action) for rp in admin_role.role_permissions}
    assert len(granted) == 20
    assert ("FormBuilder", "Delete") in granted

    for code in ("GUARD", "SUPERVISOR", "ACCOUNTS"):
        assert _role(db_session, result.data.tenant_id, code).role_permissions == []


def test_second_agency_reuses_existing_permissions(db_session, plain_hasher):
    _register(db_session, plain_hasher)
    second = _register(
        db_session,
        plain_hasher,
        registration_number="REG-200",
        email="ops@second.example",
        admin_user_name="secondadmin",
        admin_email="admin@second.example",
    )

    assert second.success is True
    assert db_session.query(account_models.Permission).count() == 20
    admin_role = _role(db_session, second.data.tenant_id, "ADMIN")
    assert len(admin_role.role_permissions) == 20


def test_role_grants_follow_catalog(db_session, plain_hasher):
    result = _register(db_session, plain_hasher)
    tenant_id = result.data.tenant_id

    admin = _role(db_session, tenant_id, "ADMIN")
    assert _granted_menu_names(db_session, admin) == {m.name for m in catalog.MENUS}
    assert len(_granted_sub_menus(db_session, admin)) == 30

    accounts = _role(db_session, tenant_id, "ACCOUNTS")
    assert _granted_menu_names(db_session, accounts) == {"Dashboard", "Finance"}
    assert _granted_sub_menus(db_session, accounts) == _catalog_sub_menus("Finance")

    guard = _role(db_session, tenant_id, "GUARD")
    assert _granted_menu_names(db_session, guard) == {"Dashboard", "Operations", "More"}
    assert _granted_sub_menus(db_session, guard) == _catalog_sub_menus("Operations") | {
        ("More", "CompanyProfile")
    }

    supervisor = _role(db_session, tenant_id, "SUPERVISOR")
    assert _granted_menu_names(db_session, supervisor) == {"Dashboard", "Operations", "HR", "More"}
    assert _granted_sub_menus(db_session, supervisor) == _catalog_sub_menus("Operations", "HR") | {
        ("More", "CompanyProfile")
    }


def test_duplicate_registration_number_is_rejected(db_session, plain_hasher):
    _register(db_session, plain_hasher)

    result = _register(
        db_session,
        plain_hasher,
        email="other@agency.example",
        admin_user_name="otheradmin",
        admin_email="other-admin@agency.example",
    )

    assert result.success is False
    assert result.message == "Agency with this registration number or email already exists"
    assert db_session.query(account_models.Tenant).count() == 1
    assert db_session.query(account_models.User).count() == 1


def test_duplicate_agency_email_is_rejected_case_insensitively(db_session, plain_hasher):
    _register(db_session, plain_hasher)

    result = _register(
        db_session,
        plain_hasher,
        registration_number="REG-999",
        email="OPS@ShieldForce.example",
        admin_user_name="otheradmin",
        admin_email="other-admin@agency.example",
    )

    assert result.success is False
    assert db_session.query(account_models.Tenant).count() == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"admin_user_name": "shieldadmin", "admin_email": "fresh@agency.example"},
        {"admin_user_name": "freshadmin", "admin_email": "admin@shieldforce.example"},
    ],
)
def test_duplicate_admin_credentials_are_rejected(db_session, plain_hasher, overrides):
    _register(db_session, plain_hasher)

    result = _register(
        db_session,
        plain_hasher,
        registration_number="REG-300",
        email="ops@third.example",
        **overrides,
    )

    assert result.success is False
    assert result.message == "Admin username or email already exists"
    assert db_session.query(account_models.Tenant).count() == 1
    assert db_session.query(account_models.User).count() == 1


def test_failure_mid_provisioning_rolls_back_everything(db_session):
    def broken_hasher(password: str) -> str:
        raise RuntimeError("hasher unavailable")

    with pytest.raises(RuntimeError):
        _register(db_session, broken_hasher)

    assert db_session.query(account_models.Tenant).count() == 0
    assert db_session.query(account_models.Permission).count() == 0
    assert db_session.query(account_models.Role).count() == 0
    assert db_session.query(account_models.Department).count() == 0
    assert db_session.query(account_models.User).count() == 0


class _StaleCheckUnitOfWork(SqlAlchemyUnitOfWork):
    """The duplicate checks ran before a concurrent registration committed."""

    def __init__(self, db):
        super().__init__(db)
        self._stale = {account_models.Tenant, account_models.User}

    def first(self, model, *criteria):
        if model in self._stale:
            self._stale.discard(model)
            return None
        return super().first(model, *criteria)


class _UnseededPermissionsUnitOfWork(SqlAlchemyUnitOfWork):
    """Another first registration is seeding the permission catalog."""

    def __init__(self, db, stale_reads=1):
        super().__init__(db)
        self._stale_reads = stale_reads

    def all(self, model):
        if model is account_models.Permission and self._stale_reads:
            self._stale_reads -= 1
            return []
        return super().all(model)


def test_unique_key_collision_is_reported_as_duplicate(db_session, plain_hasher):
    _register(db_session, plain_hasher)

    result = account_services.register_agency(
        _StaleCheckUnitOfWork(db_session),
        _request(admin_user_name="racer", admin_email="racer@agency.example"),
        hash_password=plain_hasher,
    )

    assert result.success is False
    assert result.message == "Agency with this registration number or email already exists"
    assert db_session.query(account_models.Tenant).count() == 1
    assert db_session.query(account_models.Role).count() == 4


def test_admin_user_name_collision_is_reported_as_duplicate_admin(db_session, plain_hasher):
    _register(db_session, plain_hasher)

    result = account_services.register_agency(
        _StaleCheckUnitOfWork(db_session),
        _request(registration_number="REG-400", email="ops@fourth.example", admin_email="admin@fourth.example"),
        hash_password=plain_hasher,
    )

    assert result.success is False
    assert result.message == "Admin username or email already exists"
    assert db_session.query(account_models.Tenant).count() == 1
    assert db_session.query(account_models.User).count() == 1


def test_permission_seeding_collision_is_retried(db_session, plain_hasher):
    _register(db_session, plain_hasher)

    result = account_services.register_agency(
        _UnseededPermissionsUnitOfWork(db_session),
        _request(
            registration_number="REG-500",
            email="ops@fifth.example",
            admin_user_name="fifthadmin",
            admin_email="admin@fifth.example",
        ),
        hash_password=plain_hasher,
    )

    assert result.success is True
    assert db_session.query(account_models.Tenant).count() == 2
    assert db_session.query(account_models.Permission).count() == 20
    admin_role = _role(db_session, result.data.tenant_id, "ADMIN")
    assert len(admin_role.role_permissions) == 20


def test_repeated_permission_collision_propagates(db_session, plain_hasher):
    _register(db_session, plain_hasher)

    with pytest.raises(IntegrityError):
        account_services.register_agency(
            _UnseededPermissionsUnitOfWork(db_session, stale_reads=2),
            _request(
                registration_number="REG-600",
                email="ops@sixth.example",
                admin_user_name="sixthadmin",
                admin_email="admin@sixth.example",
            ),
            hash_password=plain_hasher,
        )

    assert db_session.query(account_models.Tenant).count() == 1
    assert db_session.query(account_models.Permission).count() == 20


def test_explicit_country_is_kept(db_session, plain_hasher):
    result = _register(db_session, plain_hasher, country="Nepal")

    tenant = db_session.get(account_models.Tenant, result.data.tenant_id)
    assert tenant.country == "Nepal"
