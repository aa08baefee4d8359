from __future__ import annotations

import pytest
from fastapi import HTTPException
from jose import jwt

from guarddb import security
from guarddb.apps.accounts import models as account_models
from guarddb.apps.accounts import router_menus, router_public
from guarddb.apps.accounts import schemas as account_schemas
from guarddb.apps.accounts import services as account_services
from guarddb.repository import SqlAlchemyUnitOfWork


def _register(db_session, **overrides) -> account_schemas.RegisterAgencyResult:
    data = dict(
        company_name="Eagle Eye Guards",
        registration_number="EE-7",
        email="hq@eagleeye.example",
        phone="9811111111",
        admin_user_name="eagleadmin",
        admin_email="admin@eagleeye.example",
        admin_password="Str0ng!pass",
        admin_first_name="Meera",
    )
    data.update(overrides)
    result = account_services.register_agency(
        SqlAlchemyUnitOfWork(db_session),
        account_schemas.RegisterAgencyRequest(**data),
    )
    assert result.success, result.message
    return result.data


def _add_user_with_role(db_session, tenant_id: str, role_code: str, user_name: str) -> account_models.User:
    role = (
        db_session.query(account_models.Role)
        .filter(account_models.Role.tenant_id == tenant_id, account_models.Role.code == role_code)
        .one()
    )
    user = account_models.User(
        tenant_id=tenant_id,
        user_name=user_name,
        email=f"{user_name}@eagleeye.example",
        hashed_password="hash",
        first_name=user_name.title(),
        is_active=True,
    )
    db_session.add(user)
    db_session.flush()
    db_session.add(account_models.UserRole(user_id=user.id, role_id=role.id))
    db_session.commit()
    return user


def test_register_endpoint_returns_envelope(db_session, plain_hasher, monkeypatch):
    monkeypatch.setattr(account_services, "get_password_hash", plain_hasher)
    payload = account_schemas.RegisterAgencyRequest(
        company_name="Falcon Security",
        registration_number="FS-1",
        email="hq@falcon.example",
        phone="9822222222",
        admin_user_name="falconadmin",
        admin_email="admin@falcon.example",
        admin_password="falcon1",
        admin_first_name="Ravi",
    )

    result = router_public.register_agency(payload, db=db_session)

    assert result.success is True
    assert result.data.admin_user_name == "falconadmin"

    with pytest.raises(HTTPException) as exc:
        router_public.register_agency(payload, db=db_session)
    assert exc.value.status_code == 409
    assert exc.value.detail == "Agency with this registration number or email already exists"


def test_admin_can_log_in_with_user_name_or_email(db_session):
    registered = _register(db_session)

    for login in ("eagleadmin", "ADMIN@eagleeye.example"):
        token = router_public.login(
            account_schemas.LoginRequest(login=login, password="Str0ng!pass"),
            db=db_session,
        )
        claims = jwt.decode(token.access_token, security.SECRET_KEY, algorithms=[security.JWT_ALGORITHM])
        assert claims["sub"] == registered.admin_user_id
        assert claims["tenant_id"] == registered.tenant_id
        assert claims["roles"] == ["ADMIN"]
        assert token.user.role_codes == ["ADMIN"]

    admin = db_session.get(account_models.User, registered.admin_user_id)
    assert admin.last_login_at is not None


def test_login_rejects_bad_password_and_inactive_users(db_session):
    registered = _register(db_session)

    with pytest.raises(HTTPException) as exc:
        router_public.login(
            account_schemas.LoginRequest(login="eagleadmin", password="wrong-password"),
            db=db_session,
        )
    assert exc.value.status_code == 401

    admin = db_session.get(account_models.User, registered.admin_user_id)
    admin.is_active = False
    db_session.commit()

    with pytest.raises(HTTPException) as exc:
        router_public.login(
            account_schemas.LoginRequest(login="eagleadmin", password="Str0ng!pass"),
            db=db_session,
        )
    assert exc.value.status_code == 401
    assert exc.value.detail == "User account is inactive."


def test_admin_menu_tree_contains_everything_in_display_order(db_session, plain_hasher, monkeypatch):
    monkeypatch.setattr(account_services, "get_password_hash", plain_hasher)
    registered = _register(db_session)
    admin = db_session.get(account_models.User, registered.admin_user_id)

    tree = router_menus.get_my_menus(db=db_session, current_user=admin)

    assert [m.name for m in tree] == ["Dashboard", "Administration", "Operations", "Finance", "HR", "More"]
    assert sum(len(m.sub_menus) for m in tree) == 30
    more = tree[-1]
    assert [s.name for s in more.sub_menus][0] == "CompanyProfile"


def test_guard_menu_tree_is_limited_to_operations_and_company_profile(db_session, plain_hasher, monkeypatch):
    monkeypatch.setattr(account_services, "get_password_hash", plain_hasher)
    registered = _register(db_session)
    guard_user = _add_user_with_role(db_session, registered.tenant_id, "GUARD", "guardone")

    tree = account_services.get_menu_tree_for_user(SqlAlchemyUnitOfWork(db_session), guard_user)

    by_name = {m.name: m for m in tree}
    assert list(by_name) == ["Dashboard", "Operations", "More"]
    assert by_name["Dashboard"].sub_menus == []
    assert len(by_name["Operations"].sub_menus) == 10
    assert [s.name for s in by_name["More"].sub_menus] == ["CompanyProfile"]


def test_user_without_roles_sees_no_menus(db_session, plain_hasher, monkeypatch):
    monkeypatch.setattr(account_services, "get_password_hash", plain_hasher)
    registered = _register(db_session)
    loner = account_models.User(
        tenant_id=registered.tenant_id,
        user_name="loner",
        email="loner@eagleeye.example",
        hashed_password="hash",
        first_name="Lone",
    )
    db_session.add(loner)
    db_session.commit()

    assert account_services.get_menu_tree_for_user(SqlAlchemyUnitOfWork(db_session), loner) == []
