from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from guarddb.repository import UnitOfWork
from guarddb.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    get_password_hash,
    verify_password,
)
from . import catalog, models, schemas

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_COUNTRY = "India"
SUBSCRIPTION_YEARS = 1
PROVISIONING_ATTEMPTS = 2

DUPLICATE_AGENCY_MESSAGE = "Agency with this registration number or email already exists"
DUPLICATE_ADMIN_MESSAGE = "Admin username or email already exists"
REGISTERED_MESSAGE = "Agency registered successfully"
REGISTERED_DETAIL = "Agency registered successfully. You can now login with your credentials."


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class AuthenticationError(Exception):
    """Raised when login credentials are invalid or the account is inactive."""


# ---------------------------------------------------------------------------
# Normalisation helpers
# ---------------------------------------------------------------------------


def _normalise_email(value: str) -> str:
    return value.strip().lower()


def _clean_optional(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


def _add_years(value: datetime, years: int) -> datetime:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # 29 February -> 28 February
        return value.replace(year=value.year + years, day=28)


# ---------------------------------------------------------------------------
# Agency registration (tenant provisioning)
# ---------------------------------------------------------------------------


def _find_duplicate(
    uow: UnitOfWork,
    *,
    registration_number: str,
    agency_email: str,
    admin_user_name: str,
    admin_email: str,
) -> Optional[str]:
    """Failure message for an agency or admin that already exists, else None."""
    existing_tenant = uow.first(
        models.Tenant,
        or_(
            models.Tenant.registration_number == registration_number,
            models.Tenant.email == agency_email,
        ),
    )
    if existing_tenant is not None:
        return DUPLICATE_AGENCY_MESSAGE

    # No tenant exists yet, so this check is platform-wide.
    existing_user = uow.first(
        models.User,
        or_(
            models.User.user_name == admin_user_name,
            models.User.email == admin_email,
        ),
    )
    if existing_user is not None:
        return DUPLICATE_ADMIN_MESSAGE
    return None


def register_agency(
    uow: UnitOfWork,
    payload: schemas.RegisterAgencyRequest,
    *,
    hash_password: Optional[Callable[[str], str]] = None,
    now: Optional[datetime] = None,
) -> schemas.ApiResponse[schemas.RegisterAgencyResult]:
    """
    Provision a new agency: tenant, permissions, roles, department, admin
    user, menus and role grants.

    Duplicate agencies or admin credentials are reported in the response
    envelope and nothing is written. Everything after the checks is one
    transaction: any failure rolls the whole agency back and propagates.

    A unique-key collision from a concurrent registration is re-checked
    after the rollback and reported as whichever duplicate it was. A
    collision that matches neither check can only come from two first
    registrations seeding the permission catalog at once; that is retried
    once against the catalog the other registration committed.
    """
    hash_password = hash_password or get_password_hash
    now = now or datetime.now(timezone.utc)

    keys = dict(
        registration_number=payload.registration_number.strip(),
        agency_email=_normalise_email(payload.email),
        admin_user_name=payload.admin_user_name.strip(),
        admin_email=_normalise_email(payload.admin_email),
    )
    registration_number = keys["registration_number"]

    duplicate = _find_duplicate(uow, **keys)
    if duplicate is not None:
        logger.info("Rejected agency registration %s: %s", registration_number, duplicate)
        return schemas.ApiResponse.fail(duplicate)

    logger.info("Registering agency %s (%s)", payload.company_name, registration_number)
    for attempt in range(1, PROVISIONING_ATTEMPTS + 1):
        try:
            tenant, admin_user = _provision_agency(
                uow,
                payload,
                hash_password=hash_password,
                now=now,
                **keys,
            )
            break
        except IntegrityError:
            duplicate = _find_duplicate(uow, **keys)
            if duplicate is not None:
                logger.warning(
                    "Agency registration %s collided with a concurrent registration: %s",
                    registration_number,
                    duplicate,
                )
                return schemas.ApiResponse.fail(duplicate)
            if attempt == PROVISIONING_ATTEMPTS:
                raise
            logger.warning(
                "Agency registration %s collided while seeding permissions; retrying",
                registration_number,
            )

    logger.info(
        "Registered agency %s as tenant %s with admin %s",
        registration_number,
        tenant.id,
        admin_user.user_name,
    )
    return schemas.ApiResponse.ok(
        schemas.RegisterAgencyResult(
            tenant_id=tenant.id,
            company_name=tenant.company_name,
            admin_user_id=admin_user.id,
            admin_user_name=admin_user.user_name,
            message=REGISTERED_DETAIL,
        ),
        REGISTERED_MESSAGE,
    )


def _provision_agency(
    uow: UnitOfWork,
    payload: schemas.RegisterAgencyRequest,
    *,
    registration_number: str,
    agency_email: str,
    admin_user_name: str,
    admin_email: str,
    hash_password: Callable[[str], str],
    now: datetime,
) -> Tuple[models.Tenant, models.User]:
    with uow.transaction():
        tenant = models.Tenant(
            company_name=payload.company_name,
            registration_number=registration_number,
            email=agency_email,
            phone=payload.phone,
            address=_clean_optional(payload.address),
            city=_clean_optional(payload.city),
            state=_clean_optional(payload.state),
            country=_clean_optional(payload.country) or DEFAULT_COUNTRY,
            pin_code=_clean_optional(payload.pin_code),
            is_active=True,
            subscription_start_date=now,
            subscription_end_date=_add_years(now, SUBSCRIPTION_YEARS),
        )
        uow.add(tenant)
        uow.flush()

        permissions = ensure_permissions(uow)
        roles = _create_roles(uow, tenant)
        department = _create_default_department(uow, tenant)

        admin_user = models.User(
            tenant_id=tenant.id,
            department_id=department.id,
            user_name=admin_user_name,
            email=admin_email,
            hashed_password=hash_password(payload.admin_password),
            first_name=payload.admin_first_name,
            last_name=(payload.admin_last_name or "").strip(),
            phone_number=_clean_optional(payload.admin_phone_number),
            is_active=True,
            is_email_verified=False,
        )
        uow.add(admin_user)
        uow.flush()
        uow.add(models.UserRole(user_id=admin_user.id, role_id=roles[catalog.ROLE_ADMIN].id))

        menus, sub_menus = _create_menus(uow, tenant)
        for code, grant in catalog.ROLE_GRANTS.items():
            _apply_role_grant(uow, roles[code], grant, menus, sub_menus, permissions)
        uow.flush()
    return tenant, admin_user


def ensure_permissions(uow: UnitOfWork) -> List[models.Permission]:
    """
    Return the global permission catalog, seeding it when the table is empty.

    Permissions are platform-wide, so only the very first agency seeds them.
    """
    existing = uow.all(models.Permission)
    if existing:
        return existing

    seeded = [
        models.Permission(
            resource=spec.resource,
            action=spec.action,
            description=spec.description,
        )
        for spec in catalog.PERMISSIONS
    ]
    uow.add_all(seeded)
    uow.flush()
    logger.info("Seeded %d global permissions", len(seeded))
    return seeded


def _create_roles(uow: UnitOfWork, tenant: models.Tenant) -> Dict[str, models.Role]:
    roles: Dict[str, models.Role] = {}
    for spec in catalog.ROLES:
        role = models.Role(
            tenant_id=tenant.id,
            name=spec.name,
            code=spec.code,
            description=spec.description,
            is_system_role=True,
            is_active=True,
        )
        uow.add(role)
        roles[spec.code] = role
    uow.flush()
    return roles


def _create_default_department(uow: UnitOfWork, tenant: models.Tenant) -> models.Department:
    spec = catalog.DEPARTMENT
    department = models.Department(
        tenant_id=tenant.id,
        name=spec.name,
        code=spec.code,
        description=spec.description,
        is_active=True,
    )
    uow.add(department)
    uow.flush()
    return department


def _create_menus(
    uow: UnitOfWork,
    tenant: models.Tenant,
) -> Tuple[Dict[str, models.Menu], Dict[Tuple[str, str], models.SubMenu]]:
    menus: Dict[str, models.Menu] = {}
    for spec in catalog.MENUS:
        menu = models.Menu(
            tenant_id=tenant.id,
            name=spec.name,
            display_name=spec.display_name,
            icon=spec.icon,
            route=spec.route,
            display_order=spec.display_order,
            is_active=True,
        )
        uow.add(menu)
        menus[spec.name] = menu
    uow.flush()

    sub_menus: Dict[Tuple[str, str], models.SubMenu] = {}
    for spec in catalog.MENUS:
        for sub_spec in spec.sub_menus:
            sub_menu = models.SubMenu(
                tenant_id=tenant.id,
                menu_id=menus[spec.name].id,
                name=sub_spec.name,
                display_name=sub_spec.display_name,
                icon=sub_spec.icon,
                route=sub_spec.route,
                display_order=sub_spec.display_order,
                is_active=True,
            )
            uow.add(sub_menu)
            sub_menus[(spec.name, sub_spec.name)] = sub_menu
    uow.flush()
    return menus, sub_menus


def resolve_grant(
    grant: catalog.RoleGrant,
    menus: Dict[str, models.Menu],
    sub_menus: Dict[Tuple[str, str], models.SubMenu],
    permissions: Sequence[models.Permission],
) -> Tuple[List[models.Menu], List[models.SubMenu], List[models.Permission]]:
    """Expand a catalog grant into the concrete rows it covers."""
    if grant.menus == catalog.ALL:
        granted_menus = list(menus.values())
    else:
        granted_menus = [menus[name] for name in grant.menus]

    if grant.sub_menus == catalog.ALL:
        granted_subs = list(sub_menus.values())
    else:
        keys = [key for key in sub_menus if key[0] in grant.sub_menus_of]
        keys.extend(key for key in grant.sub_menus if key not in keys)
        granted_subs = [sub_menus[key] for key in keys]

    if grant.permissions == catalog.ALL:
        granted_permissions = list(permissions)
    else:
        wanted = set(grant.permissions)
        granted_permissions = [p for p in permissions if (p.resource, p.action) in wanted]

    return granted_menus, granted_subs, granted_permissions


def _apply_role_grant(
    uow: UnitOfWork,
    role: models.Role,
    grant: catalog.RoleGrant,
    menus: Dict[str, models.Menu],
    sub_menus: Dict[Tuple[str, str], models.SubMenu],
    permissions: Sequence[models.Permission],
) -> None:
    granted_menus, granted_subs, granted_permissions = resolve_grant(
        grant, menus, sub_menus, permissions
    )
    uow.add_all([models.RolePermission(role_id=role.id, permission_id=p.id) for p in granted_permissions])
    uow.add_all([models.RoleMenu(role_id=role.id, menu_id=m.id) for m in granted_menus])
    uow.add_all([models.RoleSubMenu(role_id=role.id, sub_menu_id=s.id) for s in granted_subs])


# ---------------------------------------------------------------------------
# Authentication and access tokens
# ---------------------------------------------------------------------------


def authenticate_user(
    uow: UnitOfWork,
    login_req: schemas.LoginRequest,
    *,
    now: Optional[datetime] = None,
) -> models.User:
    login = login_req.login.strip()
    user = uow.first(
        models.User,
        or_(
            models.User.user_name == login,
            models.User.email == login.lower(),
        ),
    )
    if user is None or not verify_password(login_req.password, user.hashed_password):
        raise AuthenticationError("Incorrect user name or password.")
    if not user.is_active:
        raise AuthenticationError("User account is inactive.")
    if user.tenant is not None and not user.tenant.is_active:
        raise AuthenticationError("Agency account is inactive.")

    with uow.transaction():
        user.last_login_at = now or datetime.now(timezone.utc)
    return user


def issue_access_token_for_user(user: models.User) -> Tuple[str, int]:
    """Return (token, expires_in_seconds) for a freshly authenticated user."""
    token = create_access_token(
        data={
            "sub": user.id,
            "tenant_id": user.tenant_id,
            "roles": user.role_codes,
        }
    )
    return token, ACCESS_TOKEN_EXPIRE_MINUTES * 60


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


def get_menu_tree_for_user(uow: UnitOfWork, user: models.User) -> List[schemas.MenuRead]:
    """
    Menus and submenus granted to any of the user's roles.

    A submenu is only shown under a menu the user can also see. Inactive
    entries are hidden.
    """
    role_ids = [ur.role_id for ur in user.user_roles if ur.role is not None and ur.role.is_active]
    if not role_ids:
        return []

    menu_ids = {rm.menu_id for rm in uow.find(models.RoleMenu, models.RoleMenu.role_id.in_(role_ids))}
    sub_menu_ids = {
        rs.sub_menu_id
        for rs in uow.find(models.RoleSubMenu, models.RoleSubMenu.role_id.in_(role_ids))
    }
    if not menu_ids:
        return []

    menus = uow.find(
        models.Menu,
        models.Menu.id.in_(menu_ids),
        models.Menu.tenant_id == user.tenant_id,
        models.Menu.is_active.is_(True),
    )
    tree: List[schemas.MenuRead] = []
    for menu in sorted(menus, key=lambda m: (m.display_order, m.name)):
        subs = [s for s in menu.sub_menus if s.id in sub_menu_ids and s.is_active]
        subs.sort(key=lambda s: (s.display_order, s.name))
        tree.append(
            schemas.MenuRead(
                id=menu.id,
                name=menu.name,
                display_name=menu.display_name,
                icon=menu.icon,
                route=menu.route,
                display_order=menu.display_order,
                sub_menus=[schemas.SubMenuRead.model_validate(s) for s in subs],
            )
        )
    return tree
