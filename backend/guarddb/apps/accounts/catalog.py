# backend/guarddb/apps/accounts/catalog.py
"""
Seed catalog applied to every newly registered agency.

The provisioning service walks these tables; nothing here touches the
database. Changing what a role can see is a data edit in ROLE_GRANTS.

Grant values:
- ALL            every entry of that kind
- a tuple        the listed names only
Submenus are addressed as (menu name, submenu name).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple, Union

ALL = "*"


@dataclass(frozen=True)
class PermissionSpec:
    resource: str
    action: str
    description: str


@dataclass(frozen=True)
class RoleSpec:
    code: str
    name: str
    description: str


@dataclass(frozen=True)
class DepartmentSpec:
    code: str
    name: str
    description: str


@dataclass(frozen=True)
class SubMenuSpec:
    name: str
    display_name: str
    icon: str
    route: str
    display_order: int


@dataclass(frozen=True)
class MenuSpec:
    name: str
    display_name: str
    icon: str
    route: str
    display_order: int
    sub_menus: Tuple[SubMenuSpec, ...] = ()


@dataclass(frozen=True)
class RoleGrant:
    menus: Union[str, Tuple[str, ...]] = ()
    sub_menus: Union[str, Tuple[Tuple[str, str], ...]] = ()
    permissions: Union[str, Tuple[Tuple[str, str], ...]] = ()
    # Every submenu under these menus, in addition to `sub_menus`.
    sub_menus_of: Tuple[str, ...] = field(default=())


# ---------------------------------------------------------------------------
# PERMISSIONS (global, seeded once)
# ---------------------------------------------------------------------------

PERMISSION_RESOURCES: Dict[str, str] = {
    "Users": "users",
    "Departments": "departments",
    "Roles": "roles",
    "Menus": "menus",
    "FormBuilder": "forms",
}

_ACTION_VERBS = (
    ("Create", "Create"),
    ("Read", "View"),
    ("Update", "Update"),
    ("Delete", "Delete"),
)

PERMISSIONS: Tuple[PermissionSpec, ...] = tuple(
    PermissionSpec(resource=resource, action=action, description=f"{verb} {noun}")
    for resource, noun in PERMISSION_RESOURCES.items()
    for action, verb in _ACTION_VERBS
)


# ---------------------------------------------------------------------------
# ROLES + DEPARTMENT
# ---------------------------------------------------------------------------

ROLE_ADMIN = "ADMIN"
ROLE_GUARD = "GUARD"
ROLE_SUPERVISOR = "SUPERVISOR"
ROLE_ACCOUNTS = "ACCOUNTS"

ROLES: Tuple[RoleSpec, ...] = (
    RoleSpec(ROLE_ADMIN, "Administrator", "Full system access"),
    RoleSpec(ROLE_GUARD, "Security Guard", "Security guard - can use mobile app"),
    RoleSpec(ROLE_SUPERVISOR, "Supervisor", "Supervisor - can use mobile app"),
    RoleSpec(ROLE_ACCOUNTS, "Accounts", "Accounts / Finance department"),
)

DEPARTMENT = DepartmentSpec(
    code="ADMIN",
    name="Administration",
    description="Administration Department",
)


# ---------------------------------------------------------------------------
# MENUS
# ---------------------------------------------------------------------------

MENUS: Tuple[MenuSpec, ...] = (
    MenuSpec("Dashboard", "Dashboard", "fas fa-home", "Home", 1),
    MenuSpec(
        "Administration",
        "Administration",
        "fas fa-cog",
        "#",
        2,
        (
            SubMenuSpec("Users", "Users", "fas fa-users", "Users", 1),
            SubMenuSpec("Departments", "Departments", "fas fa-building", "Departments", 2),
            SubMenuSpec("Designations", "Designations", "fas fa-briefcase", "Designations", 3),
            SubMenuSpec("Roles", "Roles", "fas fa-user-tag", "Roles", 4),
            SubMenuSpec("Menus", "Menus", "fas fa-list", "Menus", 5),
            SubMenuSpec("SubMenus", "Sub Menus", "fas fa-list-ul", "SubMenus", 6),
        ),
    ),
    MenuSpec(
        "Operations",
        "Operations",
        "fas fa-tasks",
        "#",
        3,
        (
            SubMenuSpec("SecurityGuards", "Security Guards", "fas fa-user-shield", "SecurityGuards", 1),
            SubMenuSpec("Sites", "Sites", "fas fa-building", "Sites", 2),
            SubMenuSpec("GuardAssignments", "Assignments", "fas fa-user-check", "GuardAssignments", 3),
            SubMenuSpec("Attendance", "Attendance", "fas fa-calendar-check", "Attendance", 4),
            SubMenuSpec("Incidents", "Incidents", "fas fa-exclamation-triangle", "Incidents", 5),
            SubMenuSpec("Shifts", "Shifts", "fas fa-clock", "Shifts", 6),
            SubMenuSpec("Visitors", "Visitors", "fas fa-user-friends", "Visitors", 7),
            SubMenuSpec("PatrolScans", "Patrol Scans", "fas fa-qrcode", "PatrolScans", 8),
            SubMenuSpec("FormBuilder", "Form Builder", "fas fa-file-alt", "FormBuilder", 9),
            SubMenuSpec("Roster", "Roster", "fas fa-calendar-alt", "Roster", 10),
        ),
    ),
    MenuSpec(
        "Finance",
        "Finance",
        "fas fa-money-bill-wave",
        "#",
        4,
        (
            SubMenuSpec("Bills", "Bills", "fas fa-file-invoice", "Bills", 1),
            SubMenuSpec("Wages", "Wages", "fas fa-money-bill-wave", "Wages", 2),
            SubMenuSpec("Clients", "Clients", "fas fa-building", "Clients", 3),
            SubMenuSpec("Contracts", "Contracts", "fas fa-file-contract", "Contracts", 4),
            SubMenuSpec("Payments", "Payments", "fas fa-money-check", "Payments", 5),
            SubMenuSpec("Expenses", "Expenses", "fas fa-receipt", "Expenses", 6),
        ),
    ),
    MenuSpec(
        "HR",
        "HR",
        "fas fa-users-cog",
        "#",
        5,
        (
            SubMenuSpec("LeaveRequests", "Leave Requests", "fas fa-calendar-times", "LeaveRequests", 1),
            SubMenuSpec("TrainingRecords", "Training", "fas fa-graduation-cap", "TrainingRecords", 2),
            SubMenuSpec("Equipment", "Equipment", "fas fa-tools", "Equipment", 3),
        ),
    ),
    MenuSpec(
        "More",
        "More",
        "fas fa-ellipsis-h",
        "#",
        6,
        (
            SubMenuSpec("CompanyProfile", "Company Profile", "fas fa-building", "CompanyProfile", 0),
            SubMenuSpec("Compliance", "Compliance", "fas fa-clipboard-check", "Compliance", 1),
            SubMenuSpec("Announcements", "Announcements", "fas fa-bullhorn", "Announcements", 2),
            SubMenuSpec("Notifications", "Notifications", "fas fa-bell", "Notifications", 3),
            SubMenuSpec("Reports", "Monthly Report", "fas fa-file-excel", "Reports", 4),
        ),
    ),
)


# ---------------------------------------------------------------------------
# ROLE GRANTS
# ---------------------------------------------------------------------------

ROLE_GRANTS: Dict[str, RoleGrant] = {
    ROLE_ADMIN: RoleGrant(menus=ALL, sub_menus=ALL, permissions=ALL),
    ROLE_ACCOUNTS: RoleGrant(
        menus=("Dashboard", "Finance"),
        sub_menus_of=("Finance",),
    ),
    ROLE_GUARD: RoleGrant(
        menus=("Dashboard", "Operations", "More"),
        sub_menus_of=("Operations",),
        sub_menus=(("More", "CompanyProfile"),),
    ),
    ROLE_SUPERVISOR: RoleGrant(
        menus=("Dashboard", "Operations", "HR", "More"),
        sub_menus_of=("Operations", "HR"),
        sub_menus=(("More", "CompanyProfile"),),
    ),
}


def total_sub_menus() -> int:
    return sum(len(menu.sub_menus) for menu in MENUS)
