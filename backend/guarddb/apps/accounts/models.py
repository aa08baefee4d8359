# backend/guarddb/apps/accounts/models.py

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from guarddb.database import Base
from guarddb.user_id import generate_user_id


# ---------------------------------------------------------------------------
# TENANT + DEPARTMENT
# ---------------------------------------------------------------------------


class Tenant(Base):
    """
    One security agency on the platform.

    Every operational record (users, roles, menus, guards, training) is
    scoped to a tenant. Registration number and contact email identify the
    agency and are unique across the platform.
    """

    __tablename__ = "tenants"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_user_id,
    )
    company_name = Column(String(200), nullable=False)
    registration_number = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    phone = Column(String(20), nullable=False)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    country = Column(String(100), nullable=False, default="India")
    pin_code = Column(String(20), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    subscription_start_date = Column(DateTime(timezone=True), nullable=True)
    subscription_end_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    departments = relationship("Department", back_populates="tenant", lazy="selectin")
    users = relationship("User", back_populates="tenant", lazy="selectin")
    roles = relationship("Role", back_populates="tenant", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Tenant {self.registration_number} {self.company_name}>"


class Department(Base):
    __tablename__ = "departments"
    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_departments_tenant_code"),
    )

    id = Column(
        String(36),
        primary_key=True,
        default=generate_user_id,
    )
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(200), nullable=False)
    code = Column(String(32), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    tenant = relationship("Tenant", back_populates="departments")
    users = relationship("User", back_populates="department", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Department {self.tenant_id}:{self.code}>"


# ---------------------------------------------------------------------------
# USERS
# ---------------------------------------------------------------------------


class User(Base):
    """
    Login account within a tenant.

    User names and emails are unique platform-wide so that the login form
    does not need a tenant selector. Only the password hash is stored.
    """

    __tablename__ = "users"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_user_id,
    )
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    department_id = Column(
        String(36),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    user_name = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    phone_number = Column(String(20), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    is_email_verified = Column(Boolean, nullable=False, default=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    tenant = relationship("Tenant", back_populates="users")
    department = relationship("Department", back_populates="users")
    user_roles = relationship(
        "UserRole",
        back_populates="user",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

    @property
    def role_codes(self) -> list[str]:
        return [ur.role.code for ur in self.user_roles if ur.role is not None]

    def __repr__(self) -> str:
        return f"<User {self.user_name} tenant={self.tenant_id}>"


# ---------------------------------------------------------------------------
# ROLES + PERMISSIONS
# ---------------------------------------------------------------------------


class Role(Base):
    """
    Named permission bundle inside a tenant.

    System roles (ADMIN, GUARD, SUPERVISOR, ACCOUNTS) are created during
    agency registration and are not meant to be edited by tenant admins.
    """

    __tablename__ = "roles"
    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_roles_tenant_code"),
    )

    id = Column(
        String(36),
        primary_key=True,
        default=generate_user_id,
    )
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(100), nullable=False)
    code = Column(String(32), nullable=False)
    description = Column(Text, nullable=True)
    is_system_role = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    tenant = relationship("Tenant", back_populates="roles")
    role_permissions = relationship("RolePermission", back_populates="role", lazy="selectin")
    role_menus = relationship("RoleMenu", back_populates="role", lazy="selectin")
    role_sub_menus = relationship("RoleSubMenu", back_populates="role", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Role {self.tenant_id}:{self.code}>"


class Permission(Base):
    """Global resource/action pair, shared by every tenant."""

    __tablename__ = "permissions"
    __table_args__ = (
        UniqueConstraint("resource", "action", name="uq_permissions_resource_action"),
    )

    id = Column(
        String(36),
        primary_key=True,
        default=generate_user_id,
    )
    resource = Column(String(64), nullable=False)
    action = Column(String(32), nullable=False)
    description = Column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Permission {self.resource}/{self.action}>"


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_role"),
    )

    id = Column(String(36), primary_key=True, default=generate_user_id)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role_id = Column(
        String(36),
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user = relationship("User", back_populates="user_roles")
    role = relationship("Role", lazy="joined")


class RolePermission(Base):
    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permissions_role_permission"),
    )

    id = Column(String(36), primary_key=True, default=generate_user_id)
    role_id = Column(
        String(36),
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    permission_id = Column(
        String(36),
        ForeignKey("permissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    role = relationship("Role", back_populates="role_permissions")
    permission = relationship("Permission", lazy="joined")


# ---------------------------------------------------------------------------
# MENUS
# ---------------------------------------------------------------------------


class Menu(Base):
    """Top-level navigation entry for a tenant (Dashboard, Operations, ...)."""

    __tablename__ = "menus"
    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_menus_tenant_name"),
    )

    id = Column(String(36), primary_key=True, default=generate_user_id)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(64), nullable=False)
    display_name = Column(String(100), nullable=False)
    icon = Column(String(64), nullable=True)
    route = Column(String(255), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    sub_menus = relationship(
        "SubMenu",
        back_populates="menu",
        lazy="selectin",
        order_by="SubMenu.display_order",
    )

    def __repr__(self) -> str:
        return f"<Menu {self.tenant_id}:{self.name}>"


class SubMenu(Base):
    __tablename__ = "sub_menus"
    __table_args__ = (
        UniqueConstraint("tenant_id", "menu_id", "name", name="uq_sub_menus_tenant_menu_name"),
    )

    id = Column(String(36), primary_key=True, default=generate_user_id)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    menu_id = Column(
        String(36),
        ForeignKey("menus.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(64), nullable=False)
    display_name = Column(String(100), nullable=False)
    icon = Column(String(64), nullable=True)
    route = Column(String(255), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    menu = relationship("Menu", back_populates="sub_menus")

    def __repr__(self) -> str:
        return f"<SubMenu {self.tenant_id}:{self.name}>"


class RoleMenu(Base):
    __tablename__ = "role_menus"
    __table_args__ = (
        UniqueConstraint("role_id", "menu_id", name="uq_role_menus_role_menu"),
    )

    id = Column(String(36), primary_key=True, default=generate_user_id)
    role_id = Column(
        String(36),
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    menu_id = Column(
        String(36),
        ForeignKey("menus.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    role = relationship("Role", back_populates="role_menus")
    menu = relationship("Menu", lazy="joined")


class RoleSubMenu(Base):
    __tablename__ = "role_sub_menus"
    __table_args__ = (
        UniqueConstraint("role_id", "sub_menu_id", name="uq_role_sub_menus_role_sub_menu"),
    )

    id = Column(String(36), primary_key=True, default=generate_user_id)
    role_id = Column(
        String(36),
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sub_menu_id = Column(
        String(36),
        ForeignKey("sub_menus.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    role = relationship("Role", back_populates="role_sub_menus")
    sub_menu = relationship("SubMenu", lazy="joined")
