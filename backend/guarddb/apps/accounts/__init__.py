# backend/guarddb/apps/accounts/__init__.py
"""
Accounts app

Responsible for:
- Tenant (agency) and department definitions
- User accounts, roles, permissions and role grants
- Menu / submenu navigation tree per tenant
- Agency self-registration (tenant provisioning)
- Public auth endpoints (register agency, login)

Other apps (guards, compliance) depend on these models for tenant
scoping and for "who is allowed to see what".
"""

from . import catalog, models, schemas  # noqa: F401

__all__ = ["catalog", "models", "schemas"]
