# backend/guarddb/__init__.py
"""
Import ORM models from each app so that Base.metadata.create_all() sees
all tables.

The actual model classes are kept in guarddb/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models    # tenants / users / roles / menus
from .apps.guards import models as guards_models        # guards / training / documents

__all__ = [
    "accounts_models",
    "guards_models",
]
