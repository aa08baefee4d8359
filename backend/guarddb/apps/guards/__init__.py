# backend/guarddb/apps/guards/__init__.py
"""
Guards app

Security guards on an agency roster, their training records and their
identity / licence documents. The compliance app reads these records.
"""

from . import models  # noqa: F401

__all__ = ["models"]
