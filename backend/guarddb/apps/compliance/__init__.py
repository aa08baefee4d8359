# backend/guarddb/apps/compliance/__init__.py
"""
Compliance app

Read-only rollup of guard training records and guard documents into a
scored compliance report for an agency (optionally one supervisor's
guards).
"""
