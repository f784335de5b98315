# backend/erpdb/apps/accounts/__init__.py
"""
Accounts app

Responsible for:
- User accounts mirrored from the identity provider
- Roles used for route gating and work-order assignment
"""
