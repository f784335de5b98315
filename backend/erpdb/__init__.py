# backend/erpdb/__init__.py
"""
Small-business ERP backend.

The ORM model classes live in erpdb/apps/*/models.py; import
``erpdb.models`` to register every table on ``Base.metadata``.
"""
