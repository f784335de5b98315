# backend/erpdb/models.py
"""
Import ORM models from each app so that Alembic and
Base.metadata.create_all() see all tables.
"""

from .apps.accounts import models as accounts_models          # users + roles
from .apps.inventory import models as inventory_models        # items + stock adjustments
from .apps.purchasing import models as purchasing_models      # suppliers + purchase orders
from .apps.work import models as work_models                  # work orders + consumption lines

__all__ = [
    "accounts_models",
    "inventory_models",
    "purchasing_models",
    "work_models",
]
