# backend/erpdb/apps/accounts/models.py

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
)

from erpdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, enum.Enum):
    """Roles used for route gating and for work-order assignment."""

    ADMIN = "ADMIN"
    WAREHOUSE_MANAGER = "WAREHOUSE_MANAGER"
    PURCHASING_STAFF = "PURCHASING_STAFF"
    TECHNICIAN = "TECHNICIAN"


class User(Base):
    """
    User account mirrored from the identity provider.

    Other tables reference users by ``clerk_id`` (an opaque string issued by
    the identity provider) rather than by foreign key.
    """

    __tablename__ = "users"
    __table_args__ = (Index("ix_users_role", "role"),)

    id = Column(Integer, primary_key=True, index=True)
    clerk_id = Column(String(128), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role_enum", native_enum=False),
        nullable=False,
        default=UserRole.TECHNICIAN,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<User clerk_id={self.clerk_id!r} role={self.role}>"
