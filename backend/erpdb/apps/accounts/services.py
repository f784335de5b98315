from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from erpdb.errors import ValidationError

from . import models, schemas

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Normalisation helpers
# ---------------------------------------------------------------------------


def _normalise_email(value: str) -> str:
    return value.strip().lower()


def _normalise_clerk_id(value: str) -> str:
    return (value or "").strip()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def get_user_by_clerk_id(db: Session, clerk_id: Optional[str]) -> Optional[models.User]:
    if not clerk_id:
        return None
    return (
        db.query(models.User)
        .filter(models.User.clerk_id == _normalise_clerk_id(clerk_id))
        .first()
    )


def create_user(db: Session, payload: schemas.UserCreate) -> models.User:
    clerk_id = _normalise_clerk_id(payload.clerk_id)
    email = _normalise_email(payload.email)

    existing = (
        db.query(models.User)
        .filter(or_(models.User.clerk_id == clerk_id, models.User.email == email))
        .first()
    )
    if existing:
        field = "clerk_id" if existing.clerk_id == clerk_id else "email"
        raise ValidationError(f"A user with this {field} already exists.")

    user = models.User(
        clerk_id=clerk_id,
        email=email,
        name=payload.name.strip(),
        role=payload.role,
    )
    db.add(user)
    db.flush()
    logger.info("User created", extra={"clerk_id": clerk_id, "role": payload.role.value})
    return user


def list_users(db: Session, *, role: Optional[models.UserRole] = None) -> List[models.User]:
    query = db.query(models.User)
    if role is not None:
        query = query.filter(models.User.role == role)
    return query.order_by(models.User.name.asc(), models.User.id.asc()).all()


def require_user_with_role(
    db: Session,
    *,
    clerk_id: str,
    role: models.UserRole,
    label: str = "User",
) -> models.User:
    """
    Load a user referenced by an opaque clerk id and check their role.

    References between tables are plain strings, so existence and role are
    checked here, at the boundary of the operation that needs them.
    """
    user = get_user_by_clerk_id(db, clerk_id)
    if user is None:
        raise ValidationError(f"{label} {clerk_id!r} not found.")
    if user.role != role:
        raise ValidationError(f"{label} {clerk_id!r} must have {role.value} role.")
    return user
