from __future__ import annotations

import pytest
from fastapi import HTTPException

from erpdb import security
from erpdb.errors import ValidationError
from erpdb.apps.accounts import models as account_models
from erpdb.apps.accounts import router as accounts_router
from erpdb.apps.accounts import schemas as account_schemas
from erpdb.apps.accounts import services as account_services

UserRole = account_models.UserRole


def _create_user(db, clerk_id, role, email=None):
    user = account_services.create_user(
        db,
        account_schemas.UserCreate(
            clerk_id=clerk_id,
            email=email or f"{clerk_id}@example.com",
            name=clerk_id.replace("_", " ").title(),
            role=role,
        ),
    )
    db.commit()
    return user


def test_create_user_lowercases_email_and_rejects_duplicates(db_session):
    user = _create_user(db_session, "user_admin", UserRole.ADMIN, email="Admin@Example.com")
    assert user.email == "admin@example.com"

    with pytest.raises(ValidationError) as exc:
        _create_user(db_session, "user_admin", UserRole.TECHNICIAN, email="other@example.com")
    assert "clerk_id" in exc.value.message

    with pytest.raises(ValidationError) as exc:
        _create_user(db_session, "user_other", UserRole.TECHNICIAN, email="admin@example.com")
    assert "email" in exc.value.message


def test_list_users_filters_by_role(db_session):
    _create_user(db_session, "tech_b", UserRole.TECHNICIAN)
    _create_user(db_session, "tech_a", UserRole.TECHNICIAN)
    _create_user(db_session, "buyer", UserRole.PURCHASING_STAFF)

    technicians = account_services.list_users(db_session, role=UserRole.TECHNICIAN)
    assert [u.clerk_id for u in technicians] == ["tech_a", "tech_b"]
    assert len(account_services.list_users(db_session)) == 3


def test_require_user_with_role(db_session):
    _create_user(db_session, "tech_1", UserRole.TECHNICIAN)
    _create_user(db_session, "wh_1", UserRole.WAREHOUSE_MANAGER)

    assert account_services.require_user_with_role(
        db_session, clerk_id="tech_1", role=UserRole.TECHNICIAN
    ).clerk_id == "tech_1"

    with pytest.raises(ValidationError) as exc:
        account_services.require_user_with_role(db_session, clerk_id="wh_1", role=UserRole.TECHNICIAN)
    assert "must have TECHNICIAN role" in exc.value.message

    with pytest.raises(ValidationError) as exc:
        account_services.require_user_with_role(db_session, clerk_id="ghost", role=UserRole.TECHNICIAN)
    assert "not found" in exc.value.message


def test_token_round_trip_resolves_current_user(db_session):
    user = _create_user(db_session, "user_wh", UserRole.WAREHOUSE_MANAGER)
    token = security.create_access_token(data={"sub": user.clerk_id})

    current = security.get_current_user(token=token, db=db_session)
    assert current.id == user.id

    with pytest.raises(HTTPException) as exc:
        security.get_current_user(token="not-a-token", db=db_session)
    assert exc.value.status_code == 401


def test_require_roles_denies_other_roles(db_session):
    tech = _create_user(db_session, "tech_1", UserRole.TECHNICIAN)
    admin = _create_user(db_session, "admin_1", UserRole.ADMIN)

    dependency = security.require_roles(UserRole.ADMIN, UserRole.WAREHOUSE_MANAGER)
    assert dependency(current_user=admin) is admin

    with pytest.raises(HTTPException) as exc:
        dependency(current_user=tech)
    assert exc.value.status_code == 403
    assert exc.value.detail == "Access denied. Required roles: ADMIN, WAREHOUSE_MANAGER"


def test_require_roles_rejects_unknown_role_names():
    with pytest.raises(ValueError):
        security.require_roles("SUPERUSER")


def test_create_user_route_commits(db_session):
    admin = _create_user(db_session, "admin_1", UserRole.ADMIN)

    created = accounts_router.create_user(
        account_schemas.UserCreate(
            clerk_id="tech_9",
            email="tech9@example.com",
            name="Tech Nine",
            role=UserRole.TECHNICIAN,
        ),
        db=db_session,
        current_user=admin,
    )

    assert created.id is not None
    assert account_services.get_user_by_clerk_id(db_session, "tech_9") is not None
