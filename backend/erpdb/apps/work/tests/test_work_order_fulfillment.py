from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from erpdb.database import Base
from erpdb.errors import InvalidOperationError, InvalidStateError, NotFoundError, ValidationError
from erpdb.apps.accounts import models as account_models
from erpdb.apps.inventory import models as inventory_models
from erpdb.apps.inventory import schemas as inventory_schemas
from erpdb.apps.inventory import services as inventory_services
from erpdb.apps.work import models as work_models
from erpdb.apps.work import schemas as work_schemas
from erpdb.apps.work import services as work_services

WorkOrderStatus = work_models.WorkOrderStatusEnum


def _create_user(db, clerk_id, role):
    user = account_models.User(
        clerk_id=clerk_id,
        email=f"{clerk_id}@example.com",
        name=clerk_id,
        role=role,
    )
    db.add(user)
    db.commit()
    return user


def _create_item(db, sku, current_stock):
    item = inventory_services.create_item(
        db,
        inventory_schemas.ItemCreate(
            sku=sku,
            name=f"{sku} name",
            current_stock=current_stock,
            minimum_stock=0,
            unit_price=Decimal("1.00"),
        ),
    )
    db.commit()
    return item


def _create_work_order(db, lines, technician="tech_1"):
    work_order = work_services.create_work_order(
        db,
        payload=work_schemas.WorkOrderCreate(
            description="Replace pump seals",
            assigned_technician=technician,
            items=[work_schemas.WorkOrderItemCreate(item_id=i, quantity_used=q) for i, q in lines],
        ),
        actor_user_id="user_wh",
    )
    db.commit()
    return work_order


@pytest.fixture()
def staff(db_session):
    return {
        "tech": _create_user(db_session, "tech_1", account_models.UserRole.TECHNICIAN),
        "manager": _create_user(db_session, "user_wh", account_models.UserRole.WAREHOUSE_MANAGER),
    }


def test_create_work_order_is_open_with_lines(db_session, staff):
    seal = _create_item(db_session, "SEAL-1", 20)

    work_order = _create_work_order(db_session, [(seal.id, 4)])

    assert work_order.status == WorkOrderStatus.OPEN
    assert work_order.work_order_number.startswith("WO-")
    assert work_order.created_by == "user_wh"
    assert [(line.item_id, line.quantity_used) for line in work_order.items] == [(seal.id, 4)]
    # Creating a work order does not move stock.
    assert inventory_services.read_item(db_session, seal.id).current_stock == 20


def test_create_requires_technician_role(db_session, staff):
    seal = _create_item(db_session, "SEAL-1", 20)

    with pytest.raises(ValidationError) as exc:
        _create_work_order(db_session, [(seal.id, 1)], technician="user_wh")
    assert "must have TECHNICIAN role" in exc.value.message

    with pytest.raises(ValidationError):
        _create_work_order(db_session, [(seal.id, 1)], technician="nobody")


def test_create_refuses_lines_that_exceed_stock(db_session, staff):
    seal = _create_item(db_session, "SEAL-1", 3)

    with pytest.raises(InvalidOperationError) as exc:
        _create_work_order(db_session, [(seal.id, 5)])
    assert "Available: 3, Required: 5" in exc.value.message
    assert work_services.list_work_orders(db_session) == []


def test_create_with_unknown_item_raises_not_found(db_session, staff):
    with pytest.raises(NotFoundError):
        _create_work_order(db_session, [(404, 1)])


def test_completion_deducts_every_line_and_records_adjustments(db_session, staff):
    seal = _create_item(db_session, "SEAL-1", 20)
    gasket = _create_item(db_session, "GASKET-2", 8)
    work_order = _create_work_order(db_session, [(seal.id, 5), (gasket.id, 8)])

    work_services.start_work_order(db_session, work_order_id=work_order.id, actor_user_id="tech_1")
    completed = work_services.complete_work_order(db_session, work_order_id=work_order.id)
    db_session.commit()

    assert completed.status == WorkOrderStatus.COMPLETED
    assert completed.completed_at is not None
    assert inventory_services.read_item(db_session, seal.id).current_stock == 15
    assert inventory_services.read_item(db_session, gasket.id).current_stock == 0

    rows = inventory_services.list_stock_adjustments(db_session, adjusted_by="tech_1")
    assert len(rows) == 2
    for row in rows:
        assert row.adjustment_type == inventory_models.StockAdjustmentTypeEnum.REMOVAL
        assert row.reason == f"Work order completion: {work_order.work_order_number}"


def test_completion_is_all_or_nothing(db_session, staff):
    seal = _create_item(db_session, "SEAL-1", 20)
    gasket = _create_item(db_session, "GASKET-2", 10)
    work_order = _create_work_order(db_session, [(seal.id, 5), (gasket.id, 10)])
    work_services.start_work_order(db_session, work_order_id=work_order.id, actor_user_id="tech_1")
    db_session.commit()

    # Stock drops after planning; completion must check again.
    inventory_services.adjust_stock(
        db_session,
        payload=inventory_schemas.StockAdjustmentCreate(
            item_id=gasket.id,
            adjustment_type=inventory_models.StockAdjustmentTypeEnum.REMOVAL,
            quantity_change=4,
            reason="Damaged in storage",
        ),
        actor_user_id="user_wh",
    )
    db_session.commit()

    with pytest.raises(InvalidOperationError) as exc:
        work_services.complete_work_order(db_session, work_order_id=work_order.id)
    db_session.rollback()

    assert "Insufficient stock for item GASKET-2" in exc.value.message
    assert "Available: 6, Required: 10" in exc.value.message
    assert inventory_services.read_item(db_session, seal.id).current_stock == 20
    assert inventory_services.read_item(db_session, gasket.id).current_stock == 6
    assert work_services.get_work_order(db_session, work_order.id).status == WorkOrderStatus.IN_PROGRESS
    assert inventory_services.list_stock_adjustments(db_session, adjusted_by="tech_1") == []


def test_duplicate_lines_are_summed_before_completion(db_session, staff):
    seal = _create_item(db_session, "SEAL-1", 6)
    work_order = _create_work_order(db_session, [(seal.id, 4), (seal.id, 4)])
    work_services.start_work_order(db_session, work_order_id=work_order.id, actor_user_id="tech_1")
    db_session.commit()

    with pytest.raises(InvalidOperationError) as exc:
        work_services.complete_work_order(db_session, work_order_id=work_order.id)
    db_session.rollback()

    assert "Available: 6, Required: 8" in exc.value.message
    assert inventory_services.read_item(db_session, seal.id).current_stock == 6


def test_complete_requires_in_progress(db_session, staff):
    seal = _create_item(db_session, "SEAL-1", 20)
    work_order = _create_work_order(db_session, [(seal.id, 1)])

    with pytest.raises(InvalidStateError) as exc:
        work_services.complete_work_order(db_session, work_order_id=work_order.id)
    assert exc.value.message == "Work order must be IN_PROGRESS to complete. Current status: OPEN"

    work_services.start_work_order(db_session, work_order_id=work_order.id, actor_user_id="tech_1")
    work_services.complete_work_order(db_session, work_order_id=work_order.id)
    db_session.commit()

    with pytest.raises(InvalidStateError) as exc:
        work_services.complete_work_order(db_session, work_order_id=work_order.id)
    assert "Current status: COMPLETED" in exc.value.message
    assert inventory_services.read_item(db_session, seal.id).current_stock == 19


def test_start_is_idempotent_and_cannot_reopen_completed(db_session, staff):
    seal = _create_item(db_session, "SEAL-1", 20)
    work_order = _create_work_order(db_session, [(seal.id, 1)])

    work_services.start_work_order(db_session, work_order_id=work_order.id, actor_user_id="tech_1")
    again = work_services.start_work_order(db_session, work_order_id=work_order.id, actor_user_id="tech_1")
    assert again.status == WorkOrderStatus.IN_PROGRESS

    work_services.complete_work_order(db_session, work_order_id=work_order.id)
    with pytest.raises(InvalidStateError):
        work_services.start_work_order(db_session, work_order_id=work_order.id, actor_user_id="tech_1")


def test_work_order_without_lines_completes_without_stock_movement(db_session, staff):
    work_order = _create_work_order(db_session, [])

    work_services.start_work_order(db_session, work_order_id=work_order.id, actor_user_id="tech_1")
    completed = work_services.complete_work_order(db_session, work_order_id=work_order.id)
    db_session.commit()

    assert completed.status == WorkOrderStatus.COMPLETED
    assert inventory_services.list_stock_adjustments(db_session) == []


def test_unknown_work_order_raises_not_found(db_session):
    with pytest.raises(NotFoundError) as exc:
        work_services.complete_work_order(db_session, work_order_id=77)
    assert exc.value.message == "Work order with ID 77 not found"


def test_list_work_orders_filters(db_session, staff):
    seal = _create_item(db_session, "SEAL-1", 20)
    first = _create_work_order(db_session, [(seal.id, 1)])
    _create_work_order(db_session, [(seal.id, 1)])
    work_services.start_work_order(db_session, work_order_id=first.id, actor_user_id="tech_1")
    db_session.commit()

    in_progress = work_services.list_work_orders(db_session, status=WorkOrderStatus.IN_PROGRESS)
    assert [wo.id for wo in in_progress] == [first.id]
    assert len(work_services.list_work_orders(db_session, assigned_technician="tech_1")) == 2
    assert work_services.list_work_orders(db_session, assigned_technician="tech_2") == []


def test_overlapping_completions_deduct_once(tmp_path):
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'erp.db'}")
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    first, second = Session(), Session()
    try:
        _create_user(first, "tech_1", account_models.UserRole.TECHNICIAN)
        seal = _create_item(first, "SEAL-1", 50)
        work_order = _create_work_order(first, [(seal.id, 5)])
        work_services.start_work_order(first, work_order_id=work_order.id, actor_user_id="tech_1")
        first.commit()

        # The second caller has already seen the order as IN_PROGRESS.
        stale = work_services.get_work_order(second, work_order.id)
        assert stale.status == WorkOrderStatus.IN_PROGRESS

        work_services.complete_work_order(first, work_order_id=work_order.id)
        first.commit()

        with pytest.raises(InvalidStateError) as exc:
            work_services.complete_work_order(second, work_order_id=work_order.id)
        second.rollback()

        assert "Current status: COMPLETED" in exc.value.message
        assert inventory_services.read_item(second, seal.id).current_stock == 45
        assert len(inventory_services.list_stock_adjustments(second, item_id=seal.id)) == 1
    finally:
        first.close()
        second.close()
        engine.dispose()
