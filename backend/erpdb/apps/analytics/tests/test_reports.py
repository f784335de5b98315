from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from erpdb.errors import ValidationError
from erpdb.apps.analytics import schemas as analytics_schemas
from erpdb.apps.analytics import services as analytics_services
from erpdb.apps.inventory import models as inventory_models
from erpdb.apps.purchasing import models as purchasing_models

Health = analytics_schemas.InventoryHealthStatusEnum


def _item(db, sku, name, current_stock, minimum_stock):
    item = inventory_models.Item(
        sku=sku,
        name=name,
        current_stock=current_stock,
        minimum_stock=minimum_stock,
        unit_price=Decimal("1.00"),
    )
    db.add(item)
    db.commit()
    return item


def _supplier(db):
    supplier = purchasing_models.Supplier(name="Acme")
    db.add(supplier)
    db.commit()
    return supplier


def _po(db, supplier, number, amount, created_at, status=purchasing_models.PurchaseOrderStatusEnum.APPROVED):
    po = purchasing_models.PurchaseOrder(
        po_number=number,
        supplier_id=supplier.id,
        status=status,
        total_amount=Decimal(amount),
        created_by="user_buyer",
        created_at=created_at,
        updated_at=created_at,
    )
    db.add(po)
    db.commit()
    return po


def _at(y, m, d):
    return datetime(y, m, d, 12, 0, tzinfo=timezone.utc)


def test_low_stock_alerts_ordered_by_stock_then_name(db_session):
    _item(db_session, "A", "Washer", 3, 5)
    _item(db_session, "B", "Anchor", 3, 3)
    _item(db_session, "C", "Bracket", 0, 2)
    _item(db_session, "D", "Clamp", 10, 2)

    alerts = analytics_services.low_stock_alerts(db_session)

    assert [item.name for item in alerts] == ["Bracket", "Anchor", "Washer"]


def test_inventory_health_classification(db_session):
    _item(db_session, "A", "Empty", 0, 0)
    _item(db_session, "B", "At minimum", 5, 5)
    _item(db_session, "C", "Plenty", 50, 5)

    report = analytics_services.inventory_health(db_session)

    assert [i.sku for i in report.critical] == ["A"]
    assert [i.sku for i in report.warning] == ["B"]
    assert [i.sku for i in report.healthy] == ["C"]
    assert report.summary.total_items == 3
    assert report.summary.critical_count == 1
    assert report.summary.warning_count == 1
    assert report.summary.healthy_count == 1
    assert analytics_services.classify_stock(0, 10) == Health.CRITICAL


def test_purchase_trends_daily_only_counts_approved(db_session):
    supplier = _supplier(db_session)
    _po(db_session, supplier, "PO-1", "100.00", _at(2026, 3, 2))
    _po(db_session, supplier, "PO-2", "50.50", _at(2026, 3, 2))
    _po(db_session, supplier, "PO-3", "20.00", _at(2026, 3, 5))
    _po(db_session, supplier, "PO-4", "999.00", _at(2026, 3, 5),
        status=purchasing_models.PurchaseOrderStatusEnum.PENDING)
    _po(db_session, supplier, "PO-5", "999.00", _at(2026, 4, 20))

    report = analytics_services.purchase_trends(
        db_session, start_date=date(2026, 3, 1), end_date=date(2026, 3, 10)
    )

    assert [(p.period, p.total_amount, p.order_count) for p in report.trends] == [
        ("2026-03-02", Decimal("150.50"), 2),
        ("2026-03-05", Decimal("20.00"), 1),
    ]
    assert report.summary.total_expenditure == Decimal("170.50")
    assert report.summary.total_orders == 3
    assert report.summary.average_order_value == Decimal("56.83")


def test_purchase_trends_granularity_follows_window(db_session):
    supplier = _supplier(db_session)
    _po(db_session, supplier, "PO-1", "10.00", _at(2026, 1, 5))
    _po(db_session, supplier, "PO-2", "10.00", _at(2026, 2, 20))

    weekly = analytics_services.purchase_trends(
        db_session, start_date=date(2026, 1, 1), end_date=date(2026, 3, 31)
    )
    assert [p.period for p in weekly.trends] == ["2026-W02", "2026-W08"]

    monthly = analytics_services.purchase_trends(
        db_session, start_date=date(2025, 1, 1), end_date=date(2026, 12, 31)
    )
    assert [p.period for p in monthly.trends] == ["2026-01", "2026-02"]


def test_purchase_trends_empty_window_and_bad_range(db_session):
    report = analytics_services.purchase_trends(
        db_session, start_date=date(2026, 1, 1), end_date=date(2026, 1, 1)
    )
    assert report.trends == []
    assert report.summary.total_orders == 0
    assert report.summary.average_order_value == Decimal("0.00")

    with pytest.raises(ValidationError):
        analytics_services.purchase_trends(
            db_session, start_date=date(2026, 2, 1), end_date=date(2026, 1, 1)
        )
