from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, List

from sqlalchemy.orm import Session

from erpdb.errors import ValidationError
from erpdb.apps.inventory import models as inventory_models
from erpdb.apps.purchasing import models as purchasing_models

from . import schemas

CENT = Decimal("0.01")

DAILY_MAX_DAYS = 31
WEEKLY_MAX_DAYS = 365


def classify_stock(current_stock: int, minimum_stock: int) -> schemas.InventoryHealthStatusEnum:
    if current_stock <= 0:
        return schemas.InventoryHealthStatusEnum.CRITICAL
    if current_stock <= minimum_stock:
        return schemas.InventoryHealthStatusEnum.WARNING
    return schemas.InventoryHealthStatusEnum.HEALTHY


def low_stock_alerts(db: Session) -> List[inventory_models.Item]:
    """Items at or below their minimum, emptiest first."""
    return (
        db.query(inventory_models.Item)
        .filter(inventory_models.Item.current_stock <= inventory_models.Item.minimum_stock)
        .order_by(inventory_models.Item.current_stock.asc(), inventory_models.Item.name.asc())
        .all()
    )


def inventory_health(db: Session) -> schemas.InventoryHealthReport:
    report = schemas.InventoryHealthReport()
    items = db.query(inventory_models.Item).order_by(inventory_models.Item.sku.asc()).all()
    buckets = {
        schemas.InventoryHealthStatusEnum.CRITICAL: report.critical,
        schemas.InventoryHealthStatusEnum.WARNING: report.warning,
        schemas.InventoryHealthStatusEnum.HEALTHY: report.healthy,
    }
    for item in items:
        health = classify_stock(item.current_stock, item.minimum_stock)
        buckets[health].append(
            schemas.InventoryHealthItem(
                id=item.id,
                sku=item.sku,
                name=item.name,
                current_stock=item.current_stock,
                minimum_stock=item.minimum_stock,
                status=health,
            )
        )
    report.summary = schemas.InventoryHealthSummary(
        total_items=len(items),
        critical_count=len(report.critical),
        warning_count=len(report.warning),
        healthy_count=len(report.healthy),
    )
    return report


def _period_labeller(start: date, end: date) -> Callable[[date], str]:
    span = (end - start).days
    if span <= DAILY_MAX_DAYS:
        return lambda d: d.isoformat()
    if span <= WEEKLY_MAX_DAYS:
        def weekly(d: date) -> str:
            iso_year, iso_week, _ = d.isocalendar()
            return f"{iso_year}-W{iso_week:02d}"
        return weekly
    return lambda d: f"{d:%Y-%m}"


def purchase_trends(db: Session, *, start_date: date, end_date: date) -> schemas.PurchaseTrendsReport:
    """
    Approved purchase spend between two dates (inclusive), bucketed by day,
    ISO week or month depending on how wide the window is.
    """
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date.")

    window_start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
    window_end = datetime.combine(end_date, time.max, tzinfo=timezone.utc)
    orders = (
        db.query(purchasing_models.PurchaseOrder)
        .filter(
            purchasing_models.PurchaseOrder.status == purchasing_models.PurchaseOrderStatusEnum.APPROVED,
            purchasing_models.PurchaseOrder.created_at >= window_start,
            purchasing_models.PurchaseOrder.created_at <= window_end,
        )
        .order_by(purchasing_models.PurchaseOrder.created_at.asc())
        .all()
    )

    label = _period_labeller(start_date, end_date)
    totals: Dict[str, Decimal] = OrderedDict()
    counts: Dict[str, int] = {}
    for po in orders:
        period = label(po.created_at.date())
        totals[period] = totals.get(period, Decimal("0")) + Decimal(po.total_amount)
        counts[period] = counts.get(period, 0) + 1

    trends = [
        schemas.PurchaseTrendPoint(
            period=period,
            total_amount=totals[period].quantize(CENT, rounding=ROUND_HALF_UP),
            order_count=counts[period],
        )
        for period in sorted(totals)
    ]
    total_expenditure = sum((t.total_amount for t in trends), Decimal("0")).quantize(CENT)
    total_orders = sum(t.order_count for t in trends)
    average = (
        (total_expenditure / total_orders).quantize(CENT, rounding=ROUND_HALF_UP)
        if total_orders
        else Decimal("0.00")
    )
    return schemas.PurchaseTrendsReport(
        trends=trends,
        summary=schemas.PurchaseTrendSummary(
            total_expenditure=total_expenditure,
            total_orders=total_orders,
            average_order_value=average,
        ),
    )
