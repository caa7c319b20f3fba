# Overview: Change detection between a row's persisted snapshot and its in-memory values.

from __future__ import annotations

from decimal import Decimal

from ..models import SalesOrder, SalesOrderRow, RowSnapshot
from ..models.sales import to_decimal
from .activity_service import (
    ActivityDescriptor,
    ActivityManager,
    ROW_QUANTITY_TOTAL_UPDATED,
    ROW_QUANTITY_UPDATED,
    ROW_TOTAL_UPDATED,
)


EMPTY_ROW = RowSnapshot(quantity=Decimal("0"), total_cents=0)


def detect_row_change(
    order_ref: str | None,
    row: SalesOrderRow,
    before: RowSnapshot | None,
    formatter: ActivityManager,
) -> ActivityDescriptor | None:
    """
    Compare a row against the snapshot taken at its last save.

    Only quantity and total are tracked. Priority:
    quantity and total -> quantity only -> total only -> nothing.
    A row with no snapshot was added since the last save and is compared
    against an empty row.
    """
    if before is None:
        before = EMPTY_ROW

    quantity = to_decimal(row.quantity)
    quantity_changed = before.quantity != quantity
    total_changed = before.total_cents != row.total_cents

    params = {"order_ref": order_ref, "ref": row.ref}
    if quantity_changed:
        params["old_quantity"] = formatter.format_float_number(before.quantity)
        params["quantity"] = formatter.format_float_number(quantity)
    if total_changed:
        params["old_total"] = formatter.format_amount(before.total_cents)
        params["total"] = formatter.format_amount(row.total_cents)

    if quantity_changed and total_changed:
        return ActivityDescriptor(ROW_QUANTITY_TOTAL_UPDATED, params)
    if quantity_changed:
        return ActivityDescriptor(ROW_QUANTITY_UPDATED, params)
    if total_changed:
        return ActivityDescriptor(ROW_TOTAL_UPDATED, params)
    return None


def detect_order_changes(order: SalesOrder, formatter: ActivityManager) -> list[ActivityDescriptor]:
    descriptors = []
    for row in order.sales_order_rows:
        descriptor = detect_row_change(order.ref, row, row.persisted_snapshot, formatter)
        if descriptor is not None:
            descriptors.append(descriptor)
    return descriptors
