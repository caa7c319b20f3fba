# Overview: Incremental stock reconciliation for stock-tracked products.

from __future__ import annotations

from ..models import Product, SalesOrder, SalesOrderRow
from ..models.sales import to_decimal
"""
Stock invariants:

- Only products in TRACKED_BY_STOCK mode are adjusted.
- Adjustment is a delta: stock -= (row.quantity - row.old_quantity).
  A new row deducts its full quantity; a reduced row restocks the difference.
- Exactly one reconciliation per row per save. Running it twice in the same
  save double-counts the delta.
- A row whose product left the catalog keeps its snapshot and is skipped.
"""


def reconcile_stock(product: Product | None, row: SalesOrderRow) -> bool:
    """Apply the row's quantity delta to the product stock. Returns True if adjusted."""
    if product is None or not product.is_tracked_by_stock:
        return False

    delta = to_decimal(row.quantity) - row.old_quantity
    product.stock = to_decimal(product.stock) - delta
    return True


def reconcile_order_stock(order: SalesOrder) -> list[Product]:
    adjusted = []
    for row in order.sales_order_rows:
        if reconcile_stock(row.product, row):
            adjusted.append(row.product)
    return adjusted
