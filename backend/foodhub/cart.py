"""
Session cart: line items collected before checkout.

The cart lives in the user's session and is never persisted. Checkout reads
its items and empties it once the resulting order is durably saved.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .models import Product
from .models.sales import to_decimal


class CartError(ValueError):
    """Invalid cart input."""


@dataclass
class CartItem:
    product: Product
    quantity: Decimal

    def __post_init__(self):
        self.quantity = to_decimal(self.quantity)
        if self.quantity <= 0:
            raise CartError("quantity must be greater than zero")


class Cart:
    def __init__(self):
        self._items: list[CartItem] = []

    def _find(self, product: Product) -> CartItem | None:
        for item in self._items:
            if item.product is product or (
                product.id is not None and item.product.id == product.id
            ):
                return item
        return None

    def add_product(self, product: Product, quantity=1) -> CartItem:
        """Add a product, merging with an existing line for the same product."""
        item = self._find(product)
        if item is None:
            item = CartItem(product=product, quantity=quantity)
            self._items.append(item)
        else:
            item.quantity = item.quantity + CartItem(product=product, quantity=quantity).quantity
        return item

    def set_quantity(self, product: Product, quantity) -> CartItem:
        item = self._find(product)
        if item is None:
            return self.add_product(product, quantity)
        item.quantity = CartItem(product=product, quantity=quantity).quantity
        return item

    def remove_product(self, product: Product) -> None:
        item = self._find(product)
        if item is not None:
            self._items.remove(item)

    def get_items(self) -> list[CartItem]:
        return list(self._items)

    def count_items(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def clear_items(self) -> None:
        self._items.clear()
