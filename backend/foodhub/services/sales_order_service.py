"""
Sales Order Service - checkout and order saving

WHY: A cart becomes a durable, referenced order. Saving an order is the only
place where references are issued, stock is adjusted and the activity
stream learns what changed.

UNITS OF WORK (two, in this order):
1. Order unit: totals, reference (new orders), change detection (existing
   orders), stock reconciliation, order persistence. One transaction; any
   failure rolls all of it back, counter increment and stock included.
2. Activity unit: the activity entries queued by step 1. Committed
   separately so that an audit failure never undoes a committed order.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import inspect as sa_inspect

from ..cart import Cart
from ..extensions import db
from ..models import BranchOccurrence, SalesOrder, SalesOrderRow, User
from foodhub.time_utils import utcnow
from .activity_service import ActivityDescriptor, ActivityManager, SALES_ORDER_CREATED
from .change_service import detect_order_changes
from .errors import ActivityRecordingError, SalesOrderError
from .reference_service import ReferenceAllocator
from .stock_service import reconcile_order_stock


BUYER_FIELDS = ("firstname", "lastname", "address1", "address2", "zipcode", "city")


@dataclass(frozen=True)
class SalesOrderConfirmation:
    """Checkout form data confirmed by the consumer."""
    consumer_comment: str | None = None


@dataclass(frozen=True)
class NewOrder:
    """Order never saved: no identity, no reference yet."""
    order: SalesOrder


@dataclass(frozen=True)
class PersistedOrder:
    """Order already saved: has an identity and an immutable reference."""
    order: SalesOrder
    id: int
    ref: str


def order_state(order: SalesOrder) -> NewOrder | PersistedOrder:
    state = sa_inspect(order)
    if not state.has_identity:
        return NewOrder(order)
    return PersistedOrder(order, state.identity[0], order.ref)


class SalesOrderManager:
    def __init__(self, config: dict, activity_manager: ActivityManager | None = None):
        self.reference_allocator = ReferenceAllocator(config)
        self.activity_manager = activity_manager or ActivityManager()

    def process_sales_order_from_cart(
        self,
        cart: Cart,
        occurrence: BranchOccurrence,
        user: User,
        confirmation: SalesOrderConfirmation | None = None,
    ) -> SalesOrder:
        """
        Full checkout: build the order, save it, then empty the cart.

        The cart is only cleared once the order unit has committed. If the
        order unit fails the exception propagates and the cart is intact.
        If only the activity unit fails the order exists, so the cart is
        cleared before ActivityRecordingError propagates.
        """
        order = self.create_from_cart(cart, occurrence, user)

        if confirmation is not None:
            order.consumer_comment = confirmation.consumer_comment

        try:
            self.save(order, occurrence.branch.association, user)
        except ActivityRecordingError:
            cart.clear_items()
            raise

        cart.clear_items()
        return order

    def create_from_cart(self, cart: Cart, occurrence: BranchOccurrence, user: User) -> SalesOrder:
        """Build a new, unsaved order from the cart. The cart is not modified."""
        if cart.is_empty():
            raise SalesOrderError("Cannot create a sales order from an empty cart")

        order = SalesOrder(
            date=utcnow(),
            branch_occurrence=occurrence,
            association=occurrence.branch.association,
            user=user,
        )
        for field_name in BUYER_FIELDS:
            setattr(order, field_name, getattr(user, field_name))

        for item in cart.get_items():
            product = item.product
            order.add_sales_order_row(SalesOrderRow(
                product=product,
                producer=product.producer,
                name=product.name,
                ref=product.ref,
                is_bio=product.is_bio,
                unit_price_cents=product.price_cents,
                quantity=item.quantity,
            ))

        return order

    def save(self, order: SalesOrder, context, user: User | None = None) -> None:
        """
        Save an order and record what changed.

        context is the activity target (the association for checkouts, or a
        producer when a producer edits its rows).

        Raises the underlying persistence error (after rollback) if the order
        unit fails, and ActivityRecordingError if only the activity unit fails.
        """
        state = order_state(order)
        descriptors = self._save_order_unit(order, state)

        if isinstance(state, NewOrder):
            current_app.logger.info("Sales order %s created (id=%s)", order.ref, order.id)
        elif descriptors:
            current_app.logger.info("Sales order %s updated: %d row change(s)", order.ref, len(descriptors))

        self._record_activities(order, descriptors, context, user)

    def _save_order_unit(self, order: SalesOrder, state) -> list[ActivityDescriptor]:
        try:
            order.compute()

            if isinstance(state, NewOrder):
                order.ref = self.reference_allocator.allocate(order.association)
                descriptors = [ActivityDescriptor(SALES_ORDER_CREATED, {"ref": order.ref})]
            else:
                descriptors = detect_order_changes(order, self.activity_manager)

            reconcile_order_stock(order)

            db.session.add(order)
            db.session.commit()
        except Exception:
            db.session.rollback()
            if isinstance(state, NewOrder):
                order.ref = None
            raise

        for row in order.sales_order_rows:
            row.mark_persisted()

        return descriptors

    def _record_activities(self, order: SalesOrder, descriptors, context, user) -> None:
        try:
            activities = [
                self.activity_manager.create_from_entities(descriptor, order, context, user)
                for descriptor in descriptors
            ]
            self.activity_manager.record(activities)
        except Exception as exc:
            db.session.rollback()
            current_app.logger.exception("Failed to record activities for sales order %s", order.ref)
            raise ActivityRecordingError(
                f"Sales order {order.ref} saved but its activities were not recorded",
                order=order,
                details={"trans_keys": [d.trans_key for d in descriptors]},
            ) from exc


def sales_order_manager_from_config(config, activity_manager: ActivityManager | None = None) -> SalesOrderManager:
    """Build a manager from Flask config (ORDER_REF_PREFIX / ORDER_REF_PAD_LENGTH)."""
    options = {
        "ref_prefix": config.get("ORDER_REF_PREFIX"),
        "ref_pad_length": config.get("ORDER_REF_PAD_LENGTH"),
    }
    return SalesOrderManager(options, activity_manager=activity_manager)
