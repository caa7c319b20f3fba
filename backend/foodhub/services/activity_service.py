# Overview: Activity stream recording; builds append-only entries and persists them in their own unit of work.

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP

from ..extensions import db
from ..models import Activity, Association, Producer, SalesOrder, User
from ..models.sales import to_decimal
from .concurrency import run_with_retry
"""
Activity stream invariants:

- Entries are append-only; nothing here updates or deletes an Activity.
- Entries are committed in their OWN transaction, after the domain change
  they describe has committed. A failure here never rolls back that change.
- Numbers in params are display strings (format_float_number), never raw floats.
"""


SALES_ORDER_CREATED = "activity_stream.sales_order.created"
ROW_QUANTITY_TOTAL_UPDATED = "activity_stream.sales_order.row.quantity_total_updated"
ROW_QUANTITY_UPDATED = "activity_stream.sales_order.row.quantity_updated"
ROW_TOTAL_UPDATED = "activity_stream.sales_order.row.total_updated"

MESSAGES = {
    SALES_ORDER_CREATED: "Order {ref} created",
    ROW_QUANTITY_TOTAL_UPDATED: (
        "Order {order_ref}: quantity of {ref} changed from {old_quantity} to {quantity}, "
        "total changed from {old_total} to {total}"
    ),
    ROW_QUANTITY_UPDATED: "Order {order_ref}: quantity of {ref} changed from {old_quantity} to {quantity}",
    ROW_TOTAL_UPDATED: "Order {order_ref}: total of {ref} changed from {old_total} to {total}",
}

ENTITY_TYPES = {
    SalesOrder: "sales_order",
    Association: "association",
    Producer: "producer",
}


@dataclass(frozen=True)
class ActivityDescriptor:
    """A detected change, before it is bound to a subject and persisted."""
    trans_key: str
    params: dict = field(default_factory=dict)


def entity_type(entity) -> str:
    try:
        return ENTITY_TYPES[type(entity)]
    except KeyError:
        raise ValueError(f"Unsupported activity entity: {type(entity).__name__}")


class ActivityManager:
    def __init__(self, messages: dict[str, str] | None = None):
        self.messages = dict(MESSAGES)
        if messages:
            self.messages.update(messages)

    def format_float_number(self, value) -> str:
        """
        Display rule for quantities and amounts.

        Two decimals at most (half-up), trailing zeros stripped:
        2 -> "2", 1.50 -> "1.5", 12.345 -> "12.35".
        """
        number = to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        text = f"{number:f}"
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return "0" if text in ("-0", "") else text

    def format_amount(self, cents: int | None) -> str:
        return self.format_float_number(Decimal(cents or 0) / 100)

    def format_message(self, trans_key: str, params: dict | None = None) -> str:
        template = self.messages.get(trans_key)
        if template is None:
            return trans_key
        return template.format_map(params or {})

    def create_from_entities(
        self,
        descriptor: ActivityDescriptor,
        subject,
        context=None,
        user: User | None = None,
    ) -> Activity:
        """Build (but do not persist) an Activity for a persisted subject."""
        if subject.id is None:
            raise ValueError("Activity subject must be persisted")

        activity = Activity(
            trans_key=descriptor.trans_key,
            params=json.dumps(descriptor.params, sort_keys=True),
            object_type=entity_type(subject),
            object_id=subject.id,
            user_id=user.id if user is not None else None,
        )
        if context is not None:
            activity.target_type = entity_type(context)
            activity.target_id = context.id
        return activity

    def record(self, activities: list[Activity]) -> list[Activity]:
        """Persist activities as one unit of work."""
        if not activities:
            return []

        def _op():
            for activity in activities:
                db.session.add(activity)
            db.session.commit()
            return activities

        return run_with_retry(_op)

    def render(self, activity: Activity) -> str:
        return self.format_message(activity.trans_key, activity.get_params())
