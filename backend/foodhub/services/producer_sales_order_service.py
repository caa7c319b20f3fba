# Overview: Producer-facing order reporting; lookups of next occurrences, producer orders and their activity.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import and_, or_

from ..extensions import db
from ..models import Activity, Branch, BranchOccurrence, Producer, SalesOrder, SalesOrderRow
from foodhub.time_utils import utcnow


@dataclass
class ProducerSalesOrder:
    """A sales order seen by one producer: only that producer's rows count."""
    producer: Producer
    sales_order: SalesOrder

    @property
    def rows(self) -> list[SalesOrderRow]:
        return [row for row in self.sales_order.sales_order_rows if row.producer_id == self.producer.id]

    @property
    def total_cents(self) -> int:
        return sum(row.total_cents for row in self.rows)

    def to_dict(self) -> dict:
        return {
            "producer_id": self.producer.id,
            "sales_order_id": self.sales_order.id,
            "ref": self.sales_order.ref,
            "firstname": self.sales_order.firstname,
            "lastname": self.sales_order.lastname,
            "total_cents": self.total_cents,
            "rows": [row.to_dict() for row in self.rows],
        }


@dataclass
class ProducerBranchOccurrenceSalesOrders:
    producer: Producer
    branch_occurrence: BranchOccurrence
    sales_orders: list[ProducerSalesOrder] = field(default_factory=list)

    def add_sales_order(self, producer_sales_order: ProducerSalesOrder) -> None:
        self.sales_orders.append(producer_sales_order)

    @property
    def total_cents(self) -> int:
        return sum(o.total_cents for o in self.sales_orders)


@dataclass
class ProducerSalesOrders:
    producer: Producer
    branch_occurrences: list[ProducerBranchOccurrenceSalesOrders] = field(default_factory=list)

    def add(self, group: ProducerBranchOccurrenceSalesOrders) -> None:
        self.branch_occurrences.append(group)


def find_next_occurrence_for_branch(branch: Branch, as_of: datetime | None = None) -> BranchOccurrence | None:
    """First occurrence of the branch starting at or after as_of (default: now)."""
    as_of = as_of or utcnow()
    return (
        db.session.query(BranchOccurrence)
        .filter(
            BranchOccurrence.branch_id == branch.id,
            BranchOccurrence.begin >= as_of,
        )
        .order_by(BranchOccurrence.begin.asc(), BranchOccurrence.id.asc())
        .first()
    )


def find_orders_for_producer(producer: Producer, occurrence: BranchOccurrence) -> list[SalesOrder]:
    """Orders placed for the occurrence holding at least one row of the producer."""
    has_producer_row = (
        db.session.query(SalesOrderRow.id)
        .filter(
            SalesOrderRow.sales_order_id == SalesOrder.id,
            SalesOrderRow.producer_id == producer.id,
        )
        .exists()
    )
    return (
        db.session.query(SalesOrder)
        .filter(
            SalesOrder.branch_occurrence_id == occurrence.id,
            has_producer_row,
        )
        .order_by(SalesOrder.ref.asc())
        .all()
    )


def get_for_next_branch_occurrences(producer: Producer, as_of: datetime | None = None) -> ProducerSalesOrders:
    """
    Orders of a producer for the next occurrence of each of its branches.

    Branches without an upcoming occurrence are left out.
    """
    result = ProducerSalesOrders(producer)

    for branch in producer.branches:
        occurrence = find_next_occurrence_for_branch(branch, as_of)
        if occurrence is None:
            continue

        group = ProducerBranchOccurrenceSalesOrders(producer, occurrence)
        for order in find_orders_for_producer(producer, occurrence):
            group.add_sales_order(ProducerSalesOrder(producer, order))

        result.add(group)

    return result


def get_activities(producer_order: ProducerSalesOrder) -> list[Activity]:
    """
    Activity of an order visible to a producer, newest first.

    A producer sees entries targeted at the order's association (checkout,
    association-side edits) and at itself, never at other producers.
    """
    order = producer_order.sales_order
    return (
        db.session.query(Activity)
        .filter(
            Activity.object_type == "sales_order",
            Activity.object_id == order.id,
            or_(
                and_(Activity.target_type == "association", Activity.target_id == order.association_id),
                and_(Activity.target_type == "producer", Activity.target_id == producer_order.producer.id),
            ),
        )
        .order_by(Activity.id.desc())
        .all()
    )
