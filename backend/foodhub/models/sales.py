from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import orm

from ..extensions import db
from foodhub.time_utils import to_utc_z


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class RowSnapshot:
    """Row values as last read from or written to the database."""
    quantity: Decimal
    total_cents: int


class SalesOrder(db.Model):
    """
    Sales order placed by a consumer for one branch occurrence.

    WHY: The order is the durable record of a checkout. Buyer identity and
    address are copied from the user at creation time and never re-synced.

    REFERENCE:
    - ref is NULL until the first save, then assigned exactly once from the
      association counter (see services/reference_service.py)
    - ref is unique within its association
    """
    __tablename__ = "sales_orders"
    __table_args__ = (
        db.UniqueConstraint("association_id", "ref", name="uq_sales_orders_association_ref"),
        db.Index("ix_sales_orders_occurrence", "branch_occurrence_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    association_id = db.Column(db.Integer, db.ForeignKey("associations.id"), nullable=False, index=True)
    branch_occurrence_id = db.Column(db.Integer, db.ForeignKey("branch_occurrences.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    # Human-readable reference (e.g., "CMD-000042")
    ref = db.Column(db.String(64), nullable=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False)

    # Buyer snapshot
    firstname = db.Column(db.String(128), nullable=True)
    lastname = db.Column(db.String(128), nullable=True)
    address1 = db.Column(db.String(255), nullable=True)
    address2 = db.Column(db.String(255), nullable=True)
    zipcode = db.Column(db.String(16), nullable=True)
    city = db.Column(db.String(128), nullable=True)

    consumer_comment = db.Column(db.Text, nullable=True)

    # Sum of row totals, maintained by compute()
    total_cents = db.Column(db.Integer, nullable=False, default=0)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    association = db.relationship("Association")
    branch_occurrence = db.relationship("BranchOccurrence")
    user = db.relationship("User")
    sales_order_rows = db.relationship(
        "SalesOrderRow",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        order_by="SalesOrderRow.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def add_sales_order_row(self, row: "SalesOrderRow") -> None:
        self.sales_order_rows.append(row)

    def compute(self) -> None:
        """Recompute every row total, then the order total."""
        total = 0
        for row in self.sales_order_rows:
            row.compute()
            total += row.total_cents
        self.total_cents = total

    def __repr__(self) -> str:
        return f"<SalesOrder id={self.id} ref={self.ref!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ref": self.ref,
            "association_id": self.association_id,
            "branch_occurrence_id": self.branch_occurrence_id,
            "user_id": self.user_id,
            "date": to_utc_z(self.date),
            "firstname": self.firstname,
            "lastname": self.lastname,
            "address1": self.address1,
            "address2": self.address2,
            "zipcode": self.zipcode,
            "city": self.city,
            "consumer_comment": self.consumer_comment,
            "total_cents": self.total_cents,
            "version_id": self.version_id,
            "rows": [row.to_dict() for row in self.sales_order_rows],
        }


class SalesOrderRow(db.Model):
    """
    Line of a sales order.

    name, ref, is_bio and unit_price_cents are snapshots of the product at
    order creation. Only quantity and total_cents change afterwards.
    product_id becomes NULL when the product leaves the catalog.
    """
    __tablename__ = "sales_order_rows"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sales_order_id = db.Column(db.Integer, db.ForeignKey("sales_orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    producer_id = db.Column(db.Integer, db.ForeignKey("producers.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    ref = db.Column(db.String(64), nullable=False)
    is_bio = db.Column(db.Boolean, nullable=False, default=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)

    quantity = db.Column(db.Numeric(10, 3), nullable=False)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    sales_order = db.relationship("SalesOrder", back_populates="sales_order_rows")
    product = db.relationship("Product")
    producer = db.relationship("Producer")

    # Not mapped: set on load and after each committed save
    persisted_snapshot = None

    @orm.reconstructor
    def _init_on_load(self):
        self.mark_persisted()

    def mark_persisted(self) -> None:
        self.persisted_snapshot = RowSnapshot(
            quantity=to_decimal(self.quantity),
            total_cents=self.total_cents,
        )

    @property
    def old_quantity(self) -> Decimal:
        """Quantity at the last save; 0 for a row never saved."""
        if self.persisted_snapshot is None:
            return Decimal("0")
        return self.persisted_snapshot.quantity

    def compute(self) -> None:
        total = Decimal(self.unit_price_cents) * to_decimal(self.quantity)
        self.total_cents = int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sales_order_id": self.sales_order_id,
            "product_id": self.product_id,
            "producer_id": self.producer_id,
            "name": self.name,
            "ref": self.ref,
            "is_bio": self.is_bio,
            "unit_price_cents": self.unit_price_cents,
            "quantity": str(self.quantity),
            "total_cents": self.total_cents,
        }
