from __future__ import annotations

from ..extensions import db
from foodhub.time_utils import to_utc_z


class Product(db.Model):
    """
    Product sold by a producer.

    AVAILABILITY:
    - UNAVAILABLE: cannot be ordered
    - AVAILABLE: always orderable, stock ignored
    - TRACKED_BY_STOCK: stock gates sales and is adjusted on every order save

    Stock is only meaningful in TRACKED_BY_STOCK mode. It is a mutable
    quantity adjusted incrementally (see services/stock_service.py).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("producer_id", "ref", name="uq_products_producer_ref"),
        {"sqlite_autoincrement": True},
    )

    AVAILABILITY_UNAVAILABLE = "UNAVAILABLE"
    AVAILABILITY_AVAILABLE = "AVAILABLE"
    AVAILABILITY_TRACKED_BY_STOCK = "TRACKED_BY_STOCK"

    id = db.Column(db.Integer, primary_key=True)
    producer_id = db.Column(db.Integer, db.ForeignKey("producers.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    ref = db.Column(db.String(64), nullable=False)
    is_bio = db.Column(db.Boolean, nullable=False, default=False)

    # Authoritative storage in cents
    price_cents = db.Column(db.Integer, nullable=False)

    availability = db.Column(db.String(32), nullable=False, default=AVAILABILITY_AVAILABLE)
    stock = db.Column(db.Numeric(10, 3), nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    producer = db.relationship("Producer", backref=db.backref("products", lazy=True))

    @property
    def is_tracked_by_stock(self) -> bool:
        return self.availability == self.AVAILABILITY_TRACKED_BY_STOCK

    def __repr__(self) -> str:
        return f"<Product id={self.id} ref={self.ref!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "producer_id": self.producer_id,
            "name": self.name,
            "ref": self.ref,
            "is_bio": self.is_bio,
            "price_cents": self.price_cents,
            "availability": self.availability,
            "stock": str(self.stock) if self.stock is not None else None,
            "updated_at": to_utc_z(self.updated_at),
        }
