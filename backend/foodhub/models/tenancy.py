from __future__ import annotations

from ..extensions import db
from foodhub.time_utils import to_utc_z


producer_branches = db.Table(
    "producer_branches",
    db.Column("producer_id", db.Integer, db.ForeignKey("producers.id"), primary_key=True),
    db.Column("branch_id", db.Integer, db.ForeignKey("branches.id"), primary_key=True),
)


class Association(db.Model):
    """
    Organizational root: a local-food network owning branches.

    WHY: Order references are issued per association, so the counter lives
    on this row and every order placed against any of its branches draws
    from it.

    DESIGN:
    - order_ref_counter is only ever changed by an atomic UPDATE
      (see services/reference_service.py), never by read-modify-write
    - Gaps are tolerated (aborted transactions), duplicates are not
    """
    __tablename__ = "associations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    # Last issued order reference number
    order_ref_counter = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Association id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "order_ref_counter": self.order_ref_counter,
            "created_at": to_utc_z(self.created_at),
        }


class Branch(db.Model):
    """Distribution point of an association."""
    __tablename__ = "branches"
    __table_args__ = (
        db.UniqueConstraint("association_id", "name", name="uq_branches_association_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    association_id = db.Column(db.Integer, db.ForeignKey("associations.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    city = db.Column(db.String(120), nullable=True)

    association = db.relationship("Association", backref=db.backref("branches", lazy=True))

    def __repr__(self) -> str:
        return f"<Branch id={self.id} name={self.name!r} association_id={self.association_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "association_id": self.association_id,
            "name": self.name,
            "city": self.city,
        }


class BranchOccurrence(db.Model):
    """A dated distribution session at a branch; orders are placed against it."""
    __tablename__ = "branch_occurrences"
    __table_args__ = (
        db.Index("ix_branch_occurrences_branch_begin", "branch_id", "begin"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)
    begin = db.Column(db.DateTime(timezone=True), nullable=False)
    end = db.Column(db.DateTime(timezone=True), nullable=False)

    branch = db.relationship("Branch", backref=db.backref("occurrences", lazy=True))

    @property
    def association(self):
        return self.branch.association

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "begin": to_utc_z(self.begin),
            "end": to_utc_z(self.end),
        }


class Producer(db.Model):
    """
    Producer selling through one or more branches.

    A producer may deliver to branches of several associations.
    """
    __tablename__ = "producers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    branches = db.relationship(
        "Branch",
        secondary=producer_branches,
        backref=db.backref("producers", lazy=True),
        order_by="Branch.id",
    )

    def __repr__(self) -> str:
        return f"<Producer id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "branch_ids": [b.id for b in self.branches],
        }
