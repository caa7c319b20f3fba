# Overview: Sales order reference allocation from the per-association counter.

from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import Association
from .concurrency import lock_for_update
from .errors import SalesOrderConfigError


REQUIRED_OPTIONS = ("ref_prefix", "ref_pad_length")


class ReferenceAllocator:
    """
    Issues human-readable order references, e.g. "CMD-000042".

    The counter increment is one atomic UPDATE executed inside the caller's
    transaction and is NOT committed here. The row lock it takes holds until
    the caller commits or rolls back, so concurrent checkouts against the
    same association serialize, and a rolled back checkout gives its number
    back (gaps are possible, duplicates are not).
    """

    def __init__(self, config: dict):
        missing = [key for key in REQUIRED_OPTIONS if config.get(key) is None]
        if missing:
            raise SalesOrderConfigError(
                f"Missing required order reference options: {', '.join(missing)}",
                details={"missing": missing},
            )

        prefix = config["ref_prefix"]
        pad_length = config["ref_pad_length"]
        if not isinstance(prefix, str):
            raise SalesOrderConfigError("ref_prefix must be a string")
        if isinstance(pad_length, bool) or not isinstance(pad_length, int) or pad_length <= 0:
            raise SalesOrderConfigError("ref_pad_length must be a positive integer")

        self.ref_prefix = prefix
        self.ref_pad_length = pad_length

    def format_reference(self, counter: int) -> str:
        return f"{self.ref_prefix}{counter:0{self.ref_pad_length}d}"

    def allocate(self, association: Association) -> str:
        """Increment the association counter and return the matching reference."""
        if association is None or association.id is None:
            raise ValueError("association must be persisted")

        stmt = (
            update(Association)
            .where(Association.id == association.id)
            .values(order_ref_counter=Association.order_ref_counter + 1)
            .execution_options(synchronize_session=False)
        )
        result = db.session.execute(stmt)
        if not result.rowcount:
            raise ValueError(f"Association {association.id} not found")

        counter = lock_for_update(
            db.session.query(Association.order_ref_counter).filter(Association.id == association.id)
        ).scalar()

        # Loaded instance picks up the new value on next access
        if association in db.session:
            db.session.expire(association, ["order_ref_counter"])

        return self.format_reference(counter)
