from __future__ import annotations

from ..extensions import db
from foodhub.time_utils import to_utc_z


class User(db.Model):
    """
    Consumer account.

    Address fields are copied onto each sales order at checkout; orders
    never follow later changes made here.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True)

    firstname = db.Column(db.String(128), nullable=True)
    lastname = db.Column(db.String(128), nullable=True)
    address1 = db.Column(db.String(255), nullable=True)
    address2 = db.Column(db.String(255), nullable=True)
    zipcode = db.Column(db.String(16), nullable=True)
    city = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "firstname": self.firstname,
            "lastname": self.lastname,
            "address1": self.address1,
            "address2": self.address2,
            "zipcode": self.zipcode,
            "city": self.city,
            "created_at": to_utc_z(self.created_at),
        }
