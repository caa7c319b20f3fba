from __future__ import annotations

import json

from ..extensions import db
from foodhub.time_utils import to_utc_z


class Activity(db.Model):
    """
    Activity stream entry describing a change to a domain object.

    IMMUTABLE: Never update or delete. Append-only for audit integrity.

    - object_type/object_id: the subject (e.g., the sales order)
    - target_type/target_id: the context the entry is shown in
      (an association or a producer)
    - trans_key + params render the human-readable message
    """
    __tablename__ = "activities"
    __table_args__ = (
        db.Index("ix_activities_object", "object_type", "object_id"),
        db.Index("ix_activities_target", "target_type", "target_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    trans_key = db.Column(db.String(128), nullable=False)
    params = db.Column(db.Text, nullable=False, default="{}")  # JSON object

    object_type = db.Column(db.String(32), nullable=False)
    object_id = db.Column(db.Integer, nullable=False)
    target_type = db.Column(db.String(32), nullable=True)
    target_id = db.Column(db.Integer, nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    user = db.relationship("User")

    def get_params(self) -> dict:
        return json.loads(self.params or "{}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "trans_key": self.trans_key,
            "params": self.get_params(),
            "object_type": self.object_type,
            "object_id": self.object_id,
            "target_type": self.target_type,
            "target_id": self.target_id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
        }
