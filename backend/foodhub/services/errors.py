# Overview: Error taxonomy for sales order processing.


class SalesOrderError(Exception):
    """Raised for sales order operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class SalesOrderConfigError(SalesOrderError):
    """Order reference settings are missing or invalid. Fatal at construction."""


class ActivityRecordingError(SalesOrderError):
    """
    The activity stream could not be written after the order committed.

    The order (and its stock adjustments) IS durable; only audit
    completeness is degraded.
    """
    def __init__(self, message: str, order, details: dict | None = None):
        super().__init__(message, details)
        self.order = order
