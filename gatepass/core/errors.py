# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Domain exceptions shared by repositories, services and controllers."""


class GatepassError(Exception):
    """Base exception for the gate-access service."""


class ValidationError(GatepassError):
    """A required field is missing or a value is outside its allowed set."""


class NotFoundError(GatepassError):
    """A referenced visitor or user id does not resolve."""


class ConflictError(GatepassError):
    """A uniqueness constraint in the store was violated."""


class PersistenceError(GatepassError):
    """The store is unavailable or a write failed."""


class DeliveryError(GatepassError):
    """The push provider rejected or failed to deliver a batch.

    Never leaves the notification dispatcher.
    """
