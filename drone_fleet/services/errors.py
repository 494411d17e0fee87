from __future__ import annotations


class FleetError(RuntimeError):
    """Base class for errors raised by the fleet services."""


class ValidationError(FleetError, ValueError):
    """Missing or invalid input, detected before any persistence call."""


class ConflictError(FleetError):
    """The store rejected a write (constraint violation)."""


class NotFoundError(FleetError):
    def __init__(self, resource: str, resource_id: object):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class TransientError(FleetError):
    """Connectivity or lock problem talking to the store. Never retried here."""
