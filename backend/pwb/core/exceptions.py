"""Domain exceptions raised by models and services.

API routes translate these into ``HTTPException`` responses.
"""


class PwbError(Exception):
    """Base class for application errors."""


class InvalidTransitionError(PwbError):
    """A state machine event is not allowed from the current state."""

    def __init__(self, event: str, state: str):
        self.event = event
        self.state = state
        super().__init__(f"Event '{event}' cannot transition from '{state}'")


class GuardFailedError(InvalidTransitionError):
    """The event is allowed from this state but its precondition failed."""

    def __init__(self, event: str, state: str, reason: str):
        super().__init__(event, state)
        self.reason = reason
        self.args = (f"Event '{event}' blocked in '{state}': {reason}",)


class SubdomainPoolEmptyError(PwbError):
    """The subdomain pool has never been populated."""


class SubdomainPoolExhaustedError(PwbError):
    """Every pooled subdomain is reserved or allocated."""


class RateFetchError(PwbError):
    """Exchange rates could not be fetched."""


class DomainValidationError(PwbError):
    """Field-level validation errors, keyed by field name."""

    def __init__(self, errors: dict):
        self.errors = errors
        message = "; ".join(f"{field} {msg}" for field, msgs in errors.items() for msg in msgs)
        super().__init__(message)
