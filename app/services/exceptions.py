"""Exceptions raised by the service layer and mapped to HTTP errors by the API."""


class NotFoundError(LookupError):
    """A requested entity does not exist or is not owned by the caller."""


class NoEligibleCustomersError(ValueError):
    """No customer qualifies for an assignment or send (all missing or opted out)."""
