# -*- coding: utf-8 -*-
"""Typed failures returned by the order core.

Every error carries an HTTP status and a stable ``code`` so the router can translate it
without inspecting messages.
"""


class OrderError(Exception):
    """Base class for every order-core failure."""
    status_code = 400
    code = "order_error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.__doc__.strip()
        super().__init__(self.detail)


class OrderValidationError(OrderError):
    """Malformed input."""
    status_code = 422
    code = "validation_error"


class Forbidden(OrderError):
    """Not allowed."""
    status_code = 403
    code = "forbidden"


class NotEligible(Forbidden):
    """Courier has no access grant for this store."""
    code = "not_eligible"


class InvalidTransition(OrderError):
    """Requested state change is not allowed."""
    status_code = 409
    code = "invalid_transition"

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move order from '{_label(current)}' to '{_label(requested)}'"
        )


class Conflict(OrderError):
    """Order changed concurrently; refresh and retry."""
    status_code = 409
    code = "conflict"


class AlreadyClaimed(Conflict):
    """Order is no longer available to claim."""
    code = "already_claimed"


class NotFound(OrderError):
    """Not found."""
    status_code = 404
    code = "not_found"


def _label(state):
    return getattr(state, "value", state)
