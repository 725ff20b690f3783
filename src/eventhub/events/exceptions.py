"""Errors raised by the event services; routers map them onto HTTP statuses."""


class NotFoundError(ValueError):
    """The event, post or comment does not exist (404)."""


class PermissionDeniedError(ValueError):
    """The caller may not act on this target (403)."""
