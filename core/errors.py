"""Error taxonomy for Toolshelf core.

Every collaborator failure is converted into one of these kinds at the
component boundary. None of them is fatal: repeating the triggering action
is always a valid recovery.
"""


class CatalogError(Exception):
    """Base class for all recoverable Toolshelf errors."""

    kind = "error"


class Unauthenticated(CatalogError):
    """No active user session. Nothing was mutated."""

    kind = "unauthenticated"

    def __init__(self, message: str = "Please log in first."):
        super().__init__(message)


class AlreadyExists(CatalogError):
    """The relation being created already exists (e.g. a duplicate save)."""

    kind = "already_exists"


# Name used by the save flow
AlreadySaved = AlreadyExists


class NotFound(CatalogError):
    """Requested entity is missing, e.g. an article without a test."""

    kind = "not_found"


class RemoteFailure(CatalogError):
    """Collaborator network, HTTP or storage error."""

    kind = "remote_failure"


class UnexpectedShape(RemoteFailure):
    """Collaborator response did not match the expected record shape."""

    kind = "unexpected_shape"


class InvalidTransition(CatalogError):
    """Quiz session action not allowed in its current state."""

    kind = "invalid_transition"


class ActionInFlight(CatalogError):
    """An identical action is still pending."""

    kind = "action_in_flight"


class InvalidInput(CatalogError, ValueError):
    """Caller passed a value the action does not accept (sort key, option key)."""

    kind = "invalid_input"
