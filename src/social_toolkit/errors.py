"""
Exception taxonomy for the social toolkit.

Failures in this package are always locally recoverable. Optimistic mutations
roll back and raise 'TransientRemoteFailure' from their pending task, illegal
state changes raise 'InvalidTransition' from the pure transition functions
(the controller turns these into silent no-ops), and partial commits are
reported on return values rather than raised.
"""


class SocialToolkitError(Exception):
    """Base class for all toolkit errors."""


class TransientRemoteFailure(SocialToolkitError):
    """A remote write failed before it was confirmed. The user may retry the gesture."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class InvalidTransition(SocialToolkitError):
    """A local state change that is not allowed from the current state."""
