"""Exceptions raised by Safer Observer Events."""


class SaferObserverError(Exception):
    """Base class for all errors raised by this add-on."""


class InvalidTarget(SaferObserverError, ValueError):
    """Raised when a deferral target does not resolve to a valid model."""

    def __init__(self, target: object):
        self.target = target
        super().__init__(f"Need a valid model ({target!r})")


class OperationStateError(SaferObserverError, RuntimeError):
    """Raised when an operation is committed or aborted out of order."""


class TransparentAbortError(OperationStateError):
    """Aborting a transparent operation would abort the enclosing one as well."""
