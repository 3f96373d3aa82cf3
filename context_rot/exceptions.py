"""
Errors raised by the context engine.

Only configuration mistakes and misuse of a session surface to callers.
Storage failures are raised by stores as StorageError and absorbed by the
components that call them; heuristic misses are never errors.
"""


class ContextRotError(Exception):
    """Root of the engine's error hierarchy."""


class NotFoundError(ContextRotError):
    """A pinned item (or other addressed record) does not exist."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier!r} does not exist")


class InvalidOperationError(ContextRotError):
    """The session is in a state that forbids the call, e.g. already closed."""


class ConfigurationError(ContextRotError, ValueError):
    """A budget, threshold or option value is out of range."""


class StorageError(ContextRotError):
    """The backing database could not be opened, read or written."""
