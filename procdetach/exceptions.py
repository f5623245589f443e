"""Custom exception hierarchy for procdetach."""

from __future__ import annotations


class DetachError(Exception):
    """Base for all procdetach errors."""


class SpawnError(DetachError):
    """The OS refused to create the detached child."""


class PersistenceError(DetachError):
    """The registry record could not be written; the child was killed."""


class StopError(DetachError):
    """One or more records failed to stop. Holds every collected message."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class UsageError(DetachError):
    """Unrecognized or missing detach action."""
