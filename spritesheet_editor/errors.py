"""
Exceptions raised by the spritesheet editor core.

InvalidDimensions, DecodeFailure and EmptyAnimation are also ValueErrors, so
callers that only guard against bad input with ``except ValueError`` keep
working.
"""


class SpritesheetEditorError(Exception):
    """Base class for all editor errors."""


class InvalidDimensions(SpritesheetEditorError, ValueError):
    """Slice or reconstruct geometry is degenerate (zero-sized cells, mixed frame sizes)."""


class EmptyAnimation(SpritesheetEditorError, ValueError):
    """Export was attempted while every frame is excluded."""


class DecodeFailure(SpritesheetEditorError, ValueError):
    """Source image bytes could not be decoded."""


class StaleResult(SpritesheetEditorError):
    """A fetch completed after the session moved on to a different job."""

    def __init__(self, issued_for: str | None, active: str | None):
        super().__init__(f"result for job {issued_for!r} arrived while {active!r} is active")
        self.issued_for = issued_for
        self.active = active


class StorageUnavailable(SpritesheetEditorError):
    """The cache store rejected a read or write."""
