"""
Exception hierarchy for the Auto Mode engine.

Storage faults are absorbed by the run store and surface as RunNotFoundError
(or its RunCorruptedError subclass) so callers can always start fresh.
OutOfRangeError signals a broken invariant and is never retried.
"""


class AutoModeError(Exception):
    """Base class for all Auto Mode errors."""
    pass


class RunNotFoundError(AutoModeError, KeyError):
    """Raised when a save slot has no (usable) run."""

    def __init__(self, save_id: str, reason: str = "no run stored"):
        self.save_id = save_id
        self.reason = reason
        super().__init__(f"Save slot '{save_id}': {reason}")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return self.args[0]


class RunCorruptedError(RunNotFoundError):
    """Raised when a stored record fails shape or version validation."""
    pass


class OutOfRangeError(AutoModeError, IndexError):
    """Raised when a topic pointer falls outside the curriculum."""
    pass


class TopicNotFoundError(AutoModeError, KeyError):
    """Raised when a topic id is not part of the curriculum."""

    def __init__(self, topic_id: str):
        self.topic_id = topic_id
        super().__init__(f"Unknown topic '{topic_id}'")

    def __str__(self) -> str:
        return self.args[0]


class CurriculumError(AutoModeError):
    """Raised when the curriculum file is missing or malformed."""
    pass


class RunImportError(AutoModeError):
    """Raised when an exported run cannot be imported."""
    pass


class InvalidSaveIdError(AutoModeError, ValueError):
    """Raised when a save id cannot be used as a slot name."""
    pass
