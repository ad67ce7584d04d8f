# remixer/errors.py
# Error taxonomy for processing jobs.
# Only ProcessingError ever reaches a caller; the rest are for logs.

from remixer.utils import GENERIC_ERROR_MESSAGE


class EngineError(Exception):
    """Raised by engine adapters when a call fails."""


class ProcessingStageError(EngineError):
    """An engine failure tagged with the job stage it happened in."""
    stage: str = "unknown"

    def __str__(self) -> str:
        return f"[{self.stage}] {super().__str__()}"


class InputStageError(ProcessingStageError):
    stage = "reading_input"


class ExecutionError(ProcessingStageError):
    stage = "executing"


class OutputReadError(ProcessingStageError):
    stage = "finalizing"


class CleanupError(ProcessingStageError):
    stage = "cleanup"


class ProcessingError(Exception):
    """The single, generic failure a caller sees. Never carries the cause."""

    def __init__(self, message: str = GENERIC_ERROR_MESSAGE) -> None:
        super().__init__(message)
