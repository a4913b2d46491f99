"""Exception taxonomy for the subtitle translation pipeline."""

from __future__ import annotations


class BisubError(RuntimeError):
    """Base class for all pipeline errors."""


class MergeInputError(BisubError):
    """Raised when a raw caption cue is malformed (missing start or duration)."""


class TranslationCallError(BisubError):
    """Raised when the translation backend fails or returns nothing."""


class ResponseParseError(BisubError):
    """Raised when a backend response does not contain the expected JSON."""


class StorageError(BisubError):
    """Raised when the persistence collaborator cannot read or write a key."""


class BatchFailedError(BisubError):
    """Raised when a batch exhausts its retries and the run is aborted."""

    def __init__(self, batch_index: int, attempts: int, last_error: BaseException | None):
        self.batch_index = batch_index
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Batch {batch_index + 1} failed after {attempts} attempts: {last_error}"
        )


__all__ = [
    "BatchFailedError",
    "BisubError",
    "MergeInputError",
    "ResponseParseError",
    "StorageError",
    "TranslationCallError",
]
