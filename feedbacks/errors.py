from __future__ import annotations

from typing import Optional


class FeedbackError(Exception):
    """Base class for every failure surfaced by this project."""


class DecodingError(FeedbackError):
    """A stored value does not match any of the six tagged-value variants."""


class StoreError(FeedbackError):
    """
    A call against the record store or the report destination failed.

    Carries the store's error code (e.g. "ResourceNotFoundException",
    "ProvisionedThroughputExceededException") when one was reported.
    """

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class InputError(FeedbackError, ValueError):
    """A required parameter is missing or a request payload is malformed."""


class NotificationError(FeedbackError):
    """Outbound delivery of a report or alert failed."""
