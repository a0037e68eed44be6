"""
Error taxonomy for the analysis pipeline.

Only ``BatchValidationError`` and ``PaymentRequiredError`` are allowed to stop a
request before any work happens. The others are raised by collaborators and
absorbed by the stage that calls them.
"""

from typing import Any


class ArtlensError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class BatchValidationError(ArtlensError):
    """The submitted batch is empty or too large."""

    pass


class PaymentRequiredError(ArtlensError):
    """The batch needs a paid tier that the caller has not purchased."""

    def __init__(self, message: str, tier: Any, payment_url: str | None = None):
        super().__init__(message, {"tier": getattr(tier, "name", tier)})
        self.tier = tier
        self.payment_url = payment_url


class AnalysisError(ArtlensError):
    """A single image could not be analyzed."""

    pass


class SourceUnavailableError(ArtlensError):
    """A content source failed to answer a search."""

    def __init__(self, message: str, source: str | None = None, **kwargs):
        super().__init__(message, kwargs)
        self.source = source


class PersistenceError(ArtlensError):
    """The payment or history store could not be reached."""

    pass
