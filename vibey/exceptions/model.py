#!/usr/bin/env python3
"""
Model Exception Definitions for Vibey

All model-related exceptions inherit from VibeyError.
"""

from vibey.exceptions.base import VibeyError


class ModelError(VibeyError):
    """Base exception for model-related errors."""

    pass


class ModelTimeoutError(ModelError):
    """Raised when the model request times out."""

    def __init__(self, message, timeout_seconds=None, details=None):
        super().__init__(message, details=details)
        self.timeout_seconds = timeout_seconds
        self.user_hint = (
            "The model server did not answer in time. "
            "Try a smaller context or raise REQUEST_TIMEOUT."
        )


class ModelRateLimitError(ModelError):
    """Raised when the model server answers with a 429 status."""

    def __init__(self, message, retry_after=None, details=None):
        super().__init__(message, details=details)
        self.retry_after = retry_after or 60
        self.user_hint = f"Rate limit exceeded. Retry after {self.retry_after} seconds."
