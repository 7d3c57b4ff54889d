#!/usr/bin/env python3
"""
Context Exception Definitions for Vibey

All context-related exceptions inherit from VibeyError.
"""

from vibey.exceptions.base import VibeyError


class ContextError(VibeyError):
    """Base exception for context management errors."""

    pass


class ContextOverflowError(ContextError):
    """Raised when context token limit is exceeded."""

    def __init__(self, message, current_tokens=None, max_tokens=None):
        super().__init__(message)
        self.current_tokens = current_tokens
        self.max_tokens = max_tokens


class ContextReadError(ContextError):
    """Raised by a file reader when a context file cannot be read."""

    def __init__(self, message, path=None, original_error=None):
        super().__init__(message, original_error=original_error)
        self.path = path


class TokenEstimationError(ContextError):
    """Raised when a pluggable token counter fails."""

    def __init__(
        self,
        message: str,
        estimator_name: str = None,
        original_error: Exception = None,
    ):
        super().__init__(message, original_error=original_error)
        self.estimator_name = estimator_name
