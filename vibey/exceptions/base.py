#!/usr/bin/env python3
"""
Root of the Vibey exception hierarchy.

Every error raised on purpose by vibey derives from VibeyError, so callers
can catch one type and still get a readable hint for the user.
"""

from typing import Any, Dict, Optional

DEFAULT_USER_HINT = "An internal error occurred."


class VibeyError(Exception):
    """
    Base error.

    ``message`` is written for logs, ``user_hint`` for the person at the
    keyboard, and ``details`` holds structured data for debugging.
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        user_hint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.user_hint = user_hint or DEFAULT_USER_HINT
        self.details = dict(details or {})
