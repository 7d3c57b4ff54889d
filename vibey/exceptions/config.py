#!/usr/bin/env python3
"""
Configuration Exception Definitions for Vibey

All configuration-related exceptions inherit from VibeyError.
"""

from vibey.exceptions.base import VibeyError


class ConfigError(VibeyError):
    """Raised when settings fail validation."""

    def __init__(self, message, field_name=None, invalid_value=None):
        super().__init__(message, user_hint=message)
        self.field_name = field_name
        self.invalid_value = invalid_value
