#!/usr/bin/env python3
"""
Tool Exception Definitions for Vibey

All tool-related exceptions inherit from VibeyError.
"""

from vibey.exceptions.base import VibeyError


class ToolError(VibeyError):
    """Base exception for tool-related errors."""

    def __init__(self, message, tool_name=None, **kwargs):
        kwargs.setdefault("user_hint", message)
        super().__init__(message, **kwargs)
        self.tool_name = tool_name


class ToolExecutionError(ToolError):
    """Raised when tool execution fails."""

    pass


class ToolNotFoundError(ToolError):
    """Raised when requested tool is not found in registry."""

    pass


class ToolRegistryError(ToolError):
    """Raised when a tool cannot be registered."""

    pass


class ToolInputValidationError(ToolError):
    """Raised when tool input parameters fail validation."""

    def __init__(self, message, tool_name=None, invalid_input=None):
        super().__init__(message, tool_name=tool_name)
        self.invalid_input = invalid_input
