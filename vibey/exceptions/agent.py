#!/usr/bin/env python3
"""
Agent Exception Definitions for Vibey

Agent-level exceptions that don't fit in other categories.
"""

from vibey.exceptions.base import VibeyError


class AgentError(VibeyError):
    """Base exception for agent-level errors."""

    pass


class InvalidStateTransitionError(AgentError):
    """Raised when the agent state machine is asked for an illegal jump."""

    def __init__(self, message, current_state=None, requested_state=None):
        super().__init__(message)
        self.current_state = current_state
        self.requested_state = requested_state


class RequestCancelledError(AgentError):
    """Raised when the in-flight chat request has been cancelled."""

    def __init__(self, message="Request cancelled"):
        super().__init__(message, user_hint="Request cancelled by user")
