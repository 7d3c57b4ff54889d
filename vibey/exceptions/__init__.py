#!/usr/bin/env python3
"""
Vibey Exceptions Package

Unified exception hierarchy for the Vibey agent.
"""

# Base exceptions
from .base import VibeyError

# Model exceptions
from .model import (
    ModelError,
    ModelRateLimitError,
    ModelTimeoutError,
)

# Provider exceptions
from .provider import (
    ProviderAuthenticationError,
    ProviderConfigurationError,
    ProviderConnectionError,
    ProviderError,
    ProviderResponseError,
)

# Tool exceptions
from .tools import (
    ToolError,
    ToolExecutionError,
    ToolInputValidationError,
    ToolNotFoundError,
    ToolRegistryError,
)

# Context exceptions
from .context import (
    ContextError,
    ContextOverflowError,
    ContextReadError,
    TokenEstimationError,
)

# Config exceptions
from .config import ConfigError

# Agent exceptions
from .agent import (
    AgentError,
    InvalidStateTransitionError,
    RequestCancelledError,
)


__all__ = [
    # Base
    "VibeyError",
    # Model
    "ModelError",
    "ModelTimeoutError",
    "ModelRateLimitError",
    # Provider
    "ProviderError",
    "ProviderConfigurationError",
    "ProviderAuthenticationError",
    "ProviderConnectionError",
    "ProviderResponseError",
    # Tool
    "ToolError",
    "ToolExecutionError",
    "ToolInputValidationError",
    "ToolNotFoundError",
    "ToolRegistryError",
    # Context
    "ContextError",
    "ContextOverflowError",
    "ContextReadError",
    "TokenEstimationError",
    # Config
    "ConfigError",
    # Agent
    "AgentError",
    "InvalidStateTransitionError",
    "RequestCancelledError",
]
