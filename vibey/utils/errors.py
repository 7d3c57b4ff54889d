"""
User-facing error text.

Turns any exception that escapes the agent loop into one readable line for
the chat transcript.
"""

import asyncio
import json

from vibey.exceptions.agent import RequestCancelledError
from vibey.exceptions.base import VibeyError
from vibey.exceptions.model import ModelTimeoutError
from vibey.exceptions.provider import (
    ProviderAuthenticationError,
    ProviderConnectionError,
    ProviderError,
    ProviderResponseError,
)


def format_error(error: BaseException) -> str:
    """Map an exception to readable, non-empty text."""
    if error is None:
        return "Unknown error"

    if isinstance(error, (RequestCancelledError, asyncio.CancelledError)):
        return "Request cancelled by user"

    if isinstance(error, ProviderAuthenticationError):
        return f"API Error: {error.message} - {error.user_hint}"

    if isinstance(error, ProviderConnectionError):
        return f"Network Error: {error.message}. {error.user_hint}"

    if isinstance(error, ProviderResponseError) and error.status_code is not None:
        return f"HTTP Error: server returned status {error.status_code} ({error.message})"

    if isinstance(error, ModelTimeoutError):
        return f"Timeout: {error.message}. {error.user_hint}"

    if isinstance(error, ProviderError):
        return f"Provider Error: {error.message}"

    if isinstance(error, VibeyError):
        return error.message or error.user_hint

    if isinstance(error, json.JSONDecodeError):
        return (
            "Response Parsing Error: the server returned invalid JSON. "
            "The model may be overloaded or misconfigured."
        )

    if isinstance(error, ConnectionError):
        return f"Network Error: {error}" if str(error) else "Network Error: connection failed"

    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return "Timeout: the request took too long to complete"

    return str(error) or error.__class__.__name__
