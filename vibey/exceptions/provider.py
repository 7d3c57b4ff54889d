#!/usr/bin/env python3
"""
Provider Exceptions
===================

Errors raised by the model server adapters (Ollama and OpenAI-compatible).
SDK exceptions are translated into these at the adapter boundary so the
agent loop never imports a vendor SDK.
"""

from typing import Optional

from .base import VibeyError


class ProviderError(VibeyError):
    """
    A model server request failed.

    ``provider_name``, ``model_name`` and ``status_code`` are copied into
    ``details`` when given.
    """

    def __init__(
        self,
        message: str,
        provider_name: Optional[str] = None,
        model_name: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.status_code = status_code

        for key, value in (
            ("provider_name", provider_name),
            ("model_name", model_name),
            ("status_code", status_code),
        ):
            if value is not None:
                self.details.setdefault(key, value)


class ProviderConfigurationError(ProviderError):
    """The configured provider cannot be built."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.user_hint = "Check LLM_PROVIDER and the provider settings in your .env file."


class ProviderAuthenticationError(ProviderError):
    """The server rejected the API key (401/403)."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.user_hint = (
            "The model server rejected the request. "
            "Check your API key and endpoint configuration."
        )


class ProviderConnectionError(ProviderError):
    """Refused connection, DNS failure or dropped socket."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.user_hint = (
            "Cannot connect to the model server. "
            "Check that it is running and that the host URL is correct."
        )


class ProviderResponseError(ProviderError):
    """
    The server answered, but not with a usable completion.

    Covers non-success statuses without a more specific class and
    replies missing the expected fields.
    """

    def __init__(self, message: str, response_data: Optional[dict] = None, **kwargs):
        super().__init__(message, **kwargs)
        if response_data:
            self.details["response_data"] = response_data
        self.user_hint = (
            "The model server returned an unusable response. "
            "The model may be missing, overloaded or misconfigured."
        )
