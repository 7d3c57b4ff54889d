# Test suite for user-facing error text

import asyncio
import json

import pytest

from vibey.exceptions.agent import RequestCancelledError
from vibey.exceptions.config import ConfigError
from vibey.exceptions.model import ModelTimeoutError
from vibey.exceptions.provider import (
    ProviderAuthenticationError,
    ProviderConnectionError,
    ProviderError,
    ProviderResponseError,
)
from vibey.utils.errors import format_error


class TestFormatError:
    """Exception to chat-transcript text"""

    @pytest.mark.parametrize(
        "error, expected",
        [
            (RequestCancelledError(), "Request cancelled by user"),
            (asyncio.CancelledError(), "Request cancelled by user"),
            (ProviderResponseError("upstream", status_code=503), "HTTP Error: server returned status 503 (upstream)"),
            (ProviderError("odd reply"), "Provider Error: odd reply"),
            (ConfigError("bad value"), "bad value"),
            (asyncio.TimeoutError(), "Timeout: the request took too long to complete"),
            (ConnectionError(), "Network Error: connection failed"),
            (ConnectionError("refused"), "Network Error: refused"),
            (RuntimeError("weird"), "weird"),
            (RuntimeError(), "RuntimeError"),
        ],
    )
    def test_mapping(self, error, expected):
        assert format_error(error) == expected

    def test_auth_error_includes_hint(self):
        text = format_error(ProviderAuthenticationError("401 Unauthorized"))
        assert text.startswith("API Error: 401 Unauthorized - ")
        assert "API key" in text

    def test_connection_error_includes_hint(self):
        text = format_error(ProviderConnectionError("refused"))
        assert text.startswith("Network Error: refused. ")

    def test_model_timeout(self):
        assert format_error(ModelTimeoutError("no answer in 5s")).startswith("Timeout: no answer in 5s.")

    def test_json_decode_error(self):
        try:
            json.loads("{")
        except json.JSONDecodeError as e:
            assert format_error(e).startswith("Response Parsing Error")

    def test_none(self):
        assert format_error(None) == "Unknown error"
