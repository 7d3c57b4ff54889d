import logging
from typing import Any, Dict, List, Optional

from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    RateLimitError,
)

from vibey.agent.core.cancellation import CancellationToken
from vibey.agent.structs import LLMResponse, Message, Usage
from vibey.config.settings import Settings
from vibey.exceptions.model import ModelRateLimitError, ModelTimeoutError
from vibey.exceptions.provider import (
    ProviderAuthenticationError,
    ProviderConnectionError,
    ProviderResponseError,
)
from vibey.providers.base import BaseProvider
from vibey.utils.retry import retry_on_transient_errors

logger = logging.getLogger("OpenAICompatibleProvider")

# Local servers (LM Studio, llama.cpp, vLLM) accept any key.
PLACEHOLDER_API_KEY = "not-needed"

_ALLOWED_OPTIONS = {
    "temperature",
    "top_p",
    "max_tokens",
    "presence_penalty",
    "frequency_penalty",
    "seed",
    "stop",
}


class OpenAICompatibleProvider(BaseProvider):
    """
    Adapter for any server that speaks the OpenAI chat-completions API.
    """

    name = "openai"

    def __init__(self, settings: Settings):
        self.base_url = settings.openai_base_url.rstrip("/")
        self.api_key = settings.openai_api_key or PLACEHOLDER_API_KEY
        self.model_name = settings.model_name
        self.timeout = settings.request_timeout
        self.options = self._sanitize_options(settings.model_options)

        # Retries are handled by our tenacity policy, not the SDK.
        self.client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
        )

    async def validate_connection(self) -> bool:
        try:
            await self.client.models.list()
            return True
        except Exception as exc:
            logger.error("OpenAI-compatible connection failed: %s", exc)
            return False

    async def call(
        self,
        messages: List[Message],
        cancel_token: Optional[CancellationToken] = None,
    ) -> LLMResponse:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        return await self._complete(self._serialize_messages(messages))

    @retry_on_transient_errors()
    async def _complete(self, payload: List[Dict[str, Any]]) -> LLMResponse:
        try:
            completion = await self.client.chat.completions.create(
                model=self.model_name,
                messages=payload,
                stream=False,
                **self.options,
            )
        except APITimeoutError as exc:
            raise ModelTimeoutError(
                f"Request to {self.base_url} timed out after {self.timeout}s",
                timeout_seconds=self.timeout,
            ) from exc
        except APIConnectionError as exc:
            raise ProviderConnectionError(
                f"Cannot reach {self.base_url}: {exc}",
                provider_name=self.name,
                model_name=self.model_name,
                original_error=exc,
            ) from exc
        except AuthenticationError as exc:
            raise ProviderAuthenticationError(
                f"Authentication failed: {exc.message}",
                provider_name=self.name,
                status_code=exc.status_code,
                original_error=exc,
            ) from exc
        except RateLimitError as exc:
            raise ModelRateLimitError(f"Rate limited: {exc.message}") from exc
        except APIStatusError as exc:
            raise ProviderResponseError(
                f"Server returned status {exc.status_code}: {exc.message}",
                provider_name=self.name,
                model_name=self.model_name,
                status_code=exc.status_code,
                original_error=exc,
            ) from exc

        if not completion.choices:
            raise ProviderResponseError(
                "Response contained no choices",
                provider_name=self.name,
                model_name=self.model_name,
            )

        content = completion.choices[0].message.content or ""
        usage = None
        if completion.usage is not None:
            usage = Usage(
                prompt_tokens=completion.usage.prompt_tokens or 0,
                completion_tokens=completion.usage.completion_tokens or 0,
                total_tokens=completion.usage.total_tokens or 0,
            )
        return LLMResponse(content=content, usage=usage)

    @staticmethod
    def _serialize_messages(messages: List[Message]) -> List[Dict[str, Any]]:
        # Text-protocol tool results carry no native tool_call_id, so they
        # travel as user messages.
        return [
            {"role": "user" if m.role == "tool" else m.role, "content": m.content}
            for m in messages
        ]

    @staticmethod
    def _sanitize_options(options: Dict[str, Any]) -> Dict[str, Any]:
        dropped = set(options) - _ALLOWED_OPTIONS
        if dropped:
            logger.debug("Ignoring unsupported model options: %s", sorted(dropped))
        return {k: v for k, v in options.items() if k in _ALLOWED_OPTIONS}
