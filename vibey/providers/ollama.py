import asyncio
import logging
from typing import Any, Dict, List, Optional

from ollama import AsyncClient, ResponseError

from vibey.agent.core.cancellation import CancellationToken
from vibey.agent.structs import LLMResponse, Message, Usage
from vibey.config.settings import Settings
from vibey.exceptions.model import ModelRateLimitError, ModelTimeoutError
from vibey.exceptions.provider import (
    ProviderAuthenticationError,
    ProviderConnectionError,
    ProviderError,
    ProviderResponseError,
)
from vibey.providers.base import BaseProvider
from vibey.utils.retry import retry_on_transient_errors

logger = logging.getLogger("OllamaProvider")


class OllamaProvider(BaseProvider):
    """
    Adapter for Ollama (Local & Cloud).
    Maps native SDK objects -> LLMResponse.
    """

    name = "ollama"

    def __init__(self, settings: Settings):
        self.host = settings.ollama_host
        self.api_key = settings.ollama_api_key
        self.model_name = settings.model_name
        self.options = dict(settings.model_options)
        self.timeout = settings.request_timeout

        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        # One client per provider, reused for every request.
        self.client = AsyncClient(host=self.host, headers=headers, timeout=self.timeout)

    async def validate_connection(self) -> bool:
        try:
            await self.client.list()
            return True
        except Exception as e:
            logger.error(f"Ollama Connection Failed: {e}")
            return False

    async def call(
        self,
        messages: List[Message],
        cancel_token: Optional[CancellationToken] = None,
    ) -> LLMResponse:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        return await self._chat(self._serialize_messages(messages))

    @retry_on_transient_errors()
    async def _chat(self, payload: List[Dict[str, Any]]) -> LLMResponse:
        try:
            response = await asyncio.wait_for(
                self.client.chat(
                    model=self.model_name,
                    messages=payload,
                    options=self.options or None,
                    stream=False,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise ModelTimeoutError(
                f"Ollama request timed out after {self.timeout}s",
                timeout_seconds=self.timeout,
            ) from e
        except ResponseError as e:
            raise self._map_response_error(e) from e
        except ConnectionError as e:
            raise ProviderConnectionError(
                f"Cannot reach Ollama at {self.host}: {e}",
                provider_name=self.name,
                model_name=self.model_name,
                original_error=e,
            ) from e
        except Exception as e:
            logger.error(f"Chat Error: {e}", exc_info=True)
            raise ProviderError(
                f"Ollama request failed: {str(e)}",
                provider_name=self.name,
                model_name=self.model_name,
                original_error=e,
            ) from e

        content = response.message.content or ""
        prompt_tokens = response.prompt_eval_count or 0
        completion_tokens = response.eval_count or 0
        return LLMResponse(
            content=content,
            usage=Usage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
        )

    def _map_response_error(self, error: ResponseError) -> Exception:
        status = getattr(error, "status_code", None)
        if status in (401, 403):
            return ProviderAuthenticationError(
                f"Ollama rejected the credentials: {error.error}",
                provider_name=self.name,
                status_code=status,
                original_error=error,
            )
        if status == 429:
            return ModelRateLimitError(f"Ollama rate limit: {error.error}")
        return ProviderResponseError(
            f"Ollama returned an error: {error.error}",
            provider_name=self.name,
            model_name=self.model_name,
            status_code=status,
            original_error=error,
        )

    @staticmethod
    def _serialize_messages(messages: List[Message]) -> List[Dict[str, Any]]:
        """
        Convert internal messages into the Ollama chat payload.
        Tool results are sent as labeled user messages since the model
        called the tools through text, not native tool calling.
        """
        serialized: List[Dict[str, Any]] = []
        for message in messages:
            if message.role == "tool":
                serialized.append({"role": "user", "content": message.content})
                continue
            serialized.append({"role": message.role, "content": message.content})
        return serialized
