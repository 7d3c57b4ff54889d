from abc import ABC, abstractmethod
from typing import List, Optional

from vibey.agent.core.cancellation import CancellationToken
from vibey.agent.structs import LLMResponse, Message


class BaseProvider(ABC):
    """
    The Abstract Base Class (Contract) for all LLM Providers.
    """

    name: str = "provider"

    @abstractmethod
    async def call(
        self,
        messages: List[Message],
        cancel_token: Optional[CancellationToken] = None,
    ) -> LLMResponse:
        """
        Send the conversation and return the complete reply.

        Raises:
            ProviderError / ModelError subclasses on transport failures.
        """
        pass

    @abstractmethod
    async def validate_connection(self) -> bool:
        """
        Ping the provider to ensure availability/authentication.
        """
        pass
