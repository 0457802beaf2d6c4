"""
AI Provider Interface

Abstract base class defining the contract that all AI providers must implement.
"""

from abc import ABC, abstractmethod


class AIProviderInterface(ABC):
    """Abstract interface for AI providers.

    All provider adapters (OpenAI, Gemini, Claude, DeepSeek, OpenRouter,
    Llama) must implement this interface.
    """

    @abstractmethod
    async def invoke(
        self,
        model: str,
        persona: str,
        user_prompt: str,
        image_data_uri: str | None = None,
    ) -> str:
        """Send one chat request and return the assistant's raw text.

        Args:
            model: Vendor model identifier
            persona: System prompt describing the assistant's role
            user_prompt: The user's request
            image_data_uri: Optional chart image as ``data:<mime>;base64,<payload>``

        Returns:
            The assistant reply, never empty

        Raises:
            UpstreamError: Vendor returned a non-2xx status
            MalformedResponseError: Vendor returned 2xx without reply text
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name for logging."""
        pass
