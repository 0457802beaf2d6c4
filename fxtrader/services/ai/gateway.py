"""
AI Gateway

Single entry point for model calls:
- Provider detection from the API key (once per call)
- Adapter selection from the provider registry
- Default model filling
- Bounded connectivity test for the admin UI
"""

import asyncio
import time

import httpx
import structlog

from fxtrader.core.config import settings
from fxtrader.core.exceptions import ProviderDetectionError, ProviderTimeoutError
from fxtrader.core.logging import record_ai_call
from fxtrader.core.models import ConnectionTestResult, ProviderIdentity
from fxtrader.services.ai.detection import detect_provider
from fxtrader.services.ai.models_registry import default_model
from fxtrader.services.ai.prompts import CONNECTION_TEST_PERSONA, CONNECTION_TEST_PROMPT
from fxtrader.services.ai.providers import PROVIDER_REGISTRY, BaseProvider

logger = structlog.get_logger()


class AIGateway:
    """Routes a chat request to the vendor that issued the API key.

    The gateway keeps no per-call state. When an ``http_client`` is
    injected it is shared by every call (and owned by the caller);
    otherwise each call opens and closes its own client.
    """

    def __init__(self, http_client: httpx.AsyncClient | None = None):
        self.http_client = http_client

    def _create_provider(
        self,
        provider: ProviderIdentity,
        api_key: str,
        http_client: httpx.AsyncClient,
    ) -> BaseProvider:
        provider_class = PROVIDER_REGISTRY.get(provider)
        if not provider_class:
            raise ProviderDetectionError()
        return provider_class(api_key, http_client)

    def _resolve(
        self,
        api_key: str,
        model: str | None,
        provider: ProviderIdentity | None = None,
    ) -> tuple[ProviderIdentity, str]:
        """Detect the vendor (unless the caller already did) and fill the model."""
        if provider is None:
            provider = detect_provider(api_key)
        if provider == ProviderIdentity.UNKNOWN:
            logger.warning("ai_provider_unknown", key_length=len(api_key or ""))
            raise ProviderDetectionError()
        return provider, model or default_model(provider)

    async def call_ai(
        self,
        api_key: str,
        model: str | None,
        persona: str,
        user_prompt: str,
        image_data_uri: str | None = None,
        provider: ProviderIdentity | None = None,
    ) -> str:
        """Send one chat request and return the model's raw text.

        Args:
            api_key: Vendor API key, also used to detect the vendor
            model: Model name; empty means the provider default
            persona: System instruction
            user_prompt: User message
            image_data_uri: Optional ``data:<mime>;base64,...`` image
            provider: Already detected provider; detected from the key when None

        Returns:
            Raw text of the first completion

        Raises:
            ProviderDetectionError: Key matches no provider (no I/O done)
            UpstreamError: Vendor answered non-2xx
            MalformedResponseError: Vendor answered without text
            ExternalServiceError: Vendor unreachable
        """
        provider, model = self._resolve(api_key, model, provider)
        return await self._dispatch(provider, api_key, model, persona, user_prompt, image_data_uri)

    async def _dispatch(
        self,
        provider: ProviderIdentity,
        api_key: str,
        model: str,
        persona: str,
        user_prompt: str,
        image_data_uri: str | None = None,
    ) -> str:
        logger.info(
            "ai_call_start",
            provider=provider.value,
            model=model,
            has_image=bool(image_data_uri),
        )
        start = time.perf_counter()

        try:
            if self.http_client is not None:
                adapter = self._create_provider(provider, api_key, self.http_client)
                text = await adapter.invoke(model, persona, user_prompt, image_data_uri)
            else:
                async with httpx.AsyncClient() as client:
                    adapter = self._create_provider(provider, api_key, client)
                    text = await adapter.invoke(model, persona, user_prompt, image_data_uri)
        except Exception as e:
            record_ai_call(
                provider.value,
                model,
                round((time.perf_counter() - start) * 1000, 2),
                outcome="error",
                error_type=type(e).__name__,
            )
            raise

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        record_ai_call(provider.value, model, duration_ms, outcome="success")
        logger.info(
            "ai_call_complete",
            provider=provider.value,
            model=model,
            duration_ms=duration_ms,
        )
        return text

    async def test_connection(
        self,
        api_key: str,
        model: str | None = None,
        provider: ProviderIdentity | None = None,
    ) -> ConnectionTestResult:
        """Send a tiny prompt and report whether the vendor answered.

        The call is raced against ``settings.ai_test_timeout_seconds``.
        Errors propagate; the route turns them into a failed result.
        A caller that already detected the provider passes it in so the
        key is classified only once.

        Raises:
            ProviderDetectionError: Key matches no provider (no I/O done)
            ProviderTimeoutError: The vendor did not answer in time
        """
        provider, model = self._resolve(api_key, model, provider)
        timeout = settings.ai_test_timeout_seconds
        start = time.perf_counter()

        try:
            reply = await asyncio.wait_for(
                self._dispatch(
                    provider,
                    api_key,
                    model,
                    CONNECTION_TEST_PERSONA,
                    CONNECTION_TEST_PROMPT,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning(
                "ai_connection_test_timeout",
                provider=provider.value,
                model=model,
                timeout_seconds=timeout,
            )
            raise ProviderTimeoutError(provider.value, timeout) from e

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "ai_connection_test_success",
            provider=provider.value,
            model=model,
            elapsed_ms=elapsed_ms,
        )

        return ConnectionTestResult(
            success=True,
            message="Koneksi berhasil ✅",
            provider=provider,
            model=model,
            test_response=reply,
            elapsed_ms=elapsed_ms,
        )


async def call_ai(
    api_key: str,
    model: str | None,
    persona: str,
    user_prompt: str,
    image_data_uri: str | None = None,
) -> str:
    """Convenience wrapper using a throwaway gateway and HTTP client."""
    return await AIGateway().call_ai(api_key, model, persona, user_prompt, image_data_uri)


async def get_ai_gateway() -> AIGateway:
    """FastAPI dependency returning a gateway that opens a client per call."""
    return AIGateway()
