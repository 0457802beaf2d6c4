"""
Unit tests for the provider adapters' wire formats and error handling.

Each adapter talks to an ``httpx.MockTransport`` so the exact request
sent to the vendor can be asserted.
"""

import httpx
import pytest

from fxtrader.core.exceptions import (
    ExternalServiceError,
    InvalidImageError,
    MalformedResponseError,
    UpstreamError,
)
from fxtrader.services.ai.providers import (
    ClaudeProvider,
    DeepSeekProvider,
    GeminiProvider,
    LlamaProvider,
    OpenAIProvider,
    OpenRouterProvider,
    get_all_providers,
    split_data_uri,
)
from tests.conftest import (
    CLAUDE_KEY,
    DEEPSEEK_KEY,
    GEMINI_KEY,
    LLAMA_KEY,
    OPENAI_KEY,
    OPENROUTER_KEY,
    PNG_DATA_URI,
    VendorStub,
    claude_reply,
    gemini_reply,
    openai_completion,
)

pytestmark = pytest.mark.asyncio


class TestSplitDataUri:
    async def test_splits_mime_and_payload(self) -> None:
        assert split_data_uri("data:image/jpeg;base64,AAAA") == ("image/jpeg", "AAAA")

    async def test_only_first_comma_separates(self) -> None:
        assert split_data_uri("data:image/png;base64,AA,BB") == ("image/png", "AA,BB")

    async def test_missing_mime_defaults_to_png(self) -> None:
        assert split_data_uri("data:;base64,AAAA") == ("image/png", "AAAA")

    @pytest.mark.parametrize(
        "value",
        ["", "AAAA", "https://example.com/chart.png", "data:image/png,AAAA", "data:image/png;base64,"],
    )
    async def test_rejects_non_base64_data_uris(self, value: str) -> None:
        with pytest.raises(InvalidImageError):
            split_data_uri(value)


class TestOpenAIShapedProviders:
    async def test_openai_request_shape(self, vendor: VendorStub, http_client: httpx.AsyncClient) -> None:
        provider = OpenAIProvider(OPENAI_KEY, http_client)
        text = await provider.invoke("gpt-4o", "persona", "analyze", PNG_DATA_URI)

        assert text == "Test berhasil."
        request = vendor.last_request
        assert str(request.url) == "https://api.openai.com/v1/chat/completions"
        assert request.headers["authorization"] == f"Bearer {OPENAI_KEY}"

        body = vendor.last_json()
        assert body["model"] == "gpt-4o"
        assert body["messages"][0] == {"role": "system", "content": "persona"}
        user = body["messages"][1]
        assert user["role"] == "user"
        assert user["content"][0] == {"type": "text", "text": "analyze"}
        assert user["content"][1]["type"] == "image_url"
        assert user["content"][1]["image_url"]["url"] == PNG_DATA_URI

    async def test_text_only_request_sends_plain_string(
        self, vendor: VendorStub, http_client: httpx.AsyncClient
    ) -> None:
        await OpenAIProvider(OPENAI_KEY, http_client).invoke("gpt-4o", "p", "hello")
        assert vendor.last_json()["messages"][1] == {"role": "user", "content": "hello"}

    async def test_deepseek_endpoint_and_image_dropped(
        self, vendor: VendorStub, http_client: httpx.AsyncClient
    ) -> None:
        await DeepSeekProvider(DEEPSEEK_KEY, http_client).invoke(
            "deepseek-chat", "p", "hello", PNG_DATA_URI
        )

        request = vendor.last_request
        assert str(request.url) == "https://api.deepseek.com/chat/completions"
        assert request.headers["authorization"] == f"Bearer {DEEPSEEK_KEY}"
        assert vendor.last_json()["messages"][1] == {"role": "user", "content": "hello"}

    async def test_llama_endpoint(self, vendor: VendorStub, http_client: httpx.AsyncClient) -> None:
        await LlamaProvider(LLAMA_KEY, http_client).invoke("Llama-3.3-70B-Instruct", "p", "hello")
        assert str(vendor.last_request.url) == "https://api.llama.meta.com/v1/chat/completions"

    async def test_openrouter_attribution_headers(
        self, vendor: VendorStub, http_client: httpx.AsyncClient
    ) -> None:
        await OpenRouterProvider(OPENROUTER_KEY, http_client).invoke(
            "mistralai/mistral-7b-instruct", "p", "hello"
        )

        request = vendor.last_request
        assert str(request.url) == "https://openrouter.ai/api/v1/chat/completions"
        assert request.headers["authorization"] == f"Bearer {OPENROUTER_KEY}"
        assert request.headers["http-referer"]
        assert request.headers["x-title"] == "Fx AI Trader"

    async def test_upstream_error_message_extracted(
        self, vendor: VendorStub, http_client: httpx.AsyncClient
    ) -> None:
        vendor.handler = lambda request: httpx.Response(
            401, json={"error": {"message": "Incorrect API key provided", "type": "invalid_request_error"}}
        )

        with pytest.raises(UpstreamError) as exc_info:
            await OpenAIProvider(OPENAI_KEY, http_client).invoke("gpt-4o", "p", "hello")

        assert exc_info.value.http_status == 401
        assert exc_info.value.provider == "openai"
        assert exc_info.value.message == "Incorrect API key provided"

    async def test_upstream_error_without_message_uses_raw_body(
        self, vendor: VendorStub, http_client: httpx.AsyncClient
    ) -> None:
        vendor.handler = lambda request: httpx.Response(503, text="upstream overloaded")

        with pytest.raises(UpstreamError) as exc_info:
            await DeepSeekProvider(DEEPSEEK_KEY, http_client).invoke("deepseek-chat", "p", "hello")

        assert exc_info.value.http_status == 503
        assert exc_info.value.message == "upstream overloaded"
        assert len(vendor.requests) == 1

    async def test_empty_choices_is_malformed(
        self, vendor: VendorStub, http_client: httpx.AsyncClient
    ) -> None:
        body = openai_completion("unused")
        body["choices"] = []
        vendor.handler = lambda request: httpx.Response(200, json=body)

        with pytest.raises(MalformedResponseError):
            await OpenAIProvider(OPENAI_KEY, http_client).invoke("gpt-4o", "p", "hello")

    async def test_null_content_is_malformed(
        self, vendor: VendorStub, http_client: httpx.AsyncClient
    ) -> None:
        vendor.handler = lambda request: httpx.Response(200, json=openai_completion(None))

        with pytest.raises(MalformedResponseError):
            await OpenAIProvider(OPENAI_KEY, http_client).invoke("gpt-4o", "p", "hello")

    @pytest.mark.parametrize(
        "provider_class, api_key",
        [
            (OpenAIProvider, OPENAI_KEY),
            (DeepSeekProvider, DEEPSEEK_KEY),
            (LlamaProvider, LLAMA_KEY),
            (OpenRouterProvider, OPENROUTER_KEY),
        ],
    )
    async def test_invalid_json_body_is_malformed(
        self,
        vendor: VendorStub,
        http_client: httpx.AsyncClient,
        provider_class: type[OpenAIProvider],
        api_key: str,
    ) -> None:
        vendor.handler = lambda request: httpx.Response(
            200, content=b"{not json", headers={"content-type": "application/json"}
        )

        with pytest.raises(MalformedResponseError) as exc_info:
            await provider_class(api_key, http_client).invoke("some-model", "p", "hello")
        assert exc_info.value.details["path"] == "JSON object"

    async def test_connection_failure(self, vendor: VendorStub, http_client: httpx.AsyncClient) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        vendor.handler = refuse

        with pytest.raises(ExternalServiceError) as exc_info:
            await OpenAIProvider(OPENAI_KEY, http_client).invoke("gpt-4o", "p", "hello")
        assert not isinstance(exc_info.value, UpstreamError)


class TestGeminiProvider:
    async def test_request_shape(self, vendor: VendorStub, http_client: httpx.AsyncClient) -> None:
        vendor.handler = lambda request: httpx.Response(200, json=gemini_reply("BUY"))

        text = await GeminiProvider(GEMINI_KEY, http_client).invoke(
            "gemini-1.5-flash", "persona", "analyze", "data:image/jpeg;base64,QUJD"
        )

        assert text == "BUY"
        request = vendor.last_request
        assert request.url.path == "/v1beta/models/gemini-1.5-flash:generateContent"
        assert request.url.params["key"] == GEMINI_KEY
        assert "authorization" not in request.headers

        parts = vendor.last_json()["contents"][0]["parts"]
        assert parts[0] == {"text": "persona\nanalyze"}
        assert parts[1] == {"inlineData": {"mimeType": "image/jpeg", "data": "QUJD"}}

    async def test_missing_candidates_is_malformed(
        self, vendor: VendorStub, http_client: httpx.AsyncClient
    ) -> None:
        vendor.handler = lambda request: httpx.Response(
            200, json={"candidates": [{"finishReason": "SAFETY"}]}
        )

        with pytest.raises(MalformedResponseError):
            await GeminiProvider(GEMINI_KEY, http_client).invoke("gemini-1.5-flash", "p", "hello")

    async def test_error_message_extracted(
        self, vendor: VendorStub, http_client: httpx.AsyncClient
    ) -> None:
        vendor.handler = lambda request: httpx.Response(
            400, json={"error": {"code": 400, "message": "API key not valid", "status": "INVALID_ARGUMENT"}}
        )

        with pytest.raises(UpstreamError) as exc_info:
            await GeminiProvider(GEMINI_KEY, http_client).invoke("gemini-1.5-flash", "p", "hello")
        assert exc_info.value.http_status == 400
        assert exc_info.value.message == "API key not valid"


class TestClaudeProvider:
    async def test_request_shape(self, vendor: VendorStub, http_client: httpx.AsyncClient) -> None:
        vendor.handler = lambda request: httpx.Response(200, json=claude_reply("SELL"))

        text = await ClaudeProvider(CLAUDE_KEY, http_client).invoke(
            "claude-3-5-sonnet-20241022", "persona", "analyze", PNG_DATA_URI
        )

        assert text == "SELL"
        request = vendor.last_request
        assert str(request.url) == "https://api.anthropic.com/v1/messages"
        assert request.headers["x-api-key"] == CLAUDE_KEY
        assert request.headers["anthropic-version"] == "2023-06-01"
        assert "authorization" not in request.headers

        body = vendor.last_json()
        assert body["model"] == "claude-3-5-sonnet-20241022"
        assert body["system"] == "persona"
        assert body["max_tokens"] > 0
        content = body["messages"][0]["content"]
        assert content[0]["type"] == "image"
        assert content[0]["source"]["type"] == "base64"
        assert content[0]["source"]["media_type"] == "image/png"
        assert content[1] == {"type": "text", "text": "analyze"}

    async def test_empty_content_is_malformed(
        self, vendor: VendorStub, http_client: httpx.AsyncClient
    ) -> None:
        vendor.handler = lambda request: httpx.Response(200, json={"content": []})

        with pytest.raises(MalformedResponseError):
            await ClaudeProvider(CLAUDE_KEY, http_client).invoke("claude-3-5-sonnet-20241022", "p", "hi")

    async def test_non_json_error_body_surfaces_verbatim(
        self, vendor: VendorStub, http_client: httpx.AsyncClient
    ) -> None:
        vendor.handler = lambda request: httpx.Response(529, text="Overloaded")

        with pytest.raises(UpstreamError) as exc_info:
            await ClaudeProvider(CLAUDE_KEY, http_client).invoke("claude-3-5-sonnet-20241022", "p", "hi")
        assert exc_info.value.http_status == 529
        assert exc_info.value.message == "Overloaded"


class TestProviderInfo:
    async def test_all_providers_listed(self) -> None:
        providers = get_all_providers()
        assert set(providers) == {"openai", "gemini", "claude", "deepseek", "openrouter", "llama"}
        assert providers["claude"]["name"] == "Anthropic Claude"
        assert providers["deepseek"]["supports_vision"] is False
        assert providers["gemini"]["default_model"] == "gemini-1.5-flash"
