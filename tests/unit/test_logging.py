"""
Unit tests for the wide event helpers.
"""

from fxtrader.core.exceptions import UpstreamError
from fxtrader.core.logging import (
    enrich_event,
    finalize_request_event,
    get_request_event,
    init_request_event,
    record_ai_call,
    redact_secrets,
    should_sample,
)


class TestWideEvent:
    def test_enrich_nested_keys(self) -> None:
        init_request_event(method="POST", path="/api/v1/analysis/chart")
        enrich_event(**{"ai.provider": "gemini"}, recommendation="Buy")

        event = get_request_event()
        assert event["ai"] == {"provider": "gemini"}
        assert event["recommendation"] == "Buy"

    def test_ai_calls_accumulate(self) -> None:
        init_request_event(path="/api/v1/ai/config/test")
        record_ai_call("openai", "gpt-4o", 12.5, outcome="success")
        record_ai_call("openai", "gpt-4o", 3.0, outcome="error", error_type="UpstreamError")

        calls = get_request_event()["ai_calls"]
        assert [call["outcome"] for call in calls] == ["success", "error"]
        assert calls[1]["error_type"] == "UpstreamError"

    def test_finalize_attaches_error_details(self) -> None:
        init_request_event(path="/api/v1/analysis/chart")
        event = finalize_request_event(502, UpstreamError("claude", 401, "invalid x-api-key"))

        assert event["http"]["status_code"] == 502
        assert event["outcome"] == "error"
        assert event["error"]["type"] == "UpstreamError"
        assert event["error"]["details"] == {"provider": "claude", "http_status": 401}


class TestSampling:
    def test_errors_always_kept(self) -> None:
        assert should_sample({"http": {"status_code": 502, "path": "/x"}})

    def test_ai_paths_always_kept(self) -> None:
        assert should_sample({"http": {"status_code": 200, "path": "/api/v1/ai/providers"}})

    def test_failed_vendor_call_kept(self) -> None:
        event = {
            "http": {"status_code": 200, "path": "/other"},
            "ai_calls": [{"outcome": "error"}],
        }
        assert should_sample(event)


class TestRedactSecrets:
    def test_vendor_keys_masked(self) -> None:
        event = redact_secrets(
            None,
            "info",
            {"event": "x", "error": "Incorrect API key provided: sk-proj-abcdefghijklmnop1234"},
        )
        assert "abcdefghijklmnop1234" not in event["error"]
        assert "sk-[REDACTED]" in event["error"]

    def test_other_values_untouched(self) -> None:
        event = redact_secrets(None, "info", {"event": "ai_call_start", "model": "gpt-4o", "count": 3})
        assert event == {"event": "ai_call_start", "model": "gpt-4o", "count": 3}
