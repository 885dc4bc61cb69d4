"""Tests for response normalization into NormalizedResult."""

import pytest

from mythos.services.llm import (
    BackendKind,
    FinishReason,
    LLMUsage,
    MalformedResponseError,
    normalize,
)
from mythos.services.llm.normalizer import map_finish_reason, message_text, parse_usage
from tests.helpers import load_fixture


class TestGatewayNormalization:
    """Chat-completion envelopes from the gateway."""

    def test_success_envelope(self):
        result = normalize(
            BackendKind.GATEWAY, load_fixture("openrouter", "success_nonstream.json")
        )

        assert result.text == "hi"
        assert result.finish_reason == FinishReason.STOP
        assert result.usage == LLMUsage(prompt_tokens=5, completion_tokens=2, total_tokens=7)
        assert result.provider_metadata == {
            "openrouter": {
                "id": "gen-1718200000-abc123",
                "model": "google/gemma-2-9b-it:free",
                "native_finish_reason": "stop",
            }
        }

    def test_zero_choices_is_malformed(self):
        with pytest.raises(MalformedResponseError) as exc_info:
            normalize(BackendKind.GATEWAY, load_fixture("openrouter", "empty_choices.json"))

        assert exc_info.value.kind == "malformed-response"
        assert exc_info.value.provider == "openrouter"

    def test_missing_choices_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            normalize(BackendKind.GATEWAY, {"id": "gen-x"})

    def test_non_object_body_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            normalize(BackendKind.GATEWAY, ["not", "an", "object"])

    def test_missing_usage_defaults_to_zero(self):
        result = normalize(
            BackendKind.GATEWAY,
            {"choices": [{"message": {"content": "ok"}, "finish_reason": "stop"}]},
        )

        assert result.usage == LLMUsage()

    def test_missing_content_defaults_to_empty_text(self):
        result = normalize(BackendKind.GATEWAY, {"choices": [{"message": {}}]})

        assert result.text == ""
        assert result.finish_reason == FinishReason.STOP

    def test_length_finish_reason(self):
        result = normalize(
            BackendKind.GATEWAY,
            {"choices": [{"message": {"content": "cut"}, "finish_reason": "length"}]},
        )

        assert result.finish_reason == FinishReason.LENGTH


class TestEdgeNormalization:
    """Edge responses in both envelope shapes."""

    def test_job_result_envelope(self):
        result = normalize(BackendKind.EDGE, load_fixture("edgecloud", "success_job_result.json"))

        assert result.text == "hello"
        assert result.usage == LLMUsage(prompt_tokens=0, completion_tokens=0, total_tokens=0)
        assert result.finish_reason == FinishReason.STOP
        assert result.provider_metadata == {
            "edgecloud": {"job_id": "job-7f3a", "latency": 742, "cost": 3}
        }

    def test_job_result_missing_fields(self):
        result = normalize(BackendKind.EDGE, {})

        assert result.text == ""
        assert result.usage == LLMUsage()
        assert result.provider_metadata == {
            "edgecloud": {"job_id": None, "latency": 0, "cost": 0}
        }

    def test_job_result_fractional_metrics_kept(self):
        raw = {"output": "hi", "job_id": "j", "latency_ms": 742.5, "cost_milli": 3.5}

        result = normalize(BackendKind.EDGE, raw)

        assert result.provider_metadata["edgecloud"]["latency"] == 742.5
        assert result.provider_metadata["edgecloud"]["cost"] == 3.5

    def test_job_result_non_numeric_metrics_default(self):
        raw = {"output": "hi", "latency_ms": "fast", "cost_milli": True}

        result = normalize(BackendKind.EDGE, raw)

        assert result.provider_metadata["edgecloud"]["latency"] == 0
        assert result.provider_metadata["edgecloud"]["cost"] == 0

    def test_chat_completion_envelope(self):
        result = normalize(
            BackendKind.EDGE, load_fixture("edgecloud", "success_chat_completion.json")
        )

        assert result.text == "Totally agree, well said!"
        assert result.finish_reason == FinishReason.LENGTH
        # total_tokens absent upstream → prompt + completion
        assert result.usage == LLMUsage(prompt_tokens=40, completion_tokens=6, total_tokens=46)
        assert result.provider_metadata["edgecloud"]["id"] == "chatcmpl-edge-001"

    def test_chat_completion_zero_choices_is_malformed(self):
        with pytest.raises(MalformedResponseError) as exc_info:
            normalize(BackendKind.EDGE, {"choices": []})

        assert exc_info.value.provider == "edgecloud"


class TestFinishReasonMapping:
    @pytest.mark.parametrize(
        "native,expected",
        [
            ("stop", FinishReason.STOP),
            ("length", FinishReason.LENGTH),
            ("content_filter", FinishReason.CONTENT_FILTER),
            ("tool_calls", FinishReason.OTHER),
            ("something_new", FinishReason.STOP),
            (None, FinishReason.STOP),
        ],
    )
    def test_map_finish_reason(self, native, expected):
        assert map_finish_reason(native) == expected


class TestHelpers:
    def test_parse_usage_uses_explicit_total(self):
        usage = parse_usage({"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 10})
        assert usage.total_tokens == 10

    def test_parse_usage_non_dict(self):
        assert parse_usage(None) == LLMUsage()

    def test_message_text_from_parts(self):
        content = [
            {"type": "text", "text": "Hello "},
            {"type": "image_url", "image_url": {"url": "https://x"}},
            {"type": "text", "text": "world"},
        ]
        assert message_text(content) == "Hello world"
