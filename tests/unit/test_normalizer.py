"""
Tests for the response normalizer.

Verifies:
✔ Ordered extraction paths per payload kind
✔ Minimum-viable-content boundary (exact floor accepted, one shorter rejected)
✔ Truncated generate output rejected
✔ Unmatched payloads produce a raw dump diagnostic
✔ Deterministic: same payload, same result
"""

import pytest

from inference.errors import FailureKind, InvalidContentError
from inference.types import (
    AttemptOutcome,
    BackendDescriptor,
    CallingConvention,
    ChatPayload,
    CompletionPayload,
    GeneratePayload,
    OrchestratorState,
)
from orchestration.normalizer import ResponseNormalizer, extract_content


LOCAL_GENERATE = BackendDescriptor("codegemma:2b", "local", CallingConvention.GENERATE)
LOCAL_CHAT = BackendDescriptor("qwen2.5:3b", "local", CallingConvention.CHAT)
REMOTE = BackendDescriptor("llama-3.1-8b-instant", "remote", CallingConvention.CHAT)


def outcome(descriptor, payload):
    return AttemptOutcome(
        descriptor=descriptor,
        state=OrchestratorState.TRY_LOCAL_PRIMARY,
        success=True,
        payload=payload,
    )


# ─────────────────────────────────────────────────────
# Extraction paths
# ─────────────────────────────────────────────────────


class TestGeneratePaths:
    def test_primary_response_field(self):
        payload = GeneratePayload(raw={"response": "print('hello world')", "done": True}, done=True)
        assert extract_content(payload) == "print('hello world')"

    def test_alternate_text_field(self):
        payload = GeneratePayload(raw={"response": "", "text": "alt text"})
        assert extract_content(payload) == "alt text"

    def test_alternate_output_field(self):
        payload = GeneratePayload(raw={"output": "from output"})
        assert extract_content(payload) == "from output"

    def test_whole_payload_as_string(self):
        payload = GeneratePayload(raw="plain string body")
        assert extract_content(payload) == "plain string body"

    def test_non_string_fields_skipped(self):
        payload = GeneratePayload(raw={"response": {"nested": True}, "text": "usable"})
        assert extract_content(payload) == "usable"


class TestChatPaths:
    def test_message_content(self):
        payload = ChatPayload(raw={"message": {"role": "assistant", "content": "def f(): pass"}})
        assert extract_content(payload) == "def f(): pass"

    def test_nested_output_field(self):
        payload = ChatPayload(raw={"output": [{"content": [{"text": "nested reply"}]}]})
        assert extract_content(payload) == "nested reply"

    def test_message_content_preferred_over_alternates(self):
        payload = ChatPayload(raw={"message": {"content": "first"}, "text": "second"})
        assert extract_content(payload) == "first"


class TestCompletionPaths:
    def test_choices_message_content(self):
        payload = CompletionPayload(raw={"choices": [{"message": {"content": "remote answer"}}]})
        assert extract_content(payload) == "remote answer"

    def test_choices_text(self):
        payload = CompletionPayload(raw={"choices": [{"text": "legacy completion"}]})
        assert extract_content(payload) == "legacy completion"

    def test_empty_choices(self):
        payload = CompletionPayload(raw={"choices": []})
        assert extract_content(payload) is None


# ─────────────────────────────────────────────────────
# Validation
# ─────────────────────────────────────────────────────


class TestMinimumViableContent:
    def test_exact_floor_accepted(self):
        normalizer = ResponseNormalizer(min_content_chars=50)
        text = "x" * 50
        result = normalizer.normalize(outcome(LOCAL_CHAT, ChatPayload(raw={"message": {"content": text}})))
        assert result.content == text

    def test_one_below_floor_rejected(self):
        normalizer = ResponseNormalizer(min_content_chars=50)
        text = "x" * 49
        with pytest.raises(InvalidContentError) as exc_info:
            normalizer.normalize(outcome(LOCAL_CHAT, ChatPayload(raw={"message": {"content": text}})))
        assert exc_info.value.kind == FailureKind.INVALID_CONTENT
        assert "too short" in str(exc_info.value)

    def test_floor_measured_after_trimming(self):
        normalizer = ResponseNormalizer(min_content_chars=11)
        padded = "   short   \n\n"
        with pytest.raises(InvalidContentError):
            normalizer.normalize(outcome(LOCAL_CHAT, ChatPayload(raw={"message": {"content": padded}})))

    def test_single_stray_character_rejected_by_default(self):
        normalizer = ResponseNormalizer()
        with pytest.raises(InvalidContentError):
            normalizer.normalize(outcome(LOCAL_CHAT, ChatPayload(raw={"message": {"content": "}"}})))

    def test_content_is_trimmed(self):
        normalizer = ResponseNormalizer()
        result = normalizer.normalize(
            outcome(REMOTE, CompletionPayload(raw={"choices": [{"message": {"content": "  ok then \n"}}]}))
        )
        assert result.content == "ok then"


class TestRejections:
    def test_truncated_generate_rejected(self):
        normalizer = ResponseNormalizer()
        payload = GeneratePayload(raw={"response": "def half_written(", "done": False}, done=False)
        with pytest.raises(InvalidContentError) as exc_info:
            normalizer.normalize(outcome(LOCAL_GENERATE, payload))
        assert "truncated" in str(exc_info.value)

    def test_unmatched_payload_dumped_into_diagnostic(self):
        normalizer = ResponseNormalizer()
        payload = ChatPayload(raw={"unexpected": {"shape": 1}})
        with pytest.raises(InvalidContentError) as exc_info:
            normalizer.normalize(outcome(LOCAL_CHAT, payload))
        assert '"unexpected"' in str(exc_info.value)

    def test_missing_payload_rejected(self):
        normalizer = ResponseNormalizer()
        with pytest.raises(InvalidContentError):
            normalizer.normalize(outcome(LOCAL_CHAT, None))


class TestNormalizedResult:
    def test_carries_source_class_and_backend_id(self):
        normalizer = ResponseNormalizer()
        result = normalizer.normalize(
            outcome(REMOTE, CompletionPayload(raw={"choices": [{"message": {"content": "hello there"}}]}))
        )
        assert result.source_class == "remote"
        assert result.backend_id == "llama-3.1-8b-instant"

    def test_chat_payload_scenario(self):
        normalizer = ResponseNormalizer()
        result = normalizer.normalize(
            outcome(LOCAL_CHAT, ChatPayload(raw={"message": {"content": "def f(): pass"}}))
        )
        assert result.content == "def f(): pass"

    def test_idempotent(self):
        normalizer = ResponseNormalizer(min_content_chars=5)
        attempt = outcome(LOCAL_GENERATE, GeneratePayload(raw={"response": "const y = 2;"}, done=True))
        assert normalizer.normalize(attempt) == normalizer.normalize(attempt)
