"""
Tests for single-attempt execution.

Verifies:
✔ Calling convention decides serialization (joined prompt vs message list)
✔ Raw bodies decoded into the right payload variant
✔ Deadline expiry yields a timeout outcome, not an exception
✔ Backend errors map to their failure kind
✔ Missing clients fail the attempt cleanly
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from inference.errors import BackendResponseError, FailureKind
from inference.stub import StubCompletionBackend, StubModelHost, StubReply
from inference.types import (
    BackendDescriptor,
    CallingConvention,
    ChatPayload,
    CompletionPayload,
    GeneratePayload,
    GenerationOptions,
    Message,
    OrchestratorState,
)
from orchestration.executor import (
    LOCAL_NUM_PREDICT,
    LOCAL_TOP_K,
    REMOTE_MAX_TOKENS,
    AttemptExecutor,
    build_prompt,
    local_options,
)


GEN = BackendDescriptor("codegemma:2b", "local", CallingConvention.GENERATE)
CHAT = BackendDescriptor("qwen2.5:3b", "local", CallingConvention.CHAT)
REMOTE = BackendDescriptor("llama-3.1-8b-instant", "remote", CallingConvention.CHAT)

MESSAGES = [
    Message(role="system", content="You are terse."),
    Message(role="user", content="Complete: const x ="),
]


def make_mock_host():
    host = MagicMock()
    host.generate = AsyncMock(return_value={"response": "42;", "done": True})
    host.chat = AsyncMock(return_value={"message": {"role": "assistant", "content": "ok"}})
    return host


# ─────────────────────────────────────────────────────
# Serialization
# ─────────────────────────────────────────────────────


class TestSerialization:
    def test_build_prompt_joins_with_blank_line(self):
        assert build_prompt(MESSAGES) == "You are terse.\n\nComplete: const x ="

    def test_local_options_fill_defaults(self):
        opts = local_options(GenerationOptions())
        assert opts["num_predict"] == LOCAL_NUM_PREDICT
        assert opts["top_k"] == LOCAL_TOP_K
        assert opts["temperature"] == 0.2

    def test_local_options_keep_explicit_zero_temperature(self):
        assert local_options(GenerationOptions(temperature=0.0))["temperature"] == 0.0

    @pytest.mark.asyncio
    async def test_generate_convention_sends_single_prompt(self):
        host = make_mock_host()
        executor = AttemptExecutor(local_host=host)

        outcome = await executor.attempt(GEN, MESSAGES, GenerationOptions())

        assert outcome.success
        model, prompt, _ = host.generate.await_args.args
        assert model == "codegemma:2b"
        assert prompt == "You are terse.\n\nComplete: const x ="
        host.chat.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_chat_convention_sends_message_list(self):
        host = make_mock_host()
        executor = AttemptExecutor(local_host=host)

        await executor.attempt(CHAT, MESSAGES, GenerationOptions())

        model, messages, _ = host.chat.await_args.args
        assert model == "qwen2.5:3b"
        assert messages == [
            {"role": "system", "content": "You are terse."},
            {"role": "user", "content": "Complete: const x ="},
        ]
        host.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_attempt_deadline_passed_as_transport_budget(self):
        host = make_mock_host()
        remote = MagicMock()
        remote.chat_completion = AsyncMock(return_value={"choices": []})
        executor = AttemptExecutor(local_host=host, remote_backend=remote)

        await executor.attempt(GEN, MESSAGES, GenerationOptions(timeout_ms=120_000))
        await executor.attempt(CHAT, MESSAGES, GenerationOptions(), timeout_ms=300_000)
        await executor.attempt(REMOTE, MESSAGES, GenerationOptions(), timeout_ms=240_000)

        assert host.generate.await_args.kwargs["timeout_s"] == 120.0
        assert host.chat.await_args.kwargs["timeout_s"] == 300.0
        assert remote.chat_completion.await_args.kwargs["timeout_s"] == 240.0

    @pytest.mark.asyncio
    async def test_remote_gets_default_max_tokens(self):
        remote = MagicMock()
        remote.chat_completion = AsyncMock(return_value={"choices": []})
        executor = AttemptExecutor(remote_backend=remote)

        await executor.attempt(REMOTE, MESSAGES, GenerationOptions())

        assert remote.chat_completion.await_args.kwargs["max_tokens"] == REMOTE_MAX_TOKENS
        assert remote.chat_completion.await_args.kwargs["model"] == "llama-3.1-8b-instant"


# ─────────────────────────────────────────────────────
# Payload decoding
# ─────────────────────────────────────────────────────


class TestPayloadDecoding:
    @pytest.mark.asyncio
    async def test_generate_payload_carries_done_flag(self):
        executor = AttemptExecutor(local_host=StubModelHost())
        outcome = await executor.attempt(GEN, MESSAGES, GenerationOptions())
        assert isinstance(outcome.payload, GeneratePayload)
        assert outcome.payload.done is True

    @pytest.mark.asyncio
    async def test_chat_payload(self):
        executor = AttemptExecutor(local_host=StubModelHost())
        outcome = await executor.attempt(CHAT, MESSAGES, GenerationOptions())
        assert isinstance(outcome.payload, ChatPayload)

    @pytest.mark.asyncio
    async def test_completion_payload(self):
        executor = AttemptExecutor(remote_backend=StubCompletionBackend())
        outcome = await executor.attempt(REMOTE, MESSAGES, GenerationOptions())
        assert isinstance(outcome.payload, CompletionPayload)

    @pytest.mark.asyncio
    async def test_non_boolean_done_ignored(self):
        host = make_mock_host()
        host.generate.return_value = {"response": "x = 1", "done": "yes"}
        executor = AttemptExecutor(local_host=host)
        outcome = await executor.attempt(GEN, MESSAGES, GenerationOptions())
        assert outcome.payload.done is None


# ─────────────────────────────────────────────────────
# Failures
# ─────────────────────────────────────────────────────


class TestFailures:
    @pytest.mark.asyncio
    async def test_deadline_expiry_is_timeout_outcome(self):
        host = StubModelHost(replies={"qwen2.5:3b": StubReply(body={}, delay_s=0.5)})
        executor = AttemptExecutor(local_host=host)

        outcome = await executor.attempt(
            CHAT, MESSAGES, GenerationOptions(), timeout_ms=50,
            state=OrchestratorState.TRY_LOCAL_SECONDARY,
        )

        assert outcome.success is False
        assert outcome.failure_kind == FailureKind.BACKEND_TIMEOUT
        assert outcome.state == OrchestratorState.TRY_LOCAL_SECONDARY
        assert outcome.elapsed_ms < 500

    @pytest.mark.asyncio
    async def test_options_timeout_used_when_no_override(self):
        host = StubModelHost(replies={"qwen2.5:3b": StubReply(body={}, delay_s=0.5)})
        executor = AttemptExecutor(local_host=host)

        outcome = await executor.attempt(CHAT, MESSAGES, GenerationOptions(timeout_ms=50))

        assert outcome.failure_kind == FailureKind.BACKEND_TIMEOUT
        assert "50ms" in outcome.error

    @pytest.mark.asyncio
    async def test_inference_error_keeps_kind(self):
        host = StubModelHost(
            replies={"qwen2.5:3b": StubReply(error=BackendResponseError("HTTP 500"))}
        )
        outcome = await AttemptExecutor(local_host=host).attempt(CHAT, MESSAGES, GenerationOptions())
        assert outcome.failure_kind == FailureKind.BACKEND_RESPONSE
        assert outcome.error == "HTTP 500"

    @pytest.mark.asyncio
    async def test_unclassified_error_is_unreachable(self):
        host = StubModelHost(replies={"qwen2.5:3b": StubReply(error=RuntimeError("boom"))})
        outcome = await AttemptExecutor(local_host=host).attempt(CHAT, MESSAGES, GenerationOptions())
        assert outcome.failure_kind == FailureKind.BACKEND_UNREACHABLE
        assert "boom" in outcome.error

    @pytest.mark.asyncio
    async def test_no_local_host(self):
        outcome = await AttemptExecutor().attempt(GEN, MESSAGES, GenerationOptions())
        assert outcome.failure_kind == FailureKind.BACKEND_UNREACHABLE

    @pytest.mark.asyncio
    async def test_no_remote_backend(self):
        outcome = await AttemptExecutor().attempt(REMOTE, MESSAGES, GenerationOptions())
        assert outcome.failure_kind == FailureKind.NO_CREDENTIAL

    @pytest.mark.asyncio
    async def test_remote_without_credential(self):
        remote = StubCompletionBackend(credential=False)
        outcome = await AttemptExecutor(remote_backend=remote).attempt(
            REMOTE, MESSAGES, GenerationOptions()
        )
        assert outcome.failure_kind == FailureKind.NO_CREDENTIAL
        assert remote.calls == []
