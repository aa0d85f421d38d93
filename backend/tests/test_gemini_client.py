"""Tests for the Gemini completion client (retries, backoff, observables)."""

import json

import httpx
import pytest

from app.core.errors import CompletionFailure
from app.services.completion.gemini_client import CompletionState, GeminiClient
from conftest import GEMINI_URL, gemini_ok


class TestGeminiClient:
    """Bounded attempts with exponential backoff."""

    @pytest.fixture
    def make_client(self, sleeper):
        def _make(handler, **kwargs):
            return GeminiClient(
                GEMINI_URL,
                "secret-key",
                transport=httpx.MockTransport(handler),
                sleep=sleeper,
                **kwargs,
            )

        return _make

    @pytest.mark.asyncio
    async def test_rate_limited_twice_then_success(self, make_client, sleeper):
        """429, 429, 200 with max_attempts=3: returns the text after waiting 1s then 2s."""
        responses = iter([httpx.Response(429), httpx.Response(429), gemini_ok("Keep going.")])
        calls = []

        def handler(request):
            calls.append(request)
            return next(responses)

        client = make_client(handler)
        text = await client.complete("system", "query", max_attempts=3)

        assert text == "Keep going."
        assert len(calls) == 3
        assert sleeper.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_always_malformed_fails_after_max_attempts(self, make_client, sleeper):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"candidates": []})

        client = make_client(handler)
        state = CompletionState()
        with pytest.raises(CompletionFailure) as exc_info:
            await client.complete("system", "query", max_attempts=3, state=state)

        assert len(calls) == 3
        assert sleeper.delays == [1.0, 2.0]
        assert exc_info.value.attempts == 3
        assert exc_info.value.message == "Gemini feature failed after 3 attempts."
        assert exc_info.value.last_reason == "Gemini response was empty or malformed."
        assert state.error == "Gemini feature failed after 3 attempts."
        assert state.pending is False

    @pytest.mark.asyncio
    async def test_server_error_then_success(self, make_client, sleeper):
        responses = iter([httpx.Response(503), gemini_ok("Recovered.")])
        client = make_client(lambda request: next(responses))

        assert await client.complete("system", "query") == "Recovered."
        assert sleeper.delays == [1.0]

    @pytest.mark.asyncio
    async def test_transport_error_is_retried(self, make_client, sleeper):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return gemini_ok("Connected.")

        client = make_client(handler)
        assert await client.complete("system", "query") == "Connected."
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_first_attempt_success_does_not_sleep(self, make_client, sleeper):
        client = make_client(lambda request: gemini_ok("Fast."))

        assert await client.complete("system", "query") == "Fast."
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_request_shape(self, make_client):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            seen["body"] = json.loads(request.content)
            return gemini_ok("ok")

        client = make_client(handler)
        await client.complete("Be a coach.", "Summarize my day.")

        assert seen["params"] == {"key": "secret-key"}
        assert seen["body"] == {
            "contents": [{"parts": [{"text": "Summarize my day."}]}],
            "systemInstruction": {"parts": [{"text": "Be a coach."}]},
        }

    @pytest.mark.asyncio
    async def test_state_pending_during_call_and_error_reset(self, make_client):
        state = CompletionState()
        state.error = "previous failure"
        observed = []

        def handler(request):
            observed.append((state.pending, state.error))
            return gemini_ok("ok")

        client = make_client(handler)
        await client.complete("system", "query", state=state)

        assert observed == [(True, None)]
        assert state.pending is False
        assert state.error is None

    @pytest.mark.asyncio
    async def test_default_max_attempts_from_client(self, make_client, sleeper):
        client = make_client(lambda request: httpx.Response(429), max_attempts=2)

        with pytest.raises(CompletionFailure) as exc_info:
            await client.complete("system", "query")
        assert exc_info.value.attempts == 2
        assert sleeper.delays == [1.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_attempts", [0, -1])
    async def test_max_attempts_below_one_is_rejected(self, make_client, sleeper, max_attempts):
        calls = []

        def handler(request):
            calls.append(request)
            return gemini_ok("never reached")

        client = make_client(handler)
        state = CompletionState()

        with pytest.raises(ValueError):
            await client.complete("system", "query", max_attempts=max_attempts, state=state)
        assert calls == []
        assert sleeper.delays == []
        assert state.pending is False


def test_backoff_delay_doubles():
    client = GeminiClient(GEMINI_URL, backoff_base_s=0.5)
    assert [client.backoff_delay(n) for n in (2, 3, 4)] == [0.5, 1.0, 2.0]


@pytest.mark.parametrize(
    "body, expected",
    [
        ({"candidates": [{"content": {"parts": [{"text": "hello"}]}}]}, "hello"),
        ({"candidates": [{"content": {"parts": [{"text": ""}]}}]}, None),
        ({"candidates": [{"content": {"parts": []}}]}, None),
        ({"candidates": [{"content": {}}]}, None),
        ({}, None),
        ([], None),
        (None, None),
    ],
)
def test_extract_text(body, expected):
    assert GeminiClient.extract_text(body) == expected
