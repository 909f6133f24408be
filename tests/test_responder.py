import json

import httpx
import pytest
import respx

from hostline.errors import ResponseGenerationError
from hostline.responder import SUMMARY_FALLBACK, OpenAIResponder, ResponderContext
from hostline.session import Turn

BASE_URL = "https://llm.example.com/v1"
COMPLETIONS = f"{BASE_URL}/chat/completions"


def chat(content, prompt_tokens=120, completion_tokens=30):
    return httpx.Response(200, json={
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": prompt_tokens, "completion_tokens": completion_tokens},
    })


def context(intent="general", utterance="hello"):
    return ResponderContext(history=[], utterance=utterance, intent=intent, model="gpt-4o-mini", today="2025-10-09")


CONVERSATION = [
    Turn(role="agent", text="Hi, how can I help?", timestamp=1.0),
    Turn(role="caller", text="Do you have gluten free pasta?", timestamp=2.0),
    Turn(role="agent", text="I'm not sure, sorry.", timestamp=3.0),
]


class TestGenerate:
    @pytest.mark.asyncio
    async def test_returns_completion_with_usage(self, business):
        with respx.mock:
            route = respx.post(COMPLETIONS).mock(return_value=chat(" Hello! "))
            completion = await OpenAIResponder("sk-test", BASE_URL).generate("system", context())
            assert completion.text == "Hello!"
            assert completion.tokens_input == 120
            assert completion.tokens_output == 30
            assert completion.extracted_fields is None
            req = route.calls[0].request
            assert req.headers["authorization"] == "Bearer sk-test"
            body = json.loads(req.content)
            assert body["model"] == "gpt-4o-mini"
            assert body["messages"][0] == {"role": "system", "content": "system"}
            assert body["messages"][-1] == {"role": "user", "content": "hello"}

    @pytest.mark.asyncio
    async def test_reservation_runs_extraction(self):
        with respx.mock:
            respx.post(COMPLETIONS).mock(side_effect=[
                chat("For what time?"),
                chat(json.dumps({"date": "2025-10-10", "partySize": 4, "customerName": None}), 80, 20),
            ])
            completion = await OpenAIResponder("sk-test", BASE_URL).generate(
                "system", context("reservation", "table for 4 tomorrow"),
            )
            assert completion.extracted_fields == {"date": "2025-10-10", "party_size": 4}
            assert completion.tokens_input == 120
            assert completion.tokens_output == 30
            assert completion.extraction_tokens == 100
            assert completion.tokens_used == 250

    @pytest.mark.asyncio
    async def test_bad_extraction_is_not_fatal(self):
        with respx.mock:
            respx.post(COMPLETIONS).mock(side_effect=[chat("For what time?"), chat("not json")])
            completion = await OpenAIResponder("sk-test", BASE_URL).generate(
                "system", context("reservation"),
            )
            assert completion.text == "For what time?"
            assert completion.extracted_fields is None

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        with respx.mock:
            respx.post(COMPLETIONS).mock(return_value=httpx.Response(500))
            with pytest.raises(ResponseGenerationError):
                await OpenAIResponder("sk-test", BASE_URL).generate("system", context())

    @pytest.mark.asyncio
    async def test_empty_completion_raises(self):
        with respx.mock:
            respx.post(COMPLETIONS).mock(return_value=chat(""))
            with pytest.raises(ResponseGenerationError):
                await OpenAIResponder("sk-test", BASE_URL).generate("system", context())

    @pytest.mark.asyncio
    async def test_breaker_skips_calls_after_failures(self):
        with respx.mock:
            route = respx.post(COMPLETIONS).mock(return_value=httpx.Response(503))
            responder = OpenAIResponder("sk-test", BASE_URL)
            for _ in range(4):
                with pytest.raises(ResponseGenerationError):
                    await responder.generate("system", context())
            assert route.call_count == 3


class TestSummaries:
    @pytest.mark.asyncio
    async def test_summarize(self, business):
        with respx.mock:
            respx.post(COMPLETIONS).mock(return_value=chat("Caller asked about gluten free pasta."))
            summary = await OpenAIResponder("sk-test", BASE_URL).summarize(CONVERSATION, business)
            assert summary == "Caller asked about gluten free pasta."

    @pytest.mark.asyncio
    async def test_summarize_failure_falls_back(self, business):
        with respx.mock:
            respx.post(COMPLETIONS).mock(return_value=httpx.Response(500))
            assert await OpenAIResponder("sk-test", BASE_URL).summarize(CONVERSATION, business) == SUMMARY_FALLBACK

    @pytest.mark.asyncio
    async def test_summarize_empty_conversation(self, business):
        assert await OpenAIResponder("sk-test", BASE_URL).summarize([], business) == ""

    @pytest.mark.asyncio
    async def test_detect_missing_info(self, business):
        with respx.mock:
            respx.post(COMPLETIONS).mock(return_value=chat(json.dumps({"missing": [
                {"field": "glutenFree", "context": "gluten free pasta", "priority": "medium"},
                {"context": "no field"},
            ]})))
            missing = await OpenAIResponder("sk-test", BASE_URL).detect_missing_info(CONVERSATION, business)
            assert missing == [{"field": "glutenFree", "context": "gluten free pasta", "priority": "medium"}]

    @pytest.mark.asyncio
    async def test_detect_missing_info_failure_is_empty(self, business):
        with respx.mock:
            respx.post(COMPLETIONS).mock(return_value=chat("garbage"))
            assert await OpenAIResponder("sk-test", BASE_URL).detect_missing_info(CONVERSATION, business) == []
