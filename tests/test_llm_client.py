"""
Unit tests for the Gemini client and its Groq fallback.
"""
import asyncio
import json

import httpx
import pytest

from llm_client import NO_RESPONSE, GeminiClient, GeminiError, RateLimitError, extract_candidate_text


def gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_extract_candidate_text():
    assert extract_candidate_text(gemini_reply("Hello")) == "Hello"
    assert extract_candidate_text({}) == NO_RESPONSE
    assert extract_candidate_text({"candidates": []}) == NO_RESPONSE
    assert extract_candidate_text({"candidates": [{"content": {"parts": []}}]}) == NO_RESPONSE


def test_extract_candidate_text_with_unexpected_shapes():
    """Wrong types at any level give the placeholder instead of raising."""
    assert extract_candidate_text({"candidates": [None]}) == NO_RESPONSE
    assert extract_candidate_text({"candidates": "oops"}) == NO_RESPONSE
    assert extract_candidate_text({"candidates": [{"content": None}]}) == NO_RESPONSE
    assert extract_candidate_text({"candidates": [{"content": {"parts": ["x"]}}]}) == NO_RESPONSE
    assert extract_candidate_text({"candidates": [{"content": {"parts": [{"text": 42}]}}]}) == NO_RESPONSE
    assert extract_candidate_text([]) == NO_RESPONSE


def test_malformed_body_from_gemini():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"candidates": [None]}))
    client = GeminiClient(api_key="k", groq_key="", transport=transport)
    assert asyncio.run(client.generate_response("hi")) == NO_RESPONSE


def test_malformed_body_from_groq_raises_gemini_error():
    def handler(request):
        if request.url.host == "api.groq.com":
            return httpx.Response(200, json={"choices": None})
        return httpx.Response(429)

    client = GeminiClient(api_key="k", groq_key="gq", transport=httpx.MockTransport(handler))
    with pytest.raises(GeminiError, match="Invalid response from Groq"):
        asyncio.run(client.generate_response("hi"))


def test_non_text_content_from_groq_raises_gemini_error():
    def handler(request):
        if request.url.host == "api.groq.com":
            return httpx.Response(200, json={"choices": [{"message": {"content": None}}]})
        return httpx.Response(429)

    client = GeminiClient(api_key="k", groq_key="gq", transport=httpx.MockTransport(handler))
    with pytest.raises(GeminiError, match="Invalid response from Groq"):
        asyncio.run(client.generate_response("hi"))


def test_generate_response_request_shape():
    seen = {}

    def handler(request):
        seen["request"] = request
        return httpx.Response(200, json=gemini_reply("A concise answer."))

    client = GeminiClient(api_key="gm-key", groq_key="", transport=httpx.MockTransport(handler))
    answer = asyncio.run(client.generate_response("What is REST?"))

    assert answer == "A concise answer."
    request = seen["request"]
    assert request.url.path.endswith("/gemini-1.5-flash:generateContent")
    assert request.url.params["key"] == "gm-key"
    assert json.loads(request.content) == {"contents": [{"parts": [{"text": "What is REST?"}]}]}


def test_no_candidates_returns_placeholder():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"candidates": []}))
    client = GeminiClient(api_key="k", groq_key="", transport=transport)
    assert asyncio.run(client.generate_response("hi")) == NO_RESPONSE


def test_bad_status_raises():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="oops"))
    client = GeminiClient(api_key="k", groq_key="", transport=transport)
    with pytest.raises(GeminiError, match=r"Bad server response \(500\)"):
        asyncio.run(client.generate_response("hi"))


def test_missing_key_raises():
    client = GeminiClient(api_key="", groq_key="")
    with pytest.raises(GeminiError, match="missing"):
        asyncio.run(client.generate_response("hi"))


def test_rate_limit_without_groq_key_propagates():
    transport = httpx.MockTransport(lambda request: httpx.Response(429))
    client = GeminiClient(api_key="k", groq_key="", transport=transport)
    with pytest.raises(RateLimitError):
        asyncio.run(client.generate_response("hi"))


def test_rate_limit_switches_to_groq_for_cooldown():
    hosts = []

    def handler(request):
        hosts.append(request.url.host)
        if request.url.host == "api.groq.com":
            assert request.headers["Authorization"] == "Bearer gq-key"
            return httpx.Response(200, json={"choices": [{"message": {"content": "From Groq"}}]})
        return httpx.Response(429)

    client = GeminiClient(api_key="k", groq_key="gq-key", transport=httpx.MockTransport(handler))

    async def scenario():
        first = await client.generate_response("one")
        second = await client.generate_response("two")
        return first, second

    assert asyncio.run(scenario()) == ("From Groq", "From Groq")
    # Second call skips Gemini while the cooldown is active
    assert hosts == ["generativelanguage.googleapis.com", "api.groq.com", "api.groq.com"]


def test_network_error_is_wrapped():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    client = GeminiClient(api_key="k", groq_key="", transport=httpx.MockTransport(handler))
    with pytest.raises(GeminiError, match="unreachable"):
        asyncio.run(client.generate_response("hi"))
