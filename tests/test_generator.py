import asyncio
import json

import httpx
import pytest

from pages_builder.ai.fallback import FALLBACK_APP_HTML
from pages_builder.ai.generator import (
    CandidatesShape,
    ChoicesShape,
    ContentGenerator,
    OutputBlocksShape,
    OutputTextShape,
    extract_text,
    strip_code_fences,
)
from pages_builder.core.config import OPENAI_DEFAULT_BASE_URL, AI_PIPE_BASE_URL, resolve_endpoint

from conftest import make_settings


APP = "<!DOCTYPE html><html><body>todo</body></html>"

SHAPES = {
    "output_text": {"output_text": APP},
    "output": {"output": [{"type": "message", "content": [{"type": "output_text", "text": APP}]}]},
    "candidates": {"candidates": [{"content": [{"parts": [APP]}]}]},
    "choices": {"choices": [{"message": {"role": "assistant", "content": APP}}]},
}


def run_generator(handler, **settings_overrides):
    generator = ContentGenerator(make_settings(**settings_overrides), transport=httpx.MockTransport(handler))
    return asyncio.run(generator.generate("todo app"))


@pytest.mark.parametrize("shape", sorted(SHAPES))
def test_every_response_shape_yields_the_same_text(shape):
    body = SHAPES[shape]
    assert run_generator(lambda request: httpx.Response(200, json=body)) == APP


def test_shapes_are_tried_in_priority_order():
    body = {"output_text": "first", "choices": [{"message": {"content": "last"}}]}
    assert extract_text(body) == "first"
    body = {"output_text": "  ", "output": [{"content": [{"text": ""}, {"parts": ["a", "b"]}]}]}
    assert extract_text(body) == "a\nb"


def test_each_shape_ignores_foreign_bodies():
    foreign = {"unexpected": True}
    for shape in (OutputTextShape(), OutputBlocksShape(), CandidatesShape(), ChoicesShape()):
        assert shape.extract(foreign) is None
    assert ChoicesShape().extract({"choices": [{"text": "legacy completion"}]}) == "legacy completion"
    assert CandidatesShape().extract({"candidates": [{"output_text": "x"}]}) == "x"


def test_request_is_sent_to_responses_endpoint():
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"output_text": APP})

    run_generator(handler, OPENAI_BASE_URL="https://llm.test/v1/", AI_MODEL="gpt-test")

    assert seen["url"] == "https://llm.test/v1/responses"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["model"] == "gpt-test"
    assert seen["body"]["max_output_tokens"] == 2000
    assert seen["body"]["input"].endswith('Create an application based on this brief: "todo app"')
    assert "Tailwind CSS" in seen["body"]["input"]


def test_code_fences_are_stripped():
    fenced = f"```html\n{APP}\n```"
    assert strip_code_fences(fenced) == APP
    assert run_generator(lambda request: httpx.Response(200, json={"output_text": fenced})) == APP


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="upstream down"),
        httpx.Response(401, json={"error": "bad key"}),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"output": []}),
        httpx.Response(200, json={"output_text": "```"}),
    ],
)
def test_failures_fall_back_to_calculator(response):
    assert run_generator(lambda request: response) == FALLBACK_APP_HTML


def test_fallback_is_identical_every_time():
    results = [run_generator(lambda request: httpx.Response(503)) for _ in range(3)]
    assert results == [FALLBACK_APP_HTML] * 3


def test_transport_error_falls_back():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    assert run_generator(handler) == FALLBACK_APP_HTML


def test_missing_key_skips_the_call():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"output_text": APP})

    assert run_generator(handler, OPENAI_API_KEY=None, AI_PIPE_TOKEN=None, AI_PIPE_KEY=None) == FALLBACK_APP_HTML
    assert calls == []


def test_resolve_endpoint_prefers_explicit_then_alias_then_default():
    assert resolve_endpoint("https://a", "https://b", "https://c") == "https://a"
    assert resolve_endpoint("", "https://b", "https://c") == "https://b"
    assert resolve_endpoint(None, None, "https://c") == "https://c"
    assert resolve_endpoint(None, "  ", None) is None


def test_legacy_ai_pipe_settings():
    settings = make_settings(OPENAI_API_KEY=None, OPENAI_BASE_URL=None, AI_PIPE_TOKEN="pipe", AI_PIPE_ENDPOINT=None)
    assert settings.llm_api_key == "pipe"
    assert settings.llm_base_url == AI_PIPE_BASE_URL

    settings = make_settings(OPENAI_BASE_URL=None, AI_PIPE_TOKEN=None, AI_PIPE_ENDPOINT=None)
    assert settings.llm_base_url == OPENAI_DEFAULT_BASE_URL
    assert settings.llm_api_key == "sk-test"
