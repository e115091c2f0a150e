import asyncio
import json

import httpx
import pytest

from conftest import DEFAULT_PASSWORD
from geoscore.config import Settings
from geoscore.services.insight_service import (
    GeneratedInsight,
    InsightGenerationError,
    InsightGenerator,
    get_insight_generator,
    parse_insight_response,
)


class FakeGenerator:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[list[str]] = []

    async def generate(self, previous_bodies):
        self.calls.append(list(previous_bodies))
        if self.error:
            raise self.error
        return GeneratedInsight(title="Look at the bollards", body="Dutch bollards are red and white.")


@pytest.fixture()
def og_headers(client, legacy_import):
    summary = legacy_import()
    res = client.post(
        "/api/claim",
        json={"legacy_id": "legacy_tyler", "code": summary.claim_codes["legacy_tyler"], "password": DEFAULT_PASSWORD},
    )
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


def test_insights_are_for_og_members_only(client, register):
    _, headers = register("outsider")
    assert client.get("/api/insights", headers=headers).status_code == 403
    assert client.post("/api/insights", headers=headers).status_code == 403


def test_unconfigured_generator(client, og_headers):
    assert client.post("/api/insights", headers=og_headers).status_code == 503


def test_daily_insight_is_generated_once(app, client, og_headers):
    generator = FakeGenerator()
    app.dependency_overrides[get_insight_generator] = lambda: generator

    first = client.post("/api/insights", headers=og_headers)
    assert first.status_code == 200
    assert first.json()["cached"] is False
    assert first.json()["insight"]["title"] == "Look at the bollards"

    second = client.post("/api/insights", headers=og_headers)
    assert second.json()["cached"] is True
    assert len(generator.calls) == 1
    assert generator.calls[0] == []

    listing = client.get("/api/insights", headers=og_headers).json()["insights"]
    assert [insight["title"] for insight in listing] == ["Look at the bollards"]

    notifications = client.get("/api/notifications", headers=og_headers).json()["notifications"]
    assert notifications[0]["type"] == "daily_insight"


def test_generator_failure_is_a_bad_gateway(app, client, og_headers):
    app.dependency_overrides[get_insight_generator] = lambda: FakeGenerator(InsightGenerationError("boom"))
    assert client.post("/api/insights", headers=og_headers).status_code == 502
    assert client.get("/api/insights", headers=og_headers).json()["insights"] == []


def test_parse_insight_response():
    parsed = parse_insight_response('{"title": "T", "body": "B", "imageSearchQuery": "Q"}')
    assert (parsed.title, parsed.body, parsed.image_search_query) == ("T", "B", "Q")

    fenced = parse_insight_response('```json\n{"title": "T", "body": "B"}\n```')
    assert fenced.title == "T"
    assert fenced.image_search_query is None

    with pytest.raises(InsightGenerationError):
        parse_insight_response("no json here")
    with pytest.raises(InsightGenerationError):
        parse_insight_response('{"title": "only a title"}')


def test_generator_calls_model_then_image_search():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.host == "api.anthropic.com":
            text = json.dumps({"title": "Bollards", "body": "Look for them.", "imageSearchQuery": "dutch bollard"})
            return httpx.Response(200, json={"content": [{"type": "text", "text": text}]})
        return httpx.Response(200, json={"items": [{"link": "https://img.example/b.jpg", "title": "A bollard"}]})

    settings = Settings(
        anthropic_api_key="test-key",
        google_custom_search_api_key="g-key",
        google_custom_search_engine_id="engine",
    )
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    insight = asyncio.run(InsightGenerator(settings, client=client).generate(["an older tip"]))

    assert insight.title == "Bollards"
    assert insight.image_url == "https://img.example/b.jpg"
    assert insight.image_caption == "A bollard"
    assert seen[0].headers["x-api-key"] == "test-key"
    assert "an older tip" in json.loads(seen[0].content)["messages"][0]["content"]
    assert seen[1].url.params["q"] == "dutch bollard GeoGuessr clue"


def test_image_search_failure_is_not_fatal():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.anthropic.com":
            text = json.dumps({"title": "T", "body": "B", "imageSearchQuery": "q"})
            return httpx.Response(200, json={"content": [{"type": "text", "text": text}]})
        return httpx.Response(500)

    settings = Settings(
        anthropic_api_key="test-key",
        google_custom_search_api_key="g-key",
        google_custom_search_engine_id="engine",
    )
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    insight = asyncio.run(InsightGenerator(settings, client=client).generate([]))
    assert insight.image_url is None


def test_model_error_raises_generation_error():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(529)))
    generator = InsightGenerator(Settings(anthropic_api_key="test-key"), client=client)
    with pytest.raises(InsightGenerationError):
        asyncio.run(generator.generate([]))


def test_image_search_with_garbled_body_is_not_fatal():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.anthropic.com":
            text = json.dumps({"title": "T", "body": "B", "imageSearchQuery": "q"})
            return httpx.Response(200, json={"content": [{"type": "text", "text": text}]})
        return httpx.Response(200, text="<html>quota page</html>")

    settings = Settings(
        anthropic_api_key="test-key",
        google_custom_search_api_key="g-key",
        google_custom_search_engine_id="engine",
    )
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    insight = asyncio.run(InsightGenerator(settings, client=client).generate([]))
    assert insight.title == "T"
    assert insight.image_url is None
    assert insight.image_caption is None


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>gateway</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, json={"content": ["not a block"]}),
    ],
)
def test_unreadable_model_reply_raises_generation_error(response):
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: response))
    generator = InsightGenerator(Settings(anthropic_api_key="test-key"), client=client)
    with pytest.raises(InsightGenerationError):
        asyncio.run(generator.generate([]))


def test_injected_client_stays_open_across_insights():
    def handler(request: httpx.Request) -> httpx.Response:
        text = json.dumps({"title": "T", "body": "B"})
        return httpx.Response(200, json={"content": [{"type": "text", "text": text}]})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    generator = InsightGenerator(Settings(anthropic_api_key="test-key"), client=client)

    async def generate_twice():
        await generator.generate([])
        return await generator.generate([])

    assert asyncio.run(generate_twice()).title == "T"
    assert client.is_closed is False


def test_html_reply_from_model_is_a_bad_gateway(app, client, og_headers):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>gateway</html>"))
    generator = InsightGenerator(
        Settings(anthropic_api_key="test-key"), client=httpx.AsyncClient(transport=transport)
    )
    app.dependency_overrides[get_insight_generator] = lambda: generator
    assert client.post("/api/insights", headers=og_headers).status_code == 502
