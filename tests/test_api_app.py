"""Tests for the FastAPI chat endpoint."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from mapgpt.api.app import CHAT_PATH, AppDependencies, create_app
from mapgpt.config import Settings
from mapgpt.errors import ConfigError, UpstreamError
from mapgpt.knowledge import KnowledgeBase
from mapgpt.models import SearchResult
from mapgpt.retrieval import RetrievalDispatcher
from mapgpt.services import ChatService, GrokCompletionClient, PromptComposer


def create_test_client(
    knowledge: KnowledgeBase,
    search,
    news,
    completer,
    *,
    environment: str = "test",
    news_passthrough: bool = False,
) -> TestClient:
    service = ChatService(
        composer=PromptComposer(knowledge),
        dispatcher=RetrievalDispatcher(knowledge=knowledge, search=search, news=news),
        completer=completer,
        news_passthrough=news_passthrough,
    )
    settings = Settings(environment=environment)
    app = create_app(settings=settings, dependencies=AppDependencies(chat_service=service))
    return TestClient(app)


@pytest.fixture
def client(knowledge, search, news, completer) -> TestClient:
    return create_test_client(knowledge, search, news, completer)


@pytest.mark.parametrize(
    ("body", "error"),
    [
        ({}, "No prompt provided"),
        ({"prompt": ""}, "No prompt provided"),
        ({"prompt": "   "}, "No prompt provided"),
        ({"prompt": 42}, "Prompt must be a string"),
        (["prompt"], "Request body must be a JSON object"),
    ],
)
def test_invalid_prompt_is_rejected_without_collaborator_calls(
    client: TestClient, search, news, completer, body: object, error: str
) -> None:
    response = client.post(CHAT_PATH, json=body)
    assert response.status_code == 400
    assert response.json() == {"error": error}
    assert search.calls == []
    assert news.calls == 0
    assert completer.calls == []


def test_malformed_json_is_rejected(client: TestClient) -> None:
    response = client.post(CHAT_PATH, content=b"{oops", headers={"content-type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"error": "Request body must be valid JSON"}


def test_help_returns_canned_text(client: TestClient, knowledge: KnowledgeBase, completer) -> None:
    response = client.post(CHAT_PATH, json={"prompt": "help"})
    assert response.status_code == 200
    assert response.json() == {"response": knowledge.help_text}
    assert response.headers["X-MapGPT-Intent"] == "help"
    assert completer.calls == []


def test_out_of_domain_prompt_is_refused(client: TestClient, knowledge: KnowledgeBase, search, completer) -> None:
    response = client.post(CHAT_PATH, json={"prompt": "Write me a poem about the sea"})
    assert response.status_code == 200
    assert response.json()["response"] == knowledge.refusal_text
    assert search.calls == []
    assert completer.calls == []


def test_topic_prompt_reaches_completion_with_context(client: TestClient, completer) -> None:
    response = client.post(CHAT_PATH, json={"prompt": "Who is the HOD of Computer Science?"})
    assert response.status_code == 200, response.text
    assert response.json() == {"response": "stub answer"}
    assert response.headers["X-MapGPT-Intent"] == "topic"
    system, user = completer.calls[0]
    assert "Current HOD: Dr. Orunsholu" in system.content
    assert user.content == "Who is the HOD of Computer Science?"


def test_news_digest_is_spliced_into_prompt(client: TestClient, news, completer) -> None:
    news.articles = [SearchResult(title="Exams begin", link="https://news.example/exams", snippet="Check dates.")]
    response = client.post(CHAT_PATH, json={"prompt": "Latest MAPOLY news"})
    assert response.status_code == 200
    user = completer.calls[0][-1]
    assert "1. **Exams begin**" in user.content
    assert "[Read more](https://news.example/exams)" in user.content


def test_news_passthrough_returns_digest_directly(knowledge, search, news, completer) -> None:
    client = create_test_client(knowledge, search, news, completer, news_passthrough=True)
    response = client.post(CHAT_PATH, json={"prompt": "Latest MAPOLY news"})
    assert response.status_code == 200
    assert response.json() == {"response": "No recent news found on the MAPOLY news page."}
    assert completer.calls == []


def _failing_completer(status_code: int = 500) -> GrokCompletionClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text="upstream exploded")

    return GrokCompletionClient(api_key_provider=lambda: "key", transport=httpx.MockTransport(handler))


def test_upstream_failure_maps_to_500_with_details(knowledge, search, news) -> None:
    client = create_test_client(knowledge, search, news, _failing_completer())
    response = client.post(CHAT_PATH, json={"prompt": "Who is the HOD of Computer Science?"})
    assert response.status_code == 500
    payload = response.json()
    assert payload["error"] == "API request failed with status 500: upstream exploded"
    assert "UpstreamError" in payload["details"]


def test_production_hides_error_details(knowledge, search, news) -> None:
    client = create_test_client(knowledge, search, news, _failing_completer(502), environment="prod")
    response = client.post(CHAT_PATH, json={"prompt": "Who is the HOD of Computer Science?"})
    assert response.status_code == 500
    assert "502" in response.json()["error"]
    assert "details" not in response.json()


def test_missing_secret_maps_to_500(knowledge, search, news) -> None:
    def missing_key() -> str:
        raise ConfigError("GROK_API_KEY not set in environment")

    completer = GrokCompletionClient(api_key_provider=missing_key)
    client = create_test_client(knowledge, search, news, completer)
    response = client.post(CHAT_PATH, json={"prompt": "Who is the HOD of Computer Science?"})
    assert response.status_code == 500
    assert response.json()["error"] == "GROK_API_KEY not set in environment"


def test_search_failure_maps_to_500(client: TestClient, search) -> None:
    search.error = UpstreamError("Search request failed with status 429: slow down", upstream_status=429)
    response = client.post(CHAT_PATH, json={"prompt": "How do I apply for admission?"})
    assert response.status_code == 500
    assert "429" in response.json()["error"]


def test_usage_health_and_metrics(client: TestClient) -> None:
    usage = client.get(CHAT_PATH)
    assert usage.status_code == 200
    assert usage.json()["example"]["prompt"]

    assert client.get("/healthz").json()["status"] == "ok"
    assert client.head("/healthz").status_code == 200
    assert client.get("/livez").json() == {"status": "alive"}

    client.post(CHAT_PATH, json={"prompt": "help"})
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "mapgpt_chat_requests_total" in metrics.text


def test_correlation_id_is_echoed(client: TestClient) -> None:
    response = client.post(CHAT_PATH, json={"prompt": "help"}, headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Correlation-ID"] == "req-123"
