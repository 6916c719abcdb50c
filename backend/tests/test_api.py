import importlib
import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from wordsplainer.errors import MalformedResponse, ServiceUnavailable
from wordsplainer.graph.controller import InteractionController, NodeClicked, Outcome, SubmitWord, SwitchView
from wordsplainer.main import app
from wordsplainer.models.content_models import RelationType
from wordsplainer.services.content import HttpContentService, StaticContentService, get_content_service


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def static_service():
    app.dependency_overrides[get_content_service] = lambda: StaticContentService()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def failing_service():
    service = MagicMock()
    service.fetch_relations = AsyncMock(
        side_effect=ServiceUnavailable("AI service unavailable. Please try again.", status_code=503)
    )
    service.fetch_example = AsyncMock(side_effect=MalformedResponse("no text"))
    service.validate_word = AsyncMock(
        side_effect=ServiceUnavailable("AI service rate limit exceeded. Please try again later.", status_code=429)
    )
    app.dependency_overrides[get_content_service] = lambda: service
    yield service
    app.dependency_overrides.clear()


@pytest.mark.anyio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_security_headers(client: AsyncClient):
    resp = await client.get("/api/health")
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"
    assert "max-age" in resp.headers["Strict-Transport-Security"]


# --- Relations ---


@pytest.mark.anyio
async def test_relations_page(client: AsyncClient, static_service):
    resp = await client.post(
        "/api/wordsplainer",
        json={"word": "plan", "type": "synonyms", "offset": 0, "limit": 5},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert [n["text"] for n in data["nodes"]] == ["scheme", "strategy", "blueprint", "design", "proposal"]
    assert data["hasMore"] is True
    assert data["total"] == 6


@pytest.mark.anyio
async def test_relations_translation(client: AsyncClient, static_service):
    resp = await client.post(
        "/api/wordsplainer",
        json={"word": "happy", "type": "translation", "language": "fr"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["nodes"][0]["text"] == "heureux"
    assert data["nodes"][0]["translationData"]["fr"] == "heureux"
    assert "exampleTranslations" in data


@pytest.mark.anyio
@pytest.mark.parametrize(
    "payload",
    [
        {"word": "plan!", "type": "synonyms"},
        {"word": "", "type": "synonyms"},
        {"word": "a" * 101, "type": "synonyms"},
        {"word": "plan", "type": "rhymes"},
        {"word": "plan", "type": "translation"},
        {"word": "plan", "type": "translation", "language": "xx"},
        {"word": "plan", "type": "synonyms", "model": "some/other-model"},
        {"word": "plan", "type": "synonyms", "limit": 50},
    ],
)
async def test_relations_rejects_bad_input(client: AsyncClient, static_service, payload):
    resp = await client.post("/api/wordsplainer", json=payload)
    assert resp.status_code == 422


@pytest.mark.anyio
async def test_relations_service_unavailable(client: AsyncClient, failing_service):
    resp = await client.post("/api/wordsplainer", json={"word": "plan", "type": "synonyms"})
    assert resp.status_code == 503
    assert resp.json() == {"error": "AI service unavailable. Please try again."}


# --- Examples ---


@pytest.mark.anyio
async def test_example(client: AsyncClient, static_service):
    resp = await client.post(
        "/api/wordsplainer/example",
        json={"word": "happy", "text": "happy camper", "type": "idioms"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["explanation"]
    assert data["example"]


@pytest.mark.anyio
async def test_example_malformed_maps_to_500(client: AsyncClient, failing_service):
    resp = await client.post(
        "/api/wordsplainer/example",
        json={"word": "plan", "text": "scheme", "type": "synonyms"},
    )
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to parse AI response"}


# --- Validation ---


@pytest.mark.anyio
async def test_validate_word(client: AsyncClient, static_service):
    resp = await client.post(
        "/api/validate-word",
        json={"centralWord": "happy", "userWord": "joyful", "relationship": "synonym"},
    )
    assert resp.status_code == 200
    assert resp.json()["isValid"] is True

    resp = await client.post(
        "/api/validate-word",
        json={"centralWord": "happy", "userWord": "table", "relationship": "opposite"},
    )
    assert resp.json()["isValid"] is False


@pytest.mark.anyio
async def test_validate_word_upstream_rate_limit(client: AsyncClient, failing_service):
    resp = await client.post(
        "/api/validate-word",
        json={"centralWord": "happy", "userWord": "joyful", "relationship": "synonym"},
    )
    assert resp.status_code == 429
    assert "rate limit" in resp.json()["error"]


# --- Client against the real app ---


@pytest.mark.anyio
async def test_controller_over_http(static_service):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        controller = InteractionController(HttpContentService(client=http))
        assert await controller.dispatch(SubmitWord(word="happy")) is Outcome.APPLIED
        assert await controller.dispatch(SwitchView(view=RelationType.OPPOSITES)) is Outcome.APPLIED
        assert await controller.dispatch(NodeClicked(node_id="happy::sad::opposites")) is Outcome.APPLIED

    assert controller.model.is_expanded("happy::sad::opposites")
    assert controller.view_state.total == 3


# --- Rate limiting ---


@pytest.fixture
async def rate_limited_client():
    """Create a client with rate limiting enabled."""
    with patch.dict(os.environ, {"WORDSPLAINER_NO_RATE_LIMIT": ""}):
        import wordsplainer.main
        import wordsplainer.rate_limit
        import wordsplainer.routers.content

        # Routes bind the limiter at import time, so reload the chain
        importlib.reload(wordsplainer.rate_limit)
        importlib.reload(wordsplainer.routers.content)
        importlib.reload(wordsplainer.main)

        transport = ASGITransport(app=wordsplainer.main.app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c

    importlib.reload(wordsplainer.rate_limit)
    importlib.reload(wordsplainer.routers.content)
    importlib.reload(wordsplainer.main)


@pytest.mark.anyio
async def test_rate_limit_returns_429(rate_limited_client: AsyncClient):
    statuses = []
    for _ in range(21):
        resp = await rate_limited_client.post(
            "/api/wordsplainer", json={"word": "plan", "type": "meaning", "limit": 1}
        )
        statuses.append(resp.status_code)
    assert statuses[:20] == [200] * 20
    assert statuses[20] == 429


def test_rate_limit_disabled_by_env():
    from wordsplainer.rate_limit import limiter

    assert os.environ["WORDSPLAINER_NO_RATE_LIMIT"] == "true"
    assert limiter.enabled is False
