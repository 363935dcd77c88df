from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from headless_render.api.main import app
from headless_render.api.routes.render_routes import attachment_filename, get_render_manager
from headless_render.components.renderer.pipeline import RenderResult
from headless_render.core.exceptions import (
    ConnectionPoolError,
    NavigationError,
    PolicyAbortError,
    ScrollTimeoutError,
    UnsupportedEncodingError,
)

# Used without a `with` block, so the lifespan (and the browser pool) never starts.
client = TestClient(app)


@pytest.fixture
def render_manager():
    """Replaces the process-wide RenderManager for the duration of one test."""
    manager = MagicMock()
    manager.render = AsyncMock(return_value=RenderResult(b"%PDF-1.4 fake", "application/pdf", "Example Domain"))
    app.dependency_overrides[get_render_manager] = lambda: manager
    yield manager
    app.dependency_overrides.clear()


def test_read_root():
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Welcome to the Headless Render API"
    assert body["version"] == app.version
    assert body["pool_size"] == 0


def test_render_from_query(render_manager):
    response = client.get("/api/v1/render", params={
        "url": "https://example.com",
        "viewport.width": "800",
        "pdf.margin.top": "1cm",
        "waitFor": "",
    })

    assert response.status_code == 200
    assert response.content == b"%PDF-1.4 fake"
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'inline; filename="Example Domain.pdf"'
    render_manager.render.assert_awaited_once_with({
        "url": "https://example.com",
        "viewport": {"width": "800"},
        "pdf": {"margin": {"top": "1cm"}},
    })


def test_render_from_body(render_manager):
    render_manager.render.return_value = RenderResult(b"\x89PNG fake", "image/png", None)
    request = {"url": "https://example.com", "output": "visual-snapshot", "screenshot": {"type": "png"}}

    response = client.post("/api/v1/render", json=request)

    assert response.status_code == 200
    assert response.content == b"\x89PNG fake"
    assert response.headers["content-type"] == "image/png"
    assert response.headers["content-disposition"] == 'inline; filename="render.png"'
    render_manager.render.assert_awaited_once_with(request)


def test_render_from_empty_body(render_manager):
    response = client.post("/api/v1/render")

    assert response.status_code == 200
    render_manager.render.assert_awaited_once_with({})


def test_html_artifact_is_served_as_text(render_manager):
    render_manager.render.return_value = RenderResult(b"<h1>hi</h1>", "text/html", "Greeting")

    response = client.post("/api/v1/render", json={"html": "<h1>hi</h1>", "output": "html"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert response.text == "<h1>hi</h1>"


@pytest.mark.parametrize("error, status_code", [
    (PolicyAbortError("3 requests have failed. See server log for more details.", failure_count=3), 412),
    (UnsupportedEncodingError("bmp"), 400),
    (NavigationError("Failed to load https://example.invalid: net::ERR_NAME_NOT_RESOLVED"), 502),
    (ConnectionPoolError("Failed to attach to browser at http://127.0.0.1:9222"), 503),
    (ScrollTimeoutError("Auto-scroll did not reach the bottom within 30000 ms"), 504),
])
def test_render_errors_map_to_their_status(render_manager, error, status_code):
    render_manager.render.side_effect = error

    response = client.post("/api/v1/render", json={"url": "https://example.com"})

    assert response.status_code == status_code
    assert response.json() == {"detail": error.message}


def test_policy_abort_detail_reaches_the_client(render_manager):
    render_manager.render.side_effect = PolicyAbortError(
        "Request for https://example.com did not directly succeed and returned status 404",
        url="https://example.com",
        observed_status=404,
    )

    response = client.get("/api/v1/render", params={"url": "https://example.com", "failEarly": "page"})

    assert response.status_code == 412
    assert "returned status 404" in response.json()["detail"]


def test_non_object_body_is_rejected(render_manager):
    response = client.post("/api/v1/render", json=["https://example.com"])

    assert response.status_code == 422
    assert response.json()["detail"] == "Request validation failed"
    render_manager.render.assert_not_awaited()


def test_render_without_started_pool_is_unavailable():
    app.dependency_overrides.clear()

    response = client.post("/api/v1/render", json={"url": "https://example.com"})

    assert response.status_code == 503
    assert "browser pool has not been started" in response.json()["detail"]


@pytest.mark.parametrize("name, content_type, expected", [
    ("Example Domain", "application/pdf", "Example Domain.pdf"),
    (None, "image/jpeg", "render.jpeg"),
    ('a/b\\c"d', "text/html", "a_b_c_d.html"),
    ("...", "image/png", "render.png"),
    ("x" * 300, "application/pdf", "x" * 100 + ".pdf"),
    ("report", "application/octet-stream", "report.bin"),
])
def test_attachment_filename(name, content_type, expected):
    assert attachment_filename(RenderResult(b"", content_type, name)) == expected
