"""
Contract tests for the HTTP surface.

These tests verify the API contract:
- POST /bitbucket returns 200 on success and on push-only events
- Returns 400 on unusable payloads, 500 on review or publish failures
- Response bodies carry a coarse status and message
- GET /health, GET / and GET /metrics
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from main import create_app
from utils.errors import InvokeTransportError, RemoteRejected


@pytest.fixture
def app(pipeline):
    return create_app(pipeline=pipeline)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


class TestWebhookEndpointContract:

    def test_pull_request_returns_200(self, client, cloud_pr, recording_publisher):
        response = client.post("/bitbucket", json=cloud_pr)

        assert response.status_code == 200
        assert response.json() == {
            "status": "success",
            "message": "Webhook processed",
            "repository": "ws/repo",
            "pull_request_id": 7,
        }
        assert len(recording_publisher.calls) == 1

    def test_push_returns_200_without_review(self, client, cloud_push, fake_model, recording_publisher):
        response = client.post("/bitbucket", json=cloud_push)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ignored"
        assert data["message"] == "No review requested"
        assert "pull_request_id" not in data
        assert fake_model.calls == []
        assert recording_publisher.calls == []

    def test_invalid_json_returns_400(self, client, fake_model):
        response = client.post(
            "/bitbucket",
            content="not valid json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"status": "error", "message": "Invalid JSON payload"}
        assert fake_model.calls == []

    def test_empty_object_returns_400(self, client):
        response = client.post("/bitbucket", json={})

        assert response.status_code == 400
        assert response.json()["message"] == "Missing repository information"

    def test_model_failure_returns_500(self, client, cloud_pr, fake_model, recording_publisher):
        fake_model.error = InvokeTransportError("Bedrock unavailable")

        response = client.post("/bitbucket", json=cloud_pr)

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to generate comment"
        assert recording_publisher.calls == []

    def test_publish_failure_returns_500(self, client, cloud_pr, recording_publisher):
        recording_publisher.error = RemoteRejected(status=403, body="forbidden")

        response = client.post("/bitbucket", json=cloud_pr)

        assert response.status_code == 500
        assert response.json()["message"] == "Bitbucket API returned an error"
        assert "forbidden" not in response.text

    @pytest.mark.asyncio
    async def test_async_client(self, app, server_pr, recording_publisher):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as async_client:
            response = await async_client.post("/bitbucket", json=server_pr)

        assert response.status_code == 200
        assert response.json()["repository"] == "PRJ/repo"
        event, _ = recording_publisher.calls[0]
        assert event.pull_request_id == 12


class TestAuxiliaryEndpoints:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_root(self, client):
        data = client.get("/").json()

        assert data["name"] == "BitReview"
        assert data["webhook"] == "/bitbucket"

    def test_metrics_exposition(self, client, cloud_pr):
        client.post("/bitbucket", json=cloud_pr)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "bitreview_webhooks_total" in response.text
        assert "bitreview_comments_posted_total" in response.text


class TestAppFactory:

    def test_builds_pipeline_from_config(self, override_test_env):
        from utils.config import Config

        with patch("codereview.bedrock.boto3.client"):
            app = create_app(Config())

        with TestClient(app) as client:
            assert client.get("/health").status_code == 200

        pipeline = app.state.pipeline
        assert pipeline.invoker.settings.max_output_tokens == 200
        assert pipeline.publisher.token == "test_token"
        assert pipeline.subjects.fetch_diff is False
