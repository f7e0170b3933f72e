"""
BitReview - Pytest Configuration and Fixtures

Shared fixtures and test configuration for all test modules.
"""

import json
import os

# Add project root to path for imports
import sys
import time
from typing import Any, Optional

import httpx
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from adapters.base import CommentPublisher  # noqa: E402
from adapters.bitbucket import BitbucketPublisher, BitbucketUrls  # noqa: E402
from adapters.rest import RestClient  # noqa: E402
from codereview.ai import AI, ModelReply  # noqa: E402
from codereview.invoker import ModelInvoker, ModelSettings  # noqa: E402
from models.event import ReviewEvent  # noqa: E402
from models.review import PublishOutcome  # noqa: E402
from services.pipeline import ReviewPipeline  # noqa: E402
from tests.fixtures.webhook_payloads import (  # noqa: E402
    cloud_pr_payload,
    cloud_push_payload,
    server_pr_payload,
)


# =============================================================================
# Sample Webhook Payload Fixtures
# =============================================================================


@pytest.fixture
def cloud_push() -> dict[str, Any]:
    """Bitbucket Cloud push payload."""
    return cloud_push_payload()


@pytest.fixture
def cloud_pr() -> dict[str, Any]:
    """Bitbucket Cloud pull request payload."""
    return cloud_pr_payload()


@pytest.fixture
def server_pr() -> dict[str, Any]:
    """Bitbucket Server pull request payload."""
    return server_pr_payload()


def encode(payload: Any) -> bytes:
    return json.dumps(payload).encode("utf-8")


# =============================================================================
# Fake Collaborators
# =============================================================================


class FakeModel(AI):
    """
    In-memory model client.

    Tests adjust segments, error and delay before running the pipeline.
    """

    def __init__(self):
        self.segments: list[str] = ["Looks fine."]
        self.error: Optional[Exception] = None
        self.delay: float = 0.0
        self.stop_reason: str = "end_turn"
        self.calls: list[dict[str, Any]] = []

    def complete(self, prompt: str, max_output_tokens: int, temperature: float) -> ModelReply:
        self.calls.append(
            {"prompt": prompt, "max_output_tokens": max_output_tokens, "temperature": temperature}
        )
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ModelReply(
            segments=list(self.segments),
            stop_reason=self.stop_reason,
            input_tokens=42,
            output_tokens=7,
        )


class RecordingPublisher(CommentPublisher):
    """Publisher that records calls instead of posting."""

    def __init__(self):
        self.calls: list[tuple[ReviewEvent, str]] = []
        self.error: Optional[Exception] = None

    async def publish(self, event: ReviewEvent, text: str) -> PublishOutcome:
        self.calls.append((event, text))
        if self.error is not None:
            raise self.error
        return PublishOutcome(posted=True, http_status=201, detail="comment 1")


@pytest.fixture
def fake_model() -> FakeModel:
    return FakeModel()


@pytest.fixture
def recording_publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def model_settings() -> ModelSettings:
    return ModelSettings(
        model_id="anthropic.claude-3-haiku-20240307-v1:0",
        max_output_tokens=200,
        temperature=0.5,
        timeout=2.0,
        max_input_chars=10_000,
    )


@pytest.fixture
def invoker(fake_model, model_settings) -> ModelInvoker:
    return ModelInvoker(client=fake_model, settings=model_settings)


@pytest.fixture
def pipeline(invoker, recording_publisher) -> ReviewPipeline:
    """Pipeline over the fake model and recording publisher."""
    return ReviewPipeline(invoker=invoker, publisher=recording_publisher)


# =============================================================================
# HTTP Transport Fixtures
# =============================================================================


class BitbucketApiStub:
    """
    httpx MockTransport handler standing in for the Bitbucket REST API.

    Records every request. Responds from the queued (status, body) pairs
    first, then with the configured status and body.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.queued: list[tuple[int, Any]] = []
        self.status_code = 201
        self.body: Any = {
            "id": 101,
            "links": {"html": {"href": "https://bitbucket.org/ws/repo/pull-requests/7#comment-101"}},
        }
        self.error: Optional[Exception] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        status_code, body = self.queued.pop(0) if self.queued else (self.status_code, self.body)
        if isinstance(body, str):
            return httpx.Response(status_code, text=body)
        return httpx.Response(status_code, json=body)


@pytest.fixture
def bitbucket_api() -> BitbucketApiStub:
    return BitbucketApiStub()


@pytest.fixture
def rest_client(bitbucket_api) -> RestClient:
    return RestClient(timeout=5.0, client=httpx.AsyncClient(transport=httpx.MockTransport(bitbucket_api)))


@pytest.fixture
def bitbucket_urls() -> BitbucketUrls:
    return BitbucketUrls(server_url="https://bitbucket.example.com/")


@pytest.fixture
def bitbucket_publisher(rest_client, bitbucket_urls) -> BitbucketPublisher:
    return BitbucketPublisher(rest=rest_client, token="bb-token", urls=bitbucket_urls)


# =============================================================================
# Environment Override Fixture
# =============================================================================


@pytest.fixture
def override_test_env(monkeypatch, tmp_path):
    """
    Override environment variables for testing.

    Ensures tests run with consistent test configuration.
    """
    for name in (
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "BB_SERVER_URL",
        "MODEL_ID",
        "MODEL_MAX_OUTPUT_TOKENS",
        "MODEL_TEMPERATURE",
        "MODEL_TIMEOUT_SECONDS",
        "MODEL_MAX_INPUT_CHARS",
        "PUBLISH_TIMEOUT_SECONDS",
        "CLOUD_COMMENT_URL_TEMPLATE",
        "SERVER_COMMENT_URL_TEMPLATE",
        "REVIEW_FETCH_DIFF",
        "PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BB_REPO_ACCESS_TOKEN", "test_token")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "app.log"))


def pytest_configure(config):
    """
    Pytest configuration hook.

    Registers custom markers and test configuration.
    """
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "contract: mark test as contract/endpoint test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
