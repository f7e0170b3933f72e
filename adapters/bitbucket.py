"""
Bitbucket comment publisher.

Posts review text to Bitbucket Cloud or Bitbucket Server pull requests.
The two deployments use different endpoint layouts and request bodies;
the event's source_kind selects which one applies.
"""

import json
from typing import Optional

from loguru import logger

from adapters.base import CommentPublisher
from adapters.rest import RestClient, RestTransportError
from models.event import ReviewEvent, SourceKind
from models.review import PublishOutcome
from utils.config import (
    DEFAULT_CLOUD_COMMENT_URL_TEMPLATE,
    DEFAULT_SERVER_COMMENT_URL_TEMPLATE,
    Config,
)
from utils.errors import PublishError, PublishTransportError, RemoteRejected

CLOUD_DIFF_URL_TEMPLATE = (
    "https://api.bitbucket.org/2.0/repositories/{repository}/pullrequests/{pull_request_id}/diff"
)
SERVER_DIFF_URL_TEMPLATE = (
    "{server_url}/rest/api/1.0/projects/{project}/repos/{slug}/pull-requests/{pull_request_id}.diff"
)


class BitbucketUrls:
    """Builds pull request endpoint URLs for Cloud and Server events."""

    def __init__(
        self,
        cloud_comment_template: str = DEFAULT_CLOUD_COMMENT_URL_TEMPLATE,
        server_comment_template: str = DEFAULT_SERVER_COMMENT_URL_TEMPLATE,
        server_url: Optional[str] = None,
    ):
        for template in (cloud_comment_template, server_comment_template):
            try:
                template.format(**_placeholders("ws/repo", 1, "https://bitbucket.example.com"))
            except (KeyError, IndexError, ValueError) as e:
                raise ValueError(f"Invalid comment URL template {template!r}: {e}")

        self.cloud_comment_template = cloud_comment_template
        self.server_comment_template = server_comment_template
        self.server_url = server_url.rstrip("/") if server_url else None

    @classmethod
    def from_config(cls, config: Config) -> "BitbucketUrls":
        return cls(
            cloud_comment_template=config.CLOUD_COMMENT_URL_TEMPLATE,
            server_comment_template=config.SERVER_COMMENT_URL_TEMPLATE,
            server_url=config.BB_SERVER_URL,
        )

    def comment_url(self, event: ReviewEvent) -> str:
        if event.source_kind == SourceKind.SERVER_PULL_REQUEST:
            return self._format(self.server_comment_template, event)
        return self._format(self.cloud_comment_template, event)

    def diff_url(self, event: ReviewEvent) -> str:
        if event.source_kind == SourceKind.SERVER_PULL_REQUEST:
            return self._format(SERVER_DIFF_URL_TEMPLATE, event)
        return self._format(CLOUD_DIFF_URL_TEMPLATE, event)

    def _format(self, template: str, event: ReviewEvent) -> str:
        if event.pull_request_id is None:
            raise ValueError(f"Event for {event.repository_identity} has no pull request id")
        if "{server_url}" in template and not self.server_url:
            raise PublishError("BB_SERVER_URL is not configured")
        return template.format(
            **_placeholders(event.repository_identity, event.pull_request_id, self.server_url)
        )


class BitbucketPublisher(CommentPublisher):
    """
    Bitbucket implementation of CommentPublisher.

    Cloud comments are posted as {"content": {"raw": text}} and Server
    comments as {"text": text}, both with bearer token authentication.
    """

    def __init__(self, rest: RestClient, token: str, urls: BitbucketUrls):
        """
        Initialize Bitbucket publisher.

        Args:
            rest: Shared REST transport
            token: Repository access token for the comment API
            urls: Endpoint URL builder
        """
        self.rest = rest
        self.token = token
        self.urls = urls

    async def publish(self, event: ReviewEvent, text: str) -> PublishOutcome:
        if event.pull_request_id is None:
            raise ValueError("publish() requires a pull request event")

        url = self.urls.comment_url(event)
        if event.source_kind == SourceKind.SERVER_PULL_REQUEST:
            body = {"text": text}
        else:
            body = {"content": {"raw": text}}

        logger.info(f"Posting comment to: {url}")

        try:
            response = await self.rest.post_json(url, self.token, body)
        except RestTransportError as e:
            raise PublishTransportError(str(e))

        if not response.ok:
            logger.error(f"API error - Status: {response.status_code}, Body: {response.text}")
            raise RemoteRejected(status=response.status_code, body=response.text)

        logger.success(
            f"Successfully posted comment to PR #{event.pull_request_id} in {event.repository_identity}"
        )
        return PublishOutcome(
            posted=True,
            http_status=response.status_code,
            detail=_comment_reference(response.text),
        )


def _placeholders(repository: str, pull_request_id: int, server_url: Optional[str]) -> dict:
    project, _, slug = repository.partition("/")
    return {
        "repository": repository,
        "pull_request_id": pull_request_id,
        "project": project,
        "slug": slug or project,
        "server_url": server_url or "",
    }


def _comment_reference(body: str) -> str:
    """Extract a link or id for the created comment, if the API returned one."""
    try:
        data = json.loads(body)
    except ValueError:
        return ""
    if not isinstance(data, dict):
        return ""

    links = data.get("links")
    html = links.get("html") if isinstance(links, dict) else None
    href = html.get("href") if isinstance(html, dict) else None
    if href:
        return href
    if data.get("id") is not None:
        return f"comment {data['id']}"
    return ""
