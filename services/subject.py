"""
Review subject provider.

Supplies the content placed under review in the model prompt. By
default the content is a description of the event itself; when diff
fetching is enabled the pull request diff is downloaded from Bitbucket.
"""

from typing import Optional

from loguru import logger

from adapters.bitbucket import BitbucketUrls
from adapters.rest import RestClient, RestTransportError
from models.event import ReviewEvent
from utils.errors import PublishError, SubjectFetchError


def describe_event(event: ReviewEvent) -> str:
    """Deterministic plain-text description of an event."""
    lines = [f"Repository: {event.repository_identity}"]
    if event.pull_request_id is not None:
        lines.append(f"Pull request: #{event.pull_request_id}")
    if event.commits:
        lines.append("Commits:")
        lines.extend(f"- {commit.hash}: {commit.message.strip()}" for commit in event.commits)
    return "\n".join(lines)


class SubjectProvider:
    """Resolves the subject content for a pull request review."""

    def __init__(
        self,
        rest: Optional[RestClient] = None,
        token: str = "",
        urls: Optional[BitbucketUrls] = None,
        fetch_diff: bool = False,
    ):
        if fetch_diff and (rest is None or urls is None):
            raise ValueError("Diff fetching requires a REST client and URL builder")
        self.rest = rest
        self.token = token
        self.urls = urls
        self.fetch_diff = fetch_diff

    async def subject_for(self, event: ReviewEvent) -> str:
        """
        Return the content to review for an event.

        Raises:
            SubjectFetchError: If diff fetching is enabled and the diff could not be retrieved
        """
        if not self.fetch_diff:
            return describe_event(event)

        try:
            url = self.urls.diff_url(event)
        except PublishError as e:
            raise SubjectFetchError(str(e))

        try:
            response = await self.rest.get_text(url, self.token)
        except RestTransportError as e:
            raise SubjectFetchError(str(e))

        if not response.ok:
            logger.error(f"Error from Bitbucket API for PR #{event.pull_request_id}: {response.text}")
            raise SubjectFetchError(f"Diff request returned HTTP {response.status_code}")

        logger.debug(f"Fetched {len(response.text)} characters of diff for PR #{event.pull_request_id}")
        return f"{describe_event(event)}\n\nDiff:\n{response.text}"
