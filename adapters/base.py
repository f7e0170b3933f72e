"""
Base publisher interface for pull request comments.

Defines the contract the review pipeline uses to deliver review text,
keeping hosting-specific URL and body formats out of the orchestrator.
"""

from abc import ABC, abstractmethod

from models.event import ReviewEvent
from models.review import PublishOutcome


class CommentPublisher(ABC):
    """
    Abstract base class for comment publishers.

    Publishing is not idempotent at the remote API: every call creates a
    new comment. Implementations make exactly one attempt per call.
    """

    @abstractmethod
    async def publish(self, event: ReviewEvent, text: str) -> PublishOutcome:
        """
        Post review text as a comment on the event's pull request.

        Args:
            event: Normalized pull request event
            text: Review text to post

        Returns:
            PublishOutcome for the created comment

        Raises:
            ValueError: If the event has no pull request id
            PublishTransportError: If the comment API could not be reached
            RemoteRejected: If the comment API answered with a non-2xx status
        """
        pass
