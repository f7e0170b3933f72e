"""
BitReview error taxonomy.

Every failure in the review pipeline is classified where it happens and
carries the pipeline stage it belongs to plus the HTTP status the webhook
caller should receive. The orchestrator maps these to responses; no
component swallows them.
"""


class BitReviewError(Exception):
    """Base class for all classified pipeline failures."""

    stage: str = "unknown"
    http_status: int = 500
    message: str = "Internal error"

    def __init__(self, reason: str = ""):
        self.reason = reason or self.message
        super().__init__(self.reason)

    @property
    def code(self) -> str:
        """Stable machine-readable error name used in logs and metrics."""
        return type(self).__name__


# =============================================================================
# Normalization (client errors)
# =============================================================================


class NormalizationError(BitReviewError):
    """Webhook body could not be turned into a ReviewEvent."""

    stage = "normalize"
    http_status = 400
    message = "Invalid webhook payload"


class InvalidEncoding(NormalizationError):
    """Body is not valid UTF-8 JSON."""

    message = "Invalid JSON payload"


class MissingRepository(NormalizationError):
    """No known payload variant yielded a repository identity."""

    message = "Missing repository information"


# =============================================================================
# Review generation (server errors)
# =============================================================================


class PromptTooLarge(BitReviewError):
    """Prompt exceeds the model invoker's maximum input size."""

    stage = "invoke"
    message = "Review prompt exceeds model input limit"

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Prompt is {size} characters, limit is {limit}")


class InvokeError(BitReviewError):
    """Model invocation failed."""

    stage = "invoke"
    message = "Failed to generate comment"
    retryable: bool = False


class InvokeTransportError(InvokeError):
    """Model backend unreachable, timed out, or returned an unreadable body."""

    retryable = True


class SubjectFetchError(InvokeTransportError):
    """Pull request content could not be fetched for review."""

    message = "Failed to fetch pull request content"


class EmptyResponse(InvokeError):
    """Model answered with zero content segments."""

    retryable = True
    message = "Model returned no content"


class Rejected(InvokeError):
    """Model backend refused the request; retrying the same prompt is pointless."""

    retryable = False
    message = "Model rejected the review request"


# =============================================================================
# Publishing (server errors)
# =============================================================================


class PublishError(BitReviewError):
    """Comment could not be posted to the pull request."""

    stage = "publish"
    message = "Failed to post comment"


class PublishTransportError(PublishError):
    """Comment API unreachable or timed out."""


class RemoteRejected(PublishError):
    """Comment API answered with a non-2xx status."""

    message = "Bitbucket API returned an error"

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status}: {body[:500]}")
