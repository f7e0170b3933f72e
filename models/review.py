"""
Review models for BitReview.

Ephemeral results produced while a single webhook is processed:
the generated review, the publish outcome, and the terminal pipeline
record returned to the HTTP layer.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .event import ReviewEvent


class PipelineState(str, Enum):
    """States of the per-event review state machine."""

    RECEIVED = "received"
    NORMALIZED = "normalized"
    PUSH_ONLY = "push_only"
    PULL_REQUEST = "pull_request"
    REVIEWED = "reviewed"
    PUBLISHED = "published"
    DONE = "done"
    FAILED = "failed"


class ReviewResult(BaseModel):
    """Review text returned by the model invoker."""

    text: str = Field(..., description="First content segment returned by the model")
    stop_reason: Optional[str] = Field(None, description="Backend stop reason")
    input_tokens: int = Field(default=0, ge=0, description="Prompt tokens reported by the backend")
    output_tokens: int = Field(default=0, ge=0, description="Completion tokens reported by the backend")


class PublishOutcome(BaseModel):
    """Result of posting a review comment."""

    posted: bool = Field(..., description="Whether a comment was created")
    http_status: int = Field(..., description="Status returned by the comment API")
    detail: str = Field(default="", description="Comment URL or API message")


class PipelineResult(BaseModel):
    """Terminal record of one pipeline run."""

    state: PipelineState = Field(..., description="DONE or FAILED")
    stage: Optional[str] = Field(None, description="Failing stage, None on success")
    http_status: int = Field(..., description="Status to return to the webhook caller")
    status: str = Field(..., description="Coarse status: success, ignored or error")
    message: str = Field(..., description="Human-readable summary")
    detail: str = Field(default="", description="Internal reason, logged but not returned")
    event: Optional[ReviewEvent] = Field(None, description="Normalized event when available")
    transitions: list[PipelineState] = Field(default_factory=list, description="States visited in order")

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineState.DONE

    def response_body(self) -> dict:
        """JSON body for the webhook caller."""
        body = {"status": self.status, "message": self.message}
        if self.event is not None:
            body["repository"] = self.event.repository_identity
            if self.event.pull_request_id is not None:
                body["pull_request_id"] = self.event.pull_request_id
        return body
