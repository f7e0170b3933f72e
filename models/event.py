"""
Event models for BitReview.

Defines the canonical ReviewEvent every webhook payload variant is
normalized into.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SourceKind(str, Enum):
    """Payload variant a ReviewEvent was matched from."""

    CLOUD_PUSH = "cloud_push"
    CLOUD_PULL_REQUEST = "cloud_pull_request"
    SERVER_PULL_REQUEST = "server_pull_request"
    UNKNOWN = "unknown"


class Commit(BaseModel):
    """Single commit referenced by a push event."""

    model_config = ConfigDict(frozen=True)

    hash: str = Field(..., description="Commit hash")
    message: str = Field(default="", description="Commit message")


class ReviewEvent(BaseModel):
    """
    Normalized webhook event.

    Produced by the payload normalizer regardless of which Bitbucket
    schema variant delivered it. Routing and comment URL construction
    depend only on this model.
    """

    model_config = ConfigDict(frozen=True)  # Immutable after creation

    repository_identity: str = Field(
        ..., min_length=1, description="workspace/slug (Cloud) or PROJECT/slug (Server)"
    )
    pull_request_id: int | None = Field(None, ge=1, description="Pull request id, None for push events")
    commits: tuple[Commit, ...] = Field(default_factory=tuple, description="Pushed commits in order")
    source_kind: SourceKind = Field(..., description="Matched payload variant")

    @field_validator("repository_identity")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("repository_identity must not be blank")
        return value

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request_id is not None

    @property
    def project_key(self) -> str:
        """Leading segment of the identity (workspace or project key)."""
        return self.repository_identity.split("/", 1)[0]

    @property
    def repository_slug(self) -> str:
        """Trailing segment of the identity."""
        return self.repository_identity.rsplit("/", 1)[-1]
