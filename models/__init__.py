"""
Models package for BitReview.

Exports all Pydantic models used by the review pipeline.
"""

# Event models (normalized webhook payloads)
from .event import Commit, ReviewEvent, SourceKind

# Review models (results, outcomes, pipeline state)
from .review import (
    PipelineResult,
    PipelineState,
    PublishOutcome,
    ReviewResult,
)

__all__ = [
    # Event
    "Commit",
    "ReviewEvent",
    "SourceKind",
    # Review
    "PipelineResult",
    "PipelineState",
    "PublishOutcome",
    "ReviewResult",
]
