"""
Services package for BitReview.

Payload normalization, review subject resolution and the review
pipeline orchestrator.
"""

from .normalizer import normalize
from .pipeline import ReviewPipeline
from .subject import SubjectProvider, describe_event

__all__ = [
    "normalize",
    "ReviewPipeline",
    "SubjectProvider",
    "describe_event",
]
