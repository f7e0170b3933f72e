"""
Test fixtures package for BitReview tests.

This package contains shared payload fixtures used across unit,
contract, and integration tests.
"""

from .webhook_payloads import (
    cloud_pr_payload,
    cloud_push_payload,
    server_pr_payload,
)

__all__ = [
    "cloud_pr_payload",
    "cloud_push_payload",
    "server_pr_payload",
]
