"""
Webhook payload normalizer.

Turns a raw Bitbucket webhook body into a ReviewEvent. Several payload
schemas have been delivered to this endpoint over time (Cloud push,
Cloud pull request, Server pull request), and some payloads
structurally satisfy more than one of them, so variants are matched in
a fixed priority order and the first match wins:

    1. cloud_push           push.changes[] + repository.full_name
    2. cloud_pull_request   pullrequest.id + repository.full_name
    3. server_pull_request  pullRequest.fromRef.repository.{slug, project.key}
    4. unknown              repository.full_name only

The normalizer performs no I/O and is a pure function of its input.
"""

import json
from collections.abc import Callable
from typing import Any, Optional

from models.event import Commit, ReviewEvent, SourceKind
from utils.errors import InvalidEncoding, MissingRepository


def normalize(raw_body: bytes) -> ReviewEvent:
    """
    Normalize a raw webhook body.

    Args:
        raw_body: Request body bytes as received

    Returns:
        ReviewEvent for the first matching payload variant

    Raises:
        InvalidEncoding: If the body is not UTF-8 encoded JSON
        MissingRepository: If no variant yields a repository identity
    """
    try:
        payload = json.loads(raw_body)
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise InvalidEncoding(f"Body is not valid JSON: {e}")

    if not isinstance(payload, dict):
        raise MissingRepository(f"Expected a JSON object, got {type(payload).__name__}")

    for _kind, matcher in VARIANTS:
        event = matcher(payload)
        if event is not None:
            return event

    raise MissingRepository("No payload variant carried a repository identity")


# =============================================================================
# Variant matchers
# =============================================================================


def _match_cloud_push(payload: dict) -> Optional[ReviewEvent]:
    changes = _get(payload, "push", "changes")
    full_name = _text(_get(payload, "repository", "full_name"))
    if not isinstance(changes, list) or not changes or not full_name:
        return None

    commits = []
    for change in changes:
        if not isinstance(change, dict):
            continue
        change_commits = change.get("commits")
        if not isinstance(change_commits, list):
            continue
        for commit in change_commits:
            if not isinstance(commit, dict):
                continue
            commit_hash = _text(commit.get("hash"))
            if commit_hash:
                message = commit.get("message")
                commits.append(
                    Commit(hash=commit_hash, message=message if isinstance(message, str) else "")
                )

    return ReviewEvent(
        repository_identity=full_name,
        commits=tuple(commits),
        source_kind=SourceKind.CLOUD_PUSH,
    )


def _match_cloud_pull_request(payload: dict) -> Optional[ReviewEvent]:
    pr_id = _positive_int(_get(payload, "pullrequest", "id"))
    full_name = _text(_get(payload, "repository", "full_name"))
    if pr_id is None or not full_name:
        return None

    return ReviewEvent(
        repository_identity=full_name,
        pull_request_id=pr_id,
        source_kind=SourceKind.CLOUD_PULL_REQUEST,
    )


def _match_server_pull_request(payload: dict) -> Optional[ReviewEvent]:
    repository = _get(payload, "pullRequest", "fromRef", "repository")
    slug = _text(_get(repository, "slug"))
    project = _text(_get(repository, "project", "key"))
    if not slug or not project:
        return None

    return ReviewEvent(
        repository_identity=f"{project}/{slug}",
        pull_request_id=_positive_int(_get(payload, "pullRequest", "id")),
        source_kind=SourceKind.SERVER_PULL_REQUEST,
    )


def _match_unknown(payload: dict) -> Optional[ReviewEvent]:
    full_name = _text(_get(payload, "repository", "full_name"))
    if not full_name:
        return None

    return ReviewEvent(repository_identity=full_name, source_kind=SourceKind.UNKNOWN)


# Priority order is significant: first match wins.
VARIANTS: tuple[tuple[SourceKind, Callable[[dict], Optional[ReviewEvent]]], ...] = (
    (SourceKind.CLOUD_PUSH, _match_cloud_push),
    (SourceKind.CLOUD_PULL_REQUEST, _match_cloud_pull_request),
    (SourceKind.SERVER_PULL_REQUEST, _match_server_pull_request),
    (SourceKind.UNKNOWN, _match_unknown),
)


# =============================================================================
# Helpers
# =============================================================================


def _get(data: Any, *path: str) -> Any:
    """Walk nested dicts, returning None as soon as a level is missing."""
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()


def _positive_int(value: Any) -> Optional[int]:
    # bool is an int subclass; true/false are not ids
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value > 0 else None
