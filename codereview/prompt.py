"""
Review prompt construction.

Builds the single instruction string sent to the model for a pull
request. The prompt is deterministic for a given event and subject, and
is never truncated: an oversized prompt is an error, since a review of
partial content would read as a review of the whole change.
"""

from models.event import ReviewEvent
from utils.errors import PromptTooLarge


REVIEW_DIRECTIVE = (
    "Create a PR comment for these changes, please check for vulnerabilities "
    "and bugs for this code. Reply with the comment text only, formatted as "
    "Markdown, and keep it concise."
)


def build_prompt(event: ReviewEvent, subject_content: str, max_chars: int) -> str:
    """
    Build the review prompt for a pull request event.

    Args:
        event: Normalized pull request event
        subject_content: Content under review, supplied by the caller
        max_chars: Maximum prompt size accepted by the model invoker

    Returns:
        str: Prompt combining the review directive, PR header and content

    Raises:
        PromptTooLarge: If the combined prompt exceeds max_chars
    """
    header = f"Repository: {event.repository_identity}"
    if event.pull_request_id is not None:
        header += f"\nPull request: #{event.pull_request_id}"

    prompt = f"{REVIEW_DIRECTIVE}\n\n{header}\n\n{subject_content}"

    if len(prompt) > max_chars:
        raise PromptTooLarge(size=len(prompt), limit=max_chars)

    return prompt
