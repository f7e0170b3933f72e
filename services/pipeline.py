"""
BitReview review pipeline.

Sequences one webhook through the review state machine:

    received -> normalized -> push_only ----------------------------> done
                           -> pull_request -> reviewed -> published -> done

Any stage may instead end in failed(stage, reason). The machine is
strictly linear, runs once per inbound request, and keeps no state
between events. Nothing is retried: redelivery is the webhook sender's
concern, and publishing twice would post two comments.
"""

import time
import uuid
from typing import Optional

from loguru import logger

from adapters.base import CommentPublisher
from codereview.invoker import ModelInvoker
from codereview.prompt import build_prompt
from models.event import ReviewEvent
from models.review import PipelineResult, PipelineState
from services.normalizer import normalize
from services.subject import SubjectProvider
from utils.errors import BitReviewError
from utils.metrics import comments_posted_total, pipeline_failures_total, webhooks_total


class ReviewPipeline:
    """
    Orchestrates normalization, review generation and comment publishing.

    Collaborators are injected so the pipeline itself performs no I/O
    beyond what they do.
    """

    def __init__(
        self,
        invoker: ModelInvoker,
        publisher: CommentPublisher,
        subjects: Optional[SubjectProvider] = None,
    ):
        self.invoker = invoker
        self.publisher = publisher
        self.subjects = subjects or SubjectProvider()

    async def run(self, raw_body: bytes, request_id: Optional[str] = None) -> PipelineResult:
        """
        Process one webhook body to a terminal result.

        Args:
            raw_body: Request body as received
            request_id: Correlation id for logs (generated if omitted)

        Returns:
            PipelineResult in state DONE or FAILED; never raises for
            classified or unexpected errors. Cancellation propagates.
        """
        request_id = request_id or str(uuid.uuid4())
        with logger.contextualize(request_id=request_id):
            return await self._run(raw_body)

    async def _run(self, raw_body: bytes) -> PipelineResult:
        start_time = time.monotonic()
        transitions = [PipelineState.RECEIVED]
        stage = "normalize"
        event: Optional[ReviewEvent] = None

        try:
            event = normalize(raw_body)
            transitions.append(PipelineState.NORMALIZED)
            log = logger.bind(repository=event.repository_identity, pull_request_id=event.pull_request_id)
            log.info(
                f"Webhook normalized: kind={event.source_kind.value}, "
                f"repo={event.repository_identity}, pr={event.pull_request_id}, "
                f"commits={len(event.commits)}"
            )

            if not event.is_pull_request:
                transitions.extend([PipelineState.PUSH_ONLY, PipelineState.DONE])
                log.info("No pull request in event, no review requested")
                webhooks_total.labels(source_kind=event.source_kind.value, outcome="ignored").inc()
                return PipelineResult(
                    state=PipelineState.DONE,
                    http_status=200,
                    status="ignored",
                    message="No review requested",
                    event=event,
                    transitions=transitions,
                )

            transitions.append(PipelineState.PULL_REQUEST)

            stage = "invoke"
            subject = await self.subjects.subject_for(event)
            prompt = build_prompt(event, subject, self.invoker.max_input_chars)
            review = await self.invoker.invoke(prompt)
            transitions.append(PipelineState.REVIEWED)

            stage = "publish"
            outcome = await self.publisher.publish(event, review.text)
            transitions.append(PipelineState.PUBLISHED)
            comments_posted_total.labels(source_kind=event.source_kind.value).inc()

        except BitReviewError as e:
            return self._failed(e.stage, e, event, transitions, start_time, e.http_status, e.message)
        except Exception as e:
            logger.exception(f"Unexpected error during {stage}")
            return self._failed(stage, e, event, transitions, start_time, 500, "Internal Server Error")

        transitions.append(PipelineState.DONE)
        latency_ms = int((time.monotonic() - start_time) * 1000)
        logger.bind(
            repository=event.repository_identity,
            pull_request_id=event.pull_request_id,
            latency_ms=latency_ms,
            status="success",
        ).info(f"Review posted for PR #{event.pull_request_id} in {event.repository_identity}")
        webhooks_total.labels(source_kind=event.source_kind.value, outcome="success").inc()

        return PipelineResult(
            state=PipelineState.DONE,
            http_status=200,
            status="success",
            message="Webhook processed",
            detail=outcome.detail,
            event=event,
            transitions=transitions,
        )

    def _failed(
        self,
        stage: str,
        error: Exception,
        event: Optional[ReviewEvent],
        transitions: list[PipelineState],
        start_time: float,
        http_status: int,
        message: str,
    ) -> PipelineResult:
        code = error.code if isinstance(error, BitReviewError) else type(error).__name__
        latency_ms = int((time.monotonic() - start_time) * 1000)

        log = logger.bind(stage=stage, latency_ms=latency_ms, status="error")
        if event is not None:
            log = log.bind(repository=event.repository_identity, pull_request_id=event.pull_request_id)
        log.error(f"Pipeline failed at {stage}: {code}: {error}")

        pipeline_failures_total.labels(stage=stage, error=code).inc()
        source_kind = event.source_kind.value if event is not None else "none"
        webhooks_total.labels(source_kind=source_kind, outcome="error").inc()

        return PipelineResult(
            state=PipelineState.FAILED,
            stage=stage,
            http_status=http_status,
            status="error",
            message=message,
            detail=f"{code}: {error}",
            event=event,
            transitions=transitions + [PipelineState.FAILED],
        )
