"""
Model invoker for code review.

Wraps a model client with the review call policy: fixed sampling
settings from configuration, an enforced per-call timeout, and
extraction of the first content segment as the review text.
"""

import asyncio
import time

from loguru import logger
from pydantic import BaseModel, Field

from codereview.ai import AI
from models.review import ReviewResult
from utils.config import Config
from utils.errors import EmptyResponse, InvokeError, InvokeTransportError
from utils.metrics import model_request_duration_seconds, record_tokens


class ModelSettings(BaseModel):
    """Sampling and limit settings applied to every model call."""

    model_id: str = Field(..., min_length=1)
    max_output_tokens: int = Field(default=200, gt=0)
    temperature: float = Field(default=0.5, ge=0.0, le=1.0)
    timeout: float = Field(default=60.0, gt=0, description="Per-call timeout in seconds")
    max_input_chars: int = Field(default=400_000, gt=0, description="Largest accepted prompt")

    @classmethod
    def from_config(cls, config: Config) -> "ModelSettings":
        return cls(
            model_id=config.MODEL_ID,
            max_output_tokens=config.MODEL_MAX_OUTPUT_TOKENS,
            temperature=config.MODEL_TEMPERATURE,
            timeout=config.MODEL_TIMEOUT_SECONDS,
            max_input_chars=config.MODEL_MAX_INPUT_CHARS,
        )


class ModelInvoker:
    """
    Invokes the model once per review.

    No retries happen here. InvokeError.retryable tells callers whether
    a later attempt with the same prompt could succeed.
    """

    def __init__(self, client: AI, settings: ModelSettings):
        self.client = client
        self.settings = settings

    @property
    def max_input_chars(self) -> int:
        """Maximum prompt size this invoker accepts."""
        return self.settings.max_input_chars

    async def invoke(self, prompt: str) -> ReviewResult:
        """
        Generate review text for a prompt.

        Args:
            prompt: Prompt produced by build_prompt()

        Returns:
            ReviewResult with the first content segment as text

        Raises:
            InvokeTransportError: On timeout or backend transport failure
            EmptyResponse: If the backend returned no content segments
            Rejected: If the backend refused the request
        """
        start_time = time.monotonic()
        log = logger.bind(stage="invoke")

        try:
            reply = await asyncio.wait_for(
                asyncio.to_thread(
                    self.client.complete,
                    prompt,
                    self.settings.max_output_tokens,
                    self.settings.temperature,
                ),
                timeout=self.settings.timeout,
            )
        except asyncio.TimeoutError:
            latency_ms = int((time.monotonic() - start_time) * 1000)
            log.bind(latency_ms=latency_ms, status="timeout").warning(
                f"Model request timed out after {self.settings.timeout:g} seconds"
            )
            raise InvokeTransportError(f"Model request timed out after {self.settings.timeout:g} seconds")
        except InvokeError as e:
            latency_ms = int((time.monotonic() - start_time) * 1000)
            log.bind(latency_ms=latency_ms, status="error").error(f"Model request failed: {e.code}: {e}")
            raise
        finally:
            model_request_duration_seconds.observe(time.monotonic() - start_time)

        latency_ms = int((time.monotonic() - start_time) * 1000)
        record_tokens(reply.input_tokens, reply.output_tokens)

        if not reply.segments:
            log.bind(latency_ms=latency_ms, status="empty").warning("Model returned no content")
            raise EmptyResponse(f"No content in response (stop_reason={reply.stop_reason})")

        log.bind(latency_ms=latency_ms, status="success").info(
            f"Model request completed ({reply.output_tokens} output tokens)"
        )
        return ReviewResult(
            text=reply.segments[0],
            stop_reason=reply.stop_reason,
            input_tokens=reply.input_tokens,
            output_tokens=reply.output_tokens,
        )
