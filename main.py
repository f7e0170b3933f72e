"""
BitReview - FastAPI Application

This module provides the HTTP layer for BitReview:
- Bitbucket webhook endpoint driving the review pipeline
- Health check endpoint
- Prometheus metrics endpoint

The application is built by create_app(); configuration is loaded once
and passed to every collaborator explicitly.
"""

import asyncio
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from loguru import logger
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from adapters.bitbucket import BitbucketPublisher, BitbucketUrls
from adapters.rest import RestClient
from codereview.bedrock import BedrockClaude
from codereview.invoker import ModelInvoker, ModelSettings
from services.pipeline import ReviewPipeline
from services.subject import SubjectProvider
from utils.config import Config
from utils.logger import setup_logging

SERVICE_NAME = "BitReview"
SERVICE_VERSION = "1.0.0"

# How often a running pipeline checks whether the webhook caller went away
DISCONNECT_POLL_SECONDS = 0.5

# Non-standard "client closed request" status, only ever logged
CLIENT_CLOSED_REQUEST = 499


# =============================================================================
# Wiring
# =============================================================================


def build_pipeline(config: Config) -> tuple[ReviewPipeline, RestClient]:
    """
    Wire the review pipeline from configuration.

    Returns:
        The pipeline and the REST client it shares, which the caller must close
    """
    rest = RestClient(timeout=config.PUBLISH_TIMEOUT_SECONDS)
    urls = BitbucketUrls.from_config(config)

    invoker = ModelInvoker(
        client=BedrockClaude.from_config(config),
        settings=ModelSettings.from_config(config),
    )
    publisher = BitbucketPublisher(rest=rest, token=config.BB_REPO_ACCESS_TOKEN, urls=urls)
    subjects = SubjectProvider(
        rest=rest,
        token=config.BB_REPO_ACCESS_TOKEN,
        urls=urls,
        fetch_diff=config.REVIEW_FETCH_DIFF,
    )
    return ReviewPipeline(invoker=invoker, publisher=publisher, subjects=subjects), rest


def create_app(config: Optional[Config] = None, pipeline: Optional[ReviewPipeline] = None) -> FastAPI:
    """
    Application factory.

    Args:
        config: Loaded configuration (read from the environment if omitted)
        pipeline: Prebuilt pipeline; when given, no clients are created

    Returns:
        FastAPI: Configured application
    """
    rest: Optional[RestClient] = None

    if pipeline is None:
        config = config or Config()
        setup_logging(config.LOG_FILE)
        pipeline, rest = build_pipeline(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {SERVICE_NAME} API")
        yield
        if rest is not None:
            await rest.aclose()
        logger.info(f"Shutting down {SERVICE_NAME} API")

    app = FastAPI(
        title=SERVICE_NAME,
        description="Automated AI code review comments for Bitbucket pull requests",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline
    app.state.config = config

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "status": "operational",
            "webhook": "/bitbucket",
            "metrics": "/metrics",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint for container orchestration."""
        return {"status": "ok"}

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.post("/bitbucket")
    async def receive_webhook(request: Request):
        """
        Receive a Bitbucket webhook and run the review pipeline.

        Returns:
            200 on success or when no review is requested, 400 on an
            unusable payload, 500 when review generation or publishing fails
        """
        body = await request.body()
        request_id = str(uuid.uuid4())
        logger.bind(request_id=request_id).debug(f"Received webhook payload: {body[:2000]!r}")

        result = await _run_until_disconnected(request, app.state.pipeline, body, request_id)
        if result is None:
            return JSONResponse(
                status_code=CLIENT_CLOSED_REQUEST,
                content={"status": "error", "message": "Client closed request"},
            )

        return JSONResponse(status_code=result.http_status, content=result.response_body())

    return app


async def _run_until_disconnected(request: Request, pipeline: ReviewPipeline, body: bytes, request_id: str):
    """
    Run the pipeline, cancelling it if the webhook caller disconnects.

    Returns:
        PipelineResult, or None when the run was cancelled
    """
    task = asyncio.create_task(pipeline.run(body, request_id=request_id))
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.bind(request_id=request_id).warning("Webhook caller disconnected, cancelling review")
                task.cancel()
                try:
                    # a run that finished before the cancel landed still reports its result
                    return await task
                except asyncio.CancelledError:
                    return None
    except asyncio.CancelledError:
        task.cancel()
        raise


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = Config().PORT
    logger.info(f"Starting server on port {port}")
    uvicorn.run(
        "main:create_app",
        factory=True,
        host="0.0.0.0",
        port=port,
        access_log=True,
        workers=1,
    )
