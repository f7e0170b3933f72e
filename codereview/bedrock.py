"""
Anthropic Claude on AWS Bedrock.

Implements the AI interface over the bedrock-runtime InvokeModel API
using the Anthropic Messages request format, and classifies every
botocore failure into the pipeline's InvokeError taxonomy.
"""

import json
from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
from pydantic import ValidationError

from codereview.ai import AI, ModelReply
from utils.config import Config
from utils.errors import InvokeTransportError, Rejected

ANTHROPIC_VERSION = "bedrock-2023-05-31"

# Error codes that describe a backend that is busy or unwell rather than
# a request it refuses; these are safe to retry later.
_TRANSIENT_ERROR_CODES = frozenset(
    {
        "ThrottlingException",
        "ServiceUnavailableException",
        "InternalServerException",
        "ModelTimeoutException",
        "ModelNotReadyException",
        "RequestTimeout",
        "RequestTimeoutException",
    }
)


class BedrockClaude(AI):
    """
    Claude model invoked through AWS Bedrock.

    The underlying boto3 client is built with botocore retries disabled
    and connect/read timeouts equal to the configured model timeout, so
    each complete() call makes exactly one bounded HTTP attempt.
    """

    def __init__(self, model_id: str, client: Any):
        """
        Initialize Bedrock model client.

        Args:
            model_id: Bedrock model identifier
            client: boto3 bedrock-runtime client
        """
        self.model_id = model_id
        self.client = client

    @classmethod
    def from_config(cls, config: Config) -> "BedrockClaude":
        """Create a bedrock-runtime client from application configuration."""
        boto_config = BotoConfig(
            region_name=config.AWS_REGION,
            connect_timeout=config.MODEL_TIMEOUT_SECONDS,
            read_timeout=config.MODEL_TIMEOUT_SECONDS,
            retries={"total_max_attempts": 1, "mode": "standard"},
        )

        credentials = {}
        if config.AWS_ACCESS_KEY_ID and config.AWS_SECRET_ACCESS_KEY:
            credentials = {
                "aws_access_key_id": config.AWS_ACCESS_KEY_ID,
                "aws_secret_access_key": config.AWS_SECRET_ACCESS_KEY,
            }

        client = boto3.client("bedrock-runtime", config=boto_config, **credentials)
        logger.info(f"AWS Bedrock client initialized for region: {config.AWS_REGION}")
        return cls(model_id=config.MODEL_ID, client=client)

    def complete(self, prompt: str, max_output_tokens: int, temperature: float) -> ModelReply:
        request_body = {
            "anthropic_version": ANTHROPIC_VERSION,
            "max_tokens": max_output_tokens,
            "temperature": temperature,
            "messages": [
                {
                    "role": "user",
                    "content": prompt,
                }
            ],
        }

        try:
            response = self.client.invoke_model(
                modelId=self.model_id,
                body=json.dumps(request_body),
                contentType="application/json",
                accept="application/json",
            )
            response_body = json.loads(response["body"].read())
        except ClientError as e:
            raise _classify_client_error(e)
        except BotoCoreError as e:
            raise InvokeTransportError(f"Bedrock transport error: {e}")
        except (ValueError, KeyError) as e:
            raise InvokeTransportError(f"Unreadable Bedrock response: {e}")

        if not isinstance(response_body, dict):
            raise InvokeTransportError("Unreadable Bedrock response: expected a JSON object")

        stop_reason = response_body.get("stop_reason")
        if stop_reason == "refusal":
            raise Rejected("Model refused to review the content")

        content = response_body.get("content")
        if not isinstance(content, list):
            content = []

        segments = [
            block["text"]
            for block in content
            if isinstance(block, dict)
            and block.get("type", "text") == "text"
            and isinstance(block.get("text"), str)
            and block["text"].strip()
        ]

        usage = response_body.get("usage")
        if not isinstance(usage, dict):
            usage = {}

        try:
            return ModelReply(
                segments=segments,
                stop_reason=stop_reason if isinstance(stop_reason, str) else None,
                input_tokens=_token_count(usage.get("input_tokens")),
                output_tokens=_token_count(usage.get("output_tokens")),
            )
        except ValidationError as e:
            raise InvokeTransportError(f"Unreadable Bedrock response: {e}")


def _token_count(value: Any) -> int:
    """Usage count as reported, or 0 when it is not a non-negative int."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return 0
    return value


def _classify_client_error(error: ClientError) -> Exception:
    """Map a Bedrock ClientError to InvokeTransportError or Rejected."""
    code = error.response.get("Error", {}).get("Code", "")
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or 0
    message = error.response.get("Error", {}).get("Message", str(error))

    if code in _TRANSIENT_ERROR_CODES or status >= 500:
        return InvokeTransportError(f"Bedrock unavailable ({code or status}): {message}")

    return Rejected(f"Bedrock rejected request ({code or status}): {message}")
