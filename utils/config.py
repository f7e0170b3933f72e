import os
from dotenv import load_dotenv
from loguru import logger


DEFAULT_MODEL_ID = "anthropic.claude-3-haiku-20240307-v1:0"

DEFAULT_CLOUD_COMMENT_URL_TEMPLATE = (
    "https://api.bitbucket.org/2.0/repositories/{repository}/pullrequests/{pull_request_id}/comments"
)
DEFAULT_SERVER_COMMENT_URL_TEMPLATE = (
    "{server_url}/rest/api/1.0/projects/{project}/repos/{slug}/pull-requests/{pull_request_id}/comments"
)

_TRUTHY = ("1", "true", "yes", "on")


class Config:
    """
    Centralized configuration loader using python-dotenv.

    Loads all environment variables from .env file and provides typed
    access. Built once at process start and passed explicitly to the
    application factory and the clients it wires.
    """

    # Bitbucket
    BB_REPO_ACCESS_TOKEN: str
    BB_SERVER_URL: str | None
    CLOUD_COMMENT_URL_TEMPLATE: str
    SERVER_COMMENT_URL_TEMPLATE: str
    PUBLISH_TIMEOUT_SECONDS: float

    # AWS Bedrock
    AWS_REGION: str
    AWS_ACCESS_KEY_ID: str | None
    AWS_SECRET_ACCESS_KEY: str | None
    MODEL_ID: str
    MODEL_MAX_OUTPUT_TOKENS: int
    MODEL_TEMPERATURE: float
    MODEL_TIMEOUT_SECONDS: float
    MODEL_MAX_INPUT_CHARS: int

    # Application Settings
    REVIEW_FETCH_DIFF: bool
    PORT: int
    LOG_FILE: str

    def __init__(self, config_file: str | None = None) -> None:
        """
        Load configuration from .env file and the environment.

        Args:
            config_file: Optional path to custom .env file

        Raises:
            ValueError: If a required variable is missing or a value is invalid
        """
        load_dotenv(config_file)

        self.BB_REPO_ACCESS_TOKEN = os.getenv("BB_REPO_ACCESS_TOKEN", "")
        self.BB_SERVER_URL = os.getenv("BB_SERVER_URL") or None
        self.CLOUD_COMMENT_URL_TEMPLATE = os.getenv(
            "CLOUD_COMMENT_URL_TEMPLATE", DEFAULT_CLOUD_COMMENT_URL_TEMPLATE
        )
        self.SERVER_COMMENT_URL_TEMPLATE = os.getenv(
            "SERVER_COMMENT_URL_TEMPLATE", DEFAULT_SERVER_COMMENT_URL_TEMPLATE
        )
        self.PUBLISH_TIMEOUT_SECONDS = _float_env("PUBLISH_TIMEOUT_SECONDS", 30.0)

        self.AWS_REGION = os.getenv("AWS_REGION", "")
        self.AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID") or None
        self.AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY") or None
        self.MODEL_ID = os.getenv("MODEL_ID", DEFAULT_MODEL_ID)
        self.MODEL_MAX_OUTPUT_TOKENS = _int_env("MODEL_MAX_OUTPUT_TOKENS", 200)
        self.MODEL_TEMPERATURE = _float_env("MODEL_TEMPERATURE", 0.5)
        self.MODEL_TIMEOUT_SECONDS = _float_env("MODEL_TIMEOUT_SECONDS", 60.0)
        self.MODEL_MAX_INPUT_CHARS = _int_env("MODEL_MAX_INPUT_CHARS", 400_000)

        self.REVIEW_FETCH_DIFF = os.getenv("REVIEW_FETCH_DIFF", "false").strip().lower() in _TRUTHY
        self.PORT = _int_env("PORT", 8000)
        self.LOG_FILE = os.getenv("LOG_FILE", "./logs/app.log")

        self._validate()

    def _validate(self) -> None:
        """Validate required configuration is present and values are in range."""
        if not self.BB_REPO_ACCESS_TOKEN:
            raise ValueError("BB_REPO_ACCESS_TOKEN environment variable is required")

        if not self.AWS_REGION:
            raise ValueError("AWS_REGION environment variable is required")

        if bool(self.AWS_ACCESS_KEY_ID) != bool(self.AWS_SECRET_ACCESS_KEY):
            raise ValueError("AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY must be set together")

        if not 0.0 <= self.MODEL_TEMPERATURE <= 1.0:
            raise ValueError(f"MODEL_TEMPERATURE must be within [0, 1], got {self.MODEL_TEMPERATURE}")

        for name in (
            "MODEL_MAX_OUTPUT_TOKENS",
            "MODEL_TIMEOUT_SECONDS",
            "MODEL_MAX_INPUT_CHARS",
            "PUBLISH_TIMEOUT_SECONDS",
            "PORT",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

        if not self.BB_SERVER_URL:
            logger.warning("BB_SERVER_URL not set, Bitbucket Server pull requests cannot be commented")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
