import inspect
import json
import logging
import sys
import threading
from typing import Any

from loguru import logger


class InterceptHandler(logging.Handler):

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists.
        level: str | int
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        # Find caller from where originated the logged message.
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


# Bound context lifted into the JSON record, with the type each is coerced to.
_STRUCTURED_FIELDS = {
    "request_id": str,
    "stage": str,
    "repository": str,
    "pull_request_id": int,
    "latency_ms": int,
    "status": str,
}


def structured_formatter(record: dict[str, Any]) -> str:
    """
    Convert log record to a JSON line.

    Pipeline context is bound with logger.bind(request_id=..., stage=...,
    repository=..., pull_request_id=..., latency_ms=..., status=...).
    """
    log_data = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "file": record["file"].name,
        "line": record["line"],
    }

    extra = record.get("extra", {})
    for field, cast in _STRUCTURED_FIELDS.items():
        if extra.get(field) is not None:
            log_data[field] = cast(extra[field])

    # loguru treats the returned string as a format template
    return json.dumps(log_data).replace("{", "{{").replace("}", "}}") + "\n"


lock = threading.Lock()


def stop_logging() -> None:
    modules = ["httpcore", "httpx", "botocore", "boto3", "urllib3"]
    for module in modules:
        logger.disable(module)


def setup_logging(log_file: str | None = "./logs/app.log"):
    with lock:
        logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

        # remove every other logger's handlers
        # and propagate to root logger
        for name in logging.root.manager.loggerDict.keys():
            logging.getLogger(name).handlers = []
            logging.getLogger(name).propagate = True
        logger.remove()  # Will remove all handlers already configured

        stop_logging()

        # Console output with human-readable format
        logger.add(
            sink=sys.stdout,
            format="<white>{time:YYYY-MM-DD HH:mm:ss}</white>"
            " | <level>{level: <8}</level>"
            " | <cyan><b>{line}</b></cyan>"
            " - <white><b>{message}</b></white>",
        )

        # File output with structured JSON format
        if log_file:
            logger.add(
                sink=log_file,
                format=structured_formatter,
                level="DEBUG",
                rotation="10 MB",
                retention="10 days",
                compression="zip",
            )
