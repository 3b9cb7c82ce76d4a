"""Logging setup for medsearch, built on loguru.

Free-form lines go through ``from loguru import logger``. The ``log_*``
helpers below emit one tagged, dict-shaped record per call so the file
sink can be grepped by tag (``LLM_CALL``, ``EXTRACTION_PASS``, ``EVENT``).
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from medsearch.config import settings

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"

# Third-party loggers that are chatty at INFO (request lines, pings).
NOISY_LOGGERS = (
    "uvicorn.access",
    "uvicorn.error",
    "fastapi",
    "sse_starlette.sse",
    "httpx",
    "httpcore",
    "openai",
    "asyncio",
)


def configure_logging(log_dir: str | Path | None = None) -> Path:
    """Install the console and daily file sinks, replacing loguru's default."""
    directory = Path(log_dir or settings.log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=settings.app_log_level.upper(),
        colorize=True,
    )
    logger.add(
        directory / "medsearch_{time:YYYY-MM-DD}.log",
        format=FILE_FORMAT,
        level="DEBUG",
        rotation="00:00",
        retention="7 days",
        compression="zip",
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(settings.noisy_log_level.upper())
    return directory


LOG_DIR = configure_logging()


def _record(tag: str, level: str, **fields: Any) -> None:
    data = {"timestamp": datetime.now(timezone.utc).isoformat(), **fields}
    logger.log(level, f"{tag}: {data}")


def log_llm_call(
    model: str,
    caller: str,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    """Record one upstream model call, streamed or not."""
    _record(
        "LLM_CALL_FAILED" if error else "LLM_CALL",
        "ERROR" if error else "INFO",
        model=model,
        caller=caller,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        duration_ms=duration_ms,
        status=status,
        error=error,
    )


def log_extraction_pass(
    turn_id: int,
    records: int,
    content_chars: int,
    published: bool,
    no_results: bool = False,
) -> None:
    # One per completed line, so DEBUG only.
    _record(
        "EXTRACTION_PASS",
        "DEBUG",
        turn_id=turn_id,
        records=records,
        content_chars=content_chars,
        published=published,
        no_results=no_results,
    )


def log_event(event_type: str, message: str, **kwargs) -> None:
    """Record a pipeline event such as a search start or a stream failure."""
    _record("EVENT", "INFO", event_type=event_type, message=message, **kwargs)
