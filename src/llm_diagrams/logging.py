"""Log setup for the diagram service and CLI.

Records from stdlib loggers (uvicorn, httpx, this package) and structlog all
leave through one stderr handler. Per-request values such as ``request_id``
ride along via contextvars so generation and render log lines can be joined.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

# httpx logs every request line at INFO, which would echo the messages endpoint per diagram
_NOISY_LOGGERS = {"httpx": logging.WARNING, "httpcore": logging.WARNING}


def _resolve_level(name: str) -> int:
    value = getattr(logging, name.upper(), logging.INFO)
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: str, json_output: bool | None = None) -> None:
    """Install the stderr handler.

    Args:
        level: LOG_LEVEL name; unknown names fall back to INFO.
        json_output: JSON lines instead of the console renderer. None follows
            APP_ENV, so only prod deployments emit JSON.
    """
    log_level = _resolve_level(level)

    if json_output is None:
        from llm_diagrams.config import get_settings

        json_output = get_settings().app_env == "prod"

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # foreign_pre_chain lets plain logging.getLogger records carry request_id too
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)
    for name, floor in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(max(floor, log_level))


def bind_context(**kwargs: object) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextmanager
def request_context(request_id: str) -> Iterator[None]:
    """Tag every record logged inside the block with ``request_id``."""
    bind_context(request_id=request_id)
    try:
        yield
    finally:
        clear_context()
