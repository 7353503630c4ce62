"""Structured logging for Cluster Codex.

All modules log through ``structlog.get_logger(__name__)``. The service entry
points call :func:`configure_logging` once; library use without configuration
falls back to structlog's defaults.

Prompt text never reaches the logs. The plan generator reports what it sent
through :func:`log_prompt_metadata`, which only accepts the metadata record.
"""

import logging
from typing import Any, Dict, Union

import structlog


def configure_logging(level: Union[int, str] = logging.INFO, json_output: bool = False) -> None:
    """Configure structlog for the service.

    At DEBUG level every kubectl invocation is logged; at INFO and above only
    degradations (fallback issues, fallback plans) and request-level events.

    Args:
        level: Standard logging level or its name (e.g. "DEBUG").
        json_output: Render one JSON object per line instead of console output.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a named structlog logger."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def log_prompt_metadata(meta: Dict[str, Any], event: str = "codex_prompt_metadata") -> None:
    """Log the metadata of an assistant prompt.

    Args:
        meta: Prompt metadata (issue id, title, namespace, kind,
            has_user_context, redaction_count)
        event: Event name, e.g. "codex_fallback_used"
    """
    get_logger("clustercodex.prompt").info(event, **meta)
