"""
Structured logging setup.

structlog and stdlib logging share one ProcessorFormatter so that
httpx and friends log in the same format as the tracer itself.
"""

import logging
import sys
from typing import Any, Dict, List, Optional

import structlog
from structlog.stdlib import ProcessorFormatter

from .config import Settings

_NOISY_LOGGERS = ("httpx", "httpcore")


def _remove_internal_fields(logger: Optional[logging.Logger], method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    event_dict.pop("_record", None)
    event_dict.pop("_from_structlog", None)
    return event_dict


def configure_logging(*, json_output: bool = False, level: str = "INFO") -> None:
    """Configure structlog and the root stdlib logger."""
    log_level = getattr(logging, level.upper())

    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        final_processors: List[Any] = [
            _remove_internal_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors = [
            _remove_internal_fields,
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ProcessorFormatter(
            processors=final_processors,
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers = []
    root.addHandler(handler)
    root.setLevel(log_level)

    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(log_level, logging.WARNING))


def configure_logging_from_settings(settings: Optional[Settings] = None) -> None:
    """configure_logging driven by INGREDIENT_TRACE_LOG_LEVEL / INGREDIENT_TRACE_LOG_JSON"""
    if settings is None:
        settings = Settings()
    configure_logging(json_output=settings.log_json, level=settings.log_level)
