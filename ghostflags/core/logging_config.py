import sys
import logging
from typing import Any, Dict, List, Optional

import structlog

from ghostflags.core.config import Settings

REDACTED = "**********"

# Event keys whose values must never reach a log sink
SENSITIVE_KEYS = frozenset({"secret", "key", "ghostflags_secret", "envelope", "plaintext"})

# Libraries that log every query at DEBUG
QUIET_LOGGERS = ("dns", "asyncio")


def redact_sensitive(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask key material and decrypted payloads; shorten user identifiers."""
    for name in list(event_dict):
        if name.lower() in SENSITIVE_KEYS:
            event_dict[name] = REDACTED

    user_id = event_dict.get("user_id")
    if isinstance(user_id, str) and len(user_id) > 8:
        event_dict["user_id"] = user_id[:8] + "..."
    return event_dict


def build_processors(settings: Settings) -> List[Any]:
    """Processors shared by structlog loggers and stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.stdlib.ExtraAdder(),
        redact_sensitive,
        structlog.processors.TimeStamper(fmt="iso", utc=settings.is_production),
        structlog.processors.StackInfoRenderer(),
    ]


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging for GhostFlags.

    Flag evaluation logs through the standard library; those records are
    rendered by structlog on stderr so stdout stays free for CLI output.
    """
    settings = settings or Settings()
    shared_processors = build_processors(settings)

    if settings.is_production:
        renderer = structlog.processors.JSONRenderer()
        tail = [structlog.processors.dict_tracebacks]
    else:
        renderer = structlog.dev.ConsoleRenderer()
        tail = []

    structlog.configure(
        processors=shared_processors + tail + [renderer],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(settings.get_log_level())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
