"""
Logging setup for the guess bot.

Standard library loggers and structlog loggers share the same handlers: a
human-readable console renderer and, optionally, a rotating JSON-lines file.
Per-turn identifiers live in structlog contextvars so every line written while
a turn is being processed carries them.
"""

import logging
import logging.handlers
import sys
import uuid
from pathlib import Path
from typing import Optional

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars

# Loggers that are too chatty at INFO
NOISY_LOGGERS = ("aiohttp.access", "msrest", "urllib3", "asyncio")

_SHARED_PROCESSORS = [
    merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="%H:%M:%S"),
]


def setup_logging(level_str: str = "INFO", json_log_path: Optional[str] = None) -> None:
    """Configure structlog on top of stdlib logging. Safe to call more than once."""
    level = getattr(logging, level_str.upper(), logging.INFO)

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level, *_SHARED_PROCESSORS,
                    structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    # Replace handlers from a previous call so lines are not duplicated
    for handler in root_logger.handlers[:]:
        if getattr(handler, "_guessbot_handler", False):
            root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        foreign_pre_chain=_SHARED_PROCESSORS,
    ))
    console_handler._guessbot_handler = True
    root_logger.addHandler(console_handler)

    if json_log_path:
        log_file = Path(json_log_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=25 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=_SHARED_PROCESSORS,
        ))
        file_handler._guessbot_handler = True
        root_logger.addHandler(file_handler)

    root_logger.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: Optional[str] = None):
    """Get a structlog logger bound to the stdlib logger ``name``."""
    return structlog.get_logger(name)


def start_turn(conversation_id: Optional[str], user_id: Optional[str], activity_type: Optional[str] = None) -> str:
    """Start a new turn: fresh turn id plus identifiers bound for every log line."""
    clear_contextvars()
    turn_id = uuid.uuid4().hex[:12]
    bind_contextvars(
        turn_id=turn_id,
        conversation_id=conversation_id,
        user_id=user_id,
        activity_type=activity_type,
    )
    return turn_id


def clear_turn() -> None:
    clear_contextvars()
