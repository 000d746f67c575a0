"""Structured logging setup for agquota.

Console output goes through a rich handler; JSON output (and the optional log
file) is rendered by structlog. Library code only ever calls ``get_logger``.
"""

import logging
import sys
from pathlib import Path
from typing import Any

import structlog
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


# Custom theme for the logger
CUSTOM_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "critical": "bold white on red",
        "debug": "dim white",
        "timestamp": "dim cyan",
        "path": "dim blue",
    }
)

NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")

_shared_processors: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
]


def setup_logging(
    json_logs: bool = False,
    log_level_name: str = "INFO",
    log_file: str | Path | None = None,
    show_path: bool = False,
    console_width: int | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        json_logs: Render console output as JSON lines instead of rich text
        log_level_name: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path of a file receiving JSON formatted logs
        show_path: Whether to show the module path in rich output
        console_width: Optional console width override
    """
    level = getattr(logging, log_level_name.upper(), logging.INFO)

    structlog.configure(
        processors=[
            *_shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handlers: list[logging.Handler] = []

    if json_logs:
        console_handler: logging.Handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(_json_formatter())
    else:
        console_handler = RichHandler(
            console=Console(theme=CUSTOM_THEME, width=console_width, stderr=True),
            show_time=True,
            show_path=show_path or level <= logging.DEBUG,
            rich_tracebacks=True,
            markup=False,
        )
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=_shared_processors,
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.dev.ConsoleRenderer(colors=False, pad_event=30),
                ],
            )
        )
    handlers.append(console_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(_json_formatter())
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def _json_formatter() -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to ``name`` (typically ``__name__``)."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def mask_secret(value: str | None, visible: int = 8) -> str:
    """Show only the leading characters of a token."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return f"{value[:visible]}..."
