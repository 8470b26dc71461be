"""
NIBRS Pipeline - Logging Setup

Configures the root logger from the `logging` section of the settings.
Two formats are supported:
- text: human readable, one line per record
- json: one JSON object per record via structlog, including any `extra=` fields

Modules keep using `logging.getLogger(__name__)`; structlog only renders.
"""

from __future__ import annotations

import logging
from pathlib import Path

import structlog

from nibrs_pipeline.shared.config import Settings, get_config

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def json_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Build a formatter rendering stdlib records as single-line JSON."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ExtraAdder(),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(default=str),
        ],
    )


def configure_logging(config: Settings | None = None) -> None:
    """
    Configure root logging handlers from settings.

    Args:
        config: Configuration object (uses default if not provided)
    """
    config = config or get_config()
    log_config = config.logging

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_config.log_file:
        Path(log_config.log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_config.log_file))

    formatter = json_formatter() if log_config.format == "json" else logging.Formatter(TEXT_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=log_config.level.upper(), handlers=handlers, force=True)
