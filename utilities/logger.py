"""
Logging system using structlog.
Provides structured logging with different output formats and levels.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union
import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[Union[str, Path]] = None,
    debug: bool = False
) -> None:
    """
    Set up structured logging with configurable output formats.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_file: Optional log file path
        debug: Enable debug mode for more verbose logging
    """

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                {
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.LINENO,
                }
            )
        )

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(logging.Formatter('%(message)s'))

        logging.getLogger().addHandler(file_handler)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging system initialized",
        level=log_level,
        format=log_format,
        file=str(log_file) if log_file else None,
        debug=debug
    )


class InteractionLogger:
    """
    Logger for like/save toggle, recount and toggle failure events.
    """

    def __init__(self, name: str = "interactions"):
        self.logger = structlog.get_logger(name)

    def log_toggle(self, kind: str, user_id: str, book_id: str, active: bool, counter: Optional[int] = None) -> None:
        """Log a completed flag toggle."""
        self.logger.info(
            "Flag toggled",
            kind=kind,
            user_id=user_id,
            book_id=book_id,
            active=active,
            counter=counter
        )

    def log_recount(self, book_id: str, old_count: Optional[int], new_count: int) -> None:
        """Log a like counter recomputation."""
        level = "info" if old_count == new_count else "warning"
        getattr(self.logger, level)(
            "Like counter recomputed",
            book_id=book_id,
            old_count=old_count,
            new_count=new_count,
            drift=None if old_count is None else new_count - old_count
        )

    def log_error(self, kind: str, error: str, user_id: Optional[str] = None, book_id: Optional[str] = None) -> None:
        """Log a failed toggle with context."""
        self.logger.error(
            "Flag toggle failed",
            kind=kind,
            error=error,
            user_id=user_id,
            book_id=book_id
        )
