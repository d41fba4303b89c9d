"""
Centralized logging configuration for the deployer.

Console output is human readable, or rendered as workflow commands when
running under GitHub Actions. File logging with rotation is optional.
"""
# mypy: ignore-errors

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON for better parsing."""
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj)


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter for console and file logs."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = False):
        """Initialize formatter with optional color support."""
        self.use_colors = use_colors
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        """Format with optional colors for console output."""
        if self.use_colors and record.levelname in self.COLORS:
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
        return super().format(record)


class ActionsAnnotationFormatter(logging.Formatter):
    """
    Render records as GitHub Actions workflow commands.

    DEBUG becomes ``::debug::`` (shown only with step debug logging),
    WARNING ``::warning::`` and ERROR and above ``::error::``. INFO is plain.
    """

    COMMANDS = {
        logging.DEBUG: "debug",
        logging.WARNING: "warning",
        logging.ERROR: "error",
        logging.CRITICAL: "error",
    }

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = self.COMMANDS.get(record.levelno)
        if command is None:
            return message
        # Multi-line annotations need escaped newlines
        escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
        return f"::{command}::{escaped}"


def running_in_github_actions() -> bool:
    return os.getenv("GITHUB_ACTIONS", "").lower() == "true"


def setup_logging(
    console_level: str = "INFO",
    log_dir: Optional[str] = None,
    file_level: str = "DEBUG",
    use_json: bool = False,
    github_actions: Optional[bool] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> None:
    """
    Configure logging for a deployer run.

    Args:
        console_level: Console logging level
        log_dir: Directory for log files; no file logging when omitted
        file_level: File logging level
        use_json: Use JSON formatting for files
        github_actions: Force workflow-command output on or off; detected from
            GITHUB_ACTIONS when omitted
        max_bytes: Max size per log file before rotation
        backup_count: Number of backup files to keep
    """
    if github_actions is None:
        github_actions = running_in_github_actions()

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    if github_actions:
        # The runner decides whether ::debug:: lines are shown
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(ActionsAnnotationFormatter("%(message)s"))
    else:
        console_handler.setLevel(getattr(logging, console_level))
        console_handler.setFormatter(HumanReadableFormatter(use_colors=sys.stdout.isatty()))
    root_logger.addHandler(console_handler)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_formatter = StructuredFormatter() if use_json else HumanReadableFormatter()

        main_handler = logging.handlers.RotatingFileHandler(
            log_path / "deployer.log", maxBytes=max_bytes, backupCount=backup_count
        )
        main_handler.setLevel(getattr(logging, file_level))
        main_handler.setFormatter(file_formatter)
        root_logger.addHandler(main_handler)

        # Error-only log for monitoring
        error_handler = logging.handlers.RotatingFileHandler(
            log_path / "error.log", maxBytes=max_bytes, backupCount=backup_count
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_formatter)
        root_logger.addHandler(error_handler)

    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    root_logger.debug(
        f"Logging initialized - Console: {console_level}, Directory: {log_dir}, "
        f"JSON: {use_json}, GitHub Actions: {github_actions}"
    )
