from __future__ import annotations

import os
import sys
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger

DEFAULT_LOG_DIR = Path(
    os.environ.get(
        "TINY11_BUILDER_LOG_DIR",
        Path.home() / ".local" / "state" / "tiny11-builder" / "logs",
    )
)

# Console levels get the same colours the shell tool used: INFO green,
# WARN yellow, ERROR red.
_CONSOLE_COLOURS = {
    "INFO": "<green>",
    "SUCCESS": "<green>",
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<red>",
}
_CONSOLE_LABELS = {
    "WARNING": "WARN",
    "CRITICAL": "ERROR",
}


def _console_format(record) -> str:
    """Render ``[LEVEL] message`` with only the bracketed tag coloured."""
    name = record["level"].name
    colour = _CONSOLE_COLOURS.get(name, "<blue>")
    label = _CONSOLE_LABELS.get(name, name)
    return f"{colour}[{label}]</> {{message}}\n{{exception}}"


def _should_log_editor_banner(record) -> bool:
    """Drop the banner lines chntpw prints on every run."""
    tags = record["extra"].get("tags", [])
    if "registry" in tags and record["message"].startswith("chntpw"):
        return False
    return True


def setup_logging(
    *,
    debug: bool = False,
    log_dir: Path | None = None,
) -> Logger:
    """
    Configure console and file sinks for a build run.

    Log Files:
    - operations.log: INFO+ events (7 day retention)
    - debug.log: DEBUG+ events when --debug is enabled (3 day retention)

    Args:
        debug: Enable DEBUG level logging on the console and debug.log
        log_dir: Custom log directory (defaults to ~/.local/state/tiny11-builder/logs)
    """
    logger.remove()
    logger.configure(extra={"job_id": "-", "tags": [], "source": "APP"})

    console_level = "DEBUG" if debug else "INFO"

    # SINK 1: Console (stderr) - colour-coded INFO/WARN/ERROR lines
    logger.add(
        sys.stderr,
        level=console_level,
        backtrace=False,
        diagnose=False,
        filter=_should_log_editor_banner,
        colorize=True,
        format=_console_format,
    )

    log_dir = log_dir or DEFAULT_LOG_DIR
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        logger.warning(f"Log directory unavailable ({error}); logging to console only")
        return logger

    # SINK 2: Operations Log - Important events only (INFO+)
    logger.add(
        log_dir / "operations.log",
        level="INFO",
        rotation="5 MB",
        retention="7 days",
        compression="zip",
        backtrace=False,
        diagnose=False,
        format=(
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{extra[source]: <15} | "
            "{extra[job_id]: <15} | "
            "{message}"
        ),
    )

    # SINK 3: Debug Log - commands, editor output, timings
    if debug:
        logger.add(
            log_dir / "debug.log",
            level="DEBUG",
            rotation="10 MB",
            retention="3 days",
            compression="zip",
            backtrace=True,
            diagnose=True,
            filter=_should_log_editor_banner,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{extra[source]: <15} | "
                "{extra[job_id]: <15} | "
                "{extra[tags]} | "
                "{message}"
            ),
        )

    return logger


def get_logger(
    *,
    job_id: str | None = None,
    tags: Iterable[str] | None = None,
    source: str | None = None,
) -> Logger:
    """
    Get a logger with bound context.

    Args:
        job_id: Job identifier for tracking a build run
        tags: Tags for filtering (e.g., ["wim", "storage"])
        source: Source component (e.g., "wim", "iso", "download")

    Returns:
        Logger with bound context
    """
    extras: dict[str, object] = {}
    if job_id is not None:
        extras["job_id"] = job_id
    if tags is not None:
        extras["tags"] = list(tags)
    if source is not None:
        extras["source"] = source
    return logger.bind(**extras)


@contextmanager
def operation_context(operation: str, **details):
    """
    Context manager for a pipeline stage with automatic timing.

    Logs stage start at DEBUG, completion with duration, and failure with the
    error type before re-raising.

    Example:
        with operation_context("stage", iso="/tmp/win11.iso") as log:
            log.info("Mounting ISO...")
    """
    job_id = f"{operation}-{uuid.uuid4().hex[:8]}"

    with logger.contextualize(job_id=job_id, operation=operation, **details):
        start_time = time.time()
        log = logger.bind(source=operation, job_id=job_id, tags=[operation])
        log.debug(f"{operation.capitalize()} started")

        try:
            yield log
            duration = time.time() - start_time
            log.debug(
                f"{operation.capitalize()} completed in {round(duration, 2)}s"
            )
        except Exception as e:
            duration = time.time() - start_time
            log.debug(
                f"{operation.capitalize()} failed after {round(duration, 2)}s: "
                f"{type(e).__name__}: {e}"
            )
            raise


class LoggerFactory:
    """
    Factory for creating domain-specific loggers with automatic context.

    Each factory method returns a logger pre-configured with appropriate
    source and tags for the domain.
    """

    @staticmethod
    def for_build(job_id: str | None = None) -> Logger:
        """Logger for the pipeline orchestrator."""
        if job_id is None:
            job_id = f"build-{uuid.uuid4().hex[:8]}"
        return logger.bind(job_id=job_id, source="build", tags=["build"])

    @staticmethod
    def for_image() -> Logger:
        """Logger for image container operations."""
        return logger.bind(source="wim", tags=["wim", "storage"])

    @staticmethod
    def for_registry() -> Logger:
        """Logger for hive edits."""
        return logger.bind(source="registry", tags=["registry", "storage"])

    @staticmethod
    def for_iso() -> Logger:
        """Logger for ISO mount and authoring."""
        return logger.bind(source="iso", tags=["iso", "storage"])

    @staticmethod
    def for_system() -> Logger:
        """Logger for system operations (commands, preflight, cleanup)."""
        return logger.bind(source="system", tags=["system"])
