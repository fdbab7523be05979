"""Checks that run before anything is mounted, copied or created."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Mapping, Optional

from tiny11_builder.config import defaults
from tiny11_builder.config.settings import BuildConfig
from tiny11_builder.logging import LoggerFactory
from tiny11_builder.storage.commands import CommandRunner
from tiny11_builder.storage.exceptions import (
    IsoNotFoundError,
    MissingDependencyError,
    RootExecutionError,
)


log = LoggerFactory.for_system()


def check_not_root() -> None:
    if os.geteuid() == 0:
        raise RootExecutionError()


def check_iso(iso_path: Optional[Path]) -> None:
    if iso_path is None:
        raise IsoNotFoundError(None)
    if not iso_path.is_file():
        raise IsoNotFoundError(iso_path)


def package_installed(runner: CommandRunner, package: str) -> bool:
    """Whether pacman records ``package`` as installed."""
    if shutil.which("pacman") is None:
        return False
    return runner.succeeds(["pacman", "-Q", package])


def find_missing_packages(
    runner: CommandRunner,
    tools: Mapping[str, str] = defaults.REQUIRED_TOOLS,
) -> list[str]:
    """Packages whose executable is off PATH and which pacman does not know."""
    missing = []
    for package, executable in tools.items():
        if shutil.which(executable) is not None:
            continue
        if package_installed(runner, package):
            continue
        missing.append(package)
    return missing


def run_preflight(config: BuildConfig, runner: CommandRunner) -> None:
    """Fail fast on root execution, a missing ISO or missing tools.

    Raises:
        RootExecutionError, IsoNotFoundError, MissingDependencyError
    """
    check_not_root()
    check_iso(config.iso_path)
    missing = find_missing_packages(runner)
    if missing:
        raise MissingDependencyError(missing)
    log.debug(f"Preflight passed for {config.iso_path}")
