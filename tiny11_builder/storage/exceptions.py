"""Custom exceptions for build operations.

This module defines a hierarchy of exceptions for the build pipeline so the
CLI can tell fatal failures apart and stages can tolerate the ones they own.

Exception Hierarchy:
    BuildError (base)
        ├── PreflightError
        │   ├── RootExecutionError
        │   ├── MissingDependencyError
        │   └── IsoNotFoundError
        ├── CommandError
        ├── MountError
        │   ├── MountFailedError
        │   ├── UnmountFailedError
        │   └── ImageAlreadyMountedError
        ├── ImageError
        │   ├── ImageExportError
        │   ├── ImageCommitError
        │   └── InvalidImageIndexError
        ├── RegistryEditError
        └── FinalizeError
            ├── BootFilesMissingError
            ├── IsoAuthoringError
            └── EmptyOutputError

Usage:
    from tiny11_builder.storage.exceptions import BootFilesMissingError

    if missing:
        raise BootFilesMissingError(missing)
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class BuildError(Exception):
    """Base exception for all build operations."""


class PreflightError(BuildError):
    """Base exception for checks that run before any side effect."""


class RootExecutionError(PreflightError):
    """The tool was started with effective-root privileges."""

    def __init__(self) -> None:
        super().__init__("Don't run as root. Script will use sudo when needed.")


class MissingDependencyError(PreflightError):
    """One or more required external tools are not installed."""

    def __init__(self, packages: Sequence[str]):
        self.packages = list(packages)
        names = " ".join(self.packages)
        self.install_hint = f"sudo pacman -S {names}"
        super().__init__(f"Missing packages: {names}")


class IsoNotFoundError(PreflightError):
    """The source ISO was not given or is not a regular file."""

    def __init__(self, iso_path: Path | str | None):
        self.iso_path = iso_path
        if iso_path is None or str(iso_path) == "":
            super().__init__("ISO file not specified. Use -i <iso_file>")
        else:
            super().__init__(f"ISO file not found: {iso_path}")


class CommandError(BuildError):
    """An external command exited with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int, output: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        message = output.strip() or "Command failed"
        super().__init__(
            f"Command failed ({' '.join(self.command)}) "
            f"[exit {returncode}]: {message}"
        )


class MountError(BuildError):
    """Base exception for mount-related errors."""


class MountFailedError(MountError):
    """Mounting an ISO or image failed."""

    def __init__(self, source: str, mountpoint: str, reason: str = ""):
        self.source = source
        self.mountpoint = mountpoint
        self.reason = reason
        msg = f"Failed to mount {source} at {mountpoint}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class UnmountFailedError(MountError):
    """Unmounting a mountpoint failed."""

    def __init__(self, mountpoint: str, reason: str = ""):
        self.mountpoint = mountpoint
        self.reason = reason
        msg = f"Failed to unmount {mountpoint}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ImageAlreadyMountedError(MountError):
    """An image is already mounted at the image mountpoint."""

    def __init__(self, mountpoint: str, active: str):
        self.mountpoint = mountpoint
        self.active = active
        super().__init__(
            f"Cannot mount another image at {mountpoint}: {active} is still mounted"
        )


class ImageError(BuildError):
    """Base exception for image container operations."""


class ImageExportError(ImageError):
    """Exporting an image index into a new container failed."""

    def __init__(self, source: Path, index: int, reason: str = ""):
        self.source = source
        self.index = index
        self.reason = reason
        msg = f"Failed to export image {index} from {source}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ImageCommitError(ImageError):
    """Committing edits back into the container on unmount failed."""

    def __init__(self, mountpoint: str, reason: str = ""):
        self.mountpoint = mountpoint
        self.reason = reason
        msg = f"Failed to commit changes from {mountpoint}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class InvalidImageIndexError(ImageError):
    """An image index was not a number or is outside the container."""

    def __init__(self, value: str, image_count: int | None = None):
        self.value = value
        self.image_count = image_count
        if image_count is None:
            super().__init__(f"Invalid image index: {value!r}")
        else:
            super().__init__(
                f"Invalid image index: {value!r} (must be between 1 and {image_count})"
            )


class RegistryEditError(BuildError):
    """The hive editor failed to apply the edit script."""

    def __init__(self, hive_path: Path, reason: str = ""):
        self.hive_path = hive_path
        self.reason = reason
        msg = f"Failed to edit registry hive {hive_path}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class FinalizeError(BuildError):
    """Base exception for ISO finalization."""


class BootFilesMissingError(FinalizeError):
    """Required boot loader files are absent from the staged tree."""

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(f"Boot file not found: {', '.join(self.missing)}")


class IsoAuthoringError(FinalizeError):
    """The ISO authoring tool failed."""

    def __init__(self, output: Path, reason: str = ""):
        self.output = output
        self.reason = reason
        msg = f"Failed to create ISO {output}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class EmptyOutputError(FinalizeError):
    """The authoring tool returned but the output ISO is missing or empty."""

    def __init__(self, output: Path):
        self.output = output
        super().__init__(f"Failed to create ISO or ISO is empty: {output}")
