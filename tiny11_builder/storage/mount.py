"""Loop mounting of the source ISO.

Mount and unmount go through ``sudo mount``/``sudo umount`` with argument
lists. Mount state is read from /proc/mounts so a stale directory is never
mistaken for a live mount.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from tiny11_builder.logging import LoggerFactory
from tiny11_builder.storage.commands import CommandRunner
from tiny11_builder.storage.exceptions import (
    CommandError,
    MountFailedError,
    UnmountFailedError,
)


log = LoggerFactory.for_iso()


def _decode_mount_field(value: str) -> str:
    # /proc/mounts escapes whitespace as octal (\040 for space).
    return (
        value.replace("\\040", " ")
        .replace("\\011", "\t")
        .replace("\\012", "\n")
        .replace("\\134", "\\")
    )


def is_mounted(mountpoint: Path | str) -> bool:
    """Check if a mountpoint is currently active."""
    target = os.path.realpath(str(mountpoint))
    try:
        with open("/proc/mounts", "r", encoding="utf-8") as mounts_file:
            for line in mounts_file:
                parts = line.split()
                if len(parts) > 1 and _decode_mount_field(parts[1]) == target:
                    return True
    except FileNotFoundError:
        return os.path.ismount(target)
    return False


class LoopMounter:
    """Read-only loop mounts of image files."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def mount(self, image: Path, mountpoint: Path) -> None:
        """Loop-mount ``image`` read-only at ``mountpoint``.

        Raises:
            MountFailedError: If mount exits non-zero
        """
        mountpoint.mkdir(parents=True, exist_ok=True)
        try:
            self.runner.run_checked(
                ["mount", "-o", "loop,ro", str(image), str(mountpoint)],
                privileged=True,
            )
        except CommandError as e:
            raise MountFailedError(str(image), str(mountpoint), e.output) from e
        log.debug(f"Mounted {image} at {mountpoint}")

    def unmount(self, mountpoint: Path, *, ignore_errors: bool = False) -> bool:
        """Unmount ``mountpoint``.

        Returns:
            True if something was unmounted, False if it was not mounted or
            the unmount failed with ``ignore_errors`` set.

        Raises:
            UnmountFailedError: If umount fails and ``ignore_errors`` is False
        """
        if not is_mounted(mountpoint):
            return False
        try:
            self.runner.run_checked(["umount", str(mountpoint)], privileged=True)
        except CommandError as e:
            if ignore_errors:
                log.debug(f"Ignoring unmount failure for {mountpoint}: {e}")
                return False
            raise UnmountFailedError(str(mountpoint), e.output) from e
        log.debug(f"Unmounted {mountpoint}")
        return True

    @contextmanager
    def mounted(self, image: Path, mountpoint: Path) -> Iterator[Path]:
        """Mount for the duration of the block; unmount on every exit path."""
        try:
            self.mount(image, mountpoint)
            yield mountpoint
        finally:
            self.unmount(mountpoint, ignore_errors=True)
