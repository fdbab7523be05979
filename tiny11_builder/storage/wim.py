"""Image container operations through wimlib-imagex.

Containers are never parsed here; the module only runs wimlib-imagex and
reads the key/value listing it prints for ``info``.

Functions:
    - parse_wim_info(): Parse ``wimlib-imagex info`` output into WimInfo

Classes:
    - ImageToolkit: info/export/mountrw/unmount/optimize with a single
      active mount per toolkit
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from tiny11_builder.config import defaults
from tiny11_builder.domain.models import WimImage, WimInfo
from tiny11_builder.logging import LoggerFactory
from tiny11_builder.storage.commands import CommandRunner
from tiny11_builder.storage.exceptions import (
    CommandError,
    ImageAlreadyMountedError,
    ImageCommitError,
    ImageError,
    ImageExportError,
    MountFailedError,
    UnmountFailedError,
)


log = LoggerFactory.for_image()

WIMLIB = "wimlib-imagex"

_FIELD_RE = re.compile(r"^\s*([A-Za-z][A-Za-z ]*?)\s*:\s*(.*?)\s*$")


def parse_wim_info(output: str) -> WimInfo:
    """Parse the listing printed by ``wimlib-imagex info``.

    Args:
        output: stdout of ``wimlib-imagex info <container>``

    Returns:
        WimInfo with the reported image count and one WimImage per
        ``Index:`` block

    Raises:
        ImageError: If no ``Image Count`` line is present
    """
    image_count: Optional[int] = None
    images: list[WimImage] = []
    current: Optional[dict[str, str]] = None

    def flush() -> None:
        if current is None or "index" not in current:
            return
        try:
            index = int(current["index"])
        except ValueError:
            return
        images.append(
            WimImage(
                index=index,
                name=current.get("name", ""),
                description=current.get("description", ""),
                edition=current.get("edition id"),
                architecture=current.get("architecture"),
            )
        )

    for line in output.splitlines():
        match = _FIELD_RE.match(line)
        if not match:
            continue
        key = match.group(1).strip().lower()
        value = match.group(2)
        if key == "image count":
            try:
                image_count = int(value)
            except ValueError:
                image_count = None
        elif key == "index":
            flush()
            current = {"index": value}
        elif current is not None and key not in current:
            current[key] = value
    flush()

    if image_count is None:
        raise ImageError("Could not find 'Image Count' in wimlib-imagex info output")
    return WimInfo(image_count=image_count, images=tuple(images))


class ImageToolkit:
    """Synchronous wrapper around wimlib-imagex.

    Only one image may be mounted through a toolkit at a time; asking for a
    second mount while one is active raises ImageAlreadyMountedError.
    """

    def __init__(self, runner: CommandRunner):
        self.runner = runner
        self._active: Optional[tuple[Path, int, Path]] = None

    @property
    def active_mount(self) -> Optional[tuple[Path, int, Path]]:
        return self._active

    def describe(self, container: Path) -> str:
        """Human-readable listing of the container."""
        return self.runner.run_checked([WIMLIB, "info", str(container)])

    def list_images(self, container: Path) -> WimInfo:
        return parse_wim_info(self.describe(container))

    def export(
        self,
        source: Path,
        index: int,
        destination: Path,
        *,
        compression: str = defaults.EXPORT_COMPRESSION,
    ) -> None:
        """Export ``index`` of ``source`` into a new container at ``destination``."""
        try:
            self.runner.run_checked(
                [
                    WIMLIB,
                    "export",
                    str(source),
                    str(index),
                    str(destination),
                    f"--compress={compression}",
                ],
                capture=False,
            )
        except CommandError as e:
            raise ImageExportError(source, index, e.output) from e

    def mount(self, container: Path, index: int, mountpoint: Path, *, rw: bool = True) -> None:
        if self._active is not None:
            raise ImageAlreadyMountedError(
                str(mountpoint), f"{self._active[0]}:{self._active[1]}"
            )
        mountpoint.mkdir(parents=True, exist_ok=True)
        action = "mountrw" if rw else "mount"
        try:
            self.runner.run_checked(
                [WIMLIB, action, str(container), str(index), str(mountpoint)],
                privileged=True,
            )
        except CommandError as e:
            raise MountFailedError(f"{container}:{index}", str(mountpoint), e.output) from e
        self._active = (container, index, mountpoint)
        log.debug(f"Mounted {container} index {index} at {mountpoint}")

    def unmount(self, mountpoint: Path, *, commit: bool) -> None:
        """Unmount the active image, writing edits back when ``commit`` is set.

        Raises:
            ImageCommitError: If a committing unmount fails
            UnmountFailedError: If a discarding unmount fails
        """
        command = [WIMLIB, "unmount", str(mountpoint)]
        if commit:
            command.append("--commit")
        try:
            self.runner.run_checked(command, privileged=True, capture=not commit)
        except CommandError as e:
            if commit:
                raise ImageCommitError(str(mountpoint), e.output) from e
            raise UnmountFailedError(str(mountpoint), e.output) from e
        self._active = None
        log.debug(f"Unmounted {mountpoint} (commit={commit})")

    def discard(self, mountpoint: Path) -> None:
        """Best-effort unmount without committing; never raises."""
        try:
            self.unmount(mountpoint, commit=False)
        except UnmountFailedError as e:
            log.warning(f"Could not unmount {mountpoint}: {e.reason or e}")
        self._active = None

    @contextmanager
    def mounted_image(self, container: Path, index: int, mountpoint: Path) -> Iterator[Path]:
        """Mount read-write for the block; commit on success, discard on error."""
        self.mount(container, index, mountpoint, rw=True)
        try:
            yield mountpoint
        except BaseException:
            self.discard(mountpoint)
            raise
        try:
            self.unmount(mountpoint, commit=True)
        except ImageCommitError:
            self.discard(mountpoint)
            raise

    def optimize(self, container: Path) -> None:
        self.runner.run_checked([WIMLIB, "optimize", str(container)], capture=False)
