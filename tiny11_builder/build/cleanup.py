"""Teardown that runs on every exit path once the scratch tree exists."""

from __future__ import annotations

import shutil
from pathlib import Path

from tiny11_builder.build.toolchain import Toolchain
from tiny11_builder.config.settings import BuildConfig
from tiny11_builder.logging import LoggerFactory
from tiny11_builder.storage.iso import human_size


log = LoggerFactory.for_system()


def cleanup(config: BuildConfig, tools: Toolchain) -> None:
    """Unmount both mountpoints, delete the scratch tree and temp files.

    Idempotent and never raises.
    """
    log.info("Cleaning up...")
    try:
        if tools.images.active_mount is not None:
            tools.images.discard(config.wim_mount)
        for mountpoint in (config.iso_mount, config.wim_mount):
            tools.mounter.unmount(mountpoint, ignore_errors=True)
    except Exception as e:
        log.warning(f"Unmount during cleanup failed: {e}")

    shutil.rmtree(config.scratch_dir, ignore_errors=True)
    if config.scratch_dir.exists():
        log.warning(f"Could not fully remove {config.scratch_dir}")

    for temp_file in config.temp_files:
        try:
            temp_file.unlink(missing_ok=True)
        except OSError as e:
            log.warning(f"Could not remove {temp_file}: {e}")


def report_output(output: Path) -> None:
    size = human_size(output.stat().st_size) if output.is_file() else "0B"
    log.info(f"✓ Tiny11 ISO created: {output} ({size})")
