"""Scratch layout and copying the mounted ISO into a writable tree."""

from __future__ import annotations

from tiny11_builder.build.toolchain import Toolchain
from tiny11_builder.config.settings import BuildConfig
from tiny11_builder.logging import LoggerFactory


log = LoggerFactory.for_iso()


def prepare_scratch(config: BuildConfig) -> None:
    for directory in (config.iso_mount, config.wim_mount, config.staging_dir):
        directory.mkdir(parents=True, exist_ok=True)


def stage_iso(config: BuildConfig, tools: Toolchain) -> None:
    """Copy the mounted ISO into the staging tree and make it writable.

    Raises:
        CommandError: If the copy or chmod fails
    """
    log.info("Copying ISO contents...")
    tools.files.copy_tree(config.iso_mount, config.staging_dir)
    tools.files.make_writable(config.staging_dir)
