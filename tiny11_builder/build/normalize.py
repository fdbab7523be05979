"""Conversion of a compressed install.esd into an install.wim."""

from __future__ import annotations

from tiny11_builder.build.toolchain import Toolchain
from tiny11_builder.config import defaults
from tiny11_builder.config.settings import BuildConfig
from tiny11_builder.logging import LoggerFactory


log = LoggerFactory.for_image()


def needs_conversion(config: BuildConfig) -> bool:
    return config.install_esd.is_file() and not config.install_wim.exists()


def normalize_image(config: BuildConfig, tools: Toolchain) -> bool:
    """Export the chosen ESD index into install.wim and drop the ESD.

    Returns:
        True if a conversion happened, False if there was nothing to do

    Raises:
        InvalidImageIndexError: If the operator answer is not a number
        ImageExportError: If wimlib-imagex export fails (no retry)
    """
    if not needs_conversion(config):
        return False

    log.info("Converting install.esd to install.wim...")
    print(tools.images.describe(config.install_esd))
    index = tools.prompter.ask_export_index()
    tools.images.export(
        config.install_esd,
        index,
        config.install_wim,
        compression=defaults.EXPORT_COMPRESSION,
    )
    config.install_esd.unlink()
    return True
