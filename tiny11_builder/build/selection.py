"""Choosing which image index of install.wim to customize."""

from __future__ import annotations

from tiny11_builder.build.toolchain import Toolchain
from tiny11_builder.config.settings import BuildConfig
from tiny11_builder.logging import LoggerFactory
from tiny11_builder.storage.exceptions import ImageError


log = LoggerFactory.for_image()


def select_image(config: BuildConfig, tools: Toolchain) -> int:
    """List the images and prompt until a valid index is entered.

    Raises:
        ImageError: If the container reports no images
    """
    info = tools.images.list_images(config.install_wim)
    if info.image_count < 1:
        raise ImageError(f"No images found in {config.install_wim}")

    log.info("Available images:")
    for image in info.images:
        log.info(f"  {image.format_label()}")

    index = tools.prompter.ask_image_index(info)
    log.info(f"Using image index: {index}")
    return index
