"""Best-effort bypass patch of the setup image inside boot.wim.

Nothing here can abort the build: a missing container, a failed mount, a
missing hive or a failed edit all end in a warning.
"""

from __future__ import annotations

from tiny11_builder.build.mutation import apply_bypass
from tiny11_builder.build.toolchain import Toolchain
from tiny11_builder.config import defaults
from tiny11_builder.config.settings import BuildConfig
from tiny11_builder.logging import LoggerFactory
from tiny11_builder.storage.exceptions import BuildError


log = LoggerFactory.for_image()


def patch_boot_image(config: BuildConfig, tools: Toolchain) -> bool:
    """Apply the registry bypass to boot.wim index 2.

    Returns:
        True if the patch was committed
    """
    log.info("Processing boot.wim...")
    if not config.boot_wim.is_file():
        log.warning("boot.wim not found, skipping")
        return False

    try:
        with tools.images.mounted_image(
            config.boot_wim, defaults.BOOT_IMAGE_INDEX, config.wim_mount
        ) as root:
            patched = apply_bypass(root, config, tools)
    except BuildError as e:
        log.warning(f"Could not patch boot.wim: {e}")
        return False
    return patched
