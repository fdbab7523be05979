"""Placing the answer file at the ISO root and authoring the output ISO."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from tiny11_builder.build.toolchain import Toolchain
from tiny11_builder.config import defaults
from tiny11_builder.config.settings import BuildConfig
from tiny11_builder.logging import LoggerFactory
from tiny11_builder.storage.exceptions import BootFilesMissingError, CommandError
from tiny11_builder.storage.iso import missing_boot_files


log = LoggerFactory.for_iso()


def place_answer_file(config: BuildConfig, tools: Toolchain) -> Optional[Path]:
    """Copy autounattend.xml to the staging root.

    The copy inside the image's Sysprep directory is preferred; the
    downloaded temp file is the fallback. Nothing is copied when neither
    exists.

    Returns:
        Source path used, or None
    """
    log.info("Copying autounattend.xml to ISO root...")
    destination = config.staging_dir / defaults.ANSWER_FILE_NAME
    in_image = config.wim_mount / defaults.SYSPREP_DIR / defaults.ANSWER_FILE_NAME
    candidates = (
        (in_image, True),
        (config.answer_file_temp_path, False),
    )
    for source, privileged in candidates:
        if not tools.files.exists(source, privileged=privileged):
            continue
        try:
            tools.files.copy_file(source, destination, privileged=privileged)
        except CommandError as e:
            log.warning(f"Could not copy {source}: {e.output or e}")
            continue
        return source
    log.warning("autounattend.xml not available, ISO will not include it")
    return None


def verify_boot_files(config: BuildConfig) -> None:
    """Raises BootFilesMissingError naming each absent boot loader."""
    log.info("Verifying boot files...")
    missing = missing_boot_files(config.staging_dir, defaults.BOOT_SPEC)
    for rel in missing:
        log.error(f"Boot file not found: {rel}")
    if missing:
        raise BootFilesMissingError(missing)


def finalize_iso(config: BuildConfig, tools: Toolchain) -> Path:
    """Produce the output ISO.

    Raises:
        BootFilesMissingError, IsoAuthoringError, EmptyOutputError
    """
    place_answer_file(config, tools)
    verify_boot_files(config)
    log.info("Creating bootable ISO (this may take a while)...")
    return tools.iso.build(
        config.staging_dir,
        config.output_iso,
        defaults.BOOT_SPEC,
        defaults.ISO_METADATA,
    )
