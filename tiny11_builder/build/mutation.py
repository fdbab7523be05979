"""Edits applied to the mounted install image.

Removals are best-effort: protected or already-missing entries only produce
warnings. A failed hive edit or a failed commit aborts the build.
"""

from __future__ import annotations

from pathlib import Path

from tiny11_builder.build.toolchain import Toolchain
from tiny11_builder.config import defaults
from tiny11_builder.config.settings import BuildConfig
from tiny11_builder.logging import LoggerFactory
from tiny11_builder.storage.exceptions import CommandError


log = LoggerFactory.for_image()


def remove_bloatware(root: Path, tools: Toolchain) -> list[str]:
    """Remove app-store entries matching any bloatware name.

    Returns:
        Names whose removal reported an error
    """
    log.info("Removing bloatware...")
    apps_dir = root / defaults.APP_STORE_DIR
    failed = []
    for app in defaults.BLOATWARE_PACKAGES:
        try:
            tools.files.remove_matching(apps_dir, f"*{app}*")
        except CommandError as e:
            log.warning(f"Could not remove {app}: {e.output or e}")
            failed.append(app)
    return failed


def remove_edge(root: Path, tools: Toolchain) -> None:
    log.info("Removing Edge...")
    try:
        tools.files.remove_matching(
            root / defaults.EDGE_PARENT_DIR,
            f"{defaults.EDGE_DIR_PREFIX}*",
            ignore_case=False,
            max_depth=1,
        )
    except CommandError as e:
        log.warning(f"Could not remove Edge: {e.output or e}")
    try:
        tools.files.remove_paths([root / defaults.EDGE_WEBVIEW_DIR])
    except CommandError as e:
        log.warning(f"Could not remove Edge WebView: {e.output or e}")


def remove_onedrive(root: Path, tools: Toolchain) -> None:
    log.info("Removing OneDrive...")
    try:
        tools.files.remove_paths([root / defaults.ONEDRIVE_SETUP])
    except CommandError as e:
        log.warning(f"Could not remove OneDrive setup: {e.output or e}")


def fetch_answer_file(root: Path, config: BuildConfig, tools: Toolchain) -> bool:
    """Download autounattend.xml and place it in the image's Sysprep directory.

    The temp copy is kept so the finalizer can fall back to it.

    Returns:
        True if the file reached the image
    """
    log.info("Downloading autounattend.xml...")
    sysprep_dir = root / defaults.SYSPREP_DIR
    if not tools.downloader.download(config.answer_file_url, config.answer_file_temp_path):
        log.warning("Failed to download autounattend.xml, continuing without it...")
        return False
    try:
        tools.files.make_dirs(sysprep_dir)
        tools.files.copy_file(
            config.answer_file_temp_path, sysprep_dir / defaults.ANSWER_FILE_NAME
        )
    except CommandError as e:
        log.warning(f"Could not copy autounattend.xml into the image: {e.output or e}")
        return False
    log.info("autounattend.xml downloaded successfully")
    return True


def apply_bypass(root: Path, config: BuildConfig, tools: Toolchain) -> bool:
    """Set the hardware-check bypass values in the image's SYSTEM hive.

    Returns:
        False if the hive is absent and the edit was skipped

    Raises:
        RegistryEditError: If chntpw fails on an existing hive
    """
    hive = root / defaults.SYSTEM_HIVE
    if not tools.files.exists(hive):
        log.warning("SYSTEM hive not found, skipping registry mods")
        return False
    log.info("Applying registry tweaks to SYSTEM hive...")
    tools.hive.apply_edits(hive, defaults.BYPASS_EDITS, config.registry_script_path)
    return True


def remove_telemetry_tasks(root: Path, tools: Toolchain) -> None:
    log.info("Removing telemetry tasks...")
    try:
        tools.files.remove_paths(root / task for task in defaults.TELEMETRY_TASK_DIRS)
    except CommandError as e:
        log.warning(f"Could not remove telemetry tasks: {e.output or e}")


def mutate_mounted_image(root: Path, config: BuildConfig, tools: Toolchain) -> None:
    remove_bloatware(root, tools)
    remove_edge(root, tools)
    remove_onedrive(root, tools)
    fetch_answer_file(root, config, tools)
    log.info("Modifying registry...")
    apply_bypass(root, config, tools)
    remove_telemetry_tasks(root, tools)


def customize_install_image(config: BuildConfig, tools: Toolchain, index: int) -> None:
    """Mount ``index`` of install.wim, strip it, commit and optimize.

    Raises:
        MountFailedError: If the image cannot be mounted
        ImageCommitError: If the commit on unmount fails
        RegistryEditError: If the hive edit fails
    """
    log.info("Mounting Windows image...")
    with tools.images.mounted_image(config.install_wim, index, config.wim_mount) as root:
        mutate_mounted_image(root, config, tools)
        log.info("Committing changes to install.wim (this may take a while)...")

    log.info("Optimizing install.wim...")
    tools.images.optimize(config.install_wim)
