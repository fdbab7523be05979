"""Ordered build stages.

Stage order:
    1. preflight        - root, ISO path, external tools
    2. staging          - loop-mount the ISO and copy it to a writable tree
    3. normalize        - install.esd -> install.wim when needed
    4. selection        - prompt for the image index
    5. install image    - strip apps, patch registry, commit, optimize
    6. boot image       - best-effort registry patch of boot.wim
    7. finalize         - answer file, boot file check, xorriso
    8. cleanup          - always, once the scratch tree exists

Every release is registered before the resource it guards is acquired, so
an error or interrupt at any point unwinds through the same teardown.
"""

from __future__ import annotations

from contextlib import ExitStack
from pathlib import Path

from tiny11_builder.build.boot_image import patch_boot_image
from tiny11_builder.build.cleanup import cleanup, report_output
from tiny11_builder.build.finalize import finalize_iso
from tiny11_builder.build.mutation import customize_install_image
from tiny11_builder.build.normalize import normalize_image
from tiny11_builder.build.preflight import run_preflight
from tiny11_builder.build.selection import select_image
from tiny11_builder.build.staging import prepare_scratch, stage_iso
from tiny11_builder.build.toolchain import Toolchain
from tiny11_builder.config.settings import BuildConfig
from tiny11_builder.logging import LoggerFactory, operation_context


def run_build(config: BuildConfig, tools: Toolchain) -> Path:
    """Run every stage and return the path of the written ISO.

    Raises:
        BuildError: On any fatal stage failure (after cleanup has run)
    """
    log = LoggerFactory.for_build()

    with operation_context("preflight"):
        run_preflight(config, tools.runner)

    with ExitStack() as stack:
        stack.callback(cleanup, config, tools)
        prepare_scratch(config)

        with operation_context("staging"):
            log.info("Mounting ISO...")
            stack.enter_context(tools.mounter.mounted(config.iso_path, config.iso_mount))
            stage_iso(config, tools)

        with operation_context("normalize"):
            normalize_image(config, tools)

        with operation_context("selection"):
            index = select_image(config, tools)

        with operation_context("install_image"):
            customize_install_image(config, tools, index)

        with operation_context("boot_image"):
            patch_boot_image(config, tools)

        with operation_context("finalize"):
            output = finalize_iso(config, tools)

    report_output(output)
    return output
