"""Bootable ISO authoring.

This module builds a hybrid BIOS/EFI ISO from the staged tree with
``xorriso -as mkisofs``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from tiny11_builder.domain.models import BootSpec, IsoMetadata
from tiny11_builder.logging import LoggerFactory
from tiny11_builder.storage.commands import CommandRunner
from tiny11_builder.storage.exceptions import (
    BootFilesMissingError,
    CommandError,
    EmptyOutputError,
    IsoAuthoringError,
)


log = LoggerFactory.for_iso()

XORRISO = "xorriso"


def human_size(size_bytes: Optional[int]) -> str:
    if size_bytes is None:
        return "0B"
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size < 1024.0:
            return f"{size:.1f}{unit}"
        size /= 1024.0
    return f"{size:.1f}PB"


def missing_boot_files(tree: Path, boot: BootSpec) -> list[str]:
    """Boot loader paths from ``boot`` that are not regular files under ``tree``."""
    return [rel for rel in boot.required_files if not (tree / rel).is_file()]


def build_xorriso_command(
    output: Path, boot: BootSpec, metadata: IsoMetadata
) -> list[str]:
    return [
        XORRISO,
        "-as",
        "mkisofs",
        "-iso-level",
        "3",
        "-full-iso9660-filenames",
        "-volid",
        metadata.volume_id,
        "-appid",
        metadata.application_id,
        "-publisher",
        metadata.publisher,
        "-preparer",
        metadata.preparer,
        "-eltorito-boot",
        boot.bios_loader,
        "-no-emul-boot",
        "-boot-load-size",
        str(boot.boot_load_size),
        "-eltorito-alt-boot",
        "-e",
        boot.efi_loader,
        "-no-emul-boot",
        "-isohybrid-gpt-basdat",
        "-output",
        str(output),
        ".",
    ]


class IsoAuthor:
    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def build(
        self,
        tree: Path,
        output: Path,
        boot: BootSpec,
        metadata: IsoMetadata,
    ) -> Path:
        """Author ``output`` from the contents of ``tree``.

        Returns:
            Path of the written ISO

        Raises:
            BootFilesMissingError: If a boot loader is absent (xorriso is not run)
            IsoAuthoringError: If xorriso exits non-zero
            EmptyOutputError: If the output is missing or zero bytes
        """
        missing = missing_boot_files(tree, boot)
        if missing:
            raise BootFilesMissingError(missing)

        output = output.resolve()
        try:
            self.runner.run_checked(
                build_xorriso_command(output, boot, metadata),
                cwd=tree,
                capture=False,
            )
        except CommandError as e:
            raise IsoAuthoringError(output, e.output) from e

        if not output.is_file() or output.stat().st_size == 0:
            raise EmptyOutputError(output)
        log.debug(f"Wrote {output} ({human_size(output.stat().st_size)})")
        return output
