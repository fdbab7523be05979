"""The set of external collaborators a build talks to.

Stages only see these objects, so tests swap in fakes without touching real
mounts or binaries.
"""

from __future__ import annotations

from dataclasses import dataclass

from tiny11_builder.config.settings import BuildConfig
from tiny11_builder.services.download import Downloader
from tiny11_builder.services.prompt import Prompter
from tiny11_builder.storage.commands import CommandRunner
from tiny11_builder.storage.files import FileOps
from tiny11_builder.storage.iso import IsoAuthor
from tiny11_builder.storage.mount import LoopMounter
from tiny11_builder.storage.registry import HiveEditor
from tiny11_builder.storage.wim import ImageToolkit


@dataclass
class Toolchain:
    runner: CommandRunner
    mounter: LoopMounter
    files: FileOps
    images: ImageToolkit
    hive: HiveEditor
    iso: IsoAuthor
    downloader: Downloader
    prompter: Prompter

    @classmethod
    def system(cls, config: BuildConfig) -> Toolchain:
        """Toolchain backed by the real binaries on PATH."""
        runner = CommandRunner(use_sudo=config.use_sudo)
        return cls(
            runner=runner,
            mounter=LoopMounter(runner),
            files=FileOps(runner),
            images=ImageToolkit(runner),
            hive=HiveEditor(runner),
            iso=IsoAuthor(runner),
            downloader=Downloader(
                connect_timeout=config.download_connect_timeout,
                total_timeout=config.download_timeout,
            ),
            prompter=Prompter(),
        )
