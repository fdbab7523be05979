"""Filesystem operations on the staged tree and on mounted images.

A mounted image is only readable by root, so anything that touches one
(existence checks included) runs through the command runner with sudo.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from tiny11_builder.logging import LoggerFactory
from tiny11_builder.storage.commands import CommandRunner


log = LoggerFactory.for_system()


class FileOps:
    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def copy_tree(self, source: Path, destination: Path) -> None:
        """Copy the contents of ``source`` into ``destination`` preserving structure.

        Raises:
            CommandError: If rsync fails
        """
        destination.mkdir(parents=True, exist_ok=True)
        self.runner.run_checked(
            ["rsync", "-a", "--info=progress2", f"{source}/", f"{destination}/"],
            capture=False,
        )

    def make_writable(self, path: Path) -> None:
        """Restore user write permission recursively (source media is read-only)."""
        self.runner.run_checked(["chmod", "-R", "u+w", str(path)])

    def exists(self, path: Path, *, privileged: bool = True) -> bool:
        if not privileged:
            return path.exists()
        return self.runner.succeeds(["test", "-e", str(path)], privileged=True)

    def remove_matching(
        self,
        directory: Path,
        pattern: str,
        *,
        ignore_case: bool = True,
        max_depth: Optional[int] = None,
    ) -> None:
        """Delete every entry below ``directory`` whose name matches ``pattern``.

        ``pattern`` is a find(1) glob. Matched directories are removed whole
        and not descended into.

        Raises:
            CommandError: If find reports a failure (e.g. missing directory)
        """
        command = ["find", str(directory), "-mindepth", "1"]
        if max_depth is not None:
            command += ["-maxdepth", str(max_depth)]
        command += [
            "-iname" if ignore_case else "-name",
            pattern,
            "-prune",
            "-exec",
            "rm",
            "-rf",
            "{}",
            "+",
        ]
        self.runner.run_checked(command, privileged=True)

    def remove_paths(self, paths: Iterable[Path]) -> None:
        targets = [str(path) for path in paths]
        if not targets:
            return
        self.runner.run_checked(["rm", "-rf", "--", *targets], privileged=True)

    def make_dirs(self, path: Path) -> None:
        self.runner.run_checked(["mkdir", "-p", str(path)], privileged=True)

    def copy_file(self, source: Path, destination: Path, *, privileged: bool = True) -> None:
        self.runner.run_checked(
            ["cp", str(source), str(destination)], privileged=privileged
        )
