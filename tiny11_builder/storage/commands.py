"""Synchronous external command execution."""

from __future__ import annotations

import shlex
import subprocess
from pathlib import Path
from typing import IO, Optional, Sequence, Union

from tiny11_builder.logging import LoggerFactory
from tiny11_builder.storage.exceptions import CommandError


log = LoggerFactory.for_system()

StrPath = Union[str, Path]


def format_command(command: Sequence[StrPath]) -> str:
    return shlex.join(str(part) for part in command)


class CommandRunner:
    """Runs external tools, optionally elevated through sudo.

    Every call blocks until the process exits. ``run`` returns the completed
    process; ``run_checked`` raises :class:`CommandError` on a non-zero exit.
    """

    def __init__(self, *, use_sudo: bool = True, sudo: str = "sudo"):
        self.use_sudo = use_sudo
        self.sudo = sudo

    def _argv(self, command: Sequence[StrPath], privileged: bool) -> list[str]:
        argv = [str(part) for part in command]
        if privileged and self.use_sudo:
            argv.insert(0, self.sudo)
        return argv

    def run(
        self,
        command: Sequence[StrPath],
        *,
        privileged: bool = False,
        input_text: Optional[str] = None,
        stdin: Optional[IO[str]] = None,
        cwd: Optional[StrPath] = None,
        capture: bool = True,
    ) -> subprocess.CompletedProcess:
        argv = self._argv(command, privileged)
        log.debug(f"Running command: {format_command(argv)}")
        kwargs = {}
        if input_text is not None:
            kwargs["input"] = input_text
        elif stdin is not None:
            kwargs["stdin"] = stdin
        if capture:
            kwargs["stdout"] = subprocess.PIPE
            kwargs["stderr"] = subprocess.PIPE
        return subprocess.run(
            argv,
            text=True,
            cwd=str(cwd) if cwd is not None else None,
            check=False,
            **kwargs,
        )

    def run_checked(
        self,
        command: Sequence[StrPath],
        *,
        privileged: bool = False,
        input_text: Optional[str] = None,
        stdin: Optional[IO[str]] = None,
        cwd: Optional[StrPath] = None,
        capture: bool = True,
    ) -> str:
        """Run a command and raise CommandError if it fails.

        Returns:
            Captured stdout (empty string when output is not captured)
        """
        try:
            result = self.run(
                command,
                privileged=privileged,
                input_text=input_text,
                stdin=stdin,
                cwd=cwd,
                capture=capture,
            )
        except FileNotFoundError as error:
            raise CommandError(
                self._argv(command, privileged), 127, str(error)
            ) from error
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            stdout = (result.stdout or "").strip()
            raise CommandError(
                self._argv(command, privileged),
                result.returncode,
                stderr or stdout,
            )
        return result.stdout or ""

    def succeeds(self, command: Sequence[StrPath], *, privileged: bool = False) -> bool:
        """Return True when the command exits 0. Missing executables count as failure."""
        try:
            return self.run(command, privileged=privileged).returncode == 0
        except FileNotFoundError:
            return False
