"""Offline registry edits through chntpw.

The edits are rendered as a chntpw command script, written to a file, and
fed to ``chntpw -e <hive>`` on stdin.
"""

from __future__ import annotations

from itertools import groupby
from pathlib import Path
from typing import Sequence

from tiny11_builder.domain.models import RegistryEdit
from tiny11_builder.logging import LoggerFactory
from tiny11_builder.storage.commands import CommandRunner
from tiny11_builder.storage.exceptions import CommandError, RegistryEditError


log = LoggerFactory.for_registry()

CHNTPW = "chntpw"
REG_DWORD = 4
ROOT_KEY = "\\"


def render_edit_script(edits: Sequence[RegistryEdit]) -> str:
    """Render chntpw commands that set each edit as a DWORD.

    Keys are created when missing (``nk``), values are created (``nv``) and
    then given their data (``ed``) as 0x-prefixed hex. The script ends by
    quitting and confirming the hive write-back.
    """
    lines: list[str] = []
    for key, group in groupby(edits, key=lambda edit: edit.key):
        parent, _, leaf = key.rstrip(ROOT_KEY).rpartition(ROOT_KEY)
        lines.append(f"cd {parent or ROOT_KEY}")
        lines.append(f"nk {leaf}")
        lines.append(f"cd {leaf}")
        for edit in group:
            lines.append(f"nv {REG_DWORD} {edit.name}")
            lines.append(f"ed {edit.name}")
            lines.append(f"0x{edit.value:x}")
        lines.append("cd \\")
    lines.append("q")
    lines.append("y")
    return "\n".join(lines) + "\n"


class HiveEditor:
    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def write_script(self, edits: Sequence[RegistryEdit], script_path: Path) -> Path:
        script_path.parent.mkdir(parents=True, exist_ok=True)
        script_path.write_text(render_edit_script(edits), encoding="utf-8")
        return script_path

    def apply_edits(
        self,
        hive_path: Path,
        edits: Sequence[RegistryEdit],
        script_path: Path,
    ) -> None:
        """Apply ``edits`` to the hive file at ``hive_path``.

        Raises:
            RegistryEditError: If chntpw exits non-zero
        """
        self.write_script(edits, script_path)
        try:
            with open(script_path, "r", encoding="utf-8") as script:
                output = self.runner.run_checked(
                    [CHNTPW, "-e", str(hive_path)],
                    privileged=True,
                    stdin=script,
                )
        except CommandError as e:
            raise RegistryEditError(hive_path, e.output) from e
        for line in output.splitlines():
            if line.strip():
                log.debug(line)
        log.debug(f"Applied {len(edits)} registry edits to {hive_path}")
