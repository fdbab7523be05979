"""Build configuration constructed once at startup."""

from __future__ import annotations

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from tiny11_builder.config import defaults


@dataclass(frozen=True)
class BuildConfig:
    """Immutable settings for one build run.

    Every stage receives the same instance; nothing here changes after
    ``from_args`` returns.
    """

    iso_path: Optional[Path]
    scratch_dir: Path
    output_iso: Path
    temp_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    answer_file_url: str = defaults.ANSWER_FILE_URL
    download_connect_timeout: float = defaults.DOWNLOAD_CONNECT_TIMEOUT
    download_timeout: float = defaults.DOWNLOAD_TIMEOUT
    use_sudo: bool = True

    @classmethod
    def from_args(
        cls,
        iso: Optional[str],
        scratch: Optional[str] = None,
        *,
        cwd: Optional[Path] = None,
        **overrides,
    ) -> BuildConfig:
        """Build a config from CLI values, resolving relative paths against cwd."""
        base = Path(cwd) if cwd is not None else Path.cwd()
        iso_path = Path(iso).expanduser() if iso else None
        if scratch:
            scratch_dir = Path(scratch).expanduser()
            if not scratch_dir.is_absolute():
                scratch_dir = base / scratch_dir
        else:
            scratch_dir = base / defaults.SCRATCH_DIR_NAME
        return cls(
            iso_path=iso_path,
            scratch_dir=scratch_dir,
            output_iso=base / defaults.OUTPUT_ISO_NAME,
            **overrides,
        )

    # Scratch layout ---------------------------------------------------------

    @property
    def iso_mount(self) -> Path:
        return self.scratch_dir / "iso_mount"

    @property
    def wim_mount(self) -> Path:
        return self.scratch_dir / "wim_mount"

    @property
    def staging_dir(self) -> Path:
        return self.scratch_dir / "tiny11"

    @property
    def sources_dir(self) -> Path:
        return self.staging_dir / "sources"

    @property
    def install_wim(self) -> Path:
        return self.sources_dir / "install.wim"

    @property
    def install_esd(self) -> Path:
        return self.sources_dir / "install.esd"

    @property
    def boot_wim(self) -> Path:
        return self.sources_dir / "boot.wim"

    # Temp files -------------------------------------------------------------

    @property
    def registry_script_path(self) -> Path:
        return self.temp_dir / defaults.REGISTRY_SCRIPT_NAME

    @property
    def answer_file_temp_path(self) -> Path:
        return self.temp_dir / defaults.ANSWER_FILE_NAME

    @property
    def temp_files(self) -> tuple[Path, ...]:
        return (self.registry_script_path, self.answer_file_temp_path)
