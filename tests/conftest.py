"""
Pytest configuration and shared fixtures for tiny11-builder tests.

The fakes below stand in for the external tools so no test ever mounts,
runs sudo, or touches the network.
"""

import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional
from unittest.mock import Mock

import pytest
from loguru import logger

from tiny11_builder.build.toolchain import Toolchain
from tiny11_builder.config import defaults
from tiny11_builder.config.settings import BuildConfig
from tiny11_builder.domain.models import WimImage, WimInfo
from tiny11_builder.services.prompt import Prompter
from tiny11_builder.storage.commands import CommandRunner
from tiny11_builder.storage.exceptions import ImageAlreadyMountedError, ImageCommitError


# ==============================================================================
# Logging
# ==============================================================================


@pytest.fixture
def log_records():
    """Capture loguru records emitted during a test."""
    records: List[dict] = []
    logger.remove()
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


def messages(records, level: Optional[str] = None) -> List[str]:
    return [
        r["message"] for r in records if level is None or r["level"].name == level
    ]


# ==============================================================================
# Config
# ==============================================================================


@pytest.fixture
def iso_file(tmp_path) -> Path:
    iso = tmp_path / "Win11_24H2_English_x64.iso"
    iso.write_bytes(b"\x00" * 2048)
    return iso


@pytest.fixture
def build_config(tmp_path, iso_file) -> BuildConfig:
    """Config whose scratch, temp and output paths all live under tmp_path."""
    temp_dir = tmp_path / "tmp"
    temp_dir.mkdir()
    return BuildConfig(
        iso_path=iso_file,
        scratch_dir=tmp_path / "tiny11_work",
        output_iso=tmp_path / "out" / "tiny11.iso",
        temp_dir=temp_dir,
        use_sudo=False,
    )


# ==============================================================================
# Fake collaborators
# ==============================================================================


def populate_iso_tree(root: Path, *, esd: bool = False, boot_wim: bool = True) -> None:
    """Write the files a Windows 11 ISO tree is expected to contain."""
    (root / "sources").mkdir(parents=True, exist_ok=True)
    if esd:
        (root / "sources" / "install.esd").write_bytes(b"esd")
    else:
        (root / "sources" / "install.wim").write_bytes(b"wim")
    if boot_wim:
        (root / "sources" / "boot.wim").write_bytes(b"boot")
    for rel in defaults.BOOT_SPEC.required_files:
        (root / rel).parent.mkdir(parents=True, exist_ok=True)
        (root / rel).write_bytes(b"loader")


class FakeMounter:
    def __init__(self):
        self.mounted_paths = set()
        self.calls = []

    def mount(self, image, mountpoint):
        self.calls.append(("mount", Path(image), Path(mountpoint)))
        self.mounted_paths.add(Path(mountpoint))

    def unmount(self, mountpoint, *, ignore_errors=False):
        self.calls.append(("unmount", Path(mountpoint)))
        if Path(mountpoint) in self.mounted_paths:
            self.mounted_paths.discard(Path(mountpoint))
            return True
        return False

    @contextmanager
    def mounted(self, image, mountpoint):
        try:
            self.mount(image, mountpoint)
            yield mountpoint
        finally:
            self.unmount(mountpoint, ignore_errors=True)


class FakeFiles:
    """Filesystem ops that act on the real tmp_path tree without sudo."""

    def __init__(self, iso_tree_kwargs=None):
        self.iso_tree_kwargs = iso_tree_kwargs or {}
        self.removed_patterns = []
        self.removed_paths = []
        self.copies = []

    def copy_tree(self, source, destination):
        populate_iso_tree(Path(destination), **self.iso_tree_kwargs)

    def make_writable(self, path):
        pass

    def exists(self, path, *, privileged=True):
        return Path(path).exists()

    def remove_matching(self, directory, pattern, *, ignore_case=True, max_depth=None):
        self.removed_patterns.append((Path(directory), pattern))

    def remove_paths(self, paths):
        self.removed_paths.extend(Path(p) for p in paths)

    def make_dirs(self, path):
        Path(path).mkdir(parents=True, exist_ok=True)

    def copy_file(self, source, destination, *, privileged=True):
        self.copies.append((Path(source), Path(destination)))
        shutil.copy(source, destination)


class FakeImages:
    """Image toolkit that mounts by creating a directory tree."""

    def __init__(self, image_count=3, *, with_hive=True, fail_commit_for=None):
        self.info = WimInfo(
            image_count=image_count,
            images=tuple(
                WimImage(index=i, name=f"Windows 11 Edition {i}")
                for i in range(1, image_count + 1)
            ),
        )
        self.with_hive = with_hive
        self.fail_commit_for = fail_commit_for
        self.mounts = []
        self.commits = []
        self.discards = []
        self.optimized = []
        self.exports = []
        self._active = None

    @property
    def active_mount(self):
        return self._active

    def describe(self, container):
        return f"Image Count: {self.info.image_count}"

    def list_images(self, container):
        return self.info

    def export(self, source, index, destination, *, compression="LZX:100"):
        self.exports.append((Path(source), index, Path(destination), compression))
        Path(destination).write_bytes(b"wim")

    def discard(self, mountpoint):
        self.discards.append(self._active)
        self._active = None

    @contextmanager
    def mounted_image(self, container, index, mountpoint):
        if self._active is not None:
            raise ImageAlreadyMountedError(str(mountpoint), str(self._active))
        self._active = (Path(container), index, Path(mountpoint))
        self.mounts.append((Path(container), index))
        if self.with_hive:
            hive = Path(mountpoint) / defaults.SYSTEM_HIVE
            hive.parent.mkdir(parents=True, exist_ok=True)
            hive.write_bytes(b"regf")
        try:
            yield Path(mountpoint)
        except BaseException:
            self.discard(mountpoint)
            raise
        if self.fail_commit_for == Path(container).name:
            self.discard(mountpoint)
            raise ImageCommitError(str(mountpoint), "wimlib: write error")
        self.commits.append((Path(container), index))
        self._active = None

    def optimize(self, container):
        self.optimized.append(Path(container))


class FakeIsoAuthor:
    def __init__(self, payload=b"ISO" * 100):
        self.payload = payload
        self.builds = []

    def build(self, tree, output, boot, metadata):
        self.builds.append((Path(tree), Path(output)))
        Path(output).parent.mkdir(parents=True, exist_ok=True)
        Path(output).write_bytes(self.payload)
        return Path(output)


def scripted_prompter(*answers) -> Prompter:
    remaining = iter(answers)

    def _input(_message):
        try:
            return next(remaining)
        except StopIteration:
            raise EOFError from None

    return Prompter(input_func=_input)


@pytest.fixture
def fake_tools():
    """Toolchain wired entirely to fakes; tweak attributes per test."""
    downloader = Mock()
    downloader.download.return_value = False
    return Toolchain(
        runner=Mock(spec=CommandRunner),
        mounter=FakeMounter(),
        files=FakeFiles(),
        images=FakeImages(),
        hive=Mock(),
        iso=FakeIsoAuthor(),
        downloader=downloader,
        prompter=scripted_prompter("1"),
    )


@pytest.fixture
def completed():
    """Factory for subprocess.CompletedProcess-like mocks."""

    def _completed(returncode=0, stdout="", stderr=""):
        return Mock(returncode=returncode, stdout=stdout, stderr=stderr)

    return _completed
