"""Tests for ISO authoring.

Covers:
- build_xorriso_command argument layout
- missing_boot_files helper
- IsoAuthor.build guards around xorriso
"""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from tiny11_builder.config import defaults
from tiny11_builder.storage.commands import CommandRunner
from tiny11_builder.storage.exceptions import (
    BootFilesMissingError,
    CommandError,
    EmptyOutputError,
    IsoAuthoringError,
)
from tiny11_builder.storage.iso import (
    IsoAuthor,
    build_xorriso_command,
    human_size,
    missing_boot_files,
)


@pytest.fixture
def staged_tree(tmp_path):
    tree = tmp_path / "tiny11"
    for rel in defaults.BOOT_SPEC.required_files:
        (tree / rel).parent.mkdir(parents=True, exist_ok=True)
        (tree / rel).write_bytes(b"loader")
    return tree


class TestBuildXorrisoCommand:
    """Test the xorriso argument layout."""

    def test_dual_boot_catalog(self, tmp_path):
        """Test BIOS and EFI boot entries and the trailing output arguments."""
        output = tmp_path / "tiny11.iso"
        command = build_xorriso_command(output, defaults.BOOT_SPEC, defaults.ISO_METADATA)

        assert command[:3] == ["xorriso", "-as", "mkisofs"]
        bios = command.index("-eltorito-boot")
        assert command[bios + 1] == "boot/etfsboot.com"
        assert command[bios + 2] == "-no-emul-boot"
        assert command[command.index("-boot-load-size") + 1] == "8"
        alt = command.index("-eltorito-alt-boot")
        assert command[alt + 1 : alt + 4] == [
            "-e",
            "efi/microsoft/boot/efisys.bin",
            "-no-emul-boot",
        ]
        assert "-isohybrid-gpt-basdat" in command
        assert command[-3:] == ["-output", str(output), "."]

    def test_volume_metadata(self, tmp_path):
        """Test volume identifiers and ISO level."""
        command = build_xorriso_command(
            tmp_path / "x.iso", defaults.BOOT_SPEC, defaults.ISO_METADATA
        )
        assert command[command.index("-volid") + 1] == "TINY11"
        assert command[command.index("-appid") + 1] == "TINY11"
        assert command[command.index("-publisher") + 1] == "TINY11"
        assert command[command.index("-preparer") + 1] == "prepared by xorriso"
        assert command[command.index("-iso-level") + 1] == "3"


class TestMissingBootFiles:
    """Test detection of absent boot loaders."""

    def test_none_missing(self, staged_tree):
        """Test a complete tree reports nothing."""
        assert missing_boot_files(staged_tree, defaults.BOOT_SPEC) == []

    def test_efi_missing(self, staged_tree):
        """Test a missing EFI image is reported by relative path."""
        (staged_tree / "efi/microsoft/boot/efisys.bin").unlink()
        assert missing_boot_files(staged_tree, defaults.BOOT_SPEC) == [
            "efi/microsoft/boot/efisys.bin"
        ]

    def test_directory_is_not_a_file(self, tmp_path):
        """Test a directory in place of a loader counts as missing."""
        (tmp_path / "boot" / "etfsboot.com").mkdir(parents=True)
        assert "boot/etfsboot.com" in missing_boot_files(tmp_path, defaults.BOOT_SPEC)


class TestIsoAuthor:
    """Test IsoAuthor.build guards around xorriso."""

    @pytest.fixture
    def runner(self):
        return Mock(spec=CommandRunner)

    def test_build_runs_xorriso_in_tree(self, runner, staged_tree, tmp_path):
        """Test xorriso runs from the staged tree and the resolved output is returned."""
        output = tmp_path / "tiny11.iso"

        def fake_xorriso(command, **kwargs):
            output.write_bytes(b"CD001" * 10)
            return ""

        runner.run_checked.side_effect = fake_xorriso
        result = IsoAuthor(runner).build(
            staged_tree, output, defaults.BOOT_SPEC, defaults.ISO_METADATA
        )

        assert result == output.resolve()
        assert runner.run_checked.call_args.kwargs["cwd"] == staged_tree

    def test_missing_boot_file_never_runs_xorriso(self, runner, staged_tree, tmp_path):
        """Test a missing loader fails before xorriso is started."""
        (staged_tree / "boot/etfsboot.com").unlink()
        with pytest.raises(BootFilesMissingError, match="etfsboot.com"):
            IsoAuthor(runner).build(
                staged_tree, tmp_path / "o.iso", defaults.BOOT_SPEC, defaults.ISO_METADATA
            )
        runner.run_checked.assert_not_called()

    def test_xorriso_failure(self, runner, staged_tree, tmp_path):
        """Test a xorriso failure raises IsoAuthoringError."""
        runner.run_checked.side_effect = CommandError(["xorriso"], 5, "no space")
        with pytest.raises(IsoAuthoringError, match="no space"):
            IsoAuthor(runner).build(
                staged_tree, tmp_path / "o.iso", defaults.BOOT_SPEC, defaults.ISO_METADATA
            )

    def test_zero_byte_output(self, runner, staged_tree, tmp_path):
        """Test an empty output file is rejected."""
        output = tmp_path / "o.iso"
        runner.run_checked.side_effect = lambda *a, **k: output.write_bytes(b"")
        with pytest.raises(EmptyOutputError):
            IsoAuthor(runner).build(
                staged_tree, output, defaults.BOOT_SPEC, defaults.ISO_METADATA
            )

    def test_missing_output(self, runner, staged_tree, tmp_path):
        """Test a missing output file is rejected."""
        runner.run_checked.return_value = ""
        with pytest.raises(EmptyOutputError):
            IsoAuthor(runner).build(
                staged_tree, tmp_path / "o.iso", defaults.BOOT_SPEC, defaults.ISO_METADATA
            )


class TestHumanSize:
    """Test human-readable size formatting."""

    @pytest.mark.parametrize(
        "size, expected",
        [(None, "0B"), (512, "512.0B"), (2048, "2.0KB"), (5 * 1024**3, "5.0GB")],
    )
    def test_units(self, size, expected):
        """Test unit selection across magnitudes."""
        assert human_size(size) == expected
