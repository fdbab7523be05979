"""Tests for storage/mount.py - loop mounting of the source ISO."""

from unittest.mock import Mock, mock_open, patch

import pytest

from tiny11_builder.storage import mount
from tiny11_builder.storage.commands import CommandRunner
from tiny11_builder.storage.exceptions import (
    CommandError,
    MountFailedError,
    UnmountFailedError,
)


PROC_MOUNTS = """\
/dev/nvme0n1p2 / ext4 rw,relatime 0 0
/dev/loop0 /home/user/tiny11_work/iso_mount udf ro,relatime 0 0
/dev/loop1 /home/user/my\\040work/iso_mount udf ro,relatime 0 0
"""


class TestIsMounted:
    """Test mount detection from /proc/mounts."""

    def test_detects_active_mountpoint(self):
        """Test a listed mountpoint is reported as mounted."""
        with patch("builtins.open", mock_open(read_data=PROC_MOUNTS)), patch(
            "tiny11_builder.storage.mount.os.path.realpath", side_effect=lambda p: p
        ):
            assert mount.is_mounted("/home/user/tiny11_work/iso_mount") is True

    def test_decodes_escaped_spaces(self):
        """Test octal-escaped spaces in /proc/mounts are decoded."""
        with patch("builtins.open", mock_open(read_data=PROC_MOUNTS)), patch(
            "tiny11_builder.storage.mount.os.path.realpath", side_effect=lambda p: p
        ):
            assert mount.is_mounted("/home/user/my work/iso_mount") is True

    def test_not_mounted(self):
        """Test an unlisted directory is not mounted."""
        with patch("builtins.open", mock_open(read_data=PROC_MOUNTS)), patch(
            "tiny11_builder.storage.mount.os.path.realpath", side_effect=lambda p: p
        ):
            assert mount.is_mounted("/home/user/tiny11_work/wim_mount") is False

    def test_falls_back_to_ismount(self):
        """Test os.path.ismount is used when /proc/mounts is absent."""
        with patch("builtins.open", side_effect=FileNotFoundError), patch(
            "tiny11_builder.storage.mount.os.path.ismount", return_value=True
        ) as mock_ismount:
            assert mount.is_mounted("/mnt/iso") is True
        mock_ismount.assert_called_once()


class TestLoopMounter:
    """Test loop mounting of the source ISO."""

    @pytest.fixture
    def runner(self):
        return Mock(spec=CommandRunner)

    def test_mount_creates_mountpoint_and_mounts_readonly(self, runner, tmp_path):
        """Test the mountpoint is created and the image loop-mounted read-only."""
        mountpoint = tmp_path / "iso_mount"
        mount.LoopMounter(runner).mount(tmp_path / "win.iso", mountpoint)

        assert mountpoint.is_dir()
        runner.run_checked.assert_called_once_with(
            ["mount", "-o", "loop,ro", str(tmp_path / "win.iso"), str(mountpoint)],
            privileged=True,
        )

    def test_mount_failure_raises(self, runner, tmp_path):
        """Test a failed mount raises MountFailedError."""
        runner.run_checked.side_effect = CommandError(["mount"], 32, "wrong fs type")
        with pytest.raises(MountFailedError, match="wrong fs type"):
            mount.LoopMounter(runner).mount(tmp_path / "win.iso", tmp_path / "m")

    @patch("tiny11_builder.storage.mount.is_mounted", return_value=False)
    def test_unmount_skips_when_not_mounted(self, _is_mounted, runner, tmp_path):
        """Test umount is not run for an inactive mountpoint."""
        assert mount.LoopMounter(runner).unmount(tmp_path) is False
        runner.run_checked.assert_not_called()

    @patch("tiny11_builder.storage.mount.is_mounted", return_value=True)
    def test_unmount(self, _is_mounted, runner, tmp_path):
        """Test an active mountpoint is unmounted through sudo."""
        assert mount.LoopMounter(runner).unmount(tmp_path) is True
        runner.run_checked.assert_called_once_with(["umount", str(tmp_path)], privileged=True)

    @patch("tiny11_builder.storage.mount.is_mounted", return_value=True)
    def test_unmount_failure_raises(self, _is_mounted, runner, tmp_path):
        """Test a failed umount raises UnmountFailedError."""
        runner.run_checked.side_effect = CommandError(["umount"], 32, "target is busy")
        with pytest.raises(UnmountFailedError, match="target is busy"):
            mount.LoopMounter(runner).unmount(tmp_path)

    @patch("tiny11_builder.storage.mount.is_mounted", return_value=True)
    def test_unmount_failure_ignored(self, _is_mounted, runner, tmp_path):
        """Test ignore_errors turns a failed umount into False."""
        runner.run_checked.side_effect = CommandError(["umount"], 32, "target is busy")
        assert mount.LoopMounter(runner).unmount(tmp_path, ignore_errors=True) is False

    def test_mounted_context_unmounts_on_error(self, runner, tmp_path):
        """Test the context manager unmounts when the block raises."""
        mounter = mount.LoopMounter(runner)
        with patch.object(mounter, "unmount") as mock_unmount:
            with pytest.raises(RuntimeError):
                with mounter.mounted(tmp_path / "win.iso", tmp_path / "m"):
                    raise RuntimeError("copy failed")
        mock_unmount.assert_called_once_with(tmp_path / "m", ignore_errors=True)

    def test_mounted_context_unmounts_when_mount_fails(self, runner, tmp_path):
        """Test the context manager still attempts an unmount after a failed mount."""
        runner.run_checked.side_effect = CommandError(["mount"], 1, "denied")
        mounter = mount.LoopMounter(runner)
        with patch.object(mounter, "unmount") as mock_unmount:
            with pytest.raises(MountFailedError):
                with mounter.mounted(tmp_path / "win.iso", tmp_path / "m"):
                    pass
        mock_unmount.assert_called_once()
