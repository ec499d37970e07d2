"""Unit tests for the command executor."""

import subprocess

import pytest
from pathlib import Path
from unittest.mock import MagicMock, Mock, patch

from fwb.core.context import ExecutionContext
from fwb.core.exceptions import ExecutionError
from fwb.core.executor import CommandExecutor, CommandResult


@pytest.fixture
def ctx():
    return ExecutionContext(_console=MagicMock())


class TestCommandResult:
    """Tests for CommandResult."""

    def test_success(self):
        """Zero exit is success."""
        assert CommandResult(["true"], 0, "").success is True
        assert CommandResult(["false"], 1, "").success is False


class TestRun:
    """Tests for CommandExecutor.run."""

    def test_captures_combined_output(self, ctx):
        """stderr is merged into stdout."""
        with patch("fwb.core.executor.subprocess.run") as mock_run:
            mock_run.return_value = Mock(returncode=0, stdout="1 table created.\n")
            result = CommandExecutor(ctx).run(["/sbin/pfctl", "-s", "Tables"])

        args, kwargs = mock_run.call_args
        assert args[0] == ["/sbin/pfctl", "-s", "Tables"]
        assert kwargs["stdout"] == subprocess.PIPE
        assert kwargs["stderr"] == subprocess.STDOUT
        assert kwargs["timeout"] is None
        assert result.output == "1 table created.\n"
        assert result.success

    def test_non_zero_is_returned(self, ctx):
        """Non-zero exit is returned, not raised."""
        with patch("fwb.core.executor.subprocess.run") as mock_run:
            mock_run.return_value = Mock(returncode=1, stdout="pfctl: Invalid argument.\n")
            result = CommandExecutor(ctx).run(["/sbin/pfctl", "-t", "t", "-T", "add", "x"])

        assert result.return_code == 1
        assert "Invalid argument" in result.output

    def test_launch_failure(self, ctx):
        """A missing binary raises ExecutionError."""
        with patch("fwb.core.executor.subprocess.run", side_effect=FileNotFoundError("no such file")):
            with pytest.raises(ExecutionError) as exc:
                CommandExecutor(ctx).run(["/sbin/pfctl"])
        assert "/sbin/pfctl" in str(exc.value)

    def test_timeout(self, ctx):
        """Timeouts raise ExecutionError."""
        with patch(
            "fwb.core.executor.subprocess.run",
            side_effect=subprocess.TimeoutExpired(["pfctl"], 5),
        ):
            with pytest.raises(ExecutionError) as exc:
                CommandExecutor(ctx).run(["pfctl"], timeout=5)
        assert "timed out" in str(exc.value)

    def test_dry_run(self):
        """Dry-run never executes and reports success."""
        dry_ctx = ExecutionContext(dry_run=True, _console=MagicMock())
        with patch("fwb.core.executor.subprocess.run") as mock_run:
            result = CommandExecutor(dry_ctx).run(["/sbin/pfctl", "-t", "t", "-T", "flush"])

        mock_run.assert_not_called()
        assert result.success
        assert result.output == ""
        dry_ctx.console.dry_run_msg.assert_called_once()


class TestLookups:
    """Tests for which/path_exists."""

    def test_which(self, ctx):
        """which delegates to shutil.which."""
        with patch("fwb.core.executor.shutil.which", return_value="/sbin/pfctl") as mock_which:
            assert CommandExecutor(ctx).which("/sbin/pfctl") == "/sbin/pfctl"
        mock_which.assert_called_once_with("/sbin/pfctl")

    def test_which_missing(self, ctx):
        """Unknown tools resolve to None."""
        with patch("fwb.core.executor.shutil.which", return_value=None):
            assert CommandExecutor(ctx).which("pfctl") is None

    def test_path_exists(self, ctx, tmp_path):
        """path_exists reflects the filesystem."""
        device = tmp_path / "pf"
        executor = CommandExecutor(ctx)
        assert executor.path_exists(device) is False
        device.touch()
        assert executor.path_exists(device) is True
