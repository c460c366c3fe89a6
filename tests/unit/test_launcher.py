"""Unit tests for launcher module."""

from unittest.mock import patch

import pytest

from yaccs import launcher
from yaccs.env_projector import EnvProjection, project
from yaccs.errors import LaunchError


class ExecCalled(Exception):
    """Stands in for the process image being replaced."""


@pytest.fixture
def projection(make_profile):
    previous = make_profile(name="old", custom_vars={"DISABLE_PROMPT_CACHING": "1"})
    return project(previous, make_profile())


class TestBuildEnvironment:
    """Tests for build_environment()."""

    def test_applies_projection_to_base(self, projection):
        """Test stale variables removed and new ones set."""
        base = {"PATH": "/usr/bin", "DISABLE_PROMPT_CACHING": "1", "ANTHROPIC_MODEL": "old"}

        env = launcher.build_environment(projection, base)

        assert env["PATH"] == "/usr/bin"
        assert env["ANTHROPIC_MODEL"] == "m1"
        assert "DISABLE_PROMPT_CACHING" not in env
        assert base["ANTHROPIC_MODEL"] == "old"

    def test_defaults_to_process_environment(self, projection, monkeypatch):
        """Test os.environ used as base and left unchanged."""
        monkeypatch.setenv("DISABLE_PROMPT_CACHING", "1")
        monkeypatch.setenv("YACCS_MARKER", "kept")

        env = launcher.build_environment(projection)

        assert env["YACCS_MARKER"] == "kept"
        assert "DISABLE_PROMPT_CACHING" not in env
        assert launcher.os.environ["DISABLE_PROMPT_CACHING"] == "1"


class TestResolveCommand:
    """Tests for resolve_command()."""

    def test_found(self):
        """Test program on PATH."""
        with patch("yaccs.launcher.shutil.which", return_value="/usr/local/bin/claude"):
            assert launcher.resolve_command("claude") == "/usr/local/bin/claude"

    def test_not_found(self):
        """Test missing program."""
        with patch("yaccs.launcher.shutil.which", return_value=None):
            with pytest.raises(LaunchError, match="'claude' not found on PATH"):
                launcher.resolve_command("claude")


class TestLaunch:
    """Tests for launch()."""

    @patch("yaccs.launcher.os.execvpe", side_effect=ExecCalled)
    @patch("yaccs.launcher.shutil.which", return_value="/usr/local/bin/claude")
    def test_exec_with_args_and_env(self, mock_which, mock_exec, projection, monkeypatch):
        """Test arguments forwarded unchanged and environment projected."""
        monkeypatch.setenv("DISABLE_PROMPT_CACHING", "1")

        with pytest.raises(ExecCalled):
            launcher.launch(projection, "claude", ("--resume", "--model", "x"))

        command, argv, env = mock_exec.call_args[0]
        assert command == "claude"
        assert argv == ["claude", "--resume", "--model", "x"]
        assert env["ANTHROPIC_AUTH_TOKEN"] == "sk_123"
        assert "DISABLE_PROMPT_CACHING" not in env

    @patch("yaccs.launcher.os.execvpe")
    @patch("yaccs.launcher.shutil.which", return_value=None)
    def test_missing_program_not_executed(self, mock_which, mock_exec, projection):
        """Test nothing executed when the program is missing."""
        with pytest.raises(LaunchError):
            launcher.launch(projection, "claude")
        mock_exec.assert_not_called()

    @patch("yaccs.launcher.os.execvpe", side_effect=PermissionError("Permission denied"))
    @patch("yaccs.launcher.shutil.which", return_value="/usr/local/bin/claude")
    def test_exec_failure(self, mock_which, mock_exec, projection):
        """Test OS error from exec."""
        with pytest.raises(LaunchError, match="Failed to execute 'claude'"):
            launcher.launch(projection, "claude")

    @patch("yaccs.launcher.os.execvpe", side_effect=ExecCalled)
    @patch("yaccs.launcher.shutil.which", return_value="/usr/local/bin/claude")
    def test_reset_projection(self, mock_which, mock_exec, monkeypatch):
        """Test reset removes every provider variable."""
        monkeypatch.setenv("ANTHROPIC_BASE_URL", "https://x")
        monkeypatch.setenv("ANTHROPIC_AUTH_TOKEN", "sk_123")

        with pytest.raises(ExecCalled):
            launcher.launch(EnvProjection(to_unset=project(None, None).to_unset), "claude")

        env = mock_exec.call_args[0][2]
        assert "ANTHROPIC_BASE_URL" not in env
        assert "ANTHROPIC_AUTH_TOKEN" not in env
