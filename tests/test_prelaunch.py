"""Tests for prelaunch script execution."""

import os
import subprocess
import sys
from unittest.mock import MagicMock, patch

import pytest

from buildlaunch_mcp.launch.prelaunch import PrelaunchRunner
from buildlaunch_mcp.launch.state import PrelaunchProcessError


class TestPrelaunchRunner:
    """Tests for PrelaunchRunner with a mocked process."""

    def test_run_returns_exit_code(self, tmp_path):
        script = str(tmp_path / "prelaunch.bat")
        with patch("subprocess.Popen") as mock_popen:
            mock_popen.return_value.wait.return_value = 0

            exit_code = PrelaunchRunner().run(script)

        assert exit_code == 0
        mock_popen.assert_called_once_with(
            [script], cwd=str(tmp_path), stdin=subprocess.DEVNULL, stdout=sys.stderr
        )
        mock_popen.return_value.wait.assert_called_once_with(timeout=None)

    def test_exit_code_is_not_an_error(self, tmp_path):
        with patch("subprocess.Popen") as mock_popen:
            mock_popen.return_value.wait.return_value = 1

            assert PrelaunchRunner().run(str(tmp_path / "prelaunch.bat")) == 1

    def test_spawn_failure_raises(self, tmp_path):
        script = str(tmp_path / "prelaunch.bat")
        with patch("subprocess.Popen", side_effect=FileNotFoundError("no such file")):
            with pytest.raises(PrelaunchProcessError, match="Failed to start") as exc_info:
                PrelaunchRunner().run(script)

        assert exc_info.value.script_path == script

    def test_timeout_kills_process(self, tmp_path):
        process = MagicMock()
        process.wait.side_effect = [subprocess.TimeoutExpired("prelaunch.bat", 2.0), -9]
        with patch("subprocess.Popen", return_value=process):
            with pytest.raises(PrelaunchProcessError, match="timeout"):
                PrelaunchRunner(timeout=2.0).run(str(tmp_path / "prelaunch.bat"))

        process.kill.assert_called_once()
        assert process.wait.call_count == 2

    def test_timeout_property(self):
        assert PrelaunchRunner().timeout is None
        assert PrelaunchRunner(timeout=5.0).timeout == 5.0


@pytest.mark.skipif(os.name == "nt", reason="POSIX shell script")
class TestPrelaunchRunnerReal:
    """Tests running actual scripts."""

    def test_runs_script_in_its_directory(self, tmp_path):
        script = tmp_path / "prelaunch.bat"
        script.write_text('#!/bin/sh\npwd > ran.txt\nexit 3\n')
        script.chmod(0o755)

        exit_code = PrelaunchRunner(timeout=10).run(str(script))

        assert exit_code == 3
        ran = (tmp_path / "ran.txt").read_text().strip()
        assert os.path.realpath(ran) == os.path.realpath(str(tmp_path))

    def test_non_executable_script_raises(self, tmp_path):
        script = tmp_path / "prelaunch.bat"
        script.write_text("#!/bin/sh\nexit 0\n")
        script.chmod(0o644)

        with pytest.raises(PrelaunchProcessError):
            PrelaunchRunner().run(str(script))

    def test_output_stays_off_stdout(self, tmp_path, capfd):
        """stdout carries the MCP transport; script output goes to stderr."""
        script = tmp_path / "prelaunch.bat"
        script.write_text("#!/bin/sh\necho deploying-artifacts\n")
        script.chmod(0o755)

        PrelaunchRunner(timeout=10).run(str(script))

        captured = capfd.readouterr()
        assert captured.out == ""
        assert "deploying-artifacts" in captured.err

    def test_prompt_reads_end_of_input(self, tmp_path, capfd):
        """A prompt never consumes the server's stdin."""
        script = tmp_path / "prelaunch.bat"
        script.write_text('#!/bin/sh\nif read answer; then exit 1; fi\nexit 0\n')
        script.chmod(0o755)

        assert PrelaunchRunner(timeout=10).run(str(script)) == 0
        assert capfd.readouterr().out == ""
