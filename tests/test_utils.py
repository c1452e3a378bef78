"""Tests for utility functions."""

import subprocess
from unittest.mock import patch

import pytest

from poseidon2.pipeline_core.error_handling import ExternalToolError
from poseidon2.utils import check_external_tools, read_non_blank_lines, run_command


class TestRunCommand:
    """Test run_command."""

    @patch("poseidon2.utils.subprocess.run")
    def test_returns_stdout(self, mock_run):
        """Without output file, stdout is returned."""
        mock_run.return_value = subprocess.CompletedProcess(["x"], 0, stdout="42\n", stderr="")

        assert run_command(["sbatch", "--parsable"]) == "42\n"

    @patch("poseidon2.utils.subprocess.run")
    def test_non_zero_exit(self, mock_run):
        """A failing command raises with return code and stderr."""
        mock_run.return_value = subprocess.CompletedProcess(["x"], 2, stdout="", stderr="boom")

        with pytest.raises(ExternalToolError) as exc_info:
            run_command(["plink", "--bfile", "x"])

        assert exc_info.value.returncode == 2
        assert exc_info.value.stderr == "boom"
        assert exc_info.value.command == ["plink", "--bfile", "x"]

    @patch("poseidon2.utils.subprocess.run", side_effect=FileNotFoundError("no such file"))
    def test_missing_executable(self, mock_run):
        """A command that cannot start raises ExternalToolError."""
        with pytest.raises(ExternalToolError, match="Could not run"):
            run_command(["does-not-exist"])

    @patch("poseidon2.utils.subprocess.run")
    def test_output_file(self, mock_run, tmp_path):
        """With an output file, its path is returned."""
        mock_run.return_value = subprocess.CompletedProcess(["x"], 0, stdout=None, stderr="")
        out = str(tmp_path / "job.log")

        assert run_command(["convertf", "-p", "x.par"], output_file=out) == out


@patch("poseidon2.utils.shutil.which")
def test_check_external_tools(mock_which):
    """All tools must be found."""
    mock_which.side_effect = lambda tool: "/usr/bin/plink" if tool == "plink" else None

    assert check_external_tools(["plink"])
    assert not check_external_tools(["plink", "convertf"])


def test_read_non_blank_lines(tmp_path):
    """Lines are stripped and blank ones dropped."""
    path = tmp_path / "x.txt"
    path.write_text("  a  \n\n\t\nb\n")

    assert read_non_blank_lines(str(path)) == ["a", "b"]
