"""Unit tests for Workspace."""

from datetime import datetime

import pytest

from poseidon2.pipeline_core import Workspace
from poseidon2.pipeline_core.error_handling import FileFormatError


class TestWorkspace:
    """Test suite for Workspace."""

    @pytest.fixture
    def now(self):
        return datetime(2024, 3, 5, 14, 7)

    @pytest.fixture
    def workspace(self, tmp_path, now):
        """Create a test Workspace."""
        return Workspace(tmp_path / "out", "merged", log_root=tmp_path / "logs", now=now)

    def test_initialization(self, workspace, tmp_path):
        """Output and run directories are created."""
        assert workspace.output_dir == tmp_path / "out"
        assert workspace.output_dir.is_dir()
        assert workspace.run_dir == tmp_path / "logs" / "2024_03_05_14_07"
        assert workspace.run_dir.is_dir()

    def test_get_output_path(self, workspace):
        """Output paths combine base name, suffix and extension."""
        assert workspace.get_output_path("_TF") == workspace.output_dir / "merged_TF"
        assert workspace.get_output_path("", ".janno") == workspace.output_dir / "merged.janno"

    def test_run_and_log_paths(self, workspace):
        """Intermediate files and job logs go to the run directory."""
        assert workspace.get_run_path("order.txt") == workspace.run_dir / "order.txt"
        assert workspace.get_log_path("plink_merge") == workspace.run_dir / "plink_merge.log"

    def test_same_timestamp_gets_new_directory(self, tmp_path, now, workspace):
        """A second run in the same minute does not reuse the first run directory."""
        second = Workspace(tmp_path / "out", "merged", log_root=tmp_path / "logs", now=now)

        assert second.run_dir != workspace.run_dir
        assert second.run_dir.name == "2024_03_05_14_07_1"

    def test_custom_timestamp_format(self, tmp_path, now):
        """The run directory name follows the configured format."""
        workspace = Workspace(
            tmp_path / "out", "m", log_root=tmp_path / "logs", timestamp_format="%Y%m%d", now=now
        )

        assert workspace.run_dir.name == "20240305"

    def test_output_dir_is_a_file(self, tmp_path, now):
        """A file in place of the output directory is rejected before any run directory exists."""
        (tmp_path / "out").write_text("")

        with pytest.raises(FileFormatError):
            Workspace(tmp_path / "out", "merged", log_root=tmp_path / "logs", now=now)

        assert not (tmp_path / "logs").exists()
