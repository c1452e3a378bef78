"""Unit tests for error types and validation helpers."""

from unittest.mock import patch

import pytest

from poseidon2.pipeline_core.error_handling import (
    AmbiguousFileError,
    ExternalToolError,
    FileFormatError,
    MissingFileError,
    PipelineError,
    SchemaMismatchError,
    SubmissionError,
    ToolNotFoundError,
    validate_file_exists,
    validate_output_directory,
)


class TestErrors:
    """Error messages name what failed."""

    def test_hierarchy(self):
        """All errors are PipelineErrors; a missing tool is a tool error."""
        assert issubclass(MissingFileError, PipelineError)
        assert issubclass(SubmissionError, PipelineError)
        assert issubclass(ToolNotFoundError, ExternalToolError)

    def test_missing_file_message(self):
        """The message names module and kind."""
        error = MissingFileError("/data/m2", "bim")

        assert str(error) == "Module '/data/m2' has no 'bim' file"
        assert error.details == {"module": "/data/m2", "kind": "bim"}

    def test_ambiguous_file_lists_matches(self):
        """All matches are listed."""
        error = AmbiguousFileError("/data/m1", "fam", ["/data/m1/a.fam", "/data/m1/b.fam"])

        assert "2 'fam' files" in str(error)
        assert "/data/m1/b.fam" in str(error)

    def test_schema_mismatch(self):
        """Missing and unexpected columns are both reported."""
        error = SchemaMismatchError("m2.janno", ["Sex"], ["Age"])

        assert "missing columns ['Sex']" in str(error)
        assert "unexpected columns ['Age']" in str(error)

    def test_external_tool_error(self):
        """Command, status and stderr are kept."""
        error = ExternalToolError(["plink", "--bfile", "x"], 3, "Error: bad bim\n")

        assert error.returncode == 3
        assert "plink --bfile x" in str(error)
        assert str(error).endswith("Error: bad bim")

    def test_tool_not_found(self):
        """The tool name appears in message and details."""
        error = ToolNotFoundError("sbatch")

        assert "sbatch" in str(error)
        assert error.details["tool"] == "sbatch"


class TestValidation:
    """Test file and directory validation."""

    def test_file_exists(self, tmp_path):
        """An existing file is returned as Path."""
        path = tmp_path / "a.txt"
        path.write_text("x")

        assert validate_file_exists(str(path), "test") == path

    def test_file_missing(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            validate_file_exists(tmp_path / "nope", "test")

    def test_file_is_directory(self, tmp_path):
        """A directory is not a file."""
        with pytest.raises(FileFormatError):
            validate_file_exists(tmp_path, "test")

    def test_output_directory_created(self, tmp_path):
        """A missing output directory is created with its parents."""
        path = validate_output_directory(tmp_path / "a" / "b")

        assert path.is_dir()

    def test_output_directory_is_a_file(self, tmp_path):
        """An existing file cannot receive outputs."""
        target = tmp_path / "out"
        target.write_text("")

        with pytest.raises(FileFormatError, match="a directory"):
            validate_output_directory(target)

    def test_output_directory_not_writable(self, tmp_path):
        """A directory without write permission is rejected."""
        with patch("poseidon2.pipeline_core.error_handling.os.access", return_value=False):
            with pytest.raises(PipelineError, match="Log directory is not writable"):
                validate_output_directory(tmp_path, "Log directory")
