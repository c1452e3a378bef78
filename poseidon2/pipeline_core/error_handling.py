"""
Error types and validation helpers for the merge pipeline.

This module provides:
- Custom exception classes for the different failure kinds of a merge run
- File and directory validation helpers used before any job is submitted

None of these errors are retried automatically. External tools may already
have written partial output, so every error carries enough detail for the
failing step to be rerun by hand.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, stage: Optional[str] = None, details: Optional[Dict] = None):
        """Initialize pipeline error.

        Parameters
        ----------
        message : str
            Error message
        stage : str, optional
            Stage where error occurred
        details : dict, optional
            Additional error details
        """
        super().__init__(message)
        self.stage = stage
        self.details = details or {}


class MissingFileError(PipelineError):
    """Raised when a module lacks a file it is expected to contain."""

    def __init__(
        self,
        module: str,
        kind: str,
        stage: Optional[str] = None,
        message: Optional[str] = None,
    ):
        """Initialize missing file error."""
        message = message or f"Module '{module}' has no '{kind}' file"
        super().__init__(message, stage, {"module": module, "kind": kind})
        self.module = module
        self.kind = kind


class AmbiguousFileError(PipelineError):
    """Raised when more than one file matches where exactly one is expected."""

    def __init__(
        self, module: str, kind: str, matches: Sequence[str], stage: Optional[str] = None
    ):
        """Initialize ambiguous file error."""
        message = (
            f"Module '{module}' has {len(matches)} '{kind}' files, expected one: "
            f"{', '.join(str(m) for m in matches)}"
        )
        super().__init__(message, stage, {"module": module, "kind": kind, "matches": list(matches)})
        self.module = module
        self.kind = kind
        self.matches = list(matches)


class DuplicateSampleError(PipelineError):
    """Raised when the same sample identifier occurs more than once."""

    def __init__(self, sample: str, sources: Sequence[str], stage: Optional[str] = None):
        """Initialize duplicate sample error."""
        message = f"Sample '{sample}' occurs more than once (in {', '.join(sources)})"
        super().__init__(message, stage, {"sample": sample, "sources": list(sources)})
        self.sample = sample
        self.sources = list(sources)


class SchemaMismatchError(PipelineError):
    """Raised when metadata tables differ in columns under the strict schema policy."""

    def __init__(
        self,
        file_path: str,
        missing: List[str],
        extra: List[str],
        stage: Optional[str] = None,
    ):
        """Initialize schema mismatch error."""
        parts = []
        if missing:
            parts.append(f"missing columns {missing}")
        if extra:
            parts.append(f"unexpected columns {extra}")
        message = f"Column mismatch in {file_path}: {'; '.join(parts)}"
        super().__init__(
            message, stage, {"file": file_path, "missing": missing, "extra": extra}
        )


class UnresolvedSampleError(PipelineError):
    """Raised when a metadata row cannot be placed in the canonical sample order."""

    def __init__(self, sample: str, file_path: Optional[str] = None, stage: Optional[str] = None):
        """Initialize unresolved sample error."""
        where = f" (from {file_path})" if file_path else ""
        message = f"Sample '{sample}'{where} is not part of the merged genotype data"
        super().__init__(message, stage, {"sample": sample, "file": file_path})
        self.sample = sample


class FileFormatError(PipelineError):
    """Raised when a file has an invalid format."""

    def __init__(self, file_path: str, expected_format: str, stage: Optional[str] = None):
        """Initialize file format error."""
        message = f"Invalid file format for {file_path}. Expected: {expected_format}"
        super().__init__(message, stage, {"file": file_path, "expected_format": expected_format})


class ExternalToolError(PipelineError):
    """Raised when an external program exits non-zero or produces unusable output."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int] = None,
        stderr: str = "",
        message: Optional[str] = None,
        stage: Optional[str] = None,
    ):
        """Initialize external tool error."""
        command = [str(c) for c in command]
        if message is None:
            message = f"Command failed with exit status {returncode}: {' '.join(command)}"
            if stderr:
                message += f"\n{stderr.strip()}"
        super().__init__(
            message,
            stage,
            {"command": command, "returncode": returncode, "stderr": stderr},
        )
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class ToolNotFoundError(ExternalToolError):
    """Raised when a required external tool is not found."""

    def __init__(self, tool: str, stage: Optional[str] = None):
        """Initialize tool not found error."""
        message = f"Required tool '{tool}' not found in PATH"
        super().__init__([tool], message=message, stage=stage)
        self.details["tool"] = tool


class SubmissionError(PipelineError):
    """Raised when the batch scheduler does not accept a job."""

    def __init__(self, job_name: str, command: str, reason: str, stage: Optional[str] = None):
        """Initialize submission error."""
        message = f"Submission of job '{job_name}' failed: {reason}\nCommand: {command}"
        super().__init__(message, stage, {"job": job_name, "command": command, "reason": reason})
        self.job_name = job_name


def validate_file_exists(file_path: Union[str, Path], stage_name: str) -> Path:
    """Validate that a file exists and is readable.

    Parameters
    ----------
    file_path : str or Path
        Path to validate
    stage_name : str
        Stage name for error reporting

    Returns
    -------
    Path
        Validated path object

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    FileFormatError
        If the path is not a regular file
    PermissionError
        If file isn't readable
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Required file not found: {path}")

    if not path.is_file():
        raise FileFormatError(str(path), "file", stage_name)

    try:
        with open(path, "r"):
            pass
    except PermissionError:
        raise PermissionError(f"Cannot read file: {path}")

    return path


def validate_output_directory(
    output_dir: Union[str, Path], description: str = "Output directory"
) -> Path:
    """Create a directory receiving results if needed and check it is writable.

    Parameters
    ----------
    output_dir : str or Path
        Directory path
    description : str
        What the directory is for, used in error messages

    Returns
    -------
    Path
        The directory

    Raises
    ------
    FileFormatError
        If the path exists but is not a directory
    PipelineError
        If the directory cannot be created or written to
    """
    path = Path(output_dir)
    if path.exists() and not path.is_dir():
        raise FileFormatError(str(path), "a directory")

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PipelineError(f"{description} cannot be created: {path} ({e})") from e

    if not os.access(path, os.W_OK | os.X_OK):
        raise PipelineError(f"{description} is not writable: {path}")
    return path
