"""
Workspace - Centralized file path management for pipeline runs.

This module provides the Workspace class that manages all file paths
of a merge run: the output directory receiving the merged datasets, and the
run directory receiving manifests, parameter files and logs.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from .error_handling import validate_output_directory

logger = logging.getLogger(__name__)


class Workspace:
    """Manages all file paths for a pipeline run.

    The run directory ``<log_root>/<timestamp>/`` is created once per
    invocation. Every stage writes distinctly named files into it, and nothing
    in it is removed after the run so failed runs can be inspected.

    Attributes
    ----------
    output_dir : Path
        Directory receiving the merged datasets
    base_name : str
        Base name for generated files
    timestamp : str
        Timestamp of the run, formatted with ``timestamp_format``
    run_dir : Path
        Directory for intermediate files and logs of this run
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        base_name: str,
        log_root: Union[str, Path] = "poseidon2_tmp_and_log",
        timestamp_format: str = "%Y_%m_%d_%H_%M",
        now: Optional[datetime] = None,
    ):
        """Initialize workspace and create its directories.

        Parameters
        ----------
        output_dir : str or Path
            Directory receiving the merged datasets
        base_name : str
            Base name for generated files
        log_root : str or Path
            Parent of the per-run directories
        timestamp_format : str
            ``strftime`` format of the run directory name
        now : datetime, optional
            Run start time (default: current time)
        """
        self.output_dir = Path(output_dir).absolute()
        self.base_name = base_name
        self.timestamp = (now or datetime.now()).strftime(timestamp_format)

        validate_output_directory(self.output_dir)
        self.log_root = Path(log_root).absolute()
        validate_output_directory(self.log_root, "Log directory")
        self.run_dir = self._create_run_dir()

        logger.debug(f"Workspace initialized: output_dir={self.output_dir}")
        logger.debug(f"Run directory: {self.run_dir}")

    def _create_run_dir(self) -> Path:
        # Two runs started within the same timestamp get separate directories
        candidate = self.log_root / self.timestamp
        suffix = 0
        while True:
            try:
                candidate.mkdir()
                return candidate
            except FileExistsError:
                suffix += 1
                candidate = self.log_root / f"{self.timestamp}_{suffix}"

    def get_output_path(self, suffix: str, extension: str = "") -> Path:
        """Generate output file path with suffix and extension.

        Parameters
        ----------
        suffix : str
            Suffix to append to base name (e.g., "_TF", "_HO")
        extension : str
            File extension including dot (default: none, i.e. a path prefix)

        Returns
        -------
        Path
            Full path in the output directory
        """
        return self.output_dir / f"{self.base_name}{suffix}{extension}"

    def get_run_path(self, name: str) -> Path:
        """Path of an intermediate file in the run directory."""
        return self.run_dir / name

    def get_log_path(self, job_name: str) -> Path:
        """Path of the scheduler log of a job."""
        return self.run_dir / f"{job_name}.log"

    def __repr__(self) -> str:
        """Return string representation of the workspace."""
        return f"Workspace(output_dir='{self.output_dir}', run_dir='{self.run_dir}')"
