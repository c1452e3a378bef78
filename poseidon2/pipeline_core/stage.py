"""
Stage - Abstract base class for all pipeline stages.

This module provides the unified Stage abstraction that all pipeline components
inherit from, ensuring consistent behavior and interface across the pipeline.
"""

import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Set

from .context import PipelineContext

logger = logging.getLogger(__name__)


class Stage(ABC):
    """Abstract base class for all pipeline stages.

    Local stages (scanning, ordering, metadata merging) do their work in
    ``_process``. Job stages only add job descriptions to
    ``context.job_graph``; submission happens in a single final stage.

    The stage execution is handled by __call__, which validates dependencies,
    logs execution, handles errors, and tracks timing.
    """

    def __init__(self):
        """Initialize the stage with subtask tracking."""
        self._subtask_times: Dict[str, float] = {}

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for the stage.

        Returns
        -------
        str
            The stage name used for dependency tracking and logging
        """

    @property
    def dependencies(self) -> Set[str]:
        """Stage names that must complete before this stage.

        Returns
        -------
        Set[str]
            Set of stage names this stage depends on
        """
        return set()

    @property
    def description(self) -> str:
        """Human-readable description for logging."""
        return f"Stage: {self.name}"

    def __call__(self, context: PipelineContext) -> PipelineContext:
        """Execute the stage with pre/post processing.

        Parameters
        ----------
        context : PipelineContext
            The pipeline context

        Returns
        -------
        PipelineContext
            Updated context after stage execution

        Raises
        ------
        RuntimeError
            If dependencies are not satisfied
        Exception
            If stage execution fails
        """
        missing_deps = [dep for dep in sorted(self.dependencies) if not context.is_complete(dep)]
        if missing_deps:
            raise RuntimeError(
                f"Stage '{self.name}' requires these stages to complete first: "
                f"{', '.join(missing_deps)}"
            )

        logger.info(f"Executing {self.description}")
        start_time = time.time()

        try:
            self.validate_prerequisites(context)
            updated_context = self._process(context)

            elapsed = time.time() - start_time
            updated_context.mark_complete(self.name)
            logger.info(f"Stage '{self.name}' completed successfully in {elapsed:.1f}s")
            return updated_context

        except Exception as e:
            elapsed = time.time() - start_time
            logger.error(f"Stage '{self.name}' failed after {elapsed:.1f}s: {e}")
            if getattr(e, "stage", "") is None:
                e.stage = self.name
            raise

    @abstractmethod
    def _process(self, context: PipelineContext) -> PipelineContext:
        """Core processing logic - must be implemented by subclasses.

        Parameters
        ----------
        context : PipelineContext
            The pipeline context

        Returns
        -------
        PipelineContext
            Updated context after processing
        """

    def validate_prerequisites(self, context: PipelineContext) -> None:
        """Validate stage-specific prerequisites beyond dependencies.

        Override in subclasses to add custom validation.
        Raise exceptions if prerequisites are not met.

        Parameters
        ----------
        context : PipelineContext
            The pipeline context
        """

    def get_output_files(self, context: PipelineContext) -> List[Path]:
        """Return the files this stage writes or makes its jobs write.

        Parameters
        ----------
        context : PipelineContext
            The pipeline context

        Returns
        -------
        List[Path]
            List of output file paths
        """
        return []

    def __repr__(self) -> str:
        """Return string representation of the stage."""
        deps = f", depends_on={self.dependencies}" if self.dependencies else ""
        return f"{self.__class__.__name__}(name='{self.name}'{deps})"

    def _start_subtask(self, subtask_name: str) -> float:
        """Start timing a subtask."""
        start_time = time.time()
        logger.debug(f"Stage '{self.name}': Starting subtask '{subtask_name}'")
        return start_time

    def _end_subtask(self, subtask_name: str, start_time: float) -> None:
        """End timing a subtask and record duration."""
        elapsed = time.time() - start_time
        self._subtask_times[subtask_name] = elapsed
        logger.debug(f"Stage '{self.name}': Completed subtask '{subtask_name}' in {elapsed:.1f}s")

    @property
    def subtask_times(self) -> Dict[str, float]:
        """Get recorded subtask durations."""
        return self._subtask_times.copy()
