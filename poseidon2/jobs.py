# File: poseidon2/jobs.py
# Location: poseidon2/poseidon2/jobs.py

"""
Job descriptions for the batch scheduler.

Stages do not run PLINK or convertf themselves. They describe the work as
``Job`` objects (command, resource request, dependencies) and add them to a
``JobGraph``; the scheduler module is the only place where jobs are handed to
an executor.
"""

import logging
import shlex
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)


class JobState(Enum):
    """Submission state as seen by this program; execution is tracked by the scheduler."""

    PENDING = "pending"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class ResourceRequest:
    """Cores, memory (MB) and partition requested for a job."""

    cores: int = 1
    memory: int = 2000
    partition: Optional[str] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any], job_kind: str) -> "ResourceRequest":
        """Build the request for ``job_kind`` from the ``resources`` config section."""
        request = config.get("resources", {}).get(job_kind, {})
        return cls(
            cores=int(request.get("cores", cls.cores)),
            memory=int(request.get("memory", cls.memory)),
            partition=request.get("partition"),
        )


@dataclass(eq=False)
class Job:
    """One unit of work for the batch scheduler.

    Attributes
    ----------
    name : str
        Unique job name, also used as scheduler job name
    command : List[str]
        Program and arguments
    resources : ResourceRequest
        Requested resources
    dependencies : List[Job]
        Jobs that must succeed before this one starts
    log_file : Path, optional
        File receiving the scheduler's output for this job
    state : JobState
        PENDING until the scheduler acknowledged the job
    job_id : str, optional
        Scheduler job id, set on submission
    """

    name: str
    command: List[str]
    resources: ResourceRequest = field(default_factory=ResourceRequest)
    dependencies: List["Job"] = field(default_factory=list)
    log_file: Optional[Path] = None
    state: JobState = JobState.PENDING
    job_id: Optional[str] = None

    @property
    def command_line(self) -> str:
        """Shell form of the command."""
        return shlex.join(str(c) for c in self.command)

    @property
    def dependency_names(self) -> List[str]:
        return [dep.name for dep in self.dependencies]

    def mark_submitted(self, job_id: str) -> None:
        """Record the scheduler acknowledgement; a job is submitted only once."""
        if self.state is JobState.SUBMITTED:
            raise RuntimeError(f"Job '{self.name}' was already submitted as {self.job_id}")
        self.job_id = job_id
        self.state = JobState.SUBMITTED

    def __repr__(self) -> str:
        deps = f", depends_on={self.dependency_names}" if self.dependencies else ""
        return f"Job(name='{self.name}', state={self.state.value}{deps})"


class JobGraph:
    """Jobs of one run, kept in an order where dependencies come first."""

    def __init__(self):
        self._jobs: Dict[str, Job] = {}

    def add(self, job: Job) -> Job:
        """Add a job whose dependencies are already part of the graph.

        Raises
        ------
        ValueError
            If the name is taken or a dependency is unknown.
        """
        if job.name in self._jobs:
            raise ValueError(f"Duplicate job name: {job.name}")
        unknown = [dep.name for dep in job.dependencies if self._jobs.get(dep.name) is not dep]
        if unknown:
            raise ValueError(f"Job '{job.name}' depends on jobs not in the graph: {unknown}")
        self._jobs[job.name] = job
        logger.debug(f"Added {job!r}")
        return job

    def get(self, name: str) -> Optional[Job]:
        return self._jobs.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._jobs

    def __iter__(self) -> Iterator[Job]:
        return iter(self._jobs.values())

    def __len__(self) -> int:
        return len(self._jobs)

    def submission_order(self) -> List[Job]:
        """Jobs in an order where every job follows all of its dependencies."""
        return list(self._jobs.values())
