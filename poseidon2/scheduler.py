# File: poseidon2/scheduler.py
# Location: poseidon2/poseidon2/scheduler.py

"""
Job submission.

All side-effecting calls of a run go through a ``Scheduler``:

- ``SlurmScheduler`` hands each job to ``sbatch`` and expresses dependencies
  with ``--dependency=afterok``; execution happens asynchronously on the
  cluster and is not monitored here.
- ``LocalScheduler`` runs each job to completion in this process, for
  machines without a cluster.
- ``DryRunScheduler`` only records and logs what would be submitted.
"""

import logging
import shlex
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple, Union

import pandas as pd

from .jobs import Job, JobGraph, JobState
from .pipeline_core.error_handling import ExternalToolError, SubmissionError, ToolNotFoundError
from .utils import check_external_tools, run_command

logger = logging.getLogger(__name__)


class Scheduler(ABC):
    """Interface of an executor accepting job descriptions."""

    name = "scheduler"

    @abstractmethod
    def submit(self, job: Job, dependency_ids: Sequence[str]) -> str:
        """Submit ``job`` and return its job id.

        Parameters
        ----------
        job : Job
            The job to submit
        dependency_ids : Sequence[str]
            Job ids of ``job.dependencies``, in the same order

        Returns
        -------
        str
            Identifier assigned by the executor
        """

    def required_tools(self, jobs: Sequence[Job]) -> List[str]:
        """Executables that must be on PATH for ``jobs`` to be submitted."""
        return []


class SlurmScheduler(Scheduler):
    """Submit jobs with ``sbatch --wrap``."""

    name = "slurm"

    def __init__(self, sbatch: str = "sbatch"):
        self.sbatch = sbatch

    def build_command(self, job: Job, dependency_ids: Sequence[str]) -> List[str]:
        """Build the ``sbatch`` command line for ``job``."""
        cmd = [self.sbatch, "--parsable"]
        if job.resources.partition:
            cmd += ["-p", job.resources.partition]
        cmd += ["-c", str(job.resources.cores), f"--mem={job.resources.memory}", "-J", job.name]
        if job.log_file:
            cmd += ["-o", str(job.log_file)]
        if dependency_ids:
            cmd.append(f"--dependency=afterok:{':'.join(dependency_ids)}")
        cmd.append(f"--wrap={job.command_line}")
        return cmd

    def submit(self, job: Job, dependency_ids: Sequence[str]) -> str:
        cmd = self.build_command(job, dependency_ids)
        try:
            output = run_command(cmd)
        except ExternalToolError as e:
            reason = e.stderr.strip() or str(e)
            raise SubmissionError(job.name, shlex.join(cmd), reason) from e

        # --parsable prints "<jobid>" or "<jobid>;<cluster>"
        job_id = output.strip().split(";")[0]
        if not job_id.isdigit():
            raise SubmissionError(
                job.name, shlex.join(cmd), f"unexpected sbatch output: {output.strip()!r}"
            )
        return job_id

    def required_tools(self, jobs: Sequence[Job]) -> List[str]:
        return [self.sbatch]


class LocalScheduler(Scheduler):
    """Run every job synchronously, in submission order."""

    name = "local"

    def __init__(self):
        self._counter = 0

    def submit(self, job: Job, dependency_ids: Sequence[str]) -> str:
        output_file = job.log_file
        logger.info(f"Running job '{job.name}' locally: {job.command_line}")
        run_command(job.command, output_file=str(output_file) if output_file else None)
        self._counter += 1
        return f"local-{self._counter}"

    def required_tools(self, jobs: Sequence[Job]) -> List[str]:
        tools: List[str] = []
        for job in jobs:
            if job.command and job.command[0] not in tools:
                tools.append(job.command[0])
        return tools


class DryRunScheduler(Scheduler):
    """Record jobs without running or submitting anything."""

    name = "dry-run"

    def __init__(self):
        self.submitted: List[Tuple[Job, List[str]]] = []

    def submit(self, job: Job, dependency_ids: Sequence[str]) -> str:
        self.submitted.append((job, list(dependency_ids)))
        job_id = str(len(self.submitted))
        logger.info(f"[dry-run] {job.name} (after {dependency_ids or 'nothing'}): {job.command_line}")
        return job_id


def create_scheduler(config: Dict[str, Any]) -> Scheduler:
    """Instantiate the scheduler named by ``config['scheduler']``."""
    kind = config.get("scheduler", "slurm")
    if kind == "slurm":
        return SlurmScheduler(config.get("sbatch_executable", "sbatch"))
    if kind == "local":
        return LocalScheduler()
    if kind == "dry-run":
        return DryRunScheduler()
    raise ValueError(f"Unknown scheduler: {kind}")


def check_scheduler_tools(scheduler: Scheduler, graph: JobGraph) -> None:
    """Raise ToolNotFoundError if an executable needed for submission is missing."""
    for tool in scheduler.required_tools(list(graph)):
        if not check_external_tools([tool]):
            raise ToolNotFoundError(tool)


def submit_graph(graph: JobGraph, scheduler: Scheduler) -> Dict[str, str]:
    """
    Submit every job of ``graph`` exactly once, dependencies first.

    Submission stops at the first error; jobs submitted before it stay
    submitted.

    Parameters
    ----------
    graph : JobGraph
        Jobs of the run
    scheduler : Scheduler
        Executor receiving the jobs

    Returns
    -------
    Dict[str, str]
        Job name to job id

    Raises
    ------
    SubmissionError
        If the scheduler rejects a job
    ExternalToolError
        If a job fails under the local scheduler
    """
    job_ids: Dict[str, str] = {}
    for job in graph.submission_order():
        pending = [dep.name for dep in job.dependencies if dep.state is not JobState.SUBMITTED]
        if pending:
            raise RuntimeError(f"Job '{job.name}' has unsubmitted dependencies: {pending}")

        dependency_ids = [dep.job_id for dep in job.dependencies]
        try:
            job_id = scheduler.submit(job, dependency_ids)
        except (SubmissionError, ExternalToolError):
            logger.error(
                f"Job '{job.name}' was not submitted; already submitted: "
                f"{', '.join(f'{k}={v}' for k, v in job_ids.items()) or 'none'}"
            )
            raise
        job.mark_submitted(job_id)
        job_ids[job.name] = job_id
        logger.info(f"Submitted job '{job.name}' ({scheduler.name} id {job_id})")
        logger.debug(f"Job '{job.name}' command: {job.command_line}")

    return job_ids


def write_job_table(graph: JobGraph, path: Union[str, Path]) -> Path:
    """Write name, id, state, dependencies and command of every job as TSV."""
    rows = [
        {
            "job": job.name,
            "job_id": job.job_id or "",
            "state": job.state.value,
            "dependencies": ",".join(job.dependency_names),
            "command": job.command_line,
        }
        for job in graph.submission_order()
    ]
    df = pd.DataFrame(rows, columns=["job", "job_id", "state", "dependencies", "command"])
    path = Path(path)
    df.to_csv(path, sep="\t", index=False)
    return path
