"""
PipelineRunner - Executes stages in dependency order.

This module provides the PipelineRunner class that orchestrates stage execution.
It runs in a single thread: the expensive work of a merge run happens in
scheduler jobs, so stages themselves are short and run one after another.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Dict, List

from .context import PipelineContext
from .stage import Stage

logger = logging.getLogger(__name__)


class PipelineRunner:
    """Executes stages in dependency order.

    The runner analyzes stage dependencies, groups stages into levels by
    topological sorting and runs the levels in order. A failing stage stops
    the run; stages after it are not executed.
    """

    def __init__(self):
        """Initialize the pipeline runner."""
        self._execution_times: Dict[str, float] = {}
        self._subtask_times: Dict[str, Dict[str, float]] = {}

    def run(self, stages: List[Stage], context: PipelineContext) -> PipelineContext:
        """Execute all stages in dependency order.

        Parameters
        ----------
        stages : List[Stage]
            List of stages to execute
        context : PipelineContext
            Initial pipeline context

        Returns
        -------
        PipelineContext
            Final context after all stages complete

        Raises
        ------
        ValueError
            If stage names repeat, a dependency is missing or circular
        Exception
            If any stage fails
        """
        start_time = time.time()
        logger.info(f"Starting pipeline execution with {len(stages)} stages")

        stage_map = {stage.name: stage for stage in stages}
        if len(stage_map) != len(stages):
            raise ValueError("Duplicate stage names detected")

        execution_plan = self._create_execution_plan(stages)

        logger.info(f"Execution plan has {len(execution_plan)} levels")
        for level, level_stages in enumerate(execution_plan):
            logger.debug(f"Level {level}: {[s.name for s in level_stages]}")

        for level_stages in execution_plan:
            for stage in level_stages:
                context = self._execute_stage(stage, context)

        total_time = time.time() - start_time
        logger.info(f"Pipeline execution completed in {total_time:.1f}s")

        self._log_execution_summary()

        return context

    def _create_execution_plan(self, stages: List[Stage]) -> List[List[Stage]]:
        """Create execution plan with stages grouped by dependency levels.

        Parameters
        ----------
        stages : List[Stage]
            All stages to execute

        Returns
        -------
        List[List[Stage]]
            Stages grouped by execution level; within a level, stages keep
            the order in which they were given

        Raises
        ------
        ValueError
            If a dependency is not among the stages, or dependencies
            are circular
        """
        graph = {stage.name: stage for stage in stages}
        stage_names = set(graph.keys())

        dependencies = {}
        for stage in stages:
            missing = set(stage.dependencies) - stage_names
            if missing:
                raise ValueError(
                    f"Stage '{stage.name}' depends on stages not in the pipeline: "
                    f"{sorted(missing)}"
                )
            dependencies[stage.name] = set(stage.dependencies)

        dependents = defaultdict(set)
        for stage_name, deps in dependencies.items():
            for dep in deps:
                dependents[dep].add(stage_name)

        in_degree = {name: len(dependencies[name]) for name in graph}
        position = {stage.name: i for i, stage in enumerate(stages)}

        queue = deque(stage.name for stage in stages if in_degree[stage.name] == 0)
        execution_plan = []
        processed = set()

        while queue:
            current_level = []
            next_queue = []
            for _ in range(len(queue)):
                stage_name = queue.popleft()
                current_level.append(graph[stage_name])
                processed.add(stage_name)

                for dependent in dependents[stage_name]:
                    in_degree[dependent] -= 1
                    if in_degree[dependent] == 0:
                        next_queue.append(dependent)

            current_level.sort(key=lambda s: position[s.name])
            queue.extend(sorted(next_queue, key=position.get))
            execution_plan.append(current_level)

        if len(processed) != len(stages):
            unprocessed = set(graph.keys()) - processed
            for stage_name in sorted(unprocessed):
                logger.debug(f"  {stage_name}: {dependencies[stage_name]}")
            raise ValueError(f"Circular dependency detected involving stages: {unprocessed}")

        return execution_plan

    def _execute_stage(self, stage: Stage, context: PipelineContext) -> PipelineContext:
        """Execute a single stage and track timing."""
        start_time = time.time()
        result = stage(context)
        self._execution_times[stage.name] = time.time() - start_time

        if hasattr(stage, "subtask_times") and stage.subtask_times:
            self._subtask_times[stage.name] = stage.subtask_times

        return result

    def _log_execution_summary(self) -> None:
        """Log summary of stage execution times."""
        if not self._execution_times:
            return

        logger.info("=" * 60)
        logger.info("Stage Execution Summary")
        logger.info("=" * 60)

        sorted_times = sorted(self._execution_times.items(), key=lambda x: x[1], reverse=True)
        total_time = sum(self._execution_times.values())

        for stage_name, elapsed in sorted_times:
            percentage = (elapsed / total_time) * 100 if total_time > 0 else 0
            logger.info(f"{stage_name:30s} {elapsed:6.1f}s ({percentage:4.1f}%)")

            for subtask_name, subtask_elapsed in sorted(
                self._subtask_times.get(stage_name, {}).items(), key=lambda x: x[1], reverse=True
            ):
                subtask_percentage = (subtask_elapsed / elapsed) * 100 if elapsed > 0 else 0
                logger.info(
                    f"  └─ {subtask_name:32s} {subtask_elapsed:6.1f}s ({subtask_percentage:4.1f}%)"
                )

        logger.info("-" * 60)
        logger.info(f"{'Total stage time:':30s} {total_time:6.1f}s")
        logger.info("=" * 60)

    def dry_run(self, stages: List[Stage]) -> List[List[str]]:
        """Return the execution plan as stage names grouped by level, without running."""
        execution_plan = self._create_execution_plan(stages)
        return [[stage.name for stage in level] for level in execution_plan]
