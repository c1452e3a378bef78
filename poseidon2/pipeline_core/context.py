"""
PipelineContext - Single source of truth for pipeline state and data.

This module provides the PipelineContext dataclass that flows through all stages,
carrying configuration, the run workspace and every artifact produced on the way
to the submitted job graph.
"""

import argparse
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, TYPE_CHECKING

import pandas as pd

from ..jobs import JobGraph

if TYPE_CHECKING:
    from ..file_lists import Manifest
    from ..sample_order import SampleId
    from ..scanner import Module
    from ..scheduler import Scheduler
    from .workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """Container for all pipeline state and data - the single source of truth.

    Attributes
    ----------
    args : argparse.Namespace
        Parsed command-line arguments
    config : Dict[str, Any]
        Merged configuration from file and CLI
    workspace : Workspace
        Output and run directory paths
    scheduler : Scheduler, optional
        Executor receiving the job graph
    start_time : datetime
        Pipeline execution start time
    completed_stages : Set[str]
        Names of stages that have completed successfully
    module_paths : List[Path]
        Module directories from the input file
    modules : List[Module]
        Scanned modules
    genotype_manifest : Manifest, optional
        Genotype triplet of each module
    metadata_manifest : Manifest, optional
        Janno table of each module
    sample_order : List[SampleId]
        Canonical sample order
    order_file : Path, optional
        Canonical sample order as written for PLINK
    merged_metadata : pd.DataFrame, optional
        Merged janno table in canonical sample order
    job_graph : JobGraph
        Jobs built by the job stages
    job_ids : Dict[str, str]
        Scheduler ids of submitted jobs
    """

    # --- Immutable Configuration ---
    args: argparse.Namespace
    config: Dict[str, Any]
    workspace: "Workspace"
    scheduler: Optional["Scheduler"] = None
    start_time: datetime = field(default_factory=datetime.now)

    # Stage tracking
    completed_stages: Set[str] = field(default_factory=set)

    # Inputs
    module_paths: List[Path] = field(default_factory=list)
    modules: List["Module"] = field(default_factory=list)

    # Manifests and ordering
    genotype_manifest: Optional["Manifest"] = None
    metadata_manifest: Optional["Manifest"] = None
    sample_order: List["SampleId"] = field(default_factory=list)
    order_file: Optional[Path] = None

    # Local results
    merged_metadata: Optional[pd.DataFrame] = None

    # Jobs
    job_graph: JobGraph = field(default_factory=JobGraph)
    job_ids: Dict[str, str] = field(default_factory=dict)

    def mark_complete(self, stage_name: str) -> None:
        """Mark a stage as complete."""
        self.completed_stages.add(stage_name)
        logger.debug(f"Stage '{stage_name}' marked as complete")

    def is_complete(self, stage_name: str) -> bool:
        """Check if a stage has been completed."""
        return stage_name in self.completed_stages

    def get_execution_time(self) -> float:
        """Get the elapsed execution time in seconds."""
        return (datetime.now() - self.start_time).total_seconds()

    def __repr__(self) -> str:
        """Return string representation showing key state information."""
        return (
            f"PipelineContext("
            f"stages_completed={len(self.completed_stages)}, "
            f"samples={len(self.sample_order)}, "
            f"jobs={len(self.job_graph)}, "
            f"execution_time={self.get_execution_time():.1f}s)"
        )
