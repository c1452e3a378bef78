"""
Pipeline infrastructure for poseidon2.

This package provides the core abstractions of a merge run:
- PipelineContext: Container for all pipeline state and data
- Stage: Abstract base class for all pipeline components
- Workspace: Output and run directory management
- PipelineRunner: Executes stages in dependency order
"""

from .context import PipelineContext
from .runner import PipelineRunner
from .stage import Stage
from .workspace import Workspace

__all__ = [
    "PipelineContext",
    "Stage",
    "Workspace",
    "PipelineRunner",
]
