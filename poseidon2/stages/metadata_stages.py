"""
Metadata stages.

The janno merge is cheap and runs in this process, before any job is
submitted, so a metadata problem never leaves half a job graph on the cluster.
"""

import logging
from pathlib import Path
from typing import List

from ..janno import merge_janno_tables, read_janno, reorder_to_sample_order, write_janno
from ..pipeline_core import PipelineContext, Stage
from .setup_stages import METADATA_MANIFEST, SAMPLE_ORDER

logger = logging.getLogger(__name__)

METADATA_MERGE = "metadata_merge"


class MetadataMergeStage(Stage):
    """Merge the janno tables of all modules in canonical sample order."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return METADATA_MERGE

    @property
    def dependencies(self):
        """Return the set of stage names this stage depends on."""
        return {METADATA_MANIFEST, SAMPLE_ORDER}

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Merge janno files"

    def _process(self, context: PipelineContext) -> PipelineContext:
        config = context.config
        missing_value = config.get("missing_value", "n/a")

        start = self._start_subtask("read_tables")
        tables = []
        sources: List[str] = []
        for entry in context.metadata_manifest.complete_entries():
            path = str(entry.files[0])
            df = read_janno(path)
            tables.append((path, df))
            sources.extend([path] * len(df))
        self._end_subtask("read_tables", start)

        start = self._start_subtask("merge_and_sort")
        merged = merge_janno_tables(
            tables,
            schema_policy=config.get("metadata_schema_policy", "union"),
            missing_value=missing_value,
        )
        merged = reorder_to_sample_order(
            merged,
            context.sample_order,
            id_column=config.get("metadata_id_column", "Individual_ID"),
            family_column=config.get("metadata_family_column"),
            missing_value=missing_value,
            sources=sources,
        )
        self._end_subtask("merge_and_sort", start)

        write_janno(merged, self.get_output_files(context)[0])
        context.merged_metadata = merged
        return context

    def get_output_files(self, context: PipelineContext) -> List[Path]:
        """Return the merged janno path."""
        return [context.workspace.get_output_path("", ".janno")]
