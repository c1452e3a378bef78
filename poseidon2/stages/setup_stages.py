"""
Setup stages: module discovery, manifests and the canonical sample order.

These stages read and validate all inputs. Any error raised here aborts the
run before a single job has been submitted.
"""

import logging
from pathlib import Path
from typing import List

from ..file_lists import (
    build_genotype_manifest,
    build_metadata_manifest,
    read_module_list,
    scan_modules,
)
from ..pipeline_core import PipelineContext, Stage
from ..pipeline_core.error_handling import FileFormatError, PipelineError
from ..sample_order import resolve_sample_order, write_order_file

logger = logging.getLogger(__name__)

MODULE_SCANNING = "module_scanning"
GENOTYPE_MANIFEST = "genotype_manifest"
METADATA_MANIFEST = "metadata_manifest"
SAMPLE_ORDER = "sample_order"

GENOTYPE_MANIFEST_FILE = "genotype_manifest.txt"
METADATA_MANIFEST_FILE = "metadata_manifest.txt"
ORDER_FILE = "sample_order.txt"


class ModuleScanningStage(Stage):
    """Read the module list and scan every module directory."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return MODULE_SCANNING

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Read module list and locate genotype and janno files"

    def _process(self, context: PipelineContext) -> PipelineContext:
        input_file = context.config["input_file"]
        module_paths = read_module_list(input_file)
        if not module_paths:
            raise FileFormatError(str(input_file), "at least one module directory")

        start = self._start_subtask("scan_modules")
        context.module_paths = module_paths
        context.modules = scan_modules(
            module_paths,
            context.config.get("metadata_suffix", ".janno"),
            policy=context.config.get("missing_file_policy", "strict"),
        )
        self._end_subtask("scan_modules", start)

        logger.info(f"Scanned {len(context.modules)} modules")
        return context


class GenotypeManifestStage(Stage):
    """Build and write the genotype (PLINK fileset) manifest."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return GENOTYPE_MANIFEST

    @property
    def dependencies(self):
        """Return the set of stage names this stage depends on."""
        return {MODULE_SCANNING}

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Create genotype file list"

    def _process(self, context: PipelineContext) -> PipelineContext:
        policy = context.config.get("missing_file_policy", "strict")
        manifest = build_genotype_manifest(context.modules, policy)
        manifest.write(context.workspace.get_run_path(GENOTYPE_MANIFEST_FILE))
        context.genotype_manifest = manifest

        logger.info(
            f"Genotype manifest: {len(manifest.complete_entries())} of {len(manifest)} "
            "modules included"
        )
        return context

    def get_output_files(self, context: PipelineContext) -> List[Path]:
        """Return the manifest path."""
        return [context.workspace.get_run_path(GENOTYPE_MANIFEST_FILE)]


class MetadataManifestStage(Stage):
    """Build and write the janno manifest."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return METADATA_MANIFEST

    @property
    def dependencies(self):
        """Return the set of stage names this stage depends on."""
        return {MODULE_SCANNING, GENOTYPE_MANIFEST}

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Create janno file list"

    def _process(self, context: PipelineContext) -> PipelineContext:
        policy = context.config.get("missing_file_policy", "strict")
        manifest = build_metadata_manifest(context.modules, policy, context.genotype_manifest)
        manifest.write(context.workspace.get_run_path(METADATA_MANIFEST_FILE))
        context.metadata_manifest = manifest
        return context

    def get_output_files(self, context: PipelineContext) -> List[Path]:
        """Return the manifest path."""
        return [context.workspace.get_run_path(METADATA_MANIFEST_FILE)]


class SampleOrderStage(Stage):
    """Derive the canonical sample order from the ``.fam`` files."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return SAMPLE_ORDER

    @property
    def dependencies(self):
        """Return the set of stage names this stage depends on."""
        return {GENOTYPE_MANIFEST}

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Create sample order file from fam files"

    def _process(self, context: PipelineContext) -> PipelineContext:
        order = resolve_sample_order(context.genotype_manifest)
        if not order:
            raise PipelineError("No samples found in the .fam files of the included modules")

        context.sample_order = order
        context.order_file = write_order_file(order, context.workspace.get_run_path(ORDER_FILE))
        return context

    def get_output_files(self, context: PipelineContext) -> List[Path]:
        """Return the order file path."""
        return [context.workspace.get_run_path(ORDER_FILE)]
