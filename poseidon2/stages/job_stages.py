"""
Job stages: PLINK merge, SNP extraction and convertf conversion.

These stages validate their inputs and add job descriptions to
``context.job_graph``. Nothing is submitted here; ``JobSubmissionStage``
hands the finished graph to the scheduler in one go.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

from ..convertf import write_convertf_par
from ..jobs import Job, ResourceRequest
from ..pipeline_core import PipelineContext, Stage
from ..pipeline_core.error_handling import MissingFileError, PipelineError
from ..scanner import GENOTYPE_KINDS
from ..scheduler import check_scheduler_tools, submit_graph, write_job_table
from .setup_stages import GENOTYPE_MANIFEST, SAMPLE_ORDER

logger = logging.getLogger(__name__)

GENOTYPE_MERGE = "genotype_merge"
SNP_EXTRACTION = "snp_extraction"
JOB_SUBMISSION = "job_submission"

PLINK_MERGE_JOB = "plink_merge"
EXTRACT_SNPS_JOB = "extract_snps"

FULL_SUFFIX = "_TF"
HO_SUFFIX = "_HO"

MERGE_LIST_FILE = "plink_merge_list.txt"
JOB_TABLE_FILE = "jobs.tsv"


class GenotypeMergeStage(Stage):
    """Describe the PLINK merge of all module filesets in canonical sample order."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return GENOTYPE_MERGE

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {GENOTYPE_MANIFEST, SAMPLE_ORDER}

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Merge genome data with plink"

    def validate_prerequisites(self, context: PipelineContext) -> None:
        """Require at least one complete fileset and a non-empty sample order."""
        manifest = context.genotype_manifest
        if manifest is None or not manifest.complete_entries():
            raise PipelineError("No module with complete genotype data to merge", stage=self.name)
        if not context.sample_order or context.order_file is None:
            raise PipelineError("Sample order is empty", stage=self.name)

    def _process(self, context: PipelineContext) -> PipelineContext:
        config = context.config
        workspace = context.workspace
        entries = context.genotype_manifest.complete_entries()
        out_prefix = workspace.get_output_path(FULL_SUFFIX)

        command = [config.get("plink_executable", "plink")]
        if len(entries) == 1:
            # A single fileset is re-sorted directly instead of merged; the
            # three files need not share a stem
            for kind, path in zip(GENOTYPE_KINDS, entries[0].files):
                command += [f"--{kind}", str(path)]
        else:
            merge_list = context.genotype_manifest.write(
                workspace.get_run_path(MERGE_LIST_FILE), include_gaps=False
            )
            command += ["--merge-list", str(merge_list)]
        command += [
            "--make-bed",
            "--indiv-sort",
            "f",
            str(context.order_file),
            "--out",
            str(out_prefix),
        ]

        context.job_graph.add(
            Job(
                name=PLINK_MERGE_JOB,
                command=command,
                resources=ResourceRequest.from_config(config, PLINK_MERGE_JOB),
                log_file=workspace.get_log_path(PLINK_MERGE_JOB),
            )
        )
        return context

    def get_output_files(self, context: PipelineContext) -> List[Path]:
        """Return the merged PLINK files."""
        prefix = context.workspace.get_output_path(FULL_SUFFIX)
        return [prefix.with_name(f"{prefix.name}.{kind}") for kind in GENOTYPE_KINDS]


class SnpExtractionStage(Stage):
    """Describe the restriction of the merged dataset to a reference SNP list."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return SNP_EXTRACTION

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {GENOTYPE_MERGE}

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Extract reference SNPs from the merged dataset"

    def validate_prerequisites(self, context: PipelineContext) -> None:
        """Require an existing SNP list."""
        snp_file = context.config.get("snp_file")
        if not snp_file or not Path(snp_file).is_file():
            raise MissingFileError(
                str(snp_file),
                "snp_file",
                stage=self.name,
                message=f"SNP reference file not found: {snp_file}",
            )

    def _process(self, context: PipelineContext) -> PipelineContext:
        config = context.config
        workspace = context.workspace
        command = [
            config.get("plink_executable", "plink"),
            "--bfile",
            str(workspace.get_output_path(FULL_SUFFIX)),
            "--extract",
            str(Path(config["snp_file"]).absolute()),
            "--make-bed",
            "--out",
            str(workspace.get_output_path(HO_SUFFIX)),
        ]
        context.job_graph.add(
            Job(
                name=EXTRACT_SNPS_JOB,
                command=command,
                resources=ResourceRequest.from_config(config, EXTRACT_SNPS_JOB),
                dependencies=[context.job_graph.get(PLINK_MERGE_JOB)],
                log_file=workspace.get_log_path(EXTRACT_SNPS_JOB),
            )
        )
        return context

    def get_output_files(self, context: PipelineContext) -> List[Path]:
        """Return the extracted PLINK files."""
        prefix = context.workspace.get_output_path(HO_SUFFIX)
        return [prefix.with_name(f"{prefix.name}.{kind}") for kind in GENOTYPE_KINDS]


class FormatConversionStage(Stage):
    """Describe the convertf conversion of one PLINK dataset to EIGENSTRAT.

    Parameters
    ----------
    label : str
        Dataset label, used in stage, job and parameter file names
    source_stage : str, optional
        Stage creating the job that writes the input dataset
    source_job : str, optional
        Job writing the input dataset; the conversion job waits for it
    input_prefix : str or Path, optional
        Input dataset prefix (default: ``<output_dir>/<name>_<label>``)
    output_prefix : str or Path, optional
        EIGENSTRAT output prefix (default: same as the input prefix)
    """

    def __init__(
        self,
        label: str,
        source_stage: Optional[str] = None,
        source_job: Optional[str] = None,
        input_prefix: Optional[Union[str, Path]] = None,
        output_prefix: Optional[Union[str, Path]] = None,
    ):
        super().__init__()
        self.label = label
        self.source_stage = source_stage
        self.source_job = source_job
        self.input_prefix = input_prefix
        self.output_prefix = output_prefix

    @property
    def name(self) -> str:
        """Return the stage name."""
        return f"format_conversion_{self.label}"

    @property
    def job_name(self) -> str:
        return f"convertf_{self.label}"

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return {self.source_stage} if self.source_stage else set()

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return f"Convert {self.label} plink files to eigenstrat format"

    def _prefixes(self, context: PipelineContext):
        input_prefix = Path(
            self.input_prefix or context.workspace.get_output_path(f"_{self.label}")
        )
        output_prefix = Path(self.output_prefix) if self.output_prefix else input_prefix
        return input_prefix.absolute(), output_prefix.absolute()

    def validate_prerequisites(self, context: PipelineContext) -> None:
        """Without an upstream job, the input dataset must already exist."""
        if self.source_job:
            return
        input_prefix, _ = self._prefixes(context)
        for kind in GENOTYPE_KINDS:
            path = input_prefix.with_name(f"{input_prefix.name}.{kind}")
            if not path.is_file():
                raise MissingFileError(
                    str(input_prefix),
                    kind,
                    stage=self.name,
                    message=f"Input dataset file not found: {path}",
                )

    def _process(self, context: PipelineContext) -> PipelineContext:
        config = context.config
        workspace = context.workspace
        input_prefix, output_prefix = self._prefixes(context)
        output_prefix.parent.mkdir(parents=True, exist_ok=True)

        par_file = write_convertf_par(
            workspace.get_run_path(f"convertf_{self.label}.par"), input_prefix, output_prefix
        )
        logger.debug(f"Wrote convertf parameter file {par_file}")

        dependencies = [context.job_graph.get(self.source_job)] if self.source_job else []
        context.job_graph.add(
            Job(
                name=self.job_name,
                command=[config.get("convertf_executable", "convertf"), "-p", str(par_file)],
                resources=ResourceRequest.from_config(config, "convertf"),
                dependencies=dependencies,
                log_file=workspace.get_log_path(self.job_name),
            )
        )
        return context

    def get_output_files(self, context: PipelineContext) -> List[Path]:
        """Return the EIGENSTRAT files."""
        _, prefix = self._prefixes(context)
        return [prefix.with_name(f"{prefix.name}.{ext}") for ext in ("geno", "snp", "ind")]


class JobSubmissionStage(Stage):
    """Submit the job graph to the scheduler.

    Parameters
    ----------
    after : iterable of str
        Stages that must complete before anything is submitted
    """

    def __init__(self, after: Iterable[str] = ()):
        super().__init__()
        self._after = set(after)

    @property
    def name(self) -> str:
        """Return the stage name."""
        return JOB_SUBMISSION

    @property
    def dependencies(self) -> Set[str]:
        """Return the set of stage names this stage depends on."""
        return set(self._after)

    @property
    def description(self) -> str:
        """Return a description of what this stage does."""
        return "Submit jobs to the scheduler"

    def validate_prerequisites(self, context: PipelineContext) -> None:
        """Require a scheduler, a non-empty graph and the tools to submit it."""
        if context.scheduler is None:
            raise PipelineError("No scheduler configured", stage=self.name)
        if not len(context.job_graph):
            raise PipelineError("No jobs to submit", stage=self.name)
        check_scheduler_tools(context.scheduler, context.job_graph)

    def _process(self, context: PipelineContext) -> PipelineContext:
        job_table = context.workspace.get_run_path(JOB_TABLE_FILE)
        try:
            context.job_ids = submit_graph(context.job_graph, context.scheduler)
        finally:
            write_job_table(context.job_graph, job_table)
        logger.info(f"Submitted {len(context.job_ids)} jobs; job table written to {job_table}")
        return context

    def get_output_files(self, context: PipelineContext) -> List[Path]:
        """Return the job table path."""
        return [context.workspace.get_run_path(JOB_TABLE_FILE)]
