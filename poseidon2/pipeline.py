# File: poseidon2/pipeline.py
# Location: poseidon2/poseidon2/pipeline.py

"""
Pipeline assembly.

Builds the stage lists of the ``merge`` and ``convert`` commands, creates the
workspace, scheduler and context of a run and hands everything to the
``PipelineRunner``.
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .pipeline_core import PipelineContext, PipelineRunner, Stage, Workspace
from .scheduler import create_scheduler
from .stages import (
    FormatConversionStage,
    GenotypeManifestStage,
    GenotypeMergeStage,
    JobSubmissionStage,
    MetadataManifestStage,
    MetadataMergeStage,
    ModuleScanningStage,
    SampleOrderStage,
    SnpExtractionStage,
)
from .stages.job_stages import EXTRACT_SNPS_JOB, GENOTYPE_MERGE, PLINK_MERGE_JOB, SNP_EXTRACTION

logger = logging.getLogger(__name__)

RUN_LOG_FILE = "poseidon2.log"


def compute_base_name(output_dir: Union[str, Path], name: Optional[str] = None) -> str:
    """Return ``name`` or, if unset, the name of the output directory."""
    if name:
        return name
    base_name = Path(output_dir).absolute().name
    logger.debug(f"No dataset name given, using output directory name '{base_name}'")
    return base_name


def _with_submission(stages: List[Stage]) -> List[Stage]:
    # Submission waits for every other stage, so all validation happens first
    return stages + [JobSubmissionStage(after=[stage.name for stage in stages])]


def build_merge_stages(config: Dict[str, Any]) -> List[Stage]:
    """Build the list of stages of a merge run.

    Parameters
    ----------
    config : Dict[str, Any]
        Run configuration; the SNP extraction branch is added only if
        ``snp_file`` is set

    Returns
    -------
    List[Stage]
        List of stages to execute
    """
    stages: List[Stage] = [
        ModuleScanningStage(),
        GenotypeManifestStage(),
        MetadataManifestStage(),
        SampleOrderStage(),
        MetadataMergeStage(),
        GenotypeMergeStage(),
        FormatConversionStage("TF", source_stage=GENOTYPE_MERGE, source_job=PLINK_MERGE_JOB),
    ]

    if config.get("snp_file"):
        stages.append(SnpExtractionStage())
        stages.append(
            FormatConversionStage("HO", source_stage=SNP_EXTRACTION, source_job=EXTRACT_SNPS_JOB)
        )
    else:
        logger.info("No snp_file configured; skipping SNP extraction")

    return _with_submission(stages)


def build_convert_stages(
    bfile_prefix: Union[str, Path], output_prefix: Union[str, Path]
) -> List[Stage]:
    """Build the stages converting an existing PLINK dataset to EIGENSTRAT."""
    label = Path(output_prefix).name
    return _with_submission(
        [FormatConversionStage(label, input_prefix=bfile_prefix, output_prefix=output_prefix)]
    )


def _add_run_log_handler(path: Path) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    )
    logging.getLogger("poseidon2").addHandler(handler)
    return handler


def run_pipeline(args: argparse.Namespace, config: Dict[str, Any]) -> PipelineContext:
    """Run the ``merge`` or ``convert`` command.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command-line arguments; ``args.command`` selects the stages
    config : Dict[str, Any]
        Configuration with CLI overrides already applied

    Returns
    -------
    PipelineContext
        Final context, including the submitted job ids

    Raises
    ------
    PipelineError
        If validation or submission fails
    """
    if args.command == "merge":
        output_dir = Path(args.output_directory)
        base_name = compute_base_name(output_dir, getattr(args, "name", None))
        config["input_file"] = str(args.input_file)
        stages = build_merge_stages(config)
    elif args.command == "convert":
        output_prefix = Path(args.output_prefix)
        output_dir = output_prefix.absolute().parent
        base_name = output_prefix.name
        stages = build_convert_stages(args.bfile_prefix, output_prefix)
    else:
        raise ValueError(f"Unknown command: {args.command}")

    workspace = Workspace(
        output_dir,
        base_name,
        log_root=config.get("log_root", "poseidon2_tmp_and_log"),
        timestamp_format=config.get("timestamp_format", "%Y_%m_%d_%H_%M"),
    )
    handler = _add_run_log_handler(workspace.get_run_path(RUN_LOG_FILE))

    try:
        logger.info(f"Run directory: {workspace.run_dir}")
        scheduler = create_scheduler(config)
        context = PipelineContext(
            args=args, config=config, workspace=workspace, scheduler=scheduler
        )
        logger.info(f"Pipeline configured with {len(stages)} stages ({scheduler.name} scheduler)")

        runner = PipelineRunner()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Execution plan:")
            for i, level in enumerate(runner.dry_run(stages)):
                logger.debug(f"  Level {i}: {level}")

        try:
            context = runner.run(stages, context)
        except Exception:
            logger.info(f"Nothing further submitted; intermediate files kept in {workspace.run_dir}")
            raise

        for job in context.job_graph.submission_order():
            logger.info(f"  {job.name}: {job.job_id}")
        logger.info("All jobs submitted; check the scheduler for their progress")
        return context
    finally:
        logging.getLogger("poseidon2").removeHandler(handler)
        handler.close()
