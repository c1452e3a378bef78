"""
Pipeline stages for poseidon2.

This package contains all stage implementations organized by category:
- setup_stages: Module discovery, manifests and sample order
- metadata_stages: Local janno merge
- job_stages: PLINK and convertf job construction and submission
"""

from .job_stages import (
    FormatConversionStage,
    GenotypeMergeStage,
    JobSubmissionStage,
    SnpExtractionStage,
)
from .metadata_stages import MetadataMergeStage

# Import all stages for convenient access
from .setup_stages import (
    GenotypeManifestStage,
    MetadataManifestStage,
    ModuleScanningStage,
    SampleOrderStage,
)

__all__ = [
    # Setup stages
    "ModuleScanningStage",
    "GenotypeManifestStage",
    "MetadataManifestStage",
    "SampleOrderStage",
    # Metadata stages
    "MetadataMergeStage",
    # Job stages
    "GenotypeMergeStage",
    "SnpExtractionStage",
    "FormatConversionStage",
    "JobSubmissionStage",
]
