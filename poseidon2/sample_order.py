# File: poseidon2/sample_order.py
# Location: poseidon2/poseidon2/sample_order.py

"""
Canonical sample order.

The merged genotype data and the merged janno table must list the same
individuals in the same order. This module derives that order once, from the
first two columns (family ID, individual ID) of every included module's
``.fam`` file in module-list order, and writes it in the format PLINK expects
for ``--indiv-sort f``.
"""

import logging
from pathlib import Path
from typing import Dict, List, NamedTuple, Union

import pandas as pd

from .file_lists import Manifest
from .pipeline_core.error_handling import DuplicateSampleError, FileFormatError

logger = logging.getLogger(__name__)


class SampleId(NamedTuple):
    """Composite sample identifier as used by PLINK."""

    family_id: str
    individual_id: str

    def __str__(self) -> str:
        return f"{self.family_id} {self.individual_id}"


def read_fam_samples(fam_file: Union[str, Path]) -> List[SampleId]:
    """
    Read the sample identifiers of a PLINK ``.fam`` file.

    Args:
        fam_file: Path to the ``.fam`` file

    Returns:
        Sample identifiers in file order

    Raises:
        FileFormatError: If a record has fewer than two fields or the lines
            have differing numbers of fields
    """
    try:
        fam_df = pd.read_csv(
            fam_file, sep=r"\s+", header=None, dtype=str, keep_default_na=False
        )
    except pd.errors.EmptyDataError:
        logger.warning(f"FAM file {fam_file} is empty")
        return []
    except pd.errors.ParserError as e:
        raise FileFormatError(
            str(fam_file), f"the same number of whitespace-separated columns on every line ({e})"
        ) from e

    if fam_df.shape[1] < 2:
        raise FileFormatError(str(fam_file), "at least two whitespace-separated columns")
    ids = fam_df[[0, 1]].fillna("")
    if (ids == "").any().any():
        raise FileFormatError(str(fam_file), "family and individual ID on every line")

    return [SampleId(fid, iid) for fid, iid in zip(ids[0], ids[1])]


def resolve_sample_order(genotype_manifest: Manifest) -> List[SampleId]:
    """
    Build the canonical sample order from a genotype manifest.

    Args:
        genotype_manifest: Genotype manifest; gap entries are skipped

    Returns:
        Unique sample identifiers, concatenated across modules in manifest order

    Raises:
        DuplicateSampleError: If an identifier occurs twice, within one module
            or across modules
    """
    order: List[SampleId] = []
    sources: Dict[SampleId, str] = {}
    for entry in genotype_manifest.complete_entries():
        fam_file = entry.files[-1]
        samples = read_fam_samples(fam_file)
        for sample in samples:
            if sample in sources:
                raise DuplicateSampleError(str(sample), [sources[sample], str(fam_file)])
            sources[sample] = str(fam_file)
            order.append(sample)
        logger.debug(f"{len(samples)} samples from {fam_file}")

    logger.info(
        f"Canonical sample order has {len(order)} samples "
        f"from {len(genotype_manifest.complete_entries())} modules"
    )
    return order


def write_order_file(order: List[SampleId], path: Union[str, Path]) -> Path:
    """Write one ``FID<TAB>IID`` line per sample."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        for sample in order:
            f.write(f"{sample.family_id}\t{sample.individual_id}\n")
    return path
