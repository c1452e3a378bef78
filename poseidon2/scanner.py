# File: poseidon2/scanner.py
# Location: poseidon2/poseidon2/scanner.py

"""
Module directory scanning.

A Poseidon module is a directory holding one PLINK binary dataset
(``.bed``/``.bim``/``.fam``) and one janno metadata table. This module locates
those files below a module directory, ignoring hidden files and directories.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from .pipeline_core.error_handling import AmbiguousFileError, MissingFileError

logger = logging.getLogger(__name__)

GENOTYPE_KINDS = ("bed", "bim", "fam")
METADATA_KIND = "metadata"


@dataclass
class Module:
    """Files discovered in one module directory.

    Attributes
    ----------
    path : Path
        Absolute path of the module directory
    genotype_files : Dict[str, Optional[Path]]
        The ``bed``, ``bim`` and ``fam`` file of the module, None where absent
    metadata_file : Optional[Path]
        The janno table of the module, None where absent
    found : bool
        False if the module directory does not exist
    """

    path: Path
    genotype_files: Dict[str, Optional[Path]] = field(
        default_factory=lambda: {kind: None for kind in GENOTYPE_KINDS}
    )
    metadata_file: Optional[Path] = None
    found: bool = True

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def missing_genotype_kinds(self) -> List[str]:
        return [kind for kind in GENOTYPE_KINDS if self.genotype_files.get(kind) is None]

    @property
    def has_genotype_data(self) -> bool:
        return not self.missing_genotype_kinds

    @property
    def fam_file(self) -> Optional[Path]:
        return self.genotype_files.get("fam")


def _suffix_for(kind: str, metadata_suffix: str) -> str:
    if kind == METADATA_KIND:
        return metadata_suffix
    if kind in GENOTYPE_KINDS:
        return f".{kind}"
    raise ValueError(f"Unknown file kind: {kind}")


def find_module_files(
    module_dir: Union[str, Path], kind: str, metadata_suffix: str = ".janno"
) -> List[Path]:
    """
    Find all files of one kind below a module directory.

    The search is recursive. Files and directories whose name starts with a
    dot are skipped. The result is sorted so repeated scans of an unchanged
    directory return the same list.

    Parameters
    ----------
    module_dir : str or Path
        Module directory to search.
    kind : str
        One of ``bed``, ``bim``, ``fam`` or ``metadata``.
    metadata_suffix : str
        File suffix identifying metadata tables.
    missing_ok : bool
        Return a module without files instead of raising when the directory
        does not exist.

    Returns
    -------
    list of Path
        Absolute paths of all matches; empty if there are none.
    """
    suffix = _suffix_for(kind, metadata_suffix)
    root = Path(module_dir).absolute()
    matches: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for filename in filenames:
            if filename.startswith("."):
                continue
            if filename.endswith(suffix):
                matches.append(Path(dirpath) / filename)
    return sorted(matches)


def _single_match(module_dir: Path, kind: str, matches: List[Path]) -> Optional[Path]:
    if len(matches) > 1:
        raise AmbiguousFileError(str(module_dir), kind, [str(m) for m in matches])
    return matches[0] if matches else None


def scan_module(
    module_dir: Union[str, Path], metadata_suffix: str = ".janno", missing_ok: bool = False
) -> Module:
    """
    Scan a module directory for its genotype triplet and metadata table.

    Parameters
    ----------
    module_dir : str or Path
        The module directory.
    metadata_suffix : str
        File suffix identifying metadata tables.
    missing_ok : bool
        Return a module without files instead of raising when the directory
        does not exist.

    Returns
    -------
    Module
        Discovered files; kinds without a match are None.

    Raises
    ------
    MissingFileError
        If the module directory itself does not exist and ``missing_ok`` is
        False.
    AmbiguousFileError
        If any kind has more than one match.
    """
    path = Path(module_dir).absolute()
    if not path.is_dir():
        if missing_ok:
            logger.warning(f"Module directory {module_dir} does not exist")
            return Module(path=path, found=False)
        raise MissingFileError(
            str(module_dir),
            "module directory",
            message=f"Module directory not found: {module_dir}",
        )

    module = Module(path=path)
    for kind in GENOTYPE_KINDS:
        matches = find_module_files(path, kind, metadata_suffix)
        module.genotype_files[kind] = _single_match(path, kind, matches)

    matches = find_module_files(path, METADATA_KIND, metadata_suffix)
    module.metadata_file = _single_match(path, METADATA_KIND, matches)

    logger.debug(
        f"Scanned module {path}: genotype={module.genotype_files}, metadata={module.metadata_file}"
    )
    return module
