# File: poseidon2/file_lists.py
# Location: poseidon2/poseidon2/file_lists.py

"""
File list (manifest) construction.

Reads the list of module directories and builds two ordered manifests from
the scanned modules: one with the genotype triplet of each module (this is
also the PLINK ``--merge-list`` format) and one with the metadata table of
each module. Manifests keep one entry per module, in module-list order.

A module lacking an expected file either aborts the build (``strict``) or is
recorded as a gap with a warning and left out of downstream stages
(``lenient``).
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from .pipeline_core.error_handling import MissingFileError
from .scanner import GENOTYPE_KINDS, Module, scan_module
from .utils import read_non_blank_lines

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ManifestEntry:
    """Files contributed by one module; an empty ``files`` tuple marks a gap."""

    module: Path
    files: Tuple[Path, ...] = ()

    @property
    def is_gap(self) -> bool:
        return not self.files

    def to_line(self) -> str:
        return " ".join(str(f) for f in self.files)


@dataclass
class Manifest:
    """Ordered per-module file groups of one kind.

    Attributes
    ----------
    kind : str
        ``genotype`` or ``metadata``
    entries : List[ManifestEntry]
        One entry per module, in module-list order
    warnings : List[str]
        Messages recorded for modules left out under the lenient policy
    """

    kind: str
    entries: List[ManifestEntry] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def complete_entries(self) -> List[ManifestEntry]:
        return [entry for entry in self.entries if not entry.is_gap]

    def gaps(self) -> List[ManifestEntry]:
        return [entry for entry in self.entries if entry.is_gap]

    def excluded_modules(self) -> List[Path]:
        return [entry.module for entry in self.gaps()]

    def to_text(self, include_gaps: bool = True) -> str:
        """Render one line per entry; gaps become empty lines unless excluded."""
        entries = self.entries if include_gaps else self.complete_entries()
        return "".join(f"{entry.to_line()}\n" for entry in entries)

    def write(self, path: Union[str, Path], include_gaps: bool = True) -> Path:
        """Write the manifest to ``path`` and return the path."""
        path = Path(path)
        path.write_text(self.to_text(include_gaps=include_gaps), encoding="utf-8")
        logger.debug(f"Wrote {self.kind} manifest with {len(self.entries)} entries to {path}")
        return path


def read_module_list(input_file: Union[str, Path]) -> List[Path]:
    """
    Read module directory paths from a newline-delimited file.

    Parameters
    ----------
    input_file : str or Path
        File with one module directory per line; blank lines are ignored.

    Returns
    -------
    list of Path
        Module directories in file order.
    """
    paths = [Path(line) for line in read_non_blank_lines(str(input_file))]
    logger.info(f"Read {len(paths)} module directories from {input_file}")
    return paths


def scan_modules(
    module_paths: Sequence[Path], metadata_suffix: str = ".janno", policy: str = "strict"
) -> List[Module]:
    """Scan every module directory, preserving order.

    Under the lenient policy a directory that does not exist becomes a module
    without files, which the manifests then record as a gap.
    """
    missing_ok = policy == "lenient"
    return [scan_module(path, metadata_suffix, missing_ok=missing_ok) for path in module_paths]


def _record_gap(manifest: Manifest, module: Module, message: str) -> None:
    logger.warning(message)
    manifest.warnings.append(message)
    manifest.entries.append(ManifestEntry(module=module.path))


def build_genotype_manifest(modules: Sequence[Module], policy: str = "strict") -> Manifest:
    """
    Build the genotype manifest from scanned modules.

    Parameters
    ----------
    modules : sequence of Module
        Scanned modules in module-list order.
    policy : {"strict", "lenient"}
        What to do with a module missing part of its genotype triplet.

    Returns
    -------
    Manifest
        One ``bed bim fam`` entry per module.

    Raises
    ------
    MissingFileError
        Under the strict policy, for the first incomplete module.
    """
    manifest = Manifest(kind="genotype")
    for module in modules:
        missing = module.missing_genotype_kinds
        if missing:
            if policy == "strict":
                raise MissingFileError(str(module.path), missing[0])
            if module.found:
                reason = f"lacks {', '.join('.' + k for k in missing)}"
            else:
                reason = "does not exist"
            _record_gap(
                manifest, module, f"Module {module.path} {reason}; excluded from the genotype merge"
            )
            continue
        files = tuple(module.genotype_files[kind] for kind in GENOTYPE_KINDS)
        manifest.entries.append(ManifestEntry(module=module.path, files=files))
    return manifest


def build_metadata_manifest(
    modules: Sequence[Module],
    policy: str = "strict",
    genotype_manifest: Optional[Manifest] = None,
) -> Manifest:
    """
    Build the metadata manifest from scanned modules.

    Modules that are gaps in ``genotype_manifest`` are gaps here as well, so
    the merged metadata never describes samples absent from the merged
    genotypes.

    Parameters
    ----------
    modules : sequence of Module
        Scanned modules in module-list order.
    policy : {"strict", "lenient"}
        What to do with a module without a metadata table.
    genotype_manifest : Manifest, optional
        Genotype manifest built from the same modules.

    Returns
    -------
    Manifest
        One single-file entry per module.

    Raises
    ------
    MissingFileError
        Under the strict policy, for the first module without a metadata table.
    """
    excluded = set(genotype_manifest.excluded_modules()) if genotype_manifest else set()
    manifest = Manifest(kind="metadata")
    for module in modules:
        if module.path in excluded:
            _record_gap(
                manifest,
                module,
                f"Module {module.path} has no complete genotype data; "
                "its metadata is excluded from the merge",
            )
            continue
        if module.metadata_file is None:
            if policy == "strict":
                raise MissingFileError(str(module.path), "metadata")
            _record_gap(
                manifest,
                module,
                f"Module {module.path} has no metadata table; its samples get placeholder rows",
            )
            continue
        manifest.entries.append(ManifestEntry(module=module.path, files=(module.metadata_file,)))
    return manifest
