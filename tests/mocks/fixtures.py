"""Test fixtures and factory functions."""

import argparse
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from poseidon2.config import load_config
from poseidon2.pipeline_core import PipelineContext, Workspace
from poseidon2.scheduler import DryRunScheduler


def create_fam(path: Path, samples: Sequence[Tuple[str, str]]) -> Path:
    """Write a PLINK .fam file with the given (FID, IID) pairs.

    Parameters
    ----------
    path : Path
        Where to write the file
    samples : sequence of (str, str)
        Family and individual IDs

    Returns
    -------
    Path
        Path to created file
    """
    with open(path, "w") as f:
        for fid, iid in samples:
            f.write(f"{fid} {iid} 0 0 1 -9\n")
    return path


def create_janno(path: Path, rows: List[Dict[str, str]], columns: List[str] = None) -> Path:
    """Write a tab-separated janno file.

    Parameters
    ----------
    path : Path
        Where to write the file
    rows : list of dict
        One dict per individual
    columns : list of str, optional
        Column order (default: keys of the first row)

    Returns
    -------
    Path
        Path to created file
    """
    columns = columns or list(rows[0].keys())
    with open(path, "w") as f:
        f.write("\t".join(columns) + "\n")
        for row in rows:
            f.write("\t".join(row.get(c, "") for c in columns) + "\n")
    return path


def create_module(
    root: Path,
    name: str,
    samples: Sequence[Tuple[str, str]] = (("POP", "ind1"),),
    janno_rows: Optional[List[Dict[str, str]]] = None,
    skip: Sequence[str] = (),
) -> Path:
    """Create a Poseidon module directory.

    The genotype files other than the ``.fam`` only need to exist; their
    content is never read.

    Parameters
    ----------
    root : Path
        Parent directory
    name : str
        Module directory name, also the file prefix
    samples : sequence of (str, str)
        Samples written to the ``.fam``
    janno_rows : list of dict, optional
        Janno rows (default: one ``Individual_ID`` row per sample)
    skip : sequence of str
        Kinds not to create (``bed``, ``bim``, ``fam``, ``janno``)

    Returns
    -------
    Path
        The module directory
    """
    module_dir = root / name
    module_dir.mkdir(parents=True, exist_ok=True)
    if "bed" not in skip:
        (module_dir / f"{name}.bed").write_bytes(b"\x6c\x1b\x01")
    if "bim" not in skip:
        (module_dir / f"{name}.bim").write_text("1\trs1\t0\t100\tA\tG\n")
    if "fam" not in skip:
        create_fam(module_dir / f"{name}.fam", samples)
    if "janno" not in skip:
        if janno_rows is None:
            janno_rows = [{"Individual_ID": iid} for _, iid in samples]
        create_janno(module_dir / f"{name}.janno", janno_rows)
    return module_dir


def create_module_list(path: Path, module_dirs: Sequence[Path]) -> Path:
    """Write a module list file, one directory per line."""
    path.write_text("".join(f"{d}\n" for d in module_dirs))
    return path


def create_test_context(
    output_dir: str = None,
    base_name: str = "test_run",
    config_overrides: Optional[dict] = None,
    scheduler=None,
    **kwargs,
) -> PipelineContext:
    """Create a test PipelineContext with sensible defaults.

    The run directory root is placed inside the output directory so tests
    never write to the current working directory.

    Parameters
    ----------
    output_dir : str, optional
        Output directory (temp dir if not specified)
    base_name : str
        Base name of the merged files
    config_overrides : dict, optional
        Config values to override
    scheduler : Scheduler, optional
        Scheduler (default: a DryRunScheduler)
    **kwargs
        Additional arguments for argparse.Namespace

    Returns
    -------
    PipelineContext
        Configured test context
    """
    output_dir = Path(output_dir or tempfile.mkdtemp())

    default_args = {
        "command": "merge",
        "input_file": None,
        "output_directory": str(output_dir),
        "name": base_name,
        "config": None,
    }
    default_args.update(kwargs)
    args = argparse.Namespace(**default_args)

    config = load_config()
    config["log_root"] = str(output_dir / "logs")
    if config_overrides:
        config.update(config_overrides)

    workspace = Workspace(output_dir, base_name, log_root=config["log_root"])

    return PipelineContext(
        args=args,
        config=config,
        workspace=workspace,
        scheduler=scheduler if scheduler is not None else DryRunScheduler(),
    )
