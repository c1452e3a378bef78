# File: poseidon2/convertf.py
# Location: poseidon2/poseidon2/convertf.py

"""
Parameter files for EIGENSOFT convertf.

convertf reads its input and output paths from a ``key: value`` parameter
file. The file is rendered from a Jinja2 template so the same dataset name
and paths always give byte-identical content.
"""

from pathlib import Path
from typing import Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined

TEMPLATES_DIR = Path(__file__).parent / "templates"


def render_convertf_par(
    input_prefix: Union[str, Path],
    output_prefix: Union[str, Path],
    output_format: str = "EIGENSTRAT",
    family_names: bool = False,
) -> str:
    """
    Render a convertf parameter file for a PLINK binary dataset.

    Parameters
    ----------
    input_prefix : str or Path
        Path prefix of the ``.bed``/``.bim``/``.fam`` input files.
    output_prefix : str or Path
        Path prefix of the ``.geno``/``.snp``/``.ind`` output files.
    output_format : str
        convertf ``outputformat`` value.
    family_names : bool
        Whether convertf prefixes sample names with the family ID.

    Returns
    -------
    str
        The parameter file content.
    """
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    template = env.get_template("convertf.par.j2")
    return template.render(
        input_prefix=Path(input_prefix).absolute(),
        output_prefix=Path(output_prefix).absolute(),
        output_format=output_format,
        family_names=family_names,
    )


def write_convertf_par(
    path: Union[str, Path],
    input_prefix: Union[str, Path],
    output_prefix: Union[str, Path],
    output_format: str = "EIGENSTRAT",
) -> Path:
    """Render a convertf parameter file and write it to ``path``."""
    path = Path(path)
    path.write_text(
        render_convertf_par(input_prefix, output_prefix, output_format), encoding="utf-8"
    )
    return path
