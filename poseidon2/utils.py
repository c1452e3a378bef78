# File: poseidon2/utils.py
# Location: poseidon2/poseidon2/utils.py

"""
Utility functions module.

Provides helper functions for running external commands, checking tool
availability and reading line-oriented input files.
"""

import logging
import shlex
import shutil
import subprocess
from typing import List, Optional, Sequence

from .pipeline_core.error_handling import ExternalToolError

logger = logging.getLogger("poseidon2")


def check_external_tools(tools: Sequence[str]) -> bool:
    """
    Check if external tools are available in PATH.

    Parameters
    ----------
    tools : Sequence[str]
        Tool names to check for availability

    Returns
    -------
    bool
        True if all tools are available, False otherwise
    """
    for tool in tools:
        if not shutil.which(tool):
            logger.error(f"Required tool not found in PATH: {tool}")
            return False
        logger.debug(f"Found tool in PATH: {tool}")
    return True


def run_command(cmd: Sequence[str], output_file: Optional[str] = None) -> str:
    """
    Run a command and write stdout to output_file if provided, else return stdout.

    Parameters
    ----------
    cmd : sequence of str
        Command and its arguments.
    output_file : str, optional
        Path to a file where stdout should be written. If None,
        returns stdout as a string.

    Returns
    -------
    str
        If output_file is None, returns the command stdout as a string.
        If output_file is provided, returns output_file after completion.

    Raises
    ------
    ExternalToolError
        If the command cannot be started or returns a non-zero exit code.
    """
    cmd = [str(c) for c in cmd]
    logger.debug("Running command: %s", shlex.join(cmd))
    try:
        if output_file:
            with open(output_file, "w", encoding="utf-8") as out_f:
                result = subprocess.run(cmd, stdout=out_f, stderr=subprocess.PIPE, text=True)
        else:
            result = subprocess.run(
                cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True
            )
    except OSError as e:
        raise ExternalToolError(cmd, message=f"Could not run {cmd[0]}: {e}")

    if result.returncode != 0:
        logger.error("Command failed: %s\nError: %s", shlex.join(cmd), result.stderr)
        raise ExternalToolError(cmd, result.returncode, result.stderr or "")

    logger.debug("Command completed successfully.")
    if output_file:
        return output_file
    return result.stdout


def read_non_blank_lines(file_path: str) -> List[str]:
    """
    Read a text file and return its stripped, non-blank lines in order.

    Parameters
    ----------
    file_path : str
        Path to a newline-delimited text file.

    Returns
    -------
    list of str
        Lines with surrounding whitespace removed; blank lines are skipped.
    """
    lines: List[str] = []
    with open(file_path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                lines.append(line)
    return lines
