# File: poseidon2/config.py
# Location: poseidon2/poseidon2/config.py

"""
Configuration management module.

This module handles loading configuration from a JSON file.
All default values reside in config.json, which is included in
the installed package directory.

If no config_file is provided, this module attempts to load the default
config.json from the package installation directory.
"""

import json
import os
from typing import Any, Dict, Optional

MISSING_FILE_POLICIES = ("strict", "lenient")
SCHEMA_POLICIES = ("union", "strict")
SCHEDULERS = ("slurm", "local", "dry-run")


def load_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a JSON file.

    If no config_file is provided, the function loads the 'config.json'
    from the installed package directory. A user file is layered on top of
    the packaged defaults, so it only needs to name the keys it changes.

    Parameters
    ----------
    config_file : str, optional
        Path to a configuration file in JSON format. If None, defaults to
        the package-installed 'config.json'.

    Returns
    -------
    dict
        Configuration dictionary loaded from the JSON file.

    Raises
    ------
    FileNotFoundError
        If the specified configuration file does not exist.
    ValueError
        If there is an error parsing the JSON configuration file or one of the
        policy values is unknown.
    """
    default_file = os.path.join(os.path.dirname(__file__), "config.json")
    config = _read_json(default_file)

    if config_file:
        user_config = _read_json(config_file)
        resources = dict(config.get("resources", {}))
        for job_name, request in user_config.pop("resources", {}).items():
            resources[job_name] = {**resources.get(job_name, {}), **request}
        config.update(user_config)
        config["resources"] = resources

    validate_config(config)
    return config


def _read_json(config_file: str) -> Dict[str, Any]:
    if not os.path.exists(config_file):
        raise FileNotFoundError(f"Configuration file '{config_file}' not found.")

    with open(config_file, "r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Error parsing JSON configuration: {e}")


def validate_config(config: Dict[str, Any]) -> None:
    """Check the enumerated configuration values."""
    checks = [
        ("missing_file_policy", MISSING_FILE_POLICIES),
        ("metadata_schema_policy", SCHEMA_POLICIES),
        ("scheduler", SCHEDULERS),
    ]
    for key, allowed in checks:
        value = config.get(key)
        if value not in allowed:
            raise ValueError(
                f"Invalid value for '{key}': {value!r} (expected one of {', '.join(allowed)})"
            )
