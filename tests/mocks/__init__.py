"""Test mocks and fixtures for poseidon2 tests."""

from .fixtures import (
    create_fam,
    create_janno,
    create_module,
    create_module_list,
    create_test_context,
)

__all__ = [
    "create_fam",
    "create_janno",
    "create_module",
    "create_module_list",
    "create_test_context",
]
