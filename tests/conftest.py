"""Shared pytest fixtures for all test modules."""

import pytest

from tests.mocks.fixtures import create_module, create_module_list


@pytest.fixture
def two_modules(tmp_path):
    """Two complete modules m1 (A, B) and m2 (C) with differing janno columns."""
    m1 = create_module(
        tmp_path / "modules",
        "m1",
        samples=[("P1", "A"), ("P1", "B")],
        janno_rows=[
            {"Individual_ID": "A", "Sex": "M"},
            {"Individual_ID": "B", "Sex": "F"},
        ],
    )
    m2 = create_module(
        tmp_path / "modules",
        "m2",
        samples=[("P2", "C")],
        janno_rows=[{"Individual_ID": "C", "Age": "40"}],
    )
    return [m1, m2]


@pytest.fixture
def module_list(tmp_path, two_modules):
    """Module list file naming the two modules."""
    return create_module_list(tmp_path / "modules.txt", two_modules)
