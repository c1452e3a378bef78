"""Tests for convertf parameter files."""

from pathlib import Path

from poseidon2.convertf import render_convertf_par, write_convertf_par


def test_render_contains_all_keys(tmp_path):
    """Input triplet and output triplet are derived from the prefixes."""
    content = render_convertf_par(tmp_path / "in" / "x_TF", tmp_path / "out" / "x_TF")

    lines = dict(line.split(": ", 1) for line in content.splitlines())
    assert lines["genotypename"] == str(tmp_path / "in" / "x_TF.bed")
    assert lines["snpname"] == str(tmp_path / "in" / "x_TF.bim")
    assert lines["indivname"] == str(tmp_path / "in" / "x_TF.fam")
    assert lines["outputformat"] == "EIGENSTRAT"
    assert lines["genotypeoutname"] == str(tmp_path / "out" / "x_TF.geno")
    assert lines["snpoutname"] == str(tmp_path / "out" / "x_TF.snp")
    assert lines["indivoutname"] == str(tmp_path / "out" / "x_TF.ind")
    assert lines["familynames"] == "NO"
    assert content.endswith("\n")


def test_relative_prefixes_become_absolute():
    """Parameter files never depend on the working directory of the job."""
    content = render_convertf_par("data/x", "data/y")

    assert f"genotypename: {Path('data/x').absolute()}.bed" in content


def test_family_names_flag(tmp_path):
    """familynames is YES when requested."""
    assert "familynames: YES" in render_convertf_par(tmp_path / "x", tmp_path / "y", family_names=True)


def test_rendering_is_deterministic(tmp_path):
    """Same inputs give byte-identical parameter files."""
    first = write_convertf_par(tmp_path / "a.par", tmp_path / "x", tmp_path / "y")
    second = write_convertf_par(tmp_path / "b.par", tmp_path / "x", tmp_path / "y")

    assert first.read_bytes() == second.read_bytes()
