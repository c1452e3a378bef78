"""Tests for manifest construction."""

import logging

import pytest

from poseidon2.file_lists import (
    build_genotype_manifest,
    build_metadata_manifest,
    read_module_list,
    scan_modules,
)
from poseidon2.pipeline_core.error_handling import MissingFileError
from tests.mocks.fixtures import create_module, create_module_list


class TestReadModuleList:
    """Test read_module_list."""

    def test_blank_lines_are_ignored(self, tmp_path):
        """Only non-blank lines name modules, in file order."""
        input_file = tmp_path / "modules.txt"
        input_file.write_text("/data/m2\n\n   \n/data/m1\n")

        paths = read_module_list(input_file)

        assert [str(p) for p in paths] == ["/data/m2", "/data/m1"]

    def test_missing_file(self, tmp_path):
        """A missing module list raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            read_module_list(tmp_path / "nope.txt")


class TestGenotypeManifest:
    """Test build_genotype_manifest."""

    def test_one_entry_per_module_in_order(self, tmp_path):
        """Entries follow module-list order and hold bed, bim, fam."""
        m2 = create_module(tmp_path, "m2")
        m1 = create_module(tmp_path, "m1")
        modules = scan_modules([m2, m1])

        manifest = build_genotype_manifest(modules)

        assert len(manifest) == 2
        assert manifest.entries[0].files == (m2 / "m2.bed", m2 / "m2.bim", m2 / "m2.fam")
        assert manifest.entries[1].module == m1
        lines = manifest.to_text().splitlines()
        assert lines[0] == f"{m2 / 'm2.bed'} {m2 / 'm2.bim'} {m2 / 'm2.fam'}"

    def test_strict_policy_raises(self, tmp_path):
        """A missing .bim aborts under the strict policy."""
        m1 = create_module(tmp_path, "m1")
        m2 = create_module(tmp_path, "m2", skip=["bim"])

        with pytest.raises(MissingFileError) as exc_info:
            build_genotype_manifest(scan_modules([m1, m2]), "strict")

        assert exc_info.value.module == str(m2)
        assert exc_info.value.kind == "bim"

    def test_lenient_policy_records_gap(self, tmp_path, caplog):
        """A missing .bim becomes a gap with a warning under the lenient policy."""
        m1 = create_module(tmp_path, "m1")
        m2 = create_module(tmp_path, "m2", skip=["bim"])

        with caplog.at_level(logging.WARNING):
            manifest = build_genotype_manifest(scan_modules([m1, m2]), "lenient")

        assert len(manifest) == 2
        assert manifest.entries[1].is_gap
        assert manifest.excluded_modules() == [m2]
        assert len(manifest.complete_entries()) == 1
        assert "m2" in manifest.warnings[0]
        assert "excluded from the genotype merge" in caplog.text

    def test_lenient_missing_directory_is_a_gap(self, tmp_path):
        """A listed directory that does not exist is excluded under the lenient policy."""
        m1 = create_module(tmp_path, "m1")
        gone = tmp_path / "gone"

        modules = scan_modules([m1, gone], policy="lenient")
        genotype = build_genotype_manifest(modules, "lenient")
        metadata = build_metadata_manifest(modules, "lenient", genotype_manifest=genotype)

        assert genotype.excluded_modules() == [gone]
        assert "does not exist" in genotype.warnings[0]
        assert metadata.entries[1].is_gap

    def test_strict_missing_directory(self, tmp_path):
        """A listed directory that does not exist aborts under the strict policy."""
        with pytest.raises(MissingFileError, match="Module directory not found"):
            scan_modules([tmp_path / "gone"], policy="strict")

    def test_gaps_are_empty_lines(self, tmp_path):
        """Gaps keep their line so line i still belongs to module i."""
        m1 = create_module(tmp_path, "m1", skip=["bed"])
        m2 = create_module(tmp_path, "m2")

        manifest = build_genotype_manifest(scan_modules([m1, m2]), "lenient")

        assert manifest.to_text().splitlines()[0] == ""
        assert len(manifest.to_text(include_gaps=False).splitlines()) == 1

    def test_rebuild_is_byte_identical(self, tmp_path):
        """Writing the manifest twice from the same inputs gives the same bytes."""
        mods = [create_module(tmp_path, name) for name in ["a", "b", "c"]]
        first = build_genotype_manifest(scan_modules(mods)).write(tmp_path / "one.txt")
        second = build_genotype_manifest(scan_modules(mods)).write(tmp_path / "two.txt")

        assert first.read_bytes() == second.read_bytes()


class TestMetadataManifest:
    """Test build_metadata_manifest."""

    def test_one_janno_per_module(self, tmp_path):
        """Each entry holds the module's janno file."""
        m1 = create_module(tmp_path, "m1")
        manifest = build_metadata_manifest(scan_modules([m1]))

        assert manifest.entries[0].files == (m1 / "m1.janno",)

    def test_missing_janno_strict(self, tmp_path):
        """A module without janno aborts under the strict policy."""
        m1 = create_module(tmp_path, "m1", skip=["janno"])

        with pytest.raises(MissingFileError) as exc_info:
            build_metadata_manifest(scan_modules([m1]), "strict")

        assert exc_info.value.kind == "metadata"

    def test_missing_janno_lenient(self, tmp_path):
        """A module without janno becomes a gap under the lenient policy."""
        m1 = create_module(tmp_path, "m1", skip=["janno"])
        m2 = create_module(tmp_path, "m2")

        manifest = build_metadata_manifest(scan_modules([m1, m2]), "lenient")

        assert manifest.entries[0].is_gap
        assert not manifest.entries[1].is_gap
        assert "placeholder rows" in manifest.warnings[0]

    def test_genotype_gaps_propagate(self, tmp_path):
        """Metadata of a module excluded from the genotype merge is excluded too."""
        m1 = create_module(tmp_path, "m1")
        m2 = create_module(tmp_path, "m2", skip=["bim"])
        modules = scan_modules([m1, m2])
        genotype_manifest = build_genotype_manifest(modules, "lenient")

        manifest = build_metadata_manifest(modules, "lenient", genotype_manifest)

        assert len(manifest) == 2
        assert manifest.entries[1].is_gap
        assert manifest.excluded_modules() == [m2]


def test_module_list_round_trip(tmp_path):
    """Module list written by the fixture is read back in order."""
    mods = [create_module(tmp_path, n) for n in ["x", "y"]]
    input_file = create_module_list(tmp_path / "modules.txt", mods)

    assert read_module_list(input_file) == mods
