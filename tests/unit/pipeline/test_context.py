"""Unit tests for PipelineContext."""

from poseidon2.jobs import Job
from tests.mocks.fixtures import create_test_context


class TestPipelineContext:
    """Test suite for PipelineContext."""

    def test_initial_state(self, tmp_path):
        """A fresh context has no results and an empty job graph."""
        context = create_test_context(output_dir=str(tmp_path))

        assert context.completed_stages == set()
        assert context.sample_order == []
        assert context.genotype_manifest is None
        assert len(context.job_graph) == 0
        assert context.job_ids == {}

    def test_mark_complete(self, tmp_path):
        """Completed stages are remembered by name."""
        context = create_test_context(output_dir=str(tmp_path))

        context.mark_complete("a")

        assert context.is_complete("a")
        assert not context.is_complete("b")

    def test_job_graphs_are_not_shared(self, tmp_path):
        """Each context gets its own job graph."""
        first = create_test_context(output_dir=str(tmp_path / "one"))
        second = create_test_context(output_dir=str(tmp_path / "two"))

        first.job_graph.add(Job("a", ["true"]))

        assert len(second.job_graph) == 0

    def test_repr(self, tmp_path):
        """The representation summarizes progress."""
        context = create_test_context(output_dir=str(tmp_path))

        assert "stages_completed=0" in repr(context)
        assert "jobs=0" in repr(context)
