"""Tests for the run harness."""

import numpy as np
import pytest

from rank_sts.config import RunConfiguration, RunContext
from rank_sts.errors import OutputError
from rank_sts.harness import FINAL_REPORT_NAME, run_streams

BLOCK = 32 * 32


def streams(n: int):
    rng = np.random.default_rng(99)
    for _ in range(n):
        yield rng.integers(0, 2, 20 * BLOCK, dtype=np.uint8)


class TestRunStreams:
    def test_writes_final_report(self, tmp_path):
        ctx = RunContext(config=RunConfiguration(output_dir=tmp_path))
        summary = run_streams(ctx, streams(3))

        report = (tmp_path / FINAL_REPORT_NAME).read_text().splitlines()
        assert report[1].endswith("STATISTICAL TEST")
        assert report[3].endswith("Rank")
        assert "/3" in report[3]
        assert ctx.final_report is None
        assert tmp_path / FINAL_REPORT_NAME in summary.artifacts
        assert tmp_path / "Rank" / "stats.txt" in summary.artifacts

    def test_summary(self, tmp_path):
        ctx = RunContext(config=RunConfiguration(output_dir=tmp_path))
        summary = run_streams(ctx, streams(4))
        assert len(summary.stats) == 4
        assert len(summary.p_values) == 4
        assert summary.counters.count == 4
        assert summary.counters.success + summary.counters.failure == 4
        assert summary.passed == summary.counters.success
        assert summary.metrics[0].sample_count == 4
        assert ctx.max_general_sample_size == 4

    def test_constants_set_up_on_demand(self, tmp_path):
        ctx = RunContext(config=RunConfiguration(output_dir=tmp_path))
        assert not ctx.constants_ready
        run_streams(ctx, streams(1))
        assert ctx.constants_ready

    def test_results_disabled(self, tmp_path):
        out = tmp_path / "out"
        ctx = RunContext(config=RunConfiguration(output_dir=out, results_enabled=False))
        summary = run_streams(ctx, streams(2))
        assert not out.exists()
        assert summary.artifacts == []
        assert summary.metrics[0].sample_count == 2

    def test_partitions(self, tmp_path):
        ctx = RunContext(config=RunConfiguration(output_dir=tmp_path, partition_count=2))
        summary = run_streams(ctx, streams(4))
        assert [m.sample_count for m in summary.metrics] == [2, 2]
        report = (tmp_path / FINAL_REPORT_NAME).read_text().splitlines()
        assert len(report) == 5
        assert (tmp_path / "Rank" / "data002.txt").exists()

    def test_unwritable_output_dir(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        ctx = RunContext(config=RunConfiguration(output_dir=blocker / "out"))
        with pytest.raises(OutputError):
            run_streams(ctx, streams(1))
        assert ctx.final_report is None
