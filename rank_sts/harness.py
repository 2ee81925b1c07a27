"""Minimal suite harness: drives one test module through its lifecycle."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

import numpy as np

from rank_sts import report
from rank_sts.config import RunContext
from rank_sts.errors import OutputError
from rank_sts.metrics import PartitionMetrics
from rank_sts.rank_test import IterationStat, RankCounters, RankTest

logger = logging.getLogger(__name__)

FINAL_REPORT_NAME = "finalAnalysisReport.txt"


@dataclass
class RunSummary:
    """Everything a caller needs after ``destroy`` has released the driver."""
    stats: list[IterationStat]
    p_values: list[float | None]
    counters: RankCounters
    metrics: list[PartitionMetrics]
    artifacts: list[Path] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for s in self.stats if s.success)


def run_streams(context: RunContext, streams: Iterable[np.ndarray]) -> RunSummary:
    """init → iterate per stream → print → metrics → destroy."""
    if not context.constants_ready:
        context.setup_constants()

    cfg = context.config
    own_report = None
    artifacts: list[Path] = []
    if context.final_report is None and cfg.results_enabled:
        path = Path(cfg.output_dir) / FINAL_REPORT_NAME
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            own_report = path.open("w", encoding="utf-8")
            own_report.write(report.final_report_header(cfg.uniformity_bins))
        except OSError as exc:
            raise OutputError(f"cannot open {path}: {exc}") from exc
        context.final_report = own_report
        artifacts.append(path)

    test = RankTest(context)
    try:
        test.init()
        for i, stream in enumerate(streams):
            logger.debug("iteration %d: %d bits", i, len(stream))
            test.iterate(stream)
        artifacts = test.print() + artifacts
        metrics = test.metrics()
        summary = RunSummary(
            stats=list(test.stats),
            p_values=list(test.p_values),
            counters=test.counters,
            metrics=metrics,
            artifacts=artifacts,
        )
        test.destroy()
    finally:
        if own_report is not None:
            own_report.close()
            context.final_report = None
    return summary
