"""Second-order analysis of p-values: uniformity and proportion of passes."""

from __future__ import annotations

from dataclasses import dataclass
from math import floor, sqrt
from typing import Sequence

import numpy as np
from scipy.special import gammaincc

from rank_sts.config import RunConfiguration


@dataclass(frozen=True)
class PartitionMetrics:
    """Uniformity and proportion outcome for one partition of p-values."""
    partition: int
    sample_count: int
    too_low: int
    histogram: tuple[int, ...]
    uniformity: float | None  # None: too few samples
    uniformity_failure: bool
    pass_count: int
    proportion_min: float | None
    proportion_max: float | None
    proportional_failure: bool

    @property
    def failed(self) -> bool:
        return self.uniformity_failure or self.proportional_failure


def partition_values(p_values: Sequence[float | None], partition: int,
                     partition_count: int) -> list[float | None]:
    """Every *partition_count*-th p-value starting at index *partition*."""
    return list(p_values[partition::partition_count])


def proportion_bounds(sample_count: int, alpha: float) -> tuple[float, float]:
    """Three-sigma bounds on the pass count for a binomial with p = 1 - alpha."""
    p_hat = 1.0 - alpha
    spread = 3.0 * sqrt((p_hat * alpha) / sample_count)
    return (p_hat - spread) * sample_count, (p_hat + spread) * sample_count


def analyze_partition(p_values: Sequence[float | None], config: RunConfiguration,
                      partition: int = 0) -> PartitionMetrics:
    """Tally, bin and test one partition of p-values.

    ``None`` entries (untestable iterations) are skipped. When the
    configuration excludes zero p-values, non-positive values are skipped
    too and are not counted as samples.
    """
    bins = config.uniformity_bins
    alpha = config.alpha
    freq = np.zeros(bins, dtype=np.int64)
    sample_count = 0
    too_low = 0

    for p in p_values:
        if p is None:
            continue
        if config.excludes_zero_p_values and not p > 0.0:
            continue
        sample_count += 1
        if p < alpha:
            too_low += 1
        if p >= 1.0:
            freq[bins - 1] += 1
        elif p >= 0.0:
            freq[int(floor(p * bins))] += 1
        else:
            freq[0] += 1

    # uniformity; integer expectation, so fewer samples than bins is insufficient
    expected = float(sample_count // bins)
    if expected <= 0.0:
        uniformity = None
        uniformity_failure = False
    else:
        chi2 = float(np.sum((freq - expected) ** 2 / expected))
        uniformity = float(gammaincc((bins - 1) / 2.0, chi2 / 2.0))
        uniformity_failure = uniformity < config.uniformity_level

    # proportion
    if sample_count <= 0 or sample_count < too_low:
        pass_count = 0
    else:
        pass_count = sample_count - too_low
    if sample_count == 0:
        lo = hi = None
        proportional_failure = False
    else:
        lo, hi = proportion_bounds(sample_count, alpha)
        proportional_failure = pass_count < lo or pass_count > hi

    return PartitionMetrics(
        partition=partition,
        sample_count=sample_count,
        too_low=too_low,
        histogram=tuple(int(x) for x in freq),
        uniformity=uniformity,
        uniformity_failure=uniformity_failure,
        pass_count=pass_count,
        proportion_min=lo,
        proportion_max=hi,
        proportional_failure=proportional_failure,
    )


def analyze(p_values: Sequence[float | None], config: RunConfiguration) -> list[PartitionMetrics]:
    """Run :func:`analyze_partition` over every configured partition."""
    return [
        analyze_partition(
            partition_values(p_values, j, config.partition_count), config, partition=j
        )
        for j in range(config.partition_count)
    ]
