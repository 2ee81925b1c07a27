"""Text artifacts for the rank test: stats.txt, results.txt, data*.txt and report lines."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Sequence, TextIO

from rank_sts.matrix import RankProbabilities
from rank_sts.metrics import PartitionMetrics

if TYPE_CHECKING:
    from rank_sts.rank_test import IterationStat

INVALID_MARKER = "__INVALID__"
SEPARATOR = "\t\t---------------------------------------------"


def format_p_value(p_value: float | None) -> str:
    """One p-value line body: fixed decimal or the invalid marker."""
    return INVALID_MARKER if p_value is None else f"{p_value:f}"


def data_filename_format(partition_count: int) -> str | None:
    """``data%03d.txt`` style format, or None when p-values are not partitioned."""
    if partition_count <= 1:
        return None
    width = max(3, len(str(partition_count)))
    return f"data%0{width}d.txt"


def render_stat(stat: IterationStat, p_value: float | None, *, rows: int, cols: int,
                probabilities: RankProbabilities, legacy: bool = False) -> str:
    """Render one iteration block for stats.txt."""
    lines = ["\t\t\t\tRANK TEST" if legacy else "\t\t\t\tRank test"]
    if not stat.testable:
        lines.append(f"\t\tError: Insuffucient # of bits to define a ({rows}x{cols}) Matrix")
    else:
        lines.append(SEPARATOR)
        if legacy:
            lines.append("\t\tCOMPUTATIONAL INFORMATION:")
            lines.append(SEPARATOR)
        m = min(rows, cols)
        lines += [
            f"\t\t(a) Probability P_{m} = {probabilities.full:f}",
            f"\t\t(b)             P_{m - 1} = {probabilities.minus_one:f}",
            f"\t\t(c)             P_{m - 2} = {probabilities.lower:f}",
            f"\t\t(d) Frequency   F_{m} = {stat.freq_full_rank}",
            f"\t\t(e)             F_{m - 1} = {stat.freq_rank_minus_one}",
            f"\t\t(f)             F_{m - 2} = {stat.freq_lower_rank}",
            f"\t\t(g) # of matrices    = {stat.matrix_count}",
            f"\t\t(h) Chi^2            = {stat.chi_squared:f}",
        ]
        if legacy:
            lines.append(f"\t\t(i) NOTE: {stat.discarded_bits} BITS WERE DISCARDED.")
        else:
            lines.append(f"\t\t(i) {stat.discarded_bits} bits were discarded")
        lines.append(SEPARATOR)
    verdict = "SUCCESS" if stat.success else "FAILURE"
    lines.append(f"{verdict}\t\tp_value = {format_p_value(p_value)}")
    return "\n".join(lines) + "\n\n"


def write_p_values(stream: TextIO, p_values: Iterable[float | None]) -> None:
    for p in p_values:
        stream.write(format_p_value(p) + "\n")


def write_stats(stream: TextIO, stats: Sequence[IterationStat], p_values: Sequence[float | None],
                *, rows: int, cols: int, probabilities: RankProbabilities,
                legacy: bool = False) -> None:
    for stat, p in zip(stats, p_values):
        stream.write(render_stat(stat, p, rows=rows, cols=cols,
                                 probabilities=probabilities, legacy=legacy))


def write_partitions(directory: Path, p_values: Sequence[float | None],
                     partition_count: int, fmt: str | None = None) -> list[Path]:
    """Write one data file per partition, striding through *p_values*."""
    fmt = fmt or data_filename_format(partition_count)
    if fmt is None:
        return []
    paths = []
    for j in range(partition_count):
        path = directory / (fmt % (j + 1))
        with path.open("w", encoding="utf-8") as fh:
            write_p_values(fh, p_values[j::partition_count])
        paths.append(path)
    return paths


def final_report_header(bins: int) -> str:
    """Column header for finalAnalysisReport.txt."""
    rule = "-" * (4 * bins + 44)
    columns = "".join(f"C{i + 1:<3d}" for i in range(bins))
    return f"{rule}\n{columns} P-VALUE  PROPORTION  STATISTICAL TEST\n{rule}\n"


def format_metric_line(metrics: PartitionMetrics, test_name: str) -> str:
    """One finalAnalysisReport.txt line: histogram, uniformity, proportion, name."""
    parts = ["".join(f"{count:3d} " for count in metrics.histogram)]
    if metrics.uniformity is None:
        parts.append("    ----    ")
    elif metrics.uniformity_failure:
        parts.append(f" {metrics.uniformity:8.6f} * ")
    else:
        parts.append(f" {metrics.uniformity:8.6f}   ")
    if metrics.sample_count == 0:
        parts.append(f" ------     {test_name}")
    elif metrics.proportional_failure:
        parts.append(f"{metrics.pass_count:4d}/{metrics.sample_count:<4d} *  {test_name}")
    else:
        parts.append(f"{metrics.pass_count:4d}/{metrics.sample_count:<4d}    {test_name}")
    return "".join(parts) + "\n"
