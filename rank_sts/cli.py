"""CLI for rank-sts."""

from __future__ import annotations

import sys
import time
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from rank_sts import __version__
from rank_sts.errors import ContractViolation, RankTestError

EXIT_CONTRACT_VIOLATION = 10
EXIT_BAD_INPUT = 2


@click.group()
@click.version_option(__version__)
def main() -> None:
    """Binary Matrix Rank test for bit streams (NIST SP 800-22 style)."""


# ────────────────────────────────────────────────────────────
# Run: full lifecycle over one or more streams
# ────────────────────────────────────────────────────────────


@main.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="INI file with [run] / [rank] sections.")
@click.option("-n", "--length", "stream_length", type=int, default=None,
              help="Bits per stream (default: whole input).")
@click.option("-s", "--streams", "num_streams", type=int, default=None, help="Number of streams.")
@click.option("--format", "fmt", type=click.Choice(["ascii", "binary"]), default="ascii",
              help="Input encoding.")
@click.option("--alpha", type=float, default=None, help="Significance level.")
@click.option("--bins", "uniformity_bins", type=int, default=None, help="Uniformity histogram bins.")
@click.option("--partitions", "partition_count", type=int, default=None,
              help="Split p-values into this many interleaved partitions.")
@click.option("--output", "output_dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Directory for stats.txt, results.txt and the final report.")
@click.option("--no-results", is_flag=True, help="Do not write result files.")
@click.option("--legacy", is_flag=True, help="Use the legacy stats.txt layout.")
@click.option("-v", "--verbose", count=True, help="-v for info, -vv for debug logging.")
def run(input_path: Path, config_path: Path | None, stream_length: int | None,
        num_streams: int | None, fmt: str, alpha: float | None, uniformity_bins: int | None,
        partition_count: int | None, output_dir: Path | None, no_results: bool, legacy: bool,
        verbose: int) -> None:
    """Run the rank test over INPUT_PATH and report per-stream and suite metrics."""
    from rank_sts.bitstream import read_bits, split_streams
    from rank_sts.config import RunConfiguration, RunContext, load_config
    from rank_sts.harness import run_streams
    from rank_sts.log import configure_logging

    configure_logging(verbose)
    try:
        base = load_config(config_path) if config_path else RunConfiguration()
        bits = read_bits(input_path, fmt)
        if stream_length is None and config_path is None:
            stream_length = len(bits) // (num_streams or base.num_streams)
        cfg = base.with_overrides(
            stream_length=stream_length,
            num_streams=num_streams,
            alpha=alpha,
            uniformity_bins=uniformity_bins,
            partition_count=partition_count,
            output_dir=output_dir,
            results_enabled=False if no_results else None,
            legacy_output=True if legacy else None,
        )
        if cfg.stream_length * cfg.num_streams > len(bits):
            click.echo(
                f"Warning: input has {len(bits):,} bits, fewer than "
                f"{cfg.num_streams} x {cfg.stream_length:,}",
                err=True,
            )
        context = RunContext(config=cfg)
        context.setup_constants()
        t0 = time.monotonic()
        summary = run_streams(context, split_streams(bits, cfg.stream_length, cfg.num_streams))
        elapsed = time.monotonic() - t0
    except ContractViolation as e:
        click.echo(f"Fatal: {e}", err=True)
        sys.exit(EXIT_CONTRACT_VIOLATION)
    except RankTestError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_BAD_INPUT)

    console = Console()
    full_rank = min(cfg.rows, cfg.cols)
    table = Table(title=f"Rank test: {input_path.name} ({cfg.rows}x{cfg.cols})")
    table.add_column("#", justify="right")
    table.add_column("Matrices", justify="right")
    table.add_column(f"F_{full_rank}", justify="right")
    table.add_column(f"F_{full_rank - 1}", justify="right")
    table.add_column(f"F_{full_rank - 2}", justify="right")
    table.add_column("Chi^2", justify="right")
    table.add_column("P-Value", justify="right")
    table.add_column("Result")
    for i, (stat, p) in enumerate(zip(summary.stats, summary.p_values)):
        table.add_row(
            str(i),
            f"{stat.matrix_count:,}",
            str(stat.freq_full_rank),
            str(stat.freq_rank_minus_one),
            str(stat.freq_lower_rank),
            "-" if stat.chi_squared is None else f"{stat.chi_squared:.4f}",
            "N/A" if p is None else f"{p:.6f}",
            "[green]SUCCESS[/green]" if stat.success else "[red]FAILURE[/red]",
        )
    console.print(table)

    for m in summary.metrics:
        uni = "insufficient data" if m.uniformity is None else f"{m.uniformity:.6f}"
        flag = " *" if m.failed else ""
        click.echo(
            f"Partition {m.partition + 1}: uniformity {uni}, "
            f"proportion {m.pass_count}/{m.sample_count}{flag}"
        )
    click.echo(f"{summary.passed}/{len(summary.stats)} streams passed [{elapsed:.1f}s]")
    for path in summary.artifacts:
        click.echo(f"  wrote {path}")


# ────────────────────────────────────────────────────────────
# Diagnostics
# ────────────────────────────────────────────────────────────


@main.command()
@click.option("--rows", default=32, help="Matrix rows (M).")
@click.option("--cols", default=32, help="Matrix columns (Q).")
def probs(rows: int, cols: int) -> None:
    """Print the theoretical rank probabilities for an M x Q matrix."""
    from rank_sts.matrix import rank_probabilities

    try:
        p = rank_probabilities(rows, cols)
    except ContractViolation as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_BAD_INPUT)
    m = min(rows, cols)
    click.echo(f"P_{m}  = {p.full:.6f}")
    click.echo(f"P_{m - 1}  = {p.minus_one:.6f}")
    click.echo(f"P_<{m - 1} = {p.lower:.6f}")


@main.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--rows", default=32, help="Matrix rows (M).")
@click.option("--cols", default=32, help="Matrix columns (Q).")
@click.option("--format", "fmt", type=click.Choice(["ascii", "binary"]), default="ascii",
              help="Input encoding.")
@click.option("--limit", default=0, help="Rank at most this many matrices (0 = all).")
def rank(input_path: Path, rows: int, cols: int, fmt: str, limit: int) -> None:
    """Print the GF(2) rank of each matrix carved from INPUT_PATH."""
    from rank_sts.bitstream import read_bits
    from rank_sts.config import RunConfiguration
    from rank_sts.matrix import BitMatrix, compute_rank

    try:
        RunConfiguration(rows=rows, cols=cols)
        bits = read_bits(input_path, fmt)
    except RankTestError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_BAD_INPUT)
    count = len(bits) // (rows * cols)
    if limit > 0:
        count = min(count, limit)
    if count == 0:
        click.echo(f"Insufficient bits to define a ({rows}x{cols}) matrix")
        sys.exit(1)
    try:
        matrix = BitMatrix(rows, cols)
        for k in range(count):
            matrix.fill_from_stream(bits, k)
            click.echo(f"{k:>6} {compute_rank(matrix)}")
    except ContractViolation as e:
        click.echo(f"Fatal: {e}", err=True)
        sys.exit(EXIT_CONTRACT_VIOLATION)
