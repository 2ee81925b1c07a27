"""Run configuration and the explicit run context shared with the harness."""

from __future__ import annotations

import configparser
import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, TextIO

from rank_sts.errors import InvalidConfigurationError
from rank_sts.matrix import RankProbabilities, rank_probabilities

TEST_NAME = "Rank"

DEFAULT_ALPHA = 0.01
DEFAULT_ROWS = 32
DEFAULT_COLS = 32
DEFAULT_UNIFORMITY_BINS = 10
DEFAULT_UNIFORMITY_LEVEL = 0.0001
MAX_PARTITIONS = 999


@dataclass(frozen=True)
class RunConfiguration:
    """Read-only run parameters owned by the harness."""

    stream_length: int = 1_000_000
    num_streams: int = 1
    alpha: float = DEFAULT_ALPHA
    rows: int = DEFAULT_ROWS
    cols: int = DEFAULT_COLS
    uniformity_bins: int = DEFAULT_UNIFORMITY_BINS
    uniformity_level: float = DEFAULT_UNIFORMITY_LEVEL
    partition_count: int = 1
    excludes_zero_p_values: bool = False
    results_enabled: bool = True
    legacy_output: bool = False
    output_dir: Path = Path("experiments")

    def __post_init__(self) -> None:
        if not (0.0 < self.alpha < 1.0):
            raise InvalidConfigurationError(f"alpha must be in (0, 1), got {self.alpha}")
        if self.rows < 2 or self.cols < 2:
            raise InvalidConfigurationError(
                f"matrix must be at least 2x2, got {self.rows}x{self.cols}"
            )
        # cell (i, j) reads bit k*M*Q + j + i*M, which stays inside block k only when M <= Q
        if self.rows > self.cols:
            raise InvalidConfigurationError(
                f"matrix rows must not exceed columns, got {self.rows}x{self.cols}"
            )
        if self.stream_length < 0:
            raise InvalidConfigurationError(f"stream length must be >= 0, got {self.stream_length}")
        if self.num_streams < 1:
            raise InvalidConfigurationError(f"number of streams must be >= 1, got {self.num_streams}")
        if self.uniformity_bins < 2:
            raise InvalidConfigurationError(
                f"uniformity bins must be >= 2, got {self.uniformity_bins}"
            )
        if not (0.0 <= self.uniformity_level <= 1.0) or math.isnan(self.uniformity_level):
            raise InvalidConfigurationError(
                f"uniformity level must be in [0, 1], got {self.uniformity_level}"
            )
        if not (1 <= self.partition_count <= MAX_PARTITIONS):
            raise InvalidConfigurationError(
                f"partition count must be in [1, {MAX_PARTITIONS}], got {self.partition_count}"
            )

    @property
    def bits_per_matrix(self) -> int:
        return self.rows * self.cols

    def with_overrides(self, **overrides: Any) -> RunConfiguration:
        """Return a copy with the non-``None`` overrides applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **values) if values else self


@dataclass
class RunContext:
    """Mutable harness state handed to a test module by reference.

    Replaces the suite-wide globals: constants, the final report stream and
    the maximum sample sizes seen across all tests.
    """

    config: RunConfiguration = field(default_factory=RunConfiguration)
    enabled: bool = True
    probabilities: RankProbabilities | None = None
    final_report: TextIO | None = None
    max_general_sample_size: int = 0
    max_excursion_sample_size: int = 0

    @property
    def constants_ready(self) -> bool:
        return self.probabilities is not None

    def setup_constants(self) -> RankProbabilities:
        """Precompute the theoretical rank probabilities for the configured shape."""
        self.probabilities = rank_probabilities(self.config.rows, self.config.cols)
        return self.probabilities

    def record_sample_size(self, sample_count: int, *, excursion: bool) -> None:
        if excursion:
            self.max_excursion_sample_size = max(self.max_excursion_sample_size, sample_count)
        else:
            self.max_general_sample_size = max(self.max_general_sample_size, sample_count)


# ── INI loading ──

_RUN_KEYS = {
    "alpha": ("alpha", float),
    "stream_length": ("stream_length", int),
    "num_streams": ("num_streams", int),
    "uniformity_bins": ("uniformity_bins", int),
    "uniformity_level": ("uniformity_level", float),
    "partitions": ("partition_count", int),
    "output_dir": ("output_dir", Path),
}

_RUN_FLAGS = {
    "results": "results_enabled",
    "legacy_output": "legacy_output",
}


def load_config(path: Path) -> RunConfiguration:
    """Load a :class:`RunConfiguration` from an INI file.

    Recognised sections are ``[run]`` and ``[rank]``; missing keys keep
    their defaults. Relative ``output_dir`` values resolve against the
    file's directory.
    """
    parser = configparser.ConfigParser()
    try:
        with Path(path).open("r", encoding="utf-8") as fh:
            parser.read_file(fh)
    except OSError as exc:
        raise InvalidConfigurationError(f"Could not read configuration file: {path}") from exc
    except configparser.Error as exc:
        raise InvalidConfigurationError(f"Malformed configuration file {path}: {exc}") from exc

    values: dict[str, Any] = {}
    if parser.has_section("run"):
        section = parser["run"]
        for key, (attr, conv) in _RUN_KEYS.items():
            if key in section:
                try:
                    values[attr] = conv(section[key])
                except ValueError as exc:
                    raise InvalidConfigurationError(
                        f"Invalid value for [run] {key}: {section[key]!r}"
                    ) from exc
        for key, attr in _RUN_FLAGS.items():
            if key in section:
                try:
                    values[attr] = section.getboolean(key)
                except ValueError as exc:
                    raise InvalidConfigurationError(
                        f"Invalid boolean for [run] {key}: {section[key]!r}"
                    ) from exc
    if parser.has_section("rank"):
        section = parser["rank"]
        for key in ("rows", "cols"):
            if key in section:
                try:
                    values[key] = int(section[key])
                except ValueError as exc:
                    raise InvalidConfigurationError(
                        f"Invalid value for [rank] {key}: {section[key]!r}"
                    ) from exc

    if "output_dir" in values and not values["output_dir"].is_absolute():
        values["output_dir"] = (Path(path).parent / values["output_dir"]).resolve()

    return RunConfiguration(**values)
