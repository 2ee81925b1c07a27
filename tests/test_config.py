"""Tests for run configuration and INI loading."""

from pathlib import Path

import pytest

from rank_sts.config import RunConfiguration, RunContext, load_config
from rank_sts.errors import InvalidConfigurationError


class TestRunConfiguration:
    def test_defaults(self):
        cfg = RunConfiguration()
        assert cfg.alpha == 0.01
        assert (cfg.rows, cfg.cols) == (32, 32)
        assert cfg.bits_per_matrix == 1024
        assert cfg.uniformity_bins == 10
        assert cfg.partition_count == 1
        assert cfg.results_enabled

    @pytest.mark.parametrize("kwargs", [
        {"alpha": 0.0},
        {"alpha": 1.0},
        {"rows": 1},
        {"cols": 1},
        {"num_streams": 0},
        {"uniformity_bins": 1},
        {"uniformity_level": 1.5},
        {"partition_count": 0},
        {"partition_count": 1000},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(InvalidConfigurationError):
            RunConfiguration(**kwargs)

    def test_overrides_skip_none(self):
        cfg = RunConfiguration()
        assert cfg.with_overrides(alpha=None) is cfg
        changed = cfg.with_overrides(alpha=0.05, rows=None)
        assert changed.alpha == 0.05
        assert changed.rows == 32
        assert cfg.alpha == 0.01


class TestRunContext:
    def test_constants(self):
        ctx = RunContext()
        assert not ctx.constants_ready
        probs = ctx.setup_constants()
        assert ctx.constants_ready
        assert sum(probs.as_tuple()) == pytest.approx(1.0)

    def test_sample_sizes_keep_maximum(self):
        ctx = RunContext()
        ctx.record_sample_size(5, excursion=False)
        ctx.record_sample_size(3, excursion=False)
        ctx.record_sample_size(7, excursion=True)
        assert ctx.max_general_sample_size == 5
        assert ctx.max_excursion_sample_size == 7


class TestLoadConfig:
    def test_sections(self, tmp_path):
        path = tmp_path / "run.ini"
        path.write_text(
            "[run]\n"
            "alpha = 0.05\n"
            "num_streams = 4\n"
            "partitions = 2\n"
            "results = no\n"
            "legacy_output = yes\n"
            "output_dir = out\n"
            "[rank]\n"
            "rows = 16\n"
            "cols = 16\n"
        )
        cfg = load_config(path)
        assert cfg.alpha == 0.05
        assert cfg.num_streams == 4
        assert cfg.partition_count == 2
        assert cfg.results_enabled is False
        assert cfg.legacy_output is True
        assert (cfg.rows, cfg.cols) == (16, 16)
        assert cfg.output_dir == (tmp_path / "out").resolve()

    def test_missing_keys_keep_defaults(self, tmp_path):
        path = tmp_path / "run.ini"
        path.write_text("[run]\n")
        assert load_config(path) == RunConfiguration()

    def test_absolute_output_dir(self, tmp_path):
        path = tmp_path / "run.ini"
        target = tmp_path / "abs"
        path.write_text(f"[run]\noutput_dir = {target}\n")
        assert load_config(path).output_dir == Path(target)

    def test_bad_number(self, tmp_path):
        path = tmp_path / "run.ini"
        path.write_text("[run]\nalpha = lots\n")
        with pytest.raises(InvalidConfigurationError):
            load_config(path)

    def test_bad_boolean(self, tmp_path):
        path = tmp_path / "run.ini"
        path.write_text("[run]\nresults = maybe\n")
        with pytest.raises(InvalidConfigurationError):
            load_config(path)

    def test_out_of_range_value(self, tmp_path):
        path = tmp_path / "run.ini"
        path.write_text("[rank]\nrows = 1\n")
        with pytest.raises(InvalidConfigurationError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidConfigurationError):
            load_config(tmp_path / "absent.ini")

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "run.ini"
        path.write_text("alpha = 0.05\n")
        with pytest.raises(InvalidConfigurationError):
            load_config(path)


class TestMatrixShape:
    def test_wide_shape_accepted(self):
        cfg = RunConfiguration(rows=16, cols=32)
        assert cfg.bits_per_matrix == 512

    def test_more_rows_than_columns_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            RunConfiguration(rows=33, cols=32)

    def test_tall_shape_from_ini_rejected(self, tmp_path):
        path = tmp_path / "run.ini"
        path.write_text("[rank]\nrows = 33\ncols = 32\n")
        with pytest.raises(InvalidConfigurationError):
            load_config(path)
