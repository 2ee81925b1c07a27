"""
rank-sts: the Binary Matrix Rank test of a randomness-certification suite.

Slices bit streams into fixed-size GF(2) matrices, checks that their ranks
follow the distribution expected of uniform random bits, and runs the
suite-wide uniformity and proportion analysis over the resulting p-values.
"""

__version__ = "0.3.0"

from rank_sts.config import RunConfiguration, RunContext, load_config
from rank_sts.errors import ContractViolation, LifecycleError
from rank_sts.harness import RunSummary, run_streams
from rank_sts.lifecycle import DriverState
from rank_sts.matrix import BitMatrix, RankProbabilities, compute_rank, rank_probabilities
from rank_sts.metrics import PartitionMetrics, analyze_partition
from rank_sts.rank_test import IterationStat, RankTest

__all__ = [
    "BitMatrix",
    "ContractViolation",
    "DriverState",
    "IterationStat",
    "LifecycleError",
    "PartitionMetrics",
    "RankProbabilities",
    "RankTest",
    "RunConfiguration",
    "RunContext",
    "RunSummary",
    "__version__",
    "analyze_partition",
    "compute_rank",
    "load_config",
    "rank_probabilities",
    "run_streams",
]
