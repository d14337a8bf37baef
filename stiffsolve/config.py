# stiffsolve/config.py
"""
Solver configuration and defaults.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class SolverConfig:
    """Numerical settings shared by every solve."""

    # K11 is treated as singular (rigid body motion) when the reciprocal
    # condition number of its diagonally scaled form is within this distance
    # of zero, i.e. cond > 1 / singularity_tolerance
    singularity_tolerance: float = 1e-12

    # Absolute threshold for negligible singular values in the SVD strategy.
    # None = max(m, n) * s_max * machine epsilon
    svd_tolerance: Optional[float] = None

    # "inversion" or "svd"
    default_strategy: str = "inversion"

    # Minimum model size accepted by LinearSolver
    min_nodes: int = 2
    min_elements: int = 1

    def __post_init__(self):
        if self.singularity_tolerance < 0.0:
            raise ValueError(f"singularity_tolerance must be >= 0, got {self.singularity_tolerance}")
        if self.svd_tolerance is not None and self.svd_tolerance < 0.0:
            raise ValueError(f"svd_tolerance must be >= 0, got {self.svd_tolerance}")


# Global config instance
CONFIG = SolverConfig()
