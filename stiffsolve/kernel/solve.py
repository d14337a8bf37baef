# stiffsolve/kernel/solve.py
"""Solve strategies for K·x = F on keyed stiffness blocks, and mechanism detection."""

import logging
from enum import Enum
from typing import Callable, Dict, Optional

import numpy as np

from .matrix import KeyedMatrix
from .vector import KeyedVector

logger = logging.getLogger(__name__)


class InvalidModelError(RuntimeError):
    """Raised when a model cannot be solved in its current state."""
    pass


class MechanismError(InvalidModelError):
    """Raised when the structure can move as a rigid body (singular K11)."""
    pass


class SolveStrategy(Enum):
    """Numeric kernel used for the unknown-displacement solve."""
    INVERSION = "inversion"   # K⁻¹·F, fine for small, well-conditioned systems
    SVD = "svd"               # V·Σ⁺·Uᵗ·F, tolerant of near-singular systems


def solve_by_inversion(stiffness: KeyedMatrix, forces: KeyedVector, svd_tolerance: Optional[float] = None) -> KeyedVector:
    """x = K⁻¹·F. The result is keyed by the stiffness column keys."""
    return stiffness.inverse().multiply(forces)


def solve_by_svd(stiffness: KeyedMatrix, forces: KeyedVector, svd_tolerance: Optional[float] = None) -> KeyedVector:
    """x = V·Σ⁺·Uᵗ·F with negligible singular values zeroed."""
    svd = stiffness.svd(compute_vectors=True, tolerance=svd_tolerance)
    logger.debug(
        "SVD solve: rank %d of %d, condition number %.3e",
        svd.rank, stiffness.column_count, svd.condition_number,
    )
    return svd.solve(forces)


STRATEGY_SOLVERS: Dict[SolveStrategy, Callable[..., KeyedVector]] = {
    SolveStrategy.INVERSION: solve_by_inversion,
    SolveStrategy.SVD: solve_by_svd,
}


def solve_linear(
    stiffness: KeyedMatrix,
    forces: KeyedVector,
    strategy: SolveStrategy = SolveStrategy.INVERSION,
    svd_tolerance: Optional[float] = None,
) -> KeyedVector:
    """
    Solve K·x = F for x using the chosen strategy.

    Args:
        stiffness: Square keyed stiffness block
        forces: Force vector keyed by the stiffness row keys
        strategy: SolveStrategy.INVERSION or SolveStrategy.SVD
        svd_tolerance: Negligible singular value threshold (SVD only)

    Returns:
        Displacement vector keyed like the force vector

    Raises:
        ValueError: If stiffness or forces is None
        KeyMismatchError: If the force keys do not match the stiffness keys
    """
    if stiffness is None:
        raise ValueError("stiffness must not be None")
    if forces is None:
        raise ValueError("forces must not be None")
    return STRATEGY_SOLVERS[SolveStrategy(strategy)](stiffness, forces, svd_tolerance)


def check_not_mechanism(stiffness: KeyedMatrix, tolerance: float) -> float:
    """
    Raise MechanismError if the stiffness block is (numerically) singular.

    The measure is the reciprocal condition number of the diagonally scaled
    block, 1 / cond(D^-1/2 · K · D^-1/2): 1 for uncoupled DOFs, 0 for a
    block that admits rigid body motion. It is treated as singular when it
    is within `tolerance` of zero (1e-12 matches a condition number limit
    of 1e12). The normalized determinant is reported alongside but not
    tested, since it shrinks with model size.

    Returns:
        The reciprocal condition number
    """
    rcond = 1.0 / stiffness.normalized_condition_number()
    det = stiffness.normalized_determinant()
    logger.debug(
        "Mechanism check on %dx%d block: 1/cond=%.6e, normalized determinant=%.6e",
        stiffness.row_count, stiffness.column_count, rcond, det,
    )

    if not np.isfinite(rcond) or np.isclose(rcond, 0.0, rtol=0.0, atol=tolerance):
        raise MechanismError(
            "We are unable to solve this model as it is able to move as a rigid body "
            "without deforming in any way. Are you missing any constraints?\n"
            f"Reciprocal condition number {rcond:.3e} is within {tolerance:.0e} of zero "
            f"(normalized determinant {det:.3e}).\n"
            "Matrix of stiffnesses for known forces and unknown displacements:\n"
            f"{stiffness}"
        )
    return rcond
