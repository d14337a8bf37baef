# stiffsolve/kernel/svd.py
"""Singular value decomposition of keyed matrices, with a pseudo-inverse solve."""

import logging
from typing import Optional, Union

import numpy as np
import scipy.linalg

from .matrix import KeyedMatrix
from .vector import KeyedVector, require_matching_keys

logger = logging.getLogger(__name__)


class SingularVectorsNotComputedError(RuntimeError):
    """Raised when U/V are needed but the decomposition was built without them."""
    pass


class KeyedSvd:
    """
    Singular value decomposition A = U·Σ·Vᵗ of a keyed matrix.

    The factorization happens at construction time. Singular values are
    stored in DESCENDING order (s[0] is the largest), which is also the
    order of the columns of U and the rows of Vᵗ.

    Keys:
        U   rows = A's row keys,     columns = mode index 0..m-1
        Vᵗ  rows = mode index 0..n-1, columns = A's column keys
        s   keys = mode index 0..min(m, n)-1

    Solving A·x = b uses the pseudo-inverse x = V·Σ⁺·Uᵗ·b where Σ⁺ inverts
    every singular value above the threshold and zeroes the rest, so a
    rank-deficient A gives the minimum-norm least-squares solution.

    Parameters:
    -----------
    matrix : KeyedMatrix
        Matrix to factorize (not modified).
    compute_vectors : bool
        Keep U and Vᵗ. Required for solve(), u() and vt().
    tolerance : float, optional
        Absolute threshold below which a singular value is negligible.
        Default: max(m, n) · s_max · machine epsilon.
    """

    def __init__(self, matrix: KeyedMatrix, compute_vectors: bool = True, tolerance: Optional[float] = None):
        if matrix is None:
            raise ValueError("matrix must not be None")

        a = matrix.to_array()
        m, n = a.shape
        self._row_keys = matrix.row_keys
        self._column_keys = matrix.column_keys
        self._compute_vectors = compute_vectors

        if compute_vectors:
            u, s, vt = scipy.linalg.svd(a, full_matrices=True)
            self._u = KeyedMatrix(self._row_keys, range(m), u, dtype=u.dtype)
            self._vt = KeyedMatrix(range(n), self._column_keys, vt, dtype=vt.dtype)
        else:
            s = scipy.linalg.svd(a, compute_uv=False)
            self._u = None
            self._vt = None

        self._s = KeyedVector(range(len(s)), s)

        if tolerance is None:
            tolerance = max(m, n) * (s[0] if len(s) else 0.0) * np.finfo(float).eps
        self._tolerance = float(tolerance)

        # sign of det(A) = det(U)·det(Vᵗ)·Πs, with det(U), det(Vᵗ) = ±1
        self._sign = None
        if m == n:
            if compute_vectors:
                self._sign = float(np.sign(np.real(np.linalg.det(u) * np.linalg.det(vt))))
            else:
                self._sign = float(np.real(np.linalg.slogdet(a)[0]))

        logger.debug("SVD of %dx%d matrix: rank=%d, tolerance=%.3e", m, n, self.rank, self._tolerance)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    @property
    def compute_vectors(self) -> bool:
        return self._compute_vectors

    @property
    def tolerance(self) -> float:
        return self._tolerance

    @property
    def rank(self) -> int:
        """Effective numerical rank: number of non-negligible singular values."""
        return int(np.sum(self._s.to_array() > self._tolerance))

    @property
    def norm2(self) -> float:
        """2-norm of the matrix, i.e. the largest singular value."""
        return float(self._s.at(0))

    @property
    def condition_number(self) -> float:
        """max(s) / min(s); infinite when the smallest singular value is zero."""
        s = self._s.to_array()
        smallest = s[-1]
        if smallest == 0.0:
            return float("inf")
        return float(s[0] / smallest)

    @property
    def determinant(self) -> float:
        """Determinant of the (square) factorized matrix: sign · Πs."""
        if self._sign is None:
            raise ValueError(
                f"determinant requires a square matrix, got {len(self._row_keys)}x{len(self._column_keys)}"
            )
        s = self._s.to_array()
        if np.any(s == 0.0):
            return 0.0
        return self._sign * float(np.prod(s))

    # ------------------------------------------------------------------
    # Factors
    # ------------------------------------------------------------------

    def _require_vectors(self) -> None:
        if not self._compute_vectors:
            raise SingularVectorsNotComputedError(
                "Singular vectors were not computed; build the decomposition with compute_vectors=True"
            )

    def s(self) -> KeyedVector:
        """Singular values, descending, keyed by mode index."""
        return self._s.clone()

    def u(self) -> KeyedMatrix:
        """Left singular vectors (m x m)."""
        self._require_vectors()
        return self._u.clone()

    def vt(self) -> KeyedMatrix:
        """Transposed right singular vectors (n x n)."""
        self._require_vectors()
        return self._vt.clone()

    def w(self) -> KeyedMatrix:
        """Singular values as an m x n diagonal matrix keyed by mode index."""
        m, n = len(self._row_keys), len(self._column_keys)
        data = np.zeros((m, n))
        s = self._s.to_array()
        data[np.arange(len(s)), np.arange(len(s))] = s
        return KeyedMatrix(range(m), range(n), data)

    # ------------------------------------------------------------------
    # Solve
    # ------------------------------------------------------------------

    def _pseudo_inverse_apply(self, b: np.ndarray) -> np.ndarray:
        s = self._s.to_array()
        k = len(s)
        u = self._u.to_array()[:, :k]
        vt = self._vt.to_array()[:k, :]
        s_inv = np.zeros_like(s)
        keep = s > self._tolerance
        s_inv[keep] = 1.0 / s[keep]
        projected = u.conj().T @ b
        if projected.ndim == 1:
            scaled = s_inv * projected
        else:
            scaled = s_inv[:, np.newaxis] * projected
        return vt.conj().T @ scaled

    def solve(self, rhs: Union[KeyedVector, KeyedMatrix]) -> Union[KeyedVector, KeyedMatrix]:
        """
        Solve A·x = b (or A·X = B) for x.

        b must be keyed by A's row keys; x is keyed by A's column keys
        (for a stiffness block these are the same DOFs).

        Raises:
        -------
        ValueError
            rhs is None.
        SingularVectorsNotComputedError
            The decomposition was built with compute_vectors=False.
        KeyMismatchError
            rhs keys do not match A's row keys.
        """
        if rhs is None:
            raise ValueError("rhs must not be None")
        self._require_vectors()

        if isinstance(rhs, KeyedVector):
            require_matching_keys(self._row_keys, rhs.keys, "SVD solve")
            x = self._pseudo_inverse_apply(rhs.to_array())
            return KeyedVector(self._column_keys, x, dtype=x.dtype)

        require_matching_keys(self._row_keys, rhs.row_keys, "SVD solve")
        x = self._pseudo_inverse_apply(rhs.to_array())
        return KeyedMatrix(self._column_keys, rhs.column_keys, x, dtype=x.dtype)

    def __repr__(self) -> str:
        return f"KeyedSvd(shape={len(self._row_keys)}x{len(self._column_keys)}, rank={self.rank})"
