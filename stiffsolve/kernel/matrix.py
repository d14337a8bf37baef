# stiffsolve/kernel/matrix.py
"""
KEYED MATRIX: Dense 2-D Arrays Addressed by (row key, column key)
================================================================

The matrix counterpart of KeyedVector. Rows and columns carry their own key
sequences, which need not be equal:

    K12 = rows: unknown-displacement DOFs
          cols: known-displacement DOFs

Multiplying K12 by the known-displacement vector is only allowed when the
vector's keys are exactly K12's column keys, and the result is keyed by
K12's row keys. This is what keeps partitioned block algebra honest.

Extracting a sub-matrix by key subset keeps key identity, so a block cut
out of the global stiffness matrix still knows which DOFs it belongs to.
"""

from typing import Any, Hashable, Iterable, Optional, Tuple, Union

import numpy as np

from .vector import HASH_SAMPLE_SIZE, KeyedVector, _build_index, require_matching_keys


class KeyedMatrix:
    """
    Dense numeric matrix whose rows and columns are addressed by keys.

    Parameters:
    -----------
    row_keys : Iterable[Hashable]
        Ordered, unique row keys.
    column_keys : Iterable[Hashable], optional
        Ordered, unique column keys. Defaults to the row keys (square matrix).
    data : array-like, optional
        Initial values, shape (rows, columns). Zeros if omitted.
    dtype : numpy dtype
        Element type of the backing array (float by default).

    Raises:
    -------
    ValueError
        Empty key sequences, duplicate keys or data of the wrong shape.
    """

    def __init__(
        self,
        row_keys: Iterable[Hashable],
        column_keys: Optional[Iterable[Hashable]] = None,
        data: Any = None,
        dtype: Any = float,
    ):
        self._row_keys = tuple(row_keys)
        self._column_keys = self._row_keys if column_keys is None else tuple(column_keys)
        self._row_index = _build_index(self._row_keys, "KeyedMatrix rows")
        self._column_index = _build_index(self._column_keys, "KeyedMatrix columns")
        shape = (len(self._row_keys), len(self._column_keys))
        if data is None:
            self._data = np.zeros(shape, dtype=dtype)
        else:
            array = np.array(data, dtype=dtype)
            if array.shape != shape:
                raise ValueError(f"Expected data of shape {shape} for the given keys, got {array.shape}")
            self._data = array

    def _like(self, row_keys, column_keys, data: np.ndarray) -> "KeyedMatrix":
        # structure-preserving results keep the subclass (e.g. StiffnessMatrix)
        return type(self)(row_keys, column_keys, data, dtype=data.dtype)

    @classmethod
    def identity(cls, keys: Iterable[Hashable], dtype: Any = float) -> "KeyedMatrix":
        keys = tuple(keys)
        return cls(keys, keys, np.eye(len(keys), dtype=dtype), dtype=dtype)

    # ------------------------------------------------------------------
    # Shape and keys
    # ------------------------------------------------------------------

    @property
    def row_keys(self) -> Tuple[Hashable, ...]:
        return self._row_keys

    @property
    def column_keys(self) -> Tuple[Hashable, ...]:
        return self._column_keys

    @property
    def row_count(self) -> int:
        return len(self._row_keys)

    @property
    def column_count(self) -> int:
        return len(self._column_keys)

    @property
    def shape(self) -> Tuple[int, int]:
        return self._data.shape

    @property
    def dtype(self):
        return self._data.dtype

    @property
    def is_square(self) -> bool:
        return self.row_count == self.column_count

    def row_index_of(self, key: Hashable) -> int:
        try:
            return self._row_index[key]
        except KeyError:
            raise KeyError(f"Row key {key!r} is not part of this matrix") from None

    def column_index_of(self, key: Hashable) -> int:
        try:
            return self._column_index[key]
        except KeyError:
            raise KeyError(f"Column key {key!r} is not part of this matrix") from None

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------

    def at(self, row: int, column: int):
        """Element at a position, without range checking."""
        return self._data[row, column]

    def set_at(self, row: int, column: int, value) -> None:
        """Set an element by position, without range checking. Not thread-safe."""
        self._data[row, column] = value

    def _validate_range(self, row: int, column: int) -> None:
        if not 0 <= row < self.row_count:
            raise IndexError(f"Row index {row} is out of range for {self.row_count} rows")
        if not 0 <= column < self.column_count:
            raise IndexError(f"Column index {column} is out of range for {self.column_count} columns")

    def __getitem__(self, position: Tuple[int, int]):
        row, column = position
        self._validate_range(row, column)
        return self._data[row, column]

    def __setitem__(self, position: Tuple[int, int], value) -> None:
        row, column = position
        self._validate_range(row, column)
        self._data[row, column] = value

    def value_of(self, row_key: Hashable, column_key: Hashable):
        return self._data[self.row_index_of(row_key), self.column_index_of(column_key)]

    def set_value_of(self, row_key: Hashable, column_key: Hashable, value) -> None:
        self._data[self.row_index_of(row_key), self.column_index_of(column_key)] = value

    def add_to_value_of(self, row_key: Hashable, column_key: Hashable, value) -> None:
        """Accumulate into one element (scatter-add during assembly)."""
        self._data[self.row_index_of(row_key), self.column_index_of(column_key)] += value

    def row(self, key: Hashable) -> KeyedVector:
        return KeyedVector(self._column_keys, self._data[self.row_index_of(key), :], dtype=self.dtype)

    def column(self, key: Hashable) -> KeyedVector:
        return KeyedVector(self._row_keys, self._data[:, self.column_index_of(key)], dtype=self.dtype)

    def to_array(self) -> np.ndarray:
        return self._data.copy()

    def sub_matrix(self, row_keys: Iterable[Hashable], column_keys: Iterable[Hashable]) -> "KeyedMatrix":
        """
        Copy of the block spanned by the given keys, in the given order.

        The result is keyed by exactly these keys, so it can be combined
        with vectors that use the same ordering.
        """
        row_keys = tuple(row_keys)
        column_keys = tuple(column_keys)
        rows = [self.row_index_of(k) for k in row_keys]
        columns = [self.column_index_of(k) for k in column_keys]
        return self._like(row_keys, column_keys, self._data[np.ix_(rows, columns)])

    def clear(self) -> None:
        self._data[:, :] = 0

    def clone(self) -> "KeyedMatrix":
        return self._like(self._row_keys, self._column_keys, self._data.copy())

    def transpose(self) -> "KeyedMatrix":
        return self._like(self._column_keys, self._row_keys, self._data.T.copy())

    # ------------------------------------------------------------------
    # Algebra
    # ------------------------------------------------------------------

    def multiply(self, other: Union[KeyedVector, "KeyedMatrix", float]):
        """
        Matrix product with a keyed vector or keyed matrix, or scaling by a scalar.

        - matrix · vector: vector keys must equal the column keys; result keyed by row keys
        - matrix · matrix: other's row keys must equal our column keys
        """
        if other is None:
            raise ValueError("multiply: operand must not be None")
        if isinstance(other, KeyedVector):
            require_matching_keys(self._column_keys, other.keys, "matrix-vector multiply")
            product = self._data @ other.to_array()
            return KeyedVector(self._row_keys, product, dtype=product.dtype)
        if isinstance(other, KeyedMatrix):
            require_matching_keys(self._column_keys, other.row_keys, "matrix-matrix multiply")
            product = self._data @ other._data
            return KeyedMatrix(self._row_keys, other.column_keys, product, dtype=product.dtype)
        return self._like(self._row_keys, self._column_keys, self._data * other)

    def _check_same_keys(self, other: "KeyedMatrix", what: str) -> None:
        if other is None:
            raise ValueError(f"{what}: other matrix must not be None")
        if not isinstance(other, KeyedMatrix):
            raise TypeError(f"{what}: expected a KeyedMatrix, got {type(other).__name__}")
        require_matching_keys(self._row_keys, other.row_keys, f"{what} (rows)")
        require_matching_keys(self._column_keys, other.column_keys, f"{what} (columns)")

    def add(self, other: "KeyedMatrix") -> "KeyedMatrix":
        self._check_same_keys(other, "add")
        return self._like(self._row_keys, self._column_keys, self._data + other._data)

    def subtract(self, other: "KeyedMatrix") -> "KeyedMatrix":
        self._check_same_keys(other, "subtract")
        return self._like(self._row_keys, self._column_keys, self._data - other._data)

    def __add__(self, other):
        if not isinstance(other, KeyedMatrix):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other):
        if not isinstance(other, KeyedMatrix):
            return NotImplemented
        return self.subtract(other)

    def __neg__(self):
        return self._like(self._row_keys, self._column_keys, -self._data)

    def __matmul__(self, other):
        if not isinstance(other, (KeyedVector, KeyedMatrix)):
            return NotImplemented
        return self.multiply(other)

    def __mul__(self, scalar):
        if isinstance(scalar, (KeyedVector, KeyedMatrix, np.ndarray)):
            return NotImplemented
        return self.multiply(scalar)

    __rmul__ = __mul__

    def _require_square(self, what: str) -> None:
        if not self.is_square:
            raise ValueError(f"{what} requires a square matrix, got shape {self.shape}")

    def determinant(self):
        """
        Determinant of the matrix.

        Expensive (an LU factorization) and scale dependent: a stiffness
        block in N/m has a determinant many orders of magnitude away from
        the same block in kN/mm. See normalized_determinant().
        """
        self._require_square("determinant")
        return np.linalg.det(self._data)

    def _unit_diagonal_scaled(self) -> Optional[np.ndarray]:
        # D^-1/2 · A · D^-1/2, or None when a diagonal entry is zero
        diagonal = np.abs(np.diag(self._data))
        if np.any(diagonal == 0.0):
            return None
        scale = 1.0 / np.sqrt(diagonal)
        return self._data * np.outer(scale, scale)

    def normalized_determinant(self) -> float:
        """
        Determinant after symmetric diagonal scaling D^-1/2 · A · D^-1/2.

        For a symmetric positive semi-definite matrix this lies in [0, 1]
        (Hadamard's inequality) whatever the units. It is the product of all
        scaled pivots, so it also shrinks as the matrix grows: compare it
        against a tolerance only for small matrices. A zero on the diagonal
        gives 0.
        """
        self._require_square("normalized_determinant")
        scaled = self._unit_diagonal_scaled()
        if scaled is None:
            return 0.0
        return float(np.real(np.linalg.det(scaled)))

    def normalized_condition_number(self) -> float:
        """
        2-norm condition number after the same diagonal scaling.

        Independent of units and, unlike the determinant, of matrix size for
        a well-supported structure. Infinite for a zero on the diagonal or an
        exactly singular matrix.
        """
        self._require_square("normalized_condition_number")
        scaled = self._unit_diagonal_scaled()
        if scaled is None:
            return float("inf")
        return float(np.linalg.cond(scaled))

    def inverse(self) -> "KeyedMatrix":
        """
        Inverse matrix, keyed (column keys) x (row keys).

        Raises numpy.linalg.LinAlgError for an exactly singular matrix.
        """
        self._require_square("inverse")
        inverse = np.linalg.inv(self._data)
        return KeyedMatrix(self._column_keys, self._row_keys, inverse, dtype=inverse.dtype)

    def is_symmetric(self, rtol: float = 1e-9, atol: float = 1e-12) -> bool:
        if not self.is_square or self._row_keys != self._column_keys:
            return False
        return bool(np.allclose(self._data, self._data.T, rtol=rtol, atol=atol))

    def svd(self, compute_vectors: bool = True, tolerance: Optional[float] = None):
        """Singular value decomposition of this matrix (see KeyedSvd)."""
        from .svd import KeyedSvd
        return KeyedSvd(self, compute_vectors=compute_vectors, tolerance=tolerance)

    # ------------------------------------------------------------------
    # Equality, hashing, display
    # ------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        if not isinstance(other, KeyedMatrix):
            return NotImplemented
        if self.shape != other.shape:
            return False
        if self is other:
            return True
        return (
            self._row_keys == other._row_keys
            and self._column_keys == other._column_keys
            and bool(np.array_equal(self._data, other._data))
        )

    def __hash__(self) -> int:
        flat = self._data.ravel()
        sample = min(flat.size, HASH_SAMPLE_SIZE)
        return hash((self.shape, tuple(flat[:sample].tolist())))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(rows={self.row_count}, columns={self.column_count})"

    def __str__(self) -> str:
        row_labels = [str(k) for k in self._row_keys]
        column_labels = [str(k) for k in self._column_keys]
        cells = [[f"{v:.6g}" for v in row] for row in self._data.tolist()]
        width = max([len(c) for c in column_labels] + [len(c) for row in cells for c in row])
        label_width = max(len(r) for r in row_labels)
        lines = [" " * label_width + "  " + " ".join(f"{c:>{width}}" for c in column_labels)]
        for label, row in zip(row_labels, cells):
            lines.append(f"{label:>{label_width}}  " + " ".join(f"{c:>{width}}" for c in row))
        return "\n".join(lines)
