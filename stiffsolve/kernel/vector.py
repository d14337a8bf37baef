# stiffsolve/kernel/vector.py
"""
KEYED VECTOR: Dense Vectors Addressed by Keys
=============================================

A KeyedVector is a plain numpy array plus an ordered tuple of unique keys:

    keys   = (N1.X,  N1.Z,  N4.Y)
    values = [ 0.0, -1000.0, 0.0]

Arithmetic between two keyed vectors only makes sense if element i of one
means the same thing as element i of the other. So every binary operation
checks that both key sequences are identical (same keys, same order) and
raises KeyMismatchError otherwise, instead of silently adding a Z force to
an X force.

Positional access comes in two flavours:
- at(i) / set_at(i, v): unchecked, for tight loops
- v[i] / v[i] = x:      range-checked, raises IndexError

NOTE: setters are not thread-safe. Concurrent mutation of one vector must be
synchronized by the caller.
"""

from typing import Any, Dict, Hashable, Iterable, Iterator, Mapping, Sequence, Tuple

import numpy as np

# Only the first few elements feed the hash; equal vectors still hash equal.
HASH_SAMPLE_SIZE = 25


class KeyMismatchError(ValueError):
    """Raised when two keyed operands do not share the same ordered keys."""
    pass


def _build_index(keys: Tuple[Hashable, ...], kind: str) -> Dict[Hashable, int]:
    if len(keys) <= 0:
        raise ValueError(f"{kind} must have a positive length, got 0 keys")
    index = {}
    for i, key in enumerate(keys):
        if key in index:
            raise ValueError(f"Duplicate key {key!r} in {kind.lower()}")
        index[key] = i
    return index


def require_matching_keys(expected: Sequence[Hashable], actual: Sequence[Hashable], what: str) -> None:
    """Raise KeyMismatchError unless both key sequences correspond positionally."""
    if tuple(expected) != tuple(actual):
        raise KeyMismatchError(
            f"{what}: keys do not correspond "
            f"(expected {len(expected)} keys {_preview(expected)}, got {len(actual)} keys {_preview(actual)})"
        )


def _preview(keys: Sequence[Hashable], limit: int = 6) -> str:
    shown = ", ".join(str(k) for k in list(keys)[:limit])
    return f"[{shown}, ...]" if len(keys) > limit else f"[{shown}]"


class KeyedVector:
    """
    Dense numeric vector whose elements are addressed by unique keys.

    Parameters:
    -----------
    keys : Iterable[Hashable]
        Ordered, unique keys. The position of a key never changes.
    values : array-like, optional
        Initial values (copied). Zeros if omitted.
    dtype : numpy dtype
        Element type of the backing array (float by default).

    Raises:
    -------
    ValueError
        Empty key sequence, duplicate keys or values of the wrong length.
    """

    def __init__(self, keys: Iterable[Hashable], values: Any = None, dtype: Any = float):
        self._keys = tuple(keys)
        self._index = _build_index(self._keys, "KeyedVector")
        n = len(self._keys)
        if values is None:
            self._data = np.zeros(n, dtype=dtype)
        else:
            data = np.array(values, dtype=dtype)
            if data.shape != (n,):
                raise ValueError(f"Expected {n} values for {n} keys, got shape {data.shape}")
            self._data = data

    @classmethod
    def _from_parts(cls, keys: Tuple[Hashable, ...], index: Dict[Hashable, int], data: np.ndarray) -> "KeyedVector":
        # keys/index are immutable once built, so derived vectors share them
        vector = cls.__new__(cls)
        vector._keys = keys
        vector._index = index
        vector._data = data
        return vector

    @classmethod
    def from_mapping(cls, mapping: Mapping[Hashable, float], dtype: Any = float) -> "KeyedVector":
        """Build a vector from a {key: value} mapping, keeping its iteration order."""
        return cls(list(mapping.keys()), list(mapping.values()), dtype=dtype)

    # ------------------------------------------------------------------
    # Shape and keys
    # ------------------------------------------------------------------

    @property
    def keys(self) -> Tuple[Hashable, ...]:
        return self._keys

    @property
    def dtype(self):
        return self._data.dtype

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._index

    def index_of(self, key: Hashable) -> int:
        try:
            return self._index[key]
        except KeyError:
            raise KeyError(f"Key {key!r} is not part of this vector") from None

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------

    def at(self, index: int):
        """Element at a position, without range checking."""
        return self._data[index]

    def set_at(self, index: int, value) -> None:
        """Set the element at a position, without range checking. Not thread-safe."""
        self._data[index] = value

    def _validate_range(self, index: int) -> None:
        if not 0 <= index < len(self._keys):
            raise IndexError(f"Index {index} is out of range for a vector of length {len(self._keys)}")

    def __getitem__(self, index: int):
        self._validate_range(index)
        return self._data[index]

    def __setitem__(self, index: int, value) -> None:
        self._validate_range(index)
        self._data[index] = value

    def value_of(self, key: Hashable):
        return self._data[self.index_of(key)]

    def set_value_of(self, key: Hashable, value) -> None:
        self._data[self.index_of(key)] = value

    def items(self) -> Iterator[Tuple[Hashable, Any]]:
        return zip(self._keys, self._data.tolist())

    def to_array(self) -> np.ndarray:
        return self._data.copy()

    def to_dict(self) -> Dict[Hashable, Any]:
        return dict(self.items())

    def sub_vector(self, keys: Iterable[Hashable]) -> "KeyedVector":
        """New vector holding the given keys (in the given order)."""
        keys = tuple(keys)
        positions = [self.index_of(k) for k in keys]
        return KeyedVector(keys, self._data[positions], dtype=self._data.dtype)

    # ------------------------------------------------------------------
    # Clearing and copying
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Set every element to zero."""
        self._data[:] = 0

    def clear_range(self, index: int, count: int) -> None:
        """Set count elements starting at index to zero."""
        if count < 1:
            raise ValueError(f"count must be positive, got {count}")
        if index < 0 or index + count > len(self):
            raise IndexError(f"Range [{index}, {index + count}) is out of bounds for length {len(self)}")
        self._data[index:index + count] = 0

    def clone(self) -> "KeyedVector":
        return KeyedVector._from_parts(self._keys, self._index, self._data.copy())

    def copy_to(self, target: "KeyedVector") -> None:
        """
        Copy all values into target, which must have the same keys.

        Copying a vector onto itself is a no-op.
        """
        if target is None:
            raise ValueError("target must not be None")
        if target is self:
            return
        if len(target) != len(self):
            raise ValueError(f"Vectors must have the same length ({len(self)} != {len(target)})")
        require_matching_keys(self._keys, target.keys, "copy_to")
        target._data[:] = self._data

    def copy_sub_vector_to(self, target: "KeyedVector", source_index: int, target_index: int, count: int) -> None:
        """
        Copy count values from source_index onwards to target_index onwards in target.

        This is a positional copy; keys are not compared. Source and target may be
        the same vector with overlapping ranges.
        """
        if target is None:
            raise ValueError("target must not be None")
        if count < 1:
            raise ValueError(f"count must be positive, got {count}")
        if source_index < 0 or source_index + count > len(self):
            raise IndexError(f"Source range [{source_index}, {source_index + count}) is out of bounds for length {len(self)}")
        if target_index < 0 or target_index + count > len(target):
            raise IndexError(f"Target range [{target_index}, {target_index + count}) is out of bounds for length {len(target)}")

        if target is self:
            staged = self._data[source_index:source_index + count].copy()
            self._data[target_index:target_index + count] = staged
            return

        target._data[target_index:target_index + count] = self._data[source_index:source_index + count]

    # ------------------------------------------------------------------
    # Algebra
    # ------------------------------------------------------------------

    def _check_operand(self, other: "KeyedVector", what: str) -> None:
        if other is None:
            raise ValueError(f"{what}: other vector must not be None")
        if not isinstance(other, KeyedVector):
            raise TypeError(f"{what}: expected a KeyedVector, got {type(other).__name__}")
        require_matching_keys(self._keys, other.keys, what)

    def add(self, other: "KeyedVector") -> "KeyedVector":
        self._check_operand(other, "add")
        return KeyedVector._from_parts(self._keys, self._index, self._data + other._data)

    def subtract(self, other: "KeyedVector") -> "KeyedVector":
        self._check_operand(other, "subtract")
        return KeyedVector._from_parts(self._keys, self._index, self._data - other._data)

    def multiply(self, scalar) -> "KeyedVector":
        return KeyedVector._from_parts(self._keys, self._index, self._data * scalar)

    def negate(self) -> "KeyedVector":
        return KeyedVector._from_parts(self._keys, self._index, -self._data)

    def dot(self, other: "KeyedVector"):
        self._check_operand(other, "dot")
        return self._data @ other._data

    def norm(self) -> float:
        """Euclidean (2-) norm."""
        return float(np.linalg.norm(self._data))

    def __add__(self, other):
        if not isinstance(other, KeyedVector):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other):
        if not isinstance(other, KeyedVector):
            return NotImplemented
        return self.subtract(other)

    def __mul__(self, scalar):
        if isinstance(scalar, (KeyedVector, np.ndarray)):
            return NotImplemented
        return self.multiply(scalar)

    __rmul__ = __mul__

    def __neg__(self):
        return self.negate()

    def __matmul__(self, other):
        if not isinstance(other, KeyedVector):
            return NotImplemented
        return self.dot(other)

    # ------------------------------------------------------------------
    # Equality, hashing, display
    # ------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        if not isinstance(other, KeyedVector):
            return NotImplemented
        if len(self) != len(other):
            return False
        if self is other:
            return True
        return self._keys == other._keys and bool(np.array_equal(self._data, other._data))

    def __hash__(self) -> int:
        sample = min(len(self), HASH_SAMPLE_SIZE)
        return hash(tuple(self._data[:sample].tolist()))

    def __repr__(self) -> str:
        pairs = ", ".join(f"{k}: {v:g}" if isinstance(v, float) else f"{k}: {v}" for k, v in self.items())
        return f"KeyedVector({{{pairs}}})"

    def __str__(self) -> str:
        width = max(len(str(k)) for k in self._keys)
        return "\n".join(f"{str(k):>{width}}  {v}" for k, v in self.items())
