"""
Symmetric matrix stored as a packed lower triangle.

Covariance and co-moment matrices are symmetric, so only entries with
row >= column are stored. Indexing mirrors the upper triangle onto the
lower one, so consumers never need to know the storage convention:

    >>> m = SymmetricMatrix.from_dense([[2.0, 1.0], [1.0, 3.0]])
    >>> m[0, 1] == m[1, 0] == 1.0
    True

Packed layout: row i occupies packed[i*(i+1)//2 : i*(i+1)//2 + i + 1].
"""

from __future__ import annotations

from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray

from linereg.core.exceptions import DimensionMismatchError, ValidationError


def packed_length(size: int) -> int:
    """Number of stored entries for a size x size symmetric matrix."""
    return size * (size + 1) // 2


class SymmetricMatrix:
    """Symmetric size x size matrix backed by its packed lower triangle."""

    __slots__ = ('_size', '_packed', '_rows', '_cols')

    def __init__(self, size: int, packed: NDArray[np.floating[Any]]):
        packed = np.asarray(packed, dtype=np.float64)
        if packed.shape != (packed_length(size),):
            raise DimensionMismatchError(
                f"packed: expected shape ({packed_length(size)},) for size {size}, "
                f"got {packed.shape}",
                expected=packed_length(size),
                actual=packed.size,
            )
        self._size = size
        self._packed = packed
        self._rows, self._cols = np.tril_indices(size)

    # === Construction ===

    @classmethod
    def zeros(cls, size: int) -> SymmetricMatrix:
        return cls(size, np.zeros(packed_length(size), dtype=np.float64))

    @classmethod
    def from_dense(cls, matrix: ArrayLike) -> SymmetricMatrix:
        """Build from a square matrix, reading only its lower triangle."""
        a = np.asarray(matrix, dtype=np.float64)
        if a.ndim != 2 or a.shape[0] != a.shape[1]:
            raise DimensionMismatchError(
                f"matrix: expected square 2D array, got shape {a.shape}"
            )
        size = a.shape[0]
        return cls(size, a[np.tril_indices(size)].copy())

    @classmethod
    def from_lower_triangular(cls, rows: list[ArrayLike]) -> SymmetricMatrix:
        """Build from jagged rows, row i holding entries [i][0..i]."""
        size = len(rows)
        parts = []
        for i, row in enumerate(rows):
            r = np.asarray(row, dtype=np.float64)
            if r.shape != (i + 1,):
                raise DimensionMismatchError(
                    f"rows[{i}]: expected length {i + 1}, got shape {r.shape}",
                    expected=i + 1,
                    actual=r.size,
                )
            parts.append(r)
        packed = np.concatenate(parts) if parts else np.zeros(0)
        return cls(size, packed)

    @classmethod
    def outer(cls, x: NDArray[np.floating[Any]]) -> SymmetricMatrix:
        """Lower triangle of x xᵗ."""
        m = cls.zeros(x.shape[0])
        m.add_outer(x)
        return m

    # === Access ===

    @property
    def size(self) -> int:
        return self._size

    @property
    def packed(self) -> NDArray[np.floating[Any]]:
        """Read-only view of the packed lower triangle."""
        view = self._packed.view()
        view.flags.writeable = False
        return view

    def _index(self, i: int, j: int) -> int:
        if not (0 <= i < self._size and 0 <= j < self._size):
            raise IndexError(
                f"index ({i}, {j}) out of range for size {self._size}"
            )
        if i < j:
            i, j = j, i
        return i * (i + 1) // 2 + j

    def __getitem__(self, key: tuple[int, int]) -> float:
        i, j = key
        return float(self._packed[self._index(i, j)])

    def __setitem__(self, key: tuple[int, int], value: float) -> None:
        i, j = key
        self._packed[self._index(i, j)] = value

    def row(self, i: int) -> NDArray[np.floating[Any]]:
        """Stored entries [i][0..i] of row i (a copy)."""
        start = i * (i + 1) // 2
        return self._packed[start:start + i + 1].copy()

    def lower_triangular(self) -> list[NDArray[np.floating[Any]]]:
        """Jagged rows, entry [i][j] defined for j <= i."""
        return [self.row(i) for i in range(self._size)]

    def diagonal(self) -> NDArray[np.floating[Any]]:
        idx = np.arange(self._size)
        return self._packed[idx * (idx + 1) // 2 + idx].copy()

    def to_dense(self) -> NDArray[np.floating[Any]]:
        dense = np.zeros((self._size, self._size), dtype=np.float64)
        dense[self._rows, self._cols] = self._packed
        dense[self._cols, self._rows] = self._packed
        return dense

    def quadratic_form(self, c: ArrayLike) -> float:
        """cᵗ M c."""
        v = np.asarray(c, dtype=np.float64)
        if v.shape != (self._size,):
            raise DimensionMismatchError(
                f"c: expected length {self._size}, got shape {v.shape}",
                expected=self._size,
                actual=v.size,
            )
        return float(v @ self.to_dense() @ v)

    # === Arithmetic ===

    def add_outer(self, x: NDArray[np.floating[Any]], scale: float = 1.0) -> None:
        """In place: M += scale * x xᵗ (lower triangle only)."""
        self._packed += scale * x[self._rows] * x[self._cols]

    def add_gram(self, X: NDArray[np.floating[Any]]) -> None:
        """In place: M += Xᵗ X for a batch of rows X (n x size)."""
        self._packed += (X.T @ X)[self._rows, self._cols]

    def iadd(self, other: SymmetricMatrix) -> None:
        """In place: M += other."""
        self._check_same_size(other)
        self._packed += other._packed

    def __add__(self, other: SymmetricMatrix) -> SymmetricMatrix:
        self._check_same_size(other)
        return SymmetricMatrix(self._size, self._packed + other._packed)

    def copy(self) -> SymmetricMatrix:
        return SymmetricMatrix(self._size, self._packed.copy())

    def _check_same_size(self, other: SymmetricMatrix) -> None:
        if not isinstance(other, SymmetricMatrix):
            raise ValidationError(
                f"other: expected SymmetricMatrix, got {type(other).__name__}"
            )
        if other._size != self._size:
            raise DimensionMismatchError(
                f"matrix sizes differ: {self._size} vs {other._size}",
                expected=self._size,
                actual=other._size,
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SymmetricMatrix):
            return NotImplemented
        return self._size == other._size and np.array_equal(self._packed, other._packed)

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"SymmetricMatrix(size={self._size})"
