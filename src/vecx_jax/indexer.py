"""Palette + indices compression of fixed-array sequences."""

from __future__ import annotations

import operator
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Final

import jax
from jax import lax
import jax.numpy as jnp

from .dtypes import bit_pattern, element_dtype
from .errors import VecXIndexError, VecXShapeError, VecXTypeError
from .fixed_array import FixedArray

INDEX_DTYPE: Final = jnp.uint32


@dataclass(frozen=True, eq=False)
class IndexedArrays:
    """Distinct values in first-appearance order plus one index per input.

    `values[indices[i]]` is bit-identical to the i-th input, so iterating or
    indexing an `IndexedArrays` reconstructs the original sequence.
    """

    values: tuple[FixedArray, ...]
    indices: jnp.ndarray

    def __post_init__(self) -> None:
        values = tuple(self.values)
        indices = jnp.asarray(self.indices, dtype=INDEX_DTYPE)
        if indices.ndim != 1:
            raise VecXShapeError(f"indices must be one-dimensional, got shape {tuple(indices.shape)}")
        if indices.size:
            top = int(jnp.max(indices))
            if top >= len(values):
                raise VecXIndexError(index=top, length=len(values), where="value index")
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "indices", indices)

    @classmethod
    def empty(cls) -> "IndexedArrays":
        return cls(values=(), indices=jnp.zeros((0,), dtype=INDEX_DTYPE))

    @property
    def num_values(self) -> int:
        return len(self.values)

    def __len__(self) -> int:
        return int(self.indices.shape[0])

    def __getitem__(self, index: int) -> FixedArray:
        i = operator.index(index)
        if not 0 <= i < len(self):
            raise VecXIndexError(index=i, length=len(self))
        return self.values[int(self.indices[i])]

    def __iter__(self) -> Iterator[FixedArray]:
        for i in self.indices.tolist():
            yield self.values[i]

    def to_list(self) -> list[FixedArray]:
        return list(self)

    def values_array(self) -> jnp.ndarray:
        """Palette as a `(num_values, N)` array; `(0, 0)` when empty."""
        if not self.values:
            return jnp.zeros((0, 0))
        return jnp.stack([value.data for value in self.values])

    def to_array(self) -> jnp.ndarray:
        """Reconstructed input as a `(len(self), N)` array."""
        if not self.values:
            return jnp.zeros((0, 0))
        return self.values_array()[self.indices]


class UniqueIndexer:
    """Incrementally deduplicates fixed arrays of one dtype and length.

    Lookup is keyed on the bit pattern of every element, so `-0.0` and `0.0`
    get separate slots and NaNs merge only when their payloads match.
    """

    def __init__(self) -> None:
        self._positions: dict[tuple[str, tuple[int, ...]], int] = {}
        self._values: list[FixedArray] = []
        self._indices: list[int] = []
        self._dtype: jnp.dtype | None = None
        self._length: int | None = None

    def __len__(self) -> int:
        return len(self._indices)

    @property
    def num_values(self) -> int:
        return len(self._values)

    def _check_compatible(self, value: object) -> FixedArray:
        if not isinstance(value, FixedArray):
            raise VecXTypeError(f"UniqueIndexer accepts FixedArray values, got {type(value).__name__}")
        if self._dtype is None:
            self._dtype = value.dtype
            self._length = len(value)
            return value
        if value.dtype != self._dtype:
            raise VecXTypeError(f"Indexed values have dtype {self._dtype.name}, got {value.dtype.name}")
        if len(value) != self._length:
            raise VecXShapeError(f"Indexed values have length {self._length}, got {len(value)}")
        return value

    def insert(self, value: FixedArray) -> bool:
        """Record one value; True when it was not seen before."""
        value = self._check_compatible(value)
        key = value.content_key()
        position = self._positions.get(key)
        if position is not None:
            self._indices.append(position)
            return False
        position = len(self._values)
        self._positions[key] = position
        self._values.append(value.copy())
        self._indices.append(position)
        return True

    def extend(self, values: Iterable[FixedArray]) -> None:
        for value in values:
            self.insert(value)

    def result(self) -> IndexedArrays:
        return IndexedArrays(
            values=tuple(self._values),
            indices=jnp.asarray(self._indices, dtype=INDEX_DTYPE),
        )

    @classmethod
    def from_sequence(cls, sequence: Iterable[FixedArray]) -> IndexedArrays:
        indexer = cls()
        indexer.extend(sequence)
        return indexer.result()

    @classmethod
    def from_array(cls, rows) -> IndexedArrays:
        """Index the rows of an `(M, N)` array in one vectorised pass.

        Produces the same result as `from_sequence` over the rows.
        """

        arr = rows if isinstance(rows, jax.Array) else jnp.asarray(rows)
        if arr.ndim != 2:
            raise VecXShapeError(f"from_array() expects a two-dimensional array, got shape {tuple(arr.shape)}")
        element_dtype(arr.dtype)
        count, length = (int(d) for d in arr.shape)
        if count == 0:
            return IndexedArrays.empty()
        if length == 0:
            return IndexedArrays(
                values=(FixedArray._wrap(arr[0]),),
                indices=jnp.zeros((count,), dtype=INDEX_DTYPE),
            )

        keys = bit_pattern(arr)
        _, inverse = jnp.unique(keys, axis=0, return_inverse=True)
        inverse = jnp.reshape(inverse, (-1,))
        num_unique = int(jnp.max(inverse)) + 1

        # Slots come out in sorted-key order; rank them by first occurrence.
        first_seen = jnp.full((num_unique,), count, dtype=inverse.dtype).at[inverse].min(
            jnp.arange(count, dtype=inverse.dtype)
        )
        order = jnp.argsort(first_seen)
        rank = jnp.zeros((num_unique,), dtype=order.dtype).at[order].set(jnp.arange(num_unique, dtype=order.dtype))
        indices = lax.convert_element_type(rank[inverse], INDEX_DTYPE)
        values = tuple(FixedArray._wrap(arr[int(i)]) for i in first_seen[order].tolist())
        return IndexedArrays(values=values, indices=indices)
