"""Fixed-length numeric array value type on top of JAX."""

from __future__ import annotations

import operator
import os
from functools import lru_cache
from typing import Callable, ClassVar, Final

import jax
from jax import lax
import jax.numpy as jnp

from .dtypes import bit_pattern, coerce_scalar, element_dtype, is_integer_dtype
from .errors import VecXIndexError, VecXLengthError, VecXShapeError, VecXTypeError, VecXZeroDivisionError

_SPECIALIZATION_CACHE_MAX: Final[int] = max(1, int(os.environ.get("VECX_JAX_SPECIALIZATION_CACHE_MAX", "256")))

_UNORDERED: Final = object()


def _floor_divide(w: jnp.ndarray, x: jnp.ndarray) -> jnp.ndarray:
    return jnp.floor_divide(w, x)


_BINARY_OPS: Final[dict[str, Callable[[jnp.ndarray, jnp.ndarray], jnp.ndarray]]] = {
    "+": lax.add,
    "-": lax.sub,
    "*": lax.mul,
    "/": lax.div,
    "%": lax.rem,
    "//": _floor_divide,
}
_DIVISION_OPS: Final[frozenset[str]] = frozenset({"/", "%", "//"})


def _as_element_array(data, dtype, *, where: str) -> jnp.ndarray:
    source = data if isinstance(data, jax.Array) else jnp.asarray(data)
    if source.ndim != 1:
        raise VecXShapeError(f"{where} must be one-dimensional, got shape {tuple(source.shape)}")

    if dtype is None:
        if source.size:
            element_dtype(source.dtype)
        return source

    target = element_dtype(dtype)
    if source.dtype == target:
        return source
    if source.size and is_integer_dtype(target) and not is_integer_dtype(source.dtype):
        raise VecXTypeError(
            f"{where} of dtype {source.dtype.name} cannot build {target.name} elements; use cast_to()"
        )
    if isinstance(data, jax.Array):
        raise VecXTypeError(f"{where} has dtype {source.dtype.name}, expected {target.name}; use cast_to()")
    try:
        return jnp.asarray(data, dtype=target)
    except OverflowError as err:
        raise VecXTypeError(f"{where} has values out of range for {target.name}") from err


def _lex_order(lhs: jnp.ndarray, rhs: jnp.ndarray):
    """-1, 0 or 1 from the first differing position; `_UNORDERED` on NaN."""
    differs = lhs != rhs
    if not bool(jnp.any(differs)):
        return 0
    pos = int(jnp.argmax(differs))
    if bool(lhs[pos] < rhs[pos]):
        return -1
    if bool(lhs[pos] > rhs[pos]):
        return 1
    return _UNORDERED


class FixedArray:
    """Immutable fixed-length array of numeric scalars.

    `FixedArray([1, 2, 3])` infers length and dtype from its data, while
    `FixedArray[jnp.uint8, 3]` is a specialised subclass that enforces both.
    Arithmetic is elementwise and keeps the dtype; ordering is lexicographic.
    """

    __slots__ = ("_data",)

    element_dtype: ClassVar[jnp.dtype | None] = None
    length: ClassVar[int | None] = None

    def __init__(self, data, dtype=None) -> None:
        if isinstance(data, FixedArray):
            data = data.data
        if dtype is None:
            dtype = type(self).element_dtype
        arr = _as_element_array(data, dtype, where=f"{type(self).__name__} elements")
        expected = type(self).length
        if expected is not None and int(arr.shape[0]) != expected:
            raise VecXLengthError(expected=expected, found=int(arr.shape[0]), where=f"{type(self).__name__} elements")
        self._data = arr

    def __class_getitem__(cls, params) -> type["FixedArray"]:
        if not isinstance(params, tuple) or len(params) != 2:
            raise TypeError("FixedArray[...] expects exactly two parameters: FixedArray[dtype, length]")
        dtype, length = params
        length = operator.index(length)
        if length < 0:
            raise VecXShapeError(f"FixedArray length must be non-negative, got {length}")
        return _specialize(element_dtype(dtype), length)

    @classmethod
    def _wrap(cls, arr: jnp.ndarray) -> "FixedArray":
        out = object.__new__(cls)
        out._data = arr
        return out

    @classmethod
    def from_array(cls, data, dtype=None) -> "FixedArray":
        return cls(data, dtype)

    @classmethod
    def from_broadcast(cls, scalar, length: int | None = None, dtype=None) -> "FixedArray":
        """Build an array with every position set to `scalar`."""
        if length is None:
            length = cls.length
        if length is None:
            raise VecXShapeError("from_broadcast() needs a length for an unspecialised FixedArray")
        length = operator.index(length)
        if length < 0:
            raise VecXShapeError(f"from_broadcast() length must be non-negative, got {length}")
        if cls.length is not None and length != cls.length:
            raise VecXLengthError(expected=cls.length, found=length, where="from_broadcast() length")
        if dtype is None:
            dtype = cls.element_dtype
        if dtype is None:
            dtype = jnp.asarray(scalar).dtype
        dt = element_dtype(dtype)
        value = coerce_scalar(scalar, dt, where="from_broadcast() scalar")
        return cls._wrap(jnp.full((length,), value, dtype=dt))

    @property
    def data(self) -> jnp.ndarray:
        return self._data

    @property
    def dtype(self) -> jnp.dtype:
        return self._data.dtype

    def __len__(self) -> int:
        return int(self.data.shape[0])

    def __iter__(self):
        return iter(self.data)

    def at(self, index) -> jnp.ndarray:
        i = operator.index(index)
        if not 0 <= i < len(self):
            raise VecXIndexError(index=i, length=len(self))
        return self.data[i]

    def __getitem__(self, index) -> jnp.ndarray:
        return self.at(index)

    def replace(self, index, value) -> "FixedArray":
        i = operator.index(index)
        if not 0 <= i < len(self):
            raise VecXIndexError(index=i, length=len(self))
        scalar = coerce_scalar(value, self.data.dtype, where="replacement value")
        return self._wrap(self.data.at[i].set(scalar))

    def tolist(self) -> list:
        return self.data.tolist()

    def copy(self) -> "FixedArray":
        return self._wrap(self.data)

    def cast_to(self, dtype) -> "FixedArray":
        """Convert every element to `dtype` with JAX's numeric conversion rules.

        Float to integer truncates toward zero; integer narrowing wraps. The
        result keeps the length and, for specialised inputs, is an instance of
        the matching `FixedArray[dtype, N]`.
        """
        dt = element_dtype(dtype)
        converted = lax.convert_element_type(self.data, dt)
        if type(self).length is None:
            return FixedArray._wrap(converted)
        return _specialize(dt, len(self))._wrap(converted)

    def content_key(self) -> tuple[str, tuple[int, ...]]:
        """Hashable key equal for two arrays iff they are bit-identical."""
        return (self.data.dtype.name, tuple(bit_pattern(self.data).tolist()))

    def identical(self, other: "FixedArray") -> bool:
        return isinstance(other, FixedArray) and self.content_key() == other.content_key()

    def _operand(self, other, *, where: str) -> jnp.ndarray | None:
        if isinstance(other, FixedArray):
            if len(other) != len(self):
                raise VecXShapeError(f"{where} length mismatch: {len(self)} vs {len(other)}")
            if other.data.dtype != self.data.dtype:
                raise VecXTypeError(f"{where} dtype mismatch: {self.data.dtype.name} vs {other.data.dtype.name}")
            return other.data
        if isinstance(other, jax.Array) and other.ndim != 0:
            return None
        if isinstance(other, (list, tuple, str)):
            return None
        scalar = coerce_scalar(other, self.data.dtype, where=f"{where} scalar")
        return jnp.full(self.data.shape, scalar, dtype=self.data.dtype)

    def _binary(self, op: str, other, *, reflected: bool = False):
        rhs = self._operand(other, where=f"'{op}'")
        if rhs is None:
            return NotImplemented
        w, x = (rhs, self.data) if reflected else (self.data, rhs)
        if op in _DIVISION_OPS and is_integer_dtype(x.dtype):
            zeros = x == 0
            if bool(jnp.any(zeros)):
                raise VecXZeroDivisionError(f"integer '{op}' by zero at position {int(jnp.argmax(zeros))}")
        return self._wrap(_BINARY_OPS[op](w, x))

    def __add__(self, other):
        return self._binary("+", other)

    def __sub__(self, other):
        return self._binary("-", other)

    def __mul__(self, other):
        return self._binary("*", other)

    def __truediv__(self, other):
        return self._binary("/", other)

    def __mod__(self, other):
        return self._binary("%", other)

    def __floordiv__(self, other):
        return self._binary("//", other)

    def __radd__(self, other):
        return self._binary("+", other, reflected=True)

    def __rsub__(self, other):
        return self._binary("-", other, reflected=True)

    def __rmul__(self, other):
        return self._binary("*", other, reflected=True)

    def __rtruediv__(self, other):
        return self._binary("/", other, reflected=True)

    def __rmod__(self, other):
        return self._binary("%", other, reflected=True)

    def __rfloordiv__(self, other):
        return self._binary("//", other, reflected=True)

    # Values are immutable: augmented assignment rebinds the target.
    __iadd__ = __add__
    __isub__ = __sub__
    __imul__ = __mul__
    __itruediv__ = __truediv__
    __imod__ = __mod__
    __ifloordiv__ = __floordiv__

    def __eq__(self, other) -> bool:
        if not isinstance(other, FixedArray):
            return NotImplemented
        if len(other) != len(self) or other.data.dtype != self.data.dtype:
            return False
        return bool(jnp.all(self.data == other.data))

    def __hash__(self) -> int:
        return hash((self.data.dtype.name, tuple(self.tolist())))

    def _order(self, other, *, where: str):
        if not isinstance(other, FixedArray):
            return NotImplemented
        return _lex_order(self.data, self._operand(other, where=where))

    def __lt__(self, other):
        order = self._order(other, where="'<'")
        return order if order is NotImplemented else order == -1

    def __le__(self, other):
        order = self._order(other, where="'<='")
        return order if order is NotImplemented else order in (-1, 0)

    def __gt__(self, other):
        order = self._order(other, where="'>'")
        return order if order is NotImplemented else order == 1

    def __ge__(self, other):
        order = self._order(other, where="'>='")
        return order if order is NotImplemented else order in (0, 1)

    def __repr__(self) -> str:
        name = "FixedArray" if type(self).length is None else type(self).__name__
        return f"{name}({self.tolist()!r}, dtype={self.data.dtype.name})"


@lru_cache(maxsize=_SPECIALIZATION_CACHE_MAX)
def _specialize(dtype: jnp.dtype, length: int) -> type[FixedArray]:
    return type(
        f"FixedArray[{dtype.name}, {length}]",
        (FixedArray,),
        {"element_dtype": dtype, "length": length, "__slots__": (), "__module__": __name__},
    )


def specialization_cache_stats(*, reset: bool = False) -> dict[str, float | int]:
    info = _specialize.cache_info()
    total = info.hits + info.misses
    stats: dict[str, float | int] = {
        "hits": int(info.hits),
        "misses": int(info.misses),
        "size": int(info.currsize),
        "max_size": int(info.maxsize) if info.maxsize is not None else 0,
        "hit_rate": float(info.hits / total) if total else 0.0,
    }
    if reset:
        _specialize.cache_clear()
    return stats
