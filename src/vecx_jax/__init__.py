"""vecx-jax public API."""

from .dtypes import coerce_scalar, element_dtype, is_floating_dtype, is_integer_dtype, x64_enabled
from .errors import (
    VecXError,
    VecXIndexError,
    VecXLengthError,
    VecXShapeError,
    VecXTypeError,
    VecXZeroDivisionError,
)
from .fixed_array import FixedArray, specialization_cache_stats
from .indexer import INDEX_DTYPE, IndexedArrays, UniqueIndexer

__all__ = [
    "FixedArray",
    "UniqueIndexer",
    "IndexedArrays",
    "INDEX_DTYPE",
    "specialization_cache_stats",
    "element_dtype",
    "coerce_scalar",
    "is_integer_dtype",
    "is_floating_dtype",
    "x64_enabled",
    "VecXError",
    "VecXIndexError",
    "VecXLengthError",
    "VecXShapeError",
    "VecXTypeError",
    "VecXZeroDivisionError",
]
