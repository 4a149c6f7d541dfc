"""Element dtype rules, scalar coercion and bit-pattern views."""

from __future__ import annotations

import numbers
import os
from typing import Final

import jax
from jax import lax
import jax.numpy as jnp

from .errors import VecXTypeError

_ENABLE_X64: Final[bool] = os.environ.get("VECX_JAX_ENABLE_X64", "0") == "1"
if _ENABLE_X64:
    jax.config.update("jax_enable_x64", True)

_UNSIGNED_BY_ITEMSIZE: Final[dict[int, object]] = {
    1: jnp.uint8,
    2: jnp.uint16,
    4: jnp.uint32,
    8: jnp.uint64,
}


def x64_enabled() -> bool:
    return jax.dtypes.canonicalize_dtype(jnp.int64) == jnp.dtype("int64")


def is_integer_dtype(dtype) -> bool:
    return bool(jnp.issubdtype(dtype, jnp.integer))


def is_floating_dtype(dtype) -> bool:
    return bool(jnp.issubdtype(dtype, jnp.floating))


def element_dtype(dtype) -> jnp.dtype:
    """Normalise a dtype-like and check that it is a supported element type.

    64-bit dtypes only exist while JAX runs in 64-bit mode. Outside of it JAX
    would silently fall back to the 32-bit type, so the request is rejected
    instead.
    """

    try:
        dt = jnp.dtype(dtype)
    except TypeError as err:
        raise VecXTypeError(f"Unsupported element dtype {dtype!r}") from err

    if dt == jnp.bool_ or not (is_integer_dtype(dt) or is_floating_dtype(dt)):
        raise VecXTypeError(f"Element dtype must be an integer or floating type, got {dt.name}")
    if jax.dtypes.canonicalize_dtype(dt) != dt:
        raise VecXTypeError(f"{dt.name} elements require 64-bit mode; set VECX_JAX_ENABLE_X64=1")
    return dt


def coerce_scalar(value, dtype, *, where: str = "scalar") -> jnp.ndarray:
    """Convert a scalar operand to a 0-d array of `dtype`."""

    if isinstance(value, jax.Array):
        if value.ndim != 0:
            raise VecXTypeError(f"{where} must be a scalar, got an array of shape {tuple(value.shape)}")
        integral = is_integer_dtype(value.dtype)
        real = integral or is_floating_dtype(value.dtype)
    else:
        integral = isinstance(value, numbers.Integral) and not isinstance(value, bool)
        real = isinstance(value, numbers.Real) and not isinstance(value, bool)

    if not real:
        raise VecXTypeError(f"{where} must be a real number, got {type(value).__name__}")
    if is_integer_dtype(dtype) and not integral:
        raise VecXTypeError(f"{where} must be an integer for {jnp.dtype(dtype).name} elements")

    try:
        return jnp.asarray(value, dtype=dtype)
    except OverflowError as err:
        raise VecXTypeError(f"{where} {value!r} is out of range for {jnp.dtype(dtype).name}") from err


def bit_pattern(arr: jnp.ndarray) -> jnp.ndarray:
    """Integer view whose equality is bit-for-bit equality of `arr`."""
    if is_integer_dtype(arr.dtype):
        return arr
    return lax.bitcast_convert_type(arr, _UNSIGNED_BY_ITEMSIZE[jnp.dtype(arr.dtype).itemsize])
