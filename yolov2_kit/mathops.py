from __future__ import annotations

import math
from typing import Sequence, Tuple, Union

import numpy as np

from .errors import EmptyClassSetError
from .types import Rect


ArrayLike = Union[float, Sequence[float], np.ndarray]


def sigmoid(x: ArrayLike) -> Union[float, np.ndarray]:
    """
    Logistic sigmoid, for scalars or arrays.

    Evaluated through exp(-|x|) so exp never overflows for large negative x.
    """

    arr = np.asarray(x, dtype=np.float64)
    z = np.exp(-np.abs(arr))
    out = np.where(arr >= 0, 1.0 / (1.0 + z), z / (1.0 + z))
    if out.ndim == 0:
        return float(out)
    return out


def softmax(xs: ArrayLike, axis: int = -1) -> np.ndarray:
    """
    Numerically stable softmax along `axis`.

        x -= max(x)
        e = exp(x)
        e / sum(e)
    """

    arr = np.asarray(xs, dtype=np.float64)
    if arr.ndim == 0 or arr.shape[axis] == 0:
        raise EmptyClassSetError("softmax needs at least one class score")
    shifted = arr - np.max(arr, axis=axis, keepdims=True)
    e = np.exp(shifted)
    return e / np.sum(e, axis=axis, keepdims=True)


def argmax(xs: ArrayLike) -> Tuple[int, float]:
    """
    Index and value of the largest element. The first occurrence wins on ties.
    """

    arr = np.asarray(xs, dtype=np.float64).ravel()
    if arr.size == 0:
        raise EmptyClassSetError("argmax of an empty sequence")
    i = int(np.argmax(arr))
    return i, float(arr[i])


def overlap_ratio(a: Rect, b: Rect) -> float:
    """
    Intersection-over-union of two rectangles.

    A rectangle whose area is not finite and positive never overlaps anything,
    itself included.
    """

    area_a = a.area
    area_b = b.area
    if not (math.isfinite(area_a) and area_a > 0):
        return 0.0
    if not (math.isfinite(area_b) and area_b > 0):
        return 0.0

    inter_w = max(min(a.max_x, b.max_x) - max(a.min_x, b.min_x), 0.0)
    inter_h = max(min(a.max_y, b.max_y) - max(a.min_y, b.min_y), 0.0)
    inter = inter_w * inter_h
    return float(inter / (area_a + area_b - inter))
