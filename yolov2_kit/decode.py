from __future__ import annotations

import logging
from typing import List

import numpy as np

from .config import GridConfig
from .errors import ShapeMismatchError
from .mathops import sigmoid, softmax
from .types import Prediction, Rect


logger = logging.getLogger(__name__)


def to_grid_layout(tensor: np.ndarray, grid: GridConfig) -> np.ndarray:
    """
    View a raw detector output as (grid_h, grid_w, num_anchors, 5 + num_classes).

    Accepted inputs:
    - (grid_h, grid_w, C), or (C, grid_h, grid_w) when `grid.channels_first`
    - either of the above with a leading batch axis of size 1
    - a flat buffer of exactly grid_h * grid_w * C values in the configured layout

    Never truncates or pads; anything else raises ShapeMismatchError. Returns a
    fresh array, the input is left untouched.
    """

    p = np.asarray(tensor)
    expected = grid.expected_shape

    if p.ndim == 4:
        if p.shape[0] != 1:
            raise ShapeMismatchError(p.shape, expected, "batch > 1 is not supported, pass one tensor at a time")
        p = p[0]

    if p.size != grid.expected_size:
        raise ShapeMismatchError(
            p.shape,
            expected,
            f"got {p.size} values, expected {grid.expected_size}",
        )
    if p.ndim == 1:
        p = p.reshape(expected)
    elif p.ndim != 3 or tuple(p.shape) != expected:
        raise ShapeMismatchError(p.shape, expected)

    if grid.channels_first:
        p = np.transpose(p, (1, 2, 0))

    return np.array(
        p.reshape(grid.grid_h, grid.grid_w, grid.num_anchors, grid.channels_per_anchor),
        dtype=np.float64,
    )


def decode_grid(tensor: np.ndarray, grid: GridConfig, conf_threshold: float) -> List[Prediction]:
    """
    Decode every grid cell / anchor slot and keep those scoring above `conf_threshold`.

    For cell (cy, cx) and anchor b:

        x = (sigmoid(tx) + cx) / grid_w * input_width
        y = (sigmoid(ty) + cy) / grid_h * input_height
        w = anchor_w[b] * exp(tw) / grid_w * input_width
        h = anchor_h[b] * exp(th) / grid_h * input_height
        score = sigmoid(t_obj) * max(softmax(class_logits))

    Box sizes are not clamped. Output order is row-major over (cy, cx, b); the
    caller is expected to sort.
    """

    p = to_grid_layout(tensor, grid)

    tx, ty, tw, th, t_obj = (p[..., i] for i in range(5))
    class_logits = p[..., 5:]

    cy = np.arange(grid.grid_h, dtype=np.float64)[:, None, None]
    cx = np.arange(grid.grid_w, dtype=np.float64)[None, :, None]
    anchors = np.asarray(grid.anchors, dtype=np.float64)
    anchor_w = anchors[:, 0][None, None, :]
    anchor_h = anchors[:, 1][None, None, :]

    x = (sigmoid(tx) + cx) / grid.grid_w * grid.input_width
    y = (sigmoid(ty) + cy) / grid.grid_h * grid.input_height
    # exp can overflow for absurd logits; the resulting inf box is the caller's problem.
    with np.errstate(over="ignore"):
        w = anchor_w * np.exp(tw) / grid.grid_w * grid.input_width
        h = anchor_h * np.exp(th) / grid.grid_h * grid.input_height

    confidence = sigmoid(t_obj)
    class_probs = softmax(class_logits, axis=-1)
    # np.argmax returns the first occurrence, so ties go to the lowest class index.
    best_class = np.argmax(class_probs, axis=-1)
    best_prob = np.take_along_axis(class_probs, best_class[..., None], axis=-1)[..., 0]
    scores = confidence * best_prob

    keep = np.argwhere(scores > conf_threshold)
    predictions: List[Prediction] = []
    for row, col, b in keep:
        bw = float(w[row, col, b])
        bh = float(h[row, col, b])
        predictions.append(
            Prediction(
                class_index=int(best_class[row, col, b]),
                score=float(scores[row, col, b]),
                rect=Rect(
                    x=float(x[row, col, b]) - bw / 2,
                    y=float(y[row, col, b]) - bh / 2,
                    width=bw,
                    height=bh,
                ),
            )
        )

    logger.debug(
        "decoded %d/%d slots above conf %.3f",
        len(predictions),
        grid.grid_h * grid.grid_w * grid.num_anchors,
        conf_threshold,
    )
    return predictions
