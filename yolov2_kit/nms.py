from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .types import Prediction


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float
    max_detections: int


def _overlap_rows(boxes: np.ndarray, i: int, others: np.ndarray) -> np.ndarray:
    """
    IoU of box `i` against `others` (indices), boxes as (N, 4) xywh rows.

    Same rules as mathops.overlap_ratio: an area that is not finite and positive
    on either side gives 0.
    """

    x, y, w, h = boxes[i]
    ox, oy, ow, oh = boxes[others].T
    with np.errstate(invalid="ignore"):
        x2, y2 = x + w, y + h
        ox2, oy2 = ox + ow, oy + oh
        area_a = (x2 - x) * (y2 - y)
        area_b = (ox2 - ox) * (oy2 - oy)

        inter_w = np.maximum(np.minimum(x2, ox2) - np.maximum(x, ox), 0.0)
        inter_h = np.maximum(np.minimum(y2, oy2) - np.maximum(y, oy), 0.0)
        inter = inter_w * inter_h
        union = area_a + area_b - inter

    iou = np.zeros(others.shape[0], dtype=np.float64)
    if not (np.isfinite(area_a) and area_a > 0):
        return iou
    valid = np.isfinite(area_b) & (area_b > 0)
    iou[valid] = inter[valid] / union[valid]
    return iou


def non_max_suppression(
    predictions: Sequence[Prediction],
    limit: int,
    iou_threshold: float,
) -> List[Prediction]:
    """
    Greedy non-maximum suppression.

    Candidates are ranked by score (stable: on equal scores the earlier input wins).
    The best active candidate is kept, every later active candidate overlapping it
    by more than `iou_threshold` is suppressed for good, and the walk continues
    until `limit` boxes are kept or nothing is left active.
    """

    if limit < 1:
        raise ValueError("limit must be >= 1")
    n = len(predictions)
    if n == 0:
        return []

    order = sorted(range(n), key=lambda k: -predictions[k].score)
    boxes = np.array(
        [
            (p.rect.x, p.rect.y, p.rect.width, p.rect.height)
            for p in (predictions[k] for k in order)
        ],
        dtype=np.float64,
    )

    active = np.ones(n, dtype=bool)
    selected: List[Prediction] = []

    for i in range(n):
        if not active[i]:
            continue
        selected.append(predictions[order[i]])
        if len(selected) >= limit:
            break

        later = np.nonzero(active[i + 1:])[0] + i + 1
        if later.size == 0:
            break
        hit = later[_overlap_rows(boxes, i, later) > iou_threshold]
        active[hit] = False

    logger.debug("nms kept %d of %d candidates", len(selected), n)
    return selected


def nms(predictions: Sequence[Prediction], cfg: NMSConfig) -> List[Prediction]:
    return non_max_suppression(predictions, limit=cfg.max_detections, iou_threshold=cfg.iou_threshold)
