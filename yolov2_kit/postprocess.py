from __future__ import annotations

import logging
from typing import List

import numpy as np

from .config import GridConfig, PostConfig
from .decode import decode_grid
from .nms import NMSConfig, nms
from .types import Prediction


logger = logging.getLogger(__name__)


class YoloPostprocessor:
    """
    Raw grid/anchor output -> ranked, non-overlapping predictions.

    Stages:
    - decode every cell/anchor slot, keep score > conf_threshold
    - optional class filter (`post.class_ids`)
    - class-agnostic greedy NMS, at most `post.max_detections` boxes

    Holds only immutable configuration; `process` can be called from several
    threads at once as long as each call gets its own tensor.
    """

    def __init__(self, grid: GridConfig, post: PostConfig):
        self.grid = grid
        self.post = post
        self._nms_cfg = NMSConfig(iou_threshold=post.iou_threshold, max_detections=post.max_detections)

    def process(self, tensor: np.ndarray) -> List[Prediction]:
        """
        Run the full chain on one tensor. Raises ShapeMismatchError for a tensor
        that does not fit `self.grid`; an empty list means nothing was detected.
        """

        candidates = decode_grid(tensor, self.grid, self.post.conf_threshold)
        if not candidates:
            return []

        if self.post.class_ids is not None:
            wanted = set(self.post.class_ids)
            candidates = [c for c in candidates if c.class_index in wanted]
            if not candidates:
                return []

        kept = nms(candidates, self._nms_cfg)
        logger.debug("postprocess: %d candidates -> %d predictions", len(candidates), len(kept))
        return kept
