"""
Post-processing for grid/anchor (YOLOv2-style) detector outputs.

Turns the raw (grid_h, grid_w, anchors * (5 + classes)) tensor a model emits into
a short, ranked, non-overlapping list of predictions. Depends only on NumPy;
running the model, resizing frames and drawing boxes stay with the caller.
"""

from .types import Prediction, Rect
from .errors import EmptyClassSetError, ShapeMismatchError
from .mathops import argmax, overlap_ratio, sigmoid, softmax
from .config import COCO_ANCHORS, GridConfig, PostConfig, load_model_profile, reference_post_config
from .metadata import COCO_LABELS, load_class_names
from .decode import decode_grid, to_grid_layout
from .nms import NMSConfig, nms, non_max_suppression
from .postprocess import YoloPostprocessor
from .runtime import AdmissionGate, FrameResult, FpsMeter, YoloPipeline

__all__ = [
    "Prediction",
    "Rect",
    "EmptyClassSetError",
    "ShapeMismatchError",
    "argmax",
    "overlap_ratio",
    "sigmoid",
    "softmax",
    "COCO_ANCHORS",
    "GridConfig",
    "PostConfig",
    "load_model_profile",
    "reference_post_config",
    "COCO_LABELS",
    "load_class_names",
    "decode_grid",
    "to_grid_layout",
    "NMSConfig",
    "nms",
    "non_max_suppression",
    "YoloPostprocessor",
    "AdmissionGate",
    "FrameResult",
    "FpsMeter",
    "YoloPipeline",
]
