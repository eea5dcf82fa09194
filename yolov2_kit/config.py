from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import EmptyClassSetError


# Anchor priors (width, height) in grid-cell units for YOLOv2 trained on COCO.
COCO_ANCHORS: Tuple[Tuple[float, float], ...] = (
    (0.57273, 0.677385),
    (1.87446, 2.06253),
    (3.33843, 5.47434),
    (7.88282, 3.52778),
    (9.77052, 9.16828),
)


@dataclass(frozen=True)
class GridConfig:
    """
    Shape of a grid/anchor detector output and the input space it maps onto.

    The raw tensor packs, per anchor, (tx, ty, tw, th, obj, class_logits...) along
    the channel axis. With `channels_first` the tensor is (C, grid_h, grid_w)
    (Core ML style), otherwise (grid_h, grid_w, C).
    """

    grid_h: int = 13
    grid_w: int = 13
    anchors: Tuple[Tuple[float, float], ...] = COCO_ANCHORS
    num_classes: int = 80
    input_width: int = 416
    input_height: int = 416
    channels_first: bool = False

    def __post_init__(self) -> None:
        if self.grid_h < 1 or self.grid_w < 1:
            raise ValueError("grid_h and grid_w must be >= 1")
        if self.num_classes < 1:
            raise EmptyClassSetError("num_classes must be >= 1")
        if self.input_width <= 0 or self.input_height <= 0:
            raise ValueError("input_width and input_height must be > 0")
        if len(self.anchors) == 0:
            raise ValueError("anchors must contain at least one (width, height) pair")
        # Normalize to a tuple of float pairs so the config stays hashable.
        normalized = []
        for pair in self.anchors:
            if len(pair) != 2:
                raise ValueError(f"anchor must be a (width, height) pair, got {pair!r}")
            aw, ah = float(pair[0]), float(pair[1])
            if aw <= 0 or ah <= 0:
                raise ValueError(f"anchor sizes must be > 0, got {pair!r}")
            normalized.append((aw, ah))
        object.__setattr__(self, "anchors", tuple(normalized))

    @property
    def num_anchors(self) -> int:
        return len(self.anchors)

    @property
    def channels_per_anchor(self) -> int:
        return 5 + self.num_classes

    @property
    def num_channels(self) -> int:
        return self.num_anchors * self.channels_per_anchor

    @property
    def expected_shape(self) -> Tuple[int, int, int]:
        if self.channels_first:
            return self.num_channels, self.grid_h, self.grid_w
        return self.grid_h, self.grid_w, self.num_channels

    @property
    def expected_size(self) -> int:
        return self.grid_h * self.grid_w * self.num_channels


@dataclass(frozen=True)
class PostConfig:
    """
    Thresholds for turning candidates into the final box list.

    No defaults: the right values depend on the model they were tuned for.
    """

    conf_threshold: float
    iou_threshold: float
    max_detections: int
    # Optional list of class indices to keep; None keeps all.
    class_ids: Optional[Tuple[int, ...]] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be in [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.max_detections < 1:
            raise ValueError("max_detections must be >= 1")
        if self.class_ids is not None:
            object.__setattr__(self, "class_ids", tuple(int(c) for c in self.class_ids))


def reference_post_config() -> PostConfig:
    """
    Thresholds of the reference 416x416 COCO deployment.
    """

    return PostConfig(conf_threshold=0.3, iou_threshold=0.5, max_detections=10)


def _require_number(payload: Dict[str, Any], key: str) -> float:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _optional_int(payload: Dict[str, Any], key: str, default: int) -> int:
    if key not in payload:
        return default
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _parse_anchors(value: object) -> Tuple[Tuple[float, float], ...]:
    # Accept both [[w, h], ...] and the flat [w0, h0, w1, h1, ...] form.
    if not isinstance(value, list) or not value:
        raise ValueError("anchors must be a non-empty list")
    if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value):
        if len(value) % 2 != 0:
            raise ValueError("flat anchors list must have an even length")
        return tuple((float(value[i]), float(value[i + 1])) for i in range(0, len(value), 2))
    pairs = []
    for item in value:
        if not isinstance(item, list) or len(item) != 2:
            raise ValueError("anchors must be [width, height] pairs")
        if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in item):
            raise ValueError("anchor sizes must be numbers")
        pairs.append((float(item[0]), float(item[1])))
    return tuple(pairs)


def _parse_labels(value: object) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError("labels must be a list of strings")
    return list(value)


def load_model_profile(path: Path) -> Tuple[GridConfig, PostConfig, Optional[List[str]]]:
    """
    Load a JSON model profile: grid layout, thresholds and optional labels.

        {
          "schema_version": 1,
          "grid_h": 13, "grid_w": 13,
          "num_classes": 80,
          "anchors": [[0.57273, 0.677385], ...],
          "input_width": 416, "input_height": 416,
          "channels_first": true,
          "conf_threshold": 0.3, "iou_threshold": 0.5, "max_detections": 10,
          "class_ids": [0, 2],
          "labels": ["person", ...]
        }

    Grid keys fall back to GridConfig defaults; the thresholds are required.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Model profile not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid model profile JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Model profile must be a JSON object")

    allowed = {
        "schema_version",
        "grid_h",
        "grid_w",
        "num_classes",
        "anchors",
        "input_width",
        "input_height",
        "channels_first",
        "conf_threshold",
        "iou_threshold",
        "max_detections",
        "class_ids",
        "labels",
        "notes",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown model profile keys: {unknown}")

    if payload.get("schema_version") != 1:
        raise ValueError("model profile schema_version must be 1")

    defaults = GridConfig()
    channels_first = payload.get("channels_first", defaults.channels_first)
    if not isinstance(channels_first, bool):
        raise ValueError("channels_first must be a boolean")
    anchors = _parse_anchors(payload["anchors"]) if "anchors" in payload else defaults.anchors

    grid = GridConfig(
        grid_h=_optional_int(payload, "grid_h", defaults.grid_h),
        grid_w=_optional_int(payload, "grid_w", defaults.grid_w),
        anchors=anchors,
        num_classes=_optional_int(payload, "num_classes", defaults.num_classes),
        input_width=_optional_int(payload, "input_width", defaults.input_width),
        input_height=_optional_int(payload, "input_height", defaults.input_height),
        channels_first=channels_first,
    )

    class_ids: Optional[Sequence[int]] = payload.get("class_ids")
    if class_ids is not None:
        if not isinstance(class_ids, list) or any(
            isinstance(c, bool) or not isinstance(c, int) for c in class_ids
        ):
            raise ValueError("class_ids must be a list of integers")
        bad = [c for c in class_ids if not 0 <= c < grid.num_classes]
        if bad:
            raise ValueError(f"class_ids out of range [0, {grid.num_classes}): {bad}")

    post = PostConfig(
        conf_threshold=_require_number(payload, "conf_threshold"),
        iou_threshold=_require_number(payload, "iou_threshold"),
        max_detections=_require_int(payload, "max_detections"),
        class_ids=tuple(class_ids) if class_ids is not None else None,
    )

    labels = None
    if "labels" in payload:
        labels = _parse_labels(payload["labels"])
        if len(labels) != grid.num_classes:
            raise ValueError(f"labels has {len(labels)} entries, expected num_classes={grid.num_classes}")

    notes = payload.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise ValueError("notes must be a string if provided")

    return grid, post, labels
