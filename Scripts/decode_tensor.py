from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np

from yolov2_kit import (
    COCO_LABELS,
    GridConfig,
    PostConfig,
    YoloPostprocessor,
    load_class_names,
    load_model_profile,
    reference_post_config,
)


def _build_configs(args: argparse.Namespace) -> Tuple[GridConfig, PostConfig, List[str]]:
    labels = list(COCO_LABELS)
    if args.profile:
        grid, post, profile_labels = load_model_profile(Path(args.profile))
        if profile_labels is not None:
            labels = profile_labels
        if args.channels_first:
            grid = replace(grid, channels_first=True)
    else:
        grid = GridConfig(channels_first=bool(args.channels_first))
        post = reference_post_config()
    if args.names:
        labels = load_class_names(args.names)

    post = PostConfig(
        conf_threshold=post.conf_threshold if args.conf is None else float(args.conf),
        iou_threshold=post.iou_threshold if args.iou is None else float(args.iou),
        max_detections=post.max_detections if args.max_det is None else int(args.max_det),
        class_ids=post.class_ids,
    )
    return grid, post, labels


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Decode a saved raw YOLOv2 output tensor (.npy) and print the final boxes."
    )
    parser.add_argument("--tensor", required=True, help="Path to a .npy file holding one raw output tensor.")
    parser.add_argument("--profile", default=None, help="JSON model profile (grid, anchors, thresholds, labels).")
    parser.add_argument("--names", default=None, help="Class names file (one per line or YAML names mapping).")
    parser.add_argument("--channels-first", action="store_true", help="Tensor is (C, H, W) (Core ML layout).")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold override.")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold override.")
    parser.add_argument("--max-det", type=int, default=None, help="Max boxes to keep override.")
    parser.add_argument("--verbose", action="store_true", help="Log per-stage candidate counts.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        grid, post, labels = _build_configs(args)
        tensor = np.load(args.tensor)
        predictions = YoloPostprocessor(grid, post).process(tensor)
    except ValueError as exc:
        # Bad thresholds, a malformed profile or a tensor that does not fit the grid.
        print(f"error: {exc}", file=sys.stderr)
        return 2

    for pred in predictions:
        r = pred.rect
        print(f"{pred.label(labels)}  x={r.x:.1f} y={r.y:.1f} w={r.width:.1f} h={r.height:.1f}")
    print(f"predictions={len(predictions)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
