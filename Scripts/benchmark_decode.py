from __future__ import annotations

import argparse
import logging
import time
from typing import List, Optional, Sequence

import numpy as np

from yolov2_kit import GridConfig, NMSConfig, decode_grid, nms


def _summary_line(label: str, values_s: List[float]) -> str:
    ms = np.asarray(values_s, dtype=np.float64) * 1000.0
    p50, p90, p95 = np.percentile(ms, [50.0, 90.0, 95.0])
    return f"{label}: n={ms.size} mean={ms.mean():.3f}ms p50={p50:.3f}ms p90={p90:.3f}ms p95={p95:.3f}ms"


def _synthetic_tensor(rng: np.random.Generator, grid: GridConfig, obj_bias: float) -> np.ndarray:
    t = rng.normal(0.0, 1.0, size=grid.expected_shape).astype(np.float32)
    # Shift objectness logits so roughly the requested share of slots passes the threshold.
    view = t.reshape(grid.grid_h, grid.grid_w, grid.num_anchors, grid.channels_per_anchor)
    view[..., 4] += obj_bias
    return t


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Benchmark grid decoding and NMS latency on synthetic YOLOv2 output tensors."
    )
    parser.add_argument("--grid", type=int, default=13, help="Grid size (grid_h = grid_w).")
    parser.add_argument("--classes", type=int, default=80, help="Number of classes.")
    parser.add_argument("--imgsz", type=int, default=416, help="Model input size.")
    parser.add_argument("--conf", type=float, default=0.3, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.5, help="IoU threshold for NMS.")
    parser.add_argument("--max-det", type=int, default=10, help="Max boxes to keep after NMS.")
    parser.add_argument("--obj-bias", type=float, default=0.0, help="Added to every objectness logit.")
    parser.add_argument("--warmup", type=int, default=10, help="Iterations to run but not record.")
    parser.add_argument("--repeats", type=int, default=200, help="Recorded iterations.")
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args(argv)

    if args.grid < 1:
        raise ValueError("--grid must be >= 1")
    if args.classes < 1:
        raise ValueError("--classes must be >= 1")
    if args.warmup < 0:
        raise ValueError("--warmup must be >= 0")
    if args.repeats < 1:
        raise ValueError("--repeats must be >= 1")
    if args.max_det < 1:
        raise ValueError("--max-det must be >= 1")

    logging.basicConfig(level=logging.INFO)

    grid = GridConfig(
        grid_h=int(args.grid),
        grid_w=int(args.grid),
        num_classes=int(args.classes),
        input_width=int(args.imgsz),
        input_height=int(args.imgsz),
    )
    nms_cfg = NMSConfig(iou_threshold=float(args.iou), max_detections=int(args.max_det))
    rng = np.random.default_rng(int(args.seed))

    t_decode: List[float] = []
    t_nms: List[float] = []
    n_candidates: List[int] = []

    for it in range(int(args.warmup) + int(args.repeats)):
        tensor = _synthetic_tensor(rng, grid, float(args.obj_bias))
        t0 = time.perf_counter()
        candidates = decode_grid(tensor, grid, float(args.conf))
        t1 = time.perf_counter()
        _ = nms(candidates, nms_cfg)
        t2 = time.perf_counter()

        if it < int(args.warmup):
            continue
        t_decode.append(t1 - t0)
        t_nms.append(t2 - t1)
        n_candidates.append(len(candidates))

    print(_summary_line("decode", t_decode))
    print(_summary_line("nms", t_nms))
    print(f"candidates_mean={float(np.mean(n_candidates)):.1f} samples_recorded={len(t_decode)} warmup={args.warmup}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
