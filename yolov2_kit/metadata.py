from __future__ import annotations

from pathlib import Path
from typing import List, Tuple, Union


PathLike = Union[str, Path]


# Class names for the 80 COCO classes, in model output order.
COCO_LABELS: Tuple[str, ...] = (
    "person",
    "bicycle",
    "car",
    "motorbike",
    "airplane",
    "bus",
    "train",
    "truck",
    "boat",
    "traffic light",
    "fire hydrant",
    "stop sign",
    "parking meter",
    "bench",
    "bird",
    "cat",
    "dog",
    "horse",
    "sheep",
    "cow",
    "elephant",
    "bear",
    "zebra",
    "giraffe",
    "backpack",
    "umbrella",
    "handbag",
    "tie",
    "suitcase",
    "frisbee",
    "skis",
    "snowboard",
    "sports ball",
    "kite",
    "baseball bat",
    "baseball glove",
    "skateboard",
    "surfboard",
    "tennis racket",
    "bottle",
    "wine glass",
    "cup",
    "fork",
    "knife",
    "spoon",
    "bowl",
    "banana",
    "apple",
    "sandwich",
    "orange",
    "broccoli",
    "carrot",
    "hotdog",
    "pizza",
    "donut",
    "cake",
    "chair",
    "sofa",
    "plant",
    "bed",
    "table",
    "toilet",
    "tv",
    "laptop",
    "mouse",
    "remote",
    "keyboard",
    "phone",
    "microwave",
    "oven",
    "toaster",
    "sink",
    "refrigerator",
    "book",
    "clock",
    "vase",
    "scissors",
    "teddy bear",
    "hair drier",
    "toothbrush",
)


def load_class_names(path: PathLike) -> List[str]:
    """
    Load class names in class-index order.

    Understood formats:

    - plain text, one name per line (blank lines and "#" comments skipped)
    - the lightweight YAML mapping written by most YOLO exporters:

        names:
          0: person
          1: bicycle

      or its inline list form: names: [person, bicycle]

    For the mapping form, ids must be contiguous from 0.
    """

    lines = Path(path).read_text(encoding="utf-8").splitlines()
    stripped = [ln.strip() for ln in lines]
    stripped = [ln for ln in stripped if ln and not ln.startswith("#")]

    for line in stripped:
        if not line.startswith("names:") or line == "names:":
            continue
        inline = line[len("names:"):].strip()
        if not (inline.startswith("[") and inline.endswith("]")):
            raise ValueError(f"Unsupported inline names value in {path}: {inline!r}")
        items = [item.strip().strip("'").strip('"') for item in inline[1:-1].split(",")]
        return [item for item in items if item]

    if "names:" not in stripped:
        return [ln.strip("'").strip('"') for ln in stripped]

    names = {}
    in_names = False
    for line in stripped:
        if line == "names:":
            in_names = True
            continue
        if not in_names:
            continue
        if ":" not in line:
            continue
        left, right = line.split(":", 1)
        left = left.strip()
        if not left.isdigit():
            # Next top-level key ends the mapping.
            if not right.strip():
                break
            continue
        names[int(left)] = right.strip().strip("'").strip('"')

    ordered = sorted(names)
    if ordered != list(range(len(ordered))):
        raise ValueError(f"Class ids in {path} must be contiguous from 0, got {ordered}")
    return [names[i] for i in ordered]
