from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle in the model's input pixel space (top-left origin).
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        # From the edges, so an identical intersection reproduces it exactly.
        return (self.max_x - self.min_x) * (self.max_y - self.min_y)

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.min_x, self.min_y, self.max_x, self.max_y

    def scaled(self, sx: float, sy: float, dx: float = 0.0, dy: float = 0.0) -> "Rect":
        """
        Map into another coordinate space: scale by (sx, sy) then shift by (dx, dy).

        Used by callers that display boxes on a preview with a different size than
        the model input (e.g. 416x416 -> a 4:3 view letterboxed vertically).
        """

        return Rect(
            x=self.x * sx + dx,
            y=self.y * sy + dy,
            width=self.width * sx,
            height=self.height * sy,
        )


@dataclass(frozen=True)
class Prediction:
    """
    One decoded detection: winning class, combined score and box.
    """

    class_index: int
    score: float
    rect: Rect

    def label(self, class_names: Optional[Sequence[str]] = None) -> str:
        name = str(self.class_index)
        if class_names is not None and 0 <= self.class_index < len(class_names):
            name = class_names[self.class_index]
        return f"{name} {self.score * 100:.1f}"
