from __future__ import annotations

from typing import Sequence, Tuple


class ShapeMismatchError(ValueError):
    """
    Raised when a raw tensor does not have the layout the grid configuration expects.
    """

    def __init__(self, got: Sequence[int], expected: Tuple[int, ...], detail: str = ""):
        self.got = tuple(int(d) for d in got)
        self.expected = tuple(expected)
        msg = f"Tensor shape {self.got} does not match expected {self.expected}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class EmptyClassSetError(ValueError):
    """
    Raised when a class distribution is requested over zero classes.
    """
