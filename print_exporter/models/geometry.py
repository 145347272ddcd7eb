from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

from .enums import LayoutMode


@dataclass(frozen=True)
class Size:
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Size must be positive, got {self.width}x{self.height}")

    @property
    def ratio(self) -> float:
        return self.width / self.height

    def as_tuple(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def __str__(self) -> str:
        return f"{self.width}×{self.height}"


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    w: int
    h: int

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h

    def box(self) -> Tuple[int, int, int, int]:
        """Pillow-style (left, upper, right, lower) box."""
        return (self.x, self.y, self.right, self.bottom)

    def fits_within(self, bounds: Size) -> bool:
        return (
            self.x >= 0
            and self.y >= 0
            and self.w > 0
            and self.h > 0
            and self.right <= bounds.width
            and self.bottom <= bounds.height
        )


@dataclass(frozen=True)
class PlacementPlan:
    canvas_size: Size
    source_rect: Rect
    dest_rect: Rect
    mode: LayoutMode
    inset: int = 0  # mat border in pixels, 0 unless MAT

    @property
    def fills_background(self) -> bool:
        # a crop always covers the whole canvas
        return self.mode is not LayoutMode.CROP

    @property
    def inner_size(self) -> Tuple[int, int]:
        return (
            self.canvas_size.width - 2 * self.inset,
            self.canvas_size.height - 2 * self.inset,
        )
