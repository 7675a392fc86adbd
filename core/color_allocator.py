"""
Deterministic layer color cycling.

Colors are handed out from a fixed palette by a monotonically increasing
counter taken modulo the palette length. Only clear-all resets the counter.
"""

from typing import Sequence

from utils.logger import get_logger

logger = get_logger(__name__)


class ColorAllocator:
    """Cycles through a fixed palette of layer colors."""

    def __init__(self, palette: Sequence[str]):
        if not palette:
            raise ValueError("Color palette must contain at least one color")
        self._palette = tuple(palette)
        self._next_color_index = 0

    @property
    def palette(self):
        return self._palette

    @property
    def next_color_index(self) -> int:
        return self._next_color_index

    def next_color(self) -> str:
        color = self._palette[self._next_color_index % len(self._palette)]
        self._next_color_index += 1
        return color

    def reset(self) -> None:
        logger.debug(f"Color cycle reset after {self._next_color_index} allocations")
        self._next_color_index = 0
