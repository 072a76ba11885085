"""
Before/after comparison slider state.

The position is the percentage of the width showing the "before" image and
always stays within [0, 100].
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

INITIAL_POSITION = 20.0
DRAG_THRESHOLD_PX = 10.0


def clamp_position(offset: float, width: float) -> float:
    if width <= 0:
        return 0.0
    return max(0.0, min(100.0, offset / width * 100.0))


@dataclass
class Slider:
    position: float = INITIAL_POSITION
    dragging: bool = False
    touch_start: Optional[tuple[float, float]] = None
    threshold: float = DRAG_THRESHOLD_PX

    def press(self, x: float, y: Optional[float] = None, touch: bool = False) -> None:
        """Mouse presses start a drag; touches wait for a horizontal gesture."""
        if touch:
            self.touch_start = (x, y or 0.0)
        else:
            self.dragging = True

    def release(self) -> None:
        self.dragging = False
        self.touch_start = None

    def move(
        self,
        x: float,
        y: float,
        left: float,
        width: float,
        touch: bool = False,
    ) -> bool:
        """Apply a pointer move. Returns True when the slider consumed the event."""
        if touch and self.touch_start and not self.dragging:
            dx = abs(x - self.touch_start[0])
            dy = abs(y - self.touch_start[1])
            # Mostly vertical: leave it to page scrolling.
            if dy > dx:
                return False
            if dx > self.threshold:
                self.dragging = True

        if not self.dragging:
            return False

        self.position = clamp_position(x - left, width)
        return True

    def show_before(self) -> None:
        self.position = 100.0

    def show_after(self) -> None:
        self.position = 0.0
