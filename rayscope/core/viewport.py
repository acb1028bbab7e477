"""
Viewport: the interactive camera framing edited by manipulators.

The render loop copies the viewport into the Camera whenever the viewport
reports a modification.
"""

from typing import Sequence, Tuple

import numpy as np

from .camera import as_vector


class Viewport:
    """
    Position/target/up framing plus aspect ratio and a modified flag.
    """

    def __init__(self):
        self.position = as_vector((0.0, 0.0, -1.0))
        self.target = as_vector((0.0, 0.0, 0.0))
        self.up = as_vector((0.0, 1.0, 0.0))
        self.aspect = 1.0
        self.modified = True

    def initialize(self, position: Sequence[float], target: Sequence[float],
                   up: Sequence[float]):
        """Set the full framing and mark the viewport as modified"""
        self.position = as_vector(position)
        self.target = as_vector(target)
        self.up = as_vector(up)
        self.modified = True

    def set_position(self, position: Sequence[float]):
        self._assign('position', position)

    def set_target(self, target: Sequence[float]):
        self._assign('target', target)

    def set_up(self, up: Sequence[float]):
        self._assign('up', up)

    def set_aspect(self, aspect: float):
        self.aspect = float(aspect)

    def clear_modified(self):
        self.modified = False

    def get_direction(self) -> np.ndarray:
        """View direction (target - position), not normalized"""
        return self.target - self.position

    def _assign(self, name: str, value: Sequence[float]):
        vector = as_vector(value)
        if not np.array_equal(vector, getattr(self, name)):
            setattr(self, name, vector)
            self.modified = True

    def __repr__(self) -> str:
        return (f"Viewport(position={self.position.tolist()}, target={self.target.tolist()}, "
                f"up={self.up.tolist()}, aspect={self.aspect:.4f})")


def viewport_from_bounds(lower: Sequence[float],
                         upper: Sequence[float]) -> Tuple[Viewport, float]:
    """
    Frame a bounding box.

    The viewport looks at the box center from a point pulled back along -Z by
    the box depth, widened so that flat boxes still fit.

    Args:
        lower: Minimum corner of the world bounds
        upper: Maximum corner of the world bounds

    Returns:
        (viewport, motion_speed) where motion_speed scales with the box size
    """
    lower = np.asarray(lower, dtype=np.float32)
    upper = np.asarray(upper, dtype=np.float32)

    center = (lower + upper) * 0.5
    diag = upper - lower
    diag = np.maximum(diag, 0.3 * np.linalg.norm(diag))

    position = center.copy()
    position[2] -= diag[2]

    viewport = Viewport()
    viewport.initialize(position, center, (0.0, 1.0, 0.0))

    motion_speed = float(np.linalg.norm(diag)) * 0.001
    return viewport, motion_speed
