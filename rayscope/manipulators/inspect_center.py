"""
Inspect-Center manipulator: orbit around the viewport target.
"""

import numpy as np

from .base import (
    AbstractManipulator,
    ManipulatorMode,
    SpecialKey,
    camera_basis,
    normalize,
    rotate_vector,
)

# Closest the eye may get to the orbit center
MIN_DISTANCE = 1e-3


class InspectCenterManipulator(AbstractManipulator):
    """
    Orbits the eye around a fixed target.

    Rotation turns the position around the target (azimuth about the up
    axis, elevation about the camera right axis); zoom slides the position
    along the view axis; pan moves position and target together.
    """

    mode = ManipulatorMode.INSPECT_CENTER

    def drag_zoom(self, delta: np.ndarray):
        self.zoom(float(delta[1]) * 4.0 * self.motion_speed)

    def rotate(self, du: float, dv: float):
        vp = self.viewport
        offset = vp.position - vp.target

        offset = rotate_vector(offset, normalize(vp.up), -du)
        _, right, _ = camera_basis(vp.target + offset, vp.target, vp.up)
        if np.any(right):
            offset = rotate_vector(offset, right, -dv)

        self.apply(vp.target + offset, vp.target, vp.up)

    def zoom(self, forward: float):
        """Move the eye toward (forward > 0) or away from the target"""
        vp = self.viewport
        offset = vp.position - vp.target
        distance = float(np.linalg.norm(offset))
        if distance == 0.0:
            return
        new_distance = max(distance - forward, MIN_DISTANCE)
        self.apply(vp.target + offset * (new_distance / distance), vp.target, vp.up)

    def keypress(self, key: str):
        step = 10.0 * self.rotate_speed
        if key == 'a':
            self.rotate(-step, 0.0)
        elif key == 'd':
            self.rotate(step, 0.0)
        elif key == 'w':
            self.rotate(0.0, -step)
        elif key == 's':
            self.rotate(0.0, step)

    def specialkey(self, key: int):
        step = 10.0 * self.rotate_speed
        if key == SpecialKey.LEFT:
            self.rotate(-step, 0.0)
        elif key == SpecialKey.RIGHT:
            self.rotate(step, 0.0)
        elif key == SpecialKey.UP:
            self.rotate(0.0, -step)
        elif key == SpecialKey.DOWN:
            self.rotate(0.0, step)
        elif key == SpecialKey.PAGE_UP:
            self.zoom(10.0 * self.motion_speed)
        elif key == SpecialKey.PAGE_DOWN:
            self.zoom(-10.0 * self.motion_speed)
