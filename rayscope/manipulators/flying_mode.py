"""
Flying manipulator: free-flight navigation from the eye position.
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


class FlyingModeManipulator(AbstractManipulator):
    """
    Turns the view around the eye and moves the eye along the view axis.

    Rotation keeps the position and swings the target; dolly and strafe move
    position and target together.
    """

    mode = ManipulatorMode.FLYING

    def drag_zoom(self, delta: np.ndarray):
        self.dolly(float(delta[1]) * 4.0 * self.motion_speed)

    def rotate(self, du: float, dv: float):
        vp = self.viewport
        direction = vp.target - vp.position

        direction = rotate_vector(direction, normalize(vp.up), -du)
        _, right, _ = camera_basis(vp.position, vp.position + direction, vp.up)
        if np.any(right):
            direction = rotate_vector(direction, right, -dv)

        self.apply(vp.position, vp.position + direction, vp.up)

    def dolly(self, forward: float):
        """Move eye and target along the view direction"""
        vp = self.viewport
        direction, _, _ = camera_basis(vp.position, vp.target, vp.up)
        offset = direction * forward
        self.apply(vp.position + offset, vp.target + offset, vp.up)

    def strafe(self, amount: float):
        self.translate(amount, 0.0)

    def keypress(self, key: str):
        step = 10.0 * self.motion_speed
        if key == 'w':
            self.dolly(step)
        elif key == 's':
            self.dolly(-step)
        elif key == 'a':
            self.strafe(-step)
        elif key == 'd':
            self.strafe(step)

    def specialkey(self, key: int):
        step = 10.0 * self.motion_speed
        if key == SpecialKey.UP:
            self.dolly(step)
        elif key == SpecialKey.DOWN:
            self.dolly(-step)
        elif key == SpecialKey.LEFT:
            self.strafe(-step)
        elif key == SpecialKey.RIGHT:
            self.strafe(step)
