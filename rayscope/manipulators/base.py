"""
Shared manipulator machinery: input enums, pointer state and the drag
dispatch every interaction mode builds on.
"""

import logging
from abc import ABC, abstractmethod
from enum import IntEnum, IntFlag
from typing import TYPE_CHECKING, Sequence, Tuple

import numpy as np

from ..core.viewport import Viewport

if TYPE_CHECKING:
    from ..renderers.render_loop import RenderLoop


logger = logging.getLogger(__name__)

# Degenerate-geometry tolerance for normalizations
EPSILON = 1e-6


class ManipulatorMode(IntFlag):
    """Interaction modes; combine with | to form an allowed-modes bitmask"""
    INSPECT_CENTER = 1
    FLYING = 2


class Button(IntEnum):
    """Pointer buttons (GLUT numbering)"""
    LEFT = 0
    MIDDLE = 1
    RIGHT = 2

    @property
    def mask(self) -> int:
        return 1 << int(self)


class Modifier(IntFlag):
    """Keyboard modifiers active during a pointer event"""
    NONE = 0
    SHIFT = 1
    CTRL = 2
    ALT = 4


class SpecialKey(IntEnum):
    """Non-character keys (GLUT codes)"""
    LEFT = 100
    UP = 101
    RIGHT = 102
    DOWN = 103
    PAGE_UP = 104
    PAGE_DOWN = 105
    HOME = 106
    END = 107


class PointerState:
    """
    Last/current pointer position and button bitmask plus active modifiers.

    Owned by the render loop; manipulators only read it.
    """

    def __init__(self):
        self.last_position = np.zeros(2, dtype=np.float32)
        self.current_position = np.zeros(2, dtype=np.float32)
        self.last_buttons = 0
        self.current_buttons = 0
        self.modifiers = Modifier.NONE

    @property
    def delta(self) -> np.ndarray:
        return self.current_position - self.last_position

    @property
    def buttons_changed(self) -> bool:
        return self.last_buttons != self.current_buttons

    def is_pressed(self, button: Button) -> bool:
        return bool(self.current_buttons & Button(button).mask)

    def __repr__(self) -> str:
        return (f"PointerState(last={self.last_position.tolist()}, "
                f"current={self.current_position.tolist()}, "
                f"buttons={self.last_buttons:#05b}->{self.current_buttons:#05b}, "
                f"modifiers={int(self.modifiers)})")


def normalize(v: np.ndarray) -> np.ndarray:
    """Unit vector along v (v itself if its length is ~0)"""
    length = float(np.linalg.norm(v))
    if length < EPSILON:
        return v
    return v / length


def rotate_vector(v: np.ndarray, axis: np.ndarray, angle: float) -> np.ndarray:
    """
    Rotate v around a unit axis by angle radians (Rodrigues' formula).

    Args:
        v: Vector to rotate
        axis: Rotation axis (normalized)
        angle: Rotation angle in radians, counter-clockwise about axis

    Returns:
        Rotated vector (float32)
    """
    v = np.asarray(v, dtype=np.float64)
    k = np.asarray(axis, dtype=np.float64)
    c = np.cos(angle)
    s = np.sin(angle)
    rotated = v * c + np.cross(k, v) * s + k * np.dot(k, v) * (1.0 - c)
    return rotated.astype(np.float32)


def camera_basis(position: np.ndarray, target: np.ndarray,
                 up: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Orthonormal (direction, right, up) frame of a framing.

    Returns the given up vector unchanged when direction and up are parallel.
    """
    direction = normalize(np.asarray(target - position, dtype=np.float32))
    side = np.cross(direction, up)
    if float(np.linalg.norm(side)) < EPSILON:
        return direction, side, np.asarray(up, dtype=np.float32)
    right = normalize(side)
    return direction, right, np.cross(right, direction).astype(np.float32)


class AbstractManipulator(ABC):
    """
    Base class for interaction modes.

    A manipulator edits the loop's viewport in response to pointer drags and
    keys. It holds a reference to the loop for the viewport, the pointer
    state and the speeds, but never owns any of them.
    """

    mode: ManipulatorMode

    def __init__(self, loop: "RenderLoop"):
        self.loop = loop
        self.active = False

    @property
    def viewport(self) -> Viewport:
        return self.loop.viewport

    @property
    def pointer(self) -> PointerState:
        return self.loop.pointer

    @property
    def motion_speed(self) -> float:
        return self.loop.motion_speed

    @property
    def rotate_speed(self) -> float:
        return self.loop.rotate_speed

    def activate(self):
        self.active = True

    def deactivate(self):
        self.active = False

    def button(self, pos: Sequence[float]):
        """Record a button transition; the camera only moves on motion"""
        logger.debug("%s button at %s: %s", type(self).__name__, tuple(pos), self.pointer)

    def motion(self):
        """
        Apply the pointer delta since the last motion event.

        The loop re-anchors the last position whenever the button mask
        changed, so a press never produces a jump.
        """
        pointer = self.pointer
        if pointer.current_buttons == 0:
            return

        delta = pointer.delta
        if not np.any(delta):
            return

        if pointer.is_pressed(Button.LEFT):
            if pointer.modifiers & Modifier.SHIFT:
                self.drag_pan(delta)
            elif pointer.modifiers & Modifier.CTRL:
                self.drag_zoom(delta)
            else:
                self.drag_rotate(delta)
        elif pointer.is_pressed(Button.RIGHT):
            self.drag_zoom(delta)
        elif pointer.is_pressed(Button.MIDDLE):
            self.drag_pan(delta)

    def drag_rotate(self, delta: np.ndarray):
        self.rotate(float(delta[0]) * self.rotate_speed, float(delta[1]) * self.rotate_speed)

    def drag_pan(self, delta: np.ndarray):
        self.translate(-float(delta[0]) * self.motion_speed, float(delta[1]) * self.motion_speed)

    @abstractmethod
    def drag_zoom(self, delta: np.ndarray):
        pass

    @abstractmethod
    def rotate(self, du: float, dv: float):
        """Rotate by du (horizontal) and dv (vertical) radians"""
        pass

    def translate(self, right_amount: float, up_amount: float):
        """Move position and target together in the screen plane"""
        vp = self.viewport
        _, right, up = camera_basis(vp.position, vp.target, vp.up)
        offset = right * right_amount + up * up_amount
        self.apply(vp.position + offset, vp.target + offset, vp.up)

    def keypress(self, key: str):
        pass

    def specialkey(self, key: int):
        pass

    def apply(self, position: np.ndarray, target: np.ndarray, up: np.ndarray):
        """
        Store a new framing in the viewport, re-orthogonalizing up.

        The viewport's modified flag is raised only by vectors that changed.
        """
        _, _, up = camera_basis(position, target, up)
        vp = self.viewport
        vp.set_position(position)
        vp.set_target(target)
        vp.set_up(up)
