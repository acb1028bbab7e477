"""
Render loop orchestrator.

Owns the viewport, pointer state and manipulators, turns host window events
into viewport/camera updates and rendering-parameter commands, and runs the
request/display cycle against the engine. The host keeps the loop instance
and calls its callbacks; the loop talks back to the host through a Surface.
"""

import logging
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Optional, Sequence

import numpy as np

from ..core.engine import Engine
from ..core.errors import require
from ..core.parameters import MAX_FRAME_NUMBER
from ..core.render_engine import FrameBufferMode, RenderInput, RenderOutput
from ..core.viewport import viewport_from_bounds
from ..manipulators import (
    MANIPULATOR_CLASSES,
    AbstractManipulator,
    Button,
    ManipulatorMode,
    Modifier,
    PointerState,
)


logger = logging.getLogger(__name__)

DEFAULT_MOUSE_SPEED = 0.005
DEFAULT_MOTION_ACCELERATION = 1.5
IDLE_SLEEP = 0.001


class PixelFormat(Enum):
    """Layout of a buffer handed to Surface.present()"""
    RGBA8 = "rgba8"
    LUMINANCE_F32 = "luminance_f32"


class Surface(ABC):
    """Window surface the host provides to the loop"""

    @abstractmethod
    def present(self, buffer: np.ndarray, width: int, height: int, pixel_format: PixelFormat):
        """Show a frame buffer"""
        pass

    @abstractmethod
    def clear(self):
        pass

    @abstractmethod
    def request_redraw(self):
        """Ask the host to call display() soon"""
        pass

    @abstractmethod
    def set_fullscreen(self, fullscreen: bool):
        pass

    @abstractmethod
    def set_title(self, title: str):
        pass


class RenderLoop:
    """
    Interactive render loop driven by host window callbacks.
    """

    def __init__(self, argv: Optional[Sequence[str]],
                 frame_buffer_mode: FrameBufferMode,
                 initial_mode: ManipulatorMode,
                 allowed_modes: ManipulatorMode,
                 engine: Optional[Engine] = None):
        """
        Initialize render loop.

        Args:
            argv: Process arguments, forwarded to the engine when it is created here
            frame_buffer_mode: Output channel to present
            initial_mode: Manipulator active after construction
            allowed_modes: Bitmask of manipulators to construct
            engine: Engine to drive (default: a new Engine(argv))
        """
        require(bool(allowed_modes & initial_mode),
                f"Initial manipulator {initial_mode!r} is not in allowed modes {allowed_modes!r}")

        self.engine = engine if engine is not None else Engine(argv)
        self.frame_buffer_mode = frame_buffer_mode
        self.render_output = RenderOutput()
        self.pointer = PointerState()
        self.surface = None
        self.title = ""
        self.fullscreen = False
        self.window_size = (0, 0)
        self.frame_counter = 0
        self.redraw_requested = False
        self.rng = np.random.default_rng()

        lower, upper = self.engine.get_world_bounds()
        self.viewport, self.motion_speed = viewport_from_bounds(lower, upper)
        self.rotate_speed = DEFAULT_MOUSE_SPEED
        logger.info("World bounds: %s - %s", np.asarray(lower).tolist(), np.asarray(upper).tolist())

        self.engine.camera.set_initial_state(self.viewport.position, self.viewport.target,
                                             self.viewport.up)
        self.viewport.clear_modified()

        self.manipulators: Dict[ManipulatorMode, Optional[AbstractManipulator]] = {
            mode: (cls(self) if allowed_modes & mode else None)
            for mode, cls in MANIPULATOR_CLASSES.items()
        }
        self.active_mode = initial_mode
        if self.manipulator is not None:
            self.manipulator.activate()

    @property
    def camera(self):
        return self.engine.camera

    @property
    def parameters(self):
        return self.engine.parameters

    @property
    def manipulator(self) -> Optional[AbstractManipulator]:
        return self.manipulators.get(self.active_mode)

    def switch_to(self, mode: ManipulatorMode) -> bool:
        """
        Make another manipulator active.

        Returns:
            False if the mode was not allowed at construction
        """
        target = self.manipulators.get(mode)
        if target is None:
            logger.info("Manipulator %s not available", mode.name)
            return False

        if self.manipulator is not None:
            self.manipulator.deactivate()
        self.active_mode = mode
        target.activate()
        logger.info("Switching to %s mode", mode.name.lower().replace('_', ' '))
        return True

    def create(self, surface: Surface, title: str, width: int, height: int,
               fullscreen: bool = False):
        """
        Attach the host surface and size the loop to the window.

        Args:
            surface: Host window surface
            title: Window title
            width: Initial width in pixels
            height: Initial height in pixels
            fullscreen: Start in fullscreen mode
        """
        self.surface = surface
        self.title = title
        surface.set_title(title)
        if fullscreen:
            self.fullscreen = True
            surface.set_fullscreen(True)
        self.reshape(width, height)

    def _has_surface(self) -> bool:
        return require(self.surface is not None, "No surface attached; call create() first")

    def _has_manipulator(self) -> bool:
        return require(self.manipulator is not None,
                       f"No manipulator constructed for mode {self.active_mode!r}")

    def force_redraw(self):
        self.redraw_requested = True
        if self.surface is not None:
            self.surface.request_redraw()

    def _sync_camera(self):
        """Push a modified viewport into the camera"""
        vp = self.viewport
        if not vp.modified:
            return
        self.camera.set(vp.position, vp.target, vp.up)
        vp.clear_modified()
        self.force_redraw()

    def reshape(self, width: int, height: int):
        """Handle a window resize"""
        if not self._has_surface():
            return
        if width <= 0 or height <= 0:
            logger.warning("Ignoring resize to %dx%d; keeping %dx%d",
                           width, height, *self.window_size)
            return

        self.window_size = (int(width), int(height))
        self.viewport.set_aspect(width / height)
        self.engine.reshape(width, height)
        self.render_output.resize(width, height)
        self.force_redraw()

    def mouse_button(self, button: Button, released: bool, pos: Sequence[float],
                     modifiers: Modifier = Modifier.NONE):
        """
        Handle a button press or release.

        Args:
            button: Button that changed
            released: True on release, False on press
            pos: Pointer position in window pixels
            modifiers: Active keyboard modifiers
        """
        if not (self._has_surface() and self._has_manipulator()):
            return

        pointer = self.pointer
        if not np.array_equal(np.asarray(pos, dtype=np.float32), pointer.current_position):
            self.motion(pos)

        pointer.last_buttons = pointer.current_buttons
        mask = Button(button).mask
        if released:
            pointer.current_buttons &= ~mask
        else:
            pointer.current_buttons |= mask
        pointer.modifiers = Modifier(modifiers)

        self.manipulator.button(pos)

    def motion(self, pos: Sequence[float]):
        """Handle pointer motion"""
        if not (self._has_surface() and self._has_manipulator()):
            return

        pointer = self.pointer
        if pointer.buttons_changed:
            # Re-anchor at the position where the buttons changed
            pointer.last_position = pointer.current_position.copy()
            pointer.last_buttons = pointer.current_buttons
        pointer.current_position = np.asarray(pos, dtype=np.float32).reshape(2).copy()

        self.manipulator.motion()

        pointer.last_position = pointer.current_position.copy()
        self._sync_camera()

    def keypress(self, key: str, pos: Sequence[float] = (0, 0)):
        """Handle a character key: loop commands first, then the manipulator"""
        if not (self._has_surface() and self._has_manipulator()):
            return

        self._run_command(key)
        self.manipulator.keypress(key)
        self._sync_camera()

    def specialkey(self, key: int, pos: Sequence[float] = (0, 0)):
        """Handle a non-character key"""
        if not (self._has_surface() and self._has_manipulator()):
            return

        self.manipulator.specialkey(key)
        self._sync_camera()

    def _run_command(self, key: str):
        params = self.parameters

        if key == '+':
            self.motion_speed *= DEFAULT_MOTION_ACCELERATION
            logger.info("Motion speed: %g", self.motion_speed)
        elif key == '-':
            self.motion_speed /= DEFAULT_MOTION_ACCELERATION
            logger.info("Motion speed: %g", self.motion_speed)
        elif key == '1':
            params.background_color = (0.5, 0.5, 0.5)
            logger.info("Setting grey background")
        elif key == '2':
            params.background_color = (1.0, 1.0, 1.0)
            logger.info("Setting white background")
        elif key == '3':
            params.background_color = (0.0, 0.0, 0.0)
            logger.info("Setting black background")
        elif key == 'C':
            logger.info("%s", self.viewport)
        elif key == 'D':
            params.depth_of_field = not params.depth_of_field
            logger.info("Depth of field: %s", _on_off(params.depth_of_field))
        elif key == 'E':
            params.electron_shading = not params.electron_shading
            logger.info("Electron shading: %s", _on_off(params.electron_shading))
        elif key == 'F':
            self.switch_to(ManipulatorMode.FLYING)
        elif key == 'G':
            params.gradient_background = not params.gradient_background
            logger.info("Gradient background: %s", _on_off(params.gradient_background))
        elif key == 'H':
            params.soft_shadows = not params.soft_shadows
            logger.info("Soft shadows: %s", _on_off(params.soft_shadows))
        elif key == 'I':
            self.switch_to(ManipulatorMode.INSPECT_CENTER)
        elif key == 'L':
            self.fullscreen = not self.fullscreen
            self.surface.set_fullscreen(self.fullscreen)
        elif key == 'o':
            params.ambient_occlusion_strength = min(1.0, params.ambient_occlusion_strength + 0.1)
            logger.info("Ambient occlusion strength: %.1f", params.ambient_occlusion_strength)
        elif key == 'O':
            params.ambient_occlusion_strength = max(0.0, params.ambient_occlusion_strength - 0.1)
            logger.info("Ambient occlusion strength: %.1f", params.ambient_occlusion_strength)
        elif key == 'P':
            params.light_shading = not params.light_shading
            logger.info("Light shading: %s", _on_off(params.light_shading))
        elif key == 'r':
            params.frame_number = 0
            logger.info("Frame number: %d", params.frame_number)
        elif key == 'R':
            params.frame_number = MAX_FRAME_NUMBER
            logger.info("Frame number: %d", params.frame_number)
        elif key == 'S':
            params.shadows = not params.shadows
            logger.info("Shadows: %s", _on_off(params.shadows))
        elif key == 'V':
            params.background_color = tuple(self.rng.random(3))
            logger.info("Background color: %s", params.background_color)
        elif key == 'Y':
            params.light_emitting_materials = not params.light_emitting_materials
            logger.info("Light emitting materials: %s", _on_off(params.light_emitting_materials))
        elif key == 'Z':
            if self.frame_buffer_mode == FrameBufferMode.DEPTH:
                self.frame_buffer_mode = FrameBufferMode.COLOR
            else:
                self.frame_buffer_mode = FrameBufferMode.DEPTH
            logger.info("Frame buffer mode: %s", self.frame_buffer_mode.value)
        else:
            return
        self.force_redraw()

    def build_render_input(self) -> RenderInput:
        camera = self.camera
        position = camera.get_position()
        return RenderInput(position=position,
                           target=camera.get_target() - position,
                           up=camera.get_up_vector())

    def display(self):
        """Render one frame and present it"""
        if not self._has_surface():
            return

        if self.camera.refresh():
            self.viewport.initialize(self.camera.get_position(), self.camera.get_target(),
                                     self.camera.get_up_vector())
            self.viewport.clear_modified()

        self.engine.render(self.build_render_input(), self.render_output)

        out = self.render_output
        if self.frame_buffer_mode == FrameBufferMode.COLOR:
            self.surface.present(out.color_buffer, out.width, out.height, PixelFormat.RGBA8)
        elif self.frame_buffer_mode == FrameBufferMode.DEPTH:
            self.surface.present(out.depth_buffer, out.width, out.height,
                                 PixelFormat.LUMINANCE_F32)
        else:
            self.surface.clear()

        self.frame_counter += 1
        self.redraw_requested = False

    def idle(self):
        time.sleep(IDLE_SLEEP)


def _on_off(flag: bool) -> str:
    return "On" if flag else "Off"
