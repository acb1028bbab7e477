#!/usr/bin/env python3
"""
Interactive viewer: moderngl-window host for the render loop.

The window owns the GL context; the loop renders through ModernGLBackend
into CPU buffers and the viewer shows them on a full-screen quad.
"""

import logging
from pathlib import Path
from typing import Optional

import moderngl as mgl
import moderngl_window as mglw
import numpy as np

from ..core.data_manager import DataManager
from ..core.engine import Engine
from ..core.render_engine import FrameBufferMode
from ..core.scene import Scene
from ..core.shader_manager import ShaderManager
from ..logging_config import setup_logging
from ..manipulators import Button, ManipulatorMode, Modifier, SpecialKey
from ..passes.volume_pass import QUAD_VERTICES
from .moderngl_backend import ModernGLBackend
from .render_loop import PixelFormat, RenderLoop, Surface


logger = logging.getLogger(__name__)

# moderngl-window numbers buttons 1=left, 2=right, 3=middle
MOUSE_BUTTONS = {1: Button.LEFT, 2: Button.RIGHT, 3: Button.MIDDLE}

MANIPULATOR_MODES = {
    'inspect': ManipulatorMode.INSPECT_CENTER,
    'fly': ManipulatorMode.FLYING,
}

CONTROLS = """=== CONTROLS ===
Mouse: left drag rotate | shift+left / middle drag pan | ctrl+left / right drag zoom
Arrows, a/d/w/s: rotate (inspect) or move (fly) | PgUp/PgDn: zoom
I/F: inspect/flying mode | +/-: motion speed | C: print viewport
1/2/3: grey/white/black background | V: random background | G: gradient background
S/H: shadows/soft shadows | P: light shading | E: electron shading | o/O: AO +/-
D: depth of field | Y: light emitting materials | r/R: frame number 0/max
Z: color/depth buffer | L: fullscreen"""


class WindowSurface(Surface):
    """Surface backed by a moderngl-window window and a display texture"""

    def __init__(self, viewer: "InteractiveViewer"):
        self.viewer = viewer
        self.texture: Optional[mgl.Texture] = None
        self.pixel_format: Optional[PixelFormat] = None

    def present(self, buffer: np.ndarray, width: int, height: int, pixel_format: PixelFormat):
        if width <= 0 or height <= 0:
            return
        components, dtype = (4, 'f1') if pixel_format == PixelFormat.RGBA8 else (1, 'f4')
        texture = self.texture
        if (texture is None or texture.size != (width, height)
                or texture.components != components or texture.dtype != dtype):
            if texture is not None:
                texture.release()
            texture = self.viewer.ctx.texture((width, height), components, dtype=dtype)
            texture.filter = (mgl.NEAREST, mgl.NEAREST)
            self.texture = texture
        texture.write(np.ascontiguousarray(buffer).tobytes())
        self.pixel_format = pixel_format

    def clear(self):
        self.pixel_format = None

    def request_redraw(self):
        # moderngl-window renders continuously; the loop tracks the request
        pass

    def set_fullscreen(self, fullscreen: bool):
        self.viewer.wnd.fullscreen = fullscreen

    def set_title(self, title: str):
        self.viewer.wnd.title = title


class InteractiveViewer(mglw.WindowConfig):
    """
    Interactive viewer for simulation volumes.
    """
    title = "rayscope"
    gl_version = (3, 3)
    window_size = (1280, 720)
    aspect_ratio = None
    resizable = True
    vsync = True

    @classmethod
    def add_arguments(cls, parser):
        parser.add_argument('--input', default=None, help='Simulation data (zarr store or npy directory)')
        parser.add_argument('--field', default=None, help='Field to visualize (default: first available)')
        parser.add_argument('--timestep', type=int, default=0, help='Timestep index')
        parser.add_argument('--colormap', default='viridis', help='Matplotlib colormap name')
        parser.add_argument('--threshold', type=float, default=None,
                            help='Values below this are transparent (default: field minimum)')
        parser.add_argument('--manipulator', choices=sorted(MANIPULATOR_MODES), default='inspect',
                            help='Initial interaction mode')
        parser.add_argument('--framebuffer', choices=[m.value for m in FrameBufferMode],
                            default='color', help='Buffer to display')
        parser.add_argument('--log-level', default='INFO',
                            choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Logging level')

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        setup_logging(getattr(logging, self.argv.log_level))

        scene = self.load_scene()
        width, height = self.wnd.buffer_size
        backend = ModernGLBackend(width, height, ctx=self.ctx, bounds=scene.get_world_bounds())
        engine = Engine(backend=backend, scene=scene)

        self.loop = RenderLoop(
            argv=[],
            frame_buffer_mode=FrameBufferMode(self.argv.framebuffer),
            initial_mode=MANIPULATOR_MODES[self.argv.manipulator],
            allowed_modes=ManipulatorMode.INSPECT_CENTER | ManipulatorMode.FLYING,
            engine=engine,
        )

        self.surface = WindowSurface(self)
        self.shader_manager = ShaderManager(ctx=self.ctx)
        self.present_prog = self.shader_manager.load_shader("present", "present")
        vbo = self.ctx.buffer(QUAD_VERTICES.tobytes())
        self.quad_vao = self.ctx.vertex_array(self.present_prog, [(vbo, '2f', 'in_position')])

        self.loop.create(self.surface, self.title, width, height)
        logger.info("Viewer initialized (%dx%d)", width, height)

        self.special_keys = {
            self.wnd.keys.LEFT: SpecialKey.LEFT,
            self.wnd.keys.UP: SpecialKey.UP,
            self.wnd.keys.RIGHT: SpecialKey.RIGHT,
            self.wnd.keys.DOWN: SpecialKey.DOWN,
            self.wnd.keys.PAGE_UP: SpecialKey.PAGE_UP,
            self.wnd.keys.PAGE_DOWN: SpecialKey.PAGE_DOWN,
            self.wnd.keys.HOME: SpecialKey.HOME,
            self.wnd.keys.END: SpecialKey.END,
        }

    def load_scene(self) -> Scene:
        """Build the scene from --input, or an empty scene without it"""
        if self.argv.input is None:
            logger.info("No input given; rendering background only")
            return Scene()

        data_manager = DataManager(Path(self.argv.input))
        fields = data_manager.list_available_fields()
        if not fields:
            raise ValueError(f"No fields found in {self.argv.input}")
        field_name = self.argv.field or fields[0]
        logger.info("Loading field '%s' at timestep %d", field_name, self.argv.timestep)
        return Scene.from_data_manager(data_manager, field_name, self.argv.timestep,
                                       colormap=self.argv.colormap,
                                       threshold=self.argv.threshold)

    def modifiers(self) -> Modifier:
        mods = self.wnd.modifiers
        flags = Modifier.NONE
        if mods.shift:
            flags |= Modifier.SHIFT
        if mods.ctrl:
            flags |= Modifier.CTRL
        if mods.alt:
            flags |= Modifier.ALT
        return flags

    def on_render(self, time: float, frame_time: float):
        if self.loop.redraw_requested:
            self.loop.display()
        else:
            self.loop.idle()

        self.wnd.use()
        self.ctx.disable(mgl.DEPTH_TEST)
        self.ctx.clear(0.0, 0.0, 0.0, 1.0)
        if self.surface.texture is not None and self.surface.pixel_format is not None:
            self.present_prog['luminance'].value = (
                self.surface.pixel_format == PixelFormat.LUMINANCE_F32)
            self.surface.texture.use(0)
            self.quad_vao.render(mgl.TRIANGLE_STRIP)
        self.ctx.enable(mgl.DEPTH_TEST)

    def on_resize(self, width: int, height: int):
        self.loop.reshape(*self.wnd.buffer_size)

    def on_unicode_char_entered(self, char: str):
        self.loop.keypress(char, tuple(self.loop.pointer.current_position))

    def on_key_event(self, key, action, modifiers):
        if action == self.wnd.keys.ACTION_PRESS and key in self.special_keys:
            self.loop.specialkey(self.special_keys[key])

    def on_mouse_position_event(self, x, y, dx, dy):
        self.loop.motion((x, y))

    def on_mouse_drag_event(self, x, y, dx, dy):
        self.loop.motion((x, y))

    def on_mouse_press_event(self, x, y, button):
        if button in MOUSE_BUTTONS:
            self.loop.mouse_button(MOUSE_BUTTONS[button], False, (x, y), self.modifiers())

    def on_mouse_release_event(self, x, y, button):
        if button in MOUSE_BUTTONS:
            self.loop.mouse_button(MOUSE_BUTTONS[button], True, (x, y), self.modifiers())

    def on_close(self):
        self.loop.engine.release()
        self.shader_manager.clear_cache()


def main():
    """Main entry point"""
    print("rayscope interactive viewer")
    print(CONTROLS)
    mglw.run_window_config(InteractiveViewer)


if __name__ == "__main__":
    main()
