"""
OpenGL ray-marching backend built on moderngl.

Renders the committed simulation volume into an offscreen framebuffer and
reads color and depth back into a RenderOutput.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple

import moderngl as mgl
import numpy as np

from ..core.camera import Camera
from ..core.render_engine import RenderBackend, RenderOutput
from ..core.shader_manager import ShaderManager
from ..core.simulation_renderer import RendererState
from ..passes.volume_pass import VolumeRenderPass


logger = logging.getLogger(__name__)


def create_context(require: int = 330) -> mgl.Context:
    """Create a standalone (headless) OpenGL context"""
    try:
        return mgl.create_standalone_context()
    except Exception:
        try:
            return mgl.create_standalone_context(require=require)
        except Exception as e:
            raise RuntimeError(
                f"Cannot create a headless OpenGL {require} context ({e}). "
                f"Run the interactive viewer instead: rayscope-viewer --input <data>"
            ) from e


class ModernGLBackend(RenderBackend):
    """
    Reference backend for the render loop.

    Draws background only until a state with both a simulation volume and a
    transfer function has been committed.
    """

    def __init__(self, width: int = 1, height: int = 1,
                 ctx: Optional[mgl.Context] = None,
                 bounds: Tuple[Sequence[float], Sequence[float]] = ((-1.0, -1.0, -1.0),
                                                                   (1.0, 1.0, 1.0)),
                 shader_dir: Optional[Path] = None):
        """
        Initialize backend.

        Args:
            width: Initial framebuffer width
            height: Initial framebuffer height
            ctx: ModernGL context (if None, creates standalone context)
            bounds: World-space box filled by the simulation volume
            shader_dir: Directory containing shaders
        """
        self.ctx = ctx if ctx is not None else create_context()
        self.ctx.enable(mgl.DEPTH_TEST)
        self.ctx.depth_func = '<='

        self.shader_manager = ShaderManager(shader_dir, self.ctx)
        self.volume_pass = VolumeRenderPass(self.shader_manager)
        self.bounds = (np.asarray(bounds[0], dtype=np.float32),
                       np.asarray(bounds[1], dtype=np.float32))

        self.state: Optional[RendererState] = None
        self.width = 0
        self.height = 0
        self.fbo: Optional[mgl.Framebuffer] = None
        self.depth_texture: Optional[mgl.Texture] = None
        self.reshape(max(1, width), max(1, height))

    def commit(self, state: RendererState):
        self.state = state
        self.volume_pass.update(self.ctx, state)

    def reshape(self, width: int, height: int):
        """Recreate the framebuffer at the new size"""
        if (width, height) == (self.width, self.height) and self.fbo is not None:
            return
        self._release_framebuffer()

        self.width = width
        self.height = height
        self.depth_texture = self.ctx.depth_texture((width, height))
        self.fbo = self.ctx.framebuffer(
            color_attachments=[self.ctx.texture((width, height), 4)],
            depth_attachment=self.depth_texture,
        )
        logger.debug("Framebuffer resized to %dx%d", width, height)

    def render(self, camera: Camera, output: RenderOutput, frame_number: int = 0):
        """
        Render one frame and read it back into output.

        Rows are stored bottom-up, as OpenGL returns them.
        """
        if output.size != (self.width, self.height):
            output.resize(self.width, self.height)

        self.fbo.use()
        background = self.state.background_color if self.state is not None else (0.0, 0.0, 0.0)
        self.ctx.clear(*background, 1.0, depth=1.0)

        if self.state is not None and self.state.has_simulation and self.state.has_transfer_function:
            self.volume_pass.render(self.ctx, camera, self.width, self.height,
                                    self.state, self.bounds, frame_number)

        color = np.frombuffer(self.fbo.read(components=4, dtype='f1'), dtype=np.uint8)
        depth = np.frombuffer(self.depth_texture.read(), dtype=np.float32)
        output.color_buffer[...] = color.reshape(self.height, self.width, 4)
        output.depth_buffer[...] = depth.reshape(self.height, self.width)

    def _release_framebuffer(self):
        if self.fbo is not None:
            self.fbo.release()
            self.fbo = None
        if self.depth_texture is not None:
            self.depth_texture.release()
            self.depth_texture = None

    def release(self):
        """Clean up resources"""
        self._release_framebuffer()
        self.volume_pass.release()
        self.shader_manager.clear_cache()
