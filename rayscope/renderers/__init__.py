"""
Render loop orchestration and rendering backends.

The moderngl-window viewer lives in ``rayscope.renderers.interactive_renderer``.
"""

from .render_loop import (
    DEFAULT_MOTION_ACCELERATION,
    DEFAULT_MOUSE_SPEED,
    PixelFormat,
    RenderLoop,
    Surface,
)
from .moderngl_backend import ModernGLBackend

__all__ = [
    'DEFAULT_MOTION_ACCELERATION',
    'DEFAULT_MOUSE_SPEED',
    'PixelFormat',
    'RenderLoop',
    'Surface',
    'ModernGLBackend',
]
