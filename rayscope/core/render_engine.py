"""
Contract between the render loop and a ray-tracing backend.

The backend is opaque: it receives committed renderer state, a camera and an
output to fill, and produces a color and a depth buffer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

from .camera import as_vector

if TYPE_CHECKING:
    from .camera import Camera
    from .simulation_renderer import RendererState


class FrameBufferMode(Enum):
    """Which backend output channel gets presented"""
    COLOR = "color"
    DEPTH = "depth"
    NONE = "none"


@dataclass
class RenderInput:
    """
    Camera framing for one frame.

    Attributes:
        position: Eye position
        target: View direction (target point minus position)
        up: Up vector
    """
    position: np.ndarray = field(default_factory=lambda: as_vector((0.0, 0.0, -1.0)))
    target: np.ndarray = field(default_factory=lambda: as_vector((0.0, 0.0, 1.0)))
    up: np.ndarray = field(default_factory=lambda: as_vector((0.0, 1.0, 0.0)))


class RenderOutput:
    """
    Color (RGBA8) and depth (float32) buffers sized to the window.
    """

    def __init__(self, width: int = 0, height: int = 0):
        self.width = 0
        self.height = 0
        self.color_buffer = np.zeros((0, 0, 4), dtype=np.uint8)
        self.depth_buffer = np.zeros((0, 0), dtype=np.float32)
        self.resize(width, height)

    def resize(self, width: int, height: int):
        """Reallocate both buffers"""
        self.width = max(0, int(width))
        self.height = max(0, int(height))
        self.color_buffer = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        self.depth_buffer = np.zeros((self.height, self.width), dtype=np.float32)

    @property
    def size(self):
        return self.width, self.height


class RenderBackend(ABC):
    """Abstract base class for ray-tracing backends"""

    @abstractmethod
    def commit(self, state: "RendererState"):
        """Receive a complete renderer state snapshot"""
        pass

    @abstractmethod
    def reshape(self, width: int, height: int):
        """Resize the output"""
        pass

    @abstractmethod
    def render(self, camera: "Camera", output: RenderOutput, frame_number: int = 0):
        """
        Render one frame synchronously.

        Args:
            camera: Camera to render from
            output: Buffers to fill
            frame_number: Accumulation frame index
        """
        pass

    def release(self):
        """Release backend resources"""
        pass
