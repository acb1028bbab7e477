"""
Core components of the rayscope visualizer.

Camera and viewport state, the simulation renderer's parameter pipeline,
transfer functions and the engine facade driving a ray-tracing backend.
"""

from .errors import ContractError, require
from .camera import (
    Camera,
    CameraMirror,
    CameraType,
    NullCameraMirror,
    SerializableCameraMirror,
)
from .viewport import Viewport, viewport_from_bounds
from .transfer_function import TransferFunction
from .parameters import RenderingParameters, MAX_FRAME_NUMBER
from .scene import Scene, Light, Material
from .data_manager import DataManager
from .render_engine import FrameBufferMode, RenderBackend, RenderInput, RenderOutput
from .simulation_renderer import RendererState, SimulationRenderer
from .engine import Engine
from .shader_manager import ShaderManager

__all__ = [
    'ContractError',
    'require',
    'Camera',
    'CameraMirror',
    'CameraType',
    'NullCameraMirror',
    'SerializableCameraMirror',
    'Viewport',
    'viewport_from_bounds',
    'TransferFunction',
    'RenderingParameters',
    'MAX_FRAME_NUMBER',
    'Scene',
    'Light',
    'Material',
    'DataManager',
    'FrameBufferMode',
    'RenderBackend',
    'RenderInput',
    'RenderOutput',
    'RendererState',
    'SimulationRenderer',
    'Engine',
    'ShaderManager',
]
