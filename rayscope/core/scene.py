"""
Scene contents consumed by the engine: world bounds, lights, materials and
an optional simulation volume with its transfer function.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from .data_manager import DataManager
from .transfer_function import TransferFunction


@dataclass
class Light:
    """Directional light"""
    direction: Tuple[float, float, float] = (-1.0, -1.0, 1.0)
    color: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    intensity: float = 1.0


@dataclass
class Material:
    """Surface material; emission > 0 makes it a light source when enabled"""
    diffuse_color: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    specular_exponent: float = 10.0
    opacity: float = 1.0
    emission: float = 0.0


@dataclass
class Scene:
    """
    World bounds plus everything the simulation renderer reads.

    Attributes:
        bounds_min: Lower corner of the world bounds
        bounds_max: Upper corner of the world bounds
        simulation_data: Scalar volume (z, y, x) or None when there is no overlay
        transfer_function: Color mapping for simulation_data, or None
        lights: Light collection (handed to the backend by reference)
        materials: Material collection (handed to the backend by reference)
    """
    bounds_min: Tuple[float, float, float] = (-1.0, -1.0, -1.0)
    bounds_max: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    simulation_data: Optional[np.ndarray] = None
    transfer_function: Optional[TransferFunction] = None
    lights: List[Light] = field(default_factory=lambda: [Light()])
    materials: List[Material] = field(default_factory=lambda: [Material()])

    def get_world_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        return (np.asarray(self.bounds_min, dtype=np.float32),
                np.asarray(self.bounds_max, dtype=np.float32))

    @property
    def volume_shape(self) -> Optional[Tuple[int, int, int]]:
        if self.simulation_data is None:
            return None
        return tuple(self.simulation_data.shape)

    @classmethod
    def from_data_manager(cls, data_manager: DataManager, field_name: str,
                          timestep: int = 0, colormap: str = "viridis",
                          threshold: Optional[float] = None) -> "Scene":
        """
        Build a scene around one simulation field.

        The volume is placed in a box whose longest side is 2, centered on the
        origin, preserving the grid proportions.
        """
        data = data_manager.get_field(field_name, timestep)
        nz, ny, nx = data.shape
        extent = np.array([nx, ny, nz], dtype=np.float32)
        half = extent / max(float(extent.max()), 1.0)

        return cls(
            bounds_min=tuple(float(v) for v in -half),
            bounds_max=tuple(float(v) for v in half),
            simulation_data=data,
            transfer_function=TransferFunction.for_field(data, colormap, threshold=threshold),
        )
