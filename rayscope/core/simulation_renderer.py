"""
Simulation renderer parameter pipeline.

Parameters are staged by name with set_param() and only become visible to
the backend on commit(), which packs all of them into one immutable
RendererState and hands it over in a single call.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .render_engine import RenderBackend


logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass(frozen=True, eq=False)
class RendererState:
    """
    Complete renderer state for one frame, in commit order.

    Optional buffers are None when absent; an empty array means an empty
    overlay, which is not the same thing.
    """
    background_color: Tuple[float, float, float]
    shadows: bool
    soft_shadows: bool
    ambient_occlusion_strength: float
    shading: bool
    random_number: int
    timestamp: float
    spp: int
    electron_shading: bool
    lights: List[Any]
    materials: List[Any]
    simulation_data: Optional[np.ndarray]
    transfer_function_diffuse_data: Optional[np.ndarray]
    transfer_function_emission_data: Optional[np.ndarray]
    transfer_function_size: int
    transfer_function_min_value: float
    transfer_function_range: float
    threshold: float
    gradient_background: bool = False
    light_emitting_materials: bool = False

    @property
    def has_simulation(self) -> bool:
        return self.simulation_data is not None

    @property
    def has_transfer_function(self) -> bool:
        return (self.transfer_function_diffuse_data is not None
                and self.transfer_function_size > 0)


def _frozen_buffer(value: Any, components: int = 1) -> np.ndarray:
    """Read-only float32 view of value; the caller's array keeps its flags"""
    array = np.ascontiguousarray(value, dtype=np.float32)
    if components > 1 and (array.ndim != 2 or array.shape[1] != components):
        array = array.reshape(-1, components)
    else:
        array = array.view()
    array.setflags(write=False)
    return array


class SimulationRenderer:
    """
    Renderer coloring geometry and volumes with simulation values.
    """

    def __init__(self, backend: Optional[RenderBackend] = None):
        self.backend = backend
        self._params: Dict[str, Any] = {}
        self._state: Optional[RendererState] = None
        self._lock = threading.Lock()
        # name -> (source object, committed buffer)
        self._buffers: Dict[str, Tuple[Any, np.ndarray]] = {}

    def set_param(self, name: str, value: Any):
        """Stage a parameter for the next commit"""
        self._params[name] = value

    def get_param(self, name: str, default: Any = None) -> Any:
        return self._params.get(name, default)

    def remove_param(self, name: str):
        self._params.pop(name, None)

    def _buffer(self, name: str, components: int = 1) -> Optional[np.ndarray]:
        """
        Committed buffer for a staged array parameter.

        The same source object yields the same buffer object on every commit,
        so backends can skip re-uploads by identity. Replace the array (rather
        than editing it in place) to have the change uploaded.
        """
        value = self._params.get(name)
        if value is None:
            self._buffers.pop(name, None)
            return None
        cached = self._buffers.get(name)
        if cached is not None and cached[0] is value:
            return cached[1]
        buffer = _frozen_buffer(value, components)
        self._buffers[name] = (value, buffer)
        return buffer

    @property
    def state(self) -> Optional[RendererState]:
        """Last committed state"""
        with self._lock:
            return self._state

    def commit(self) -> RendererState:
        """
        Snapshot staged parameters and hand them to the backend.

        Returns:
            The committed state
        """
        p = self._params

        background_color = tuple(float(c) for c in p.get('bg_color', (0.0, 0.0, 0.0)))
        shadows = bool(p.get('shadows', False))
        soft_shadows = bool(p.get('soft_shadows', False))
        ambient_occlusion_strength = float(p.get('ambient_occlusion_strength', 0.0))
        shading = bool(p.get('shading', False))
        random_number = int(p.get('random_number', 0))
        timestamp = float(p.get('timestamp', 0.0))
        spp = int(p.get('spp', 1))
        electron_shading = bool(p.get('electron_shading', False))
        lights = p.get('lights', [])
        materials = p.get('materials', [])

        simulation_data = self._buffer('simulation_data')
        diffuse_data = self._buffer('transfer_function_diffuse_data', components=4)
        emission_data = self._buffer('transfer_function_emission_data')
        transfer_function_size = int(p.get('transfer_function_size', 0))
        transfer_function_min_value = float(p.get('transfer_function_min_value', 0.0))
        transfer_function_range = float(p.get('transfer_function_range', 0.0))
        threshold = p.get('threshold', _MISSING)
        threshold = transfer_function_min_value if threshold is _MISSING else float(threshold)

        state = RendererState(
            background_color=background_color,
            shadows=shadows,
            soft_shadows=soft_shadows,
            ambient_occlusion_strength=ambient_occlusion_strength,
            shading=shading,
            random_number=random_number,
            timestamp=timestamp,
            spp=spp,
            electron_shading=electron_shading,
            lights=lights,
            materials=materials,
            simulation_data=simulation_data,
            transfer_function_diffuse_data=diffuse_data,
            transfer_function_emission_data=emission_data,
            transfer_function_size=transfer_function_size,
            transfer_function_min_value=transfer_function_min_value,
            transfer_function_range=transfer_function_range,
            threshold=threshold,
            gradient_background=bool(p.get('gradient_background', False)),
            light_emitting_materials=bool(p.get('light_emitting_materials', False)),
        )

        with self._lock:
            self._state = state
            if self.backend is not None:
                self.backend.commit(state)

        logger.debug("Committed renderer state (simulation=%s, tf_size=%d, threshold=%.4f)",
                     state.has_simulation, transfer_function_size, threshold)
        return state
