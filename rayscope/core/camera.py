"""
Camera entity consumed by the ray-tracing backend.

The camera holds position/target/up and projection parameters, keeps a
snapshot of its initial state for resets, and can mirror its state into an
external serializable representation (e.g. a remote control channel).
"""

import json
import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional, Sequence

import numpy as np


class CameraType(Enum):
    """Projection model of a camera"""
    PERSPECTIVE = "perspective"
    STEREO = "stereo"
    ORTHOGRAPHIC = "orthographic"
    PANORAMIC = "panoramic"


def as_vector(value: Sequence[float]) -> np.ndarray:
    """Copy a 3-component sequence into a float32 vector"""
    return np.array(value, dtype=np.float32).reshape(3)


class CameraMirror(ABC):
    """
    Capability interface for keeping a camera in sync with an external store.

    The camera calls both methods unconditionally; implementations decide
    whether anything actually happens.
    """

    @abstractmethod
    def try_sync_to_external(self, state: Dict[str, Any]) -> None:
        """Write the local camera state to the external representation"""
        pass

    @abstractmethod
    def try_sync_from_external(self) -> Optional[Dict[str, Any]]:
        """
        Read the external representation.

        Returns:
            Camera fields to apply locally, or None if there is nothing to read
        """
        pass


class NullCameraMirror(CameraMirror):
    """Mirror used when no external store exists; local fields are authoritative"""

    def try_sync_to_external(self, state: Dict[str, Any]) -> None:
        pass

    def try_sync_from_external(self) -> Optional[Dict[str, Any]]:
        return None


class SerializableCameraMirror(CameraMirror):
    """
    JSON-serializable field-of-view camera document.

    Field names follow the wire document: ``origin``, ``look_at``, ``up``,
    ``aperture`` and ``focal_length``. A remote peer edits the document with
    update() or from_json(); the camera picks the edits up on refresh().
    """

    FIELDS = ('origin', 'look_at', 'up', 'aperture', 'focal_length')

    def __init__(self):
        self.document: Dict[str, Any] = {
            'origin': [0.0, 0.0, -1.0],
            'look_at': [0.0, 0.0, 0.0],
            'up': [0.0, 1.0, 0.0],
            'aperture': 0.0,
            'focal_length': 0.0,
        }

    def try_sync_to_external(self, state: Dict[str, Any]) -> None:
        for key in ('origin', 'look_at', 'up'):
            if key in state:
                self.document[key] = [float(c) for c in state[key]]
        for key in ('aperture', 'focal_length'):
            if key in state:
                self.document[key] = float(state[key])

    def try_sync_from_external(self) -> Optional[Dict[str, Any]]:
        return dict(self.document)

    def update(self, **fields):
        """Apply edits coming from the external side"""
        unknown = set(fields) - set(self.FIELDS)
        if unknown:
            raise ValueError(f"Unknown camera fields: {sorted(unknown)}")
        self.try_sync_to_external(fields)

    def to_json(self) -> str:
        return json.dumps(self.document)

    def from_json(self, payload: str):
        data = json.loads(payload)
        if not isinstance(data, dict):
            raise ValueError("Camera document must be a JSON object")
        self.update(**{k: v for k, v in data.items() if k in self.FIELDS})


class Camera:
    """
    Camera with position/target/up, projection parameters and a reset snapshot.

    Setters write through to the mirror immediately. Reads never touch the
    mirror; call refresh() once per read cycle to pick up external edits.
    """

    def __init__(self, camera_type: CameraType = CameraType.PERSPECTIVE,
                 mirror: Optional[CameraMirror] = None):
        """
        Initialize camera.

        Args:
            camera_type: Projection model (fixed for the camera's lifetime)
            mirror: External state mirror (default: no mirror)
        """
        self._type = camera_type
        self._mirror = mirror if mirror is not None else NullCameraMirror()

        self._position = as_vector((0.0, 0.0, -1.0))
        self._target = as_vector((0.0, 0.0, 0.0))
        self._up = as_vector((0.0, 1.0, 0.0))

        self._initial_position = self._position.copy()
        self._initial_target = self._target.copy()
        self._initial_up = self._up.copy()

        self._aspect_ratio = 1.0
        self._aperture = 0.0
        self._focal_length = 0.0

        # Projection parameters for raster backends
        self.fov = math.radians(45.0)
        self.near = 0.01
        self.far = 1000.0

    @property
    def mirror(self) -> CameraMirror:
        return self._mirror

    def get_type(self) -> CameraType:
        """Get the projection model"""
        return self._type

    def set(self, position: Sequence[float], target: Sequence[float], up: Sequence[float]):
        """Set position, target and up vector at once"""
        self.set_position(position)
        self.set_target(target)
        self.set_up_vector(up)

    def set_initial_state(self, position: Sequence[float], target: Sequence[float],
                          up: Sequence[float]):
        """Store the reset snapshot and apply it"""
        self._initial_position = as_vector(position)
        self._initial_target = as_vector(target)
        self._initial_up = as_vector(up)
        self.set(self._initial_position, self._initial_target, self._initial_up)

    def reset(self):
        """Restore the state captured by set_initial_state()"""
        self.set(self._initial_position, self._initial_target, self._initial_up)

    def get_position(self) -> np.ndarray:
        return self._position.copy()

    def set_position(self, position: Sequence[float]):
        self._position = as_vector(position)
        self._mirror.try_sync_to_external({'origin': self._position})

    def get_target(self) -> np.ndarray:
        return self._target.copy()

    def set_target(self, target: Sequence[float]):
        self._target = as_vector(target)
        self._mirror.try_sync_to_external({'look_at': self._target})

    def get_up_vector(self) -> np.ndarray:
        return self._up.copy()

    def set_up_vector(self, up: Sequence[float]):
        self._up = as_vector(up)
        self._mirror.try_sync_to_external({'up': self._up})

    def get_aspect_ratio(self) -> float:
        return self._aspect_ratio

    def set_aspect_ratio(self, aspect_ratio: float):
        self._aspect_ratio = float(aspect_ratio)

    def get_aperture(self) -> float:
        return self._aperture

    def set_aperture(self, aperture: float):
        self._aperture = float(aperture)
        self._mirror.try_sync_to_external({'aperture': self._aperture})

    def get_focal_length(self) -> float:
        return self._focal_length

    def set_focal_length(self, focal_length: float):
        self._focal_length = float(focal_length)
        self._mirror.try_sync_to_external({'focal_length': self._focal_length})

    def refresh(self) -> bool:
        """
        Pull external edits from the mirror into the local fields.

        Returns:
            True if the mirror provided state
        """
        state = self._mirror.try_sync_from_external()
        if state is None:
            return False
        if 'origin' in state:
            self._position = as_vector(state['origin'])
        if 'look_at' in state:
            self._target = as_vector(state['look_at'])
        if 'up' in state:
            self._up = as_vector(state['up'])
        if 'aperture' in state:
            self._aperture = float(state['aperture'])
        if 'focal_length' in state:
            self._focal_length = float(state['focal_length'])
        return True

    def get_view_matrix(self) -> np.ndarray:
        """Get view matrix (4x4)"""
        return self.look_at(self._position, self._target, self._up)

    def get_projection_matrix(self, width: int, height: int) -> np.ndarray:
        """Get projection matrix (4x4)"""
        aspect = width / height if height > 0 else self._aspect_ratio
        return self.perspective_projection(self.fov, aspect, self.near, self.far)

    @staticmethod
    def look_at(eye: np.ndarray, center: np.ndarray, up: np.ndarray) -> np.ndarray:
        """
        Create look-at view matrix.

        Args:
            eye: Camera position
            center: Point to look at
            up: Up vector

        Returns:
            4x4 view matrix
        """
        f = np.asarray(center, dtype=np.float32) - np.asarray(eye, dtype=np.float32)
        f = f / np.linalg.norm(f)

        s = np.cross(f, up)
        s = s / np.linalg.norm(s)

        u = np.cross(s, f)

        m = np.eye(4, dtype=np.float32)
        m[0, :3] = s
        m[1, :3] = u
        m[2, :3] = -f
        m[:3, 3] = -np.array([s, u, -f]) @ np.asarray(eye, dtype=np.float32)

        return m

    @staticmethod
    def perspective_projection(fov: float, aspect: float, near: float, far: float) -> np.ndarray:
        """
        Create perspective projection matrix.

        Args:
            fov: Field of view in radians
            aspect: Aspect ratio (width/height)
            near: Near plane distance
            far: Far plane distance

        Returns:
            4x4 projection matrix
        """
        f = 1.0 / math.tan(fov / 2.0)
        m = np.zeros((4, 4), dtype=np.float32)

        m[0, 0] = f / aspect
        m[1, 1] = f
        m[2, 2] = (far + near) / (near - far)
        m[2, 3] = (2.0 * far * near) / (near - far)
        m[3, 2] = -1.0

        return m

    def __repr__(self) -> str:
        return (f"Camera(type={self._type.value}, position={self._position.tolist()}, "
                f"target={self._target.tolist()}, up={self._up.tolist()})")
