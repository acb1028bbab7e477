"""
Rendering parameter store.

Keyboard commands mutate these values; the engine copies them into the
simulation renderer on its next commit.
"""

from typing import Tuple

MAX_FRAME_NUMBER = 65535


def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


class RenderingParameters:
    """
    Mutable rendering parameters owned by the application.

    Ambient-occlusion strength is clamped to [0, 1] on every write so that
    no caller can push it out of range.
    """

    def __init__(self,
                 background_color: Tuple[float, float, float] = (0.0, 0.0, 0.0),
                 gradient_background: bool = False,
                 shadows: bool = False,
                 soft_shadows: bool = False,
                 ambient_occlusion_strength: float = 0.0,
                 light_shading: bool = True,
                 electron_shading: bool = False,
                 depth_of_field: bool = False,
                 aperture: float = 0.01,
                 focal_length: float = 1.0,
                 light_emitting_materials: bool = False,
                 frame_number: int = 0,
                 spp: int = 1,
                 timestamp: float = 0.0):
        self.background_color = background_color
        self.gradient_background = gradient_background
        self.shadows = shadows
        self.soft_shadows = soft_shadows
        self.ambient_occlusion_strength = ambient_occlusion_strength
        self.light_shading = light_shading
        self.electron_shading = electron_shading
        self.depth_of_field = depth_of_field
        self.aperture = aperture
        self.focal_length = focal_length
        self.light_emitting_materials = light_emitting_materials
        self.frame_number = frame_number
        self.spp = spp
        self.timestamp = timestamp

    @property
    def ambient_occlusion_strength(self) -> float:
        return self._ambient_occlusion_strength

    @ambient_occlusion_strength.setter
    def ambient_occlusion_strength(self, value: float):
        self._ambient_occlusion_strength = _clamp01(value)

    @property
    def background_color(self) -> Tuple[float, float, float]:
        return self._background_color

    @background_color.setter
    def background_color(self, value):
        r, g, b = (float(c) for c in value)
        self._background_color = (r, g, b)

    @property
    def frame_number(self) -> int:
        return self._frame_number

    @frame_number.setter
    def frame_number(self, value: int):
        self._frame_number = max(0, min(MAX_FRAME_NUMBER, int(value)))

    def advance_frame(self):
        """Count one more accumulated frame, saturating at MAX_FRAME_NUMBER"""
        self.frame_number = self._frame_number + 1

    def clamp(self) -> "RenderingParameters":
        self.gradient_background = bool(self.gradient_background)
        self.shadows = bool(self.shadows)
        self.soft_shadows = bool(self.soft_shadows)
        self.light_shading = bool(self.light_shading)
        self.electron_shading = bool(self.electron_shading)
        self.depth_of_field = bool(self.depth_of_field)
        self.light_emitting_materials = bool(self.light_emitting_materials)
        self.aperture = max(0.0, float(self.aperture))
        self.focal_length = max(0.0, float(self.focal_length))
        self.spp = max(1, int(self.spp))
        self.timestamp = float(self.timestamp)
        return self

    def __repr__(self) -> str:
        return (f"RenderingParameters(background={self.background_color}, shadows={self.shadows}, "
                f"soft_shadows={self.soft_shadows}, ao={self.ambient_occlusion_strength:.2f}, "
                f"frame={self.frame_number})")
