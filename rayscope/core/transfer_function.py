"""
Transfer functions mapping scalar simulation values to color and opacity.

A TransferFunction is an immutable snapshot of sampled diffuse (RGBA) and
emission values over the value domain [min_value, min_value + range], plus
a visibility threshold. The simulation renderer commits it to the backend as
a whole.
"""

import dataclasses
from dataclasses import dataclass
from typing import Optional

import numpy as np


def _frozen(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=np.float32, order="C", copy=True)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class TransferFunction:
    """
    Sampled transfer function snapshot.

    Attributes:
        diffuse: (N, 4) RGBA samples in [0, 1]
        emission: (N,) emission intensity samples
        min_value: Scalar value mapped to the first sample
        range: Width of the value domain mapped onto the samples
        threshold: Values below this are invisible; None means min_value
    """
    diffuse: np.ndarray
    emission: np.ndarray
    min_value: float = 0.0
    range: float = 1.0
    threshold: Optional[float] = None

    def __post_init__(self):
        diffuse = _frozen(self.diffuse)
        emission = _frozen(self.emission)
        if diffuse.ndim != 2 or diffuse.shape[1] != 4:
            raise ValueError(f"Diffuse samples must have shape (N, 4), got {diffuse.shape}")
        if emission.ndim != 1:
            raise ValueError(f"Emission samples must have shape (N,), got {emission.shape}")
        if len(diffuse) != len(emission):
            raise ValueError(
                f"Diffuse and emission sample counts differ: {len(diffuse)} != {len(emission)}"
            )
        object.__setattr__(self, 'diffuse', diffuse)
        object.__setattr__(self, 'emission', emission)
        object.__setattr__(self, 'min_value', float(self.min_value))
        object.__setattr__(self, 'range', float(self.range))
        if self.threshold is not None:
            object.__setattr__(self, 'threshold', float(self.threshold))

    @property
    def sample_count(self) -> int:
        return len(self.diffuse)

    @property
    def max_value(self) -> float:
        return self.min_value + self.range

    @property
    def effective_threshold(self) -> float:
        """Threshold seen by the renderer"""
        return self.min_value if self.threshold is None else self.threshold

    def with_range(self, min_value: float, range: float) -> "TransferFunction":
        return dataclasses.replace(self, min_value=min_value, range=range)

    def with_threshold(self, threshold: Optional[float]) -> "TransferFunction":
        return dataclasses.replace(self, threshold=threshold)

    def sample_indices(self, values: np.ndarray) -> np.ndarray:
        """Map scalar values onto sample indices"""
        values = np.asarray(values, dtype=np.float32)
        if self.range > 0.0:
            t = np.clip((np.nan_to_num(values, nan=self.min_value) - self.min_value) / self.range,
                        0.0, 1.0)
        else:
            t = np.zeros_like(values)
        return np.rint(t * (self.sample_count - 1)).astype(np.intp)

    def lookup(self, values: np.ndarray) -> np.ndarray:
        """
        Look up diffuse colors for scalar values.

        Values below the threshold (and NaNs) come back fully transparent.

        Args:
            values: Scalar values of any shape

        Returns:
            RGBA array of shape values.shape + (4,), float32
        """
        values = np.asarray(values, dtype=np.float32)
        rgba = self.diffuse[self.sample_indices(values)].copy()
        hidden = ~(values >= self.effective_threshold)
        rgba[hidden, 3] = 0.0
        return rgba

    def apply(self, field: np.ndarray) -> np.ndarray:
        """
        Apply transfer function to a scalar volume.

        Args:
            field: Scalar field (3D array: z, y, x)

        Returns:
            RGBA volume data (z, y, x, 4) as float32
        """
        return self.lookup(field)

    @classmethod
    def from_colormap(cls, name: str = "viridis", sample_count: int = 256,
                      min_value: float = 0.0, range: float = 1.0,
                      threshold: Optional[float] = None,
                      opacity: float = 1.0, emission: float = 0.0) -> "TransferFunction":
        """
        Sample a matplotlib colormap with a linear opacity ramp.

        Args:
            name: Registered matplotlib colormap name
            sample_count: Number of samples
            min_value: Start of the value domain
            range: Width of the value domain
            threshold: Optional visibility threshold
            opacity: Opacity reached at the top of the domain
            emission: Constant emission intensity

        Returns:
            TransferFunction snapshot
        """
        import matplotlib

        if sample_count < 2:
            raise ValueError("A transfer function needs at least 2 samples")
        try:
            cmap = matplotlib.colormaps[name]
        except KeyError:
            raise ValueError(f"Unknown colormap: {name}") from None

        t = np.linspace(0.0, 1.0, sample_count)
        diffuse = np.asarray(cmap(t), dtype=np.float32)
        diffuse[:, 3] = np.clip(t * opacity, 0.0, 1.0)

        return cls(
            diffuse=diffuse,
            emission=np.full(sample_count, emission, dtype=np.float32),
            min_value=min_value,
            range=range,
            threshold=threshold,
        )

    @classmethod
    def grayscale(cls, sample_count: int = 256, min_value: float = 0.0, range: float = 1.0,
                  threshold: Optional[float] = None, invert: bool = False,
                  contrast: float = 1.0) -> "TransferFunction":
        """
        Grayscale ramp for scientific-style visualization.

        Args:
            sample_count: Number of samples
            min_value: Start of the value domain
            range: Width of the value domain
            threshold: Optional visibility threshold
            invert: If True, invert the grayscale (dark=high, light=low)
            contrast: Contrast multiplier (>1 = higher contrast)
        """
        intensity = np.linspace(0.0, 1.0, sample_count, dtype=np.float32)
        intensity = np.power(intensity, 1.0 / contrast)
        if invert:
            intensity = 1.0 - intensity

        # Opacity in 0.1..0.9, higher values more opaque
        alpha = np.linspace(0.0, 1.0, sample_count, dtype=np.float32) * 0.8 + 0.1

        diffuse = np.stack([intensity, intensity, intensity, alpha], axis=-1)
        return cls(
            diffuse=diffuse,
            emission=np.zeros(sample_count, dtype=np.float32),
            min_value=min_value,
            range=range,
            threshold=threshold,
        )

    @classmethod
    def for_field(cls, field: np.ndarray, name: str = "viridis",
                  threshold: Optional[float] = None, **kwargs) -> "TransferFunction":
        """Colormap transfer function spanning the finite range of a field"""
        finite = np.asarray(field)[np.isfinite(field)]
        if finite.size == 0:
            vmin, vmax = 0.0, 1.0
        else:
            vmin, vmax = float(finite.min()), float(finite.max())
        return cls.from_colormap(name, min_value=vmin, range=max(vmax - vmin, 0.0),
                                 threshold=threshold, **kwargs)
