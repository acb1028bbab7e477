"""
Data Manager for loading simulation scalar fields.

Two layouts are understood:
- Zarr stores holding one 4D array (time, z, y, x) per field
- NPY directories with one ``step_*`` folder per timestep, each holding
  ``<field>.npy`` 3D arrays (z, y, x)

Fields are discovered from the data itself rather than from a fixed list.
"""

import warnings
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import zarr


class DataManager:
    """
    Unified interface for loading simulation data from Zarr or NPY formats.
    """

    COORDINATE_KEYS = ('x', 'y', 'z', 'attrs')

    def __init__(self, data_path: Union[str, Path], format: Optional[str] = None):
        """
        Initialize DataManager.

        Args:
            data_path: Path to Zarr store or directory of step_* folders
            format: 'zarr' or 'npy'. If None, auto-detect from path
        """
        self.data_path = Path(data_path)

        if not self.data_path.exists():
            raise FileNotFoundError(f"Data path does not exist: {self.data_path}")

        if format is None:
            format = self._detect_format()
        if format not in ('zarr', 'npy'):
            raise ValueError(f"Unsupported data format: {format}")

        self.format = format
        self.store = None
        self._step_dirs: List[Path] = []

        self._field_cache: Dict[Tuple[str, int], np.ndarray] = {}
        self._discovered_fields: Optional[List[str]] = None

        if self.format == 'zarr':
            self._load_zarr()
        else:
            self._load_npy()

        self.discover_fields()

    def _detect_format(self) -> str:
        if self.data_path.suffix == '.zarr':
            return 'zarr'
        if self.data_path.is_dir() and any(self.data_path.glob('step_*')):
            return 'npy'
        return 'zarr'

    def _load_zarr(self):
        """Open Zarr store read-only"""
        self.store = zarr.open(str(self.data_path), mode='r')
        if len(list(self.store.keys())) == 0:
            raise ValueError(f"Zarr store appears empty: {self.data_path}")

    def _load_npy(self):
        """Index step_* directories"""
        if not self.data_path.is_dir():
            raise ValueError(f"NPY format requires a directory: {self.data_path}")

        self._step_dirs = sorted(p for p in self.data_path.glob('step_*') if p.is_dir())
        if not self._step_dirs:
            raise ValueError(f"No step_* directories found in {self.data_path}")

    def discover_fields(self) -> List[str]:
        """
        Discover available fields from the data files.

        Returns:
            Sorted list of field names
        """
        if self._discovered_fields is not None:
            return self._discovered_fields

        discovered = set()
        if self.format == 'zarr':
            for key in self.store.keys():
                if key in self.COORDINATE_KEYS:
                    continue
                item = self.store[key]
                if hasattr(item, 'shape') and len(item.shape) == 4:
                    discovered.add(key)
        else:
            for npy_file in self._step_dirs[0].glob('*.npy'):
                discovered.add(npy_file.stem)

        self._discovered_fields = sorted(discovered)
        return self._discovered_fields

    def list_available_fields(self) -> List[str]:
        return self.discover_fields()

    def has_field(self, field_name: str) -> bool:
        return field_name in self.discover_fields()

    @property
    def num_timesteps(self) -> int:
        if self.format == 'npy':
            return len(self._step_dirs)
        fields = self.discover_fields()
        if not fields:
            return 0
        return int(self.store[fields[0]].shape[0])

    def get_field(self, field_name: str, timestep: int = 0) -> np.ndarray:
        """
        Get field data for a specific timestep.

        Args:
            field_name: Name of the field
            timestep: Timestep index

        Returns:
            3D float32 array (z, y, x)
        """
        cache_key = (field_name, timestep)
        if cache_key in self._field_cache:
            return self._field_cache[cache_key]

        if not self.has_field(field_name):
            raise ValueError(
                f"Field '{field_name}' not found. Available fields: {self.list_available_fields()}"
            )
        if not 0 <= timestep < self.num_timesteps:
            raise IndexError(f"Timestep {timestep} out of range (max: {self.num_timesteps - 1})")

        if self.format == 'zarr':
            data = np.asarray(self.store[field_name][timestep])
        else:
            npy_file = self._step_dirs[timestep] / f"{field_name}.npy"
            if not npy_file.exists():
                raise FileNotFoundError(f"Missing field file: {npy_file}")
            data = np.load(npy_file)

        if data.ndim != 3:
            raise ValueError(f"Field '{field_name}' must be 3D (z, y, x), got shape {data.shape}")

        data = data.astype(np.float32, copy=False)
        nan_fraction = float(np.isnan(data).mean()) if data.size else 0.0
        if nan_fraction >= 0.5:
            warnings.warn(
                f"Field '{field_name}' at timestep {timestep} is {nan_fraction:.0%} NaN"
            )

        self._field_cache[cache_key] = data
        return data

    def clear_cache(self):
        """Clear field cache"""
        self._field_cache.clear()
