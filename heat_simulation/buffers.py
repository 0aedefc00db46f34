"""
Device buffers for the temperature grid.

A ``GridBuffer`` owns one linear float32 device array of ``dim * dim`` cells,
laid out row-major (``index = x + y * dim``). Kernels never receive a buffer
directly: they read through a ``CachedReadView`` bound to it and write into the
buffer's ``device`` array.
"""
import logging

import numpy as np
from numba import cuda

from heat_simulation.errors import PreconditionError, ResourceAcquisitionError

logger = logging.getLogger(__name__)


class DeviceAllocator:
    """Reserves and uploads float32 device arrays."""

    def ensure_device(self) -> None:
        if not cuda.is_available():
            raise ResourceAcquisitionError("no CUDA device available")

    def reserve(self, size: int):
        try:
            return cuda.to_device(np.zeros(size, dtype=np.float32))
        except Exception as exc:
            raise ResourceAcquisitionError(f"could not reserve {size} cells on the device") from exc

    def upload(self, host: np.ndarray):
        flat = np.ascontiguousarray(host, dtype=np.float32).ravel()
        try:
            return cuda.to_device(flat)
        except Exception as exc:
            raise ResourceAcquisitionError(f"could not upload {flat.size} cells to the device") from exc

    def reserve_bitmap(self, cells: int):
        try:
            return cuda.device_array((cells, 4), dtype=np.uint8)
        except Exception as exc:
            raise ResourceAcquisitionError(f"could not reserve a {cells}-pixel bitmap on the device") from exc


class GridBuffer:
    def __init__(self, name: str, dim: int, device_array) -> None:
        if device_array.size != dim * dim:
            raise PreconditionError(
                f"buffer '{name}' holds {device_array.size} cells, expected {dim * dim}"
            )
        self.name = name
        self.dim = dim
        self._device = device_array

    @classmethod
    def allocate(cls, name: str, dim: int, allocator: DeviceAllocator) -> "GridBuffer":
        logger.debug("reserving grid buffer '%s' (%dx%d)", name, dim, dim)
        return cls(name, dim, allocator.reserve(dim * dim))

    @classmethod
    def from_host(cls, name: str, host: np.ndarray, allocator: DeviceAllocator) -> "GridBuffer":
        if host.ndim != 2 or host.shape[0] != host.shape[1]:
            raise PreconditionError(f"buffer '{name}' needs a square host array, got {host.shape}")
        logger.debug("uploading grid buffer '%s' (%dx%d)", name, host.shape[0], host.shape[1])
        return cls(name, host.shape[0], allocator.upload(host))

    @property
    def size(self) -> int:
        return self.dim * self.dim

    @property
    def released(self) -> bool:
        return self._device is None

    @property
    def device(self):
        if self._device is None:
            raise PreconditionError(f"buffer '{self.name}' has been released")
        return self._device

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.size:
            raise PreconditionError(
                f"index {index} outside buffer '{self.name}' of {self.size} cells"
            )

    def read(self, index: int) -> float:
        self._check_index(index)
        return float(self.device[index])

    def write(self, index: int, value: float) -> None:
        self._check_index(index)
        self.device[index] = np.float32(value)

    def upload(self, host: np.ndarray) -> None:
        flat = np.ascontiguousarray(host, dtype=np.float32).ravel()
        if flat.size != self.size:
            raise PreconditionError(
                f"cannot upload {flat.size} cells into buffer '{self.name}' of {self.size}"
            )
        self.device.copy_to_device(flat)

    def download(self) -> np.ndarray:
        return self.device.copy_to_host().reshape(self.dim, self.dim)

    def release(self) -> None:
        if self._device is not None:
            logger.debug("releasing grid buffer '%s'", self.name)
        self._device = None

    def __repr__(self) -> str:
        state = "released" if self.released else f"{self.dim}x{self.dim}"
        return f"GridBuffer({self.name!r}, {state})"


class CachedReadView:
    """
    Read-only view for one role (heaters or input), bound to at most one buffer.

    Every bind bumps ``generation``; reads taken before a rebind refer to the
    previous buffer and must not be reused.
    """

    def __init__(self, role: str, size: int) -> None:
        self.role = role
        self.size = size
        self.generation = 0
        self._buffer = None

    @property
    def is_bound(self) -> bool:
        return self._buffer is not None

    @property
    def buffer(self) -> GridBuffer:
        if self._buffer is None:
            raise PreconditionError(f"view '{self.role}' is not bound")
        return self._buffer

    def bind(self, buffer: GridBuffer) -> None:
        if buffer.size != self.size:
            raise PreconditionError(
                f"view '{self.role}' covers {self.size} cells, buffer '{buffer.name}' has {buffer.size}"
            )
        if buffer.released:
            raise PreconditionError(f"cannot bind view '{self.role}' to released buffer '{buffer.name}'")
        self._buffer = buffer
        self.generation += 1

    def ensure_bound(self, buffer: GridBuffer) -> None:
        """Bind to ``buffer`` unless already bound to it."""
        if self._buffer is not buffer:
            self.bind(buffer)

    def unbind(self) -> None:
        self._buffer = None

    def expect(self, generation: int) -> None:
        """Fail if the view was rebound since ``generation`` was taken."""
        if generation != self.generation:
            raise PreconditionError(
                f"view '{self.role}' was rebound (generation {generation} -> {self.generation})"
            )

    def fetch(self):
        return self.buffer.device

    def read(self, index: int) -> float:
        return self.buffer.read(index)
