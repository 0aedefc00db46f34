import logging
import time
from dataclasses import dataclass
from typing import Optional

import numpy as np

from heat_simulation.buffers import DeviceAllocator, GridBuffer
from heat_simulation.config import SimulationConfig
from heat_simulation.errors import PreconditionError
from heat_simulation.heaters import HeaterMap, build_heater_map, build_initial_field
from heat_simulation.kernels import float_to_color_kernel
from heat_simulation.scheduler import BufferRole, DoubleBufferScheduler

logger = logging.getLogger(__name__)


@dataclass
class FrameStats:
    frames: int = 0
    total_ms: float = 0.0

    @property
    def average_ms(self) -> float:
        if self.frames == 0:
            return 0.0
        return self.total_ms / self.frames

    def record(self, elapsed_ms: float) -> None:
        self.frames += 1
        self.total_ms += elapsed_ms


class HeatSimulation:
    """
    Owns the two grid buffers, the heater buffer and the scheduler for one run.

    ``heater_map`` and ``initial_field`` default to the fixed layout from
    ``build_heater_map`` and ``build_initial_field``; with
    ``config.heaters_enabled`` off the heater map is empty.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        heater_map: Optional[HeaterMap] = None,
        initial_field: Optional[np.ndarray] = None,
        allocator: Optional[DeviceAllocator] = None,
    ) -> None:
        self.config = config or SimulationConfig()
        self.allocator = allocator or DeviceAllocator()
        dim = self.config.dim

        if heater_map is None:
            heater_map = build_heater_map(dim) if self.config.heaters_enabled else HeaterMap.empty(dim)
        if heater_map.dim != dim:
            raise PreconditionError(f"heater map is {heater_map.dim}x{heater_map.dim}, grid is {dim}x{dim}")
        if initial_field is None:
            initial_field = build_initial_field(heater_map)
        if np.shape(initial_field) != (dim, dim):
            raise PreconditionError(f"initial field has shape {np.shape(initial_field)}, expected {(dim, dim)}")

        self.heater_map = heater_map
        self.allocator.ensure_device()
        logger.info("allocating %dx%d grids", dim, dim)
        heater_buffer = GridBuffer.from_host("heaters", heater_map.values, self.allocator)
        grid_a = GridBuffer.from_host("A", initial_field, self.allocator)
        grid_b = GridBuffer.allocate("B", dim, self.allocator)

        self.scheduler = DoubleBufferScheduler(self.config, grid_a, grid_b, heater_buffer)
        self._rgba = None
        self.frame_stats = FrameStats()
        self._closed = False

    def __enter__(self) -> "HeatSimulation":
        return self

    def __exit__(self, *exc_info) -> None:
        self.teardown()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def role(self) -> BufferRole:
        return self.scheduler.role

    def _check_open(self) -> None:
        if self._closed:
            raise PreconditionError("simulation has been torn down")

    def size(self) -> tuple[int, int]:
        return self.config.dim, self.config.dim

    def request_frame(self) -> None:
        """Advance one frame of ``steps_per_frame`` sub-steps."""
        self._check_open()
        start = time.perf_counter()
        self.scheduler.run_frame()
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        self.frame_stats.record(elapsed_ms)
        logger.debug("Average Time per frame: %3.1f ms", self.frame_stats.average_ms)

    def export(self) -> np.ndarray:
        """Host copy of the frame result, indexed ``[y, x]``."""
        self._check_open()
        return self.scheduler.current_input.download()

    def render_rgba(self) -> np.ndarray:
        """Colour the frame result into a ``(dim, dim, 4)`` uint8 bitmap."""
        self._check_open()
        dim = self.config.dim
        if self._rgba is None:
            self._rgba = self.allocator.reserve_bitmap(dim * dim)
        float_to_color_kernel[self.config.blocks_per_grid, self.config.threads_per_block](
            self.scheduler.current_input.device, self._rgba, dim
        )
        return self._rgba.copy_to_host().reshape(dim, dim, 4)

    def teardown(self) -> None:
        if self._closed:
            return
        if self.frame_stats.frames:
            logger.info(
                "Average Time per frame: %3.1f ms over %d frames",
                self.frame_stats.average_ms, self.frame_stats.frames
            )
        self.scheduler.release_views()
        for buffer in (self.scheduler.grid_a, self.scheduler.grid_b, self.scheduler.heater_buffer):
            buffer.release()
        self._rgba = None
        self._closed = True
        logger.info("simulation torn down")
