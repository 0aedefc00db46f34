from heat_simulation.buffers import CachedReadView, DeviceAllocator, GridBuffer
from heat_simulation.config import (
    DIM,
    MAX_TEMPERATURE,
    MIN_TEMPERATURE,
    SPEED,
    TIME_STEPS_PER_FRAME,
    EdgeRule,
    SimulationConfig,
    load_config,
)
from heat_simulation.errors import (
    ConfigError,
    HeatSimulationError,
    PreconditionError,
    ResourceAcquisitionError,
)
from heat_simulation.heaters import HeaterMap, build_heater_map, build_initial_field
from heat_simulation.scheduler import BufferRole, DoubleBufferScheduler, HeaterApplicator, StencilUpdater
from heat_simulation.simulation import FrameStats, HeatSimulation

__all__ = [
    "BufferRole",
    "CachedReadView",
    "ConfigError",
    "DIM",
    "DeviceAllocator",
    "DoubleBufferScheduler",
    "EdgeRule",
    "FrameStats",
    "GridBuffer",
    "HeatSimulation",
    "HeatSimulationError",
    "HeaterApplicator",
    "HeaterMap",
    "MAX_TEMPERATURE",
    "MIN_TEMPERATURE",
    "PreconditionError",
    "ResourceAcquisitionError",
    "SPEED",
    "SimulationConfig",
    "StencilUpdater",
    "TIME_STEPS_PER_FRAME",
    "build_heater_map",
    "build_initial_field",
    "load_config",
]
