import enum
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from heat_simulation.errors import ConfigError

# Grid size and simulation constants
DIM = 1024
MAX_TEMPERATURE = 1.0
MIN_TEMPERATURE = 0.0001
SPEED = 0.2
TIME_STEPS_PER_FRAME = 50
TPB = 16

# Explicit 5-point Euler diverges above this speed
STABILITY_LIMIT = 0.25

# CUDA limit on threads in one block
MAX_THREADS_PER_BLOCK = 1024


class EdgeRule(enum.Enum):
    """How the stencil substitutes the missing row neighbour at the top and bottom edges."""

    CLAMP = "clamp"
    REFLECT_ROWS = "reflect_rows"


@dataclass(frozen=True)
class SimulationConfig:
    dim: int = DIM
    speed: float = SPEED
    steps_per_frame: int = TIME_STEPS_PER_FRAME
    tile: int = TPB
    edge_rule: EdgeRule = EdgeRule.CLAMP
    heaters_enabled: bool = True

    def __post_init__(self) -> None:
        if self.dim < 2:
            raise ConfigError("dim must be >= 2")
        if self.tile < 1:
            raise ConfigError("tile must be >= 1")
        if self.tile * self.tile > MAX_THREADS_PER_BLOCK:
            raise ConfigError(f"tile {self.tile} needs more than {MAX_THREADS_PER_BLOCK} threads per block")
        if self.steps_per_frame < 1:
            raise ConfigError("steps_per_frame must be >= 1")
        if self.speed < 0:
            raise ConfigError("speed must be >= 0")
        if not isinstance(self.edge_rule, EdgeRule):
            raise ConfigError(f"edge_rule must be an EdgeRule, got {self.edge_rule!r}")

    @property
    def cells(self) -> int:
        return self.dim * self.dim

    @property
    def is_stable(self) -> bool:
        return self.speed <= STABILITY_LIMIT

    @property
    def blocks_per_grid(self) -> tuple[int, int]:
        per_side = (self.dim + self.tile - 1) // self.tile
        return per_side, per_side

    @property
    def threads_per_block(self) -> tuple[int, int]:
        return self.tile, self.tile


_CONFIG_KEYS = {"dim", "speed", "steps_per_frame", "tile", "edge_rule", "heaters_enabled"}


def _parse_edge_rule(raw: Any) -> EdgeRule:
    value = str(raw).strip().lower()
    try:
        return EdgeRule(value)
    except ValueError:
        choices = ", ".join(rule.value for rule in EdgeRule)
        raise ConfigError(f"edge_rule must be one of: {choices}") from None


def _require_int(payload: dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    return value


def config_from_mapping(payload: dict[str, Any]) -> SimulationConfig:
    unknown = set(payload) - _CONFIG_KEYS
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(sorted(unknown))}")

    kwargs: dict[str, Any] = {}
    for key in ("dim", "steps_per_frame", "tile"):
        if key in payload:
            kwargs[key] = _require_int(payload, key)
    if "speed" in payload:
        speed = payload["speed"]
        if isinstance(speed, bool) or not isinstance(speed, (int, float)):
            raise ConfigError(f"speed must be a number, got {speed!r}")
        kwargs["speed"] = float(speed)
    if "edge_rule" in payload:
        kwargs["edge_rule"] = _parse_edge_rule(payload["edge_rule"])
    if "heaters_enabled" in payload:
        heaters_enabled = payload["heaters_enabled"]
        if not isinstance(heaters_enabled, bool):
            raise ConfigError(f"heaters_enabled must be true or false, got {heaters_enabled!r}")
        kwargs["heaters_enabled"] = heaters_enabled
    return SimulationConfig(**kwargs)


def load_config(path: Path) -> SimulationConfig:
    with path.open("r", encoding="utf-8") as f:
        payload = json.load(f)
    if not isinstance(payload, dict):
        raise ConfigError("config root must be a JSON object")
    return config_from_mapping(payload)
