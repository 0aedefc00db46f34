"""
Heater layout.

A heater map has the shape of the grid; a cell holding ``0.0`` is not a heater
and any other value is the temperature forced onto that cell before each step.
A heater at exactly zero degrees therefore cannot be expressed.
"""
from typing import Optional

import numpy as np

from heat_simulation.config import MAX_TEMPERATURE, MIN_TEMPERATURE
from heat_simulation.errors import PreconditionError

# (x, y, temperature), applied in order after the hot rectangle
_POINT_HEATERS = (
    (100, 100, (MIN_TEMPERATURE + MAX_TEMPERATURE) / 2),
    (100, 700, MIN_TEMPERATURE),
    (300, 300, MIN_TEMPERATURE),
    (700, 200, MIN_TEMPERATURE),
)


class HeaterMap:
    def __init__(self, values: np.ndarray) -> None:
        if values.ndim != 2 or values.shape[0] != values.shape[1]:
            raise PreconditionError(f"heater map must be square, got shape {values.shape}")
        grid = np.array(values, dtype=np.float32, copy=True)
        grid.setflags(write=False)
        self._values = grid

    @classmethod
    def empty(cls, dim: int) -> "HeaterMap":
        return cls(np.zeros((dim, dim), dtype=np.float32))

    @classmethod
    def from_array(cls, values: np.ndarray) -> "HeaterMap":
        return cls(np.asarray(values))

    @property
    def dim(self) -> int:
        return self._values.shape[0]

    @property
    def values(self) -> np.ndarray:
        """Read-only ``(dim, dim)`` array indexed as ``[y, x]``."""
        return self._values

    def forced_indices(self) -> np.ndarray:
        """Linear (row-major) indices of every heater cell."""
        return np.flatnonzero(self._values.ravel())

    def temperature_at(self, x: int, y: int) -> Optional[float]:
        value = float(self._values[y, x])
        if value == 0.0:
            return None
        return value

    def __len__(self) -> int:
        return int(np.count_nonzero(self._values))


def build_heater_map(dim: int) -> HeaterMap:
    """
    Lay out the fixed heaters for a ``dim x dim`` grid.

    Rules apply in order, later ones overriding earlier ones:

    1. every cell starts as "not a heater";
    2. a hot rectangle, ``300 < x < 600`` and ``310 < y < 601``;
    3. four single cells, one at the mid temperature and three cold;
    4. a cold block, ``400 <= x < 500`` and ``800 <= y < 900``.

    Cells that fall outside a smaller grid are dropped.
    """
    temp = np.zeros((dim, dim), dtype=np.float32)
    temp[311:601, 301:600] = MAX_TEMPERATURE
    for x, y, value in _POINT_HEATERS:
        if x < dim and y < dim:
            temp[y, x] = value
    temp[800:900, 400:500] = MIN_TEMPERATURE
    return HeaterMap(temp)


def build_initial_field(heaters: HeaterMap) -> np.ndarray:
    """Starting temperatures: the heater layout plus a warm block in the lower-left corner."""
    field = np.array(heaters.values, dtype=np.float32, copy=True)
    field[800:, 0:200] = MAX_TEMPERATURE
    return field
