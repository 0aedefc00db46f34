"""Exceptions raised by the heat simulation core."""


class HeatSimulationError(Exception):
    """Base class for every error surfaced by this package."""


class ConfigError(HeatSimulationError, ValueError):
    """Invalid simulation configuration."""


class ResourceAcquisitionError(HeatSimulationError):
    """A device, buffer or upload could not be obtained. Not retried."""


class PreconditionError(HeatSimulationError):
    """A caller broke a contract: bad index, mismatched sizes, unbound view."""
