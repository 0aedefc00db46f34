import enum
import logging

from numba import cuda

from heat_simulation.buffers import CachedReadView, GridBuffer
from heat_simulation.config import EdgeRule, SimulationConfig
from heat_simulation.errors import PreconditionError
from heat_simulation.kernels import blend_kernel, copy_heaters_kernel

logger = logging.getLogger(__name__)


class BufferRole(enum.Enum):
    A_IS_INPUT = "a_is_input"
    B_IS_INPUT = "b_is_input"

    def flipped(self) -> "BufferRole":
        if self is BufferRole.A_IS_INPUT:
            return BufferRole.B_IS_INPUT
        return BufferRole.A_IS_INPUT


class HeaterApplicator:
    """Stamps every nonzero heater value into the target buffer."""

    def __init__(self, config: SimulationConfig) -> None:
        self.config = config

    def apply(self, heaters: CachedReadView, target: GridBuffer) -> None:
        if target.size != heaters.size:
            raise PreconditionError(
                f"heater view covers {heaters.size} cells, target '{target.name}' has {target.size}"
            )
        copy_heaters_kernel[self.config.blocks_per_grid, self.config.threads_per_block](
            heaters.fetch(), target.device, self.config.dim
        )


class StencilUpdater:
    """Explicit 5-point diffusion step from the input view into another buffer."""

    def __init__(self, config: SimulationConfig) -> None:
        self.config = config

    def update(self, source: CachedReadView, output: GridBuffer) -> None:
        if source.buffer is output:
            raise PreconditionError(f"stencil cannot write into '{output.name}' while reading it")
        if output.size != source.size:
            raise PreconditionError(
                f"input view covers {source.size} cells, output '{output.name}' has {output.size}"
            )
        reflect_rows = self.config.edge_rule is EdgeRule.REFLECT_ROWS
        blend_kernel[self.config.blocks_per_grid, self.config.threads_per_block](
            source.fetch(), output.device, self.config.dim, self.config.speed, reflect_rows
        )


class DoubleBufferScheduler:
    """
    Ping-pongs two grid buffers through heater and stencil passes.

    ``role`` is the state between frames. ``sub_step`` takes the role by value
    and returns the next one, so a frame is a fold over the sub-steps.
    """

    def __init__(
        self,
        config: SimulationConfig,
        grid_a: GridBuffer,
        grid_b: GridBuffer,
        heater_buffer: GridBuffer,
        role: BufferRole = BufferRole.A_IS_INPUT,
    ) -> None:
        self.config = config
        self.grid_a = grid_a
        self.grid_b = grid_b
        self.heater_buffer = heater_buffer
        self.role = role

        self.heater_view = CachedReadView("heaters", config.cells)
        self.input_view = CachedReadView("input", config.cells)
        self.heater_view.bind(heater_buffer)

        self.heater_applicator = HeaterApplicator(config)
        self.stencil_updater = StencilUpdater(config)

    def buffers_for(self, role: BufferRole) -> tuple[GridBuffer, GridBuffer]:
        """(input, output) pair for ``role``."""
        if role is BufferRole.A_IS_INPUT:
            return self.grid_a, self.grid_b
        return self.grid_b, self.grid_a

    @property
    def current_input(self) -> GridBuffer:
        return self.buffers_for(self.role)[0]

    @property
    def current_output(self) -> GridBuffer:
        return self.buffers_for(self.role)[1]

    def sub_step(self, role: BufferRole) -> BufferRole:
        source, target = self.buffers_for(role)

        self.heater_view.ensure_bound(self.heater_buffer)
        self.input_view.ensure_bound(source)
        generation = self.input_view.generation
        self.heater_applicator.apply(self.heater_view, source)

        # The stencil must read the binding the heater pass stamped
        self.input_view.expect(generation)
        self.stencil_updater.update(self.input_view, target)
        return role.flipped()

    def run_frame(self, steps: int | None = None) -> BufferRole:
        if steps is None:
            steps = self.config.steps_per_frame
        if steps < 0:
            raise PreconditionError(f"steps must be >= 0, got {steps}")

        role = self.role
        for _ in range(steps):
            # Launches share the default stream, so each sub-step finishes before the next reads
            role = self.sub_step(role)
        cuda.synchronize()

        self.role = role
        logger.debug("frame done after %d sub-steps, input is now '%s'", steps, self.current_input.name)
        return role

    def release_views(self) -> None:
        self.heater_view.unbind()
        self.input_view.unbind()
