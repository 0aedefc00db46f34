import numpy as np
import pytest

from heat_simulation.buffers import CachedReadView, GridBuffer
from heat_simulation.config import MAX_TEMPERATURE, EdgeRule, SimulationConfig
from heat_simulation.errors import PreconditionError
from heat_simulation.scheduler import HeaterApplicator, StencilUpdater


def _step(config, make_grid, values):
    source = make_grid("A", values)
    target = make_grid("B", np.zeros_like(values))
    view = CachedReadView("input", config.cells)
    view.bind(source)
    StencilUpdater(config).update(view, target)
    return source, target


def test_corner_example(small_config, make_grid):
    values = np.zeros((4, 4), dtype=np.float32)
    values[0, 0] = 1.0
    _, target = _step(small_config, make_grid, values)
    result = target.download()
    # left and upper collapse to the cell itself: 1 + 0.2 * (1 + 0 + 1 + 0 - 4)
    assert result[0, 0] == pytest.approx(0.6)
    assert result[0, 1] == pytest.approx(0.2)
    assert result[1, 0] == pytest.approx(0.2)
    assert result[1, 1] == 0.0


def test_uniform_field_is_fixed_point(small_config, make_grid):
    values = np.full((4, 4), 0.3, dtype=np.float32)
    _, target = _step(small_config, make_grid, values)
    np.testing.assert_allclose(target.download(), values, rtol=1e-6)


def test_input_is_not_mutated(small_config, make_grid):
    values = np.random.default_rng(0).random((4, 4)).astype(np.float32)
    source, _ = _step(small_config, make_grid, values)
    np.testing.assert_array_equal(source.download(), values)


def test_interior_heat_is_conserved(make_grid):
    config = SimulationConfig(dim=8, tile=8)
    values = np.zeros((8, 8), dtype=np.float32)
    values[2:6, 2:6] = np.random.default_rng(1).random((4, 4))
    _, target = _step(config, make_grid, values)
    assert target.download().sum() == pytest.approx(values.sum(), rel=1e-5)


def test_clamped_edges_conserve_whole_grid(make_grid):
    config = SimulationConfig(dim=8, tile=8)
    values = np.random.default_rng(2).random((8, 8)).astype(np.float32)
    _, target = _step(config, make_grid, values)
    assert target.download().sum() == pytest.approx(values.sum(), rel=1e-5)


def test_reflected_rows_read_the_next_row(make_grid):
    config = SimulationConfig(dim=4, tile=4, edge_rule=EdgeRule.REFLECT_ROWS)
    values = np.zeros((4, 4), dtype=np.float32)
    values[0, 0] = 1.0
    _, target = _step(config, make_grid, values)
    # upper becomes the cell below: 1 + 0.2 * (1 + 0 + 0 + 0 - 4)
    assert target.download()[0, 0] == pytest.approx(0.4)


def test_reflected_rows_read_the_previous_row_at_the_bottom(make_grid):
    config = SimulationConfig(dim=4, tile=4, edge_rule=EdgeRule.REFLECT_ROWS)
    values = np.zeros((4, 4), dtype=np.float32)
    values[3, 0] = 1.0
    _, target = _step(config, make_grid, values)
    # lower becomes the cell above: 1 + 0.2 * (1 + 0 + 0 + 0 - 4)
    assert target.download()[3, 0] == pytest.approx(0.4)


def test_clamped_bottom_row_reads_itself(small_config, make_grid):
    values = np.zeros((4, 4), dtype=np.float32)
    values[3, 0] = 1.0
    _, target = _step(small_config, make_grid, values)
    assert target.download()[3, 0] == pytest.approx(0.6)


def test_partial_tiles(make_grid):
    config = SimulationConfig(dim=6, tile=4)
    values = np.full((6, 6), 0.25, dtype=np.float32)
    _, target = _step(config, make_grid, values)
    np.testing.assert_allclose(target.download(), values, rtol=1e-6)


def test_writing_into_source_is_rejected(small_config, make_grid):
    source = make_grid("A", np.zeros((4, 4)))
    view = CachedReadView("input", small_config.cells)
    view.bind(source)
    with pytest.raises(PreconditionError):
        StencilUpdater(small_config).update(view, source)


def test_output_size_mismatch(small_config, make_grid):
    view = CachedReadView("input", small_config.cells)
    view.bind(make_grid("A", np.zeros((4, 4))))
    with pytest.raises(PreconditionError):
        StencilUpdater(small_config).update(view, make_grid("B", np.zeros((8, 8))))


def _heater_view(config, make_grid, heater_values):
    view = CachedReadView("heaters", config.cells)
    view.bind(make_grid("heaters", heater_values))
    return view


def test_heaters_overwrite_only_forced_cells(small_config, make_grid):
    heater_values = np.zeros((4, 4), dtype=np.float32)
    heater_values[1, 2] = MAX_TEMPERATURE
    heater_values[3, 0] = 0.25
    target = make_grid("A", np.full((4, 4), 0.5))

    HeaterApplicator(small_config).apply(_heater_view(small_config, make_grid, heater_values), target)

    expected = np.full((4, 4), 0.5, dtype=np.float32)
    expected[1, 2] = MAX_TEMPERATURE
    expected[3, 0] = 0.25
    np.testing.assert_array_equal(target.download(), expected)


def test_heaters_are_idempotent(small_config, make_grid):
    rng = np.random.default_rng(3)
    heater_values = np.where(rng.random((4, 4)) > 0.5, rng.random((4, 4)), 0.0).astype(np.float32)
    view = _heater_view(small_config, make_grid, heater_values)
    applicator = HeaterApplicator(small_config)

    once = make_grid("A", rng.random((4, 4)))
    applicator.apply(view, once)
    after_once = once.download()
    applicator.apply(view, once)
    np.testing.assert_array_equal(once.download(), after_once)


def test_heater_size_mismatch(small_config, make_grid):
    view = _heater_view(small_config, make_grid, np.zeros((4, 4)))
    with pytest.raises(PreconditionError):
        HeaterApplicator(small_config).apply(view, make_grid("A", np.zeros((8, 8))))
