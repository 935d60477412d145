"""Tests for the force-directed relaxation passes."""

from __future__ import annotations

import numpy as np
import pytest

from debundle.bundling.compatibility import compute_compatibility
from debundle.bundling.config import BundleConfig
from debundle.bundling.relaxation import relax
from debundle.bundling.subdivision import build_divided_edges, join_halves
from debundle.errors import BundlingCancelled


def _relax(sources, targets, config=None, weights=None, **kwargs):
    sources = np.asarray(sources, dtype=float)
    targets = np.asarray(targets, dtype=float)
    config = config or BundleConfig()
    if weights is None:
        weights = np.ones(len(sources))
    halves = build_divided_edges(sources, targets, config.initial_subdivisions)
    table = compute_compatibility(sources, targets, config.compatibility_threshold)
    mean_length = float(np.mean(np.linalg.norm(targets - sources, axis=1)))
    result = relax(
        halves,
        sources,
        targets,
        np.asarray(weights, dtype=float),
        table,
        config,
        mean_length,
        **kwargs,
    )
    return result, join_halves(result.halves)


def _midpoints(lines):
    return lines[:, lines.shape[1] // 2]


def test_parallel_edges_pull_together():
    result, lines = _relax([[0, 0], [0, 10]], [[100, 0], [100, 10]])
    gap = np.linalg.norm(_midpoints(lines)[0] - _midpoints(lines)[1])
    assert gap < 2.5
    assert result.neighbors[0].tolist() == [1]


def test_opposite_edges_settle_in_separate_lanes():
    config = BundleConfig()
    _, lines = _relax([[0, 0], [100, 10]], [[100, 0], [0, 10]], config)
    mid_a, mid_b = _midpoints(lines)
    # Lanes are lane_width * mean_length = 2.5 apart, each on its right side
    assert 1.0 < mid_b[1] - mid_a[1] < 6.0
    assert mid_a[1] > 0.0
    assert mid_b[1] < 10.0


def test_incompatible_edges_do_not_move():
    config = BundleConfig(compatibility_threshold=1.0)
    result, lines = _relax([[0, 0], [0, 10]], [[100, 0], [100, 10]], config)
    assert all(len(n) == 0 for n in result.neighbors)
    np.testing.assert_allclose(lines[:, :, 1], [[0.0] * 35, [10.0] * 35], atol=1e-9)


def test_final_resolution_follows_schedule():
    config = BundleConfig(passes=3, initial_subdivisions=2)
    result, lines = _relax([[0, 0], [0, 10]], [[100, 0], [100, 10]], config)
    assert result.halves.shape == (2, 2, 10, 2)
    assert lines.shape == (2, 19, 2)
    assert [s.subdivisions for s in result.schedule] == [2, 4, 8]


def test_anchors_fixed_and_halves_joined():
    result, lines = _relax([[0, 0], [0, 10]], [[100, 0], [100, 10]])
    assert lines[0, 0].tolist() == [0.0, 0.0]
    assert lines[1, -1].tolist() == [100.0, 10.0]
    assert np.array_equal(result.halves[:, 0, -1], result.halves[:, 1, -1])


def test_displacement_bounded_by_steps():
    config = BundleConfig(passes=2, iterations=5, iteration_decay=1.0)
    _, lines = _relax([[0, 0], [0, 30]], [[100, 0], [100, 30]], config)
    mean_length = 100.0
    bound = sum(s.step * s.iterations for s in config.schedule(mean_length))
    lateral = np.abs(lines[0, :, 1])
    assert lateral.max() > 0.0
    assert lateral.max() <= bound + 1e-9


def test_zero_weight_neighbour_exerts_no_pull():
    _, lines = _relax(
        [[0, 0], [0, 10]], [[100, 0], [100, 10]], weights=[1.0, 0.0]
    )
    # Edge 1 still pulls toward edge 0; edge 0 feels nothing but spring
    np.testing.assert_allclose(lines[0, :, 1], 0.0, atol=1e-9)
    assert _midpoints(lines)[1][1] < 10.0


def test_update_is_independent_of_edge_order():
    sources = np.array([[0, 0], [0, 6], [100, 12], [5, -8]], dtype=float)
    targets = np.array([[100, 0], [100, 4], [0, 14], [95, -5]], dtype=float)
    config = BundleConfig(passes=3)
    _, lines = _relax(sources, targets, config)

    perm = np.array([2, 0, 3, 1])
    _, permuted = _relax(sources[perm], targets[perm], config)
    np.testing.assert_allclose(permuted, lines[perm], atol=1e-8)


def test_max_neighbors_caps_to_nearest():
    sources = [[0, 0], [0, 2], [0, 40]]
    targets = [[100, 0], [100, 2], [100, 40]]
    config = BundleConfig(passes=1, max_neighbors=1, compatibility_threshold=0.0)
    result, _ = _relax(sources, targets, config)
    assert result.neighbors[0].tolist() == [1]
    assert result.neighbors[2].tolist() == [1]


def test_progress_reports_every_edge_every_iteration():
    calls = []
    config = BundleConfig(passes=2, iterations=3, iteration_decay=1.0)
    _relax(
        [[0, 0], [0, 10], [0, 20]],
        [[100, 0], [100, 10], [100, 20]],
        config,
        progress=lambda phase, done, total: calls.append((phase, done, total)),
    )
    assert len(calls) == 2 * 3 * 3
    assert calls[0] == ("pass 1 of 2", 1, 9)
    assert calls[8] == ("pass 1 of 2", 9, 9)
    assert calls[-1] == ("pass 2 of 2", 9, 9)


def test_progress_does_not_change_results():
    sources, targets = [[0, 0], [0, 10]], [[100, 0], [100, 10]]
    _, quiet = _relax(sources, targets)
    _, observed = _relax(sources, targets, progress=lambda *args: None)
    assert np.array_equal(quiet, observed)


def test_cancellation_between_passes():
    checks = []

    def should_cancel():
        checks.append(True)
        return len(checks) > 1

    with pytest.raises(BundlingCancelled) as exc_info:
        _relax(
            [[0, 0], [0, 10]],
            [[100, 0], [100, 10]],
            should_cancel=should_cancel,
        )
    assert exc_info.value.completed_passes == 1
    assert exc_info.value.total_passes == 5


def test_input_halves_not_modified():
    sources = np.array([[0.0, 0.0], [0.0, 10.0]])
    targets = np.array([[100.0, 0.0], [100.0, 10.0]])
    config = BundleConfig(passes=1)
    halves = build_divided_edges(sources, targets, 1)
    before = halves.copy()
    table = compute_compatibility(sources, targets, config.compatibility_threshold)
    relax(halves, sources, targets, np.ones(2), table, config, 100.0)
    assert np.array_equal(halves, before)
