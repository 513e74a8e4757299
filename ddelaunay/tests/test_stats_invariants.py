import logging

import numpy as np
import pytest

from ddelaunay import (
    DegenerateConfiguration, DimensionMismatch, DuplicatePoint, Triangulation, TriangulationConfig,
    UnknownVertex,
    configure_logging, format_stats_table, get_logger,
)
from ddelaunay.core.constants import EPS_INSPHERE, EPS_ORIENT, WALK_BUDGET_MIN
from ddelaunay.core.stats import OpStats


def make_tri():
    rng = np.random.default_rng(2)
    return Triangulation(2, rng.random((30, 2)))


def assert_invariants(tri):
    summary = tri.stats_summary()
    for op, stats in summary.items():
        attempts = stats['attempts']
        assert attempts == stats['success'] + stats['fail'], f"{op}: attempts != success + fail"
        if stats['success']:
            t_min, t_max, t_tot = stats['time_min'], stats['time_max'], stats['time_total']
            assert 0 <= t_min <= t_max <= t_tot + 1e-12, f"{op}: timing out of order"


def test_stats_invariants_basic_operations():
    tri = make_tri()
    with pytest.raises(DuplicatePoint):
        tri.insert(tri.vertex(3).coords)
    with pytest.raises(UnknownVertex):
        tri.remove(1000)
    tri.remove(4)
    tri.locate((0.5, 0.5))
    assert_invariants(tri)
    summary = tri.stats_summary()
    assert summary['insert']['attempts'] == 31
    assert summary['insert']['duplicate_rejects'] == 1
    assert summary['remove']['success'] == 1
    assert summary['insert']['cells_created'] > 0
    assert summary['locate']['walk_steps'] >= summary['locate']['attempts']


@pytest.mark.parametrize('bad', [(float('nan'), 0.5), (float('inf'), 0.0), (0.1, -float('inf'))])
def test_non_finite_point_counts_as_failed_insert(bad):
    tri = make_tri()
    before = tri.snapshot()
    with pytest.raises(ValueError):
        tri.insert(bad)
    assert tri.snapshot() == before
    assert_invariants(tri)
    summary = tri.stats_summary()['insert']
    assert summary['attempts'] == 31
    assert summary['fail'] == 1


def test_every_rejected_insert_is_counted():
    tri = make_tri()
    with pytest.raises(DimensionMismatch):
        tri.insert((0.1, 0.2, 0.3))
    with pytest.raises(ValueError):
        tri.insert([[0.1, 0.2], [0.3]])
    with pytest.raises(DuplicatePoint):
        tri.insert(tri.vertex(0).coords)
    assert_invariants(tri)
    assert tri.stats_summary()['insert']['fail'] == 3


def test_reset_stats_zeroes_counters():
    tri = make_tri()
    assert tri.stats_summary()['insert']['attempts'] > 0
    tri.reset_stats()
    for op, stats in tri.stats_summary().items():
        assert stats['attempts'] == 0
        assert stats['time_total'] == 0.0
        assert stats['time_min'] == 0.0


def test_opstats_to_dict_derived_fields():
    s = OpStats(attempts=4, success=3, fail=1, cells_removed=6)
    s.record_time(0.002)
    s.record_time(0.001)
    d = s.to_dict()
    assert d['success_rate'] == pytest.approx(0.75)
    assert d['avg_cavity'] == pytest.approx(2.0)
    assert d['time_min'] == pytest.approx(0.001)
    assert d['time_max'] == pytest.approx(0.002)
    assert d['time_avg'] == pytest.approx(0.003 / 4)


def test_format_stats_table():
    assert format_stats_table({}) == "<no stats>"
    table = format_stats_table(make_tri().stats_summary())
    lines = table.splitlines()
    assert lines[0].split()[0] == 'op'
    assert {line.split()[0] for line in lines[2:]} == {'insert', 'locate', 'remove'}


def test_config_defaults_and_walk_limit():
    cfg = TriangulationConfig()
    assert cfg.orientation_eps == EPS_ORIENT
    assert cfg.insphere_eps == EPS_INSPHERE
    assert cfg.walk_limit(0) == WALK_BUDGET_MIN
    assert cfg.walk_limit(10_000) > WALK_BUDGET_MIN
    fixed = cfg.copy(walk_budget=5)
    assert fixed.walk_limit(10_000) == 5
    assert cfg.walk_budget is None


def test_walk_seed_makes_runs_reproducible():
    rng = np.random.default_rng(6)
    pts = rng.random((40, 3))
    a = Triangulation(3, pts, config=TriangulationConfig(walk_seed=1))
    b = Triangulation(3, pts, config=TriangulationConfig(walk_seed=1))
    assert a.snapshot() == b.snapshot()
    assert a.stats['locate'].walk_steps == b.stats['locate'].walk_steps


def test_get_logger_hierarchy():
    log = get_logger('ddelaunay.tests.sample')
    assert log.name == 'ddelaunay.tests.sample'
    assert log.level == logging.NOTSET
    root = logging.getLogger('ddelaunay')
    assert root.propagate is False
    assert any(not isinstance(h, logging.NullHandler) for h in root.handlers)
    assert get_logger('ddelaunay.tests.sample', level='DEBUG').level == logging.DEBUG


def test_configure_logging_sets_package_level():
    root = logging.getLogger('ddelaunay')
    old = root.level
    try:
        configure_logging('WARNING')
        assert root.level == logging.WARNING
        configure_logging(logging.DEBUG)
        assert root.level == logging.DEBUG
        configure_logging('not-a-level')
        assert root.level == logging.INFO
    finally:
        root.setLevel(old)


def test_degenerate_rejection_is_logged(caplog):
    tri = Triangulation(2, [(0, 0), (1, 1)])
    root = logging.getLogger('ddelaunay')
    root.addHandler(caplog.handler)
    try:
        with caplog.at_level(logging.WARNING, logger='ddelaunay'):
            with pytest.raises(DegenerateConfiguration):
                tri.insert((2, 2))
    finally:
        root.removeHandler(caplog.handler)
    assert any('rejected point' in r.getMessage() for r in caplog.records)
