"""Tests for mateable.multiyear: per-year engine application."""

import numpy as np
import pytest

from mateable.compatibility import compatibility
from mateable.errors import DimensionError, UnknownMethodError
from mateable.multiyear import MultiYearResult, YearFailure, apply_multi_year
from mateable.proximity import proximity
from mateable.scene import DimensionColumns, MultiYearScene, build_scene
from mateable.simulate import simulate_multi_year_scene, simulate_scene
from mateable.synchrony import synchrony


def three_year_scene():
    return simulate_multi_year_scene(['Y1', 'Y2', 'Y3'], seed=7, size=12)


def space_only_scene(ids):
    records = [{'id': k, 'x': float(i), 'y': 0.0} for i, k in enumerate(ids)]
    return build_scene(records, DimensionColumns(x='x', y='y'))


class TestApplyMultiYear:
    def test_key_order_preserved(self):
        result = apply_multi_year(three_year_scene(), synchrony, method='kempenaers')
        assert list(result.keys()) == ['Y1', 'Y2', 'Y3']
        assert result.years == ('Y1', 'Y2', 'Y3')

    def test_non_chronological_labels_keep_insertion_order(self):
        mys = simulate_multi_year_scene([2021, 2019, 2020], seed=1, size=5)
        result = apply_multi_year(mys, proximity)
        assert list(result) == [2021, 2019, 2020]

    def test_matches_single_year_calls(self):
        mys = three_year_scene()
        result = apply_multi_year(mys, synchrony, method='simple2', average_type='median')
        for year, scene in mys.items():
            single = synchrony(scene, 'simple2', average_type='median')
            np.testing.assert_array_equal(result[year].values, single.values)
            assert result[year].population == single.population

    def test_population_per_year(self):
        result = apply_multi_year(three_year_scene(), compatibility, method='singleLocusSI')
        pops = result.population()
        assert list(pops) == ['Y1', 'Y2', 'Y3']
        assert all(0.0 <= v <= 1.0 for v in pops.values())

    def test_failure_tagged_with_year(self):
        mys = MultiYearScene([
            ('Y1', simulate_scene(size=6, seed=1)),
            ('Y2', space_only_scene(['a', 'b', 'c'])),
            ('Y3', simulate_scene(size=6, seed=3)),
        ])
        result = apply_multi_year(mys, synchrony, method='augspurger')
        assert list(result) == ['Y1', 'Y3']
        assert list(result.failures) == ['Y2']
        failure = result.failures['Y2']
        assert isinstance(failure, YearFailure)
        assert isinstance(failure.error, DimensionError)
        assert failure.error.year == 'Y2'
        assert not result.ok

    def test_raise_for_failures(self):
        mys = MultiYearScene([
            ('Y1', simulate_scene(size=6, seed=1)),
            ('Y2', space_only_scene(['a', 'b'])),
        ])
        result = apply_multi_year(mys, synchrony)
        with pytest.raises(DimensionError, match="Y2"):
            result.raise_for_failures()

    def test_raise_for_failures_noop_when_ok(self):
        result = apply_multi_year(three_year_scene(), proximity)
        assert result.ok
        result.raise_for_failures()

    def test_unknown_method_fails_every_year(self):
        result = apply_multi_year(three_year_scene(), synchrony, method='nope')
        assert len(result) == 0
        assert all(isinstance(f.error, UnknownMethodError)
                   for f in result.failures.values())


class TestCrossYearIds:
    def make(self):
        return MultiYearScene([
            (2019, space_only_scene(['a', 'b', 'c'])),
            (2020, space_only_scene(['b', 'c', 'd'])),
            (2021, space_only_scene(['c', 'b', 'e'])),
        ])

    def test_union_of_ids(self):
        result = apply_multi_year(self.make(), proximity)
        assert result.all_ids == ('a', 'b', 'c', 'd', 'e')

    def test_common_ids(self):
        result = apply_multi_year(self.make(), proximity)
        assert result.common_ids == ('b', 'c')

    def test_absent_individuals_simply_omitted(self):
        result = apply_multi_year(self.make(), proximity)
        assert result[2019].ids == ('a', 'b', 'c')
        assert 'a' not in result[2020].ids

    def test_sample_ids_consistent_and_ordered(self):
        result = apply_multi_year(self.make(), proximity)
        sample = result.sample_ids(3, seed=4)
        assert len(sample) == 3
        assert set(sample) <= set(result.all_ids)
        assert sample == [k for k in result.all_ids if k in sample]
        assert sample == result.sample_ids(3, seed=4)

    def test_sample_common_only(self):
        result = apply_multi_year(self.make(), proximity)
        assert sorted(result.sample_ids(10, seed=1, common_only=True)) == ['b', 'c']

    def test_sampled_ids_subset_across_disjoint_years(self):
        mys = MultiYearScene([
            ('Y1', space_only_scene('abc')),
            ('Y2', space_only_scene('def')),
        ])
        result = apply_multi_year(mys, proximity)
        with pytest.warns(UserWarning, match="dropped"):
            sub = mys.subset(result.sample_ids(3, seed=0))
        for year, scene in sub.items():
            assert len(scene) >= 2
            assert set(scene.ids) <= set(mys[year].ids)

    def test_empty_result(self):
        result = MultiYearResult(years=())
        assert result.common_ids == ()
        assert result.sample_ids(2) == []
