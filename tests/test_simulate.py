"""Tests for mateable.simulate: synthetic scenes."""

import numpy as np
import pytest

from mateable.errors import InvalidParameterError
from mateable.simulate import (
    simulate_from_summary,
    simulate_multi_year_scene,
    simulate_scene,
)
from mateable.summary import summarize_scene
from mateable.types import CompatModel


class TestSimulateScene:
    def test_all_dimensions_active(self):
        scene = simulate_scene(size=10, seed=1)
        assert scene.has_space and scene.has_time and scene.has_compat
        assert scene.ids == tuple(range(1, 11))

    def test_positions_within_ranges(self):
        scene = simulate_scene(size=200, x_range=(10, 20), y_range=(-5, 5), seed=2)
        assert scene.positions[:, 0].min() >= 10
        assert scene.positions[:, 0].max() <= 20
        assert scene.positions[:, 1].min() >= -5
        assert scene.positions[:, 1].max() <= 5

    def test_windows_are_integer_and_ordered(self):
        scene = simulate_scene(size=100, mean_sd=50, sd_sd=10, mean_dur=5, sd_dur=2, seed=3)
        assert scene.start.dtype == np.int64
        assert np.all(scene.end >= scene.start)

    def test_zero_spread_is_exact(self):
        scene = simulate_scene(size=5, mean_sd=100, sd_sd=0, mean_dur=7, sd_dur=0, seed=4)
        np.testing.assert_array_equal(scene.start, 100)
        np.testing.assert_array_equal(scene.end, 107)

    def test_negative_durations_clamped(self):
        with pytest.warns(UserWarning, match="negative"):
            scene = simulate_scene(size=50, mean_dur=-10, sd_dur=1, seed=5)
        np.testing.assert_array_equal(scene.end, scene.start)

    def test_alleles_from_pool(self):
        scene = simulate_scene(size=100, allele_pool_size=4, seed=6)
        assert scene.compat_model is CompatModel.SINGLE_LOCUS_SI
        labels = set(scene.alleles.ravel())
        assert labels <= {1, 2, 3, 4}

    def test_sex_coded(self):
        scene = simulate_scene(size=100, sex_coded=True, seed=7)
        assert scene.compat_model is CompatModel.SEX_BASED
        assert set(scene.sex.tolist()) == {1, 2}
        assert scene.alleles is None

    def test_seed_reproducible(self):
        s1 = simulate_scene(size=20, seed=99)
        s2 = simulate_scene(size=20, seed=99)
        np.testing.assert_array_equal(s1.positions, s2.positions)
        np.testing.assert_array_equal(s1.start, s2.start)
        np.testing.assert_array_equal(s1.alleles, s2.alleles)

    def test_different_seeds_differ(self):
        s1 = simulate_scene(size=20, seed=1)
        s2 = simulate_scene(size=20, seed=2)
        assert not np.array_equal(s1.positions, s2.positions)

    def test_minimum_size(self):
        assert simulate_scene(size=2, seed=0).n == 2


class TestInvalidParameters:
    def test_size_one(self):
        with pytest.raises(InvalidParameterError, match="size"):
            simulate_scene(size=1)

    def test_non_integer_size(self):
        with pytest.raises(InvalidParameterError):
            simulate_scene(size=2.5)

    def test_negative_start_sd(self):
        with pytest.raises(InvalidParameterError, match="start day"):
            simulate_scene(sd_sd=-1)

    def test_negative_duration_sd(self):
        with pytest.raises(InvalidParameterError, match="duration"):
            simulate_scene(sd_dur=-0.5)

    def test_inverted_x_range(self):
        with pytest.raises(InvalidParameterError, match="x_range"):
            simulate_scene(x_range=(10, 0))

    def test_inverted_y_range(self):
        with pytest.raises(InvalidParameterError, match="y_range"):
            simulate_scene(y_range=(5, -5))

    def test_empty_allele_pool(self):
        with pytest.raises(InvalidParameterError, match="allele_pool_size"):
            simulate_scene(allele_pool_size=0)

    def test_non_numeric_mean(self):
        with pytest.raises(InvalidParameterError, match="start day"):
            simulate_scene(mean_sd='july')

    def test_non_numeric_sd(self):
        with pytest.raises(InvalidParameterError, match="duration"):
            simulate_scene(sd_dur=None)

    def test_negative_seed(self):
        with pytest.raises(InvalidParameterError, match="seed"):
            simulate_scene(seed=-1)

    def test_negative_multi_year_seed(self):
        with pytest.raises(InvalidParameterError, match="seed"):
            simulate_multi_year_scene([2001, 2002], seed=-3)


class TestSimulateFromSummary:
    def test_round_trip_matches_extent_and_size(self):
        real = simulate_scene(size=60, mean_sd=150, sd_sd=5, mean_dur=12, sd_dur=2,
                              x_range=(0, 50), y_range=(0, 20), seed=10)
        summary = summarize_scene(real)
        null = simulate_from_summary(summary, seed=11)
        assert null.n == real.n
        assert null.positions[:, 0].min() >= summary.x_min
        assert null.positions[:, 0].max() <= summary.x_max
        assert abs(null.start.mean() - summary.mean_start) < 5

    def test_size_override(self):
        summary = summarize_scene(simulate_scene(size=30, seed=12))
        assert simulate_from_summary(summary, size=8, seed=13).n == 8


class TestSimulateMultiYear:
    def test_year_order_and_independence(self):
        mys = simulate_multi_year_scene([2018, 2019, 2020], seed=1, size=10)
        assert mys.years == (2018, 2019, 2020)
        assert not np.array_equal(mys[2018].positions, mys[2019].positions)

    def test_reproducible_per_year(self):
        a = simulate_multi_year_scene([1, 2], seed=5, size=10)
        b = simulate_multi_year_scene([1, 2, 3], seed=5, size=10)
        np.testing.assert_array_equal(a[2].start, b[2].start)

    def test_duplicate_years(self):
        with pytest.raises(InvalidParameterError):
            simulate_multi_year_scene([1, 1], seed=0)
