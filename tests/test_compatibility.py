"""Tests for mateable.compatibility: dioecy and single-locus SI."""

import numpy as np
import pytest

from mateable.compatibility import compatibility
from mateable.errors import DimensionError, UnknownMethodError
from mateable.scene import DimensionColumns, build_scene
from mateable.simulate import simulate_scene
from mateable.types import CompatibilityMethod, Dimension


SI_COLUMNS = DimensionColumns(s1='s1', s2='s2')
SEX_COLUMNS = DimensionColumns(sex='sex')


def si_scene():
    records = [
        {'id': 'a', 's1': 1, 's2': 2},
        {'id': 'b', 's1': 3, 's2': 4},
        {'id': 'c', 's1': 2, 's2': 5},
        {'id': 'd', 's1': 6, 's2': 6},
    ]
    return build_scene(records, SI_COLUMNS)


def sex_scene():
    records = [{'id': i, 'sex': s} for i, s in enumerate([1, 2, 2, 1, 2])]
    return build_scene(records, SEX_COLUMNS)


class TestDioecious:
    def test_opposite_sexes_compatible(self):
        r = compatibility(sex_scene(), 'dioecious')
        assert r.pairwise[0, 1] is True
        assert r.pairwise[1, 2] is False
        assert r.pairwise[0, 3] is False

    def test_diagonal_always_false(self):
        r = compatibility(sex_scene(), 'dioecious')
        assert not np.diag(r.pairwise.values).any()
        assert r.pairwise.values.dtype == bool

    def test_individual_proportions(self):
        r = compatibility(sex_scene(), 'dioecious')
        # Females (1) see 3 males of 4 others; males see 2 females of 4
        np.testing.assert_allclose(r.values, [0.75, 0.5, 0.5, 0.75, 0.5])
        assert r.population == pytest.approx(0.6)

    def test_symmetric(self):
        r = compatibility(simulate_scene(size=30, sex_coded=True, seed=41), 'dioecious')
        assert r.pairwise.is_symmetric()


class TestSingleLocusSI:
    def test_shared_allele_blocks(self):
        r = compatibility(si_scene(), 'singleLocusSI')
        assert r.pairwise['a', 'c'] is False     # share allele 2
        assert r.pairwise['a', 'b'] is True
        assert r.pairwise['c', 'd'] is True

    def test_never_self_compatible(self):
        r = compatibility(si_scene(), CompatibilityMethod.SINGLE_LOCUS_SI)
        assert not np.diag(r.pairwise.values).any()

    def test_compatible_iff_disjoint(self):
        scene = simulate_scene(size=40, allele_pool_size=6, seed=42)
        r = compatibility(scene, 'singleLocusSI')
        for i in range(scene.n):
            for j in range(scene.n):
                if i == j:
                    continue
                disjoint = not (set(scene.alleles[i]) & set(scene.alleles[j]))
                assert r.pairwise.values[i, j] == disjoint

    def test_individual_values(self):
        r = compatibility(si_scene(), 'singleLocusSI')
        np.testing.assert_allclose(r.values, [2 / 3, 1.0, 2 / 3, 1.0])
        assert r.dimension is Dimension.COMPAT

    def test_string_allele_labels(self):
        records = [
            {'id': 1, 's1': 'S1', 's2': 'S2'},
            {'id': 2, 's1': 'S2', 's2': 'S9'},
            {'id': 3, 's1': 'S3', 's2': 'S4'},
        ]
        r = compatibility(build_scene(records, SI_COLUMNS), 'singleLocusSI')
        assert r.pairwise[1, 2] is False
        assert r.pairwise[1, 3] is True

    def test_values_bounded(self):
        r = compatibility(simulate_scene(size=30, seed=43), 'singleLocusSI')
        assert np.all((r.values >= 0) & (r.values <= 1))


class TestErrors:
    def test_scene_without_compat_column(self):
        records = [{'id': 1, 'x': 0, 'y': 0}, {'id': 2, 'x': 1, 'y': 0}]
        scene = build_scene(records, DimensionColumns(x='x', y='y'))
        with pytest.raises(DimensionError):
            compatibility(scene, 'singleLocusSI')

    def test_model_mismatch_sex_scene(self):
        with pytest.raises(DimensionError, match="singleLocusSI"):
            compatibility(sex_scene(), 'singleLocusSI')

    def test_model_mismatch_si_scene(self):
        with pytest.raises(DimensionError, match="sexBased"):
            compatibility(si_scene(), 'dioecious')

    def test_unknown_model(self):
        with pytest.raises(UnknownMethodError):
            compatibility(si_scene(), 'gametophyticSI')
