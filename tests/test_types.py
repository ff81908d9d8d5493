"""Tests for mateable.types and mateable.errors: enums, flags, results."""

import numpy as np
import pandas as pd
import pytest

from mateable.errors import (
    DimensionError,
    InvalidParameterError,
    MateableError,
    UnknownMethodError,
    ValidationError,
)
from mateable.types import (
    AverageType,
    CompatModel,
    CompatibilityMethod,
    Dimension,
    Dimensions,
    PotentialMatrix,
    PotentialResult,
    ProximityMethod,
    SynchronyMethod,
)
from mateable.utils import aggregate, parse_method, row_means


# ── Enum tests ────────────────────────────────────────────────────────

class TestEnums:
    def test_synchrony_methods(self):
        assert {m.value for m in SynchronyMethod} == {
            'augspurger', 'kempenaers', 'overlap', 'sync_prop', 'sync_nn',
            'simple1', 'simple2', 'simple3',
        }

    def test_string_compatible(self):
        assert SynchronyMethod('kempenaers') is SynchronyMethod.KEMPENAERS
        assert ProximityMethod.MAX_PROP_SQRD == 'maxPropSqrd'

    def test_compat_models(self):
        assert CompatModel('sexBased') is CompatModel.SEX_BASED
        assert CompatibilityMethod('singleLocusSI') is CompatibilityMethod.SINGLE_LOCUS_SI


class TestParseMethod:
    def test_known(self):
        assert parse_method(AverageType, 'median') is AverageType.MEDIAN

    def test_member_passthrough(self):
        assert parse_method(SynchronyMethod, SynchronyMethod.SIMPLE1) is SynchronyMethod.SIMPLE1

    def test_unknown_lists_choices(self):
        with pytest.raises(UnknownMethodError, match="simple1"):
            parse_method(SynchronyMethod, 'simple4')


# ── Errors ────────────────────────────────────────────────────────────

class TestErrors:
    @pytest.mark.parametrize('cls', [
        ValidationError, DimensionError, UnknownMethodError, InvalidParameterError,
    ])
    def test_hierarchy(self, cls):
        assert issubclass(cls, MateableError)
        assert issubclass(cls, ValueError)

    def test_year_in_message(self):
        err = DimensionError("no time", year=2020)
        assert str(err) == "[year 2020] no time"

    def test_no_year(self):
        assert str(ValidationError("bad")) == "bad"


# ── Dimensions ────────────────────────────────────────────────────────

class TestDimensions:
    def test_active_order(self):
        dims = Dimensions(has_space=True, has_compat=True)
        assert dims.active == (Dimension.SPACE, Dimension.COMPAT)

    def test_has_by_name(self):
        assert Dimensions(has_time=True).has('time')
        assert not Dimensions(has_time=True).has(Dimension.SPACE)


# ── Aggregation helpers ───────────────────────────────────────────────

class TestAggregation:
    def test_mean_and_median(self):
        assert aggregate(np.array([0.0, 0.1, 1.0]), 'mean') == pytest.approx(1.1 / 3)
        assert aggregate(np.array([0.0, 0.1, 1.0]), 'median') == pytest.approx(0.1)

    def test_row_means_without_diagonal(self):
        m = np.array([[9.0, 1.0, 3.0], [1.0, 9.0, 0.0], [3.0, 0.0, 9.0]])
        np.testing.assert_allclose(row_means(m, include_diagonal=False), [2.0, 0.5, 1.5])

    def test_row_means_with_diagonal(self):
        m = np.ones((3, 3))
        np.testing.assert_allclose(row_means(m, include_diagonal=True), 1.0)


# ── Result objects ────────────────────────────────────────────────────

class TestPotentialMatrix:
    def test_lookup_and_frame(self):
        m = PotentialMatrix(('a', 'b'), np.array([[0.0, 0.4], [0.4, 0.0]]))
        assert m['a', 'b'] == pytest.approx(0.4)
        assert isinstance(m.to_frame(), pd.DataFrame)
        assert m.is_symmetric()

    def test_read_only_copy(self):
        source = np.zeros((2, 2))
        m = PotentialMatrix((1, 2), source)
        source[0, 1] = 5.0
        assert m[1, 2] == 0.0
        with pytest.raises(ValueError):
            m.values[0, 1] = 1.0

    def test_shape_checked(self):
        with pytest.raises(ValueError):
            PotentialMatrix((1, 2, 3), np.zeros((2, 2)))


class TestPotentialResult:
    def test_views(self):
        r = PotentialResult(method='simple1', dimension=Dimension.TIME,
                            ids=('a', 'b'), values=np.array([0.5, 1.0]),
                            population=0.75)
        assert r.individual == [('a', 0.5), ('b', 1.0)]
        assert r.to_series()['b'] == 1.0
        assert r.pairwise is None

    def test_misaligned(self):
        with pytest.raises(ValueError):
            PotentialResult(method='x', dimension=Dimension.TIME, ids=('a',),
                            values=np.array([0.5, 1.0]), population=0.75)
