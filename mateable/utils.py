"""Utility functions for mateable.

General-purpose helpers shared by the metric engines: method-name parsing
and aggregation of pairwise matrices into individual and population values.
"""

from __future__ import annotations

from enum import Enum
from typing import Type, TypeVar, Union

import numpy as np

from mateable.errors import UnknownMethodError
from mateable.types import AverageType

E = TypeVar('E', bound=Enum)


def parse_method(enum_cls: Type[E], name: Union[str, E]) -> E:
    """Map a method name onto its enum member.

    Raises:
        UnknownMethodError: If ``name`` is not a value of ``enum_cls``.
    """
    try:
        return enum_cls(name)
    except ValueError:
        valid = [m.value for m in enum_cls]
        raise UnknownMethodError(
            f"unknown {enum_cls.__name__} '{name}'; expected one of {valid}"
        ) from None


def aggregate(values: np.ndarray, average_type: Union[str, AverageType]) -> float:
    """Population aggregate (mean or median) of individual values."""
    average_type = parse_method(AverageType, average_type)
    values = np.asarray(values, dtype=np.float64)
    if average_type is AverageType.MEDIAN:
        return float(np.median(values))
    return float(np.mean(values))


def row_means(matrix: np.ndarray, include_diagonal: bool) -> np.ndarray:
    """Mean of each row, optionally leaving out the diagonal.

    Args:
        matrix: (N, N) numeric or boolean array.
        include_diagonal: If False, each row mean is over the N-1
            off-diagonal entries.

    Returns:
        (N,) float64 array.
    """
    m = np.asarray(matrix, dtype=np.float64)
    n = m.shape[0]
    if include_diagonal:
        return m.sum(axis=1) / n
    return (m.sum(axis=1) - np.diag(m)) / (n - 1)
