"""
Diff Functions and Antispikes

Distance metrics between two equal-length curves, plus the roughness
penalty used with the per-point model.
"""

from enum import Enum

import numpy as np


class UnsupportedError(NotImplementedError):
    """Raised when a known but unsupported variant is selected."""


def _check_same_len(points_1, points_2):
    if len(points_1) != len(points_2):
        raise ValueError(f"points lengths differ: {len(points_1)} != {len(points_2)}")


class DiffFunction(Enum):
    DySqr = "DySqr"
    DyAbs = "DyAbs"
    DySqrPerEl = "DySqrPerEl"
    DyAbsPerEl = "DyAbsPerEl"
    LeastDist = "LeastDist"

    @classmethod
    def from_name(cls, name):
        try:
            return cls(name)
        except ValueError:
            known = ", ".join(f"`{v.value}`" for v in cls)
            raise ValueError(f"unknown diff function: `{name}`, known: [{known}]") from None

    def calc_diff(self, points_1, points_2):
        """
        Distance between two curves.

        `DySqr` is the square root of the sum of squares (euclidean norm of
        the difference), not the plain sum.
        """
        _check_same_len(points_1, points_2)
        points_1 = np.asarray(points_1, dtype=float)
        points_2 = np.asarray(points_2, dtype=float)
        if self is DiffFunction.DySqr:
            return float(np.sqrt(np.sum((points_2 - points_1) ** 2)))
        elif self is DiffFunction.DyAbs:
            return float(np.sum(np.abs(points_2 - points_1)))
        elif self is DiffFunction.DySqrPerEl:
            return DiffFunction.DySqr.calc_diff(points_1, points_2) / len(points_1)
        elif self is DiffFunction.DyAbsPerEl:
            return DiffFunction.DyAbs.calc_diff(points_1, points_2) / len(points_1)
        raise UnsupportedError(f"diff function `{self.value}` is not supported")

    def calc_diff_with_antispikes(self, points_1, points_2, antispikes=None):
        diff_main = self.calc_diff(points_1, points_2)
        diff_antispikes = antispikes.calc(points_1, points_2) if antispikes is not None else 0.
        return diff_main + diff_antispikes


class AntispikesType(Enum):
    DySqr = "DySqr"
    DyAbs = "DyAbs"

    @classmethod
    def from_name(cls, name):
        try:
            return cls(name)
        except ValueError:
            known = ", ".join(f"`{v.value}`" for v in cls)
            raise ValueError(f"unknown antispikes type: `{name}`, known: [{known}]") from None

    def calc(self, points_1, points_2):
        """Roughness of both curves taken together."""
        _check_same_len(points_1, points_2)
        deltas = np.concatenate([
            np.diff(np.asarray(points_1, dtype=float)),
            np.diff(np.asarray(points_2, dtype=float)),
        ])
        if self is AntispikesType.DySqr:
            return float(np.sqrt(np.sum(deltas ** 2)))
        return float(np.sum(np.abs(deltas)))


class Antispikes:
    """
    Roughness penalty: k * roughness(points_1 and points_2).
    """

    def __init__(self, antispikes_type, antispikes_k):
        self.antispikes_type = antispikes_type
        self.antispikes_k = float(antispikes_k)

    def __eq__(self, other):
        if not isinstance(other, Antispikes):
            return NotImplemented
        return (self.antispikes_type == other.antispikes_type
                and self.antispikes_k == other.antispikes_k)

    def __repr__(self):
        return f"Antispikes({self.antispikes_type.value}, k={self.antispikes_k})"

    def calc(self, points_1, points_2):
        return self.antispikes_k * self.antispikes_type.calc(points_1, points_2)
