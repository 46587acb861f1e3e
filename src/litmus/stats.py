"""Sample statistics for throughput measurements.

Confidence intervals use two-sided 95% critical values of Student's t
distribution (NIST/SEMATECH e-Handbook, section 1.3.6.7.2).
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Self

import numpy as np
from msgspec import Struct

T_DISTRIBUTION: dict[int, float] = {
    1: 12.706, 2: 4.303, 3: 3.182, 4: 2.776, 5: 2.571, 6: 2.447,
    7: 2.365, 8: 2.306, 9: 2.262, 10: 2.228, 11: 2.201, 12: 2.179,
    13: 2.160, 14: 2.145, 15: 2.131, 16: 2.120, 17: 2.110, 18: 2.101,
    19: 2.093, 20: 2.086, 21: 2.080, 22: 2.074, 23: 2.069, 24: 2.064,
    25: 2.060, 26: 2.056, 27: 2.052, 28: 2.048, 29: 2.045, 30: 2.042,
    31: 2.040, 32: 2.037, 33: 2.035, 34: 2.032, 35: 2.030, 36: 2.028,
    37: 2.026, 38: 2.024, 39: 2.023, 40: 2.021, 41: 2.020, 42: 2.018,
    43: 2.017, 44: 2.015, 45: 2.014, 46: 2.013, 47: 2.012, 48: 2.011,
    49: 2.010, 50: 2.009, 51: 2.008, 52: 2.007, 53: 2.006, 54: 2.005,
    55: 2.004, 56: 2.003, 57: 2.002, 58: 2.002, 59: 2.001, 60: 2.000,
    61: 2.000, 62: 1.999, 63: 1.998, 64: 1.998, 65: 1.997, 66: 1.997,
    67: 1.996, 68: 1.995, 69: 1.995, 70: 1.994, 71: 1.994, 72: 1.993,
    73: 1.993, 74: 1.993, 75: 1.992, 76: 1.992, 77: 1.991, 78: 1.991,
    79: 1.990, 80: 1.990, 81: 1.990, 82: 1.989, 83: 1.989, 84: 1.989,
    85: 1.988, 86: 1.988, 87: 1.988, 88: 1.987, 89: 1.987, 90: 1.987,
    91: 1.986, 92: 1.986, 93: 1.986, 94: 1.986, 95: 1.985, 96: 1.985,
    97: 1.985, 98: 1.984, 99: 1.984, 100: 1.984,
}  # fmt: skip
T_INFINITY = 1.960


def t_critical(df: int) -> float:
    """Return the 95% two-sided critical value for ``df`` degrees of freedom.

    Degrees of freedom outside 1..100 fall back to the normal approximation.
    """
    return T_DISTRIBUTION.get(df, T_INFINITY)


def _finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0


class SampleStatistics(Struct, frozen=True):
    """Snapshot of the statistics of a throughput sample.

    Args:
        size: Number of observations.
        mean: Arithmetic mean of the observations (may be ``inf``).
        sd: Sample standard deviation (Bessel-corrected).
        sem: Standard error of the mean.
        moe: Margin of error at 95% confidence.
        rme: Margin of error as a percentage of the mean.
    """

    size: int = 0
    mean: float = 0.0
    sd: float = 0.0
    sem: float = 0.0
    moe: float = 0.0
    rme: float = 0.0

    @classmethod
    def from_sample(cls, values: Sequence[float]) -> Self:
        """Compute statistics over ``values``.

        Undefined quantities (fewer than two observations, a zero or infinite
        mean, infinite observations) collapse to ``0`` instead of ``nan``.

        Args:
            values: Observations, typically per-clone ``hz``.

        Returns:
            The computed snapshot.

        """
        sample = np.asarray(values, dtype=np.float64)
        size = int(sample.size)
        if size == 0:
            return cls()

        with np.errstate(all="ignore"):
            mean = float(sample.mean())
            sd = float(sample.std(ddof=1)) if size > 1 else 0.0

        if math.isnan(mean):
            mean = 0.0
        sd = _finite_or_zero(sd)
        sem = sd / math.sqrt(size)
        moe = sem * t_critical(size - 1)
        rme = 100.0 * moe / mean if mean and math.isfinite(mean) else 0.0

        return cls(size=size, mean=mean, sd=sd, sem=sem, moe=moe, rme=rme)
