"""Symmetric mass tolerance windows."""

from dataclasses import dataclass
from enum import Enum

import numpy as np


class ToleranceUnit(Enum):
    """Units a mass tolerance can be expressed in."""
    PPM = "ppm"
    ABSOLUTE = "da"  # m/z units (Th), applied as-is

    @classmethod
    def from_string(cls, unit: str) -> 'ToleranceUnit':
        """Parse a unit name such as 'ppm', 'Da', 'Th' or 'absolute'."""
        key = unit.strip().lower()
        if key == "ppm":
            return cls.PPM
        if key in ("da", "th", "mz", "absolute"):
            return cls.ABSOLUTE
        raise ValueError(f"Unknown tolerance unit: {unit}")


@dataclass(frozen=True)
class Tolerance:
    """Mass error window of +/- value around a target m/z.

    Examples
    --------
    >>> Tolerance(10.0).get_tolerance_da(500.0)
    0.005
    >>> Tolerance(0.02, ToleranceUnit.ABSOLUTE).get_tolerance_da(500.0)
    0.02
    """

    value: float
    unit: ToleranceUnit = ToleranceUnit.PPM

    def __post_init__(self):
        if self.value < 0:
            raise ValueError(f"Tolerance must be non-negative, got {self.value}")

    def get_tolerance_da(self, mz):
        """Half-width of the window at the given m/z, in m/z units.

        Accepts a scalar or an array of m/z values and returns the same shape.
        """
        if self.unit is ToleranceUnit.PPM:
            return mz * self.value / 1e6
        if np.ndim(mz):
            return np.full(np.shape(mz), self.value, dtype=np.float64)
        return self.value

    def __str__(self):
        if self.unit is ToleranceUnit.PPM:
            return f"{self.value:g} ppm"
        return f"{self.value:g} Da"
