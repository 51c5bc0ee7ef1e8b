"""Elemental compositions and their isotope envelopes.

A Composition holds element counts (C, H, N, O, S, P) and an optional free
mass shift for modifications whose composition is unknown (only their mass
delta is reported by the search engine). Compositions are immutable and
hashable, so isotope envelopes can be cached per composition.

Isotope envelopes are computed by convolving per-element isotope
distributions at nominal mass resolution (index 0 = monoisotopic peak,
index i = i extra neutrons), which is what the fragment correlation score
needs: the relative heights of the M, M+1, M+2, ... peaks.

Examples
--------
>>> water = Composition(h=2, o=1)
>>> round(water.mass, 6)
18.010565
>>> glycine = Composition.from_tuple((2, 3, 1, 1, 0, 0))
>>> envelope = (glycine + glycine).isotope_envelope()
>>> envelope[0]
1.0
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

import numpy as np

from ..constants import (
    ELEMENTS,
    ELEMENT_MONO_MASSES,
    ELEMENT_ISOTOPE_ABUNDANCES,
    MAX_ISOTOPES,
    ENVELOPE_CUTOFF,
)


@dataclass(frozen=True)
class Composition:
    """Elemental composition with an optional extra mass shift (Da)."""

    c: int = 0
    h: int = 0
    n: int = 0
    o: int = 0
    s: int = 0
    p: int = 0
    mass_shift: float = 0.0

    @classmethod
    def from_tuple(cls, counts: Tuple[int, ...], mass_shift: float = 0.0) -> 'Composition':
        """Build from a (C, H, N, O, S, P) tuple as used in constants."""
        return cls(*counts, mass_shift=mass_shift)

    @classmethod
    def from_mass(cls, mass: float) -> 'Composition':
        """Composition-less mass delta (e.g. an unknown modification)."""
        return cls(mass_shift=mass)

    def counts(self) -> Tuple[int, int, int, int, int, int]:
        return (self.c, self.h, self.n, self.o, self.s, self.p)

    @property
    def mass(self) -> float:
        """Monoisotopic mass in Da."""
        total = self.mass_shift
        for element, count in zip(ELEMENTS, self.counts()):
            total += count * ELEMENT_MONO_MASSES[element]
        return total

    def __add__(self, other: 'Composition') -> 'Composition':
        if not isinstance(other, Composition):
            return NotImplemented
        return Composition(
            self.c + other.c, self.h + other.h, self.n + other.n,
            self.o + other.o, self.s + other.s, self.p + other.p,
            self.mass_shift + other.mass_shift,
        )

    def __neg__(self) -> 'Composition':
        return Composition(
            -self.c, -self.h, -self.n, -self.o, -self.s, -self.p, -self.mass_shift
        )

    def __sub__(self, other: 'Composition') -> 'Composition':
        if not isinstance(other, Composition):
            return NotImplemented
        return self + (-other)

    def isotope_envelope(self) -> np.ndarray:
        """Relative isotope intensities, most abundant isotope = 1.0.

        Isotopes weaker than ENVELOPE_CUTOFF of the maximum are trimmed from
        the high-mass end. The returned array is shared through a cache and
        must not be modified.
        """
        return _isotope_envelope(self.counts())

    def __str__(self):
        parts = []
        for element, count in zip(ELEMENTS, self.counts()):
            if count == 0:
                continue
            parts.append(element if count == 1 else f"{element}{count}")
        formula = ''.join(parts)
        if self.mass_shift:
            formula += f"{self.mass_shift:+.4f}"
        return formula or "0"


ZERO = Composition()


# =============================================================================
# Isotope Envelope Calculation
# =============================================================================

def _truncated_convolve(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.convolve(a, b)[:MAX_ISOTOPES]


def _element_distribution(element: str, count: int) -> np.ndarray:
    """Isotope distribution of `count` atoms of one element (binary exponentiation)."""
    result = np.array([1.0])
    if count <= 0:
        # Negative counts only occur in offsets; they do not shift the envelope
        return result

    base = np.array(ELEMENT_ISOTOPE_ABUNDANCES[element], dtype=np.float64)
    while count:
        if count & 1:
            result = _truncated_convolve(result, base)
        count >>= 1
        if count:
            base = _truncated_convolve(base, base)
    return result


@lru_cache(maxsize=65536)
def _isotope_envelope(counts: Tuple[int, ...]) -> np.ndarray:
    distribution = np.array([1.0])
    for element, count in zip(ELEMENTS, counts):
        distribution = _truncated_convolve(
            distribution, _element_distribution(element, count)
        )

    envelope = distribution / distribution.max()

    # Trim weak isotopes at the high-mass end
    keep = np.nonzero(envelope >= ENVELOPE_CUTOFF)[0]
    envelope = envelope[: keep[-1] + 1]
    envelope.setflags(write=False)
    return envelope
