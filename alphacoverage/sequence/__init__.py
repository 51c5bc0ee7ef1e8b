"""Peptide sequence and elemental composition model."""

from .composition import Composition, ZERO
from .peptide import Modification, Residue, Sequence

__all__ = [
    'Composition',
    'ZERO',
    'Modification',
    'Residue',
    'Sequence',
]
