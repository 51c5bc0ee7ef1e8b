"""Fragment ion types and theoretical ion generation.

Supported series: a, b, c (N-terminal) and x, y, z, z. (C-terminal), each
with optional H2O/NH3 neutral losses and charges 1 to max_charge.
"""

from .ions import (
    BaseIonType,
    NeutralLoss,
    Ion,
    IonCandidate,
    IonCandidateProvider,
    BASE_ION_TYPES,
    NEUTRAL_LOSSES,
)

__all__ = [
    'BaseIonType',
    'NeutralLoss',
    'Ion',
    'IonCandidate',
    'IonCandidateProvider',
    'BASE_ION_TYPES',
    'NEUTRAL_LOSSES',
]
