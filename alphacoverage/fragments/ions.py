"""Fragment ion types, neutral losses and theoretical ions.

Each base ion type adds a fixed composition offset to the residue sum of one
terminal fragment:

    a = N-term residues - CO          x = C-term residues + CO2
    b = N-term residues               y = C-term residues + H2O
    c = N-term residues + NH3         z = C-term residues + H2O - NH2
                                      z. = z + H

An IonCandidate is one (base ion type, charge) combination together with the
selected neutral losses; it expands into one concrete Ion per neutral loss.
The IonCandidateProvider holds the user selection and hands out candidates in
a fixed order: base ion type first, then charge.

Examples
--------
>>> provider = IonCandidateProvider(['b', 'y'], ['NoLoss'], max_charge=2)
>>> [c.label for c in provider.get_ion_candidates()]
['b+', 'b2+', 'y+', 'y2+']
>>> [c.label for c in provider.get_ion_candidates(max_charge=1)]
['b+', 'y+']
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from ..constants import (
    PROTON_MASS,
    C13_MINUS_C12,
    H2O_COMPOSITION,
    NH3_COMPOSITION,
    CO_COMPOSITION,
    CO2_COMPOSITION,
    H_COMPOSITION,
    DEFAULT_ION_TYPES,
    DEFAULT_NEUTRAL_LOSSES,
    DEFAULT_MAX_CHARGE,
)
from ..sequence.composition import Composition, ZERO
from ..sequence.peptide import Residue


# =============================================================================
# Base Ion Types and Neutral Losses
# =============================================================================

@dataclass(frozen=True)
class BaseIonType:
    """Fragment ion series (a, b, c, x, y, z, z.)."""

    symbol: str
    is_prefix: bool
    offset: Composition
    # c/z series come from N-Cα cleavage, which cannot separate a proline ring
    n_calpha_cleavage: bool = False


_H2O = Composition.from_tuple(H2O_COMPOSITION)
_NH3 = Composition.from_tuple(NH3_COMPOSITION)
_NH2 = _NH3 - Composition.from_tuple(H_COMPOSITION)
_Z_OFFSET = _H2O - _NH2

BASE_ION_TYPES: Dict[str, BaseIonType] = {
    'a': BaseIonType('a', True, -Composition.from_tuple(CO_COMPOSITION)),
    'b': BaseIonType('b', True, ZERO),
    'c': BaseIonType('c', True, _NH3, n_calpha_cleavage=True),
    'x': BaseIonType('x', False, Composition.from_tuple(CO2_COMPOSITION)),
    'y': BaseIonType('y', False, _H2O),
    'z': BaseIonType('z', False, _Z_OFFSET, n_calpha_cleavage=True),
    'z.': BaseIonType('z.', False, _Z_OFFSET + Composition.from_tuple(H_COMPOSITION),
                      n_calpha_cleavage=True),
}


@dataclass(frozen=True)
class NeutralLoss:
    """Neutral molecule lost from a fragment."""

    name: str
    composition: Composition


NEUTRAL_LOSSES: Dict[str, NeutralLoss] = {
    'NoLoss': NeutralLoss('NoLoss', ZERO),
    'H2O': NeutralLoss('H2O', _H2O),
    'NH3': NeutralLoss('NH3', _NH3),
}


# =============================================================================
# Theoretical Ions
# =============================================================================

@dataclass(frozen=True)
class Ion:
    """A charged fragment with a concrete composition."""

    composition: Composition
    charge: int

    @property
    def mono_mz(self) -> float:
        """Monoisotopic m/z."""
        return (self.composition.mass + self.charge * PROTON_MASS) / self.charge

    def isotope_mzs(self, n_isotopes: int) -> np.ndarray:
        """m/z of the first `n_isotopes` isotope peaks."""
        return self.mono_mz + np.arange(n_isotopes) * (C13_MINUS_C12 / self.charge)


@dataclass(frozen=True)
class IonCandidate:
    """One base ion type at one charge, expanded over neutral losses."""

    ion_type: BaseIonType
    charge: int
    neutral_losses: Tuple[NeutralLoss, ...] = (NEUTRAL_LOSSES['NoLoss'],)
    proline_effect: bool = False

    @property
    def is_prefix(self) -> bool:
        return self.ion_type.is_prefix

    @property
    def label(self) -> str:
        charge = "+" if self.charge == 1 else f"{self.charge}+"
        return f"{self.ion_type.symbol}{charge}"

    def get_concrete_ions(
        self,
        composition: Composition,
        boundary_residue: Optional[Residue] = None,
    ) -> List[Ion]:
        """Ions for one terminal fragment composition.

        Parameters
        ----------
        composition : Composition
            Residue sum of the fragment (N-terminal for prefix types,
            C-terminal otherwise)
        boundary_residue : Residue, optional
            Residue C-terminal to the cleaved bond. Only consulted when the
            proline effect is enabled.

        Returns
        -------
        List[Ion]
            One ion per neutral loss; empty when the proline effect rules
            this ion series out at this bond
        """
        if (
            self.proline_effect
            and self.ion_type.n_calpha_cleavage
            and boundary_residue is not None
            and boundary_residue.symbol == 'P'
        ):
            return []

        base = composition + self.ion_type.offset
        return [Ion(base - loss.composition, self.charge) for loss in self.neutral_losses]


# =============================================================================
# Candidate Provider
# =============================================================================

class IonCandidateProvider:
    """Selected ion types, neutral losses and charges.

    Parameters
    ----------
    ion_types : iterable of str
        Base ion type symbols (default: a, b, c, x, y, z)
    neutral_losses : iterable of str
        Neutral loss names (default: NoLoss)
    max_charge : int
        Highest fragment charge to generate (default: 10)
    proline_effect : bool
        Suppress c/z ions at bonds N-terminal to proline

    Raises
    ------
    ValueError
        On unknown ion types or neutral losses, or max_charge < 1
    """

    def __init__(
        self,
        ion_types: Iterable[str] = DEFAULT_ION_TYPES,
        neutral_losses: Iterable[str] = DEFAULT_NEUTRAL_LOSSES,
        max_charge: int = DEFAULT_MAX_CHARGE,
        proline_effect: bool = False,
    ):
        ion_types = list(ion_types)
        neutral_losses = list(neutral_losses)

        unknown = [s for s in ion_types if s not in BASE_ION_TYPES]
        if unknown:
            raise ValueError(
                f"Unknown ion types: {unknown}. Available: {list(BASE_ION_TYPES)}"
            )
        unknown = [name for name in neutral_losses if name not in NEUTRAL_LOSSES]
        if unknown:
            raise ValueError(
                f"Unknown neutral losses: {unknown}. Available: {list(NEUTRAL_LOSSES)}"
            )
        if max_charge < 1:
            raise ValueError(f"max_charge must be at least 1, got {max_charge}")

        self.ion_types = tuple(BASE_ION_TYPES[s] for s in ion_types)
        self.neutral_losses = tuple(NEUTRAL_LOSSES[name] for name in neutral_losses)
        self.max_charge = max_charge
        self.proline_effect = proline_effect

        self._candidates = tuple(
            IonCandidate(ion_type, charge, self.neutral_losses, proline_effect)
            for ion_type in self.ion_types
            for charge in range(1, max_charge + 1)
        )

    def all_ion_candidates(self) -> Tuple[IonCandidate, ...]:
        """Every selected (ion type, charge) combination."""
        return self._candidates

    def get_ion_candidates(self, max_charge: Optional[int] = None) -> List[IonCandidate]:
        """Candidates with charge <= max_charge, in provider order."""
        if max_charge is None:
            return list(self._candidates)
        return [c for c in self._candidates if c.charge <= max_charge]

    def __repr__(self):
        symbols = [t.symbol for t in self.ion_types]
        losses = [loss.name for loss in self.neutral_losses]
        return (
            f"IonCandidateProvider(ion_types={symbols}, neutral_losses={losses}, "
            f"max_charge={self.max_charge}, proline_effect={self.proline_effect})"
        )
