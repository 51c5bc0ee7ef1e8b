"""Peptide sequences with per-residue modifications.

A Sequence is an immutable tuple of Residues. Each residue carries its base
composition and optionally one Modification; the residue composition used for
fragment calculation includes the modification delta.

Modifications come from identification files either by name (resolved
through the Unimod composition table in constants) or only by mass delta.

Examples
--------
>>> seq = Sequence.from_string("PEPTIDE")
>>> len(seq)
7
>>> seq = Sequence.from_string("PEPT+79.966IDE")
>>> str(seq)
'PEPT+79.966IDE'
>>> seq = Sequence.from_string("AC[Carbamidomethyl]DEK")
>>> seq[1].modification.name
'Carbamidomethyl'
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence as SequenceType, Tuple

from .composition import Composition, ZERO
from ..constants import (
    AA_COMPOSITIONS,
    NON_STANDARD_AA_MAP,
    MODIFICATION_COMPOSITIONS,
    MODIFICATION_ALIASES,
)


# =============================================================================
# Modifications
# =============================================================================

@dataclass(frozen=True)
class Modification:
    """A residue modification, known by composition and/or mass delta."""

    name: str
    composition: Composition

    @property
    def mass(self) -> float:
        return self.composition.mass

    @classmethod
    def from_name(cls, name: str) -> 'Modification':
        """Look up a Unimod modification by name.

        Raises
        ------
        KeyError
            If the name is not in the modification table
        """
        canonical = MODIFICATION_ALIASES.get(name, name)
        counts = MODIFICATION_COMPOSITIONS[canonical]
        return cls(canonical, Composition.from_tuple(counts))

    @classmethod
    def from_mass(cls, mass: float, name: Optional[str] = None) -> 'Modification':
        """Modification known only by its mass delta."""
        return cls(name or f"{mass:+.3f}", Composition.from_mass(mass))

    @classmethod
    def resolve(cls, name: Optional[str], mass: Optional[float]) -> 'Modification':
        """Prefer the composition from the name, fall back to the mass delta.

        Raises
        ------
        ValueError
            If neither a known name nor a mass is given
        """
        if name:
            canonical = MODIFICATION_ALIASES.get(name, name)
            if canonical in MODIFICATION_COMPOSITIONS:
                return cls.from_name(canonical)
        if mass is None:
            raise ValueError(f"Unknown modification without mass delta: {name}")
        return cls.from_mass(float(mass), name)


# =============================================================================
# Residues and Sequences
# =============================================================================

@dataclass(frozen=True)
class Residue:
    """One amino acid in a sequence, including its modification."""

    symbol: str
    composition: Composition
    modification: Optional[Modification] = None

    @classmethod
    def from_symbol(cls, symbol: str, modification: Optional[Modification] = None) -> 'Residue':
        """Build a residue from its one-letter code.

        Non-standard codes are mapped to their standard equivalents
        (X → L, Z → Q, ...).

        Raises
        ------
        ValueError
            If the code is not an amino acid
        """
        standard = NON_STANDARD_AA_MAP.get(symbol, symbol)
        if standard not in AA_COMPOSITIONS:
            raise ValueError(f"Unknown amino acid: {symbol!r}")

        composition = Composition.from_tuple(AA_COMPOSITIONS[standard])
        if modification is not None:
            composition = composition + modification.composition
        return cls(symbol, composition, modification)

    def __str__(self):
        if self.modification is None:
            return self.symbol
        mod_mass = round(self.modification.mass, 3)
        if mod_mass == 0:
            return self.symbol
        return self.symbol + f"{mod_mass:+.3f}".rstrip('0').rstrip('.')


# One residue letter, optionally followed by [Name] or a signed mass
_TOKEN_PATTERN = re.compile(r"([A-Z])(?:\[([^\]]+)\]|([+-]\d+(?:\.\d*)?))?")


@dataclass(frozen=True)
class Sequence:
    """Immutable peptide sequence."""

    residues: Tuple[Residue, ...]

    @classmethod
    def from_string(cls, peptide: str) -> 'Sequence':
        """Parse 'PEPTIDE', 'PEPT+79.966IDE' or 'AC[Carbamidomethyl]DEK'.

        Raises
        ------
        ValueError
            On characters that are neither residues nor modifications
        """
        residues = []
        pos = 0
        while pos < len(peptide):
            match = _TOKEN_PATTERN.match(peptide, pos)
            if match is None:
                raise ValueError(f"Cannot parse peptide {peptide!r} at position {pos}")

            symbol, mod_name, mod_mass = match.groups()
            modification = None
            if mod_name is not None:
                modification = Modification.resolve(mod_name, None)
            elif mod_mass is not None:
                modification = Modification.from_mass(float(mod_mass))

            residues.append(Residue.from_symbol(symbol, modification))
            pos = match.end()

        return cls(tuple(residues))

    @classmethod
    def from_modifications(
        cls,
        peptide: str,
        modifications: SequenceType[Tuple[int, Modification]] = (),
    ) -> 'Sequence':
        """Build from a plain sequence and (0-based position, Modification) pairs.

        Several modifications on the same residue are merged into one.
        """
        per_position: List[Optional[Modification]] = [None] * len(peptide)
        for position, modification in modifications:
            if not 0 <= position < len(peptide):
                raise ValueError(
                    f"Modification position {position} outside peptide {peptide!r}"
                )
            existing = per_position[position]
            if existing is not None:
                modification = Modification(
                    f"{existing.name}+{modification.name}",
                    existing.composition + modification.composition,
                )
            per_position[position] = modification

        return cls(tuple(
            Residue.from_symbol(symbol, mod)
            for symbol, mod in zip(peptide, per_position)
        ))

    def __len__(self) -> int:
        return len(self.residues)

    def __getitem__(self, index):
        return self.residues[index]

    def __iter__(self) -> Iterator[Residue]:
        return iter(self.residues)

    @property
    def composition(self) -> Composition:
        """Sum of residue compositions (no terminal water)."""
        total = ZERO
        for residue in self.residues:
            total = total + residue.composition
        return total

    def prefix_compositions(self) -> List[Composition]:
        """Cumulative compositions: entry i is the sum of residues [0, i).

        Has len(self) + 1 entries; entry 0 is empty and the last entry is the
        whole sequence.
        """
        prefixes = [ZERO]
        for residue in self.residues:
            prefixes.append(prefixes[-1] + residue.composition)
        return prefixes

    def __str__(self):
        return ''.join(str(residue) for residue in self.residues)
