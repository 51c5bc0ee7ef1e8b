"""Sequence coverage of a peptide-spectrum match.

A peptide of n residues has n - 1 internal cleavage sites. A site counts as
observed when at least one theoretical fragment ion from either side of the
bond correlates with the spectrum above the acceptance score (0.7). Coverage
is the percentage of observed sites.

Cost is O(sites × ion candidates × isotopes × log(peaks)) per match, so long
peptides and large ion type selections dominate run time. Candidates are
tested in provider order and testing stops at the first match per site.

Examples
--------
>>> provider = IonCandidateProvider(['b', 'y'], ['NoLoss'], max_charge=1)
>>> coverage = calculate_sequence_coverage(
...     spectrum, Sequence.from_string("PEPTIDE"), charge=2,
...     tolerance=Tolerance(10.0), ion_provider=provider,
... )
>>> # 0, 16.67, 33.33, ... 100 for a 7-residue peptide
"""

from typing import Callable, Sequence as SequenceType

import numpy as np

from ..constants import ACCEPTANCE_SCORE
from ..fragments.ions import IonCandidate, IonCandidateProvider
from ..sequence.composition import Composition
from ..sequence.peptide import Residue, Sequence
from ..tolerance import Tolerance
from .peak_matching import isotope_correlation_score

# scorer(spectrum, ion, tolerance) -> score
Scorer = Callable[..., float]


def _site_is_observed(
    spectrum,
    candidates: SequenceType[IonCandidate],
    n_term: Composition,
    c_term: Composition,
    boundary_residue: Residue,
    tolerance: Tolerance,
    scorer: Scorer,
    threshold: float,
) -> bool:
    """True at the first candidate ion that scores above threshold."""
    for candidate in candidates:
        composition = n_term if candidate.is_prefix else c_term
        for ion in candidate.get_concrete_ions(composition, boundary_residue):
            if scorer(spectrum, ion, tolerance) > threshold:
                return True
    return False


def count_observed_sites(
    spectrum,
    sequence: Sequence,
    charge: int,
    tolerance: Tolerance,
    ion_provider: IonCandidateProvider,
    scorer: Scorer = isotope_correlation_score,
    threshold: float = ACCEPTANCE_SCORE,
) -> int:
    """Number of cleavage sites with at least one matching fragment ion.

    Only fragment charges strictly below the precursor charge are tested.
    """
    n_residues = len(sequence)
    if n_residues < 2:
        return 0

    candidates = ion_provider.get_ion_candidates(max_charge=charge - 1)
    if not candidates:
        return 0

    prefixes = sequence.prefix_compositions()
    total = prefixes[-1]

    found = 0
    for clv in range(1, n_residues):
        n_term = prefixes[clv]
        c_term = total - n_term
        if _site_is_observed(
            spectrum, candidates, n_term, c_term, sequence[clv],
            tolerance, scorer, threshold,
        ):
            found += 1

    return found


def calculate_sequence_coverage(
    spectrum,
    sequence: Sequence,
    charge: int,
    tolerance: Tolerance,
    ion_provider: IonCandidateProvider,
    scorer: Scorer = isotope_correlation_score,
    threshold: float = ACCEPTANCE_SCORE,
) -> float:
    """Percentage of cleavage sites observed in the spectrum.

    Parameters
    ----------
    spectrum : Spectrum
        MS2 spectrum of the match
    sequence : Sequence
        Identified peptide
    charge : int
        Precursor charge of the identification
    tolerance : Tolerance
        Fragment tolerance
    ion_provider : IonCandidateProvider
        Selected ion types, neutral losses and charges
    scorer : callable, optional
        scorer(spectrum, ion, tolerance) -> float
        (default: isotope_correlation_score)
    threshold : float, optional
        A site counts when an ion scores strictly above this (default: 0.7)

    Returns
    -------
    float
        100 × observed sites / (n - 1), in [0, 100].
        NaN for peptides shorter than two residues, which have no
        cleavage site.
    """
    n_sites = len(sequence) - 1
    if n_sites < 1:
        return np.nan

    found = count_observed_sites(
        spectrum, sequence, charge, tolerance, ion_provider, scorer, threshold
    )
    return 100.0 * found / n_sites
