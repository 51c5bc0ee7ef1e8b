"""Physical constants, element isotopes and residue compositions.

This module provides the constants used throughout AlphaCoverage: particle
masses, element isotope tables for isotope envelope calculation, elemental
compositions of the standard amino acid residues and of common Unimod
modifications, and default search settings.

Residue masses are derived from the compositions below and agree with the
IUPAC/Unimod monoisotopic residue masses to better than 1e-5 Da.

Sources
-------
- NIST physical constants: https://physics.nist.gov/cgi-bin/cuu/Value
- NIST isotopic compositions: https://www.nist.gov/pml/atomic-weights-and-isotopic-compositions-relative-atomic-masses
- Unimod modification compositions: https://www.unimod.org/modifications_list.php
"""

# =============================================================================
# Fundamental Physical Constants (NIST values)
# =============================================================================

# Proton mass (NOT hydrogen atom mass!)
# Source: NIST 2018 CODATA
PROTON_MASS = 1.007276466622  # Da

# Mass difference between C13 and C12
# Spacing of isotope peaks, divided by charge
C13_MINUS_C12 = 1.0033548378  # Da

# =============================================================================
# Element Isotopes
# =============================================================================

# Element order used by Composition
ELEMENTS = ('C', 'H', 'N', 'O', 'S', 'P')

# Monoisotopic masses
ELEMENT_MONO_MASSES = {
    'C': 12.0,
    'H': 1.00782503207,
    'N': 14.0030740048,
    'O': 15.99491461956,
    'S': 31.97207100,
    'P': 30.97376163,
}

# Natural abundances indexed by nominal mass offset from the lightest isotope
# (index 0 = monoisotopic, index 1 = +1 neutron, ...)
ELEMENT_ISOTOPE_ABUNDANCES = {
    'C': (0.9893, 0.0107),
    'H': (0.999885, 0.000115),
    'N': (0.99636, 0.00364),
    'O': (0.99757, 0.00038, 0.00205),
    'S': (0.9493, 0.0076, 0.0429, 0.0, 0.0002),
    'P': (1.0,),
}

# Longest isotope envelope we compute
MAX_ISOTOPES = 12

# Isotopes below this fraction of the most abundant one are dropped
ENVELOPE_CUTOFF = 0.001

# Isotopes at or above this fraction of the most abundant one are searched
# in the observed spectrum
RELATIVE_INTENSITY_THRESHOLD = 0.1

# =============================================================================
# Amino Acid Residue Compositions
# =============================================================================

# (C, H, N, O, S, P) of the residue (peptide-bonded, i.e. amino acid - H2O)
AA_COMPOSITIONS = {
    'G': (2, 3, 1, 1, 0, 0),    # Glycine
    'A': (3, 5, 1, 1, 0, 0),    # Alanine
    'S': (3, 5, 1, 2, 0, 0),    # Serine
    'P': (5, 7, 1, 1, 0, 0),    # Proline
    'V': (5, 9, 1, 1, 0, 0),    # Valine
    'T': (4, 7, 1, 2, 0, 0),    # Threonine
    'C': (3, 5, 1, 1, 1, 0),    # Cysteine (unmodified)
    'L': (6, 11, 1, 1, 0, 0),   # Leucine
    'I': (6, 11, 1, 1, 0, 0),   # Isoleucine
    'N': (4, 6, 2, 2, 0, 0),    # Asparagine
    'D': (4, 5, 1, 3, 0, 0),    # Aspartic acid
    'Q': (5, 8, 2, 2, 0, 0),    # Glutamine
    'K': (6, 12, 2, 1, 0, 0),   # Lysine
    'E': (5, 7, 1, 3, 0, 0),    # Glutamic acid
    'M': (5, 9, 1, 1, 1, 0),    # Methionine
    'H': (6, 7, 3, 1, 0, 0),    # Histidine
    'F': (9, 9, 1, 1, 0, 0),    # Phenylalanine
    'R': (6, 12, 4, 1, 0, 0),   # Arginine
    'Y': (9, 9, 1, 2, 0, 0),    # Tyrosine
    'W': (11, 10, 2, 1, 0, 0),  # Tryptophan
}

# Non-standard amino acids mapped to standard equivalents
NON_STANDARD_AA_MAP = {
    'X': 'L',  # Unknown → Leucine (most common)
    'Z': 'Q',  # Glu/Gln → Glutamine
    'B': 'N',  # Asp/Asn → Asparagine
    'J': 'L',  # Leu/Ile → Leucine
    'U': 'C',  # Selenocysteine → Cysteine
    'O': 'M',  # Pyrrolysine → Methionine
}

# =============================================================================
# Small Molecule Compositions (C, H, N, O, S, P)
# =============================================================================

H2O_COMPOSITION = (0, 2, 0, 1, 0, 0)
NH3_COMPOSITION = (0, 3, 1, 0, 0, 0)
CO_COMPOSITION = (1, 0, 0, 1, 0, 0)
CO2_COMPOSITION = (1, 0, 0, 2, 0, 0)
H_COMPOSITION = (0, 1, 0, 0, 0, 0)

# =============================================================================
# Common Modification Compositions (Unimod)
# =============================================================================

# Keys are Unimod PSI-MS names as written by MS-GF+ in mzIdentML
MODIFICATION_COMPOSITIONS = {
    'Carbamidomethyl': (2, 3, 1, 1, 0, 0),   # Unimod:4, +57.021464
    'Oxidation': (0, 0, 0, 1, 0, 0),         # Unimod:35, +15.994915
    'Acetyl': (2, 2, 0, 1, 0, 0),            # Unimod:1, +42.010565
    'Phospho': (0, 1, 0, 3, 0, 1),           # Unimod:21, +79.966331
    'Deamidated': (0, -1, -1, 1, 0, 0),      # Unimod:7, +0.984016
    'Carbamyl': (1, 1, 1, 1, 0, 0),          # Unimod:5, +43.005814
    'Methyl': (1, 2, 0, 0, 0, 0),            # Unimod:34, +14.015650
    'Dimethyl': (2, 4, 0, 0, 0, 0),          # Unimod:36, +28.031300
    'Gln->pyro-Glu': (0, -3, -1, 0, 0, 0),   # Unimod:28, -17.026549
    'Glu->pyro-Glu': (0, -2, 0, -1, 0, 0),   # Unimod:27, -18.010565
    'Amidated': (0, 1, 1, -1, 0, 0),         # Unimod:2, -0.984016
}

# Alternative spellings seen in identification files
MODIFICATION_ALIASES = {
    'Deamidation': 'Deamidated',
    'Carbamidomethylation': 'Carbamidomethyl',
    'Phosphorylation': 'Phospho',
    'Acetylation': 'Acetyl',
}

# =============================================================================
# Default Settings
# =============================================================================

# Default fragment tolerance in PPM
DEFAULT_TOLERANCE_PPM = 10.0

# A cleavage site counts as observed when an ion correlates above this score
ACCEPTANCE_SCORE = 0.7

# Default ion selection
DEFAULT_ION_TYPES = ('a', 'b', 'c', 'x', 'y', 'z')
DEFAULT_NEUTRAL_LOSSES = ('NoLoss',)
DEFAULT_MAX_CHARGE = 10

# Results above this q-value are not written to the output file
DEFAULT_Q_VALUE_THRESHOLD = 0.01
