"""AlphaCoverage - Fragment ion sequence coverage for peptide-spectrum matches.

For every MS-GF+ identification, the matching MS2 spectrum is searched for the
theoretical fragment ions of each backbone cleavage site. A site is covered
when one of its ions correlates with the observed isotope peaks above 0.7;
sequence coverage is the percentage of covered sites.

Peak search and isotope correlation are Numba-compiled and release the GIL,
so spectra are scored on a thread pool.
"""

__version__ = "0.1.0"

# Import main submodules for convenient access
from alphacoverage import sequence
from alphacoverage import fragments
from alphacoverage import search
from alphacoverage import io
from alphacoverage import processing

from alphacoverage.tolerance import Tolerance, ToleranceUnit
from alphacoverage.config import CoverageConfig
from alphacoverage.processing import ResultProcessor, ProcessedMatch

__all__ = [
    "sequence",
    "fragments",
    "search",
    "io",
    "processing",
    "Tolerance",
    "ToleranceUnit",
    "CoverageConfig",
    "ResultProcessor",
    "ProcessedMatch",
]
