"""Fragment ion scoring and sequence coverage.

Core algorithms:
1. Binary search for the most intense peak in a tolerance window
2. Isotope envelope correlation of theoretical ions with observed peaks
3. Per-cleavage-site coverage with first-match short circuit
"""

from .peak_matching import (
    find_most_intense_peak,
    pearson_correlation,
    isotope_correlation,
    isotope_correlation_score,
)

from .coverage import (
    count_observed_sites,
    calculate_sequence_coverage,
)

__all__ = [
    # Peak matching
    'find_most_intense_peak',
    'pearson_correlation',
    'isotope_correlation',
    'isotope_correlation_score',
    # Coverage
    'count_observed_sites',
    'calculate_sequence_coverage',
]
