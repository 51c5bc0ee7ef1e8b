"""Peak search and isotope-envelope correlation with Numba JIT.

Core algorithms for scoring a theoretical ion against an observed spectrum:
1. Binary search on the m/z-sorted peak list (O(log n))
2. Most intense peak within a tolerance window
3. Pearson correlation of the theoretical isotope envelope with the observed
   isotope peak intensities

The kernels release the GIL (nogil=True) so spectra can be scored from
several threads at once.
"""

import numpy as np
import numba

from ..constants import RELATIVE_INTENSITY_THRESHOLD
from ..tolerance import Tolerance


# =============================================================================
# Peak Search (Core Algorithm)
# =============================================================================

@numba.jit(nopython=True, cache=True, nogil=True)
def find_most_intense_peak(
    spectrum_mz: np.ndarray,
    spectrum_intensity: np.ndarray,
    target_mz: float,
    tol_da: float,
) -> int:
    """Find the most intense peak within +/- tol_da of target_mz.

    Parameters
    ----------
    spectrum_mz : np.ndarray (float64)
        Observed m/z values
        CRITICAL: Must be sorted ascending! No validation for speed.
    spectrum_intensity : np.ndarray (float64)
        Observed intensities (parallel to spectrum_mz)
    target_mz : float
        Theoretical m/z to search for
    tol_da : float
        Half-width of the search window in m/z units

    Returns
    -------
    index : int
        Index of the most intense peak in the window, -1 if none

    Examples
    --------
    >>> mz = np.array([100.0, 200.0, 200.001, 300.0])
    >>> intensity = np.array([1.0, 5.0, 9.0, 1.0])
    >>> find_most_intense_peak(mz, intensity, 200.0, 0.002)
    2
    """
    n = len(spectrum_mz)
    if n == 0:
        return -1

    mz_min = target_mz - tol_da
    mz_max = target_mz + tol_da

    # Binary search for first m/z >= mz_min
    left, right = 0, n
    while left < right:
        mid = (left + right) // 2
        if spectrum_mz[mid] < mz_min:
            left = mid + 1
        else:
            right = mid
    start_idx = left

    if start_idx >= n or spectrum_mz[start_idx] > mz_max:
        return -1

    best_idx = start_idx
    best_intensity = spectrum_intensity[start_idx]

    idx = start_idx + 1
    while idx < n and spectrum_mz[idx] <= mz_max:
        if spectrum_intensity[idx] > best_intensity:
            best_intensity = spectrum_intensity[idx]
            best_idx = idx
        idx += 1

    return best_idx


@numba.jit(nopython=True, cache=True, nogil=True)
def pearson_correlation(a: np.ndarray, b: np.ndarray) -> float:
    """Pearson correlation of two equal-length vectors.

    Returns 0.0 for fewer than two values or zero variance.
    """
    n = len(a)
    if n < 2:
        return 0.0

    mean_a = 0.0
    mean_b = 0.0
    for i in range(n):
        mean_a += a[i]
        mean_b += b[i]
    mean_a /= n
    mean_b /= n

    cov = 0.0
    var_a = 0.0
    var_b = 0.0
    for i in range(n):
        da = a[i] - mean_a
        db = b[i] - mean_b
        cov += da * db
        var_a += da * da
        var_b += db * db

    if var_a <= 0.0 or var_b <= 0.0:
        return 0.0
    return cov / np.sqrt(var_a * var_b)


@numba.jit(nopython=True, cache=True, nogil=True)
def isotope_correlation(
    spectrum_mz: np.ndarray,
    spectrum_intensity: np.ndarray,
    isotope_mz: np.ndarray,
    envelope: np.ndarray,
    tol_da: np.ndarray,
    min_relative_intensity: float,
) -> float:
    """Correlate a theoretical isotope envelope with observed peaks.

    Parameters
    ----------
    spectrum_mz, spectrum_intensity : np.ndarray
        Observed peaks (m/z sorted ascending)
    isotope_mz : np.ndarray
        m/z of each isotope peak of the ion
    envelope : np.ndarray
        Relative theoretical intensity of each isotope (max = 1)
    tol_da : np.ndarray
        Search half-width for each isotope in m/z units
    min_relative_intensity : float
        Isotopes weaker than this are not searched (observed = 0)

    Returns
    -------
    score : float
        Pearson correlation in [-1, 1]; 0.0 if the most abundant isotope
        is not observed or the envelope has fewer than two isotopes

    Notes
    -----
    Missing isotopes contribute an observed intensity of 0, so a lone peak
    at the monoisotopic position of a large fragment scores poorly.
    """
    n = len(envelope)
    if n < 2:
        return 0.0

    most_abundant = np.argmax(envelope)
    if find_most_intense_peak(
        spectrum_mz, spectrum_intensity,
        isotope_mz[most_abundant], tol_da[most_abundant],
    ) == -1:
        return 0.0

    observed = np.zeros(n, dtype=np.float64)
    for i in range(n):
        if envelope[i] < min_relative_intensity:
            continue
        idx = find_most_intense_peak(spectrum_mz, spectrum_intensity, isotope_mz[i], tol_da[i])
        if idx >= 0:
            observed[i] = spectrum_intensity[idx]

    return pearson_correlation(envelope, observed)


# =============================================================================
# Python Entry Point
# =============================================================================

def isotope_correlation_score(spectrum, ion, tolerance: Tolerance) -> float:
    """Correlation score of one theoretical ion against one spectrum.

    Parameters
    ----------
    spectrum : Spectrum
        Observed spectrum (peaks sorted by m/z)
    ion : Ion
        Theoretical ion (composition and charge)
    tolerance : Tolerance
        Peak matching tolerance

    Returns
    -------
    float
        Pearson correlation of theoretical and observed isotope intensities
    """
    envelope = ion.composition.isotope_envelope()
    isotope_mz = ion.isotope_mzs(len(envelope))

    tol_da = tolerance.get_tolerance_da(isotope_mz)

    return isotope_correlation(
        spectrum.mz,
        spectrum.intensity,
        isotope_mz,
        envelope,
        tol_da,
        RELATIVE_INTENSITY_THRESHOLD,
    )
