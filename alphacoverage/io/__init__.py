"""Spectrum, identification and result file I/O.

Readers are thin adapters around pyteomics; every parser failure surfaces as
SourceReadError carrying the offending path.
"""

from .spectra import (
    ActivationMethod,
    Spectrum,
    MzmlSpectrumReader,
    MgfSpectrumReader,
    open_spectrum_reader,
    parse_scan_number,
)

from .identifications import (
    Identification,
    IdentificationSet,
    read_mzid,
    group_by_scan,
)

from .results import (
    results_to_dataframe,
    write_results_tsv,
    default_output_path,
    RESULT_COLUMNS,
)

__all__ = [
    # Spectra
    'ActivationMethod',
    'Spectrum',
    'MzmlSpectrumReader',
    'MgfSpectrumReader',
    'open_spectrum_reader',
    'parse_scan_number',
    # Identifications
    'Identification',
    'IdentificationSet',
    'read_mzid',
    'group_by_scan',
    # Results
    'results_to_dataframe',
    'write_results_tsv',
    'default_output_path',
    'RESULT_COLUMNS',
]
