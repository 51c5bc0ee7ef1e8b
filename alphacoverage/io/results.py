"""Tab-separated output of processed matches."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

import pandas as pd

from ..constants import DEFAULT_Q_VALUE_THRESHOLD

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    'ResultID', 'Scan', 'FragMethod', 'Charge', 'PrecursorMZ', 'Peptide', 'Protein',
    'DeNovoScore', 'MSGFScore', 'SpecEValue', 'EValue', 'QValue', 'PepQValue',
    'IsotopeError', 'SequenceCoverage',
]


def results_to_dataframe(
    results: Iterable,
    q_value_threshold: Optional[float] = DEFAULT_Q_VALUE_THRESHOLD,
) -> pd.DataFrame:
    """Tabulate processed matches in output column order.

    Matches with a q-value above the threshold are left out; ResultID numbers
    the remaining rows consecutively from 1. Sequence coverage is an integer
    column with missing values for peptides without cleavage sites.
    """
    rows = [
        {
            'Scan': result.scan_number,
            'FragMethod': result.frag_method.value,
            'Charge': result.charge,
            'PrecursorMZ': result.precursor_mz,
            'Peptide': str(result.sequence),
            'Protein': result.protein,
            'DeNovoScore': result.de_novo_score,
            'MSGFScore': result.msgf_score,
            'SpecEValue': result.spec_e_value,
            'EValue': result.e_value,
            'QValue': result.q_value,
            'PepQValue': result.pep_q_value,
            'IsotopeError': result.isotope_error,
            'SequenceCoverage': result.sequence_coverage,
        }
        for result in results
        # NaN q-values compare False and are kept
        if q_value_threshold is None or not result.q_value > q_value_threshold
    ]

    df = pd.DataFrame(rows, columns=RESULT_COLUMNS[1:])
    df.insert(0, 'ResultID', range(1, len(df) + 1))
    df['SequenceCoverage'] = df['SequenceCoverage'].astype(float).round().astype('Int64')
    return df


def write_results_tsv(
    results: Iterable,
    output_path: Union[str, Path],
    q_value_threshold: Optional[float] = DEFAULT_Q_VALUE_THRESHOLD,
) -> int:
    """Write processed matches to a TSV file.

    Parameters
    ----------
    results : iterable of ProcessedMatch
        Sorted result set from ResultProcessor.process()
    output_path : str or Path
        Destination file (overwritten)
    q_value_threshold : float or None
        Matches with a larger q-value are left out (default: 0.01).
        None writes everything.

    Returns
    -------
    int
        Number of rows written
    """
    output_path = Path(output_path)

    df = results_to_dataframe(results, q_value_threshold)
    df.to_csv(output_path, sep='\t', index=False, na_rep='NaN')

    logger.info(f"✓ Wrote {len(df):,} results to {output_path.name}")
    return len(df)


def default_output_path(id_path: Union[str, Path]) -> Path:
    """Output path next to the identification file: run.mzid(.gz) → run.tsv.

    Examples
    --------
    >>> default_output_path("/data/run01.mzid.gz").name
    'run01.tsv'
    """
    id_path = Path(id_path)
    name = id_path.name
    if name.lower().endswith('.gz'):
        name = name[:-3]
    if name.lower().endswith('.mzid'):
        name = name[:-5]
    else:
        name = Path(name).stem
    return id_path.with_name(f"{name}.tsv")
