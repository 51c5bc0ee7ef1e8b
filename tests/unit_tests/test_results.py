"""Tests for the TSV result writer."""

import numpy as np
import pandas as pd
import pytest

from alphacoverage.io.results import (
    RESULT_COLUMNS,
    default_output_path,
    results_to_dataframe,
    write_results_tsv,
)
from alphacoverage.io.spectra import ActivationMethod
from alphacoverage.processing import ProcessedMatch
from alphacoverage.sequence.peptide import Sequence


def _match(scan, q_value=0.0, coverage=33.0, peptide="PEPT+79.966IDE"):
    return ProcessedMatch(
        scan_number=scan,
        sequence=Sequence.from_string(peptide),
        charge=2,
        frag_method=ActivationMethod.HCD,
        precursor_mz=440.6705,
        de_novo_score=52.0,
        spec_e_value=1.5e-12,
        e_value=3.4e-9,
        q_value=q_value,
        pep_q_value=0.001,
        isotope_error=0.0,
        sequence_coverage=coverage,
        msgf_score=48.0,
        protein="sp|P1|A",
    )


def _read_table(path):
    """Read the TSV back as raw strings."""
    return pd.read_csv(path, sep='\t', dtype=str, keep_default_na=False)


class TestResultsToDataframe:
    """Test tabulation and q-value filtering."""

    def test_columns(self):
        df = results_to_dataframe([_match(5)])
        assert list(df.columns) == RESULT_COLUMNS
        assert df['ResultID'].tolist() == [1]

    def test_q_value_filter(self):
        results = [_match(1, q_value=0.0), _match(2, q_value=0.05), _match(3, q_value=0.01)]

        df = results_to_dataframe(results, q_value_threshold=0.01)

        assert df['Scan'].tolist() == [1, 3]
        # Consecutive ids after filtering
        assert df['ResultID'].tolist() == [1, 2]

    def test_nan_q_value_kept(self):
        df = results_to_dataframe([_match(1, q_value=np.nan)], q_value_threshold=0.01)
        assert len(df) == 1

    def test_no_filter(self):
        results = [_match(1, q_value=0.5), _match(2, q_value=0.9)]
        assert len(results_to_dataframe(results, q_value_threshold=None)) == 2

    def test_coverage_is_integer_column(self):
        df = results_to_dataframe([_match(1, coverage=33.0), _match(2, coverage=np.nan, peptide="K")])
        assert df['SequenceCoverage'].iloc[0] == 33
        assert pd.isna(df['SequenceCoverage'].iloc[1])

    def test_empty(self):
        df = results_to_dataframe([])
        assert list(df.columns) == RESULT_COLUMNS
        assert len(df) == 0


class TestWriteResultsTsv:
    """Test the written file."""

    def test_header_and_row(self, tmp_path):
        path = tmp_path / "run01.tsv"

        n_written = write_results_tsv([_match(5)], path)

        table = _read_table(path)
        assert n_written == 1
        assert list(table.columns) == RESULT_COLUMNS
        row = table.iloc[0]
        assert row['ResultID'] == '1'
        assert row['Scan'] == '5'
        assert row['FragMethod'] == 'HCD'
        assert row['Charge'] == '2'
        assert float(row['PrecursorMZ']) == pytest.approx(440.6705)
        assert row['Peptide'] == 'PEPT+79.966IDE'
        assert row['Protein'] == 'sp|P1|A'
        assert float(row['DeNovoScore']) == 52.0
        assert float(row['MSGFScore']) == 48.0
        assert float(row['SpecEValue']) == pytest.approx(1.5e-12)
        assert row['SequenceCoverage'] == '33'

    def test_nan_written_as_nan(self, tmp_path):
        path = tmp_path / "run01.tsv"
        write_results_tsv([_match(1, coverage=np.nan, peptide="K")], path)
        assert _read_table(path).iloc[0]['SequenceCoverage'] == 'NaN'

    def test_empty(self, tmp_path):
        path = tmp_path / "run01.tsv"
        assert write_results_tsv([], path) == 0
        assert path.read_text().splitlines() == ['\t'.join(RESULT_COLUMNS)]


class TestDefaultOutputPath:
    """Test output file naming."""

    def test_mzid(self, tmp_path):
        assert default_output_path(tmp_path / "run01.mzid") == tmp_path / "run01.tsv"

    def test_gzipped_mzid(self, tmp_path):
        assert default_output_path(tmp_path / "run01.mzid.gz") == tmp_path / "run01.tsv"

    def test_other_extension(self, tmp_path):
        assert default_output_path(tmp_path / "run01.xml") == tmp_path / "run01.tsv"
