"""Tests for identification records and mzIdentML field extraction.

The extraction helpers are tested on the dictionaries pyteomics.mzid yields
for SpectrumIdentificationResult/Item elements.
"""

import numpy as np
import pytest

from alphacoverage.exceptions import SourceReadError
from alphacoverage.io.identifications import (
    Identification,
    IdentificationSet,
    _scan_number,
    group_by_scan,
    parse_identification_item,
    parse_peptide,
    read_mzid,
)
from alphacoverage.sequence.peptide import Sequence


@pytest.fixture
def msgf_item():
    """SpectrumIdentificationItem as parsed with retrieve_refs=True."""
    return {
        'PeptideSequence': 'PEPTIDE',
        'Modification': [
            {'location': 4, 'monoisotopicMassDelta': 79.966331, 'name': 'Phospho'},
        ],
        'chargeState': 2,
        'calculatedMassToCharge': 440.6705,
        'MS-GF:DeNovoScore': 52,
        'MS-GF:RawScore': 48,
        'MS-GF:SpecEValue': 1.2e-12,
        'MS-GF:EValue': 3.4e-9,
        'MS-GF:QValue': 0.0,
        'MS-GF:PepQValue': 0.001,
        'IsotopeError': 1,
        'PeptideEvidenceRef': [
            {'accession': 'sp|P1|A'},
            {'accession': 'sp|P2|B'},
            {'accession': 'sp|P1|A'},
        ],
    }


class TestParsePeptide:
    """Test peptide and modification extraction."""

    def test_named_modification(self, msgf_item):
        assert str(parse_peptide(msgf_item)) == "PEPT+79.966IDE"

    def test_no_modifications(self):
        assert str(parse_peptide({'PeptideSequence': 'PEPTIDE'})) == "PEPTIDE"

    def test_terminal_locations(self):
        item = {
            'PeptideSequence': 'PEPTIDE',
            'Modification': [
                {'location': 0, 'name': 'Acetyl'},
                {'location': 8, 'name': 'Amidated'},
            ],
        }
        sequence = parse_peptide(item)
        assert sequence[0].modification.name == "Acetyl"
        assert sequence[6].modification.name == "Amidated"

    def test_modification_name_as_key(self):
        item = {
            'PeptideSequence': 'PEPMK',
            'Modification': [{'location': 4, 'Oxidation': '', 'monoisotopicMassDelta': 15.994915}],
        }
        assert parse_peptide(item)[3].modification.name == "Oxidation"

    def test_unknown_modification_by_mass(self):
        item = {
            'PeptideSequence': 'PEPTIDE',
            'Modification': [{'location': 1, 'monoisotopicMassDelta': 114.042927}],
        }
        assert str(parse_peptide(item)) == "P+114.043EPTIDE"

    def test_unknown_modification_without_mass(self):
        item = {
            'PeptideSequence': 'PEPTIDE',
            'Modification': [{'location': 1, 'name': 'Mystery'}],
        }
        with pytest.raises(ValueError):
            parse_peptide(item)

    def test_empty_sequence(self):
        with pytest.raises(ValueError):
            parse_peptide({'PeptideSequence': ''})

    def test_missing_sequence(self):
        with pytest.raises(KeyError):
            parse_peptide({})


class TestParseIdentificationItem:
    """Test conversion of MS-GF+ items into Identification records."""

    def test_all_fields(self, msgf_item):
        identification = parse_identification_item(17, msgf_item)

        assert identification.scan_number == 17
        assert str(identification.peptide) == "PEPT+79.966IDE"
        assert identification.charge == 2
        assert identification.calculated_mz == pytest.approx(440.6705)
        assert identification.de_novo_score == 52
        assert identification.msgf_score == 48
        assert identification.spec_e_value == pytest.approx(1.2e-12)
        assert identification.e_value == pytest.approx(3.4e-9)
        assert identification.q_value == 0.0
        assert identification.pep_q_value == pytest.approx(0.001)
        assert identification.isotope_error == 1
        assert identification.protein == "sp|P1|A;sp|P2|B"

    def test_missing_scores_are_nan(self):
        identification = parse_identification_item(
            1, {'PeptideSequence': 'PEPTIDE', 'chargeState': 2}
        )
        assert np.isnan(identification.spec_e_value)
        assert np.isnan(identification.q_value)
        assert np.isnan(identification.calculated_mz)
        assert identification.isotope_error == 0.0
        assert identification.protein == ""

    def test_missing_charge(self):
        with pytest.raises(KeyError):
            parse_identification_item(1, {'PeptideSequence': 'PEPTIDE'})


class TestScanNumber:
    """Test scan number lookup on SpectrumIdentificationResult."""

    def test_scan_number_param(self):
        assert _scan_number({'scan number(s)': '42', 'spectrumID': 'index=0'}) == 42

    def test_native_id(self):
        assert _scan_number({'spectrumID': 'controllerType=0 controllerNumber=1 scan=17'}) == 17

    def test_mgf_index(self):
        """0-based MGF spectrum index maps onto the 1-based reader numbering."""
        assert _scan_number({'spectrumID': 'index=3'}) == 4

    def test_unknown(self):
        assert _scan_number({'spectrumID': 'file=run01.mgf'}) is None


class TestIdentificationIndex:
    """Test grouping by scan number."""

    def test_group_by_scan_keeps_file_order(self):
        first = Identification(5, Sequence.from_string("PEPTIDE"), 2, 400.0)
        second = Identification(5, Sequence.from_string("GGGGK"), 2, 300.0)
        other = Identification(9, Sequence.from_string("AAAK"), 1, 200.0)

        index = group_by_scan([first, other, second])

        assert index == {5: (first, second), 9: (other,)}

    def test_identification_set_len(self):
        ids = tuple(
            Identification(scan, Sequence.from_string("PEPTIDE"), 2, 400.0) for scan in range(3)
        )
        assert len(IdentificationSet("run01.mzML", ids)) == 3


class TestReadMzid:
    """Test reading mzIdentML files."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceReadError) as exc_info:
            read_mzid(tmp_path / "missing.mzid")
        assert "missing.mzid" in str(exc_info.value)

    def test_msgf_file(self, mzid_file):
        identification_set = read_mzid(mzid_file)

        assert identification_set.spectrum_file.endswith("foo_dta.txt")
        assert len(identification_set) == 1

        identification = identification_set.identifications[0]
        assert identification.scan_number == 100
        assert str(identification.peptide) == "PEPTIDE"
        assert identification.charge == 2
        assert identification.calculated_mz == pytest.approx(400.687)
        assert identification.protein == "sp|P1|TEST"
        assert identification.msgf_score == 48
        assert identification.de_novo_score == 52
        assert identification.spec_e_value == pytest.approx(1.2e-12)
        assert identification.e_value == pytest.approx(3.4e-9)
        assert identification.q_value == 0.0
        assert identification.isotope_error == 0.0
