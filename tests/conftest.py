"""Pytest configuration for AlphaCoverage tests.

This module provides common fixtures: sequences, ion providers, a builder
for synthetic MS2 spectra whose peaks are the theoretical isotope envelopes
of chosen fragment ions, and small MS-GF+ mzIdentML and mzML files.
"""

import base64

import numpy as np
import pytest

from alphacoverage.fragments.ions import BASE_ION_TYPES, Ion, IonCandidateProvider
from alphacoverage.io.spectra import ActivationMethod, Spectrum
from alphacoverage.sequence.peptide import Sequence
from alphacoverage.tolerance import Tolerance


@pytest.fixture
def peptide():
    """Simple peptide for basic tests."""
    return Sequence.from_string("PEPTIDE")


@pytest.fixture
def by_provider():
    """Singly charged b and y ions without neutral losses."""
    return IonCandidateProvider(['b', 'y'], ['NoLoss'], max_charge=1)


@pytest.fixture
def tolerance():
    """10 ppm fragment tolerance."""
    return Tolerance(10.0)


@pytest.fixture
def fragment_ion():
    """Build the singly charged ion of one fragment.

    fragment_ion(sequence, 'b', 2) is the b2 ion, fragment_ion(sequence, 'y', 3)
    the y3 ion.
    """

    def build(sequence, ion_type, length, charge=1):
        base = BASE_ION_TYPES[ion_type]
        prefixes = sequence.prefix_compositions()
        if base.is_prefix:
            composition = prefixes[length]
        else:
            composition = prefixes[-1] - prefixes[len(sequence) - length]
        return Ion(composition + base.offset, charge)

    return build


@pytest.fixture
def spectrum_from_ions():
    """Build a spectrum containing the full isotope envelope of each ion.

    Noise peaks (m/z, intensity) can be added with `extra_peaks`.
    """

    def build(ions, scan_number=1, base_intensity=1e6, ms_level=2,
              extra_peaks=(), activation_method=ActivationMethod.HCD):
        mz = []
        intensity = []
        for ion in ions:
            envelope = ion.composition.isotope_envelope()
            mz.extend(ion.isotope_mzs(len(envelope)))
            intensity.extend(envelope * base_intensity)
        for peak_mz, peak_intensity in extra_peaks:
            mz.append(peak_mz)
            intensity.append(peak_intensity)
        return Spectrum(
            scan_number=scan_number,
            mz=np.array(mz, dtype=np.float64),
            intensity=np.array(intensity, dtype=np.float64),
            ms_level=ms_level,
            activation_method=activation_method,
        )

    return build


# Random seed for reproducibility
@pytest.fixture(scope="session", autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)


# =============================================================================
# Search Output Files
# =============================================================================

def _encode_array(values):
    return base64.b64encode(np.asarray(values, dtype='<f8').tobytes()).decode()


def _binary_array(values, name, accession):
    return (
        f'<binaryDataArray encodedLength="0">'
        f'<cvParam cvRef="MS" accession="MS:1000523" name="64-bit float"/>'
        f'<cvParam cvRef="MS" accession="MS:1000576" name="no compression"/>'
        f'<cvParam cvRef="MS" accession="{accession}" name="{name}"/>'
        f'<binary>{_encode_array(values)}</binary></binaryDataArray>'
    )


def _mzml_spectrum(index, scan, mz, intensity, ms_level, activation=""):
    precursor = ""
    if activation:
        precursor = (
            '<precursorList count="1"><precursor><activation>'
            f'<cvParam cvRef="MS" accession="MS:1000422" name="{activation}"/>'
            '</activation></precursor></precursorList>'
        )
    return (
        f'<spectrum index="{index}" id="controllerType=0 controllerNumber=1 scan={scan}" '
        f'defaultArrayLength="{len(mz)}">'
        f'<cvParam cvRef="MS" accession="MS:1000511" name="ms level" value="{ms_level}"/>'
        f'{precursor}<binaryDataArrayList count="2">'
        f'{_binary_array(mz, "m/z array", "MS:1000514")}'
        f'{_binary_array(intensity, "intensity array", "MS:1000515")}'
        '</binaryDataArrayList></spectrum>'
    )


MZID_TEMPLATE = r"""<?xml version="1.0" encoding="UTF-8"?>
<MzIdentML id="MS-GF+" version="1.1.0" xmlns="http://psidev.info/psi/pi/mzIdentML/1.1">
<SequenceCollection>
<DBSequence id="DBSeq1" accession="sp|P1|TEST" searchDatabase_ref="SearchDB_1" length="20"/>
<Peptide id="Pep1"><PeptideSequence>PEPTIDE</PeptideSequence></Peptide>
<PeptideEvidence id="PepEv_1" dBSequence_ref="DBSeq1" peptide_ref="Pep1" start="1" end="7" pre="K" post="A" isDecoy="false"/>
</SequenceCollection>
<DataCollection>
<Inputs>
<SearchDatabase id="SearchDB_1" location="db.fasta"/>
<SpectraData location="C:\data\{spectrum_file}" id="SID_1" name="{spectrum_file}"/>
</Inputs>
<AnalysisData>
<SpectrumIdentificationList id="SI_LIST_1">
<SpectrumIdentificationResult spectrumID="index=4" spectraData_ref="SID_1" id="SIR_1">
<SpectrumIdentificationItem chargeState="2" experimentalMassToCharge="400.69" calculatedMassToCharge="400.687" peptide_ref="Pep1" rank="1" passThreshold="true" id="SII_1_1">
<PeptideEvidenceRef peptideEvidence_ref="PepEv_1"/>
<cvParam cvRef="PSI-MS" accession="MS:1002049" name="MS-GF:RawScore" value="48"/>
<cvParam cvRef="PSI-MS" accession="MS:1002050" name="MS-GF:DeNovoScore" value="52"/>
<cvParam cvRef="PSI-MS" accession="MS:1002052" name="MS-GF:SpecEValue" value="1.2E-12"/>
<cvParam cvRef="PSI-MS" accession="MS:1002053" name="MS-GF:EValue" value="3.4E-9"/>
<cvParam cvRef="PSI-MS" accession="MS:1002054" name="MS-GF:QValue" value="0.0"/>
<cvParam cvRef="PSI-MS" accession="MS:1002055" name="MS-GF:PepQValue" value="0.0"/>
<userParam name="IsotopeError" value="0"/>
</SpectrumIdentificationItem>
<cvParam cvRef="PSI-MS" accession="MS:1003062" name="scan number(s)" value="100"/>
</SpectrumIdentificationResult>
</SpectrumIdentificationList>
</AnalysisData>
</DataCollection>
</MzIdentML>
"""


@pytest.fixture
def mzml_file(tmp_path, peptide, fragment_ion, spectrum_from_ions):
    """foo.mzML with an MS1 scan 99 and an HCD MS2 scan 100.

    Scan 100 holds the b2 and y3 envelopes of PEPTIDE.
    """
    ms2 = spectrum_from_ions([fragment_ion(peptide, 'b', 2), fragment_ion(peptide, 'y', 3)])
    spectra = (
        _mzml_spectrum(0, 99, [500.0], [1.0], 1)
        + _mzml_spectrum(
            1, 100, ms2.mz, ms2.intensity, 2,
            "beam-type collision-induced dissociation",
        )
    )
    path = tmp_path / "foo.mzML"
    path.write_text(
        '<?xml version="1.0" encoding="utf-8"?>\n'
        '<mzML xmlns="http://psi.hupo.org/ms/mzml" version="1.1.0">'
        '<cvList count="1"><cv id="MS" fullName="PSI-MS" URI="x"/></cvList>'
        f'<run id="foo"><spectrumList count="2">{spectra}</spectrumList></run></mzML>\n'
    )
    return path


@pytest.fixture
def mzid_file(tmp_path):
    """MS-GF+ foo.mzid with one PEPTIDE 2+ match at scan 100, searched on foo_dta.txt."""
    path = tmp_path / "foo.mzid"
    path.write_text(MZID_TEMPLATE.replace("{spectrum_file}", "foo_dta.txt"))
    return path
