"""Identification records and the mzIdentML reader.

Parses MS-GF+ mzIdentML output (plain or gzipped) with pyteomics.mzid into
Identification records, one per SpectrumIdentificationItem. Scores are read
from the MS-GF+ specific cvParams/userParams (MS-GF:SpecEValue, ...); missing
scores become NaN.

Malformed records
-----------------
An identification without a usable scan number, or whose peptide contains a
residue or modification that cannot be interpreted, is skipped with a
warning. The reader logs how many records were skipped; the rest of the file
is still used.
"""

from __future__ import annotations

import gzip
import logging
import re
import threading
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
from lxml import etree
from pyteomics import mzid
from pyteomics.auxiliary import PyteomicsError

from ..constants import MODIFICATION_COMPOSITIONS, MODIFICATION_ALIASES
from ..exceptions import SourceReadError
from ..sequence.peptide import Modification, Sequence
from .spectra import parse_scan_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identification:
    """One peptide-spectrum match reported by the search engine."""

    scan_number: int
    peptide: Sequence
    charge: int
    calculated_mz: float
    de_novo_score: float = np.nan
    spec_e_value: float = np.nan
    e_value: float = np.nan
    q_value: float = np.nan
    pep_q_value: float = np.nan
    isotope_error: float = 0.0
    msgf_score: float = np.nan
    protein: str = ""


@dataclass(frozen=True)
class IdentificationSet:
    """Contents of one identification file."""

    spectrum_file: str
    identifications: Tuple[Identification, ...]

    def __len__(self):
        return len(self.identifications)


def group_by_scan(
    identifications,
) -> Dict[int, Tuple[Identification, ...]]:
    """Index identifications by scan number, keeping file order within a scan."""
    grouped = defaultdict(list)
    for identification in identifications:
        grouped[identification.scan_number].append(identification)
    return {scan: tuple(ids) for scan, ids in grouped.items()}


# =============================================================================
# mzIdentML Field Extraction
# =============================================================================

def _float(item: dict, key: str, default: float = np.nan) -> float:
    value = item.get(key)
    if value is None or value == '':
        return default
    return float(value)


def _modification_name(mod: dict) -> Optional[str]:
    """Name of an mzIdentML Modification element.

    pyteomics exposes the Unimod cvParam either as a 'name' entry or as a key
    named after the modification.
    """
    name = mod.get('name')
    if name:
        return str(name)
    for key in mod:
        if key in MODIFICATION_COMPOSITIONS or key in MODIFICATION_ALIASES:
            return key
    return None


def parse_peptide(item: dict) -> Sequence:
    """Build a Sequence from a SpectrumIdentificationItem with resolved Peptide refs.

    mzIdentML locations are 1-based; location 0 (N-terminus) is placed on the
    first residue and location n+1 (C-terminus) on the last.

    Raises
    ------
    ValueError
        If the peptide sequence or one of its modifications cannot be interpreted
    KeyError
        If the item has no peptide sequence
    """
    peptide = item['PeptideSequence']
    if not peptide:
        raise ValueError("empty peptide sequence")

    modifications = []
    for mod in item.get('Modification', []):
        location = int(mod.get('location', 0))
        position = min(max(location - 1, 0), len(peptide) - 1)
        mass = mod.get('monoisotopicMassDelta')
        modification = Modification.resolve(
            _modification_name(mod), None if mass is None else float(mass)
        )
        modifications.append((position, modification))

    return Sequence.from_modifications(peptide, modifications)


_INDEX_ID = re.compile(r"\bindex=(\d+)")


def _scan_number(result: dict) -> Optional[int]:
    scans = result.get('scan number(s)')
    if scans is not None and str(scans).strip():
        return int(float(str(scans).split(',')[0]))

    spectrum_id = str(result.get('spectrumID', ''))
    scan_number = parse_scan_number(spectrum_id)
    if scan_number is None:
        # 0-based spectrum index (MGF input); MGF readers number spectra from 1
        match = _INDEX_ID.search(spectrum_id)
        if match:
            scan_number = int(match.group(1)) + 1
    return scan_number


def _protein(item: dict) -> str:
    evidence = item.get('PeptideEvidenceRef', [])
    accessions = [ev.get('accession') for ev in evidence if ev.get('accession')]
    return ';'.join(dict.fromkeys(accessions))


def parse_identification_item(scan_number: int, item: dict) -> Identification:
    """Convert one SpectrumIdentificationItem into an Identification."""
    return Identification(
        scan_number=scan_number,
        peptide=parse_peptide(item),
        charge=int(item['chargeState']),
        calculated_mz=_float(item, 'calculatedMassToCharge'),
        de_novo_score=_float(item, 'MS-GF:DeNovoScore'),
        spec_e_value=_float(item, 'MS-GF:SpecEValue'),
        e_value=_float(item, 'MS-GF:EValue'),
        q_value=_float(item, 'MS-GF:QValue'),
        pep_q_value=_float(item, 'MS-GF:PepQValue'),
        isotope_error=_float(item, 'IsotopeError', 0.0),
        msgf_score=_float(item, 'MS-GF:RawScore'),
        protein=_protein(item),
    )


# =============================================================================
# Reader
# =============================================================================

def read_mzid(
    mzid_path: Union[str, Path],
    cancel_event: Optional[threading.Event] = None,
) -> IdentificationSet:
    """Read all identifications from an mzIdentML file.

    Parameters
    ----------
    mzid_path : str or Path
        Path to .mzid or .mzid.gz file
    cancel_event : threading.Event, optional
        Parsing stops early once this is set; the partial set is returned and
        the caller is expected to check the event

    Returns
    -------
    IdentificationSet
        Name of the searched spectrum file and all identifications in file order

    Raises
    ------
    SourceReadError
        If the file does not exist or is not valid mzIdentML
    """
    mzid_path = Path(mzid_path)
    if not mzid_path.exists():
        raise SourceReadError(mzid_path, "file not found")

    logger.info(f"Reading identification file: {mzid_path.name}")

    source = gzip.open(mzid_path, 'rb') if mzid_path.suffix.lower() == '.gz' else str(mzid_path)
    identifications: List[Identification] = []
    n_skipped = 0

    try:
        with mzid.MzIdentML(source, retrieve_refs=True) as reader:
            spectra_data = next(reader.iterfind('SpectraData'), None)
            if spectra_data is None:
                raise SourceReadError(mzid_path, "no SpectraData element")
            spectrum_file = str(spectra_data.get('location') or spectra_data.get('name', ''))

            for result in reader.iterfind('SpectrumIdentificationResult'):
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Identification parsing cancelled")
                    break

                scan_number = _scan_number(result)
                for item in result.get('SpectrumIdentificationItem', []):
                    if scan_number is None:
                        n_skipped += 1
                        logger.warning(
                            f"Skipping identification without scan number: "
                            f"{result.get('spectrumID')}"
                        )
                        continue
                    try:
                        identifications.append(parse_identification_item(scan_number, item))
                    except (KeyError, ValueError) as err:
                        n_skipped += 1
                        logger.warning(f"Skipping malformed identification at scan {scan_number}: {err}")
    except (PyteomicsError, etree.LxmlError, OSError) as err:
        raise SourceReadError(mzid_path, str(err)) from err
    finally:
        if not isinstance(source, str):
            source.close()

    if n_skipped:
        logger.warning(f"Skipped {n_skipped:,} malformed identifications in {mzid_path.name}")
    logger.info(f"✓ Read {len(identifications):,} identifications from {mzid_path.name}")

    return IdentificationSet(spectrum_file, tuple(identifications))
