"""Spectrum records and sequential spectrum file readers.

Readers wrap pyteomics parsers and convert each spectrum into a lightweight
Spectrum with m/z-sorted numpy peak arrays. They are streaming: spectra are
produced lazily by read_all_spectra(), so large runs are never fully held in
memory. Readers are context managers and must be closed on every exit path.

Supported formats
-----------------
- mzML (optionally gzipped), via pyteomics.mzml
- MGF, via pyteomics.mgf

Vendor raw files (e.g. Thermo .raw) must be converted to mzML first, for
example with ProteoWizard msconvert.

Examples
--------
>>> with open_spectrum_reader("run01.mzML") as reader:
...     print(reader.num_spectra)
...     for spectrum in reader.read_all_spectra():
...         if spectrum.is_product_spectrum:
...             print(spectrum.scan_number, len(spectrum.mz))
"""

from __future__ import annotations

import gzip
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional, Union

import numpy as np
from lxml import etree
from pyteomics import mgf, mzml
from pyteomics.auxiliary import PyteomicsError

from ..exceptions import SourceReadError

logger = logging.getLogger(__name__)

# Errors raised by the underlying parsers
PARSER_ERRORS = (PyteomicsError, etree.LxmlError, OSError, KeyError, ValueError)


class ActivationMethod(Enum):
    """MS/MS fragmentation method."""
    CID = "CID"
    HCD = "HCD"
    ETD = "ETD"
    ECD = "ECD"
    PQD = "PQD"
    UVPD = "UVPD"
    UNKNOWN = "Unknown"


# PSI-MS controlled vocabulary names for dissociation methods
_ACTIVATION_CV_NAMES = {
    'collision-induced dissociation': ActivationMethod.CID,
    'low-energy collision-induced dissociation': ActivationMethod.CID,
    'beam-type collision-induced dissociation': ActivationMethod.HCD,
    'higher energy beam-type collision-induced dissociation': ActivationMethod.HCD,
    'electron transfer dissociation': ActivationMethod.ETD,
    'electron capture dissociation': ActivationMethod.ECD,
    'pulsed q dissociation': ActivationMethod.PQD,
    'ultraviolet photodissociation': ActivationMethod.UVPD,
    'photodissociation': ActivationMethod.UVPD,
}


@dataclass(frozen=True)
class Spectrum:
    """One acquired spectrum with m/z-sorted peaks."""

    scan_number: int
    mz: np.ndarray
    intensity: np.ndarray
    ms_level: int = 2
    activation_method: ActivationMethod = ActivationMethod.UNKNOWN

    def __post_init__(self):
        mz = np.asarray(self.mz, dtype=np.float64)
        intensity = np.asarray(self.intensity, dtype=np.float64)
        if mz.shape != intensity.shape:
            raise ValueError(
                f"Scan {self.scan_number}: m/z and intensity arrays differ in length "
                f"({len(mz)} vs {len(intensity)})"
            )

        # Peak search relies on ascending m/z
        if len(mz) > 1 and np.any(np.diff(mz) < 0):
            order = np.argsort(mz, kind='stable')
            mz = mz[order]
            intensity = intensity[order]

        object.__setattr__(self, 'mz', mz)
        object.__setattr__(self, 'intensity', intensity)

    @property
    def is_product_spectrum(self) -> bool:
        """True for MS2 (and higher) spectra."""
        return self.ms_level >= 2


# =============================================================================
# Helpers
# =============================================================================

_SCAN_PATTERNS = (
    re.compile(r"\bscan=(\d+)"),
    re.compile(r"\bscanId=(\d+)"),
    re.compile(r"\bspectrum=(\d+)"),
)


def parse_scan_number(native_id: str, fallback: Optional[int] = None) -> Optional[int]:
    """Extract the scan number from a PSI native spectrum ID.

    Examples
    --------
    >>> parse_scan_number("controllerType=0 controllerNumber=1 scan=100")
    100
    >>> parse_scan_number("index=4", fallback=5)
    5
    """
    for pattern in _SCAN_PATTERNS:
        match = pattern.search(native_id)
        if match:
            return int(match.group(1))
    return fallback


def activation_from_cv(params: dict) -> ActivationMethod:
    """Map the activation cvParams of an mzML precursor to an ActivationMethod."""
    for key in params:
        method = _ACTIVATION_CV_NAMES.get(str(key).lower())
        if method is not None:
            return method
    return ActivationMethod.UNKNOWN


def _open_source(path: Path):
    if path.suffix.lower() == '.gz':
        return gzip.open(path, 'rb')
    return str(path)


def _format_suffix(path: Path) -> str:
    suffixes = [s.lower() for s in path.suffixes]
    if suffixes and suffixes[-1] == '.gz':
        suffixes = suffixes[:-1]
    return suffixes[-1] if suffixes else ''


# =============================================================================
# Readers
# =============================================================================

class _SpectrumReader:
    """Shared reader lifecycle: open, count, stream, close."""

    format_name = ""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        if not self.path.exists():
            raise SourceReadError(self.path, "file not found")

        logger.info(f"Opening {self.format_name} file: {self.path.name}")
        try:
            self._source = _open_source(self.path)
            self._reader = self._open(self._source)
            self._num_spectra = len(self._reader)
        except PARSER_ERRORS as err:
            raise SourceReadError(self.path, str(err)) from err

    def _open(self, source):
        raise NotImplementedError

    def _convert(self, record: dict, index: int) -> Spectrum:
        raise NotImplementedError

    @property
    def num_spectra(self) -> int:
        return self._num_spectra

    def read_all_spectra(self) -> Iterator[Spectrum]:
        """Stream all spectra in file order (restartable)."""
        try:
            self._reader.reset()
            for index, record in enumerate(self._reader):
                yield self._convert(record, index)
        except PARSER_ERRORS as err:
            raise SourceReadError(self.path, str(err)) from err

    def close(self):
        if self._reader is not None:
            self._reader.close()
            self._reader = None
        if not isinstance(self._source, str):
            self._source.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __len__(self):
        return self._num_spectra


class MzmlSpectrumReader(_SpectrumReader):
    """Streaming mzML reader (pyteomics.mzml)."""

    format_name = "mzML"

    def _open(self, source):
        return mzml.MzML(source)

    def _convert(self, record: dict, index: int) -> Spectrum:
        ms_level = int(record.get('ms level', 1))

        activation = ActivationMethod.UNKNOWN
        precursors = record.get('precursorList', {}).get('precursor', [])
        if precursors:
            activation = activation_from_cv(precursors[0].get('activation', {}))

        scan_number = parse_scan_number(record.get('id', ''), fallback=index + 1)
        return Spectrum(
            scan_number=scan_number,
            mz=record['m/z array'],
            intensity=record['intensity array'],
            ms_level=ms_level,
            activation_method=activation,
        )


_TPP_TITLE_SCAN = re.compile(r"\.(\d+)\.\d+\.\d+(?:\.dta)?$")


class MgfSpectrumReader(_SpectrumReader):
    """Streaming MGF reader (pyteomics.mgf). All MGF spectra are MS2.

    The scan number comes from SCANS, else from a TPP-style TITLE
    (run.scan.scan.charge), else from the 1-based position in the file. A
    position can coincide with the SCANS value of another spectrum, so the
    first use of that fallback is logged as a warning.
    """

    format_name = "MGF"
    _warned_position_fallback = False

    def _open(self, source):
        return mgf.IndexedMGF(source)

    def _convert(self, record: dict, index: int) -> Spectrum:
        params = record.get('params', {})

        scan_number = None
        if 'scans' in params:
            scan_number = int(str(params['scans']).split('-')[0])
        else:
            match = _TPP_TITLE_SCAN.search(str(params.get('title', '')))
            if match:
                scan_number = int(match.group(1))
        if scan_number is None:
            scan_number = index + 1
            if not self._warned_position_fallback:
                self._warned_position_fallback = True
                logger.warning(
                    f"{self.path.name}: spectrum {scan_number} has no SCANS or scan title, "
                    f"numbering spectra by file position (may collide with SCANS values)"
                )

        return Spectrum(
            scan_number=scan_number,
            mz=record['m/z array'],
            intensity=record['intensity array'],
            ms_level=2,
        )


_READERS = {
    '.mzml': MzmlSpectrumReader,
    '.mgf': MgfSpectrumReader,
}


def open_spectrum_reader(path: Union[str, Path]) -> _SpectrumReader:
    """Open a spectrum file with the reader matching its extension.

    Raises
    ------
    SourceReadError
        If the format is not supported or the file cannot be opened
    """
    path = Path(path)
    suffix = _format_suffix(path)
    reader_class = _READERS.get(suffix)
    if reader_class is None:
        raise SourceReadError(
            path,
            f"unsupported spectrum format '{suffix}' "
            f"(supported: {', '.join(sorted(_READERS))}; convert vendor files to mzML)",
        )
    return reader_class(path)
