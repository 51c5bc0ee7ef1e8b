"""Match orchestration: pair identifications with spectra and score coverage.

Workflow
--------
1. Read the identification file and index identifications by scan number
2. Check that both files come from the same acquisition run
3. Stream spectra from the spectrum file; each spectrum is one unit of work
   for a thread pool
4. Each unit scores every identification of its scan and puts the processed
   matches on a queue
5. Drain the queue and sort by SpecEValue (most confident first)

Units only read shared immutable state (identification index, ion provider,
tolerance), so they need no locking. The progress counter is the only shared
mutable value and is guarded by a lock.

A cancelled run returns an empty list; callers distinguish cancellation from
"no matches" by checking their cancel event.

Examples
--------
>>> processor = ResultProcessor(IonCandidateProvider(), Tolerance(10.0))
>>> results = processor.process("run01.mzML", "run01.mzid")
>>> write_results_tsv(results, "run01.tsv")
"""

from __future__ import annotations

import logging
import math
import os
import queue
import re
import threading
from dataclasses import dataclass
from multiprocessing.pool import ThreadPool
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from .constants import ACCEPTANCE_SCORE, DEFAULT_TOLERANCE_PPM
from .exceptions import ConsistencyError
from .fragments.ions import IonCandidateProvider
from .io.identifications import Identification, group_by_scan, read_mzid
from .io.spectra import ActivationMethod, Spectrum, open_spectrum_reader
from .search.coverage import calculate_sequence_coverage
from .search.peak_matching import isotope_correlation_score
from .sequence.peptide import Sequence
from .tolerance import Tolerance

logger = logging.getLogger(__name__)

# progress(percent, message)
ProgressSink = Callable[[float, str], None]


@dataclass(frozen=True)
class ProcessedMatch:
    """Identification annotated with the sequence coverage of its spectrum."""

    scan_number: int
    sequence: Sequence
    charge: int
    frag_method: ActivationMethod
    precursor_mz: float
    de_novo_score: float
    spec_e_value: float
    e_value: float
    q_value: float
    pep_q_value: float
    isotope_error: float
    sequence_coverage: float
    msgf_score: float = np.nan
    protein: str = ""

    @property
    def peptide(self) -> str:
        return str(self.sequence)


# =============================================================================
# Progress Reporting
# =============================================================================

class ProgressReporter:
    """Thread-safe progress counter with throttled reporting.

    Parameters
    ----------
    sink : callable, optional
        sink(percent, message); nothing is reported if None
    step : float
        Minimum increase in percent between two reports (default: 1.0)
    """

    def __init__(self, sink: Optional[ProgressSink] = None, step: float = 1.0):
        self.sink = sink
        self.step = step
        self._lock = threading.Lock()
        self._count = 0
        self._total = 0
        self._last_reported = 0.0

    def report(self, percent: float, message: str):
        if self.sink is not None:
            self.sink(percent, message)

    def start(self, total: int):
        with self._lock:
            self._count = 0
            self._total = total
            self._last_reported = 0.0

    @property
    def count(self) -> int:
        return self._count

    def advance(self, message: str = ""):
        """Count one finished unit; report if progress moved by at least one step."""
        with self._lock:
            self._count += 1
            if self._total <= 0:
                return
            percent = 100.0 * min(self._count, self._total) / self._total
            if percent - self._last_reported < self.step and self._count < self._total:
                return
            self._last_reported = percent
            # Report under the lock so percentages reach the sink in order
            self.report(percent, message)


# =============================================================================
# Run Name Consistency
# =============================================================================

def derive_run_name(path: Union[str, Path], strip_dta: bool = False) -> str:
    """Acquisition run name from a file path or mzIdentML location.

    Removes the directory (POSIX or Windows separators), a trailing .gz and
    the file extension. With strip_dta, everything from the last '_dta' is
    removed as well (MS-GF+ run on converted _dta.txt files).

    Examples
    --------
    >>> derive_run_name("/data/foo.raw")
    'foo'
    >>> derive_run_name(r"C:\\data\\foo_dta.mzid", strip_dta=True)
    'foo'
    """
    name = re.split(r"[\\/]", str(path))[-1]
    if name.lower().endswith('.gz'):
        name = name[:-3]
    if '.' in name:
        name = name.rsplit('.', 1)[0]
    if strip_dta:
        dta_index = name.rfind('_dta')
        if dta_index >= 0:
            name = name[:dta_index]
    return name


def check_consistency(raw_path, id_path, spectrum_file: str):
    """Raise ConsistencyError unless both files name the same run."""
    raw_name = derive_run_name(raw_path)
    id_name = derive_run_name(spectrum_file, strip_dta=True)
    if raw_name != id_name:
        raise ConsistencyError(str(raw_path), str(id_path), raw_name, id_name)


def _confidence_key(match: ProcessedMatch) -> Tuple[float, int]:
    spec_e_value = match.spec_e_value
    if np.isnan(spec_e_value):
        spec_e_value = math.inf
    return (spec_e_value, match.scan_number)


# =============================================================================
# Orchestrator
# =============================================================================

class ResultProcessor:
    """Compute sequence coverage for every identification of a run.

    Parameters
    ----------
    ion_provider : IonCandidateProvider, optional
        Ion types to test (default: a, b, c, x, y, z without neutral losses)
    tolerance : Tolerance, optional
        Fragment tolerance (default: 10 ppm)
    n_threads : int, optional
        Worker threads (default: number of CPUs)
    scorer : callable, optional
        scorer(spectrum, ion, tolerance) -> float
    threshold : float, optional
        Acceptance score for a fragment ion (default: 0.7)
    identification_reader : callable, optional
        reader(path, cancel_event) -> IdentificationSet (default: read_mzid)
    spectrum_reader_factory : callable, optional
        factory(path) -> spectrum reader context manager
        (default: open_spectrum_reader)
    """

    def __init__(
        self,
        ion_provider: Optional[IonCandidateProvider] = None,
        tolerance: Optional[Tolerance] = None,
        n_threads: Optional[int] = None,
        scorer=isotope_correlation_score,
        threshold: float = ACCEPTANCE_SCORE,
        identification_reader=read_mzid,
        spectrum_reader_factory=open_spectrum_reader,
    ):
        self.ion_provider = ion_provider or IonCandidateProvider()
        self.tolerance = tolerance or Tolerance(DEFAULT_TOLERANCE_PPM)
        self.n_threads = max(1, n_threads or os.cpu_count() or 1)
        self.scorer = scorer
        self.threshold = threshold
        self.identification_reader = identification_reader
        self.spectrum_reader_factory = spectrum_reader_factory

    def process(
        self,
        raw_path: Union[str, Path],
        id_path: Union[str, Path],
        cancel_event: Optional[threading.Event] = None,
        progress: Optional[ProgressSink] = None,
    ) -> List[ProcessedMatch]:
        """Score all identifications against their spectra.

        Parameters
        ----------
        raw_path : str or Path
            Spectrum file (mzML or MGF)
        id_path : str or Path
            Identification file (mzIdentML)
        cancel_event : threading.Event, optional
            Set from another thread to stop processing
        progress : callable, optional
            progress(percent, message), called from worker threads

        Returns
        -------
        List[ProcessedMatch]
            Sorted by SpecEValue ascending, then scan number; empty if the
            run was cancelled

        Raises
        ------
        ConsistencyError
            If the files belong to different runs (before any spectrum is read)
        SourceReadError
            If either file cannot be read
        """
        if cancel_event is None:
            cancel_event = threading.Event()
        reporter = ProgressReporter(progress)

        # Immediate feedback before heavy I/O
        reporter.report(10.0, "Loading...")

        identification_set = self.identification_reader(id_path, cancel_event)
        if cancel_event.is_set():
            logger.info("Processing cancelled")
            return []

        check_consistency(raw_path, id_path, identification_set.spectrum_file)

        id_index = group_by_scan(identification_set.identifications)
        logger.info(
            f"Indexed {len(identification_set):,} identifications "
            f"on {len(id_index):,} scans"
        )

        results_queue: queue.Queue = queue.Queue()
        errors: List[BaseException] = []

        with self.spectrum_reader_factory(raw_path) as reader:
            reporter.start(reader.num_spectra)
            self._run_units(reader, id_index, cancel_event, reporter, results_queue, errors)

        if errors:
            raise errors[0]

        if cancel_event.is_set():
            logger.info("Processing cancelled, discarding partial results")
            return []

        matches = []
        while True:
            try:
                matches.extend(results_queue.get_nowait())
            except queue.Empty:
                break

        matches.sort(key=_confidence_key)
        logger.info(
            f"✓ Processed {reporter.count:,} spectra, {len(matches):,} matches scored"
        )
        return matches

    def _run_units(
        self,
        reader,
        id_index: Dict[int, Tuple[Identification, ...]],
        cancel_event: threading.Event,
        reporter: ProgressReporter,
        results_queue: queue.Queue,
        errors: List[BaseException],
    ):
        """Dispatch one unit per spectrum; at most a few units per thread are queued."""
        slots = threading.BoundedSemaphore(4 * self.n_threads)

        def on_done(_):
            slots.release()

        def on_error(err):
            errors.append(err)
            slots.release()

        with ThreadPool(self.n_threads) as pool:
            for spectrum in reader.read_all_spectra():
                if cancel_event.is_set() or errors:
                    break
                slots.acquire()
                pool.apply_async(
                    self._process_spectrum,
                    (spectrum, id_index, cancel_event, reporter, results_queue),
                    callback=on_done,
                    error_callback=on_error,
                )
            pool.close()
            pool.join()

    def _process_spectrum(
        self,
        spectrum: Spectrum,
        id_index: Dict[int, Tuple[Identification, ...]],
        cancel_event: threading.Event,
        reporter: ProgressReporter,
        results_queue: queue.Queue,
    ):
        if cancel_event.is_set():
            return

        identifications = id_index.get(spectrum.scan_number, ())
        if spectrum.is_product_spectrum and identifications:
            results_queue.put([
                self.process_identification(spectrum, identification)
                for identification in identifications
            ])

        reporter.advance(f"Scan: {spectrum.scan_number}")

    def process_identification(
        self,
        spectrum: Spectrum,
        identification: Identification,
    ) -> ProcessedMatch:
        """Score one identification against its spectrum."""
        coverage = calculate_sequence_coverage(
            spectrum,
            identification.peptide,
            identification.charge,
            self.tolerance,
            self.ion_provider,
            scorer=self.scorer,
            threshold=self.threshold,
        )
        return ProcessedMatch(
            scan_number=spectrum.scan_number,
            sequence=identification.peptide,
            charge=identification.charge,
            frag_method=spectrum.activation_method,
            precursor_mz=identification.calculated_mz,
            de_novo_score=identification.de_novo_score,
            spec_e_value=identification.spec_e_value,
            e_value=identification.e_value,
            q_value=identification.q_value,
            pep_q_value=identification.pep_q_value,
            isotope_error=identification.isotope_error,
            sequence_coverage=float(np.rint(coverage)),
            msgf_score=identification.msgf_score,
            protein=identification.protein,
        )
