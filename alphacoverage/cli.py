#!python
"""CLI for alphacoverage.

The CLI only maps arguments onto CoverageConfig and ResultProcessor, so a run
behaves the same from the command line or from a notebook.
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

from tqdm import tqdm

from alphacoverage import __version__
from alphacoverage.config import CoverageConfig
from alphacoverage.constants import (
    ACCEPTANCE_SCORE,
    DEFAULT_ION_TYPES,
    DEFAULT_MAX_CHARGE,
    DEFAULT_NEUTRAL_LOSSES,
    DEFAULT_Q_VALUE_THRESHOLD,
    DEFAULT_TOLERANCE_PPM,
)
from alphacoverage.exceptions import CoverageError
from alphacoverage.io.results import default_output_path, write_results_tsv
from alphacoverage.processing import ResultProcessor

logger = logging.getLogger(__name__)

EXIT_CODE_USER_ERROR = 1
EXIT_CODE_WRONG_CLI_PARAM = 126

parser = argparse.ArgumentParser(
    prog="alphacoverage",
    description="Compute fragment ion sequence coverage for MS-GF+ identifications",
)
parser.add_argument("raw", type=str, help="Spectrum file (mzML or MGF, optionally gzipped).")
parser.add_argument("mzid", type=str, help="MS-GF+ identification file (mzid or mzid.gz).")
parser.add_argument(
    "--output",
    "-o",
    type=str,
    default=None,
    help="Output TSV path (default: <mzid stem>.tsv next to the mzid file).",
)
parser.add_argument(
    "--tolerance",
    type=float,
    default=DEFAULT_TOLERANCE_PPM,
    help="Fragment tolerance value.",
)
parser.add_argument(
    "--tolerance-unit",
    type=str,
    default="ppm",
    choices=["ppm", "da", "th"],
    help="Fragment tolerance unit.",
)
parser.add_argument(
    "--ion-types",
    nargs="+",
    default=list(DEFAULT_ION_TYPES),
    help="Base ion types to test (a b c x y z z.).",
)
parser.add_argument(
    "--neutral-losses",
    nargs="+",
    default=list(DEFAULT_NEUTRAL_LOSSES),
    help="Neutral losses to test (NoLoss H2O NH3).",
)
parser.add_argument(
    "--max-charge",
    type=int,
    default=DEFAULT_MAX_CHARGE,
    help="Highest fragment ion charge.",
)
parser.add_argument(
    "--threshold",
    type=float,
    default=ACCEPTANCE_SCORE,
    help="Isotope correlation a fragment ion must exceed to count.",
)
parser.add_argument(
    "--threads",
    type=int,
    default=None,
    help="Worker threads (default: number of CPUs).",
)
parser.add_argument(
    "--q-value",
    type=float,
    default=DEFAULT_Q_VALUE_THRESHOLD,
    help="Only write matches with QValue at or below this.",
)
parser.add_argument(
    "--proline-effect",
    action="store_true",
    help="Do not test c and z ions at bonds N-terminal to proline.",
)
parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging.")
parser.add_argument("--version", action="version", version=__version__)


def _config_from_args(args) -> CoverageConfig:
    return CoverageConfig(
        tolerance=args.tolerance,
        tolerance_unit=args.tolerance_unit,
        ion_types=tuple(args.ion_types),
        neutral_losses=tuple(args.neutral_losses),
        max_charge=args.max_charge,
        proline_effect=args.proline_effect,
        threshold=args.threshold,
        q_value_threshold=args.q_value,
        n_threads=args.threads,
    )


def _install_interrupt_handler(cancel_event: threading.Event):
    """Ctrl+C requests cancellation instead of killing the worker threads."""

    def handler(signum, frame):
        if not cancel_event.is_set():
            logger.warning("Interrupted, stopping...")
        cancel_event.set()

    return signal.signal(signal.SIGINT, handler)


def run(raw_path, id_path, output_path, config: CoverageConfig, cancel_event=None) -> int:
    """Process one spectrum/identification file pair and write the result table.

    Returns the process exit code.
    """
    if cancel_event is None:
        cancel_event = threading.Event()

    processor = ResultProcessor(
        ion_provider=config.build_ion_provider(),
        tolerance=config.build_tolerance(),
        n_threads=config.n_threads,
        threshold=config.threshold,
    )
    logger.info(f"Ion candidates: {processor.ion_provider}")
    logger.info(f"Fragment tolerance: {processor.tolerance}")

    with tqdm(total=100.0, unit="%", bar_format="{l_bar}{bar}| {postfix}") as bar:

        def on_progress(percent, message):
            bar.update(percent - bar.n)
            bar.set_postfix_str(message)

        try:
            results = processor.process(raw_path, id_path, cancel_event, on_progress)
        except CoverageError as err:
            logger.error(err)
            logger.error(f"Spectrum file: {raw_path}")
            logger.error(f"Identification file: {id_path}")
            return EXIT_CODE_USER_ERROR

    if cancel_event.is_set():
        logger.info("Cancelled, no output written")
        return 0

    if not results:
        logger.warning("No matches were scored, no output written")
        return 0

    write_results_tsv(results, output_path, config.q_value_threshold)
    return 0


def main(argv=None) -> int:
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _config_from_args(args)
        config.build_ion_provider()
    except ValueError as err:
        logger.error(err)
        return EXIT_CODE_WRONG_CLI_PARAM

    output_path = Path(args.output) if args.output else default_output_path(args.mzid)

    cancel_event = threading.Event()
    previous_handler = _install_interrupt_handler(cancel_event)
    try:
        return run(args.raw, args.mzid, output_path, config, cancel_event)
    finally:
        signal.signal(signal.SIGINT, previous_handler)


if __name__ == "__main__":
    sys.exit(main())
