"""Run parameters for sequence coverage processing."""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .constants import (
    ACCEPTANCE_SCORE,
    DEFAULT_ION_TYPES,
    DEFAULT_MAX_CHARGE,
    DEFAULT_NEUTRAL_LOSSES,
    DEFAULT_Q_VALUE_THRESHOLD,
    DEFAULT_TOLERANCE_PPM,
)
from .fragments.ions import IonCandidateProvider
from .tolerance import Tolerance, ToleranceUnit


@dataclass
class CoverageConfig:
    """Parameters for one coverage run.

    Defaults reproduce the standard MS-GF+ post-processing setup: 10 ppm
    fragment tolerance, a/b/c/x/y/z ions without neutral losses up to charge
    10, acceptance score 0.7 and a 1% q-value cutoff for the output table.
    """

    # Fragment tolerance
    tolerance: float = DEFAULT_TOLERANCE_PPM
    tolerance_unit: str = "ppm"

    # Ion candidates
    ion_types: Tuple[str, ...] = DEFAULT_ION_TYPES
    neutral_losses: Tuple[str, ...] = DEFAULT_NEUTRAL_LOSSES
    max_charge: int = DEFAULT_MAX_CHARGE
    proline_effect: bool = False  # Suppress c/z ions N-terminal to proline

    # Scoring and output
    threshold: float = ACCEPTANCE_SCORE
    q_value_threshold: float = DEFAULT_Q_VALUE_THRESHOLD

    n_threads: Optional[int] = field(default_factory=os.cpu_count)

    def __post_init__(self):
        self.ion_types = tuple(self.ion_types)
        self.neutral_losses = tuple(self.neutral_losses)

        if self.tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {self.tolerance}")
        ToleranceUnit.from_string(self.tolerance_unit)
        if not self.ion_types:
            raise ValueError("at least one ion type is required")
        if self.max_charge < 1:
            raise ValueError(f"max_charge must be at least 1, got {self.max_charge}")
        if not -1.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be a correlation in [-1, 1], got {self.threshold}")
        if self.q_value_threshold < 0:
            raise ValueError(
                f"q_value_threshold must be non-negative, got {self.q_value_threshold}"
            )
        if self.n_threads is not None and self.n_threads < 1:
            raise ValueError(f"n_threads must be at least 1, got {self.n_threads}")

    def build_tolerance(self) -> Tolerance:
        return Tolerance(self.tolerance, ToleranceUnit.from_string(self.tolerance_unit))

    def build_ion_provider(self) -> IonCandidateProvider:
        """Ion candidates for the selected types, losses and charges.

        Raises
        ------
        ValueError
            If an ion type or neutral loss name is unknown
        """
        return IonCandidateProvider(
            ion_types=self.ion_types,
            neutral_losses=self.neutral_losses,
            max_charge=self.max_charge,
            proline_effect=self.proline_effect,
        )
