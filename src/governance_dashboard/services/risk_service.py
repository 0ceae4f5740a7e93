"""
Risk Service Module

Turns a risk's impact and likelihood (each 1-5) into a rating and a
severity band, and lays risks out on the 5x5 impact/likelihood matrix.

Factors are validated where records enter the system; nothing here
clamps or rejects out-of-range values.
"""

from enum import Enum
from typing import Dict, Iterable, List, Tuple

import numpy as np

MATRIX_SIZE = 5


class SeverityBand(Enum):
    """Severity band of a risk rating, lowest first."""

    VERY_LOW = "Very Low"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def label(self) -> str:
        return self.value


# Inclusive lower bounds, checked highest first
BAND_THRESHOLDS: List[Tuple[int, SeverityBand]] = [
    (20, SeverityBand.CRITICAL),
    (15, SeverityBand.HIGH),
    (10, SeverityBand.MEDIUM),
    (5, SeverityBand.LOW),
]

# The dashboard shows four buckets; Very Low is counted as low.
DASHBOARD_BUCKETS: Dict[SeverityBand, str] = {
    SeverityBand.CRITICAL: "critical",
    SeverityBand.HIGH: "high",
    SeverityBand.MEDIUM: "medium",
    SeverityBand.LOW: "low",
    SeverityBand.VERY_LOW: "low",
}


def rate(impact: int, likelihood: int) -> int:
    """
    Rate a risk.

    Args:
        impact (int): Impact factor, 1-5.
        likelihood (int): Likelihood factor, 1-5.

    Returns:
        int: impact x likelihood, in the range 1-25.
    """
    return impact * likelihood


def classify(rating: int) -> SeverityBand:
    """
    Classify a rating into its severity band.

    Args:
        rating (int): A rating as returned by ``rate``.

    Returns:
        SeverityBand: CRITICAL for 20+, HIGH for 15-19, MEDIUM for 10-14,
        LOW for 5-9 and VERY_LOW below that.
    """
    for threshold, band in BAND_THRESHOLDS:
        if rating >= threshold:
            return band
    return SeverityBand.VERY_LOW


def dashboard_bucket(band: SeverityBand) -> str:
    """Name of the dashboard risk bucket a band is counted in."""
    return DASHBOARD_BUCKETS[band]


def band_counts(risks: Iterable) -> Dict[SeverityBand, int]:
    """Count risks per severity band, all five bands included."""
    counts = {band: 0 for band in SeverityBand}
    for risk in risks:
        counts[classify(rate(risk.impact, risk.likelihood))] += 1
    return counts


def build_matrix(risks: Iterable) -> np.ndarray:
    """Build 5x5 matrix of risk counts; row 0 is impact 5, column 0 is likelihood 1."""
    matrix = np.zeros((MATRIX_SIZE, MATRIX_SIZE), dtype=int)
    for risk in risks:
        likelihood = risk.likelihood - 1
        impact = risk.impact - 1
        if 0 <= likelihood < MATRIX_SIZE and 0 <= impact < MATRIX_SIZE:
            matrix[MATRIX_SIZE - 1 - impact, likelihood] += 1
    return matrix


def severity_grid() -> np.ndarray:
    """Ratings of every matrix cell, laid out like ``build_matrix``."""
    impacts = np.arange(MATRIX_SIZE, 0, -1).reshape(-1, 1)
    likelihoods = np.arange(1, MATRIX_SIZE + 1).reshape(1, -1)
    return impacts * likelihoods
