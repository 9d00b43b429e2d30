"""
Quality assessment - banded score over the measured dimensions of a run
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from models.enums import QualityRating
from models.results import EnhancedSummary

# (threshold, points) bands, first match wins
Bands = Sequence[Tuple[float, int]]

SUCCESS_RATE_BANDS: Bands = ((90, 25), (80, 20), (70, 15))
EXECUTION_TIME_BANDS: Bands = ((1000, 20), (2000, 15), (3000, 10))
ERROR_RATE_BANDS: Bands = ((1, 20), (3, 15), (5, 10))
HEALTH_RATE_BANDS: Bands = ((95, 15), (90, 12), (80, 8))
COVERAGE_BANDS: Bands = ((90, 20), (80, 15), (70, 10))

RECOMMENDATIONS = {
    "success_rate": "Improve matrix testing success rate by reviewing failed combinations",
    "execution_time": "Optimize performance to reduce execution time below 2 seconds",
    "error_rate": "Investigate and fix load testing errors to reduce error rate below 3%",
    "health_rate": "Improve external service health and reliability",
    "coverage": "Increase test coverage by adding more test scenarios and paths",
}


@dataclass
class QualityAssessment:
    score: float
    rating: QualityRating
    recommendations: List[str] = field(default_factory=list)
    points: Dict[str, int] = field(default_factory=dict)


def band_points(value: float, bands: Bands, higher_is_better: bool = True) -> int:
    """Points of the first band the value reaches, 0 if none"""
    for threshold, points in bands:
        if (value >= threshold) if higher_is_better else (value <= threshold):
            return points
    return 0


def _weight(bands: Bands) -> int:
    return bands[0][1]


def assess_quality(summary: EnhancedSummary) -> QualityAssessment:
    """
    Score a run summary

    Only dimensions present in the summary count: the score is points
    earned over the weights of the measured criteria, times 100.
    """
    criteria: List[Tuple[str, float, Bands, bool, Callable[[float], bool]]] = [
        ("success_rate", summary.success_rate, SUCCESS_RATE_BANDS, True, lambda v: v < 90)
    ]

    if summary.performance_metrics is not None:
        criteria.append((
            "execution_time", summary.performance_metrics.execution_time,
            EXECUTION_TIME_BANDS, False, lambda v: v > 2000
        ))
    if summary.load_test_metrics is not None:
        criteria.append((
            "error_rate", summary.load_test_metrics.error_rate,
            ERROR_RATE_BANDS, False, lambda v: v > 3
        ))

    health_rate: Optional[float] = None
    if summary.integration_metrics is not None:
        health_rate = summary.integration_metrics.health_rate
    if health_rate is not None:
        criteria.append(("health_rate", health_rate, HEALTH_RATE_BANDS, True, lambda v: v < 90))

    if summary.coverage_metrics is not None:
        criteria.append((
            "coverage", summary.coverage_metrics.coverage_percentage,
            COVERAGE_BANDS, True, lambda v: v < 80
        ))

    points: Dict[str, int] = {}
    recommendations: List[str] = []
    total_weight = 0

    for name, value, bands, higher_is_better, needs_attention in criteria:
        points[name] = band_points(value, bands, higher_is_better)
        total_weight += _weight(bands)
        if needs_attention(value):
            recommendations.append(RECOMMENDATIONS[name])

    score = sum(points.values()) / total_weight * 100 if total_weight else 0.0
    return QualityAssessment(
        score=score,
        rating=QualityRating.for_percentage(score),
        recommendations=recommendations,
        points=points
    )
