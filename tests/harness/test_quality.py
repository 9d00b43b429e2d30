"""
Quality score bands, normalisation and recommendations
"""

import pytest

from models.enums import QualityRating
from models.results import EnhancedSummary
from models.testing import CoverageMetrics, IntegrationTestResult, LoadTestResult, PerformanceMetrics
from matrix_engine.quality import RECOMMENDATIONS, assess_quality, band_points, SUCCESS_RATE_BANDS


def make_summary(success_rate, **kwargs):
    return EnhancedSummary(
        total_combinations=10,
        passed_combinations=int(success_rate / 10),
        failed_combinations=10 - int(success_rate / 10),
        success_rate=success_rate,
        **kwargs
    )


def load_result(error_rate):
    return LoadTestResult(
        total_requests=100, successful_requests=100, failed_requests=0,
        average_response_time=10, p95_response_time=20, p99_response_time=30,
        throughput=10, error_rate=error_rate, concurrent_users=10
    )


def coverage_result(percentage):
    return CoverageMetrics(
        scenarios_covered=1, total_scenarios=1, parameter_combinations=1,
        test_paths=["a"], uncovered_paths=[], coverage_percentage=percentage
    )


@pytest.mark.parametrize("value,points", [(95, 25), (90, 25), (85, 20), (70, 15), (69.9, 0)])
def test_success_rate_bands(value, points):
    assert band_points(value, SUCCESS_RATE_BANDS) == points


def test_success_rate_only_is_normalised_by_its_own_weight():
    assessment = assess_quality(make_summary(85))
    assert assessment.score == pytest.approx(80.0)
    assert assessment.rating == QualityRating.GOOD
    assert assessment.recommendations == [RECOMMENDATIONS["success_rate"]]


def test_all_dimensions_excellent():
    summary = make_summary(
        100,
        performance_metrics=PerformanceMetrics(execution_time=500, memory_usage=0, cpu_usage=0),
        load_test_metrics=load_result(0.5),
        integration_metrics=IntegrationTestResult(
            service_health={"a": True, "b": True}, api_response_times={}, mock_mode_used=True,
            external_dependencies=["a", "b"], integration_points=[]
        ),
        coverage_metrics=coverage_result(100)
    )
    assessment = assess_quality(summary)

    assert assessment.score == 100.0
    assert assessment.rating == QualityRating.EXCELLENT
    assert assessment.recommendations == []


def test_mixed_bands():
    summary = make_summary(
        75,
        performance_metrics=PerformanceMetrics(execution_time=2500, memory_usage=0, cpu_usage=0),
        load_test_metrics=load_result(4),
        integration_metrics=IntegrationTestResult(
            service_health={"a": True, "b": False}, api_response_times={}, mock_mode_used=True,
            external_dependencies=["a"], integration_points=[]
        ),
        coverage_metrics=coverage_result(75)
    )
    assessment = assess_quality(summary)

    # 15 + 10 + 10 + 0 + 10 out of 100
    assert assessment.points == {
        "success_rate": 15, "execution_time": 10, "error_rate": 10, "health_rate": 0, "coverage": 10
    }
    assert assessment.score == pytest.approx(45.0)
    assert assessment.rating == QualityRating.POOR
    assert len(assessment.recommendations) == 5


def test_empty_integration_result_is_not_scored():
    summary = make_summary(
        100,
        integration_metrics=IntegrationTestResult(
            service_health={}, api_response_times={}, mock_mode_used=True,
            external_dependencies=[], integration_points=[]
        )
    )
    assessment = assess_quality(summary)
    assert "health_rate" not in assessment.points
    assert assessment.score == 100.0


@pytest.mark.parametrize("percentage,rating", [
    (90, QualityRating.EXCELLENT), (80, QualityRating.GOOD), (70, QualityRating.FAIR), (69, QualityRating.POOR)
])
def test_rating_bands(percentage, rating):
    assert QualityRating.for_percentage(percentage) == rating
