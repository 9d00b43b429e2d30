"""
Matrix run result containers
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from models.enums import QualityRating
from models.matrix import ParameterOverride
from models.testing import (
    AdvancedTestResult,
    CoverageMetrics,
    IntegrationTestResult,
    LoadTestResult,
    PerformanceMetrics,
)

@dataclass
class TestResult:
    """Outcome of one sub-test execution"""
    __test__ = False  # keep pytest from collecting this container

    test_name: str
    input: str
    expected_actions: List[str] = field(default_factory=list)
    expected_tone: Optional[str] = None
    expected_approach: Optional[str] = None
    expected_style: Optional[str] = None
    expected_expertise: Optional[str] = None
    actual_response: Optional[str] = None
    passed: bool = False
    errors: List[str] = field(default_factory=list)

@dataclass
class MatrixTestResult:
    """Aggregate of every sub-test run for one combination"""
    combination: List[ParameterOverride]
    scenario: Dict[str, Any]
    results: List[TestResult]
    passed: bool
    total_tests: int
    passed_tests: int
    combination_index: int = 0

@dataclass
class EnhancedSummary:
    total_combinations: int
    passed_combinations: int
    failed_combinations: int
    success_rate: float
    total_tests: int = 0
    passed_tests: int = 0
    performance_metrics: Optional[PerformanceMetrics] = None
    load_test_metrics: Optional[LoadTestResult] = None
    integration_metrics: Optional[IntegrationTestResult] = None
    coverage_metrics: Optional[CoverageMetrics] = None
    quality_score: float = 0.0
    quality_rating: QualityRating = QualityRating.POOR
    recommendations: List[str] = field(default_factory=list)

@dataclass
class EnhancedMatrixTestResult:
    matrix_results: List[MatrixTestResult]
    advanced_results: List[AdvancedTestResult]
    summary: EnhancedSummary
