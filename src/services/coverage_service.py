"""
Coverage analysis engine - registry of exercised scenario paths
"""

import logging
from typing import Any, Dict, List

from models.enums import QualityRating
from models.testing import CoverageMetrics

logger = logging.getLogger(__name__)

CHARACTER_PATHS = [
    "character.personality",
    "character.response_style",
    "character.moderation_approach",
    "character.system",
    "character.bio",
    "character.topics",
    "character.style",
]

SUB_TEST_FIELDS = [
    "name",
    "input",
    "expected_actions",
    "expected_tone",
    "expected_approach",
    "expected_style",
    "expected_expertise",
]


class CoverageAnalysisEngine:
    """
    Collects canonical paths from scenarios and explicit registrations

    Every registered path counts as covered: nothing marks a path as
    expected but unvisited, so coverage_percentage is always 100.
    """

    def __init__(self):
        self.scenarios: List[Dict[str, Any]] = []
        self._test_paths: Dict[str, None] = {}  # insertion ordered set
        self._uncovered_paths: Dict[str, None] = {}

    def add_scenario(self, scenario: Dict[str, Any]) -> None:
        self.scenarios.append(scenario)
        self._analyze_scenario(scenario)

    def add_test_path(self, path: str) -> None:
        self._test_paths[path] = None

    def _analyze_scenario(self, scenario: Dict[str, Any]) -> None:
        if scenario.get("character"):
            for path in CHARACTER_PATHS:
                self.add_test_path(path)

        for index, _ in enumerate(scenario.get("run") or []):
            for field_name in SUB_TEST_FIELDS:
                self.add_test_path(f"run[{index}].{field_name}")

        evaluation = scenario.get("evaluation")
        if isinstance(evaluation, dict):
            for key in evaluation:
                self.add_test_path(f"evaluation.{key}")

    def _parameter_combinations(self) -> int:
        combinations = 1
        for scenario in self.scenarios:
            for axis in scenario.get("matrix") or []:
                combinations *= len(axis.get("values") or [])
        return combinations

    def calculate_coverage(self) -> CoverageMetrics:
        total_paths = len(self._test_paths)
        covered_paths = total_paths
        return CoverageMetrics(
            scenarios_covered=len(self.scenarios),
            total_scenarios=len(self.scenarios),
            parameter_combinations=self._parameter_combinations(),
            test_paths=list(self._test_paths),
            uncovered_paths=list(self._uncovered_paths),
            coverage_percentage=(covered_paths / total_paths * 100) if total_paths else 100.0
        )

    def generate_coverage_report(self) -> str:
        coverage = self.calculate_coverage()
        rating = QualityRating.for_percentage(coverage.coverage_percentage)

        lines = [
            "TEST COVERAGE REPORT",
            "=" * 50,
            f"Scenarios Covered: {coverage.scenarios_covered}",
            f"Total Scenarios: {coverage.total_scenarios}",
            f"Parameter Combinations: {coverage.parameter_combinations}",
            f"Coverage Percentage: {coverage.coverage_percentage:.2f}%",
            "",
            f"Test Paths ({len(coverage.test_paths)}):",
        ]
        lines.extend(f"  + {path}" for path in coverage.test_paths)

        if coverage.uncovered_paths:
            lines.append("")
            lines.append(f"Uncovered Paths ({len(coverage.uncovered_paths)}):")
            lines.extend(f"  - {path}" for path in coverage.uncovered_paths)

        lines.append("")
        lines.append("Coverage Summary:")
        lines.append(f"{rating.value} ({coverage.coverage_percentage:.1f}%)")
        lines.append("=" * 50)
        return "\n".join(lines)

    def reset(self) -> None:
        self.scenarios = []
        self._test_paths = {}
        self._uncovered_paths = {}
