"""
Advanced testing orchestrator - performance, load, integration and coverage
in one suite run
"""

import json
import logging
import random
from dataclasses import asdict
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from models.testing import (
    AdvancedTestResult,
    IntegrationTestConfig,
    LoadTestConfig,
    PerformanceMetrics,
)
from services.coverage_service import CoverageAnalysisEngine
from services.integration_service import IntegrationTestingEngine, ServiceProbe
from services.load_test_service import LoadTestingEngine, RequestListener
from services.performance_service import PerformanceTestingEngine
from utils.error_handling import StructuredLogger, describe_exception
from utils.helpers import generate_test_id, utc_timestamp

logger = logging.getLogger(__name__)

TestFn = Callable[[], Awaitable[Any]]

# Keys read from a test function's dict output as usage figures
USAGE_KEYS = {
    "token_count": "tokens",
    "api_call_count": "api_calls",
    "external_service_latency": "external_service_latency",
}


def usage_figures(output: Any) -> Dict[str, float]:
    """Token, API call and latency figures reported by a test function, if any"""
    if not isinstance(output, dict):
        return {}
    figures = {}
    for field_name, key in USAGE_KEYS.items():
        value = output.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            figures[field_name] = value
    return figures


class AdvancedTestingOrchestrator:
    """
    Owns one engine of each kind and fuses their outcomes per scenario

    The performance history and the coverage path set accumulate across
    suite runs of the same orchestrator instance.
    """

    def __init__(
        self,
        load_test_config: LoadTestConfig,
        integration_test_config: IntegrationTestConfig,
        enable_load_testing: bool = True,
        enable_integration_testing: bool = True,
        service_probes: Optional[Dict[str, ServiceProbe]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rng: Optional[random.Random] = None,
        on_request_completed: Optional[RequestListener] = None
    ):
        self.rng = rng or random.Random()
        self.enable_load_testing = enable_load_testing
        self.enable_integration_testing = enable_integration_testing

        self.performance_engine = PerformanceTestingEngine()
        self.load_test_engine = LoadTestingEngine(load_test_config, on_request_completed=on_request_completed)
        self.integration_engine = IntegrationTestingEngine(
            integration_test_config,
            service_probes=service_probes,
            transport=transport,
            rng=self.rng
        )
        self.coverage_engine = CoverageAnalysisEngine()
        self.results: List[AdvancedTestResult] = []

    async def run_advanced_test_suite(
        self,
        test_fn: TestFn,
        scenario_name: str,
        scenario: Optional[Dict[str, Any]] = None
    ) -> AdvancedTestResult:
        """
        Measure, load test, probe and record coverage for one scenario

        Any exception along the way yields a result with success=False and
        the error message instead of propagating.
        """
        test_id = generate_test_id(self.rng)
        logger.info(f"Running advanced test suite: {scenario_name} ({test_id})")

        try:
            self.performance_engine.start_measurement()
            output = await test_fn()
            performance = self.performance_engine.end_measurement(**usage_figures(output))

            load_test_results = None
            if self.enable_load_testing:
                load_test_results = await self.load_test_engine.run_load_test(test_fn)

            integration_results = None
            if self.enable_integration_testing:
                integration_results = await self.integration_engine.run_integration_tests()

            coverage = self._record_coverage(scenario_name, scenario)

            result = AdvancedTestResult(
                test_id=test_id,
                scenario_name=scenario_name,
                performance=performance,
                load_test_results=load_test_results,
                integration_results=integration_results,
                coverage=coverage,
                timestamp=utc_timestamp(),
                success=True,
                details={"test_output": output}
            )

        except Exception as e:
            StructuredLogger.log_error(
                "advanced_suite_failed",
                f"Advanced test suite failed for scenario '{scenario_name}'",
                exception=e,
                extra_context={"test_id": test_id},
                include_traceback=True
            )
            result = AdvancedTestResult(
                test_id=test_id,
                scenario_name=scenario_name,
                performance=self._close_measurement(),
                coverage=self.coverage_engine.calculate_coverage(),
                timestamp=utc_timestamp(),
                success=False,
                errors=[describe_exception(e)]
            )

        self.results.append(result)
        return result

    def _record_coverage(self, scenario_name: str, scenario: Optional[Dict[str, Any]]):
        if scenario is not None:
            self.coverage_engine.add_scenario(scenario)
        self.coverage_engine.add_test_path(scenario_name)
        return self.coverage_engine.calculate_coverage()

    def _close_measurement(self) -> PerformanceMetrics:
        try:
            return self.performance_engine.end_measurement()
        except RuntimeError:
            return PerformanceMetrics(execution_time=0, memory_usage=0, cpu_usage=0)

    def _counts(self) -> Dict[str, int]:
        successful = sum(1 for r in self.results if r.success)
        return {
            "total_tests": len(self.results),
            "successful_tests": successful,
            "failed_tests": len(self.results) - successful
        }

    def generate_comprehensive_report(self) -> str:
        counts = self._counts()
        total = counts["total_tests"]
        success_rate = f"{counts['successful_tests'] / total * 100:.2f}%" if total else "N/A"

        sections = [
            "\n".join([
                "ADVANCED TESTING COMPREHENSIVE REPORT",
                "=" * 60,
                "Test Summary:",
                f"Total Tests: {total}",
                f"Successful: {counts['successful_tests']}",
                f"Failed: {counts['failed_tests']}",
                f"Success Rate: {success_rate}",
            ]),
            self.performance_engine.generate_performance_report(),
        ]
        if self.enable_load_testing:
            sections.append(self.load_test_engine.generate_load_test_report())
        if self.enable_integration_testing:
            sections.append(self.integration_engine.generate_integration_report())
        sections.append(self.coverage_engine.generate_coverage_report())

        failed = [r for r in self.results if not r.success]
        if failed:
            sections.append("\n".join(
                ["FAILED TESTS:"] + [f"  - {r.scenario_name}: {', '.join(r.errors)}" for r in failed]
            ))

        sections.append(f"{'=' * 60}\nGenerated at: {utc_timestamp()}")
        return "\n\n".join(sections)

    def export_results(self) -> str:
        return json.dumps({
            "summary": self._counts(),
            "results": [asdict(r) for r in self.results],
            "performance": asdict(self.performance_engine.get_average_metrics()),
            "coverage": asdict(self.coverage_engine.calculate_coverage())
        }, indent=2, default=str)
