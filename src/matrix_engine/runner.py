"""
Enhanced matrix runner - matrix testing followed by advanced testing of
representative scenarios
"""

import json
import logging
import random
from dataclasses import asdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from config.settings import default_integration_test_config, default_load_test_config
from models.matrix import EnhancedMatrixTestConfig, ValidationRule
from models.results import EnhancedMatrixTestResult, EnhancedSummary, MatrixTestResult
from models.testing import AdvancedTestResult, IntegrationTestConfig, LoadTestConfig
from matrix_engine.executor import AgentCallback, MatrixTestingRunner, ProgressCallback
from matrix_engine.overrides import MatrixSpec, apply_matrix_to_scenario
from matrix_engine.quality import assess_quality
from services.integration_service import ServiceProbe
from services.orchestrator_service import AdvancedTestingOrchestrator
from utils.error_handling import StructuredLogger

logger = logging.getLogger(__name__)

ScenarioFn = Callable[[Dict[str, Any]], Awaitable[Any]]

MAX_SAMPLED_EXTRAS = 3
UNNAMED_SCENARIO = "Unnamed Scenario"


def select_scenario_indices(count: int, rng: random.Random) -> List[int]:
    """
    Indices of the scenarios that get advanced testing

    Three or fewer: all of them. Otherwise first, middle and last plus up
    to three more drawn without replacement from the rest.
    """
    if count <= 3:
        return list(range(count))

    middle = count // 2
    selected = [0, middle, count - 1]
    remaining = [index for index in range(count) if index not in selected]

    for _ in range(min(MAX_SAMPLED_EXTRAS, count - 3)):
        selected.append(remaining.pop(rng.randrange(len(remaining))))

    return selected


class EnhancedMatrixTestingRunner:
    """Runs the full matrix, then deep-tests a sample of the expanded scenarios"""

    def __init__(
        self,
        config: EnhancedMatrixTestConfig,
        agent: AgentCallback,
        scenario_fn: Optional[ScenarioFn] = None,
        rng: Optional[random.Random] = None,
        progress_callback: Optional[ProgressCallback] = None,
        service_probes: Optional[Dict[str, ServiceProbe]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config
        self.agent = agent
        self.scenario_fn = scenario_fn or self._replay_sub_tests
        self.rng = rng or random.Random()

        self.matrix_runner = MatrixTestingRunner(config, agent, progress_callback=progress_callback)
        self.orchestrator = AdvancedTestingOrchestrator(
            config.load_test_config,
            config.integration_test_config,
            enable_load_testing=config.enable_load_testing,
            enable_integration_testing=config.enable_integration_testing,
            service_probes=service_probes,
            transport=transport,
            rng=self.rng
        )
        self.results: Optional[EnhancedMatrixTestResult] = None

    async def run_enhanced_matrix_tests(self) -> EnhancedMatrixTestResult:
        logger.info("Starting Enhanced Matrix Testing Suite")

        logger.info("Phase 1: Matrix Testing")
        matrix_results = await self.matrix_runner.run_all_tests()

        logger.info("Phase 2: Advanced Testing")
        advanced_results = await self.run_advanced_tests_on_scenarios()

        self.results = EnhancedMatrixTestResult(
            matrix_results=matrix_results,
            advanced_results=advanced_results,
            summary=self.generate_enhanced_summary(matrix_results, advanced_results)
        )
        logger.info(
            f"Enhanced matrix testing completed: quality {self.results.summary.quality_score:.1f}% "
            f"({self.results.summary.quality_rating.value})"
        )
        return self.results

    async def run_advanced_tests_on_scenarios(self) -> List[AdvancedTestResult]:
        scenarios = [scenario for _, scenario in apply_matrix_to_scenario(self.config.base_scenario, self.config.matrix)]
        selected = select_scenario_indices(len(scenarios), self.rng)
        logger.info(f"Selected {len(selected)} of {len(scenarios)} scenarios for advanced testing")

        advanced_results: List[AdvancedTestResult] = []
        for position, index in enumerate(selected, start=1):
            scenario = scenarios[index]
            name = str(scenario.get("name") or UNNAMED_SCENARIO)
            try:
                result = await self.orchestrator.run_advanced_test_suite(
                    lambda: self.scenario_fn(scenario),
                    name,
                    scenario=scenario if self.config.enable_coverage_analysis else None
                )
            except Exception as e:
                StructuredLogger.log_error(
                    "advanced_test_failed",
                    f"Advanced test failed for scenario '{name}'",
                    exception=e,
                    extra_context={"scenario_index": index}
                )
                continue

            result.details["scenario_index"] = index
            advanced_results.append(result)
            logger.info(f"Advanced test {position}/{len(selected)} completed")

        return advanced_results

    async def _replay_sub_tests(self, scenario: Dict[str, Any]) -> Dict[str, Any]:
        """Send every sub-test input of the scenario through the agent once"""
        responses = []
        for definition in scenario.get("run") or []:
            if isinstance(definition, dict) and definition.get("input") is not None:
                responses.append(await self.agent(str(definition["input"]), scenario))

        return {
            "scenario": scenario.get("name"),
            "api_calls": len(responses),
            "responses": responses
        }

    def generate_enhanced_summary(
        self,
        matrix_results: List[MatrixTestResult],
        advanced_results: List[AdvancedTestResult]
    ) -> EnhancedSummary:
        """Matrix totals plus the first advanced snapshot of each enabled dimension"""
        total = len(matrix_results)
        passed = sum(1 for r in matrix_results if r.passed)
        first = advanced_results[0] if advanced_results else None

        summary = EnhancedSummary(
            total_combinations=total,
            passed_combinations=passed,
            failed_combinations=total - passed,
            success_rate=(passed / total * 100) if total else 0.0,
            total_tests=sum(r.total_tests for r in matrix_results),
            passed_tests=sum(r.passed_tests for r in matrix_results)
        )

        if first is not None:
            if self.config.enable_performance_testing:
                summary.performance_metrics = self.orchestrator.performance_engine.get_average_metrics()
            if self.config.enable_load_testing:
                summary.load_test_metrics = first.load_test_results
            if self.config.enable_integration_testing:
                summary.integration_metrics = first.integration_results
            if self.config.enable_coverage_analysis:
                summary.coverage_metrics = first.coverage

        assessment = assess_quality(summary)
        summary.quality_score = assessment.score
        summary.quality_rating = assessment.rating
        summary.recommendations = assessment.recommendations
        return summary

    def _require_results(self) -> EnhancedMatrixTestResult:
        if self.results is None:
            raise RuntimeError("run_enhanced_matrix_tests() has not been run")
        return self.results

    def generate_enhanced_report(self) -> str:
        results = self._require_results()
        summary = results.summary

        lines = [
            "=" * 80,
            "ENHANCED MATRIX TESTING COMPREHENSIVE REPORT",
            "=" * 80,
            "",
            "MATRIX TESTING SUMMARY",
            f"Total Combinations: {summary.total_combinations}",
            f"Passed: {summary.passed_combinations}",
            f"Failed: {summary.failed_combinations}",
            f"Success Rate: {summary.success_rate:.2f}%",
        ]

        if results.advanced_results:
            successful = sum(1 for r in results.advanced_results if r.success)
            lines += [
                "",
                "ADVANCED TESTING SUMMARY",
                f"Scenarios Tested: {len(results.advanced_results)}",
                f"Successful: {successful}",
                f"Failed: {len(results.advanced_results) - successful}",
            ]

            if summary.performance_metrics:
                perf = summary.performance_metrics
                lines += [
                    "",
                    "PERFORMANCE METRICS",
                    f"Average Execution Time: {perf.execution_time:.2f}ms",
                    f"Average Memory Usage: {perf.memory_usage / 1024 / 1024:.2f}MB",
                    f"Average CPU Usage: {perf.cpu_usage:.2f}s",
                ]

            if summary.load_test_metrics:
                load = summary.load_test_metrics
                lines += [
                    "",
                    "LOAD TEST METRICS",
                    f"Concurrent Users: {load.concurrent_users}",
                    f"Throughput: {load.throughput:.2f} req/s",
                    f"Average Response Time: {load.average_response_time:.2f}ms",
                    f"Error Rate: {load.error_rate:.2f}%",
                ]

            if summary.integration_metrics:
                integration = summary.integration_metrics
                health_rate = integration.health_rate
                lines += [
                    "",
                    "INTEGRATION METRICS",
                    f"Services Tested: {len(integration.service_health)}",
                    f"Healthy Services: {integration.healthy_count}",
                    f"Health Rate: {f'{health_rate:.2f}%' if health_rate is not None else 'N/A'}",
                ]

            if summary.coverage_metrics:
                coverage = summary.coverage_metrics
                lines += [
                    "",
                    "COVERAGE METRICS",
                    f"Test Paths: {len(coverage.test_paths)}",
                    f"Coverage Percentage: {coverage.coverage_percentage:.2f}%",
                    f"Parameter Combinations: {coverage.parameter_combinations}",
                ]

        lines += [
            "",
            "QUALITY ASSESSMENT",
            f"Overall Quality Score: {summary.quality_score:.1f}%",
            f"Quality Rating: {summary.quality_rating.value}",
            "",
            "RECOMMENDATIONS",
        ]
        if summary.recommendations:
            lines.extend(f"  {i}. {rec}" for i, rec in enumerate(summary.recommendations, start=1))
        else:
            lines.append("  All quality targets met - no specific recommendations")

        lines.append("=" * 80)
        return "\n".join(lines)

    def generate_performance_analysis(self) -> str:
        if not self._require_results().summary.performance_metrics:
            return "No performance data available"
        return self.orchestrator.performance_engine.generate_performance_report()

    def generate_load_test_analysis(self) -> str:
        if not self._require_results().summary.load_test_metrics:
            return "No load test data available"
        return self.orchestrator.load_test_engine.generate_load_test_report()

    def generate_integration_analysis(self) -> str:
        if not self._require_results().summary.integration_metrics:
            return "No integration test data available"
        return self.orchestrator.integration_engine.generate_integration_report()

    def generate_coverage_analysis(self) -> str:
        if not self._require_results().summary.coverage_metrics:
            return "No coverage data available"
        return self.orchestrator.coverage_engine.generate_coverage_report()

    def export_enhanced_results(self) -> str:
        return json.dumps(asdict(self._require_results()), indent=2, default=str)


def create_enhanced_matrix_runner(
    base_scenario: Dict[str, Any],
    matrix: MatrixSpec,
    agent: AgentCallback,
    runs_per_combination: int = 2,
    validation_rules: Optional[Sequence[ValidationRule]] = None,
    load_test_config: Optional[LoadTestConfig] = None,
    integration_test_config: Optional[IntegrationTestConfig] = None,
    enable_advanced_testing: bool = True,
    **runner_kwargs: Any
) -> EnhancedMatrixTestingRunner:
    """Build a runner, filling engine configuration from the environment when omitted"""
    config = EnhancedMatrixTestConfig(
        base_scenario=base_scenario,
        matrix=list(matrix),
        runs_per_combination=runs_per_combination,
        validation_rules=list(validation_rules or []),
        load_test_config=load_test_config or default_load_test_config(),
        integration_test_config=integration_test_config or default_integration_test_config(),
        enable_performance_testing=enable_advanced_testing,
        enable_load_testing=enable_advanced_testing,
        enable_integration_testing=enable_advanced_testing,
        enable_coverage_analysis=enable_advanced_testing
    )
    return EnhancedMatrixTestingRunner(config, agent, **runner_kwargs)
