"""
Executor component - runs every matrix combination against the agent under test
"""

import json
import logging
from dataclasses import asdict
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError

from models.matrix import MatrixTestConfig, ParameterOverride, SubTest
from models.results import MatrixTestResult, TestResult
from matrix_engine.overrides import Combination, apply_matrix_to_scenario
from matrix_engine.validator import validate_test_result
from utils.error_handling import StructuredLogger, describe_exception, scenario_context_var

logger = logging.getLogger(__name__)

AgentCallback = Callable[[str, Dict[str, Any]], Awaitable[Any]]
ProgressCallback = Callable[[int, int], None]

MAX_FAILURES_SHOWN = 3


def value_label(value: Any) -> str:
    """Stable text label for an axis value"""
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True, default=str)


def describe_combination(combination: List[ParameterOverride]) -> str:
    return ", ".join(f"{override.path}={value_label(override.value)}" for override in combination) or "(base scenario)"


class MatrixTestingRunner:
    """Runs the scenario sub-tests for every combination of the parameter matrix"""

    def __init__(
        self,
        config: MatrixTestConfig,
        agent: AgentCallback,
        progress_callback: Optional[ProgressCallback] = None
    ):
        self.config = config
        self.agent = agent
        self.progress_callback = progress_callback
        self.results: List[MatrixTestResult] = []

    async def run_all_tests(self) -> List[MatrixTestResult]:
        """
        Run all matrix combinations in expansion order

        A failing sub-test never stops the run: every combination gets a
        MatrixTestResult.
        """
        logger.info(f"Starting matrix testing with {len(self.config.matrix)} parameters")

        scenarios = apply_matrix_to_scenario(self.config.base_scenario, self.config.matrix)
        total = len(scenarios)
        logger.info(f"Generated {total} test scenarios")

        self.results = []
        for index, (combination, scenario) in enumerate(scenarios):
            scenario_context_var.set(describe_combination(combination))
            result = await self.run_scenario_tests(combination, scenario, index)
            self.results.append(result)

            logger.info(
                f"Combination {index + 1}/{total} completed: "
                f"{result.passed_tests}/{result.total_tests} tests passed"
            )
            if self.progress_callback:
                self.progress_callback(index + 1, total)

        scenario_context_var.set('')
        return self.results

    async def run_scenario_tests(
        self,
        combination: Combination,
        scenario: Dict[str, Any],
        combination_index: int = 0
    ) -> MatrixTestResult:
        """Run every declared sub-test runs_per_combination times"""
        results: List[TestResult] = []

        for _ in range(self.config.runs_per_combination):
            for index, definition in enumerate(scenario.get("run") or []):
                try:
                    sub_test = SubTest.model_validate(definition)
                except ValidationError as e:
                    results.append(self._invalid_sub_test(definition, index, e))
                    continue
                results.append(await self.run_single_test(sub_test, scenario))

        total_tests = len(results)
        passed_tests = sum(1 for r in results if r.passed)

        return MatrixTestResult(
            combination=combination,
            scenario=scenario,
            results=results,
            passed=passed_tests == total_tests,
            total_tests=total_tests,
            passed_tests=passed_tests,
            combination_index=combination_index
        )

    async def run_single_test(self, sub_test: SubTest, scenario: Dict[str, Any]) -> TestResult:
        """Invoke the agent once and validate its response"""
        result = TestResult(
            test_name=sub_test.name,
            input=sub_test.input,
            expected_actions=list(sub_test.expected_actions),
            expected_tone=sub_test.expected_tone,
            expected_approach=sub_test.expected_approach,
            expected_style=sub_test.expected_style,
            expected_expertise=sub_test.expected_expertise
        )

        try:
            response = await self.agent(sub_test.input, scenario)
        except Exception as e:
            StructuredLogger.log_error(
                "agent_invocation_failed",
                f"Agent raised during sub-test '{sub_test.name}'",
                exception=e,
                extra_context={"input": sub_test.input},
                level=logging.WARNING
            )
            result.errors.append(f"Test execution failed: {describe_exception(e)}")
            return result

        if response is None:
            result.actual_response = None
        else:
            result.actual_response = response if isinstance(response, str) else str(response)
        validate_test_result(result, scenario, self.config.validation_rules)
        return result

    def _invalid_sub_test(self, definition: Any, index: int, error: ValidationError) -> TestResult:
        name = definition.get("name") if isinstance(definition, dict) else None
        return TestResult(
            test_name=str(name or f"run[{index}]"),
            input=str(definition.get("input", "")) if isinstance(definition, dict) else "",
            errors=[f"Invalid sub-test definition: {error.error_count()} validation errors"]
        )

    def calculate_summary(self) -> Dict[str, Any]:
        total_combinations = len(self.results)
        passed_combinations = sum(1 for r in self.results if r.passed)
        return {
            "total_combinations": total_combinations,
            "passed_combinations": passed_combinations,
            "failed_combinations": total_combinations - passed_combinations,
            "total_tests": sum(r.total_tests for r in self.results),
            "passed_tests": sum(r.passed_tests for r in self.results),
            "success_rate": (passed_combinations / total_combinations * 100) if total_combinations else 0.0
        }

    def analyze_results(self) -> Dict[str, Dict[str, Dict[str, Dict[str, int]]]]:
        """Pass statistics per axis value and per sub-test name"""
        by_parameter: Dict[str, Dict[str, Dict[str, int]]] = {}
        by_test: Dict[str, Dict[str, int]] = {}

        for result in self.results:
            for override in result.combination:
                stats = by_parameter.setdefault(override.path, {}).setdefault(
                    value_label(override.value), {"total": 0, "passed": 0}
                )
                stats["total"] += 1
                stats["passed"] += int(result.passed)

            for test_result in result.results:
                stats = by_test.setdefault(test_result.test_name, {"total": 0, "passed": 0})
                stats["total"] += 1
                stats["passed"] += int(test_result.passed)

        return {"parameters": by_parameter, "tests": by_test}

    def generate_summary_report(self) -> str:
        summary = self.calculate_summary()
        lines = [
            "MATRIX TESTING SUMMARY",
            "=" * 50,
            f"Total Combinations: {summary['total_combinations']}",
            f"Passed Combinations: {summary['passed_combinations']}",
            f"Failed Combinations: {summary['failed_combinations']}",
            f"Total Tests: {summary['total_tests']}",
            f"Passed Tests: {summary['passed_tests']}",
            f"Success Rate: {summary['success_rate']:.1f}%",
        ]

        failed_results = [r for r in self.results if not r.passed]
        if failed_results:
            lines.append("")
            lines.append("FAILED COMBINATIONS:")
            for result in failed_results:
                lines.append(f"  {describe_combination(result.combination)}")
                lines.append(f"  Tests: {result.passed_tests}/{result.total_tests} passed")
                for test in [t for t in result.results if not t.passed][:MAX_FAILURES_SHOWN]:
                    lines.append(f"    - {test.test_name}: {', '.join(test.errors)}")

        lines.append("=" * 50)
        return "\n".join(lines)

    def export_results(self) -> str:
        return json.dumps({
            "summary": self.calculate_summary(),
            "results": [asdict(r) for r in self.results]
        }, indent=2, default=str)
