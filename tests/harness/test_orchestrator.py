"""
Advanced testing orchestrator: fused suite runs and failure handling
"""

import json
import re

import pytest

from services.orchestrator_service import AdvancedTestingOrchestrator, usage_figures


def make_orchestrator(load_config, integration_config, seeded_rng, **kwargs):
    return AdvancedTestingOrchestrator(load_config, integration_config, rng=seeded_rng, **kwargs)


class TestRunAdvancedTestSuite:

    @pytest.mark.asyncio
    async def test_successful_suite(self, quick_load_config, mock_integration_config, seeded_rng, character_scenario):
        async def scenario_run():
            return {"tokens": 250, "api_calls": 3}

        orchestrator = make_orchestrator(quick_load_config, mock_integration_config, seeded_rng)
        result = await orchestrator.run_advanced_test_suite(scenario_run, "Scenario A", scenario=character_scenario)

        assert result.success is True
        assert result.errors == []
        assert re.fullmatch(r"test_\d+_[a-z0-9]{9}", result.test_id)
        assert result.performance.token_count == 250
        assert result.performance.api_call_count == 3
        assert result.load_test_results.total_requests == 3
        assert set(result.integration_results.service_health) == {"database", "api", "cache"}
        assert "Scenario A" in result.coverage.test_paths
        assert "character.personality" in result.coverage.test_paths
        assert result.coverage.scenarios_covered == 1

    @pytest.mark.asyncio
    async def test_failing_test_function_yields_failed_result(
        self, quick_load_config, mock_integration_config, seeded_rng
    ):
        async def broken():
            raise RuntimeError("agent crashed")

        orchestrator = make_orchestrator(quick_load_config, mock_integration_config, seeded_rng)
        result = await orchestrator.run_advanced_test_suite(broken, "Broken Scenario")

        assert result.success is False
        assert result.errors == ["agent crashed"]
        assert result.load_test_results is None
        assert result.integration_results is None
        assert result.performance.execution_time >= 0
        assert orchestrator.results == [result]

    @pytest.mark.asyncio
    async def test_disabled_dimensions_are_skipped(self, quick_load_config, mock_integration_config, seeded_rng):
        calls = []

        async def counted():
            calls.append(1)

        orchestrator = make_orchestrator(
            quick_load_config, mock_integration_config, seeded_rng,
            enable_load_testing=False, enable_integration_testing=False
        )
        result = await orchestrator.run_advanced_test_suite(counted, "Only Performance")

        assert result.success is True
        assert len(calls) == 1
        assert result.load_test_results is None
        assert result.integration_results is None

    @pytest.mark.asyncio
    async def test_history_accumulates_across_suites(self, quick_load_config, mock_integration_config, seeded_rng):
        async def noop():
            return None

        orchestrator = make_orchestrator(quick_load_config, mock_integration_config, seeded_rng)
        await orchestrator.run_advanced_test_suite(noop, "A")
        second = await orchestrator.run_advanced_test_suite(noop, "B")

        assert len(orchestrator.performance_engine.metrics) == 2
        assert second.coverage.test_paths == ["A", "B"]


class TestReporting:

    @pytest.mark.asyncio
    async def test_comprehensive_report_and_export(self, quick_load_config, mock_integration_config, seeded_rng):
        async def noop():
            return None

        async def broken():
            raise ValueError("bad input")

        orchestrator = make_orchestrator(quick_load_config, mock_integration_config, seeded_rng)
        await orchestrator.run_advanced_test_suite(noop, "Good")
        await orchestrator.run_advanced_test_suite(broken, "Bad")

        report = orchestrator.generate_comprehensive_report()
        assert "Total Tests: 2" in report
        assert "Success Rate: 50.00%" in report
        assert "LOAD TEST REPORT" in report
        assert "INTEGRATION TESTING REPORT" in report
        assert "  - Bad: bad input" in report

        exported = json.loads(orchestrator.export_results())
        assert exported["summary"] == {"total_tests": 2, "successful_tests": 1, "failed_tests": 1}
        assert len(exported["results"]) == 2

    def test_empty_report(self, quick_load_config, mock_integration_config):
        report = AdvancedTestingOrchestrator(quick_load_config, mock_integration_config).generate_comprehensive_report()
        assert "Success Rate: N/A" in report


@pytest.mark.parametrize("output,expected", [
    ({"tokens": 10, "api_calls": 2, "external_service_latency": 5.5},
     {"token_count": 10, "api_call_count": 2, "external_service_latency": 5.5}),
    ({"tokens": "many", "success": True}, {}),
    ("plain text", {}),
    (None, {}),
])
def test_usage_figures(output, expected):
    assert usage_figures(output) == expected
