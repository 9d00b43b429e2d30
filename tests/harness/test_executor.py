"""
Matrix executor: per-combination sub-test runs, reports and analysis
"""

import json

import pytest

from models.matrix import MatrixTestConfig, ValidationRule
from matrix_engine.executor import MatrixTestingRunner


async def always_helps(input_text, scenario):
    return f"Glad to help with {input_text}"


class TestRunAllTests:

    @pytest.mark.asyncio
    async def test_two_by_two_matrix_all_pass(self):
        config = MatrixTestConfig(
            base_scenario={"run": [{"name": "t", "input": "q", "expected_actions": ["help"]}]},
            matrix=[{"path": "a", "values": [1, 2]}, {"path": "b", "values": ["x", "y"]}],
            runs_per_combination=1
        )
        results = await MatrixTestingRunner(config, always_helps).run_all_tests()

        assert len(results) == 4
        for result in results:
            assert result.total_tests == 1
            assert result.passed_tests == 1
            assert result.passed is True
        assert [r.combination_index for r in results] == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_runs_per_combination_multiplies_tests(self, character_scenario, agent):
        config = MatrixTestConfig(base_scenario=character_scenario, runs_per_combination=3)
        results = await MatrixTestingRunner(config, agent).run_all_tests()

        assert len(results) == 1
        assert results[0].total_tests == 6
        assert [r.test_name for r in results[0].results] == ["greeting", "moderation"] * 3

    @pytest.mark.asyncio
    async def test_agent_sees_overridden_scenario(self, character_scenario):
        seen = []

        async def recording_agent(input_text, scenario):
            seen.append(scenario["character"]["personality"])
            return "help"

        config = MatrixTestConfig(
            base_scenario=character_scenario,
            matrix=[{"path": "character.personality", "values": ["calm", "bold"]}]
        )
        await MatrixTestingRunner(config, recording_agent).run_all_tests()
        assert seen == ["calm", "calm", "bold", "bold"]

    @pytest.mark.asyncio
    async def test_agent_failure_does_not_abort_run(self, character_scenario):
        async def flaky_agent(input_text, scenario):
            if scenario["character"]["personality"] == "broken":
                raise RuntimeError("model unavailable")
            return "happy to help"

        config = MatrixTestConfig(
            base_scenario=character_scenario,
            matrix=[{"path": "character.personality", "values": ["broken", "fine"]}]
        )
        results = await MatrixTestingRunner(config, flaky_agent).run_all_tests()

        assert len(results) == 2
        broken, fine = results
        assert broken.passed is False
        assert broken.passed_tests == 0
        assert broken.results[0].errors == ["Test execution failed: model unavailable"]
        assert broken.results[0].actual_response is None
        assert fine.passed is True

    @pytest.mark.asyncio
    async def test_missing_reply_does_not_match_actions(self):
        async def silent_agent(input_text, scenario):
            return None

        config = MatrixTestConfig(
            base_scenario={"run": [{"name": "t", "input": "q", "expected_actions": ["none"]}]}
        )
        result = (await MatrixTestingRunner(config, silent_agent).run_all_tests())[0]

        assert result.passed is False
        assert result.results[0].actual_response is None
        assert result.results[0].errors == ["Expected action 'none' not found in response"]

    @pytest.mark.asyncio
    async def test_failing_rule_fails_combination(self, character_scenario, agent):
        rule = ValidationRule(
            name="mentions_onboarding",
            condition=lambda result, scenario: "onboarding" in (result.actual_response or ""),
            error_message="Response never mentions onboarding"
        )
        config = MatrixTestConfig(base_scenario=character_scenario, validation_rules=[rule])
        result = (await MatrixTestingRunner(config, agent).run_all_tests())[0]

        assert result.passed is False
        assert all(r.errors == ["Response never mentions onboarding"] for r in result.results)

    @pytest.mark.asyncio
    async def test_invalid_sub_test_is_recorded(self, agent):
        config = MatrixTestConfig(base_scenario={"run": [{"name": "no input"}, {"name": "ok", "input": "x"}]})
        result = (await MatrixTestingRunner(config, agent).run_all_tests())[0]

        assert result.total_tests == 2
        assert result.results[0].passed is False
        assert result.results[0].errors[0].startswith("Invalid sub-test definition")
        assert result.results[1].passed is True

    @pytest.mark.asyncio
    async def test_progress_callback_counts_combinations(self, character_scenario, agent):
        progress = []
        config = MatrixTestConfig(
            base_scenario=character_scenario,
            matrix=[{"path": "character.personality", "values": ["a", "b", "c"]}]
        )
        await MatrixTestingRunner(config, agent, progress_callback=lambda done, total: progress.append((done, total))).run_all_tests()
        assert progress == [(1, 3), (2, 3), (3, 3)]

    @pytest.mark.asyncio
    async def test_scenario_without_sub_tests_passes_vacuously(self, agent):
        config = MatrixTestConfig(base_scenario={"name": "empty"})
        result = (await MatrixTestingRunner(config, agent).run_all_tests())[0]
        assert result.total_tests == 0
        assert result.passed is True


class TestReporting:

    @pytest.mark.asyncio
    async def test_summary_and_analysis(self, character_scenario):
        async def picky_agent(input_text, scenario):
            return "help" if scenario["character"]["personality"] == "good" else "no"

        config = MatrixTestConfig(
            base_scenario=character_scenario,
            matrix=[{"path": "character.personality", "values": ["good", "bad"]}]
        )
        runner = MatrixTestingRunner(config, picky_agent)
        await runner.run_all_tests()

        summary = runner.calculate_summary()
        assert summary["total_combinations"] == 2
        assert summary["passed_combinations"] == 1
        assert summary["success_rate"] == 50.0

        analysis = runner.analyze_results()
        assert analysis["parameters"]["character.personality"] == {
            "good": {"total": 1, "passed": 1},
            "bad": {"total": 1, "passed": 0},
        }
        assert analysis["tests"]["greeting"] == {"total": 2, "passed": 1}

        report = runner.generate_summary_report()
        assert "Success Rate: 50.0%" in report
        assert "character.personality=bad" in report

        exported = json.loads(runner.export_results())
        assert exported["summary"]["failed_combinations"] == 1
        assert len(exported["results"]) == 2

    def test_summary_before_run_is_empty(self, character_scenario, agent):
        runner = MatrixTestingRunner(MatrixTestConfig(base_scenario=character_scenario), agent)
        assert runner.calculate_summary()["success_rate"] == 0.0
