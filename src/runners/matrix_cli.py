#!/usr/bin/env python3
"""
Command line interface for planning and running matrix test suites
"""

import argparse
import asyncio
import json
import logging
import random
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from config.settings import (
    HarnessSettings,
    default_integration_test_config,
    default_load_test_config,
    get_settings,
)
from models.matrix import EnhancedMatrixTestConfig, MatrixTestConfig
from models.testing import IntegrationTestConfig, LoadTestConfig
from matrix_engine.executor import MatrixTestingRunner
from matrix_engine.overrides import coerce_matrix, expand_matrix
from matrix_engine.runner import EnhancedMatrixTestingRunner
from matrix_engine.simulation import simulate_agent_response, simulate_scenario_execution
from matrix_engine.validator import default_validation_rules

logger = logging.getLogger(__name__)


def load_yaml_document(path: str) -> Dict[str, Any]:
    """Read a YAML mapping from disk"""
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path.resolve()}")

    with file_path.open("r", encoding="utf-8") as handle:
        document = yaml.safe_load(handle)

    if not isinstance(document, dict):
        raise ValueError(f"Invalid file {path}: expected a mapping at the top level")
    return document


def plan_matrix(path: str) -> List[str]:
    """Output lines of the plan: header, then one JSON line per combination"""
    document = load_yaml_document(path)
    if not isinstance(document.get("matrix"), list):
        raise ValueError("Invalid matrix file: missing matrix array")

    axes = coerce_matrix(document["matrix"])
    combinations = expand_matrix(axes)

    lines = [
        f"# Matrix plan for {path}",
        f"parameters: {len(axes)}",
        f"combinations: {len(combinations)}",
        "---",
    ]
    for idx, combination in enumerate(combinations):
        assignment = {override.path: override.value for override in combination}
        lines.append(json.dumps({"idx": idx, "assignment": assignment}, default=str))
    return lines


def build_suite_config(document: Dict[str, Any], settings: HarnessSettings) -> EnhancedMatrixTestConfig:
    """
    Turn a suite document into a validated run configuration

    Recognised keys: base_scenario, matrix, runs_per_combination,
    default_rules, load_test and integration_test (overrides applied on top
    of the environment defaults) and the enable_* flags.
    """
    base_scenario = document.get("base_scenario")
    if not isinstance(base_scenario, dict):
        raise ValueError("Suite file must define a base_scenario mapping")

    load_test = default_load_test_config(settings).model_dump()
    load_test.update(document.get("load_test") or {})
    integration_test = default_integration_test_config(settings).model_dump()
    integration_test.update(document.get("integration_test") or {})

    flags = {key: value for key, value in document.items() if key.startswith("enable_")}

    return EnhancedMatrixTestConfig(
        base_scenario=base_scenario,
        matrix=document.get("matrix") or [],
        runs_per_combination=document.get("runs_per_combination", 1),
        validation_rules=default_validation_rules() if document.get("default_rules", True) else [],
        load_test_config=LoadTestConfig.model_validate(load_test),
        integration_test_config=IntegrationTestConfig.model_validate(integration_test),
        **flags
    )


def default_export_path(settings: HarnessSettings) -> Path:
    """Timestamped export file inside the configured results directory"""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return Path(settings.results_dir) / f"matrix-results-{stamp}.json"


def format_detailed_analysis(analysis: Dict[str, Dict[str, Dict[str, Any]]]) -> List[str]:
    lines = []
    for path, values in analysis["parameters"].items():
        lines.append(f"  {path}:")
        for value, stats in values.items():
            rate = stats["passed"] / stats["total"] * 100 if stats["total"] else 0.0
            lines.append(f"    {value}: {stats['passed']}/{stats['total']} ({rate:.1f}%)")

    lines.append("  Test Case Performance:")
    for name, stats in analysis["tests"].items():
        rate = stats["passed"] / stats["total"] * 100 if stats["total"] else 0.0
        lines.append(f"    {name}: {stats['passed']}/{stats['total']} ({rate:.1f}%)")
    return lines


async def run_suite(
    config: EnhancedMatrixTestConfig,
    advanced: bool,
    seed: Optional[int],
    time_scale: float
) -> Dict[str, Any]:
    """Run the suite against the simulated agent, returning printable report text and export JSON"""
    rng = random.Random(seed)

    if not advanced:
        runner = MatrixTestingRunner(MatrixTestConfig(
            base_scenario=config.base_scenario,
            matrix=config.matrix,
            runs_per_combination=config.runs_per_combination,
            validation_rules=config.validation_rules
        ), simulate_agent_response)
        await runner.run_all_tests()
        return {
            "report": "\n".join([runner.generate_summary_report(), "", "DETAILED ANALYSIS"]
                                + format_detailed_analysis(runner.analyze_results())),
            "export": runner.export_results()
        }

    enhanced = EnhancedMatrixTestingRunner(
        config,
        simulate_agent_response,
        scenario_fn=lambda scenario: simulate_scenario_execution(scenario, rng=rng, time_scale=time_scale),
        rng=rng
    )
    await enhanced.run_enhanced_matrix_tests()
    sections = [
        enhanced.generate_enhanced_report(),
        enhanced.generate_performance_analysis(),
        enhanced.generate_load_test_analysis(),
        enhanced.generate_integration_analysis(),
        enhanced.generate_coverage_analysis(),
        "\n".join(["DETAILED ANALYSIS"] + format_detailed_analysis(enhanced.matrix_runner.analyze_results())),
    ]
    return {"report": "\n\n".join(sections), "export": enhanced.export_enhanced_results()}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Plan and run parameter matrix test suites")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    plan_parser = subparsers.add_parser("plan", help="Print every combination of a matrix file")
    plan_parser.add_argument("matrix_file", help="YAML file with a 'matrix' list")

    run_parser = subparsers.add_parser("run", help="Run a suite against the simulated agent")
    run_parser.add_argument("suite_file", help="YAML suite file")
    run_parser.add_argument("--output", help="Write the JSON export to this path (default: a timestamped file in RESULTS_DIR)")
    run_parser.add_argument("--seed", type=int, help="Seed for scenario sampling and simulation")
    run_parser.add_argument("--time-scale", type=float, default=1.0,
                            help="Multiplier for simulated execution time")
    run_parser.add_argument("--no-advanced", action="store_true",
                            help="Skip performance, load, integration and coverage testing")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI interface"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        settings = get_settings()
        logging.basicConfig(
            level=getattr(logging, settings.log_level, logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )

        if args.command == "plan":
            for line in plan_matrix(args.matrix_file):
                print(line)

        elif args.command == "run":
            config = build_suite_config(load_yaml_document(args.suite_file), settings)
            outcome = asyncio.run(run_suite(config, not args.no_advanced, args.seed, args.time_scale))
            print(outcome["report"])

            output_path = Path(args.output) if args.output else default_export_path(settings)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(outcome["export"], encoding="utf-8")
            print(f"Results saved to: {output_path}")

    except (OSError, ValueError, ValidationError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
