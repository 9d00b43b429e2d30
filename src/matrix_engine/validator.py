"""
Validator component - deterministic pass/fail evaluation of sub-test results
"""

import logging
from typing import Any, Dict, List, Sequence

from models.matrix import ValidationRule
from models.results import TestResult
from matrix_engine.paths import get_value_at_path
from utils.error_handling import describe_exception

logger = logging.getLogger(__name__)

GENERIC_GUIDANCE_PHRASE = "Let me provide some guidance"


def check_expected_actions(result: TestResult) -> List[str]:
    """
    Keyword-containment check for expected actions

    Each action, with underscores read as spaces, must appear in the
    response case-insensitively.
    """
    response_lower = (result.actual_response or "").lower()
    errors = []
    for action in result.expected_actions:
        if action.lower().replace("_", " ") not in response_lower:
            errors.append(f"Expected action '{action}' not found in response")
    return errors


def apply_rule(rule: ValidationRule, result: TestResult, scenario: Dict[str, Any]) -> List[str]:
    """Errors produced by one validation rule (empty when it holds)"""
    try:
        holds = bool(rule.condition(result, scenario))
    except Exception as e:
        logger.warning(f"Validation rule '{rule.name}' raised: {e}")
        return [f"{rule.error_message} (rule '{rule.name}' raised: {describe_exception(e)})"]

    return [] if holds else [rule.error_message]


def validate_test_result(
    result: TestResult,
    scenario: Dict[str, Any],
    rules: Sequence[ValidationRule]
) -> bool:
    """
    Apply custom rules then the expected-action check

    Appends every error to result.errors, sets result.passed and returns it.
    """
    errors: List[str] = []

    for rule in rules:
        errors.extend(apply_rule(rule, result, scenario))

    if result.expected_actions:
        errors.extend(check_expected_actions(result))

    result.errors.extend(errors)
    result.passed = not result.errors
    return result.passed


# Stock rules for character-style scenarios
def _personality_consistency(result: TestResult, scenario: Dict[str, Any]) -> bool:
    personality = get_value_at_path(scenario, "character.name")
    response = result.actual_response or ""
    if not personality:
        return False
    personality = str(personality)
    return personality in response or personality.split(" ")[0] in response


def _style_consistency(result: TestResult, scenario: Dict[str, Any]) -> bool:
    style = get_value_at_path(scenario, "character.style.all[0]")
    if not style:
        return True

    response = result.actual_response or ""
    style_lower = str(style).lower()
    if "warm" in style_lower and "Hi" not in response and "happy" not in response:
        return False
    if "formal" in style_lower and "Greetings" not in response:
        return False
    if "direct" in style_lower and GENERIC_GUIDANCE_PHRASE in response:
        return False
    return True


def _action_appropriateness(result: TestResult, scenario: Dict[str, Any]) -> bool:
    response = result.actual_response or ""
    return len(response) > 20 and "help" in response


def default_validation_rules() -> List[ValidationRule]:
    """Rules shipped for character scenarios: personality, style and action checks"""
    return [
        ValidationRule(
            name="personality_consistency",
            condition=_personality_consistency,
            error_message="Response does not maintain character personality"
        ),
        ValidationRule(
            name="style_consistency",
            condition=_style_consistency,
            error_message="Response does not match expected style"
        ),
        ValidationRule(
            name="action_appropriateness",
            condition=_action_appropriateness,
            error_message="Response is not appropriate for the character type"
        ),
    ]
