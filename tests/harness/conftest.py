"""
pytest configuration and fixtures for the harness test suite
Everything runs in-process: no database, cache or HTTP server required
"""

import random
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from models.testing import IntegrationTestConfig, LoadTestConfig


@pytest.fixture
def character_scenario() -> Dict[str, Any]:
    """Base scenario shaped like a character test file"""
    return {
        "name": "Community Manager Scenario",
        "character": {
            "name": "Community Manager",
            "personality": "friendly",
            "response_style": "casual",
            "style": {"all": ["Warm and welcoming"], "chat": ["concise"]},
            "topics": ["onboarding", "moderation"],
        },
        "run": [
            {
                "name": "greeting",
                "input": "Hello, I am new here",
                "expected_actions": ["help"],
            },
            {
                "name": "moderation",
                "input": "Someone is spamming the channel",
                "expectedActions": ["help"],
                "expected_tone": "calm",
            },
        ],
        "evaluation": {"tone": "friendly", "accuracy": 0.9},
    }


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def quick_load_config() -> LoadTestConfig:
    """Short load window so suites finish in well under a second"""
    return LoadTestConfig(
        concurrent_users=3,
        ramp_up_time=0,
        test_duration=0.05,
        max_response_time=2000,
        error_threshold=5
    )


@pytest.fixture
def mock_integration_config() -> IntegrationTestConfig:
    return IntegrationTestConfig(
        external_services=["database", "api", "cache"],
        mock_mode=True,
        health_check_endpoints=[]
    )


async def echo_agent(input_text: str, scenario: Dict[str, Any]) -> str:
    return f"{scenario.get('character', {}).get('name', 'Agent')} can help with: {input_text}"


@pytest.fixture
def agent():
    return echo_agent
