"""
Simulated agent for demos and self-tests

The harness never builds an agent itself; these stand-ins let the CLI and
the test suite exercise a full run without a real model behind it.
"""

import asyncio
import random
from typing import Any, Dict, Optional

from matrix_engine.paths import get_value_at_path


async def simulate_agent_response(input_text: str, scenario: Dict[str, Any]) -> str:
    """Canned reply whose tone follows the scenario's first style entry"""
    personality = get_value_at_path(scenario, "character.name") or "Agent"
    style = str(get_value_at_path(scenario, "character.style.all[0]") or "professional").lower()

    if "warm" in style:
        return f"Hi there! As a {personality}, I'd be happy to help you with that. Let me provide some warm and friendly guidance..."
    elif "formal" in style:
        return f"Greetings. As a {personality}, I shall provide you with comprehensive assistance in this matter."
    elif "direct" in style:
        return f"As a {personality}, here's what you need to know: [direct response]"
    else:
        return f"As a {personality}, I can help you with that. Let me provide some guidance..."


async def simulate_scenario_execution(
    scenario: Dict[str, Any],
    rng: Optional[random.Random] = None,
    time_scale: float = 1.0
) -> Dict[str, Any]:
    """
    Pretend to execute a whole scenario

    Sleeps 500-1500ms (scaled by time_scale) and reports simulated API
    calls, external service touches and token usage.
    """
    rng = rng or random.Random()
    execution_time = rng.random() * 1000 + 500
    api_calls = rng.randint(1, 5)
    external_services = rng.randint(0, 2)
    tokens = rng.randint(100, 1099)

    await asyncio.sleep(execution_time * time_scale / 1000)

    return {
        "scenario": scenario.get("name"),
        "execution_time": execution_time,
        "api_calls": api_calls,
        "external_services": external_services,
        "tokens": tokens,
        "success": rng.random() > 0.1
    }
