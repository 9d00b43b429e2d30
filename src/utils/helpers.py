"""
Utility functions and helpers
"""

import logging
import math
import random
import string
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

PERCENTILES = {"p50": 0.50, "p90": 0.90, "p95": 0.95, "p99": 0.99}


def percentile_at(values: Sequence[float], fraction: float) -> Optional[float]:
    """
    Floor-indexed percentile of a sample.

    Sorts ascending and reads index floor(n * fraction); no interpolation.
    Returns None when the sample has no value at that index.
    """
    ordered = sorted(values)
    index = math.floor(len(ordered) * fraction)
    if index >= len(ordered):
        return None
    return ordered[index]


def percentile_summary(values: Sequence[float]) -> Dict[str, Optional[float]]:
    """p50/p90/p95/p99 of a sample, None where not available"""
    return {name: percentile_at(values, fraction) for name, fraction in PERCENTILES.items()}


def mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def utc_timestamp() -> str:
    """Current UTC time in ISO-8601 format"""
    return datetime.now(timezone.utc).isoformat()


def generate_test_id(rng: Optional[random.Random] = None) -> str:
    """Unique-enough id for one advanced test run: test_<epoch ms>_<9 chars>"""
    rng = rng or random.Random()
    suffix = "".join(rng.choices(string.ascii_lowercase + string.digits, k=9))
    return f"test_{int(time.time() * 1000)}_{suffix}"


def format_ms(value: Optional[float]) -> str:
    return f"{value:.2f}ms" if value is not None else "N/A"
