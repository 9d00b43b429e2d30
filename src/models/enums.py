"""
Enum definitions for the matrix testing harness
"""

from enum import Enum

class ServiceStatus(str, Enum):
    """
    Outcome of probing one external service or health endpoint.

    - HEALTHY: probe completed and reported the service as available
    - UNHEALTHY: probe completed but the service reported a problem
    - ERROR: probe itself raised; response time is recorded as -1
    """
    HEALTHY = "HEALTHY"
    UNHEALTHY = "UNHEALTHY"
    ERROR = "ERROR"

class QualityRating(str, Enum):
    """Banded rating shared by coverage and overall quality reports"""
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"

    @classmethod
    def for_percentage(cls, percentage: float) -> "QualityRating":
        if percentage >= 90:
            return cls.EXCELLENT
        if percentage >= 80:
            return cls.GOOD
        if percentage >= 70:
            return cls.FAIR
        return cls.POOR
