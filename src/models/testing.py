"""
Advanced testing models: engine configuration and measured results
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from pydantic import BaseModel, Field

# Engine configuration (validated, caller supplied)
class LoadTestConfig(BaseModel):
    concurrent_users: int = Field(gt=0)
    ramp_up_time: float = Field(ge=0)  # seconds
    test_duration: float = Field(gt=0)  # seconds
    max_response_time: float = Field(ge=0)  # milliseconds
    error_threshold: float = Field(ge=0)  # percentage

class IntegrationTestConfig(BaseModel):
    external_services: List[str]
    mock_mode: bool
    timeout: int = Field(10000, gt=0)  # milliseconds, per HTTP request and per database/cache connection
    retry_attempts: int = Field(3, ge=0)  # honoured by caller-supplied probes
    health_check_endpoints: List[str] = Field(default_factory=list)

    # Targets for the built-in live probes
    database_url: Optional[str] = None
    redis_url: Optional[str] = None
    api_base_url: Optional[str] = None

# Measured results
@dataclass
class PerformanceMetrics:
    """One measured invocation"""
    execution_time: float  # milliseconds
    memory_usage: float  # bytes, resident set delta
    cpu_usage: float  # seconds of user CPU
    token_count: float = 0
    api_call_count: float = 0
    external_service_latency: float = 0  # milliseconds

@dataclass
class LoadTestResult:
    """Summary of one load test run"""
    total_requests: int
    successful_requests: int
    failed_requests: int
    average_response_time: float
    p95_response_time: float
    p99_response_time: float
    throughput: float  # requests per second
    error_rate: float  # percentage
    concurrent_users: int

    @property
    def success_rate(self) -> Optional[float]:
        if self.total_requests == 0:
            return None
        return self.successful_requests / self.total_requests * 100

@dataclass
class IntegrationTestResult:
    """Health of every probed service and endpoint"""
    service_health: Dict[str, bool]
    api_response_times: Dict[str, float]  # -1 marks a probe that raised
    mock_mode_used: bool
    external_dependencies: List[str]
    integration_points: List[str]

    @property
    def healthy_count(self) -> int:
        return sum(1 for healthy in self.service_health.values() if healthy)

    @property
    def health_rate(self) -> Optional[float]:
        if not self.service_health:
            return None
        return self.healthy_count / len(self.service_health) * 100

@dataclass
class CoverageMetrics:
    scenarios_covered: int
    total_scenarios: int
    parameter_combinations: int
    test_paths: List[str]
    uncovered_paths: List[str]
    coverage_percentage: float

@dataclass
class AdvancedTestResult:
    """Fused performance/load/integration/coverage outcome for one scenario"""
    test_id: str
    scenario_name: str
    performance: PerformanceMetrics
    coverage: CoverageMetrics
    timestamp: str
    success: bool
    errors: List[str] = field(default_factory=list)
    load_test_results: Optional[LoadTestResult] = None
    integration_results: Optional[IntegrationTestResult] = None
    details: Dict[str, Any] = field(default_factory=dict)
