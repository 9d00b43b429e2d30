"""
Configuration settings for the matrix testing harness
"""

import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from models.testing import IntegrationTestConfig, LoadTestConfig

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in TRUE_VALUES


@dataclass
class HarnessSettings:
    """Environment-driven harness configuration"""

    env: str = field(default_factory=lambda: os.getenv("HARNESS_ENV", "local"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    results_dir: str = field(default_factory=lambda: os.getenv("RESULTS_DIR", "results"))

    # External services probed in live integration mode
    database_url: Optional[str] = field(default_factory=lambda: os.getenv("DATABASE_URL"))
    redis_url: Optional[str] = field(default_factory=lambda: os.getenv("REDIS_URL"))
    api_base_url: Optional[str] = field(default_factory=lambda: os.getenv("API_BASE_URL"))

    # Load testing
    concurrent_users: int = field(default_factory=lambda: int(os.getenv("LOAD_TEST_CONCURRENT_USERS", "10")))
    ramp_up_time: float = field(default_factory=lambda: float(os.getenv("LOAD_TEST_RAMP_UP_TIME", "5")))
    test_duration: float = field(default_factory=lambda: float(os.getenv("LOAD_TEST_DURATION", "30")))
    max_response_time: float = field(default_factory=lambda: float(os.getenv("LOAD_TEST_MAX_RESPONSE_TIME", "2000")))
    error_threshold: float = field(default_factory=lambda: float(os.getenv("LOAD_TEST_ERROR_THRESHOLD", "5")))

    # Integration testing
    external_services: List[str] = field(default_factory=lambda: _env_list("INTEGRATION_SERVICES", "database,api,cache"))
    mock_mode: bool = field(default_factory=lambda: _env_bool("INTEGRATION_MOCK_MODE", "true"))
    integration_timeout: int = field(default_factory=lambda: int(os.getenv("INTEGRATION_TIMEOUT", "10000")))
    retry_attempts: int = field(default_factory=lambda: int(os.getenv("INTEGRATION_RETRY_ATTEMPTS", "3")))
    health_check_endpoints: List[str] = field(default_factory=lambda: _env_list(
        "HEALTH_CHECK_ENDPOINTS",
        "http://localhost:3000/health,http://localhost:3000/api/status"
    ))

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if self.concurrent_users < 1:
            errors.append("LOAD_TEST_CONCURRENT_USERS must be at least 1")
        if self.ramp_up_time < 0:
            errors.append("LOAD_TEST_RAMP_UP_TIME must not be negative")
        if self.test_duration <= 0:
            errors.append("LOAD_TEST_DURATION must be positive")
        if self.integration_timeout <= 0:
            errors.append("INTEGRATION_TIMEOUT must be positive")
        if self.retry_attempts < 0:
            errors.append("INTEGRATION_RETRY_ATTEMPTS must not be negative")

        if not self.mock_mode:
            if "database" in self.external_services and not self.database_url:
                errors.append("DATABASE_URL is required to probe 'database' in live mode")
            if "cache" in self.external_services and not self.redis_url:
                errors.append("REDIS_URL is required to probe 'cache' in live mode")
            if "api" in self.external_services and not self.api_base_url:
                errors.append("API_BASE_URL is required to probe 'api' in live mode")

        return errors


def get_settings() -> HarnessSettings:
    """Get validated harness settings"""
    settings = HarnessSettings()
    errors = settings.validate()

    if errors:
        raise ValueError(f"Configuration errors: {', '.join(errors)}")

    logger.debug(f"Harness environment: {settings.env}, mock mode: {settings.mock_mode}")
    return settings


def default_load_test_config(settings: Optional[HarnessSettings] = None) -> LoadTestConfig:
    """Build the load test configuration from environment settings"""
    settings = settings or get_settings()
    return LoadTestConfig(
        concurrent_users=settings.concurrent_users,
        ramp_up_time=settings.ramp_up_time,
        test_duration=settings.test_duration,
        max_response_time=settings.max_response_time,
        error_threshold=settings.error_threshold
    )


def default_integration_test_config(settings: Optional[HarnessSettings] = None) -> IntegrationTestConfig:
    """Build the integration test configuration from environment settings"""
    settings = settings or get_settings()
    return IntegrationTestConfig(
        external_services=list(settings.external_services),
        mock_mode=settings.mock_mode,
        timeout=settings.integration_timeout,
        retry_attempts=settings.retry_attempts,
        health_check_endpoints=list(settings.health_check_endpoints),
        database_url=settings.database_url,
        redis_url=settings.redis_url,
        api_base_url=settings.api_base_url
    )
