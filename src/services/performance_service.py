"""
Performance measurement engine - wall clock, memory and CPU per invocation
"""

import logging
import time
from dataclasses import fields
from typing import Dict, List, Optional

import psutil

from models.testing import PerformanceMetrics
from utils.helpers import format_ms, percentile_summary

logger = logging.getLogger(__name__)


class PerformanceTestingEngine:
    """
    Measures start/end pairs and keeps the history of samples

    start_measurement/end_measurement are not reentrant: a second start
    before the matching end replaces the baseline.
    """

    def __init__(self, process: Optional[psutil.Process] = None):
        self.process = process or psutil.Process()
        self.metrics: List[PerformanceMetrics] = []
        self._start_time: Optional[float] = None
        self._start_memory = 0
        self._start_cpu = 0.0

    def start_measurement(self) -> None:
        self._start_time = time.perf_counter()
        self._start_memory = self.process.memory_info().rss
        self._start_cpu = self.process.cpu_times().user

    def end_measurement(
        self,
        token_count: float = 0,
        api_call_count: float = 0,
        external_service_latency: float = 0
    ) -> PerformanceMetrics:
        """Close the current measurement and append it to the history"""
        if self._start_time is None:
            raise RuntimeError("end_measurement() called before start_measurement()")

        metrics = PerformanceMetrics(
            execution_time=(time.perf_counter() - self._start_time) * 1000,
            memory_usage=self.process.memory_info().rss - self._start_memory,
            cpu_usage=self.process.cpu_times().user - self._start_cpu,
            token_count=token_count,
            api_call_count=api_call_count,
            external_service_latency=external_service_latency
        )
        self.metrics.append(metrics)
        logger.debug(f"Measured {metrics.execution_time:.2f}ms, memory delta {metrics.memory_usage} bytes")
        return metrics

    def get_average_metrics(self) -> PerformanceMetrics:
        """Field-wise mean over the history (all zeros when empty)"""
        if not self.metrics:
            return PerformanceMetrics(execution_time=0, memory_usage=0, cpu_usage=0)

        count = len(self.metrics)
        averages = {
            f.name: sum(getattr(m, f.name) for m in self.metrics) / count
            for f in fields(PerformanceMetrics)
        }
        return PerformanceMetrics(**averages)

    def get_percentiles(self) -> Dict[str, Optional[float]]:
        return percentile_summary([m.execution_time for m in self.metrics])

    def generate_performance_report(self) -> str:
        average = self.get_average_metrics()
        percentiles = self.get_percentiles()

        lines = [
            "PERFORMANCE TEST REPORT",
            "=" * 50,
            f"Total Tests: {len(self.metrics)}",
            f"Average Execution Time: {average.execution_time:.2f}ms",
            f"Average Memory Usage: {average.memory_usage / 1024 / 1024:.2f}MB",
            f"Average CPU Usage: {average.cpu_usage:.4f}s",
            f"Average Token Count: {average.token_count:.0f}",
            f"Average API Calls: {average.api_call_count:.1f}",
            f"Average External Service Latency: {average.external_service_latency:.2f}ms",
            "",
            "Execution Time Percentiles:",
        ]
        lines.extend(f"  {name.upper()}: {format_ms(value)}" for name, value in percentiles.items())
        lines.append("=" * 50)
        return "\n".join(lines)

    def reset(self) -> None:
        self.metrics = []
        self._start_time = None
