"""
Load testing engine - staggered virtual users on the event loop
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from models.testing import LoadTestConfig, LoadTestResult
from utils.error_handling import describe_exception
from utils.helpers import mean, percentile_at

logger = logging.getLogger(__name__)

LoadTestFn = Callable[[], Awaitable[Any]]
RequestListener = Callable[[Dict[str, Any]], None]


class LoadTestingEngine:
    """
    Runs a load test against an async test function

    Virtual users are asyncio tasks, user i starting after
    (i / concurrent_users) * ramp_up_time seconds. The run lasts exactly
    test_duration seconds: counters are read when that window closes, so
    requests still in flight are not counted. Those stragglers are then
    cancelled so nothing outlives the run.
    """

    def __init__(self, config: LoadTestConfig, on_request_completed: Optional[RequestListener] = None):
        self.config = config
        self.on_request_completed = on_request_completed
        self.results: List[LoadTestResult] = []

    def _emit(self, event: Dict[str, Any]) -> None:
        if not self.on_request_completed:
            return
        try:
            self.on_request_completed(event)
        except Exception as e:
            logger.warning(f"request_completed listener raised: {e}")

    async def run_load_test(self, test_fn: LoadTestFn) -> LoadTestResult:
        config = self.config
        logger.info(
            f"Starting load test: {config.concurrent_users} users, "
            f"{config.ramp_up_time}s ramp-up, {config.test_duration}s duration"
        )

        response_times: List[float] = []
        counters = {"successful": 0, "failed": 0}

        async def virtual_user(user_index: int) -> None:
            await asyncio.sleep(user_index / config.concurrent_users * config.ramp_up_time)

            started = time.perf_counter()
            try:
                await test_fn()
            except Exception as e:
                counters["failed"] += 1
                self._emit({"success": False, "error": describe_exception(e), "user_index": user_index})
                return

            response_time = (time.perf_counter() - started) * 1000
            response_times.append(response_time)
            counters["successful"] += 1
            self._emit({"success": True, "response_time": response_time, "user_index": user_index})

        tasks = [asyncio.create_task(virtual_user(i)) for i in range(config.concurrent_users)]

        try:
            await asyncio.sleep(config.test_duration)

            # Snapshot before cancelling: late requests stay uncounted
            successful = counters["successful"]
            failed = counters["failed"]
            samples = list(response_times)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                logger.debug(f"Cancelled {len(pending)} requests still running when the window closed")
            await asyncio.gather(*tasks, return_exceptions=True)

        total = successful + failed
        result = LoadTestResult(
            total_requests=total,
            successful_requests=successful,
            failed_requests=failed,
            average_response_time=mean(samples),
            p95_response_time=percentile_at(samples, 0.95) or 0,
            p99_response_time=percentile_at(samples, 0.99) or 0,
            throughput=total / config.test_duration,
            error_rate=(failed / total * 100) if total else 0.0,
            concurrent_users=config.concurrent_users
        )
        self.results.append(result)

        logger.info(
            f"Load test completed: {total} requests, {failed} failed, "
            f"{result.throughput:.2f} req/s"
        )
        return result

    def evaluate_targets(self, result: LoadTestResult) -> Dict[str, bool]:
        """Pass/fail of a result against the configured response time and error targets"""
        return {
            "response_time": result.average_response_time <= self.config.max_response_time,
            "error_rate": result.error_rate <= self.config.error_threshold
        }

    def generate_load_test_report(self) -> str:
        if not self.results:
            return "No load test results available"

        result = self.results[-1]
        targets = self.evaluate_targets(result)

        lines = [
            "LOAD TEST REPORT",
            "=" * 50,
            f"Concurrent Users: {result.concurrent_users}",
            f"Total Requests: {result.total_requests}",
            f"Successful Requests: {result.successful_requests}",
            f"Failed Requests: {result.failed_requests}",
            f"Success Rate: {f'{result.success_rate:.2f}%' if result.success_rate is not None else 'N/A'}",
            f"Average Response Time: {result.average_response_time:.2f}ms",
            f"95th Percentile: {result.p95_response_time:.2f}ms",
            f"99th Percentile: {result.p99_response_time:.2f}ms",
            f"Throughput: {result.throughput:.2f} req/s",
            f"Error Rate: {result.error_rate:.2f}%",
            "",
            "Performance Targets:",
            f"  Response Time: {'PASSED' if targets['response_time'] else 'FAILED'} "
            f"(target: {self.config.max_response_time}ms)",
            f"  Error Rate: {'PASSED' if targets['error_rate'] else 'FAILED'} "
            f"(target: {self.config.error_threshold}%)",
            "=" * 50,
        ]
        return "\n".join(lines)
