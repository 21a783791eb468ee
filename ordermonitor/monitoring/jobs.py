"""Scheduled monitoring jobs.

Each job is a stateless transform from "now" to the list of alerts it
published. Collection failures are logged and end the run without alerting;
nothing propagates to the scheduler.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional

from ordermonitor.logging import logger
from ordermonitor.models import AGGREGATED_METRICS, AggregatedMetrics, Alert, utcnow

from .collector import MetricCollector
from .dispatcher import AlertPublisher
from .evaluator import ThresholdEvaluator
from .metrics import PipelineMetrics

ORDER_ERRORS = "monitor_order_errors"
PAYMENT_ISSUES = "monitor_payment_issues"
SYSTEM_PERFORMANCE = "monitor_system_performance"


@dataclass
class JobResult:
    job: str
    status: str = "never_run"
    alerts: int = 0
    error: Optional[str] = None
    finished_at: Optional[str] = None

    def to_dict(self) -> Dict:
        payload = {"status": self.status, "alerts": self.alerts}
        if self.error:
            payload["error"] = self.error
        if self.finished_at:
            payload["finished_at"] = self.finished_at
        return payload


@dataclass
class MonitoringJobs:
    """Collector -> evaluator -> publisher wiring for the three monitors."""

    collector: MetricCollector
    evaluator: ThresholdEvaluator
    publisher: AlertPublisher
    metrics: PipelineMetrics = field(default_factory=PipelineMetrics)
    last_results: Dict[str, JobResult] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in (ORDER_ERRORS, PAYMENT_ISSUES, SYSTEM_PERFORMANCE):
            self.last_results.setdefault(name, JobResult(job=name))

    @property
    def jobs(self) -> Dict[str, Callable[[Optional[datetime]], Awaitable[List[Alert]]]]:
        return {
            ORDER_ERRORS: self.monitor_order_errors,
            PAYMENT_ISSUES: self.monitor_payment_issues,
            SYSTEM_PERFORMANCE: self.monitor_system_performance,
        }

    # ------------------------------------------------------------------
    async def _run(
        self, name: str, body: Callable[[], Awaitable[List[Alert]]]
    ) -> List[Alert]:
        started = time.perf_counter()
        result = JobResult(job=name)
        try:
            alerts = await body()
        except Exception as exc:
            logger.error("job_failed", job=name, error=str(exc))
            alerts = []
            result.status = "failed"
            result.error = str(exc)
        else:
            result.status = "ok"
            result.alerts = len(alerts)
        result.finished_at = utcnow().isoformat()
        self.last_results[name] = result
        self.metrics.record_job_run(name, result.status, time.perf_counter() - started)
        return alerts

    async def _publish_all(self, alerts: List[Alert]) -> List[Alert]:
        published: List[Alert] = []
        for alert in alerts:
            if await self.publisher.publish(alert):
                published.append(alert)
        return published

    # ------------------------------------------------------------------
    async def monitor_order_errors(self, now: Optional[datetime] = None) -> List[Alert]:
        async def body() -> List[Alert]:
            category_metrics = await self.collector.collect_error_rates(now)
            if not category_metrics:
                logger.info("no_order_errors", window=self._window())
                return []
            alerts = [
                alert
                for alert in map(self.evaluator.evaluate_error_rate, category_metrics)
                if alert is not None
            ]
            if not alerts:
                logger.info("error_rates_within_thresholds")
                return []
            published = await self._publish_all(alerts)
            logger.info("order_error_alerts_sent", count=len(published))
            return published

        return await self._run(ORDER_ERRORS, body)

    async def monitor_payment_issues(
        self, now: Optional[datetime] = None
    ) -> List[Alert]:
        async def body() -> List[Alert]:
            payments = await self.collector.collect_payment_failures(now)
            if payments.total_payments == 0:
                logger.info("no_payment_attempts", window=self._window())
                return []
            alert = self.evaluator.evaluate_payment_failures(payments)
            if alert is None:
                logger.info(
                    "payment_failure_rate_ok",
                    failure_rate=round(payments.failure_rate, 2),
                )
                return []
            return await self._publish_all([alert])

        return await self._run(PAYMENT_ISSUES, body)

    async def monitor_system_performance(
        self, now: Optional[datetime] = None
    ) -> List[Alert]:
        async def body() -> List[Alert]:
            metrics = await self.collector.collect_performance(now)
            if not metrics:
                logger.info("no_performance_metrics", window=self._window())
                return []
            alerts = [
                alert
                for alert in map(self.evaluator.evaluate_performance, metrics.values())
                if alert is not None
            ]
            published = await self._publish_all(alerts)
            if published:
                logger.info("performance_alerts_sent", count=len(published))
            else:
                logger.info("performance_within_thresholds")
            snapshot = AggregatedMetrics(
                metrics=metrics, timeframe=self._window()
            )
            try:
                await self.collector.store.add(
                    AGGREGATED_METRICS, snapshot.to_document()
                )
            except Exception as exc:
                logger.error("snapshot_write_failed", error=str(exc))
            return published

        return await self._run(SYSTEM_PERFORMANCE, body)

    async def run_all(self, now: Optional[datetime] = None) -> Dict[str, List[Alert]]:
        """Run every job concurrently; each job handles its own failures."""

        names = list(self.jobs)
        results = await asyncio.gather(*(self.jobs[name](now) for name in names))
        return dict(zip(names, results))

    def health_report(self) -> Dict[str, Dict]:
        return {name: result.to_dict() for name, result in self.last_results.items()}

    def _window(self) -> str:
        return self.collector.config.monitoring.timeframe
