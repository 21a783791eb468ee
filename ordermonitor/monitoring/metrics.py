from __future__ import annotations

"""Prometheus metrics for the monitoring pipeline itself."""

from dataclasses import dataclass
from prometheus_client import Counter, Histogram, REGISTRY


def _get_metric(metric_cls, name: str, documentation: str, labelnames: list[str]):
    try:
        return REGISTRY._names_to_collectors[name]  # type: ignore[attr-defined]
    except KeyError:
        return metric_cls(name, documentation, labelnames)


# Metric definitions -----------------------------------------------------------
_alerts_published = _get_metric(
    Counter,
    "ordermonitor_alerts_published_total",
    "Alerts published to the notification topic",
    ["category", "severity"],
)
_notifications = _get_metric(
    Counter,
    "ordermonitor_notifications_total",
    "Notification attempts per channel and outcome",
    ["channel", "outcome"],
)
_job_runs = _get_metric(
    Counter,
    "ordermonitor_job_runs_total",
    "Scheduled monitoring job runs",
    ["job", "outcome"],
)
_job_duration = _get_metric(
    Histogram,
    "ordermonitor_job_duration_seconds",
    "Wall-clock duration of a monitoring job run",
    ["job"],
)


@dataclass
class PipelineMetrics:
    """Lightweight wrapper around the pipeline's Prometheus metrics."""

    def record_alert_published(self, category: str, severity: str) -> None:
        _alerts_published.labels(category=category, severity=severity).inc()

    def record_notification(self, channel: str, outcome: str) -> None:
        _notifications.labels(channel=channel, outcome=outcome).inc()

    def record_job_run(self, job: str, outcome: str, duration: float) -> None:
        _job_runs.labels(job=job, outcome=outcome).inc()
        _job_duration.labels(job=job).observe(duration)
