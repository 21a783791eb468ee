"""Order monitoring: collection, threshold evaluation and notification."""

from .api import create_health_app
from .collector import MetricCollector, aggregate_samples
from .dispatcher import AlertPublisher, DispatchOutcome, NotificationDispatcher
from .evaluator import ThresholdEvaluator, classify_severity
from .events import OrderEventLogger
from .jobs import JobResult, MonitoringJobs
from .metrics import PipelineMetrics
from .scheduler import MonitoringScheduler

__all__ = [
    "AlertPublisher",
    "DispatchOutcome",
    "JobResult",
    "MetricCollector",
    "MonitoringJobs",
    "MonitoringScheduler",
    "NotificationDispatcher",
    "OrderEventLogger",
    "PipelineMetrics",
    "ThresholdEvaluator",
    "aggregate_samples",
    "classify_severity",
    "create_health_app",
]
