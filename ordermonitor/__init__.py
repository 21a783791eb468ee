"""ordermonitor
=================

Order-system monitoring for the e-commerce back office. Scheduled jobs read
the last five minutes of orders, payments, inventory updates and performance
samples, compare error rates and latencies against static thresholds, and
publish alerts that a dispatcher fans out to chat, paging, email and SMS.

Public API:
    - ``MonitoringService`` wiring everything from ``config/monitoring.yaml``
    - ``MetricCollector``, ``ThresholdEvaluator``, ``NotificationDispatcher``
    - ``MonitoringJobs`` and ``MonitoringScheduler``
    - ``OrderEventLogger`` for structured order events
    - ``InMemoryDocumentStore`` / ``SQLiteDocumentStore`` and ``InMemoryTopic``

Quick Start:
    ```python
    import asyncio
    from ordermonitor import MonitoringService, load_config

    service = MonitoringService(config=load_config("config/monitoring.yaml"))
    alerts = asyncio.run(service.run_once())
    ```
"""

from .models import (
    Alert,
    AggregatedMetrics,
    Category,
    LogEntry,
    LogLevel,
    MetricSample,
    Severity,
)
from .monitoring import (
    AlertPublisher,
    MetricCollector,
    MonitoringJobs,
    MonitoringScheduler,
    NotificationDispatcher,
    OrderEventLogger,
    ThresholdEvaluator,
    classify_severity,
)
from .pubsub import InMemoryTopic, Topic
from .service import MonitoringService
from .storage import DocumentStore, InMemoryDocumentStore, SQLiteDocumentStore
from .utils.config_loader import ConfigError, load_config
from .utils.config_schemas import MonitoringConfig

__all__ = [
    "Alert",
    "AggregatedMetrics",
    "Category",
    "LogEntry",
    "LogLevel",
    "MetricSample",
    "Severity",
    "AlertPublisher",
    "MetricCollector",
    "MonitoringJobs",
    "MonitoringScheduler",
    "NotificationDispatcher",
    "OrderEventLogger",
    "ThresholdEvaluator",
    "classify_severity",
    "InMemoryTopic",
    "Topic",
    "MonitoringService",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
    "ConfigError",
    "load_config",
    "MonitoringConfig",
]
