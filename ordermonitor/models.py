"""Domain records shared by the monitoring pipeline."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class Category(str, Enum):
    """Log categories of the order system."""

    ORDER_CREATION = "order-creation"
    PAYMENT_PROCESSING = "payment-processing"
    INVENTORY_MANAGEMENT = "inventory-management"
    ORDER_FULFILLMENT = "order-fulfillment"
    CUSTOMER_COMMUNICATION = "customer-communication"
    ADMIN_ACTIONS = "admin-actions"
    SYSTEM_ERRORS = "system-errors"


MONITORED_CATEGORIES = (
    Category.ORDER_CREATION,
    Category.PAYMENT_PROCESSING,
    Category.INVENTORY_MANAGEMENT,
    Category.ORDER_FULFILLMENT,
)

PERFORMANCE_CATEGORY = "performance"


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


# Collection names in the document store
SYSTEM_LOGS = "system_logs"
ORDERS = "orders"
PAYMENTS = "payments"
INVENTORY_UPDATES = "inventory_updates"
PERFORMANCE_METRICS = "performance_metrics"
AGGREGATED_METRICS = "aggregated_metrics"
SYSTEM_ALERTS = "system_alerts"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LogEntry:
    """Structured log line written by order subsystems."""

    category: str
    level: str
    message: str
    data: Mapping[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)

    def to_document(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "category": self.category,
            "level": self.level,
            "message": self.message,
            "data": dict(self.data),
        }


@dataclass(frozen=True)
class MetricSample:
    """A single performance observation, e.g. a checkout page load time."""

    name: str
    value: float
    timestamp: datetime = field(default_factory=utcnow)

    def to_document(self) -> Dict[str, Any]:
        return {"name": self.name, "value": self.value, "timestamp": self.timestamp}


@dataclass
class Alert:
    """Threshold breach published to the notification topic.

    ``id`` is generated when the alert is created and travels with the
    payload so the dispatcher can correlate the persisted record.
    """

    category: str
    message: str
    severity: Severity
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: utcnow().isoformat())
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    # log level of the order event that raised the alert, if any
    level: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "id": self.id,
            "timestamp": self.timestamp,
            "category": self.category,
            "message": self.message,
            "data": self.data,
            "severity": Severity(self.severity).value,
        }
        if self.level is not None:
            payload["level"] = self.level
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Alert":
        severity = payload.get("severity", Severity.INFO.value)
        try:
            severity = Severity(severity)
        except ValueError:
            severity = Severity.INFO
        kwargs: Dict[str, Any] = {
            "category": payload.get("category", ""),
            "message": payload.get("message", ""),
            "severity": severity,
            "data": dict(payload.get("data") or {}),
        }
        if payload.get("timestamp"):
            kwargs["timestamp"] = payload["timestamp"]
        if payload.get("id"):
            kwargs["id"] = payload["id"]
        if payload.get("level"):
            kwargs["level"] = payload["level"]
        return cls(**kwargs)


@dataclass
class CategoryErrorMetrics:
    """Error count and operation volume for one category in the window."""

    category: str
    error_count: int
    total_operations: int
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def error_rate(self) -> float:
        if self.total_operations > 0:
            return self.error_count / self.total_operations * 100
        # errors without any counted operations are reported as a full outage
        return 100.0 if self.error_count > 0 else 0.0


@dataclass
class PaymentFailureMetrics:
    """Failed payments versus all payment attempts in the window."""

    total_payments: int
    failures: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def failure_rate(self) -> float:
        if self.total_payments <= 0:
            return 0.0
        return self.failure_count / self.total_payments * 100

    def failures_by_type(self) -> Dict[str, List[Dict[str, Any]]]:
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for payment in self.failures:
            error_type = payment.get("errorType") or "unknown"
            grouped.setdefault(error_type, []).append(payment)
        return grouped


@dataclass(frozen=True)
class PerformanceMetric:
    """Aggregate of all samples for one metric name."""

    name: str
    sum: float
    count: int
    min: float
    max: float
    average: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "sum": self.sum,
            "count": self.count,
            "min": self.min,
            "max": self.max,
            "average": self.average,
        }


@dataclass
class AggregatedMetrics:
    """Snapshot written once per performance run for trend display."""

    metrics: Dict[str, PerformanceMetric]
    timeframe: str = "5min"
    timestamp: datetime = field(default_factory=utcnow)

    def to_document(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "timeframe": self.timeframe,
            "metrics": {name: m.to_dict() for name, m in self.metrics.items()},
        }


@dataclass
class ChannelResult:
    """Outcome of delivering one alert to one channel."""

    channel: str
    ok: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"channel": self.channel, "ok": self.ok}
        if self.status_code is not None:
            payload["status_code"] = self.status_code
        if self.error:
            payload["error"] = self.error
        if self.skipped:
            payload["skipped"] = True
        return payload
