"""Threshold evaluation and alert construction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ordermonitor.models import (
    PERFORMANCE_CATEGORY,
    Alert,
    Category,
    CategoryErrorMetrics,
    PaymentFailureMetrics,
    PerformanceMetric,
    Severity,
)
from ordermonitor.utils.config_schemas import MonitoringConfig


_ERROR_RATE_LABELS = {
    Category.ORDER_CREATION: "order creation",
    Category.PAYMENT_PROCESSING: "payment processing",
    Category.INVENTORY_MANAGEMENT: "inventory update",
    Category.ORDER_FULFILLMENT: "order fulfillment",
}


def classify_severity(value: float, threshold: float) -> Severity:
    """``critical`` at twice the threshold, ``warning`` at the threshold."""

    if value >= 2 * threshold:
        return Severity.CRITICAL
    if value >= threshold:
        return Severity.WARNING
    return Severity.INFO


def _fmt_threshold(threshold: float) -> str:
    return f"{threshold:g}"


def error_rate_message(category: str, error_rate: float, threshold: float) -> str:
    rate = f"{error_rate:.2f}%"
    limit = f"(threshold: {_fmt_threshold(threshold)}%)"
    try:
        label = _ERROR_RATE_LABELS.get(Category(category))
    except ValueError:
        label = None
    if label is None:
        return f"High error rate in {category}: {rate} {limit}"
    return f"High {label} failure rate: {rate} {limit}"


@dataclass
class ThresholdEvaluator:
    """Compare collected metrics with the configured static thresholds.

    Only breaches produce an :class:`Alert`; an ``info`` classification
    never leaves the evaluator.
    """

    config: MonitoringConfig

    def evaluate_error_rate(self, metrics: CategoryErrorMetrics) -> Optional[Alert]:
        if metrics.error_count <= 0:
            return None
        if metrics.total_operations > 0:
            threshold = self.config.thresholds.error_rates.for_category(
                metrics.category
            )
            if threshold is None:
                return None
        else:
            # errors without counted volume always alert
            threshold = 0.0
        error_rate = metrics.error_rate
        severity = classify_severity(error_rate, threshold)
        if severity is Severity.INFO:
            return None
        return Alert(
            category=metrics.category,
            message=error_rate_message(metrics.category, error_rate, threshold),
            severity=severity,
            data={
                "errorRate": error_rate,
                "threshold": threshold,
                "errorCount": metrics.error_count,
                "totalOperations": metrics.total_operations,
                "sampleErrors": metrics.errors,
            },
        )

    def evaluate_payment_failures(
        self, metrics: PaymentFailureMetrics
    ) -> Optional[Alert]:
        if metrics.total_payments <= 0:
            return None
        threshold = self.config.thresholds.error_rates.payment_processing
        failure_rate = metrics.failure_rate
        severity = classify_severity(failure_rate, threshold)
        if severity is Severity.INFO:
            return None
        limit = self.config.monitoring.sample_limit
        return Alert(
            category=Category.PAYMENT_PROCESSING.value,
            message=error_rate_message(
                Category.PAYMENT_PROCESSING.value, failure_rate, threshold
            ),
            severity=severity,
            data={
                "failureRate": failure_rate,
                "threshold": threshold,
                "failureCount": metrics.failure_count,
                "totalPayments": metrics.total_payments,
                "failuresByType": metrics.failures_by_type(),
                "sampleFailures": metrics.failures[:limit],
            },
        )

    def evaluate_performance(self, metric: PerformanceMetric) -> Optional[Alert]:
        threshold = self.config.thresholds.performance.for_metric(metric.name)
        severity = classify_severity(metric.average, threshold)
        if severity is Severity.INFO:
            return None
        return Alert(
            category=PERFORMANCE_CATEGORY,
            message=(
                f"Slow performance detected in {metric.name}: "
                f"{metric.average:.2f}ms (threshold: {_fmt_threshold(threshold)}ms)"
            ),
            severity=severity,
            data={
                "metricName": metric.name,
                "average": metric.average,
                "threshold": threshold,
                "min": metric.min,
                "max": metric.max,
                "sampleCount": metric.count,
            },
        )
