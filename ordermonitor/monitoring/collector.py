"""Metric collection over the trailing monitoring window.

The collector only reads. It raises on store failures and leaves the
decision to swallow them to the job layer.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pandas as pd

from ordermonitor.models import (
    INVENTORY_UPDATES,
    MONITORED_CATEGORIES,
    ORDERS,
    PAYMENTS,
    PERFORMANCE_METRICS,
    SYSTEM_LOGS,
    Category,
    CategoryErrorMetrics,
    LogLevel,
    PaymentFailureMetrics,
    PerformanceMetric,
    utcnow,
)
from ordermonitor.storage import DocumentStore, Filter
from ordermonitor.utils.config_schemas import MonitoringConfig


@dataclass
class MetricCollector:
    """Read recent documents and turn them into counts, rates and averages."""

    store: DocumentStore
    config: MonitoringConfig

    def window_start(self, now: Optional[datetime] = None) -> datetime:
        now = now or utcnow()
        return now - timedelta(minutes=self.config.monitoring.window_minutes)

    # ------------------------------------------------------------------
    def _operation_filters(self, category: str, since: datetime) -> tuple:
        if category == Category.ORDER_CREATION:
            return ORDERS, [Filter("dates.created", ">=", since)]
        if category == Category.PAYMENT_PROCESSING:
            return PAYMENTS, [Filter("timestamp", ">=", since)]
        if category == Category.INVENTORY_MANAGEMENT:
            return INVENTORY_UPDATES, [Filter("timestamp", ">=", since)]
        if category == Category.ORDER_FULFILLMENT:
            return ORDERS, [
                Filter("dates.updated", ">=", since),
                Filter("status", "in", list(self.config.monitoring.fulfillment_statuses)),
            ]
        raise ValueError(f"No operation volume defined for category {category!r}")

    async def count_operations(self, category: str, since: datetime) -> int:
        collection, filters = self._operation_filters(category, since)
        return await self.store.count(collection, filters)

    async def collect_error_rates(
        self, now: Optional[datetime] = None
    ) -> List[CategoryErrorMetrics]:
        """Error counts and operation volume for every category with errors."""

        since = self.window_start(now)
        error_logs = await self.store.query(
            SYSTEM_LOGS,
            [
                Filter("timestamp", ">=", since),
                Filter("level", "in", [LogLevel.ERROR.value, LogLevel.CRITICAL.value]),
                Filter("category", "in", [c.value for c in MONITORED_CATEGORIES]),
            ],
        )
        if not error_logs:
            return []

        errors_by_category: Dict[str, List[dict]] = {}
        for entry in error_logs:
            errors_by_category.setdefault(entry["category"], []).append(entry)

        categories = list(errors_by_category)
        totals = await asyncio.gather(
            *(self.count_operations(category, since) for category in categories)
        )
        limit = self.config.monitoring.sample_limit
        return [
            CategoryErrorMetrics(
                category=category,
                error_count=len(errors_by_category[category]),
                total_operations=total,
                errors=errors_by_category[category][:limit],
            )
            for category, total in zip(categories, totals)
        ]

    async def collect_payment_failures(
        self, now: Optional[datetime] = None
    ) -> PaymentFailureMetrics:
        since = self.window_start(now)
        failures, total = await asyncio.gather(
            self.store.query(
                PAYMENTS,
                [Filter("timestamp", ">=", since), Filter("status", "==", "failed")],
            ),
            self.store.count(PAYMENTS, [Filter("timestamp", ">=", since)]),
        )
        return PaymentFailureMetrics(total_payments=total, failures=failures)

    async def collect_performance(
        self, now: Optional[datetime] = None
    ) -> Dict[str, PerformanceMetric]:
        """Aggregate raw performance samples per metric name."""

        since = self.window_start(now)
        samples = await self.store.query(
            PERFORMANCE_METRICS, [Filter("timestamp", ">=", since)]
        )
        return aggregate_samples(samples)


def aggregate_samples(samples: List[dict]) -> Dict[str, PerformanceMetric]:
    """Compute sum/count/min/max/average per ``name`` for raw samples."""

    if not samples:
        return {}
    frame = pd.DataFrame(
        [{"name": s.get("name"), "value": s.get("value")} for s in samples]
    )
    frame["value"] = pd.to_numeric(frame["value"], errors="coerce")
    frame = frame.dropna(subset=["name", "value"])
    if frame.empty:
        return {}
    stats = frame.groupby("name", sort=False)["value"].agg(
        ["sum", "count", "min", "max", "mean"]
    )
    return {
        str(name): PerformanceMetric(
            name=str(name),
            sum=float(row["sum"]),
            count=int(row["count"]),
            min=float(row["min"]),
            max=float(row["max"]),
            average=float(row["mean"]),
        )
        for name, row in stats.iterrows()
    }
