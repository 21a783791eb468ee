import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from ordermonitor.models import AGGREGATED_METRICS, SYSTEM_ALERTS, SYSTEM_LOGS, Severity
from ordermonitor.service import MonitoringService
from ordermonitor.storage import InMemoryDocumentStore, StorageError
from ordermonitor.utils.config_schemas import MonitoringConfig

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
RECENT = NOW - timedelta(minutes=2)

CONFIG = MonitoringConfig.model_validate(
    {
        "notifications": {
            "critical": {
                "chat_webhook": "https://chat.example/critical",
                "paging_webhook": "https://pager.example/enqueue",
            },
            "warning": {"chat_webhook": "https://chat.example/warning"},
        }
    }
)


class RecordingTransport:
    def __init__(self):
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200)

    def count(self, host: str) -> int:
        return sum(1 for r in self.requests if r.url.host == host)


async def _run(store, transport, job=None):
    async with httpx.AsyncClient(transport=httpx.MockTransport(transport)) as client:
        service = MonitoringService(config=CONFIG, store=store, client=client)
        results = await service.run_once(NOW, job=job)
    return service, results


async def _seed_payments(store, total, failed):
    for i in range(total):
        status = "failed" if i < failed else "succeeded"
        await store.add("payments", {"timestamp": RECENT, "status": status, "amount": 10})


def test_three_percent_payment_failures_raise_one_warning():
    store = InMemoryDocumentStore()
    transport = RecordingTransport()

    async def scenario():
        await _seed_payments(store, total=100, failed=3)
        return await _run(store, transport)

    service, results = asyncio.run(scenario())
    alerts = [a for job_alerts in results.values() for a in job_alerts]
    assert len(alerts) == 1
    (alert,) = alerts
    assert alert.category == "payment-processing"
    assert alert.severity is Severity.WARNING
    assert alert.data["failureRate"] == pytest.approx(3.0)
    assert transport.count("pager.example") == 0
    assert transport.count("chat.example") == 1


def test_six_percent_payment_failures_page_once():
    store = InMemoryDocumentStore()
    transport = RecordingTransport()

    async def scenario():
        await _seed_payments(store, total=100, failed=6)
        service, results = await _run(store, transport)
        return results, await store.query(SYSTEM_ALERTS)

    results, records = asyncio.run(scenario())
    (alert,) = results["monitor_payment_issues"]
    assert alert.severity is Severity.CRITICAL
    assert transport.count("pager.example") == 1
    assert len(records) == 1
    assert records[0]["processed"] is True
    assert records[0]["alertId"] == alert.id


def test_empty_window_emits_nothing():
    store = InMemoryDocumentStore()
    transport = RecordingTransport()
    service, results = asyncio.run(_run(store, transport))
    assert all(alerts == [] for alerts in results.values())
    assert transport.requests == []
    assert all(r["status"] == "ok" for r in service.jobs.health_report().values())


def test_errors_without_volume_raise_critical_full_rate_alert():
    store = InMemoryDocumentStore()
    transport = RecordingTransport()

    async def scenario():
        await store.add(
            SYSTEM_LOGS,
            {
                "timestamp": RECENT,
                "category": "inventory-management",
                "level": "error",
                "message": "stock sync failed",
                "data": {},
            },
        )
        return await _run(store, transport, job="monitor_order_errors")

    _, results = asyncio.run(scenario())
    (alert,) = results["monitor_order_errors"]
    assert alert.data["errorRate"] == 100
    assert alert.data["threshold"] == 0
    assert alert.severity is Severity.CRITICAL


def test_performance_run_stores_aggregated_snapshot():
    store = InMemoryDocumentStore()
    transport = RecordingTransport()

    async def scenario():
        for value in (2100, 2300):
            await store.add(
                "performance_metrics",
                {"name": "checkoutPage", "value": value, "timestamp": RECENT},
            )
        _, results = await _run(store, transport, job="monitor_system_performance")
        return results, await store.query(AGGREGATED_METRICS)

    results, snapshots = asyncio.run(scenario())
    (alert,) = results["monitor_system_performance"]
    assert alert.severity is Severity.WARNING
    assert alert.data["sampleCount"] == 2
    (snapshot,) = snapshots
    assert snapshot["timeframe"] == "5min"
    assert snapshot["metrics"]["checkoutPage"]["average"] == 2200


def test_query_failure_aborts_run_without_alert():
    class FailingStore(InMemoryDocumentStore):
        async def query(self, collection, filters=(), *, limit=None):
            raise StorageError("backend unavailable")

    transport = RecordingTransport()
    service, results = asyncio.run(_run(FailingStore(), transport))
    assert all(alerts == [] for alerts in results.values())
    report = service.jobs.health_report()
    assert report["monitor_payment_issues"]["status"] == "failed"
    assert "backend unavailable" in report["monitor_payment_issues"]["error"]
    assert transport.requests == []


def test_unknown_job_name_rejected():
    service = MonitoringService(config=CONFIG, store=InMemoryDocumentStore())
    with pytest.raises(ValueError):
        asyncio.run(service.run_once(NOW, job="monitor_everything"))


def test_repeated_breach_realerts_every_run():
    store = InMemoryDocumentStore()
    transport = RecordingTransport()

    async def scenario():
        await _seed_payments(store, total=50, failed=2)
        await _run(store, transport, job="monitor_payment_issues")
        await _run(store, transport, job="monitor_payment_issues")
        return await store.query(SYSTEM_ALERTS)

    records = asyncio.run(scenario())
    assert len(records) == 2


def test_snapshot_write_failure_keeps_published_alerts():
    class NoSnapshotStore(InMemoryDocumentStore):
        async def add(self, collection, document):
            if collection == AGGREGATED_METRICS:
                raise StorageError("aggregated_metrics unavailable")
            return await super().add(collection, document)

    store = NoSnapshotStore()
    transport = RecordingTransport()

    async def scenario():
        await store.add(
            "performance_metrics",
            {"name": "orderDetailLoading", "value": 2000, "timestamp": RECENT},
        )
        return await _run(store, transport, job="monitor_system_performance")

    service, results = asyncio.run(scenario())
    (alert,) = results["monitor_system_performance"]
    assert alert.severity is Severity.CRITICAL
    report = service.jobs.health_report()["monitor_system_performance"]
    assert report["status"] == "ok"
    assert report["alerts"] == 1
    assert transport.count("pager.example") == 1
