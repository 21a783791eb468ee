import asyncio

import httpx
import pytest

from ordermonitor.models import SYSTEM_ALERTS, SYSTEM_LOGS, Severity
from ordermonitor.service import MonitoringService
from ordermonitor.storage import InMemoryDocumentStore, StorageError
from ordermonitor.utils.config_schemas import MonitoringConfig

CONFIG = MonitoringConfig.model_validate(
    {
        "notifications": {
            "critical": {
                "chat_webhook": "https://chat.example/critical",
                "paging_webhook": "https://pager.example/enqueue",
                "paging_routing_key": "routing-123",
            },
            "warning": {"chat_webhook": "https://chat.example/warning"},
        }
    }
)


async def _log_event(level, hosts):
    store = InMemoryDocumentStore()

    def transport(request: httpx.Request) -> httpx.Response:
        hosts.append(request.url.host)
        return httpx.Response(200)

    async with httpx.AsyncClient(transport=httpx.MockTransport(transport)) as client:
        service = MonitoringService(config=CONFIG, store=store, client=client)
        alert = await service.events.log_order_event(
            "payment-processing", level, "Gateway timeout", {"orderId": "A-1"}
        )
    return store, alert


def test_info_event_is_only_logged():
    hosts = []
    store, alert = asyncio.run(_log_event("info", hosts))
    assert alert is None
    logs = asyncio.run(store.query(SYSTEM_LOGS))
    assert len(logs) == 1
    assert logs[0]["data"] == {"orderId": "A-1"}
    assert asyncio.run(store.query(SYSTEM_ALERTS)) == []
    assert hosts == []


def test_error_event_publishes_warning_alert():
    hosts = []
    store, alert = asyncio.run(_log_event("error", hosts))
    assert alert.severity is Severity.WARNING
    assert alert.level == "error"
    assert alert.to_payload()["level"] == "error"
    records = asyncio.run(store.query(SYSTEM_ALERTS))
    assert len(records) == 1
    assert hosts == ["chat.example"]


def test_critical_event_is_also_sent_directly():
    hosts = []
    store, alert = asyncio.run(_log_event("critical", hosts))
    assert alert.severity is Severity.CRITICAL
    # subscriber fan-out plus the direct chat and paging sends
    assert hosts.count("chat.example") == 2
    assert hosts.count("pager.example") == 2


def test_invalid_level_rejected():
    with pytest.raises(ValueError):
        asyncio.run(_log_event("loud", []))


def test_caller_level_key_is_kept_in_data():
    async def scenario():
        service = MonitoringService(
            config=MonitoringConfig(), store=InMemoryDocumentStore()
        )
        return await service.events.log_order_event(
            "inventory-management", "error", "Low stock", {"level": "stock-level-3"}
        )

    alert = asyncio.run(scenario())
    assert alert.data == {"level": "stock-level-3"}
    assert alert.level == "error"


def test_failed_log_write_still_alerts():
    class NoLogsStore(InMemoryDocumentStore):
        async def add(self, collection, document):
            if collection == SYSTEM_LOGS:
                raise StorageError("system_logs unavailable")
            return await super().add(collection, document)

    store = NoLogsStore()
    hosts = []

    def transport(request: httpx.Request) -> httpx.Response:
        hosts.append(request.url.host)
        return httpx.Response(200)

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(transport)) as client:
            service = MonitoringService(config=CONFIG, store=store, client=client)
            alert = await service.events.log_order_event(
                "order-creation", "error", "Order validation failed"
            )
        return alert, await store.query(SYSTEM_ALERTS)

    alert, records = asyncio.run(scenario())
    assert alert.severity is Severity.WARNING
    assert len(records) == 1
    assert records[0]["alertId"] == alert.id
    assert hosts == ["chat.example"]
