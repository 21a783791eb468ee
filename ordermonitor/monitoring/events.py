from __future__ import annotations

"""Structured order-event logging with immediate alerting on errors."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import httpx

from ordermonitor.logging import logger
from ordermonitor.models import SYSTEM_LOGS, Alert, ChannelResult, LogEntry, LogLevel, Severity
from ordermonitor.storage import DocumentStore
from ordermonitor.utils.config_schemas import MonitoringConfig

from .dispatcher import AlertPublisher
from .metrics import PipelineMetrics
from .notifiers import ChatNotifier, PagingNotifier

_LEVEL_METHODS = {
    LogLevel.DEBUG: "debug",
    LogLevel.INFO: "info",
    LogLevel.WARNING: "warning",
    LogLevel.ERROR: "error",
    LogLevel.CRITICAL: "critical",
}


def severity_for_level(level: str) -> Severity:
    if level == LogLevel.CRITICAL:
        return Severity.CRITICAL
    if level == LogLevel.ERROR:
        return Severity.WARNING
    return Severity.INFO


@dataclass
class OrderEventLogger:
    """Record order events in ``system_logs`` and alert on errors.

    Error and critical events are published to the alert topic right away.
    Critical events are also sent straight to the critical chat and paging
    webhooks without waiting for the subscriber.
    """

    store: DocumentStore
    publisher: AlertPublisher
    config: MonitoringConfig
    client: Optional[httpx.AsyncClient] = None
    metrics: PipelineMetrics = field(default_factory=PipelineMetrics)

    async def log_order_event(
        self,
        category: str,
        level: str,
        message: str,
        data: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Alert]:
        level = LogLevel(level)
        entry = LogEntry(
            category=category, level=level.value, message=message, data=dict(data or {})
        )
        try:
            await self.store.add(SYSTEM_LOGS, entry.to_document())
        except Exception as exc:
            logger.error("log_write_failed", category=category, error=str(exc))

        log_fn = getattr(logger, _LEVEL_METHODS[level])
        log_fn("order_event", category=category, message=message, data=entry.data)

        if level in (LogLevel.ERROR, LogLevel.CRITICAL):
            return await self.check_and_trigger_alert(
                category, level.value, message, entry.data
            )
        return None

    async def check_and_trigger_alert(
        self,
        category: str,
        level: str,
        message: str,
        data: Mapping[str, Any],
    ) -> Alert:
        severity = severity_for_level(level)
        alert = Alert(
            category=category,
            message=message,
            severity=severity,
            data=dict(data),
            level=level,
        )
        await self.publisher.publish(alert)
        if severity is Severity.CRITICAL:
            await self._send_direct(alert)
        return alert

    async def _send_direct(self, alert: Alert) -> List[ChannelResult]:
        channels = self.config.notifications.critical
        if self.client is not None:
            return await self._post_direct(self.client, channels, alert)
        async with httpx.AsyncClient() as client:
            return await self._post_direct(client, channels, alert)

    async def _post_direct(self, client, channels, alert: Alert) -> List[ChannelResult]:
        payload: Dict[str, Any] = alert.to_payload()
        results: List[ChannelResult] = []
        # sequential: chat first, then paging
        if channels.chat_webhook:
            chat = ChatNotifier(client, metrics=self.metrics)
            results.append(await chat.send(channels.chat_webhook, payload))
        if channels.paging_webhook:
            pager = PagingNotifier(
                client, source=self.config.monitoring.source, metrics=self.metrics
            )
            results.append(
                await pager.send(channels.paging_webhook, payload, channels.routing_key)
            )
        return results
