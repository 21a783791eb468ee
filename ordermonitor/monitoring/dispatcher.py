from __future__ import annotations

"""Alert publishing and notification fan-out."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, List, Mapping, Optional

import httpx

from ordermonitor.logging import logger
from ordermonitor.models import SYSTEM_ALERTS, Alert, ChannelResult, Severity, utcnow
from ordermonitor.pubsub import Topic
from ordermonitor.storage import DocumentStore
from ordermonitor.utils.config_schemas import ChannelConfig, MonitoringConfig

from .metrics import PipelineMetrics
from .notifiers import ChatNotifier, LogOnlyNotifier, PagingNotifier


@dataclass
class AlertPublisher:
    """Publish alerts once to the notification topic."""

    topic: Topic
    metrics: PipelineMetrics = field(default_factory=PipelineMetrics)

    async def publish(self, alert: Alert) -> bool:
        severity = Severity(alert.severity).value
        try:
            await self.topic.publish(alert.to_payload())
        except Exception as exc:
            logger.error(
                "alert_publish_failed",
                category=alert.category,
                alert_id=alert.id,
                error=str(exc),
            )
            return False
        self.metrics.record_alert_published(alert.category, severity)
        logger.info(
            "alert_published",
            category=alert.category,
            severity=severity,
            alert_id=alert.id,
        )
        return True


@dataclass
class DispatchOutcome:
    """Persisted record key plus what each channel did with the alert."""

    document_key: str
    results: List[ChannelResult] = field(default_factory=list)

    @property
    def all_delivered(self) -> bool:
        return all(r.ok for r in self.results)


@dataclass
class NotificationDispatcher:
    """Consume published alerts, persist them and notify configured channels.

    Each message produces a new ``system_alerts`` record; redelivery of the
    same message is not detected. The record's own key, returned by the
    store, is used to mark it processed together with the per-channel
    delivery results.
    """

    store: DocumentStore
    config: MonitoringConfig
    client: Optional[httpx.AsyncClient] = None
    metrics: PipelineMetrics = field(default_factory=PipelineMetrics)

    def attach(self, topic: Topic) -> None:
        topic.subscribe(self.handle_message)

    async def handle_message(
        self, payload: Mapping[str, Any]
    ) -> Optional[DispatchOutcome]:
        try:
            return await self._process(payload)
        except Exception as exc:
            logger.error(
                "alert_processing_failed", alert_id=payload.get("id"), error=str(exc)
            )
            return None

    async def _process(self, payload: Mapping[str, Any]) -> DispatchOutcome:
        alert = Alert.from_payload(payload)
        logger.info(
            "processing_alert",
            alert_id=alert.id,
            category=alert.category,
            severity=alert.severity.value,
        )
        record = dict(payload)
        record.update(
            {"alertId": alert.id, "processed": False, "createdAt": utcnow()}
        )
        key = await self.store.add(SYSTEM_ALERTS, record)

        channels = self.config.notifications.for_severity(alert.severity.value)
        if self.client is not None:
            results = await self._notify(self.client, channels, alert)
        else:
            async with httpx.AsyncClient() as client:
                results = await self._notify(client, channels, alert)

        await self.store.update(
            SYSTEM_ALERTS,
            key,
            {
                "processed": True,
                "processedAt": utcnow(),
                "deliveries": [r.to_dict() for r in results],
            },
        )
        return DispatchOutcome(document_key=key, results=results)

    async def _notify(
        self, client: httpx.AsyncClient, channels: ChannelConfig, alert: Alert
    ) -> List[ChannelResult]:
        payload = alert.to_payload()
        critical = alert.severity is Severity.CRITICAL
        sends: List[Awaitable[ChannelResult]] = []
        if channels.email:
            sends.append(
                LogOnlyNotifier("email", metrics=self.metrics).send(
                    channels.email, payload
                )
            )
        if channels.chat_webhook:
            sends.append(
                ChatNotifier(client, metrics=self.metrics).send(
                    channels.chat_webhook, payload
                )
            )
        if critical and channels.sms:
            sends.append(
                LogOnlyNotifier("sms", metrics=self.metrics).send(
                    channels.sms, payload
                )
            )
        if critical and channels.paging_webhook:
            sends.append(
                PagingNotifier(
                    client, source=self.config.monitoring.source, metrics=self.metrics
                ).send(channels.paging_webhook, payload, channels.routing_key)
            )
        if not sends:
            logger.warning("no_channels_configured", severity=alert.severity.value)
            return []
        return list(await asyncio.gather(*sends))


def summarize_outcome(outcome: Optional[DispatchOutcome]) -> Dict[str, Any]:
    if outcome is None:
        return {"processed": False}
    return {
        "processed": True,
        "document_key": outcome.document_key,
        "deliveries": [r.to_dict() for r in outcome.results],
    }
