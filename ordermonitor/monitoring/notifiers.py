"""Notification channel senders.

Every sender catches its own delivery errors and reports them as a
:class:`ChannelResult`, so one failing channel never blocks the others.
Email and SMS only log what they would send.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

import httpx

from ordermonitor.logging import logger
from ordermonitor.models import ChannelResult, Severity
from ordermonitor.pubsub import json_default

from .metrics import PipelineMetrics

SEVERITY_COLORS = {
    Severity.CRITICAL.value: "#FF0000",
    Severity.WARNING.value: "#FFA500",
}
DEFAULT_COLOR = "#36a64f"


def chat_payload(alert: Mapping[str, Any], now: Optional[datetime] = None) -> Dict:
    """Chat webhook body with a color-coded attachment."""

    severity = str(alert.get("severity", Severity.INFO.value))
    icon = "\U0001F6A8" if severity == Severity.CRITICAL.value else "⚠️"
    now = now or datetime.now()
    return {
        "text": f"{icon} {severity.upper()}: {alert.get('message', '')}",
        "attachments": [
            {
                "color": SEVERITY_COLORS.get(severity, DEFAULT_COLOR),
                "fields": [
                    {"title": "Category", "value": alert.get("category"), "short": True},
                    {
                        "title": "Time",
                        "value": now.strftime("%Y-%m-%d %H:%M:%S"),
                        "short": True,
                    },
                    {
                        "title": "Details",
                        "value": json.dumps(
                            alert.get("data", {}), indent=2, default=json_default
                        ),
                        "short": False,
                    },
                ],
            }
        ],
    }


def paging_payload(
    alert: Mapping[str, Any], *, source: str, routing_key: Optional[str]
) -> Dict:
    """Paging webhook trigger event."""

    return {
        "event_action": "trigger",
        "payload": {
            "summary": f"CRITICAL: {alert.get('message', '')}",
            "source": source,
            "severity": Severity.CRITICAL.value,
            "custom_details": json.loads(
                json.dumps(alert.get("data", {}), default=json_default)
            ),
        },
        "routing_key": routing_key,
    }


@dataclass
class WebhookNotifier:
    """POST a JSON body to a webhook URL."""

    channel: str
    client: httpx.AsyncClient
    metrics: PipelineMetrics = field(default_factory=PipelineMetrics)

    async def post(self, url: str, body: Dict[str, Any]) -> ChannelResult:
        try:
            response = await self.client.post(url, json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error(
                "notification_failed", channel=self.channel, status_code=status
            )
            self.metrics.record_notification(self.channel, "failed")
            return ChannelResult(
                channel=self.channel, ok=False, status_code=status, error=str(exc)
            )
        except httpx.HTTPError as exc:
            logger.error("notification_failed", channel=self.channel, error=str(exc))
            self.metrics.record_notification(self.channel, "failed")
            return ChannelResult(channel=self.channel, ok=False, error=str(exc))
        logger.info(
            "notification_sent",
            channel=self.channel,
            status_code=response.status_code,
        )
        self.metrics.record_notification(self.channel, "sent")
        return ChannelResult(
            channel=self.channel, ok=True, status_code=response.status_code
        )


class ChatNotifier(WebhookNotifier):
    def __init__(self, client: httpx.AsyncClient, **kwargs) -> None:
        super().__init__(channel="chat", client=client, **kwargs)

    async def send(self, url: str, alert: Mapping[str, Any]) -> ChannelResult:
        return await self.post(url, chat_payload(alert))


class PagingNotifier(WebhookNotifier):
    def __init__(self, client: httpx.AsyncClient, *, source: str, **kwargs) -> None:
        super().__init__(channel="paging", client=client, **kwargs)
        self.source = source

    async def send(
        self, url: str, alert: Mapping[str, Any], routing_key: Optional[str] = None
    ) -> ChannelResult:
        body = paging_payload(alert, source=self.source, routing_key=routing_key or url)
        return await self.post(url, body)


@dataclass
class LogOnlyNotifier:
    """Placeholder channel that records intent without delivering.

    TODO: wire a real email/SMS provider once one is chosen for production.
    """

    channel: str
    metrics: PipelineMetrics = field(default_factory=PipelineMetrics)

    async def send(self, recipients: List[str], alert: Mapping[str, Any]) -> ChannelResult:
        logger.info(
            f"would_send_{self.channel}",
            recipients=list(recipients),
            severity=alert.get("severity"),
            message=alert.get("message"),
        )
        self.metrics.record_notification(self.channel, "skipped")
        return ChannelResult(channel=self.channel, ok=True, skipped=True)
