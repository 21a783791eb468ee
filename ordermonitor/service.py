"""High-level monitoring service.

Example
-------
>>> from ordermonitor import MonitoringService
>>> service = MonitoringService.from_config("config/monitoring.yaml")
>>> # one pass of all three monitors
>>> # asyncio.run(service.run_once())
>>> # or the blocking 5-minute loop with optional health API
>>> # service.start()
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from prometheus_client import start_http_server

from .logging import configure_logging, logger
from .models import Alert
from .monitoring import (
    AlertPublisher,
    MetricCollector,
    MonitoringJobs,
    MonitoringScheduler,
    NotificationDispatcher,
    OrderEventLogger,
    PipelineMetrics,
    ThresholdEvaluator,
    create_health_app,
)
from .pubsub import InMemoryTopic, Topic
from .storage import DocumentStore, create_store
from .utils.config_loader import load_config
from .utils.config_schemas import MonitoringConfig


@dataclass
class MonitoringService:
    """Wire store, topic, monitors and dispatcher from one configuration."""

    config: MonitoringConfig
    store: Optional[DocumentStore] = None
    topic: Optional[Topic] = None
    client: Optional[httpx.AsyncClient] = None
    metrics: PipelineMetrics = field(default_factory=PipelineMetrics)
    collector: MetricCollector = field(init=False)
    evaluator: ThresholdEvaluator = field(init=False)
    publisher: AlertPublisher = field(init=False)
    dispatcher: NotificationDispatcher = field(init=False)
    jobs: MonitoringJobs = field(init=False)
    events: OrderEventLogger = field(init=False)
    scheduler: MonitoringScheduler = field(init=False)
    _api_server: Optional[Any] = field(default=None, init=False, repr=False)
    _api_task: Optional[asyncio.Task] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.store is None:
            self.store = create_store(
                self.config.storage.backend, self.config.storage.path
            )
        if self.topic is None:
            self.topic = InMemoryTopic(name=self.config.monitoring.topic)
        self.collector = MetricCollector(store=self.store, config=self.config)
        self.evaluator = ThresholdEvaluator(config=self.config)
        self.publisher = AlertPublisher(topic=self.topic, metrics=self.metrics)
        self.dispatcher = NotificationDispatcher(
            store=self.store,
            config=self.config,
            client=self.client,
            metrics=self.metrics,
        )
        self.dispatcher.attach(self.topic)
        self.jobs = MonitoringJobs(
            collector=self.collector,
            evaluator=self.evaluator,
            publisher=self.publisher,
            metrics=self.metrics,
        )
        self.events = OrderEventLogger(
            store=self.store,
            publisher=self.publisher,
            config=self.config,
            client=self.client,
            metrics=self.metrics,
        )
        self.scheduler = MonitoringScheduler(
            jobs=self.jobs, interval=self.config.monitoring.schedule_interval_seconds
        )

    @classmethod
    def from_config(cls, config_path: Path | str, **kwargs) -> "MonitoringService":
        config = load_config(config_path)
        configure_logging(config.logging.level)
        return cls(config=config, **kwargs)

    # Runtime ----------------------------------------------------------
    async def run_once(
        self, now: Optional[datetime] = None, job: Optional[str] = None
    ) -> Dict[str, List[Alert]]:
        """Run all monitors, or only ``job``, a single time."""

        if job is None:
            return await self.jobs.run_all(now)
        if job not in self.jobs.jobs:
            raise ValueError(f"Unknown job: {job}")
        return {job: await self.jobs.jobs[job](now)}

    async def _start(self) -> None:
        metrics_cfg = self.config.metrics
        api_cfg = self.config.api
        metrics_port_bound_to_api = (
            api_cfg.enabled
            and metrics_cfg.host == api_cfg.host
            and metrics_cfg.port == api_cfg.port
        )
        if metrics_cfg.enabled and not metrics_port_bound_to_api:
            try:
                start_http_server(metrics_cfg.port, addr=metrics_cfg.host)
            except OSError as exc:
                logger.warning("metrics_exporter_start_failed", error=str(exc))
        if api_cfg.enabled:
            import uvicorn

            app = create_health_app(self.jobs)
            server = uvicorn.Server(
                uvicorn.Config(
                    app, host=api_cfg.host, port=api_cfg.port, log_level="warning"
                )
            )
            self._api_server = server
            self._api_task = asyncio.create_task(server.serve())
        try:
            await self.scheduler.run_forever()
        finally:
            if self._api_task is not None:
                self._api_server.should_exit = True
                await self._api_task
            await self.store.close()

    def start(self) -> None:
        """Blocking call that runs the scheduler event loop."""

        asyncio.run(self._start())
