"""Pydantic configuration schemas.

Defines validation models for the monitoring configuration file. The
resulting :class:`MonitoringConfig` is passed explicitly to the collector,
evaluator, dispatcher and jobs; nothing reads thresholds from module state.

Key Components:
    - :class:`MonitoringConfig`
    - :class:`ThresholdsConfig`
    - :class:`NotificationsConfig`
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ordermonitor.models import Category, Severity


class MonitoringSection(BaseModel):
    window_minutes: float = Field(default=5, gt=0)
    schedule_interval_seconds: float = Field(default=300, gt=0)
    topic: str = "order-system-alerts"
    sample_limit: int = Field(default=10, ge=0)
    source: str = "Order Management System"
    fulfillment_statuses: List[str] = Field(
        default_factory=lambda: ["processing", "shipped", "delivered"]
    )

    @property
    def timeframe(self) -> str:
        minutes = self.window_minutes
        label = int(minutes) if float(minutes).is_integer() else minutes
        return f"{label}min"


class ErrorRateThresholds(BaseModel):
    """Error-rate limits in percent per monitored category."""

    order_creation: float = Field(default=5, ge=0)
    payment_processing: float = Field(default=2, ge=0)
    inventory_management: float = Field(default=1, ge=0)
    order_fulfillment: float = Field(default=3, ge=0)

    def for_category(self, category: str) -> Optional[float]:
        try:
            key = Category(category).name.lower()
        except ValueError:
            return None
        return getattr(self, key, None)


DEFAULT_PERFORMANCE_THRESHOLDS: Dict[str, float] = {
    "orderCreation": 3000,
    "checkoutPage": 2000,
    "paymentProcessing": 5000,
    "orderListLoading": 1000,
    "orderDetailLoading": 800,
}


class PerformanceThresholds(BaseModel):
    """Latency limits in milliseconds per metric name."""

    metrics: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_PERFORMANCE_THRESHOLDS)
    )
    default_ms: float = Field(default=1000, gt=0)

    @field_validator("metrics")
    @classmethod
    def validate_positive(cls, value: Dict[str, float]) -> Dict[str, float]:
        for name, threshold in value.items():
            if threshold <= 0:
                raise ValueError(
                    f"thresholds.performance.metrics.{name} must be greater than 0"
                )
        return value

    def for_metric(self, name: str) -> float:
        return self.metrics.get(name, self.default_ms)


class ThresholdsConfig(BaseModel):
    error_rates: ErrorRateThresholds = Field(default_factory=ErrorRateThresholds)
    performance: PerformanceThresholds = Field(default_factory=PerformanceThresholds)


class ChannelConfig(BaseModel):
    """Destinations for one severity tier."""

    email: List[str] = Field(default_factory=list)
    chat_webhook: Optional[str] = None
    sms: List[str] = Field(default_factory=list)
    paging_webhook: Optional[str] = None
    paging_routing_key: Optional[str] = None

    @field_validator("chat_webhook", "paging_webhook", "paging_routing_key")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not str(value).strip():
            return None
        return str(value).strip()

    @property
    def routing_key(self) -> Optional[str]:
        return self.paging_routing_key or self.paging_webhook


class NotificationsConfig(BaseModel):
    critical: ChannelConfig = Field(default_factory=ChannelConfig)
    warning: ChannelConfig = Field(default_factory=ChannelConfig)
    info: ChannelConfig = Field(default_factory=ChannelConfig)

    def for_severity(self, severity: str) -> ChannelConfig:
        try:
            tier = Severity(severity)
        except ValueError:
            return self.info
        return getattr(self, tier.value)


class StorageConfig(BaseModel):
    backend: Literal["memory", "sqlite"] = "memory"
    path: Optional[str] = None

    @model_validator(mode="after")
    def validate_path(self) -> "StorageConfig":
        if self.backend == "sqlite" and not self.path:
            raise ValueError("storage.path is required for the sqlite backend")
        return self


class ServerConfig(BaseModel):
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("level", mode="before")
    @classmethod
    def upper(cls, value: str) -> str:
        return str(value).upper()


class MonitoringConfig(BaseModel):
    monitoring: MonitoringSection = Field(default_factory=MonitoringSection)
    thresholds: ThresholdsConfig = Field(default_factory=ThresholdsConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    api: ServerConfig = Field(default_factory=ServerConfig)
    metrics: ServerConfig = Field(
        default_factory=lambda: ServerConfig(port=9000)
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
