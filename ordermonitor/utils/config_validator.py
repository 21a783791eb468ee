"""Configuration validation utilities.

Validates the monitoring configuration file and emits JSON/CSV reports, the
same way deployments check their settings before enabling the scheduler.
Validation reuses :func:`load_config` so it mirrors runtime behavior.
"""

from __future__ import annotations

import csv
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Mapping, Optional

from pydantic import ValidationError

from ordermonitor.utils.config_loader import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    load_config,
)


@dataclass
class ValidationResult:
    """Serializable validation outcome."""

    path: str
    passed: bool
    details: Dict | None = None
    error: str | None = None

    def to_dict(self) -> Dict:
        payload = {
            "path": self.path,
            "passed": self.passed,
        }
        if self.details:
            payload["details"] = self.details
        if self.error:
            payload["error"] = self.error
        return payload


def _summarize(path: Path, env: Optional[Mapping[str, str]]) -> Dict:
    cfg = load_config(path, env=env)
    notifications = cfg.notifications
    channels = {}
    for tier in ("critical", "warning", "info"):
        channel = getattr(notifications, tier)
        channels[tier] = {
            "email": len(channel.email),
            "sms": len(channel.sms),
            "chat_webhook": channel.chat_webhook is not None,
            "paging_webhook": channel.paging_webhook is not None,
        }
    return {
        "window_minutes": cfg.monitoring.window_minutes,
        "topic": cfg.monitoring.topic,
        "error_rates": cfg.thresholds.error_rates.model_dump(),
        "performance_metrics": sorted(cfg.thresholds.performance.metrics),
        "channels": channels,
        "storage": cfg.storage.backend,
    }


def validate_config_file(
    path: Path | str = DEFAULT_CONFIG_PATH,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> ValidationResult:
    path = Path(path)
    try:
        details = _summarize(path, env)
        return ValidationResult(path=str(path), passed=True, details=details)
    except (ConfigError, ValidationError, ValueError) as exc:
        return ValidationResult(path=str(path), passed=False, error=str(exc))


def _write_reports(output_dir: Path, summary: Dict, timestamp: str) -> Dict[str, str]:
    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / f"config_validation_{timestamp}.json"
    with json_path.open("w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2, default=str)

    csv_path = output_dir / f"config_validation_{timestamp}.csv"
    with csv_path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=["path", "passed", "error"])
        writer.writeheader()
        result = summary["result"]
        writer.writerow(
            {
                "path": result["path"],
                "passed": result["passed"],
                "error": result.get("error", ""),
            }
        )

    return {"json": str(json_path), "csv": str(csv_path)}


def validate_all(
    config_path: Path | str = DEFAULT_CONFIG_PATH,
    *,
    output_dir: Path | str = "reports/config_validation",
    env: Optional[Mapping[str, str]] = None,
) -> Dict:
    """Validate the configuration file and persist a summary report."""

    result = validate_config_file(config_path, env=env)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    summary = {
        "timestamp": timestamp,
        "all_passed": result.passed,
        "result": result.to_dict(),
    }
    summary["report_paths"] = _write_reports(Path(output_dir), summary, timestamp)
    return summary
