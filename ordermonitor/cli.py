"""Typer-based command line interface for the order monitoring pipeline."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer

from .models import SYSTEM_ALERTS
from .monitoring.dispatcher import summarize_outcome
from .service import MonitoringService
from .storage import Filter
from .utils.config_loader import DEFAULT_CONFIG_PATH
from .utils.config_validator import validate_all


app = typer.Typer(add_completion=False, help="Order monitoring command line interface")


def _service(config: str) -> MonitoringService:
    return MonitoringService.from_config(config)


async def _closing(service: MonitoringService, coro):
    try:
        return await coro
    finally:
        await service.store.close()


@app.command("run-once")
def cmd_run_once(
    config: str = typer.Option(
        str(DEFAULT_CONFIG_PATH), "-c", "--config", help="Path to config file"
    ),
    job: Optional[str] = typer.Option(
        None,
        "--job",
        help="Run a single job: monitor_order_errors, monitor_payment_issues "
        "or monitor_system_performance",
    ),
):
    """Run the monitoring jobs once and print the published alerts."""

    service = _service(config)
    try:
        results = asyncio.run(_closing(service, service.run_once(job=job)))
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)
    payload = {
        name: [alert.to_payload() for alert in alerts]
        for name, alerts in results.items()
    }
    summary = {"alerts": payload, "jobs": service.jobs.health_report()}
    typer.echo(json.dumps(summary, indent=2, default=str))


@app.command("serve")
def cmd_serve(
    config: str = typer.Option(
        str(DEFAULT_CONFIG_PATH), "-c", "--config", help="Path to config file"
    ),
):
    """Run the monitors on their schedule until interrupted."""

    _service(config).start()


@app.command("log-event")
def cmd_log_event(
    category: str = typer.Option(..., "--category", help="Order log category"),
    level: str = typer.Option(..., "--level", help="debug/info/warning/error/critical"),
    message: str = typer.Option(..., "--message", help="Event message"),
    data: Optional[str] = typer.Option(None, "--data", help="JSON object with details"),
    config: str = typer.Option(
        str(DEFAULT_CONFIG_PATH), "-c", "--config", help="Path to config file"
    ),
):
    """Record an order event; error and critical events raise an alert."""

    details = json.loads(data) if data else {}
    service = _service(config)
    alert = asyncio.run(
        _closing(
            service, service.events.log_order_event(category, level, message, details)
        )
    )
    payload = alert.to_payload() if alert else None
    typer.echo(json.dumps({"alert": payload}, indent=2, default=str))


@app.command("dispatch")
def cmd_dispatch(
    payload_path: Path = typer.Argument(..., help="JSON file with an alert payload"),
    config: str = typer.Option(
        str(DEFAULT_CONFIG_PATH), "-c", "--config", help="Path to config file"
    ),
):
    """Feed an alert payload straight to the dispatcher (replays a message)."""

    payload = json.loads(payload_path.read_text(encoding="utf-8"))
    service = _service(config)
    outcome = asyncio.run(
        _closing(service, service.dispatcher.handle_message(payload))
    )
    typer.echo(json.dumps(summarize_outcome(outcome), indent=2))
    if outcome is None:
        raise typer.Exit(code=1)


@app.command("list-alerts")
def cmd_list_alerts(
    config: str = typer.Option(
        str(DEFAULT_CONFIG_PATH), "-c", "--config", help="Path to config file"
    ),
    severity: Optional[str] = typer.Option(None, "--severity", help="Filter by severity"),
    unprocessed: bool = typer.Option(
        False, "--unprocessed", help="Only alerts not yet marked processed"
    ),
    limit: int = typer.Option(50, "--limit", help="Maximum number of alerts"),
):
    """List persisted alerts."""

    filters = []
    if severity:
        filters.append(Filter("severity", "==", severity.lower()))
    if unprocessed:
        filters.append(Filter("processed", "==", False))
    service = _service(config)
    alerts = asyncio.run(
        _closing(service, service.store.query(SYSTEM_ALERTS, filters, limit=limit))
    )
    typer.echo(json.dumps(alerts, indent=2, default=str))


@app.command("validate-config")
def cmd_validate_config(
    config: str = typer.Option(
        str(DEFAULT_CONFIG_PATH), "-c", "--config", help="Path to monitoring config YAML"
    ),
    output_dir: str = typer.Option(
        "reports/config_validation",
        "--output-dir",
        help="Directory to write validation summaries",
    ),
):
    """Validate the monitoring configuration and emit a report."""

    summary = validate_all(config, output_dir=output_dir)
    typer.echo(json.dumps(summary, indent=2))
    if not summary.get("all_passed", False):
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    app()
