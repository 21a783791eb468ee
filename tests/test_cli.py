import asyncio
import json
from datetime import datetime, timezone

import yaml
from typer.testing import CliRunner

from ordermonitor.cli import app
from ordermonitor.service import MonitoringService
from ordermonitor.storage import InMemoryDocumentStore, SQLiteDocumentStore, StorageError
from ordermonitor.utils.config_schemas import MonitoringConfig


def _config(tmp_path, **overrides):
    data = {
        "storage": {"backend": "sqlite", "path": str(tmp_path / "monitoring.db")},
        "notifications": {"critical": {"email": ["ops@example.com"]}},
    }
    data.update(overrides)
    path = tmp_path / "monitoring.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


def test_validate_config_success_and_failure(tmp_path):
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["validate-config", "-c", _config(tmp_path), "--output-dir", str(tmp_path / "r")],
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout)["all_passed"] is True

    result = runner.invoke(
        app,
        ["validate-config", "-c", str(tmp_path / "missing.yaml"), "--output-dir", str(tmp_path / "r")],
    )
    assert result.exit_code == 1


def test_run_once_and_list_alerts(tmp_path):
    config = _config(tmp_path)
    now = datetime.now(timezone.utc)

    async def seed():
        store = SQLiteDocumentStore(str(tmp_path / "monitoring.db"))
        for i in range(20):
            status = "failed" if i < 2 else "succeeded"
            await store.add("payments", {"timestamp": now, "status": status})

    asyncio.run(seed())
    runner = CliRunner()
    result = runner.invoke(app, ["run-once", "-c", config, "--job", "monitor_payment_issues"])
    assert result.exit_code == 0
    output = json.loads(result.stdout)
    (alert,) = output["alerts"]["monitor_payment_issues"]
    assert alert["severity"] == "critical"

    result = runner.invoke(app, ["list-alerts", "-c", config, "--severity", "critical"])
    assert result.exit_code == 0
    (record,) = json.loads(result.stdout)
    assert record["alertId"] == alert["id"]
    assert record["processed"] is True


def test_run_once_rejects_unknown_job(tmp_path):
    result = CliRunner().invoke(app, ["run-once", "-c", _config(tmp_path), "--job", "nope"])
    assert result.exit_code == 2


def test_log_event_info_and_error(tmp_path):
    config = _config(tmp_path)
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["log-event", "--category", "order-creation", "--level", "info", "--message", "ok", "-c", config],
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout)["alert"] is None

    result = runner.invoke(
        app,
        [
            "log-event",
            "--category",
            "order-creation",
            "--level",
            "error",
            "--message",
            "Order validation failed",
            "--data",
            '{"orderId": "A-9"}',
            "-c",
            config,
        ],
    )
    assert result.exit_code == 0
    alert = json.loads(result.stdout)["alert"]
    assert alert["severity"] == "warning"
    assert alert["data"]["orderId"] == "A-9"


def test_failing_job_after_cli_run_stays_contained(tmp_path):
    runner = CliRunner()
    result = runner.invoke(app, ["run-once", "-c", _config(tmp_path)])
    assert result.exit_code == 0

    class FailingStore(InMemoryDocumentStore):
        async def query(self, collection, filters=(), *, limit=None):
            raise StorageError("backend unavailable")

    service = MonitoringService(config=MonitoringConfig(), store=FailingStore())
    results = asyncio.run(service.run_once())
    assert all(alerts == [] for alerts in results.values())
    assert service.jobs.health_report()["monitor_order_errors"]["status"] == "failed"
