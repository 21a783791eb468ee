import json

import pytest
import yaml

from ordermonitor.utils.config_loader import ConfigError, load_config, resolve_env
from ordermonitor.utils.config_validator import validate_all


def _write(tmp_path, data, name="monitoring.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return path


def test_defaults_fill_missing_sections(tmp_path):
    cfg = load_config(_write(tmp_path, {"monitoring": {}}))
    rates = cfg.thresholds.error_rates
    assert (rates.order_creation, rates.payment_processing) == (5, 2)
    assert (rates.inventory_management, rates.order_fulfillment) == (1, 3)
    assert cfg.thresholds.performance.for_metric("checkoutPage") == 2000
    assert cfg.thresholds.performance.for_metric("searchPage") == 1000
    assert cfg.monitoring.timeframe == "5min"
    assert cfg.storage.backend == "memory"


def test_env_placeholders_resolved(tmp_path):
    path = _write(
        tmp_path,
        {
            "notifications": {
                "critical": {
                    "chat_webhook": "${CHAT_URL}",
                    "paging_webhook": "${PAGER_URL:-}",
                }
            }
        },
    )
    cfg = load_config(path, env={"CHAT_URL": "https://chat.example/hook"})
    assert cfg.notifications.critical.chat_webhook == "https://chat.example/hook"
    # empty default disables the channel
    assert cfg.notifications.critical.paging_webhook is None


def test_missing_env_variable_raises(tmp_path):
    path = _write(tmp_path, {"notifications": {"warning": {"chat_webhook": "${NOPE}"}}})
    with pytest.raises(ConfigError):
        load_config(path, env={})


def test_resolve_env_walks_nested_values():
    value = {"a": ["${X}", {"b": "${Y:-fallback}"}], "c": 3}
    assert resolve_env(value, {"X": "1"}) == {"a": ["1", {"b": "fallback"}], "c": 3}


def test_invalid_values_rejected(tmp_path):
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, {"storage": {"backend": "sqlite"}}))
    with pytest.raises(ConfigError):
        load_config(
            _write(tmp_path, {"thresholds": {"performance": {"metrics": {"x": 0}}}})
        )
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yaml")


def test_unknown_severity_uses_info_channels(tmp_path):
    cfg = load_config(
        _write(tmp_path, {"notifications": {"info": {"email": ["info@example.com"]}}})
    )
    assert cfg.notifications.for_severity("urgent").email == ["info@example.com"]


def test_validate_all_writes_reports(tmp_path):
    good = _write(tmp_path, {"monitoring": {"window_minutes": 10}})
    summary = validate_all(good, output_dir=tmp_path / "reports", env={})
    assert summary["all_passed"] is True
    assert summary["result"]["details"]["window_minutes"] == 10
    with open(summary["report_paths"]["json"]) as f:
        assert json.load(f)["all_passed"] is True

    bad = _write(tmp_path, {"monitoring": {"window_minutes": -1}}, name="bad.yaml")
    summary = validate_all(bad, output_dir=tmp_path / "reports", env={})
    assert summary["all_passed"] is False
    assert "window_minutes" in summary["result"]["error"]
