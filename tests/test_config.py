"""Tests for rule configuration loading."""

import json

import pytest
from pydantic import ValidationError

from checkout_risk.config import Settings, load_rule_configs
from checkout_risk.models import RiskConfig, VelocityConfig


class TestLoadRuleConfigs:
    def test_defaults_without_files(self, tmp_path):
        velocity, risk = load_rule_configs(tmp_path)
        assert velocity == VelocityConfig()
        assert risk.critical_risk_threshold == 80
        assert risk.high_risk_threshold == 60
        assert "morning-tour" in risk.tour_price_ranges

    def test_overrides_applied(self, tmp_path):
        (tmp_path / "rules_config.json").write_text(
            json.dumps(
                {
                    "velocity": {"max_transactions_per_hour": 5},
                    "risk": {"booking_history_window_days": 90},
                }
            )
        )
        velocity, risk = load_rule_configs(tmp_path)
        assert velocity.max_transactions_per_hour == 5
        assert velocity.max_daily_amount == 1_000_000
        assert risk.booking_history_window_days == 90

    def test_catalog_files(self, tmp_path):
        (tmp_path / "tour_price_ranges.json").write_text(
            json.dumps({"arashiyama-tour": {"min": 9000, "max": 18000}})
        )
        (tmp_path / "allowed_countries.json").write_text(json.dumps(["jp", " kr "]))
        _, risk = load_rule_configs(tmp_path)
        assert list(risk.tour_price_ranges) == ["arashiyama-tour"]
        assert risk.tour_price_ranges["arashiyama-tour"].max == 18000
        assert risk.allowed_countries == ("JP", "KR")

    def test_configs_are_immutable(self):
        config = VelocityConfig()
        with pytest.raises(ValidationError):
            config.max_daily_amount = 5

        with pytest.raises(ValidationError):
            RiskConfig().critical_risk_threshold = 99


class TestSettings:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("CHECKOUT_RISK_COUNTER_STORE", "memory")
        monkeypatch.setenv("CHECKOUT_RISK_GEOLOCATION_TIMEOUT_SECONDS", "0.5")
        settings = Settings()
        assert settings.COUNTER_STORE == "memory"
        assert settings.GEOLOCATION_TIMEOUT_SECONDS == 0.5
