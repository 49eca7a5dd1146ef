import config
from scrapers.registry import SOURCES


def test_default_settings_loaded():
    assert config.DEFAULT_LOCATION == "South Africa"
    assert config.ENABLED_SOURCES == ["indeed", "pnet", "careerjet"]
    assert config.RATE_LIMITS["between_sources"]["delay_min"] <= config.RATE_LIMITS["between_sources"]["delay_max"]


def test_validate_config_flags_unregistered_sources(monkeypatch):
    monkeypatch.setattr(config, "ENABLED_SOURCES", ["indeed", "monster"])
    warnings = config.validate_config(known_sources=SOURCES)
    assert any("monster" in w for w in warnings)
    assert not any("'indeed'" in w for w in warnings)


def test_validate_config_flags_inverted_delay(monkeypatch):
    monkeypatch.setattr(config, "RATE_LIMITS", {"between_runs": {"delay_min": 20, "delay_max": 10}})
    warnings = config.validate_config()
    assert any("between_runs" in w for w in warnings)
