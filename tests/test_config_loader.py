"""
Tests for config_loader module.
"""
import json

import pytest

import config_loader


class TestLoadConfig:
    """Test configuration loading and merging."""

    def test_defaults_are_valid(self):
        assert config_loader.validate_config(config_loader.get_default_config()) == (True, None)

    def test_default_detection_values(self):
        detection = config_loader.get_default_config()["detection"]

        assert detection["interval_sec"] == 3.0
        assert detection["sensitivity"] == "Normal"
        assert detection["thresholds"] == {"Sensitive": -60.0, "Normal": -40.0, "Sleeping": -20.0}

    def test_missing_file_uses_defaults(self, tmp_path):
        config = config_loader.load_config(tmp_path / "missing.json")

        assert config == config_loader.get_default_config()

    def test_partial_file_is_merged(self, tmp_path):
        """Test that a partial config only overrides the keys it names."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "detection": {"sensitivity": "Sleeping", "thresholds": {"Sleeping": -15}},
            "discord": {"user_id": "42"}
        }))

        config = config_loader.load_config(path)

        assert config["detection"]["sensitivity"] == "Sleeping"
        assert config["detection"]["thresholds"] == {"Sensitive": -60.0, "Normal": -40.0, "Sleeping": -15}
        assert config["detection"]["interval_sec"] == 3.0
        assert config["discord"]["user_id"] == "42"
        assert config["discord"]["api_base"] == "https://discord.com/api/v10"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with pytest.raises(ValueError, match="Invalid JSON"):
            config_loader.load_config(path)

    @pytest.mark.parametrize("override,message", [
        ({"detection": {"sensitivity": "Loud"}}, "detection.sensitivity"),
        ({"detection": {"interval_sec": 0}}, "detection.interval_sec"),
        ({"detection": {"thresholds": {"Normal": "quiet"}}}, "detection.thresholds.Normal"),
        ({"audio": {"sample_rate": -1}}, "audio.sample_rate"),
        ({"discord": {"timeout_sec": 0}}, "discord.timeout_sec"),
        ({"discord": {"max_rate_limit_retries": -1}}, "discord.max_rate_limit_retries"),
    ])
    def test_invalid_values(self, tmp_path, override, message):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(override))

        with pytest.raises(ValueError, match=message):
            config_loader.load_config(path)

    def test_missing_section(self):
        config = config_loader.get_default_config()
        del config["discord"]

        ok, error = config_loader.validate_config(config)

        assert not ok
        assert "discord" in error


class TestGetConfigValue:
    """Test dotted lookup."""

    def test_nested_value(self, config):
        assert config_loader.get_config_value(config, "detection.thresholds.Sleeping") == -20.0

    def test_missing_value(self, config):
        assert config_loader.get_config_value(config, "detection.nope", default=5) == 5
