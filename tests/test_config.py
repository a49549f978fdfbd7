"""Tests for environment-driven configuration."""
import pytest

from config import Environment, StudySyncConfig


@pytest.fixture
def make_config(monkeypatch, tmp_path):
    def build(**env):
        monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
        for name, value in env.items():
            monkeypatch.setenv(name, value)
        return StudySyncConfig()
    return build


class TestStudySyncConfig:
    def test_defaults(self, make_config):
        cfg = make_config()

        assert cfg.environment == Environment.TESTING
        assert cfg.sync.debounce_seconds == 2.0
        assert cfg.sync.flush_on_exit is False
        assert cfg.get_feature_status() == {"remote_sync": False, "assistant": False, "flush_on_exit": False}
        assert cfg.data_dir.is_dir()

    def test_remote_enabled_and_key_masked(self, make_config):
        cfg = make_config(SUPABASE_URL="https://demo.supabase.co/", SUPABASE_ANON_KEY="eyJhbGciOiJIUzI1NiJ9")

        data = cfg.to_dict()

        assert cfg.remote.enabled is True
        assert data["remote"]["url"] == "https://demo.supabase.co"
        assert data["remote"]["anon_key"] == "eyJhbG..."
        assert data["features"]["remote_sync"] is True

    def test_half_configured_remote_stays_disabled(self, make_config):
        cfg = make_config(SUPABASE_URL="https://demo.supabase.co")

        assert cfg.remote.enabled is False

    @pytest.mark.parametrize("env,message", [
        ({"PORT": "80"}, "Port 80"),
        ({"SYNC_DEBOUNCE_SECONDS": "0"}, "SYNC_DEBOUNCE_SECONDS"),
        ({"TIMEZONE": "Mars/Olympus"}, "Unknown TIMEZONE"),
        ({"TIMER_FOCUS_MINUTES": "0"}, "focus_minutes"),
    ])
    def test_validation_errors(self, make_config, env, message):
        with pytest.raises(ValueError, match=message):
            make_config(**env)

    def test_logging_config(self, make_config, tmp_path):
        cfg = make_config(LOG_TO_FILE="true", LOG_DIR=str(tmp_path / "logs"), LOG_LEVEL="debug")

        logging_config = cfg.get_logging_config()

        assert set(logging_config["handlers"]) == {"console", "file"}
        assert logging_config["loggers"][""]["level"] == "DEBUG"
        assert logging_config["loggers"]["aiohttp"]["level"] == "WARNING"
        assert (tmp_path / "logs").is_dir()
