"""Tests for bridge settings."""

import pytest
from pydantic import ValidationError

from harvest_bridge_mcp.config import HarvestSettings


class TestHarvestSettings:

    def test_base_url(self, settings):
        assert settings.base_url == "https://acme.harvestapp.com"

    def test_trailing_slash_stripped(self):
        settings = HarvestSettings(username="u", password="p", account="acme/", _env_file=None)
        assert settings.base_url == "https://acme.harvestapp.com"

    def test_password_not_in_repr(self, settings):
        assert "s3cret" not in repr(settings)

    def test_frozen(self, settings):
        with pytest.raises(ValidationError):
            settings.account = "other"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("HARVEST_USERNAME", "env@example.com")
        monkeypatch.setenv("HARVEST_PASSWORD", "pw")
        monkeypatch.setenv("HARVEST_ACCOUNT", "envco")
        settings = HarvestSettings(_env_file=None)
        assert settings.username == "env@example.com"
        assert settings.password.get_secret_value() == "pw"
        assert settings.base_url == "https://envco.harvestapp.com"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            HarvestSettings(username="u", password="p", account="a", request_timeout=0, _env_file=None)


class TestConfigureLogging:

    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        import structlog

        yield
        structlog.reset_defaults()

    @pytest.mark.parametrize("fmt", ["json", "text"])
    def test_configures_structlog(self, fmt, capsys):
        import structlog

        from harvest_bridge_mcp.logging_config import configure_logging

        configure_logging("WARNING", fmt)
        structlog.get_logger("test").warning("harvest_event", structure="Clients")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "harvest_event" in captured.err
