"""Tests for environment-driven configuration and logging setup."""

import logging
from pathlib import Path

from angel_gateway import logging_config
from angel_gateway.config import Settings
from angel_gateway.logging_config import resolve_log_level, setup_service_logger


class TestSettings:
    """Tests for Settings defaults and environment overrides."""

    def test_defaults(self, monkeypatch):
        for var in ("PORT", "FRONTEND_URL", "ENVIRONMENT", "NODE_ENV", "ANGEL_ONE_BASE_URL",
                    "UPSTREAM_TIMEOUT_SECONDS", "BROKER_RATE_LIMIT", "STATIC_DIR", "LOG_LEVEL"):
            monkeypatch.delenv(var, raising=False)

        settings = Settings()

        assert settings.port == 3001
        assert settings.cors_origins == ["http://localhost:3000"]
        assert settings.environment == "development"
        assert settings.angel_one_base_url == "https://apiconnect.angelbroking.com"
        assert settings.upstream_timeout_seconds == 30.0
        assert settings.static_dir.name == "public"
        assert settings.log_level == "info"
        assert not settings.is_production

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("FRONTEND_URL", "https://a.example, https://b.example")
        monkeypatch.setenv("ENVIRONMENT", "Production")
        monkeypatch.setenv("ANGEL_ONE_BASE_URL", "https://sandbox.example/")
        monkeypatch.setenv("STATIC_DIR", str(tmp_path))
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = Settings()

        assert settings.port == 8080
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.is_production
        assert settings.angel_one_base_url == "https://sandbox.example"
        assert settings.static_dir == Path(tmp_path)
        assert settings.log_level == "debug"

    def test_node_env_fallback(self, monkeypatch):
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        monkeypatch.setenv("NODE_ENV", "production")
        assert Settings().is_production


class TestResolveLogLevel:
    def test_lowercase_name(self):
        assert resolve_log_level("debug") == logging.DEBUG

    def test_unknown_name_defaults_to_info(self):
        assert resolve_log_level("chatty") == logging.INFO

    def test_defaults_to_configured_level(self, monkeypatch):
        monkeypatch.setattr(logging_config.settings, "log_level", "warning")
        assert resolve_log_level() == logging.WARNING


class TestSetupServiceLogger:
    def test_writes_to_dated_file_once(self, monkeypatch, tmp_path):
        monkeypatch.setattr(logging_config, "LOGS_DIR", tmp_path / "Logs")
        name = "gateway_test_service"

        logger = setup_service_logger(name)
        try:
            setup_service_logger(name)
            logger.warning("hello")

            assert len(logger.handlers) == 2
            files = list((tmp_path / "Logs").glob(f"{name}_*.log"))
            assert len(files) == 1
            logger.handlers[0].flush()
            assert "hello" in files[0].read_text(encoding="utf-8")
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)
