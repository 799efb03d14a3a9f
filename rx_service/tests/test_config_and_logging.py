"""Tests for settings loading and structured logging."""
import dataclasses
import json
import logging

import pytest

from rx_service.config import Settings, load_settings
from rx_service.structured_logging import (
    JSONFormatter,
    StructuredLogger,
    get_request_id,
    log_request,
    mask_ip,
    request_id_var,
    set_request_id,
    setup_logging,
)


class TestLoadSettings:
    def test_defaults(self, monkeypatch):
        for name in ("LLM_DEFAULT_MODEL", "TRANSLATION_DELAY_SECONDS", "PIPELINE_CACHE_TTL_SECONDS",
                     "TRANSLATION_CHUNK_SIZE", "LOG_JSON", "CORS_ORIGINS", "SOURCE_LANGUAGE"):
            monkeypatch.delenv(name, raising=False)
        settings = load_settings()
        assert settings.default_model == "nova-lite"
        assert settings.translation_delay_seconds == 0.2
        assert settings.translation_chunk_size == 350
        assert settings.pipeline_cache_ttl_seconds == 3600.0
        assert settings.source_language == "en"
        assert settings.log_json is True
        assert settings.cors_origins == ("http://localhost:3000",)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LLM_DEFAULT_MODEL", "claude-haiku3")
        monkeypatch.setenv("TRANSLATION_DELAY_SECONDS", "0.5")
        monkeypatch.setenv("PIPELINE_CACHE_TTL_SECONDS", "0")
        monkeypatch.setenv("LOG_JSON", "no")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example ,")
        settings = load_settings()
        assert settings.default_model == "claude-haiku3"
        assert settings.translation_delay_seconds == 0.5
        assert settings.pipeline_cache_ttl_seconds == 0
        assert settings.log_json is False
        assert settings.cors_origins == ("https://a.example", "https://b.example")

    def test_settings_are_frozen(self):
        settings = Settings()
        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.default_model = "x"


class TestStructuredLogging:
    def _record(self, **data):
        record = logging.LogRecord("rx_service.pipeline", logging.WARNING, __file__, 1, "Pipeline step degraded", None, None)
        if data:
            record.extra_data = data
        return record

    def test_json_line(self):
        token = request_id_var.set("req-1")
        try:
            line = JSONFormatter("clinic-rx").format(self._record(stage="translation", reason="timeout"))
        finally:
            request_id_var.reset(token)

        entry = json.loads(line)
        assert entry["level"] == "WARNING"
        assert entry["message"] == "Pipeline step degraded"
        assert entry["service"] == "clinic-rx"
        assert entry["request_id"] == "req-1"
        assert entry["data"] == {"stage": "translation", "reason": "timeout"}

    def test_no_request_id_outside_requests(self):
        token = request_id_var.set(None)
        try:
            entry = json.loads(JSONFormatter().format(self._record()))
        finally:
            request_id_var.reset(token)
        assert "request_id" not in entry
        assert "data" not in entry

    def test_set_request_id_generates_short_id(self):
        token = request_id_var.set(None)
        try:
            request_id = set_request_id()
            assert len(request_id) == 8
            assert get_request_id() == request_id
        finally:
            request_id_var.reset(token)

    def test_structured_logger_attaches_data(self, caplog):
        with caplog.at_level(logging.INFO, logger="rx_service.test"):
            StructuredLogger("rx_service.test").info("Generated", chars=120)
        assert caplog.records[-1].extra_data == {"chars": 120}

    def test_structured_logger_without_data(self, caplog):
        with caplog.at_level(logging.INFO, logger="rx_service.test"):
            StructuredLogger("rx_service.test").info("Plain")
        assert not hasattr(caplog.records[-1], "extra_data")

    def test_indic_text_not_escaped(self):
        record = logging.LogRecord("rx_service", logging.INFO, __file__, 1, "निदान", None, None)
        assert "निदान" in JSONFormatter().format(record)

    def test_server_errors_logged_at_error_level(self, caplog):
        with caplog.at_level(logging.INFO, logger="http"):
            log_request("POST", "/generate-prescription", 500, 12.5, client_ip="10.0.0.7")
        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.extra_data["client_ip"] == "10.0.xxx.xxx"

    def test_setup_logging_accepts_level_names(self):
        root = logging.getLogger()
        saved_level, saved_handlers = root.level, root.handlers[:]
        try:
            setup_logging("debug", use_json=False)
            assert root.level == logging.DEBUG
            setup_logging("nonsense")
            assert root.level == logging.INFO
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_mask_ip(self):
        assert mask_ip("192.168.10.20") == "192.168.xxx.xxx"
        assert mask_ip("::1") == "xxx"
