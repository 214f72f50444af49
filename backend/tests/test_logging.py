import logging

import structlog

from portal.core.config import get_settings
from portal.core.logging import setup_logging


def test_setup_logging_applies_level_and_json_renderer(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    monkeypatch.setenv("LOG_JSON", "true")
    get_settings.cache_clear()
    try:
        setup_logging()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert logging.getLogger().level == logging.WARNING
    finally:
        monkeypatch.delenv("LOG_LEVEL")
        monkeypatch.delenv("LOG_JSON")
        get_settings.cache_clear()
        setup_logging()


def test_setup_logging_falls_back_to_info_for_unknown_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    get_settings.cache_clear()
    try:
        setup_logging()

        assert logging.getLogger().level == logging.INFO
    finally:
        monkeypatch.delenv("LOG_LEVEL")
        get_settings.cache_clear()
        setup_logging()
