"""
Tests for crawlsync/utils/logging.py and crawlsync/config.py.
"""
import json
import logging
import sys

from crawlsync.config import Settings, WebhookConfig
from crawlsync.services.persistence import MissingConstraintError
from crawlsync.utils.logging import (
    StructuredJsonFormatter,
    correlation_id_ctx,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)


def _record(msg="hello %s", args=("world",), exc_info=None, **extra) -> logging.LogRecord:
    record = logging.LogRecord("crawlsync.test", logging.INFO, __file__, 1, msg, args, exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationId:
    def test_generate_is_32_hex(self):
        cid = generate_correlation_id()
        assert len(cid) == 32
        int(cid, 16)

    def test_set_and_get(self):
        token = correlation_id_ctx.set(None)
        try:
            set_correlation_id("cid-1")
            assert get_correlation_id() == "cid-1"
        finally:
            correlation_id_ctx.reset(token)


class TestStructuredJsonFormatter:
    def test_single_line_json(self):
        token = correlation_id_ctx.set("cid-xyz")
        try:
            line = StructuredJsonFormatter().format(_record())
        finally:
            correlation_id_ctx.reset(token)

        entry = json.loads(line)
        assert entry["message"] == "hello world"
        assert entry["level"] == "INFO"
        assert entry["module"] == "crawlsync.test"
        assert entry["correlation_id"] == "cid-xyz"
        assert "\n" not in line

    def test_includes_known_extras_only(self):
        line = StructuredJsonFormatter().format(
            _record(action="order.placed", order_id="123", unrelated="x"),
        )
        entry = json.loads(line)
        assert entry["action"] == "order.placed"
        assert entry["order_id"] == "123"
        assert "unrelated" not in entry

    def test_includes_exception(self):
        try:
            raise ValueError("bad")
        except ValueError:
            line = StructuredJsonFormatter().format(_record(exc_info=sys.exc_info()))
        assert "ValueError: bad" in json.loads(line)["exception"]

    def test_error_code_defaults_to_exception_class(self):
        try:
            raise MissingConstraintError("no unique index")
        except MissingConstraintError:
            entry = json.loads(StructuredJsonFormatter().format(_record(exc_info=sys.exc_info())))
        assert entry["error_code"] == "MissingConstraintError"

    def test_explicit_error_code_wins(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = _record(exc_info=sys.exc_info(), error_code="store_unavailable")
            entry = json.loads(StructuredJsonFormatter().format(record))
        assert entry["error_code"] == "store_unavailable"

    def test_outcome_and_payload_hash_included(self):
        entry = json.loads(StructuredJsonFormatter().format(_record(outcome="updated", payload_sha256="ab12")))
        assert entry["outcome"] == "updated"
        assert entry["payload_sha256"] == "ab12"
        assert "error_code" not in entry


class TestSettings:
    def test_webhook_config_blank_secrets_become_none(self):
        settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
        assert settings.webhook_config() == WebhookConfig(
            webhook_secret=None, api_token=None, timeout_seconds=10.0,
        )

    def test_webhook_config_from_env(self, monkeypatch):
        monkeypatch.setenv("EVENTBRITE_WEBHOOK_SECRET", "sec")
        monkeypatch.setenv("EVENTBRITE_API_TOKEN", "tok")
        monkeypatch.setenv("EVENTBRITE_TIMEOUT_SECONDS", "3.5")
        config = Settings(database_url="sqlite+aiosqlite:///:memory:").webhook_config()
        assert config == WebhookConfig(webhook_secret="sec", api_token="tok", timeout_seconds=3.5)

    def test_only_used_app_settings(self):
        assert "app_host" not in Settings.model_fields
        assert "app_port" not in Settings.model_fields

    def test_storage_defaults(self):
        settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
        assert settings.storage_bucket == "crawl-images"
        assert settings.supabase_url == ""
