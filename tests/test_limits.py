"""Tests for settings, resource limits and logging."""
import logging

import pytest

from valora import ErrorCode, schema
from valora.config import Settings, get_settings
from valora.logging import bind_context, clear_context, configure_logging, schema_logger, types_logger
from valora.validation import ParseLimits


def nested(depth):
    """A schema nesting ``depth`` objects below the root."""
    def leaf(s):
        s.field("value", "integer")

    current = schema(leaf)
    for _ in range(depth):
        inner = current
        current = schema(lambda s, inner=inner: s.field("child", "object", schema=inner))
    return current


def payload(depth):
    data = {"value": 1}
    for _ in range(depth):
        data = {"child": data}
    return data


def test_settings_defaults():
    settings = Settings()
    assert settings.MAX_DEPTH == 32
    assert settings.MAX_ARRAY_LENGTH == 10_000
    assert settings.LOCALE == "en"
    assert get_settings() is get_settings()


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("VALORA_MAX_DEPTH", "5")
    monkeypatch.setenv("VALORA_LOG_JSON", "true")
    settings = Settings()
    assert settings.MAX_DEPTH == 5
    assert settings.LOG_JSON is True


def test_limits_snapshot_from_settings():
    assert ParseLimits.from_settings() == ParseLimits(32, 10_000)
    assert ParseLimits.from_settings(max_depth=2).max_depth == 2


def test_depth_limit():
    outer = schema(lambda s: s.field("child", "object", schema=nested(2)), max_depth=2)
    result = outer.safe_parse({"child": payload(2)})
    error = result.errors[0]
    assert error.code is ErrorCode.RESOURCE_LIMIT
    assert error.path == ("child", "child", "child")
    assert error.message == "exceeds maximum nesting depth of 2"

    assert schema(lambda s: s.field("child", "object", schema=nested(1)), max_depth=2).parse(
        {"child": payload(1)}
    ) == {"child": payload(1)}


def test_array_length_limit():
    Bulk = schema(lambda s: s.field("ids", "array", of="integer"), max_array_length=3)
    assert Bulk.parse({"ids": [1, 2, 3]}) == {"ids": [1, 2, 3]}
    error = Bulk.safe_parse({"ids": [1, 2, 3, 4]}).errors[0]
    assert error.code is ErrorCode.RESOURCE_LIMIT
    assert error.path == ("ids",)
    assert error.message == "exceeds maximum array length of 3 (got 4)"


def test_limit_hit_is_logged(caplog):
    Bulk = schema(lambda s: s.field("ids", "array"), max_array_length=1)
    with caplog.at_level(logging.WARNING, logger="valora.schema"):
        Bulk.safe_parse({"ids": [1, 2]})
    assert any("resource_limit_hit" in record.getMessage() for record in caplog.records)


def test_loggers_are_cached_per_subsystem():
    assert schema_logger() is schema_logger()
    assert types_logger() is not schema_logger()


@pytest.mark.parametrize("json_logs", [True, False])
def test_configure_logging(json_logs):
    configure_logging("DEBUG", json_logs=json_logs)
    library = logging.getLogger("valora")
    assert library.level == logging.DEBUG
    assert library.propagate is False
    assert len(library.handlers) == 1
    library.propagate = True
    library.handlers = []
    library.setLevel(logging.NOTSET)


def test_bound_context_reaches_events(caplog):
    bind_context(request_id="abc123")
    try:
        Bulk = schema(lambda s: s.field("ids", "array"), max_array_length=1)
        with caplog.at_level(logging.WARNING, logger="valora.schema"):
            Bulk.safe_parse({"ids": [1, 2]})
    finally:
        clear_context()
    assert any("abc123" in record.getMessage() for record in caplog.records)
