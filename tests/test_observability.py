"""
Tests for structured logging and request context.

Covers:
- Context: RequestContext binds and restores request/owner ids
- Logging: JSONFormatter, HumanFormatter, configure_logging
- Middleware: CorrelationIdMiddleware over the API
"""

import json
import logging

from fastapi.testclient import TestClient

from focusday.observability import (
    CorrelationIdMiddleware,
    HumanFormatter,
    JSONFormatter,
    RequestContext,
    configure_logging,
    get_owner_id,
    get_request_id,
)


def make_record(message: str = "Ritual completed", **extra) -> logging.LogRecord:
    record = logging.LogRecord("focusday.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# =============================================================================
# CONTEXT
# =============================================================================


class TestRequestContext:
    def test_binds_and_restores(self):
        assert get_request_id() is None

        with RequestContext(request_id="req-1", owner_id="user-1") as ctx:
            assert ctx.request_id == "req-1"
            assert get_request_id() == "req-1"
            assert get_owner_id() == "user-1"

        assert get_request_id() is None
        assert get_owner_id() is None

    def test_generates_request_id(self):
        with RequestContext() as ctx:
            assert ctx.request_id.startswith("req-")
            assert get_owner_id() is None

    def test_nested_contexts(self):
        with RequestContext(request_id="outer", owner_id="user-1"):
            with RequestContext(request_id="inner"):
                assert get_request_id() == "inner"
                assert get_owner_id() == "user-1"
            assert get_request_id() == "outer"


# =============================================================================
# FORMATTERS
# =============================================================================


class TestJSONFormatter:
    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "focusday.test"
        assert data["message"] == "Ritual completed"
        assert data["timestamp"].endswith("Z")
        assert "request_id" not in data

    def test_context_and_extra_fields(self):
        with RequestContext(request_id="req-42", owner_id="user-1"):
            data = json.loads(JSONFormatter().format(make_record(instances=30)))

        assert data["request_id"] == "req-42"
        assert data["owner_id"] == "user-1"
        assert data["instances"] == 30


class TestHumanFormatter:
    def test_includes_request_prefix(self):
        with RequestContext(request_id="req-abcdef123456789"):
            line = HumanFormatter().format(make_record())
        assert "[INFO] focusday.test: [req-abcdef12] Ritual completed" in line


class TestConfigureLogging:
    def test_replaces_root_handlers(self, tmp_path):
        root = logging.getLogger()
        saved = (root.level, root.handlers[:])
        try:
            configure_logging(level="DEBUG", json_format=True, log_file=str(tmp_path / "focusday.log"))

            assert root.level == logging.DEBUG
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
            assert len(root.handlers) == 2
        finally:
            for handler in root.handlers[:]:
                root.removeHandler(handler)
                handler.close()
            root.setLevel(saved[0])
            for handler in saved[1]:
                root.addHandler(handler)


# =============================================================================
# MIDDLEWARE
# =============================================================================


class TestCorrelationIdMiddleware:
    def test_request_scoped_context(self):
        from fastapi import FastAPI

        app = FastAPI()
        app.add_middleware(CorrelationIdMiddleware)

        @app.get("/whoami")
        def whoami():
            return {"request_id": get_request_id(), "owner_id": get_owner_id()}

        client = TestClient(app)
        body = client.get("/whoami", headers={"X-Request-ID": "req-7", "X-User-Id": "user-1"}).json()
        assert body == {"request_id": "req-7", "owner_id": "user-1"}

        generated = client.get("/whoami").json()
        assert generated["request_id"].startswith("req-")
        assert generated["owner_id"] is None
