import logging
import uuid
import pytest
from asgi_lifespan import LifespanManager
from gateway.core.logging_setup import LOG_FORMAT, TraceLogFilter
from gateway.core.trace import TraceMiddleware, trace_id_var
from tests.fixtures.gateway_app import build_gateway, client_for
from tests.fixtures.mock_backends import logging_backend

ROUTES = [{"path": "/api", "method": "GET", "auth": False, "host": "H", "port": 9000}]


@pytest.mark.anyio
async def test_client_trace_id_appears_in_logs(tmp_path, caplog):
    caplog.set_level(logging.INFO, logger="test-observability")
    app = TraceMiddleware(build_gateway(tmp_path, ROUTES, logging_backend))
    given_id = str(uuid.uuid4())

    async with LifespanManager(app):
        async with client_for(app) as client:
            res = await client.get("/api", headers={"X-Trace-ID": given_id})
            assert res.status_code == 200

    assert f"Log triggered by trace ID: {given_id}" in caplog.text


@pytest.mark.anyio
async def test_trace_id_is_generated_but_not_added_to_response(tmp_path, caplog):
    caplog.set_level(logging.INFO, logger="test-observability")
    app = TraceMiddleware(build_gateway(tmp_path, ROUTES, logging_backend))

    async with LifespanManager(app):
        async with client_for(app) as client:
            res = await client.get("/api")

    assert "x-trace-id" not in res.headers
    logged_id = caplog.text.split("Log triggered by trace ID: ")[1].split()[0]
    assert uuid.UUID(logged_id)


def test_trace_log_filter_stamps_records():
    record = logging.LogRecord("gateway", logging.INFO, __file__, 1, "msg", None, None)
    token = trace_id_var.set("abc123")
    try:
        assert TraceLogFilter().filter(record)
    finally:
        trace_id_var.reset(token)
    assert record.trace_id == "abc123"

    TraceLogFilter().filter(record)
    assert record.trace_id == "-"


def test_log_line_carries_trace_id_before_message():
    record = logging.LogRecord("gateway.core.forwarder", logging.INFO, __file__, 1, "Forwarding GET /ping", None, None)
    token = trace_id_var.set("abc123")
    try:
        TraceLogFilter().filter(record)
    finally:
        trace_id_var.reset(token)

    line = logging.Formatter(LOG_FORMAT).format(record)

    assert line.endswith("[INFO] [trace_id=abc123] Forwarding GET /ping")
