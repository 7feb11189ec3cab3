from __future__ import annotations

import json
import logging

from fastapi.testclient import TestClient

from taskmarket.core.logging import JsonFormatter
from taskmarket.core.observability import PrometheusMetrics
from taskmarket.db.models.enums import Role
from taskmarket.main import app


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "taskmarket"}


def test_request_id_is_echoed(client: TestClient) -> None:
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_metrics_disabled_by_default(client: TestClient) -> None:
    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.text == "# metrics disabled\n"


def test_metrics_count_requests_and_ledger_outcomes(client: TestClient, create_account) -> None:
    app.state.metrics = PrometheusMetrics(enabled=True)
    create_account(email="worker@test.local", role=Role.WORKER)

    client.post("/api/wallet/withdraw", json={"email": "worker@test.local", "amount": 4, "method": "bkash"})
    client.post("/api/wallet/withdraw", json={"email": "worker@test.local", "amount": 40, "method": "bkash"})
    body = client.get("/metrics").text

    assert 'http_requests_total{path="/api/wallet/withdraw",method="POST",status="201"} 1' in body
    assert 'http_requests_total{path="/api/wallet/withdraw",method="POST",status="400"} 1' in body
    assert 'ledger_operations_total{operation="withdraw",outcome="ok"} 1' in body
    assert 'ledger_operations_total{operation="withdraw",outcome="insufficient_funds"} 1' in body


def test_from_env_reads_flag(monkeypatch) -> None:
    monkeypatch.setenv("ENABLE_PROMETHEUS_METRICS", "yes")
    assert PrometheusMetrics.from_env().enabled

    monkeypatch.setenv("ENABLE_PROMETHEUS_METRICS", "off")
    assert not PrometheusMetrics.from_env().enabled


def test_json_formatter_keeps_extra_fields() -> None:
    record = logging.LogRecord(
        name="taskmarket.services.accounts",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="account debited",
        args=(),
        exc_info=None,
    )
    record.account_id = 7
    record.amount = 3

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "account debited"
    assert payload["level"] == "INFO"
    assert payload["account_id"] == 7
    assert payload["amount"] == 3


def test_request_log_line_carries_request_context(client: TestClient, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="taskmarket.requests"):
        client.get("/health", headers={"X-Request-ID": "req-log"})

    records = [record for record in caplog.records if record.name == "taskmarket.requests"]
    assert records
    assert records[-1].request_id == "req-log"
    assert records[-1].path == "/health"
    assert records[-1].status == 200
