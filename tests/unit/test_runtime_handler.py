"""
Unit tests for request-time exception handling
"""

import logging
import sqlite3

import pytest
import requests
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from buildcheck.runtime import (
    DEFAULT_RECOVERY_HANDLERS,
    RuntimeExceptionHandler,
    attempt_recovery,
    install_exception_handler,
)
from buildcheck.runtime.handler import new_trace_id


class Order(BaseModel):
    quantity: int


@pytest.fixture
def handler(classifier):
    return RuntimeExceptionHandler(classifier)


class TestRuntimeExceptionHandler:
    @pytest.mark.parametrize(
        "exc,code,status",
        [
            (PermissionError("denied"), "UNAUTHORIZED", 401),
            (sqlite3.OperationalError("db down"), "SERVICE_UNAVAILABLE", 503),
            (requests.ConnectionError("refused"), "NETWORK_ERROR", 502),
            (TimeoutError("slow"), "NETWORK_ERROR", 502),
            (KeyError("sku"), "SERVER_ERROR", 500),
            (FileNotFoundError("report.csv"), "UNKNOWN_ERROR", 500),
        ],
    )
    def test_status_mapping(self, handler, exc, code, status):
        response = handler.handle(exc, request_path="/api/orders")

        assert response.error == code
        assert response.status_code == status
        assert response.success is False
        assert response.request_path == "/api/orders"

    def test_validation_errors_listed(self, handler):
        try:
            Order.model_validate({"quantity": "many"})
        except Exception as e:
            response = handler.handle(e)

        assert response.status_code == 400
        assert response.error == "VALIDATION_ERROR"
        assert response.errors[0].startswith("quantity:")
        assert response.recovery_attempted and response.recovery_successful

    def test_body_never_contains_exception_text(self, handler):
        response = handler.handle(RuntimeError("secret connection password=hunter2"))

        body = response.to_dict()

        assert "hunter2" not in str(body)
        assert body["message"] == "An unexpected error occurred. Please try again."

    def test_suggestions_hidden_in_production(self, classifier):
        development = RuntimeExceptionHandler(classifier).handle(PermissionError())
        production = RuntimeExceptionHandler(classifier, production=True).handle(PermissionError())

        assert development.to_dict()["resolutionSuggestions"]
        assert "resolutionSuggestions" not in production.to_dict()

    def test_trace_ids_are_unique(self, handler):
        first = handler.handle(KeyError("a"))
        second = handler.handle(KeyError("a"))

        assert len(first.trace_id) == 16
        assert first.trace_id != second.trace_id
        assert len(new_trace_id()) == 16

    def test_handler_failure_falls_back(self, classifier, monkeypatch):
        handler = RuntimeExceptionHandler(classifier)

        def explode(exc, source=""):
            raise RuntimeError("classifier broken")

        monkeypatch.setattr(classifier, "classify_exception", explode)

        response = handler.handle(ValueError("x"), request_path="/api")

        assert response.error == "SYSTEM_ERROR"
        assert response.status_code == 500
        assert response.category == "SystemError"

    def test_severity_drives_log_level(self, handler, caplog):
        with caplog.at_level(logging.INFO, logger="buildcheck.runtime.handler"):
            handler.handle(sqlite3.DatabaseError("gone"), request_path="/api/stock")

        record = next(r for r in caplog.records if "DatabaseConnectivity" in r.getMessage())
        assert record.levelno == logging.CRITICAL


class TestRecovery:
    @pytest.mark.parametrize(
        "exc,attempted,successful",
        [
            (PermissionError(), True, True),
            (requests.ConnectTimeout(), True, True),
            (sqlite3.OperationalError(), True, False),
            (ConnectionResetError(), True, True),
            (RuntimeError("state"), True, False),
            (KeyError("x"), False, False),
        ],
    )
    def test_outcomes(self, exc, attempted, successful):
        outcome = attempt_recovery(exc, DEFAULT_RECOVERY_HANDLERS)

        assert outcome.attempted is attempted
        assert outcome.successful is successful

    def test_timeout_handler_precedes_network(self):
        outcome = attempt_recovery(requests.ConnectTimeout())

        assert outcome.action == "Request timeout extended for retry"


class TestFastApiIntegration:
    @pytest.fixture
    def client(self, handler):
        app = FastAPI()
        install_exception_handler(app, handler)

        @app.get("/api/orders")
        def orders():
            raise PermissionError("token expired")

        @app.get("/api/stock")
        def stock():
            raise requests.ConnectionError("inventory service refused")

        return TestClient(app, raise_server_exceptions=False)

    def test_unhandled_exception_becomes_structured_response(self, client):
        response = client.get("/api/orders")

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "UNAUTHORIZED"
        assert body["requestPath"] == "/api/orders"
        assert body["success"] is False
        assert len(body["traceId"]) == 16

    def test_network_failure(self, client):
        response = client.get("/api/stock")

        assert response.status_code == 502
        assert response.json()["category"] == "NetworkConnectivity"
