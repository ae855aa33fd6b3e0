"""Tests for the request context middleware."""

from __future__ import annotations

import logging
import uuid

import pytest
from fastapi.testclient import TestClient


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    resp = client.get("/health")
    req_id = resp.headers.get("x-request-id")
    assert req_id is not None
    uuid.UUID(req_id)  # raises ValueError if invalid


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    custom_id = "my-custom-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": custom_id})
    assert resp.headers.get("x-request-id") == custom_id


def test_request_id_present_on_error_responses(client: TestClient) -> None:
    resp = client.get("/callback")  # neither code nor error → 400
    assert resp.status_code == 400
    assert resp.headers.get("x-request-id") is not None


def test_summary_line_omits_query_string(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="app.middleware.request_context"):
        client.get("/callback", params={"error": "access_denied"})

    summaries = [
        r.getMessage()
        for r in caplog.records
        if r.name == "app.middleware.request_context"
    ]
    assert any("GET /callback → 200" in line for line in summaries)
    assert not any("access_denied" in line for line in summaries)
