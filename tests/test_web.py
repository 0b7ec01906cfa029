"""Tests for ``querygate.web`` — the FastAPI fail channel."""

from __future__ import annotations

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from querygate.adapters.sqlite import SQLiteAdapter
from querygate.engine import Database
from querygate.web import HTTPFailChannel


class TestHTTPFailChannel:
    def test_raises_http_500(self):
        with pytest.raises(HTTPException) as exc_info:
            HTTPFailChannel().report_fatal("no such table: orders")
        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Internal Server Error"
        assert exc_info.value.headers == {"X-Robots-Tag": "noindex"}

    def test_expose_detail(self):
        with pytest.raises(HTTPException) as exc_info:
            HTTPFailChannel(expose_detail=True).report_fatal("no such table: orders")
        assert "no such table: orders" in exc_info.value.detail


class TestRequestHandler:
    def test_database_failure_becomes_500(self, sink):
        db = Database(SQLiteAdapter(), sink=sink, fail_channel=HTTPFailChannel())
        app = FastAPI()

        @app.get("/orders")
        def list_orders():
            return db.query("SELECT * FROM orders")

        response = TestClient(app).get("/orders")
        assert response.status_code == 500
        assert response.headers["x-robots-tag"] == "noindex"
        assert "Raw SQL : SELECT * FROM orders" in sink.messages[-1]

    def test_success(self, sink):
        db = Database(SQLiteAdapter(), sink=sink, fail_channel=HTTPFailChannel())
        app = FastAPI()

        @app.get("/answer")
        def answer():
            return {"value": db.single("SELECT 42")}

        response = TestClient(app).get("/answer")
        assert response.status_code == 200
        assert response.json() == {"value": 42}
