"""Tests for /health and / endpoints, and the request context middleware."""

import asyncio

from starlette.requests import Request
from starlette.responses import Response

from docvault.core.logging_config import principal_var, request_id_var
from docvault.middleware.request_context import RequestContextMiddleware
from tests.conftest import auth_headers


class TestHealth:

    def test_health_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["db"] == "ok"
        assert "uptime_seconds" in data
        assert "version" in data

    def test_health_counts_rows(self, client, resources, alice):
        repo = resources.create_repository("r", alice)
        folder = resources.create_folder(repo.id, "f", alice)
        resources.create_file(repo.id, "a.md", b"", alice, parent_id=folder.id)

        counts = client.get("/health").json()["counts"]
        assert counts == {"repositories": 1, "folders": 1, "files": 1}

    def test_root_returns_api_info(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["name"] == "DocVault API"


class TestResponseHeaders:

    def test_response_includes_middleware_headers(self, client):
        resp = client.get("/health")
        assert "x-request-id" in resp.headers
        assert "x-response-time" in resp.headers

    def test_request_id_is_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert resp.headers["x-request-id"] == "trace-123"

    def test_error_responses_carry_request_id(self, client, alice):
        resp = client.get("/api/resources/missing", headers=auth_headers("alice"))
        assert resp.status_code == 404
        assert "x-request-id" in resp.headers


class TestRequestContextVars:

    def test_context_is_set_during_request_and_restored_after(self):
        seen = {}

        async def call_next(request):
            seen["request_id"] = request_id_var.get()
            principal_var.set("alice")
            return Response("ok")

        async def run():
            middleware = RequestContextMiddleware(app=None)
            request = Request({
                "type": "http",
                "method": "GET",
                "path": "/health",
                "headers": [(b"x-request-id", b"ctx-1")],
                "query_string": b"",
            })
            await middleware.dispatch(request, call_next)
            return request_id_var.get(), principal_var.get()

        assert asyncio.run(run()) == ("", "")
        assert seen["request_id"] == "ctx-1"
