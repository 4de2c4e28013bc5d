"""
Tests for paid route registration.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from conftest import FakeHTTPServer, payment_error, verified
from paygate.fastapi import (
    MiddlewareConfigError,
    PaidRoutes,
    PaymentMiddlewareConfig,
    create_paid_routes,
)

PAYMENT = {"accepts": [{"scheme": "exact", "network": "starknet:sepolia", "price": "$0.01"}]}


def build(server, base_path="/api"):
    app = FastAPI()
    paid = create_paid_routes(
        app, base_path=base_path, middleware=PaymentMiddlewareConfig(http_server=server)
    )

    @paid.get("/premium", payment=PAYMENT)
    async def premium():
        return {"message": "premium"}

    @paid.post("/upload", payment=PAYMENT)
    async def upload():
        return {"uploaded": True}

    @paid.get("/status")
    async def status():
        return {"ok": True}

    paid.install()
    return app, paid


class TestPaidRoutes:
    def test_collects_route_keys(self):
        _, paid = build(FakeHTTPServer())

        assert paid.routes == {"GET /api/premium": PAYMENT, "POST /api/upload": PAYMENT}

    def test_base_path_is_normalized(self):
        paid = PaidRoutes(base_path="/api/")

        assert paid.route_key("get", "premium") == "GET /api/premium"

    def test_root_base_path(self):
        assert PaidRoutes(base_path="/").route_key("GET", "/x") == "GET /x"

    def test_protected_route_requires_payment(self):
        server = FakeHTTPServer({"/api/premium": payment_error()})
        app, _ = build(server)

        assert TestClient(app).get("/api/premium").status_code == 402

    def test_verified_route_is_served_and_settled(self):
        server = FakeHTTPServer({"/api/premium": verified()})
        app, _ = build(server)
        response = TestClient(app).get("/api/premium")

        assert response.status_code == 200
        assert response.json() == {"message": "premium"}
        assert len(server.settlements) == 1

    def test_free_route_in_same_router(self):
        server = FakeHTTPServer()
        app, _ = build(server)

        assert TestClient(app).get("/api/status").json() == {"ok": True}

    def test_merges_with_configured_routes(self):
        extra = {"GET /legacy": PAYMENT}
        paid = PaidRoutes(
            "/api", PaymentMiddlewareConfig(http_server=FakeHTTPServer(), routes=extra)
        )
        paid.add("GET", "/new", payment=PAYMENT)

        assert paid.middleware_config().routes == {
            "GET /legacy": PAYMENT,
            "GET /api/new": PAYMENT,
        }

    def test_single_route_config_cannot_be_merged(self):
        paid = PaidRoutes("/api", PaymentMiddlewareConfig(routes=PAYMENT))

        with pytest.raises(MiddlewareConfigError):
            paid.middleware_config()

    def test_install_needs_an_app(self):
        with pytest.raises(MiddlewareConfigError):
            PaidRoutes("/api").install()

    def test_install_is_idempotent(self):
        server = FakeHTTPServer()
        app, paid = build(server)
        middleware_count = len(app.user_middleware)

        paid.install()

        assert len(app.user_middleware) == middleware_count

    def test_install_surfaces_config_errors(self):
        app = FastAPI()
        paid = create_paid_routes(app, "/api")

        @paid.get("/premium", payment=PAYMENT)
        async def premium():
            return {"message": "premium"}

        with pytest.raises(MiddlewareConfigError, match="resource_server or facilitator_client"):
            paid.install()
        assert app.user_middleware == []
