import pytest
from asgi_lifespan import LifespanManager
from gateway.core.admin_router import AdminRouter
from gateway.core.mount_admin_first import MountAdminFirst
from tests.fixtures.gateway_app import build_gateway, client_for
from tests.fixtures.mock_backends import echo_backend

ROUTES = [
    {"path": "/ping", "method": "GET", "auth": False, "host": "PING_HOST", "port": 8080},
    {"path": "/users/{id}", "method": "GET", "auth": True, "host": "USERS_HOST", "port": "4001"},
]


def build_app(tmp_path, routes=ROUTES):
    gateway = build_gateway(tmp_path, routes, echo_backend)
    return MountAdminFirst(AdminRouter(gateway), gateway)


@pytest.mark.anyio
async def test_admin_endpoints(tmp_path):
    app = build_app(tmp_path)

    async with LifespanManager(app):
        async with client_for(app) as client:
            res = await client.get("/__health")
            assert res.status_code == 200
            assert "ok" in res.text.lower()

            res = await client.get("/__routes")
            assert res.status_code == 200
            assert res.json() == ROUTES

            res = await client.get("/__unknown")
            assert res.status_code == 404


@pytest.mark.anyio
async def test_admin_reload_swaps_route_table(tmp_path):
    app = build_app(tmp_path, routes=[])

    async with LifespanManager(app):
        async with client_for(app) as client:
            assert (await client.get("/ping")).status_code == 404

            (tmp_path / "proxy.json").write_text(
                '[{"path": "/ping", "method": "GET", "auth": false, "host": "PING_HOST", "port": 8080}]')
            reload_res = await client.post("/__reload")
            assert reload_res.status_code == 200
            assert reload_res.json() == {"status": "Reloaded", "routes": ["/ping"]}

            route_res = await client.get("/ping")
            assert route_res.status_code == 200


@pytest.mark.anyio
async def test_admin_reload_failure_is_reported(tmp_path):
    app = build_app(tmp_path)

    async with LifespanManager(app):
        async with client_for(app) as client:
            assert (await client.get("/__routes")).status_code == 200

            (tmp_path / "proxy.json").write_text("{not json")
            res = await client.post("/__reload")
            assert res.status_code == 500
            assert res.json() == {"error": "Reload failed"}

            res = await client.get("/__routes")
            assert res.status_code == 500
