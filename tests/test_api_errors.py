"""
Tests for the FastAPI integration.

Runs real requests through TestClient: error handler registration,
the Starlette transport, the maintenance middleware and the health
endpoint. The shutdown coordinator is mocked so no process exits.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from graceful_errors.application.dtos import ErrorHandlerConfig
from graceful_errors.application.error_handler import ErrorHandler
from graceful_errors.domain.errors import HttpError
from graceful_errors.domain.maintenance import MaintenanceState
from graceful_errors.interfaces.middleware import add_maintenance_middleware
from graceful_errors.main import create_app
from graceful_errors.shared.errors.handlers import register_error_handlers


def add_routes(app: FastAPI) -> None:
    @app.get("/missing")
    def missing() -> None:
        raise HTTPException(status_code=404)

    @app.get("/teapot")
    def teapot() -> None:
        raise HttpError(418, "I'm a teapot")

    @app.get("/crash")
    def crash() -> None:
        raise RuntimeError("database connection lost")

    @app.get("/ok")
    def ok() -> dict:
        return {"ok": True}


def build_app(
    coordinator: MagicMock,
    maintenance: MaintenanceState,
    config: ErrorHandlerConfig = None,
    templates=None,
    **maintenance_overrides,
) -> tuple[TestClient, ErrorHandler]:
    handler = ErrorHandler(
        config or ErrorHandlerConfig(), maintenance=maintenance, coordinator=coordinator
    )
    app = FastAPI()
    add_maintenance_middleware(app, handler, **maintenance_overrides)
    register_error_handlers(app, handler, templates=templates)
    add_routes(app)
    return TestClient(app, raise_server_exceptions=False), handler


class TestErrorResponses:
    """Errors raised by routes are resolved by the error handler."""

    def test_unknown_route_404(self, coordinator, maintenance) -> None:
        client, _ = build_app(coordinator, maintenance)
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.json() == {"status": 404, "message": "Not Found"}
        coordinator.shutdown.assert_not_called()

    def test_http_exception(self, coordinator, maintenance) -> None:
        client, _ = build_app(coordinator, maintenance)
        response = client.get("/missing")
        assert response.status_code == 404
        coordinator.shutdown.assert_not_called()

    def test_http_error(self, coordinator, maintenance) -> None:
        client, _ = build_app(coordinator, maintenance)
        response = client.get("/teapot")

        assert response.status_code == 418
        assert response.json() == {"status": 418, "message": "I'm a teapot"}
        coordinator.shutdown.assert_not_called()

    def test_text_negotiation(self, coordinator, maintenance) -> None:
        client, _ = build_app(coordinator, maintenance)
        response = client.get("/teapot", headers={"Accept": "text/plain"})

        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "I'm a teapot"

    def test_unexpected_error_500_and_shutdown(self, coordinator, maintenance) -> None:
        """An unexpected exception answers 500 without internals and shuts down."""
        client, _ = build_app(coordinator, maintenance)
        response = client.get("/crash")

        assert response.status_code == 500
        assert response.json() == {"status": 500, "message": "Internal Server Error"}
        assert "database" not in response.text
        coordinator.shutdown.assert_called_once_with()

    def test_custom_handler(self, coordinator, maintenance) -> None:
        def handle_404(context, transport) -> None:
            transport.status_code = 404
            transport.send("nothing here")

        config = ErrorHandlerConfig(handlers={404: handle_404})
        client, _ = build_app(coordinator, maintenance, config=config)
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.text == "nothing here"

    def test_static_file_then_shutdown(
        self, coordinator, maintenance, tmp_path: Path
    ) -> None:
        """A static error page is streamed before the shutdown starts."""
        page = tmp_path / "500.html"
        page.write_text("<h1>Something broke</h1>")
        config = ErrorHandlerConfig(static={"default": str(page)})
        client, _ = build_app(coordinator, maintenance, config=config)

        response = client.get("/crash")

        assert response.status_code == 500
        assert response.text == "<h1>Something broke</h1>"
        coordinator.shutdown.assert_called_once_with()

    def test_missing_static_file_still_shuts_down(self, coordinator, maintenance) -> None:
        """A missing default error page falls back to the JSON body and still shuts down."""
        config = ErrorHandlerConfig(static={"default": "/nonexistent/500.html"})
        client, _ = build_app(coordinator, maintenance, config=config)

        response = client.get("/crash")

        assert response.status_code == 500
        assert response.json() == {"status": 500, "message": "Internal Server Error"}
        assert coordinator.shutdown.call_count == 1

    def test_missing_status_static_file_falls_back(self, coordinator, maintenance) -> None:
        config = ErrorHandlerConfig(static={404: "/nonexistent/404.html"})
        client, _ = build_app(coordinator, maintenance, config=config)

        response = client.get("/missing")

        assert response.status_code == 404
        assert response.json() == {"status": 404, "message": "Not Found"}
        coordinator.shutdown.assert_not_called()

    def test_broken_template_falls_back(self, coordinator, maintenance) -> None:
        """A view whose template fails keeps the status and uses the default body."""
        templates = MagicMock()
        templates.TemplateResponse.side_effect = LookupError("404.html")
        config = ErrorHandlerConfig(views={404: "404.html"})
        client, _ = build_app(coordinator, maintenance, config=config, templates=templates)

        response = client.get("/missing")

        assert response.status_code == 404
        assert response.json() == {"status": 404, "message": "Not Found"}
        coordinator.shutdown.assert_not_called()

    def test_success_untouched(self, coordinator, maintenance) -> None:
        client, _ = build_app(coordinator, maintenance)
        assert client.get("/ok").json() == {"ok": True}


class TestMaintenanceMode:
    """Maintenance middleware answers every request with 503."""

    def test_override_predicates(
        self, coordinator, maintenance, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Overrides returning True / 14400 win over the environment."""
        monkeypatch.setenv("MAINT_FLAG", "false")
        client, _ = build_app(
            coordinator,
            maintenance,
            enabled=lambda: True,
            retry_after=lambda: 14400,
        )
        for path in ("/ok", "/crash", "/nowhere"):
            response = client.get(path)
            assert response.status_code == 503
            assert response.headers["retry-after"] == "14400"
        coordinator.shutdown.assert_not_called()

    def test_env_flag(self, coordinator, maintenance, monkeypatch: pytest.MonkeyPatch) -> None:
        client, _ = build_app(coordinator, maintenance)
        assert client.get("/ok").status_code == 200

        monkeypatch.setenv("MAINT_FLAG", "true")
        monkeypatch.setenv("MAINT_RETRYAFTER", "Fri, 31 Dec 1999 23:59:59 GMT")
        response = client.get("/ok")

        assert response.status_code == 503
        assert response.headers["retry-after"] == "Fri, 31 Dec 1999 23:59:59 GMT"
        assert response.json()["status"] == 503

    def test_builtin_setter(self, coordinator, maintenance) -> None:
        client, _ = build_app(coordinator, maintenance)
        maintenance.set_enabled(True)
        assert client.get("/ok").status_code == 503
        maintenance.set_enabled(False)
        assert client.get("/ok").status_code == 200

    def test_policy_installed_at_setup(self, coordinator, maintenance) -> None:
        """The status query reflects the override before any request is served."""
        build_app(coordinator, maintenance, enabled=lambda: True)
        assert maintenance.status() is True

    def test_policy_installed_after_setup_kept(self, coordinator, maintenance) -> None:
        """Building the middleware on the first request does not reinstall its policy."""
        client, _ = build_app(coordinator, maintenance, enabled=lambda: True)
        maintenance.install(enabled=lambda: False)

        assert client.get("/ok").status_code == 200
        assert maintenance.status() is False


class TestHealthEndpoint:
    """Tests for the health endpoint of the bundled app."""

    def test_health_ok(self, coordinator, maintenance) -> None:
        handler = ErrorHandler(maintenance=maintenance, coordinator=coordinator)
        client = TestClient(create_app(error_handler=handler, maintenance=maintenance))
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["maintenance"] is False
        assert "version" in body

    def test_health_in_maintenance(self, coordinator, maintenance) -> None:
        handler = ErrorHandler(maintenance=maintenance, coordinator=coordinator)
        client = TestClient(create_app(error_handler=handler, maintenance=maintenance))
        maintenance.set_enabled(True)

        response = client.get("/health")

        assert response.status_code == 503
        assert response.headers["retry-after"] == "3600"
        coordinator.shutdown.assert_not_called()
