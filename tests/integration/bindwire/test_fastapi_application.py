"""Integration tests for FastAPI applications wired by an injector."""

import pytest

pytest.importorskip("fastapi")
pytest.importorskip("httpx")

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from bindwire import AbstractModule, Injector, Scope, pre_destroy, singleton
from bindwire.infrastructure.fastapi_integration import (
    ScopedInjectorMiddleware,
    create_fastapi_dependency,
    create_scoped_dependency,
    inject_dependencies,
)

closed_sessions = []


class Database:
    def fetch_users(self):
        return ["ann", "bo"]


class UserService:
    def __init__(self, db: Database):
        self.db = db

    def list_users(self):
        return self.db.fetch_users()


@singleton
class RequestSession:
    @pre_destroy
    def close(self):
        closed_sessions.append(id(self))


class ApplicationModule(AbstractModule):
    def configure(self):
        self.bind(Database).in_scope(Scope.SINGLETON)


def build_app():
    injector = Injector(ApplicationModule())
    app = FastAPI()
    app.add_middleware(ScopedInjectorMiddleware, injector=injector)

    get_user_service = create_fastapi_dependency(injector, UserService)
    get_session = create_scoped_dependency(RequestSession)

    @app.get("/users")
    def list_users(service: UserService = Depends(get_user_service)):
        return {"users": service.list_users()}

    @app.get("/session")
    def session(first: RequestSession = Depends(get_session), second: RequestSession = Depends(get_session)):
        return {"same": first is second, "id": id(first)}

    @app.get("/direct")
    @inject_dependencies(injector, service=UserService)
    async def direct(service: UserService):
        return {"count": len(service.list_users())}

    return app, injector


class TestFastAPIApplication:
    """Test complete request flows."""

    def test_endpoint_with_injected_service(self):
        """Test that an endpoint receives a constructed service."""
        app, _ = build_app()

        with TestClient(app) as client:
            response = client.get("/users")

        assert response.status_code == 200
        assert response.json() == {"users": ["ann", "bo"]}

    def test_request_scoped_singleton(self):
        """Test that singletons are shared within a request and closed after it."""
        app, injector = build_app()
        closed_sessions.clear()

        with TestClient(app) as client:
            first = client.get("/session").json()
            second = client.get("/session").json()

        assert first["same"] is True
        assert second["same"] is True
        assert closed_sessions[0] == first["id"]
        assert len(closed_sessions) == 2
        assert injector.pre_destroy_objects == []

    def test_inject_dependencies_endpoint(self):
        """Test that inject_dependencies hides injected parameters from FastAPI."""
        app, _ = build_app()

        with TestClient(app) as client:
            response = client.get("/direct")

        assert response.status_code == 200
        assert response.json() == {"count": 2}
