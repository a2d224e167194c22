from __future__ import annotations

import pytest
from fastapi import FastAPI

import app as app_package
import logbook
from app import main
from app.main import acting_user_id, get_executor, get_resolver


def test_package_aliases_share_one_application() -> None:
    assert logbook.app is main.app
    assert app_package.create_app is main.create_app


def test_created_app_registers_service_routes() -> None:
    paths = {route.path for route in main.create_app().routes}

    assert {"/healthz", "/api/metadata", "/api/execute-actions", "/api/validate-actions"} <= paths


def test_state_getters_require_initialised_services() -> None:
    bare = FastAPI()

    with pytest.raises(RuntimeError, match="Metadata resolver not initialised"):
        get_resolver(bare)
    with pytest.raises(RuntimeError, match="Action executor not initialised"):
        get_executor(bare)


def test_unknown_package_attribute() -> None:
    with pytest.raises(AttributeError):
        app_package.does_not_exist  # noqa: B018


def test_acting_user_is_read_from_header() -> None:
    class FakeRequest:
        headers = {"x-user-id": "  user-7 "}

    assert acting_user_id(FakeRequest()) == "user-7"
