"""
Global pytest fixtures for the frp multiuser auth plugin test suite.

Responsibilities:
    - Provide a credential file on disk seeded with two users
    - Provide a Config pointing at it and a store loaded from it
    - Provide a fresh FastAPI TestClient via the app factory

Why an app factory?
    `create_app()` builds a new store per call, so tests never share
    credential state.
"""

import time

import pytest
from fastapi.testclient import TestClient

from main import create_app
from frp_multiuser.config import Config
from frp_multiuser.credentials.loader import load_credentials
from frp_multiuser.credentials.store import CredentialStore

SEED_CREDENTIALS = "alice = secret\nbob=pw\n"


def login_payload(user=None, password=None, **content):
    """Build an frp Login plugin request body."""
    if user is not None:
        content["user"] = user
    if password is not None:
        content["metas"] = {"password": password}
    return {"version": "0.1.0", "op": "Login", "content": content}


def wait_for(predicate, timeout: float = 5.0, interval: float = 0.05) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def auth_file(tmp_path):
    path = tmp_path / "tokens"
    path.write_text(SEED_CREDENTIALS, encoding="utf-8")
    return path


@pytest.fixture
def config(auth_file) -> Config:
    return Config(bind_address="127.0.0.1:7003", auth_file=str(auth_file))


@pytest.fixture
def store(auth_file) -> CredentialStore:
    return CredentialStore(load_credentials(str(auth_file)))


@pytest.fixture
def client(config) -> TestClient:
    """Fresh TestClient over a new app instance (no live reload)."""
    return TestClient(create_app(config))


@pytest.fixture
def make_login():
    """Builder for frp Login plugin request bodies."""
    return login_payload


@pytest.fixture(name="wait_for")
def wait_for_fixture():
    """Polling helper for assertions on background reloads."""
    return wait_for
