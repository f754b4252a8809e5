import socket

import pytest

from pyment.config import Configuration


@pytest.fixture
def free_port() -> str:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return str(sock.getsockname()[1])


@pytest.fixture
def config() -> Configuration:
    return Configuration(environment="test_env", endpoint="test_endpoint", port="1234")


@pytest.fixture
def clean_env(monkeypatch):
    for key in ("APP_ENV", "ENDPOINT", "PORT"):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch
