import itertools

import pytest
from pydantic import ValidationError

from pyment.config import Configuration, get_env_or, load

DEFAULTS = {"APP_ENV": "development", "ENDPOINT": "http://0.0.0.0", "PORT": "8080"}
VALUES = {"APP_ENV": "staging", "ENDPOINT": "http://test-api", "PORT": "8765"}

# Each variable independently unset, empty, or set.
COMBINATIONS = list(itertools.product(["unset", "empty", "set"], repeat=3))


def test_get_env_or_existing(monkeypatch):
    monkeypatch.setenv("TEST_KEY", "test_value")
    assert get_env_or("TEST_KEY", "default_value") == "test_value"


def test_get_env_or_missing(monkeypatch):
    monkeypatch.delenv("NON_EXISTING_KEY", raising=False)
    assert get_env_or("NON_EXISTING_KEY", "default_value") == "default_value"


def test_get_env_or_empty(monkeypatch):
    monkeypatch.setenv("EMPTY_KEY", "")
    assert get_env_or("EMPTY_KEY", "default_value") == "default_value"


def test_get_env_or_explicit_mapping():
    assert get_env_or("KEY", "d", {"KEY": "v"}) == "v"
    assert get_env_or("KEY", "d", {}) == "d"


@pytest.mark.parametrize("modes", COMBINATIONS, ids=lambda m: "-".join(m))
def test_load_combinations(clean_env, modes):
    expected = {}
    for key, mode in zip(("APP_ENV", "ENDPOINT", "PORT"), modes):
        if mode == "set":
            clean_env.setenv(key, VALUES[key])
            expected[key] = VALUES[key]
        else:
            if mode == "empty":
                clean_env.setenv(key, "")
            expected[key] = DEFAULTS[key]

    config = load()

    assert config.environment == expected["APP_ENV"]
    assert config.endpoint == expected["ENDPOINT"]
    assert config.port == expected["PORT"]


def test_load_defaults_are_non_empty(clean_env):
    config = load()
    assert config.environment and config.endpoint and config.port


def test_load_does_not_validate_port():
    assert load({"PORT": "not-a-number"}).port == "not-a-number"


def test_address_is_plain_join():
    config = Configuration(endpoint="http://test-api", port="8765")
    assert config.address == "http://test-api:8765"


def test_configuration_is_frozen(config):
    with pytest.raises(ValidationError):
        config.port = "9999"
