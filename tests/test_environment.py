import pytest

from outpostdb.environment import (
    Configuration,
    InvalidEnvironmentError,
    resolve_environment,
)


@pytest.mark.parametrize("name", ["prod", "dev", "local", "test"])
def test_known_environment_is_returned(monkeypatch, name):
    monkeypatch.delenv("APP_ENVIRONMENT", raising=False)
    assert resolve_environment(name) == name


def test_variable_overrides_argument(monkeypatch):
    monkeypatch.setenv("APP_ENVIRONMENT", "dev")
    assert resolve_environment("test") == "dev"


def test_unknown_argument_raises(monkeypatch):
    monkeypatch.delenv("APP_ENVIRONMENT", raising=False)
    with pytest.raises(InvalidEnvironmentError) as info:
        resolve_environment("staging")
    assert info.value.environment == "staging"


def test_unknown_variable_raises_even_with_valid_argument(monkeypatch):
    monkeypatch.setenv("APP_ENVIRONMENT", "nowhere")
    with pytest.raises(InvalidEnvironmentError) as info:
        resolve_environment("test")
    assert info.value.environment == "nowhere"


def test_empty_variable_is_invalid(monkeypatch):
    monkeypatch.setenv("APP_ENVIRONMENT", "")
    with pytest.raises(InvalidEnvironmentError):
        resolve_environment("prod")


def test_invalid_environment_is_a_value_error(monkeypatch):
    monkeypatch.delenv("APP_ENVIRONMENT", raising=False)
    with pytest.raises(ValueError):
        resolve_environment("Prod")


def test_configuration_holds_fields():
    config = Configuration(url="postgres://localhost", database="outposts")
    assert config.url == "postgres://localhost"
    assert config.database == "outposts"
    assert config == Configuration("postgres://localhost", "outposts")