"""Tests for ClientConfig loading."""
import pytest
from pydantic import ValidationError

from es_rest_client.config import ClientConfig, normalize_base_url

ENV_VARS = [
    "ELASTICSEARCH_URL",
    "ELASTICSEARCH_TIMEOUT",
    "ELASTICSEARCH_MAX_BODY_SIZE",
    "ELASTICSEARCH_USERNAME",
    "ELASTICSEARCH_PASSWORD",
    "ELASTICSEARCH_VERIFY_CERTS",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def missing_env_file(tmp_path):
    return str(tmp_path / ".env")


def test_normalize_base_url():
    assert normalize_base_url("localhost:9200") == "http://localhost:9200"
    assert normalize_base_url("https://es.example.com/") == "https://es.example.com"
    assert normalize_base_url(" http://es:9200// ") == "http://es:9200"


def test_defaults():
    config = ClientConfig()
    assert config.base_url == "http://localhost:9200"
    assert config.timeout == 30.0
    assert config.max_body_size == 15 * 1024 * 1024
    assert config.username is None
    assert config.verify_certs is True


def test_invalid_timeout_rejected():
    with pytest.raises(ValidationError):
        ClientConfig(timeout=0)


def test_from_env(clean_env, missing_env_file):
    clean_env.setenv("ELASTICSEARCH_URL", "elasticsearch:9200/")
    clean_env.setenv("ELASTICSEARCH_TIMEOUT", "2.5")
    clean_env.setenv("ELASTICSEARCH_MAX_BODY_SIZE", "1024")
    clean_env.setenv("ELASTICSEARCH_USERNAME", "elastic")
    clean_env.setenv("ELASTICSEARCH_PASSWORD", "changeme")
    clean_env.setenv("ELASTICSEARCH_VERIFY_CERTS", "false")
    config = ClientConfig.from_env(missing_env_file)
    assert config.base_url == "http://elasticsearch:9200"
    assert config.timeout == 2.5
    assert config.max_body_size == 1024
    assert (config.username, config.password) == ("elastic", "changeme")
    assert config.verify_certs is False


def test_from_env_without_variables(clean_env, missing_env_file):
    assert ClientConfig.from_env(missing_env_file) == ClientConfig()


def test_from_yaml(tmp_path):
    path = tmp_path / "client.yaml"
    path.write_text("base_url: https://es.example.com:9243/\ntimeout: 10\n", encoding="utf-8")
    config = ClientConfig.from_yaml(str(path))
    assert config.base_url == "https://es.example.com:9243"
    assert config.timeout == 10.0
