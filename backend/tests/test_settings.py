from __future__ import annotations

import pytest

from docmeta.settings import Settings
from docmeta.storage import build_store
from docmeta.storage.memory_store import InMemoryDocumentStore


def _settings(**env) -> Settings:
    base = {
        "APP_ENV": "development",
        "STORAGE_BACKEND": "memory",
        "DDB_TABLE_NAME": None,
        "APP_ENVIRONMENT_PREFIX": None,
        "DDB_TABLE_BASE_NAME": "DocumentMetadata",
    }
    base.update(env)
    return Settings(**base)


def test_table_name_defaults_to_base_name():
    assert _settings().table_name == "DocumentMetadata"


def test_table_name_uses_environment_prefix():
    assert _settings(APP_ENVIRONMENT_PREFIX="staging").table_name == "staging-DocumentMetadata"


def test_explicit_table_name_wins():
    s = _settings(APP_ENVIRONMENT_PREFIX="staging", DDB_TABLE_NAME="docs-override")
    assert s.table_name == "docs-override"


@pytest.mark.parametrize("raw,expected", [("prod", "production"), ("Stage", "staging"), ("", "development")])
def test_environment_is_normalized(raw, expected):
    assert _settings(APP_ENV=raw).normalized_environment == expected


def test_production_requires_dynamodb_and_named_table():
    with pytest.raises(RuntimeError) as ei:
        _settings(APP_ENV="production").require_in_production()
    assert "STORAGE_BACKEND=dynamodb" in str(ei.value)
    assert "DDB_TABLE_NAME" in str(ei.value)

    ok = _settings(APP_ENV="production", STORAGE_BACKEND="dynamodb", APP_ENVIRONMENT_PREFIX="prod")
    ok.require_in_production()


def test_log_safe_dict_never_contains_secrets():
    s = _settings(AWS_DYNAMODB_ACCESS_KEY="AKIA-TEST", AWS_DYNAMODB_SECRET_KEY="shh")
    flat = repr(s.to_log_safe_dict())
    assert "AKIA-TEST" not in flat
    assert "shh" not in flat
    assert s.to_log_safe_dict()["aws"]["static_credentials_configured"] is True


def test_build_store_selects_backend():
    assert isinstance(build_store(_settings()), InMemoryDocumentStore)
    with pytest.raises(ValueError):
        build_store(_settings(STORAGE_BACKEND="cassandra"))


def test_fanout_workers_must_be_positive():
    with pytest.raises(ValueError):
        _settings(FANOUT_MAX_WORKERS=0)
