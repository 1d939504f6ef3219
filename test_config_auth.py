#!/usr/bin/env python3
"""Tests for configuration loading, token providers and telemetry back-ends."""

import json
import os
import sys
import tempfile
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from appsource.auth import MsalAuthProvider, StaticTokenProvider, build_auth_provider
from appsource.config import (
    INGESTION_API_BASE_URL,
    AppConfig,
    AuthConfig,
    expand_env_vars,
    load_env_file,
    unresolved_variables,
)
from appsource.errors import AuthenticationError
from appsource.models import AuthContext
from appsource.telemetry import (
    LoggingTelemetry,
    OpenTelemetryTelemetry,
    build_telemetry,
)


class _FakeMsalApp:
    def __init__(self, result):
        self.result = result
        self.requests = 0

    def acquire_token_for_client(self, scopes):
        self.requests += 1
        return self.result


def _msal_provider(result):
    provider = MsalAuthProvider.__new__(MsalAuthProvider)
    provider._tenant_id = "tenant"
    provider._client_id = "client"
    provider._client_secret = "secret"
    provider._scopes = ["https://api.partner.microsoft.com/.default"]
    provider._refresh_buffer = 300
    provider._msal_app = _FakeMsalApp(result)
    return provider


def test_from_dict_defaults():
    config = AppConfig.from_dict({})

    assert config.api.base_url == INGESTION_API_BASE_URL
    assert config.api.max_pages is None
    assert config.executor.type == "docker"
    assert config.auth.type == "msal"
    assert config.telemetry == "logging"


def test_from_json_expands_environment():
    data = {
        "api": {"timeout": 5, "max_pages": 10},
        "executor": {"type": "mock", "params": {"outputs": {}}},
        "auth": {"type": "static", "params": {"access_token": "${APPSOURCE_TEST_TOKEN}"}},
        "telemetry": "opentelemetry",
    }
    with tempfile.TemporaryDirectory() as tmp, patch.dict(os.environ, {"APPSOURCE_TEST_TOKEN": "from-env"}):
        path = Path(tmp) / "config.json"
        path.write_text(json.dumps(data))
        config = AppConfig.from_json(path)

    assert "APPSOURCE_TEST_TOKEN" not in os.environ
    assert config.api.timeout == 5
    assert config.api.max_pages == 10
    assert config.executor.type == "mock"
    assert config.auth.params["access_token"] == "from-env"
    assert config.telemetry == "opentelemetry"


def test_expand_env_vars_leaves_unknown_variables():
    environ = {"HOST": "bcserver"}
    expanded = expand_env_vars({"a": ["$HOST", "${MISSING}", "pa$$word"], "b": 3}, environ)

    assert expanded == {"a": ["bcserver", "${MISSING}", "pa$word"], "b": 3}
    assert unresolved_variables(expanded["a"][1]) == ["MISSING"]
    assert unresolved_variables("se$cret") == []


def test_load_env_file_keeps_existing_values():
    environ = {"KEEP": "original"}
    with tempfile.TemporaryDirectory() as tmp:
        env_file = Path(tmp) / ".env"
        env_file.write_text(
            "# comment\nKEEP=changed\nNEW = added\nexport QUOTED=\"a b\"\nnot a pair\n"
        )
        applied = load_env_file(env_file, environ)
        overridden = load_env_file(env_file, environ, override=True)

    assert applied == {"NEW": "added", "QUOTED": "a b"}
    assert overridden["KEEP"] == "changed"
    assert environ == {"KEEP": "changed", "NEW": "added", "QUOTED": "a b"}


def test_load_env_file_missing_file():
    environ = {}
    assert load_env_file(Path("/nonexistent/.env"), environ) == {}
    assert environ == {}


def test_static_provider_and_registry():
    provider = build_auth_provider(AuthConfig(type="static", params={"access_token": "abc"}))
    assert isinstance(provider, StaticTokenProvider)
    assert provider.renew().access_token == "abc"

    with pytest.raises(ValueError):
        build_auth_provider(AuthConfig(type="kerberos"))
    with pytest.raises(ValueError):
        build_auth_provider(AuthConfig(type="msal", params={"tenant_id": "t"}))


def test_msal_provider_keeps_valid_context():
    provider = _msal_provider({"access_token": "new", "expires_in": 3600})
    current = AuthContext(access_token="current", expires_at=time.time() + 3600)

    assert provider.renew(current) is current
    assert provider._msal_app.requests == 0


def test_msal_provider_renews_expiring_context():
    provider = _msal_provider({"access_token": "new", "expires_in": 3600})
    expiring = AuthContext(access_token="old", expires_at=time.time() + 60)

    renewed = provider.renew(expiring)

    assert renewed.access_token == "new"
    assert renewed.expires_at > time.time() + 3000
    assert provider._msal_app.requests == 1


def test_msal_provider_renews_context_without_expiry():
    provider = _msal_provider({"access_token": "fresh", "expires_in": 3600})
    unknown = AuthContext(access_token="stale-no-expiry")

    renewed = provider.renew(unknown)

    assert unknown.expires_within(300)
    assert renewed.access_token == "fresh"
    assert provider._msal_app.requests == 1


def test_msal_rejects_unset_placeholders():
    params = {
        "tenant_id": "${AZURE_TENANT_ID}",
        "client_id": "client",
        "client_secret": "se$cret",
    }
    with pytest.raises(ValueError) as excinfo:
        build_auth_provider(AuthConfig(type="msal", params=params))
    assert "AZURE_TENANT_ID" in str(excinfo.value)


def test_msal_provider_failure():
    provider = _msal_provider({"error": "invalid_client", "error_description": "bad secret"})

    with pytest.raises(AuthenticationError) as excinfo:
        provider.renew(None)
    assert "bad secret" in str(excinfo.value)


def test_logging_telemetry_scope():
    telemetry = LoggingTelemetry()
    with telemetry.scope("ingestion_api.get", {"path": "/products"}) as scope:
        scope.track_trace("done")
        scope.track_exception(RuntimeError("boom"))
    assert scope.parameters == {"path": "/products"}


def test_opentelemetry_scope_without_sdk():
    telemetry = build_telemetry("opentelemetry")
    assert isinstance(telemetry, OpenTelemetryTelemetry)
    with telemetry.scope("ingestion_api.get", {"path": "/products", "ignored": None}) as scope:
        scope.track_exception(RuntimeError("boom"))

    with pytest.raises(ValueError):
        build_telemetry("statsd")


def main():
    """Run all tests."""
    print("=" * 60)
    print("Configuration and Auth Test Suite")
    print("=" * 60)
    print()

    tests = [
        ("Config Defaults", test_from_dict_defaults),
        ("Config From JSON", test_from_json_expands_environment),
        ("Env Expansion", test_expand_env_vars_leaves_unknown_variables),
        ("Env File", test_load_env_file_keeps_existing_values),
        ("Missing Env File", test_load_env_file_missing_file),
        ("Static Provider", test_static_provider_and_registry),
        ("MSAL Valid Token", test_msal_provider_keeps_valid_context),
        ("MSAL Renewal", test_msal_provider_renews_expiring_context),
        ("MSAL Unknown Expiry", test_msal_provider_renews_context_without_expiry),
        ("Unset Placeholders", test_msal_rejects_unset_placeholders),
        ("MSAL Failure", test_msal_provider_failure),
        ("Logging Telemetry", test_logging_telemetry_scope),
        ("OpenTelemetry", test_opentelemetry_scope_without_sdk),
    ]

    passed = 0
    failed = 0

    for test_name, test_func in tests:
        try:
            test_func()
            passed += 1
        except AssertionError as e:
            print(f"✗ {test_name} FAILED: {e}")
            failed += 1
        except Exception as e:
            print(f"✗ {test_name} ERROR: {e}")
            failed += 1

    print("=" * 60)
    print(f"Results: {passed}/{len(tests)} tests passed")
    if failed > 0:
        print(f"         {failed} tests failed")
        sys.exit(1)
    else:
        print("✓ All tests passed!")
        sys.exit(0)


if __name__ == '__main__':
    main()
