import importlib
import logging
import os
import sys

import httpx
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from servicemarket.services.db_probe import (
    ProbeConfig,
    ProbeConfigError,
    check_connection,
    is_missing_table_error,
    load_probe_config,
    run_probe,
)

ENV = {"SUPABASE_URL": "https://demo.supabase.co/", "SUPABASE_ANON_KEY": "anon-key"}
CONFIG = ProbeConfig(url="https://demo.supabase.co", key="anon-key")


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def _missing_table(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        404,
        json={
            "code": "PGRST205",
            "message": "Could not find the table 'public.User' in the schema cache",
        },
    )


def test_load_config_requires_url_and_key():
    with pytest.raises(ProbeConfigError):
        load_probe_config({})
    with pytest.raises(ProbeConfigError):
        load_probe_config({"SUPABASE_URL": "https://demo.supabase.co"})
    with pytest.raises(ProbeConfigError):
        load_probe_config({"SUPABASE_ANON_KEY": "anon-key", "SUPABASE_URL": "   "})


def test_load_config_strips_trailing_slash_and_accepts_public_names():
    assert load_probe_config(ENV) == CONFIG
    public_env = {
        "NEXT_PUBLIC_SUPABASE_URL": "https://demo.supabase.co",
        "NEXT_PUBLIC_SUPABASE_ANON_KEY": "anon-key",
    }
    assert load_probe_config(public_env) == CONFIG


def test_check_connection_sends_bounded_query_with_key_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["headers"] = request.headers
        return httpx.Response(200, json=[])

    result = check_connection(CONFIG, client=_client(handler))
    assert result.outcome == "rows_returned"
    assert seen["url"].path == "/rest/v1/User"
    assert seen["url"].params["select"] == "id"
    assert seen["url"].params["limit"] == "1"
    assert seen["headers"]["apikey"] == "anon-key"
    assert seen["headers"]["authorization"] == "Bearer anon-key"


def test_missing_table_is_classified_as_success():
    result = check_connection(CONFIG, client=_client(_missing_table))
    assert result.outcome == "table_missing"
    assert result.ok
    assert result.status_code == 404


@pytest.mark.parametrize(
    "message,expected",
    [
        ('relation "User" does not exist', True),
        ('relation "public.User" does not exist', True),
        ("Could not find the table 'public.User' in the schema cache", True),
        ('relation "Listing" does not exist', False),
        ("Invalid API key", False),
    ],
)
def test_is_missing_table_error(message, expected):
    assert is_missing_table_error(message) is expected


def test_run_probe_exits_zero_when_table_missing(caplog):
    caplog.set_level(logging.INFO)
    assert run_probe(env=ENV, client=_client(_missing_table)) == 0
    assert "SUCCESS: Connected to the database successfully!" in caplog.text


def test_run_probe_exits_one_on_invalid_key(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "Invalid API key", "hint": "Double check your key"})

    assert run_probe(env=ENV, client=_client(handler)) == 1
    assert "Invalid API key" in caplog.text


def test_run_probe_exits_zero_and_logs_rows_when_table_exists(caplog):
    caplog.set_level(logging.INFO)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"id": "usr_1"}])

    assert run_probe(env=ENV, client=_client(handler)) == 0
    assert "usr_1" in caplog.text


def test_run_probe_missing_config_makes_no_request():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=[])

    assert run_probe(env={}, client=_client(handler)) == 1
    assert calls == []


def test_run_probe_treats_transport_error_as_critical(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    assert run_probe(env=ENV, client=_client(handler)) == 1
    assert "critical error" in caplog.text


def test_run_probe_reads_process_environment(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    monkeypatch.delenv("NEXT_PUBLIC_SUPABASE_URL", raising=False)
    monkeypatch.delenv("NEXT_PUBLIC_SUPABASE_ANON_KEY", raising=False)
    assert run_probe() == 1


def test_load_config_reads_timeout():
    assert load_probe_config({**ENV, "SUPABASE_PROBE_TIMEOUT": "2.5"}).timeout == 2.5
    assert load_probe_config({**ENV, "SUPABASE_PROBE_TIMEOUT": " "}).timeout == 10.0


@pytest.mark.parametrize("raw", ["soon", "0", "-1", "nan"])
def test_load_config_rejects_bad_timeout(raw):
    with pytest.raises(ProbeConfigError):
        load_probe_config({**ENV, "SUPABASE_PROBE_TIMEOUT": raw})


def test_bad_timeout_env_is_a_config_error(caplog):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=[])

    assert run_probe(env={**ENV, "SUPABASE_PROBE_TIMEOUT": "soon"}, client=_client(handler)) == 1
    assert calls == []
    assert "SUPABASE_PROBE_TIMEOUT" in caplog.text


def test_module_imports_with_bad_timeout_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_PROBE_TIMEOUT", "soon")
    monkeypatch.delitem(sys.modules, "servicemarket.services.db_probe")
    db_probe = importlib.import_module("servicemarket.services.db_probe")
    assert db_probe.run_probe(env=dict(ENV, SUPABASE_PROBE_TIMEOUT="soon")) == 1
