import logging
import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

import httpx

from servicemarket.models import ProbeResult

logger = logging.getLogger(__name__)

PROBE_TABLE = "User"
DEFAULT_PROBE_TIMEOUT_SECONDS = 10.0

MISSING_TABLE_PATTERNS = (
    re.compile(r'relation "(?:public\.)?User" does not exist'),
    re.compile(r"Could not find the table"),
)


class ProbeConfigError(RuntimeError):
    """Raised when the probe cannot find its endpoint or key."""


@dataclass(frozen=True)
class ProbeConfig:
    url: str
    key: str
    timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS


def _first_env(env: Mapping[str, str], *names: str) -> str:
    for name in names:
        value = env.get(name, "").strip()
        if value:
            return value
    return ""


def _parse_timeout(raw: str) -> float:
    if not raw.strip():
        return DEFAULT_PROBE_TIMEOUT_SECONDS
    try:
        timeout = float(raw)
    except ValueError:
        raise ProbeConfigError(f"SUPABASE_PROBE_TIMEOUT must be a number of seconds, got {raw!r}") from None
    if not 0 < timeout < float("inf"):
        raise ProbeConfigError(f"SUPABASE_PROBE_TIMEOUT must be greater than 0, got {raw!r}")
    return timeout


def load_probe_config(env: Optional[Mapping[str, str]] = None) -> ProbeConfig:
    env = os.environ if env is None else env
    url = _first_env(env, "SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
    key = _first_env(env, "SUPABASE_ANON_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY")
    if not url or not key:
        raise ProbeConfigError(
            "Make sure SUPABASE_URL and SUPABASE_ANON_KEY are set in your environment."
        )
    return ProbeConfig(url=url.rstrip("/"), key=key, timeout=_parse_timeout(env.get("SUPABASE_PROBE_TIMEOUT", "")))


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or payload)
    return str(payload)


def is_missing_table_error(message: str) -> bool:
    return any(pattern.search(message) for pattern in MISSING_TABLE_PATTERNS)


def check_connection(config: ProbeConfig, client: Optional[httpx.Client] = None) -> ProbeResult:
    """Run one bounded read against the probe table and classify the outcome.

    Transport errors and malformed success payloads are not classified; they
    propagate to the caller.
    """
    headers = {"apikey": config.key, "Authorization": f"Bearer {config.key}"}
    params = {"select": "id", "limit": "1"}
    url = f"{config.url}/rest/v1/{PROBE_TABLE}"

    owns_client = client is None
    http = client or httpx.Client(timeout=config.timeout)
    try:
        response = http.get(url, headers=headers, params=params)
    finally:
        if owns_client:
            http.close()

    if response.is_success:
        rows = response.json()
        if not isinstance(rows, list):
            raise ValueError(f"Unexpected probe payload: {rows!r}")
        return ProbeResult(outcome="rows_returned", status_code=response.status_code, rows=rows)

    message = _error_message(response)
    if is_missing_table_error(message):
        return ProbeResult(outcome="table_missing", status_code=response.status_code, message=message)
    return ProbeResult(outcome="query_failed", status_code=response.status_code, message=message)


def report_probe_result(result: ProbeResult) -> int:
    if result.outcome == "table_missing":
        logger.info("SUCCESS: Connected to the database successfully!")
        logger.info(
            'The "%s" table does not exist yet, which is expected because the migration has not run.',
            PROBE_TABLE,
        )
        logger.info("This confirms your connection is working correctly.")
        return 0
    if result.outcome == "query_failed":
        logger.error(
            "FAILURE: An error occurred while querying the database (status %s): %s",
            result.status_code,
            result.message,
        )
        return 1
    logger.info("SUCCESS: Connected to the database and ran a query.")
    logger.info("This is unexpected, as the migration should not have run yet. Data: %s", result.rows)
    return 0


def run_probe(env: Optional[Mapping[str, str]] = None, client: Optional[httpx.Client] = None) -> int:
    try:
        config = load_probe_config(env)
    except ProbeConfigError as exc:
        logger.error("Error: %s", exc)
        return 1

    logger.info("Attempting to connect to Supabase and run a simple query...")
    try:
        result = check_connection(config, client=client)
    except Exception:
        logger.exception("FAILURE: A critical error occurred")
        return 1
    return report_probe_result(result)
