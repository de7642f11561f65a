# lead_service/adapters/clients/http_resilience.py
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any

import httpx

from ...config import settings


@dataclass
class _CircuitState:
    fails: int = 0
    opened_at: float | None = None


# one breaker per collaborator base URL
_CIRCUITS: dict[str, _CircuitState] = {}

_RETRYABLE_STATUS = (429, 500, 502, 503, 504)


def _circuit(base_url: str) -> _CircuitState:
    return _CIRCUITS.setdefault(base_url, _CircuitState())


def _circuit_is_open(state: _CircuitState, now: float) -> bool:
    if state.opened_at is None:
        return False
    return (now - state.opened_at) < float(settings.HTTP_CIRCUIT_RESET_S)


def _circuit_on_success(state: _CircuitState) -> None:
    state.fails = 0
    state.opened_at = None


def _circuit_on_failure(state: _CircuitState) -> None:
    state.fails += 1
    if state.fails >= int(settings.HTTP_CIRCUIT_FAIL_THRESHOLD):
        state.opened_at = time.time()


def reset_circuits() -> None:
    _CIRCUITS.clear()


async def service_request(
    method: str,
    base_url: str,
    path: str,
    *,
    api_key: str | None = None,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    json: Any | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    max_retries: int | None = None,
) -> Any:
    """
    JSON call to an internal collaborator service.

    Retries transport errors and 429/5xx with exponential backoff, then raises
    the last httpx error. Non-retryable 4xx raise immediately. A body that is
    not JSON raises httpx.DecodingError.
    """
    base = base_url.rstrip("/")
    url = f"{base}/{path.lstrip('/')}"

    circuit = _circuit(base)
    if _circuit_is_open(circuit, time.time()):
        raise httpx.ConnectError(f"circuit_open: refusing call to {url}")

    hdrs = {"Content-Type": "application/json", "Accept": "application/json"}
    if api_key:
        hdrs["X-API-Key"] = api_key
    if headers:
        hdrs.update(headers)

    timeout = httpx.Timeout(float(settings.HTTP_TIMEOUT_S))
    retries = int(settings.HTTP_MAX_RETRIES if max_retries is None else max_retries)
    backoff = float(settings.HTTP_BACKOFF_BASE_S)

    last_exc: Exception | None = None
    for attempt in range(retries + 1):
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
                resp = await client.request(method, url, headers=hdrs, params=params, json=json)

            if resp.status_code in _RETRYABLE_STATUS:
                raise httpx.HTTPStatusError("retryable_status", request=resp.request, response=resp)

            resp.raise_for_status()
            _circuit_on_success(circuit)
            try:
                return resp.json()
            except ValueError as e:
                # e.g. an HTML error page from a proxy in front of the service
                raise httpx.DecodingError(f"invalid_json from {url}: {e}", request=resp.request) from e
        except httpx.HTTPStatusError as e:
            if e.response.status_code not in _RETRYABLE_STATUS:
                raise
            last_exc = e
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            last_exc = e

        _circuit_on_failure(circuit)
        if attempt >= retries:
            break
        await asyncio.sleep(min(5.0, backoff * (2**attempt)))

    assert last_exc is not None
    raise last_exc
