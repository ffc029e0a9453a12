import os
import time
from dataclasses import dataclass, field
from typing import Any

import httpx


TRANSIENT_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})


class CircuitOpenError(RuntimeError):
    def __init__(self, host: str, retry_at: float) -> None:
        super().__init__(f"Narrator host {host} is cooling down until {int(retry_at)}")
        self.host = host
        self.retry_at = retry_at


@dataclass(frozen=True)
class CircuitSettings:
    enabled: bool = True
    failure_threshold: int = 3
    cooldown_seconds: float = 120.0

    @classmethod
    def from_env(cls) -> "CircuitSettings":
        enabled = os.getenv("TAVERN_HTTP_CIRCUIT_BREAKER_ENABLED", "1").strip().lower() in {"1", "true", "yes"}
        return cls(
            enabled=enabled,
            failure_threshold=max(1, int(os.getenv("TAVERN_HTTP_CIRCUIT_FAILURE_THRESHOLD", "3"))),
            cooldown_seconds=max(0.0, float(os.getenv("TAVERN_HTTP_CIRCUIT_RESET_SECONDS", "120"))),
        )


@dataclass
class HostCircuitBreaker:
    """Counts consecutive transient failures per host and refuses calls while a host cools down.

    After the cooldown the next call is let through; its outcome closes or
    reopens the circuit.
    """

    settings: CircuitSettings = field(default_factory=CircuitSettings)
    clock: Any = time.time
    _failures: dict[str, int] = field(default_factory=dict)
    _open_until: dict[str, float] = field(default_factory=dict)

    def is_open(self, host: str) -> bool:
        return self._open_until.get(host, 0.0) > self.clock()

    def guard(self, host: str) -> None:
        if not self.settings.enabled:
            return
        retry_at = self._open_until.get(host)
        if retry_at is None:
            return
        if retry_at > self.clock():
            raise CircuitOpenError(host, retry_at)
        del self._open_until[host]
        self._failures[host] = self.settings.failure_threshold - 1

    def succeeded(self, host: str) -> None:
        self._failures.pop(host, None)
        self._open_until.pop(host, None)

    def failed(self, host: str) -> None:
        if not self.settings.enabled:
            return
        count = self._failures.get(host, 0) + 1
        self._failures[host] = count
        if count >= self.settings.failure_threshold:
            self._open_until[host] = self.clock() + self.settings.cooldown_seconds

    def reset(self) -> None:
        self._failures.clear()
        self._open_until.clear()


_breaker = HostCircuitBreaker()


def circuit_is_open(host: str) -> bool:
    return _breaker.is_open(host)


def reset_circuit_breakers() -> None:
    _breaker.reset()


def host_of(client: httpx.Client, url: str) -> str:
    try:
        host = httpx.URL(url).host
    except httpx.InvalidURL:
        host = ""
    return host or str(getattr(client, "base_url", "") or "unknown")


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in TRANSIENT_STATUS_CODES
    return isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError))


def _decode_object(response: httpx.Response, host: str) -> dict[str, Any]:
    if response.status_code in TRANSIENT_STATUS_CODES:
        raise httpx.HTTPStatusError(
            f"{host} answered {response.status_code}",
            request=response.request,
            response=response,
        )
    response.raise_for_status()
    payload = response.json()
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object from {host}")
    return payload


def post_json_with_retry(
    client: httpx.Client,
    url: str,
    *,
    json_body: dict[str, Any],
    headers: dict[str, str] | None = None,
    retries: int = 0,
    backoff_seconds: float = 0.2,
) -> dict[str, Any]:
    """POST ``json_body`` and return the decoded JSON object.

    Transient failures (timeouts, network errors, 408/425/429/5xx) are retried
    with exponential backoff and counted against the host's circuit; other
    errors are raised immediately.
    """
    host = host_of(client, url)
    _breaker.settings = CircuitSettings.from_env()
    attempt = 0
    while True:
        _breaker.guard(host)
        try:
            payload = _decode_object(client.post(url, json=json_body, headers=headers), host)
        except Exception as exc:
            if not _is_transient(exc):
                raise
            _breaker.failed(host)
            if attempt >= max(0, int(retries)):
                raise
            delay = max(0.0, backoff_seconds) * (2**attempt)
            if delay:
                time.sleep(delay)
            attempt += 1
            continue
        _breaker.succeeded(host)
        return payload
