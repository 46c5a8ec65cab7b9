from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any

import requests

from ..config import REQUEST


@dataclass(frozen=True)
class HTTPResult:
    """
    Outcome of one upstream request.

    `status` is None when no response arrived at all (connection refused, timeout). Error
    responses keep their decoded body in `data`, so structured error payloads can be read.
    """

    status: int | None
    data: Any = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error and self.status is not None and 200 <= self.status < 300

    @property
    def rate_limited(self) -> bool:
        return self.status == 429


def _decode(r: requests.Response) -> tuple[Any, str]:
    try:
        return r.json(), ""
    except ValueError as e:
        return None, str(e)


@dataclass
class HTTPJSONClient:
    """
    One JSON request per call: timeout, stats counters and `[NETWORK]`/`[HTTP]`/`[DECODE]` logs.

    Nothing raises and nothing is retried; callers map the `HTTPResult` onto their error codes.
    Counters land in the shared `stats` dict under the caller's `counter_key` (plus `_ms`).
    """

    session: requests.Session
    stats: dict[str, Any] | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def _bump(self, key: str, n: int = 1) -> None:
        if self.stats is None:
            return
        with self._lock:
            self.stats[key] = int(self.stats.get(key, 0) or 0) + n

    def request_json(
        self,
        method: str,
        url: str,
        *,
        counter_key: str,
        context: str,
        timeout_s: float = REQUEST.timeout_s,
        **kwargs: Any,
    ) -> HTTPResult:
        send = self.session.post if method == "POST" else self.session.get
        # Only forward what the caller set.
        kwargs = {k: v for k, v in kwargs.items() if v is not None}

        self._bump(counter_key)
        started = time.perf_counter()
        try:
            r = send(url, timeout=timeout_s, **kwargs)
        except requests.exceptions.RequestException as e:
            self._bump("network_failures")
            logging.error(f"[NETWORK] {context}: {type(e).__name__}: {e}")
            return HTTPResult(status=None, error=f"{type(e).__name__}: {e}")
        finally:
            self._bump(f"{counter_key}_ms", int(round((time.perf_counter() - started) * 1000.0)))

        status = int(r.status_code)
        data, decode_error = _decode(r)
        if status >= 400:
            self._bump("http_failures")
            if status == 429:
                self._bump("http_429")
            logging.error(f"[HTTP] {context}: status {status}")
            return HTTPResult(status=status, data=data, error=f"HTTP {status}")
        if decode_error:
            self._bump("decode_failures")
            logging.error(f"[DECODE] {context}: response is not JSON ({decode_error})")
            return HTTPResult(status=status, error="invalid JSON body")
        return HTTPResult(status=status, data=data)

    def get_json(self, url: str, *, counter_key: str = "http_get", context: str, **kwargs: Any) -> HTTPResult:
        """GET; accepts `params`, `headers` and `timeout_s`."""
        return self.request_json("GET", url, counter_key=counter_key, context=context, **kwargs)

    def post_json(
        self,
        url: str,
        *,
        json_body: Any | None = None,
        counter_key: str = "http_post",
        context: str,
        **kwargs: Any,
    ) -> HTTPResult:
        """POST; `json_body` is sent as JSON, `data` as a form or raw text body."""
        return self.request_json("POST", url, counter_key=counter_key, context=context, json=json_body, **kwargs)


@dataclass
class HTTPRequestDefaults:
    timeout_s: float = REQUEST.timeout_s
    headers: dict[str, str] | None = None
    counter_key: str = "http_get"
    context_prefix: str | None = None


@dataclass
class ConfiguredHTTPJSONClient:
    """
    HTTPJSONClient bound to one upstream: default counter key, timeout, headers and log prefix.
    """

    http: HTTPJSONClient
    defaults: HTTPRequestDefaults

    def _call(self, method: str, url: str, counter_key: str | None, context: str, kwargs: dict[str, Any]) -> HTTPResult:
        prefix = self.defaults.context_prefix
        if prefix:
            context = f"{prefix}: {context}" if context else prefix
        if kwargs.get("headers") is None:
            kwargs["headers"] = self.defaults.headers
        return self.http.request_json(
            method,
            url,
            counter_key=counter_key or self.defaults.counter_key,
            context=context,
            timeout_s=self.defaults.timeout_s,
            **kwargs,
        )

    def get_json(self, url: str, *, counter_key: str | None = None, context: str = "", **kwargs: Any) -> HTTPResult:
        return self._call("GET", url, counter_key, context, kwargs)

    def post_json(
        self,
        url: str,
        *,
        json_body: Any | None = None,
        counter_key: str | None = None,
        context: str = "",
        **kwargs: Any,
    ) -> HTTPResult:
        kwargs["json"] = json_body
        return self._call("POST", url, counter_key, context, kwargs)
