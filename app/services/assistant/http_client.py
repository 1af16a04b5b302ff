"""Thin synchronous HTTP client used by the connector."""

from __future__ import annotations

import logging
from typing import NamedTuple

import requests

from app.core.errors import TransportFailure


class HttpResponse(NamedTuple):
    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class HttpClient:
    """Sends requests and returns the raw status code and body text.

    Non-2xx statuses are returned to the caller; only network-level problems
    raise, as :class:`TransportFailure`.
    """

    def __init__(self, logger: logging.Logger, timeout: float = 30.0, session: requests.Session | None = None) -> None:
        self.logger = logger
        self.timeout = timeout
        self._session = session or requests.Session()

    def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: str | None = None,
    ) -> HttpResponse:
        self.logger.debug("%s %s", method, url)
        try:
            response = self._session.request(
                method,
                url,
                headers=headers or {},
                data=body.encode("utf-8") if body is not None else None,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            self.logger.error("%s %s failed: %s", method, url, exc)
            raise TransportFailure(str(exc)) from exc
        self.logger.debug("%s %s -> %d", method, url, response.status_code)
        return HttpResponse(response.status_code, response.text)
