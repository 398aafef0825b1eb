"""HTTP plumbing: endpoint parsing, responses and a urllib-based transport."""

from __future__ import annotations

import re
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from slslog.errors import ClientError

HTTP_SCHEME = "http://"
HTTPS_SCHEME = "https://"
DEFAULT_REQUEST_TIMEOUT = 60.0

_IP_PATTERN = re.compile(r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}.*")


def is_ip_host(host: str) -> bool:
    """Whether ``host`` contains a dotted IPv4 address."""
    return _IP_PATTERN.search(host) is not None


def parse_endpoint(
    endpoint: str, project_name: str = "", force_http: bool = False
) -> tuple[str, str | None]:
    """Split an endpoint into the project's base URL and an optional proxy URL.

    The scheme defaults to http; an ``https://`` prefix selects https unless
    ``force_http`` is set. When the host is an IP address, requests are sent
    through it as a proxy and the second item is its URL, otherwise ``None``.
    """
    scheme = HTTP_SCHEME
    host = endpoint
    if endpoint.startswith(HTTP_SCHEME):
        host = endpoint[len(HTTP_SCHEME):]
    elif endpoint.startswith(HTTPS_SCHEME):
        scheme = HTTPS_SCHEME
        host = endpoint[len(HTTPS_SCHEME):]

    if force_http:
        scheme = HTTP_SCHEME

    proxy_url = f"{scheme}{host}" if is_ip_host(host) else None
    if project_name:
        base_url = f"{scheme}{project_name}.{host}"
    else:
        base_url = f"{scheme}{host}"
    return base_url, proxy_url


@dataclass
class HttpResponse:
    """A received response: status, headers and the whole body."""

    status_code: int
    headers: Mapping[str, Any] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str) -> str | None:
        """First value of the named header, matched without regard to case."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() != wanted:
                continue
            if isinstance(value, (list, tuple)):
                return value[0] if value else None
            return value
        return None


def _collect_headers(message: Any) -> dict[str, list[str]]:
    headers: dict[str, list[str]] = {}
    if message is None:
        return headers
    for key, value in message.items():
        headers.setdefault(key, []).append(value)
    return headers


class UrllibTransport:
    """Sends requests with :mod:`urllib`, optionally through a proxy.

    Responses with an error status are returned, not raised; failures to
    reach the server raise :class:`ClientError`.
    """

    def __init__(
        self, timeout: float = DEFAULT_REQUEST_TIMEOUT, proxy: str | None = None
    ) -> None:
        self.timeout = timeout
        self.proxy = proxy

    def _opener(self) -> urllib.request.OpenerDirector:
        if self.proxy:
            handler = urllib.request.ProxyHandler({"http": self.proxy, "https": self.proxy})
        else:
            handler = urllib.request.ProxyHandler({})
        return urllib.request.build_opener(handler)

    def __call__(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> HttpResponse:
        request = urllib.request.Request(
            url, data=body, headers=dict(headers or {}), method=method
        )
        try:
            with self._opener().open(request, timeout=self.timeout) as response:
                return HttpResponse(
                    status_code=response.status,
                    headers=_collect_headers(response.headers),
                    body=response.read(),
                )
        except urllib.error.HTTPError as exc:
            with exc:
                data = exc.read()
            return HttpResponse(
                status_code=exc.code,
                headers=_collect_headers(exc.headers),
                body=data,
            )
        except (OSError, ValueError) as exc:
            raise ClientError(exc) from exc