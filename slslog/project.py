"""A log project: logstores, machine groups, logtail configs and service logging."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from slslog.config import LogConfig
from slslog.errors import BadResponseError, ClientError, LogError
from slslog.models import LOGGING_URI, Logging
from slslog.store import LogStore
from slslog.transport import (
    DEFAULT_REQUEST_TIMEOUT,
    HttpResponse,
    UrllibTransport,
    parse_endpoint,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_TIMEOUT = 90.0
DEFAULT_MACHINE_GROUP_PAGE_SIZE = 500
DEFAULT_CONFIG_PAGE_SIZE = 100

_OK = 200
_INITIAL_BACKOFF = 0.1
_MAX_BACKOFF = 5.0

Transport = Callable[[str, str, Mapping[str, str], "bytes | None"], HttpResponse]
Signer = Callable[["LogProject", str, str, dict, "bytes | None"], None]


def _dump(payload: Any) -> bytes:
    to_dict = getattr(payload, "to_dict", None)
    data = to_dict() if callable(to_dict) else payload
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _text(body: bytes | str | None) -> str:
    if body is None:
        return ""
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return body


def _json_object(response: HttpResponse) -> Mapping[str, Any]:
    text = _text(response.body)
    if not text.strip():
        return {}
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise BadResponseError(text, _flat_headers(response), response.status_code) from exc
    if not isinstance(data, Mapping):
        raise BadResponseError(text, _flat_headers(response), response.status_code)
    return data


def _flat_headers(response: HttpResponse) -> dict[str, str]:
    return {key: response.header(key) or "" for key in response.headers}


def _get(data: Mapping[str, Any], key: str, default: Any = None) -> Any:
    if key in data:
        return data[key]
    lowered = key.lower()
    for name, value in data.items():
        if isinstance(name, str) and name.lower() == lowered:
            return value
    return default


def _names(data: Mapping[str, Any], key: str) -> list[str]:
    value = _get(data, key)
    return list(value) if isinstance(value, list) else []


def _json_headers(body: bytes) -> dict[str, str]:
    return {
        "x-log-bodyrawsize": str(len(body)),
        "Content-Type": "application/json",
        "Accept-Encoding": "deflate",
    }


def _empty_headers() -> dict[str, str]:
    return {"x-log-bodyrawsize": "0"}


class LogProject:
    """A project on the log service and the operations on its resources.

    ``transport`` sends one HTTP request and returns an :class:`HttpResponse`;
    by default requests go through :class:`UrllibTransport`. ``signer``, if
    given, is called with the project and the outgoing request so it can add
    authentication headers in place.
    """

    def __init__(
        self,
        name: str,
        endpoint: str,
        access_key_id: str = "",
        access_key_secret: str = "",
        *,
        security_token: str = "",
        using_http: bool = False,
        user_agent: str = "",
        transport: Transport | None = None,
        signer: Signer | None = None,
    ) -> None:
        self.name = name
        self.endpoint = endpoint
        self.access_key_id = access_key_id
        self.access_key_secret = access_key_secret
        self.security_token = security_token
        self.using_http = using_http
        self.user_agent = user_agent
        self.signer = signer
        self.retry_timeout = DEFAULT_RETRY_TIMEOUT
        self.description = ""
        self.status = ""
        self.owner = ""
        self.region = ""
        self.create_time = ""
        self.last_modify_time = ""
        if transport is None:
            _, proxy = parse_endpoint(endpoint, name, using_http)
            transport = UrllibTransport(timeout=DEFAULT_REQUEST_TIMEOUT, proxy=proxy)
        self.transport = transport

    @property
    def base_url(self) -> str:
        """Scheme and host that every request of this project is sent to."""
        base_url, _ = parse_endpoint(self.endpoint, self.name, self.using_http)
        return base_url

    def with_token(self, token: str) -> LogProject:
        """Use a temporary security token."""
        self.security_token = token
        return self

    def with_request_timeout(self, timeout: float) -> LogProject:
        """Limit how long a single HTTP request may take, in seconds."""
        if hasattr(self.transport, "timeout"):
            self.transport.timeout = timeout  # type: ignore[union-attr]
        else:
            self.transport = UrllibTransport(timeout=timeout)
        return self

    def with_retry_timeout(self, timeout: float) -> LogProject:
        """Limit how long one operation may keep retrying, in seconds."""
        self.retry_timeout = timeout
        return self

    def _send_once(
        self, method: str, uri: str, headers: dict[str, str], body: bytes | None
    ) -> HttpResponse:
        request_headers = dict(headers)
        if self.user_agent:
            request_headers.setdefault("User-Agent", self.user_agent)
        if self.signer is not None:
            self.signer(self, method, uri, request_headers, body)
        try:
            return self.transport(method, self.base_url + uri, request_headers, body)
        except LogError:
            raise
        except (OSError, ValueError) as exc:
            raise ClientError(exc) from exc

    def request(
        self,
        method: str,
        uri: str,
        headers: dict[str, str],
        body: bytes | None = None,
    ) -> HttpResponse:
        """Send a request, retrying network failures and server errors.

        Retries stop once :attr:`retry_timeout` seconds have passed.
        """
        deadline = time.monotonic() + self.retry_timeout
        delay = _INITIAL_BACKOFF
        while True:
            try:
                response = self._send_once(method, uri, headers, body)
            except ClientError:
                if time.monotonic() + delay > deadline:
                    raise
            else:
                if response.status_code < 500 or time.monotonic() + delay > deadline:
                    return response
                logger.debug("server error %s on %s %s, retrying", response.status_code, method, uri)
            time.sleep(delay)
            delay = min(delay * 2, _MAX_BACKOFF)

    def raw_request(
        self,
        method: str,
        uri: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> HttpResponse:
        """Send a request and return the response whatever its status."""
        return self.request(method, uri, dict(headers or {}), body)

    def _call(
        self,
        method: str,
        uri: str,
        payload: bytes | None = None,
    ) -> HttpResponse:
        headers = _empty_headers() if payload is None else _json_headers(payload)
        response = self.request(method, uri, headers, payload)
        if response.status_code != _OK:
            raise LogError.from_body(response.body or b"", response.status_code)
        return response

    def _exists(self, uri: str, missing_code: str) -> bool:
        try:
            self._call("GET", uri)
        except LogError as exc:
            if exc.code == missing_code:
                return False
            raise
        return True

    # Logstores

    def list_log_store(self) -> list[str]:
        """Names of all logstores of this project."""
        return _names(_json_object(self._call("GET", "/logstores")), "logstores")

    def list_log_store_v2(self, offset: int, size: int, telemetry_type: str) -> list[str]:
        """Names of one page of logstores of the given telemetry type."""
        uri = f"/logstores?offset={offset}&size={size}&telemetryType={telemetry_type}"
        return _names(_json_object(self._call("GET", uri)), "logstores")

    def get_log_store(self, name: str) -> LogStore:
        """The logstore of the given name, bound to this project."""
        data = _json_object(self._call("GET", f"/logstores/{name}"))
        store = LogStore.from_dict(data, project=self)
        store.name = name
        return store

    def create_log_store(
        self,
        name: str,
        ttl: int,
        shard_count: int,
        auto_split: bool,
        max_split_shard: int,
    ) -> None:
        """Create a logstore keeping logs ``ttl`` days over ``shard_count`` shards."""
        body = _dump(
            {
                "logstoreName": name,
                "ttl": ttl,
                "shardCount": shard_count,
                "autoSplit": auto_split,
                "maxSplitShard": max_split_shard,
                "enable_tracking": False,
            }
        )
        self._call("POST", "/logstores", body)

    def create_log_store_v2(self, logstore: LogStore) -> None:
        """Create a logstore from all of its settings."""
        self._call("POST", "/logstores", _dump(logstore))

    def delete_log_store(self, name: str) -> None:
        """Delete the logstore of the given name."""
        self._call("DELETE", f"/logstores/{name}")

    def update_log_store(self, name: str, ttl: int, shard_count: int) -> None:
        """Change the retention and shard count of a logstore."""
        body = _dump({"logstoreName": name, "ttl": ttl, "shardCount": shard_count})
        self._call("PUT", f"/logstores/{name}", body)

    def update_log_store_v2(self, logstore: LogStore) -> None:
        """Change a logstore to the given settings; its name stays."""
        self._call("PUT", f"/logstores/{logstore.name}", _dump(logstore))

    def check_logstore_exist(self, name: str) -> bool:
        """Whether a logstore of the given name exists."""
        return self._exists(f"/logstores/{name}", "LogStoreNotExist")

    # Machine groups

    def list_machine_group(self, offset: int, size: int) -> tuple[list[str], int]:
        """One page of machine group names and the total number of groups."""
        if size <= 0:
            size = DEFAULT_MACHINE_GROUP_PAGE_SIZE
        data = _json_object(self._call("GET", f"/machinegroups?offset={offset}&size={size}"))
        return _names(data, "machinegroups"), int(_get(data, "total", 0) or 0)

    def check_machine_group_exist(self, name: str) -> bool:
        """Whether a machine group of the given name exists."""
        return self._exists(f"/machinegroups/{name}", "MachineGroupNotExist")

    def get_machine_group(self, name: str) -> dict[str, Any]:
        """The machine group of the given name as a decoded JSON object."""
        return dict(_json_object(self._call("GET", f"/machinegroups/{name}")))

    def create_machine_group(self, group: Any) -> None:
        """Create a machine group from a dict or an object with ``to_dict``."""
        self._call("POST", "/machinegroups", _dump(group))

    def update_machine_group(self, group: Any) -> None:
        """Replace a machine group; the name is taken from ``group``."""
        name = group.get("groupName", "") if isinstance(group, Mapping) else group.name
        self._call("PUT", f"/machinegroups/{name}", _dump(group))

    def delete_machine_group(self, name: str) -> None:
        """Delete the machine group of the given name."""
        self._call("DELETE", f"/machinegroups/{name}")

    # Logtail configs

    def list_config(self, offset: int, size: int) -> tuple[list[str], int]:
        """One page of config names and the total number of configs."""
        if size <= 0:
            size = DEFAULT_CONFIG_PAGE_SIZE
        data = _json_object(self._call("GET", f"/configs?offset={offset}&size={size}"))
        return _names(data, "configs"), int(_get(data, "total", 0) or 0)

    def check_config_exist(self, name: str) -> bool:
        """Whether a config of the given name exists."""
        return self._exists(f"/configs/{name}", "ConfigNotExist")

    def get_config(self, name: str) -> LogConfig:
        """The config of the given name."""
        data = _json_object(self._call("GET", f"/configs/{name}"))
        try:
            config = LogConfig.from_dict(data)
        except (TypeError, ValueError) as exc:
            raise BadResponseError(json.dumps(data)) from exc
        logger.debug("got logtail config %s", config)
        return config

    def update_config(self, config: LogConfig) -> None:
        """Replace the config of the same name."""
        self._call("PUT", f"/configs/{config.name}", _dump(config))

    def create_config(self, config: LogConfig) -> None:
        """Create a config."""
        self._call("POST", "/configs", _dump(config))

    def get_config_string(self, name: str) -> str:
        """The config of the given name as JSON text."""
        text = _text(self._call("GET", f"/configs/{name}").body)
        logger.debug("got logtail config %s", text)
        return text

    def update_config_string(self, config_name: str, config: str) -> None:
        """Replace a config with the given JSON text."""
        self._call("PUT", f"/configs/{config_name}", config.encode("utf-8"))

    def create_config_string(self, config: str) -> None:
        """Create a config from its JSON text."""
        self._call("POST", "/configs", config.encode("utf-8"))

    def delete_config(self, name: str) -> None:
        """Delete the config of the given name."""
        self._call("DELETE", f"/configs/{name}")

    def get_applied_machine_groups(self, config_name: str) -> list[str]:
        """Names of the machine groups a config is applied to."""
        data = _json_object(self._call("GET", f"/configs/{config_name}/machinegroups"))
        return _names(data, "machinegroups")

    def get_applied_configs(self, group_name: str) -> list[str]:
        """Names of the configs applied to a machine group."""
        data = _json_object(self._call("GET", f"/machinegroups/{group_name}/configs"))
        return _names(data, "configs")

    def apply_config_to_machine_group(self, config_name: str, group_name: str) -> None:
        """Apply a config to a machine group."""
        self._call("PUT", f"/machinegroups/{group_name}/configs/{config_name}")

    def remove_config_from_machine_group(self, config_name: str, group_name: str) -> None:
        """Stop applying a config to a machine group."""
        self._call("DELETE", f"/machinegroups/{group_name}/configs/{config_name}")

    # Service logging

    def create_logging(self, logging: Logging) -> None:
        """Turn on service logging with the given settings."""
        self._call("POST", f"/{LOGGING_URI}", _dump(logging))

    def update_logging(self, logging: Logging) -> None:
        """Change the service logging settings."""
        self._call("PUT", f"/{LOGGING_URI}", _dump(logging))

    def get_logging(self) -> Logging:
        """The service logging settings."""
        data = _json_object(self._call("GET", f"/{LOGGING_URI}"))
        result = Logging.from_dict(data)
        logger.debug("got logging %s", result)
        return result

    def delete_logging(self) -> None:
        """Turn off service logging."""
        self._call("DELETE", f"/{LOGGING_URI}")