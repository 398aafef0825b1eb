"""Logstore access: shards, raw log upload, cursors, log download and indexes."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from slslog.compression import CompressType, compress_block, uncompress_block
from slslog.errors import BadResponseError, ClientError, InvalidCompressError, LogError
from slslog.models import EncryptConf, Shard

logger = logging.getLogger(__name__)

_OK = 200


class Response(Protocol):
    """What a project's ``request`` returns."""

    status_code: int
    headers: Mapping[str, Any]
    body: bytes


class Requester(Protocol):
    """Anything that sends a signed request to the project's endpoint."""

    def request(
        self, method: str, uri: str, headers: dict[str, str], body: bytes | None = None
    ) -> Response: ...


def _header(response: Response, name: str) -> str | None:
    wanted = name.lower()
    for key, value in (response.headers or {}).items():
        if key.lower() == wanted:
            if isinstance(value, (list, tuple)):
                return value[0] if value else None
            return value
    return None


def _text(body: bytes | str | None) -> str:
    if body is None:
        return ""
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return body


def _lookup(data: Mapping[str, Any], key: str) -> Any:
    lowered = key.lower()
    for name, value in data.items():
        if isinstance(name, str) and name.lower() == lowered:
            return value
    return None


def _index_body(index: Any) -> bytes:
    to_dict = getattr(index, "to_dict", None)
    payload = to_dict() if callable(to_dict) else index
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def _json_headers(body: bytes) -> dict[str, str]:
    return {
        "x-log-bodyrawsize": str(len(body)),
        "Content-Type": "application/json",
        "Accept-Encoding": "deflate",
    }


@dataclass
class LogStore:
    """A logstore of a project and the operations on it."""

    name: str = ""
    ttl: int = 0
    shard_count: int = 0
    web_tracking: bool = False
    auto_split: bool = False
    max_split_shard: int = 0
    append_meta: bool = False
    telemetry_type: str = ""
    hot_ttl: int = 0
    create_time: int = 0
    last_modify_time: int = 0
    encrypt_conf: EncryptConf | None = None
    project: Any = field(default=None, repr=False, compare=False)
    put_log_compress_type: CompressType = field(
        default=CompressType.LZ4, repr=False, compare=False
    )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "logstoreName": self.name,
            "ttl": self.ttl,
            "shardCount": self.shard_count,
            "enable_tracking": self.web_tracking,
            "autoSplit": self.auto_split,
            "maxSplitShard": self.max_split_shard,
            "appendMeta": self.append_meta,
            "telemetryType": self.telemetry_type,
        }
        if self.hot_ttl:
            result["hot_ttl"] = self.hot_ttl
        if self.create_time:
            result["createTime"] = self.create_time
        if self.last_modify_time:
            result["lastModifyTime"] = self.last_modify_time
        if self.encrypt_conf is not None:
            result["encrypt_conf"] = self.encrypt_conf.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], project: Any = None) -> LogStore:
        encrypt = data.get("encrypt_conf")
        return cls(
            name=data.get("logstoreName", ""),
            ttl=data.get("ttl", 0),
            shard_count=data.get("shardCount", 0),
            web_tracking=data.get("enable_tracking", False),
            auto_split=data.get("autoSplit", False),
            max_split_shard=data.get("maxSplitShard", 0),
            append_meta=data.get("appendMeta", False),
            telemetry_type=data.get("telemetryType", ""),
            hot_ttl=data.get("hot_ttl", 0),
            create_time=data.get("createTime", 0),
            last_modify_time=data.get("lastModifyTime", 0),
            encrypt_conf=EncryptConf.from_dict(encrypt) if encrypt else None,
            project=project,
        )

    def set_put_log_compress_type(self, compress_type: int) -> None:
        """Choose the compression of uploaded bodies; LZ4 by default."""
        if compress_type < 0 or compress_type >= CompressType.MAX:
            raise InvalidCompressError()
        self.put_log_compress_type = CompressType(compress_type)

    def _send(
        self,
        method: str,
        uri: str,
        headers: dict[str, str],
        body: bytes | None = None,
    ) -> Response:
        if self.project is None:
            raise ClientError("logstore is not bound to a project")
        try:
            return self.project.request(method, uri, headers, body)
        except LogError:
            raise
        except (OSError, ValueError) as exc:
            raise ClientError(exc) from exc

    @staticmethod
    def _check(response: Response) -> None:
        if response.status_code != _OK:
            raise LogError.from_body(response.body or b"", response.status_code)

    @staticmethod
    def _check_fetch(response: Response) -> None:
        if response.status_code == _OK:
            return
        error = LogError.from_body(response.body or b"", response.status_code)
        if isinstance(error, BadResponseError):
            logger.debug(
                "unreadable error response %s: %s", response.status_code, _text(response.body)
            )
            raise LogError(message="failed to get cursor", http_code=response.status_code)
        raise error

    def list_shards(self) -> list[Shard]:
        """All shards of this logstore."""
        response = self._send(
            "GET", f"/logstores/{self.name}/shards", {"x-log-bodyrawsize": "0"}
        )
        self._check(response)
        text = _text(response.body)
        try:
            data = json.loads(text)
            if not isinstance(data, list):
                raise ValueError("shard list expected")
            return [Shard.from_dict(item) for item in data]
        except (ValueError, AttributeError) as exc:
            raise BadResponseError(text, response.headers, response.status_code) from exc

    def put_raw_log(self, raw_log_data: bytes, hash_key: str | None = None) -> None:
        """Upload an already serialised log group.

        With a non-empty ``hash_key`` the data goes to the shard that owns the key.
        Empty data sends nothing.
        """
        raw = bytes(raw_log_data)
        if not raw:
            return
        headers = {
            "x-log-bodyrawsize": str(len(raw)),
            "Content-Type": "application/x-protobuf",
        }
        if self.put_log_compress_type == CompressType.LZ4:
            try:
                out = compress_block(raw)
            except ValueError as exc:
                raise ClientError(exc) from exc
            headers["x-log-compresstype"] = "lz4"
        else:
            out = raw
        if hash_key:
            uri = f"/logstores/{self.name}/shards/route?key={hash_key}"
        else:
            uri = f"/logstores/{self.name}"
        response = self._send("POST", uri, headers, out)
        self._check(response)

    def get_cursor(self, shard_id: int, from_: str) -> str:
        """Cursor of a shard at ``from_``: "begin", "end" or a unix time in seconds."""
        uri = f"/logstores/{self.name}/shards/{shard_id}?type=cursor&from={from_}"
        response = self._send("GET", uri, {"x-log-bodyrawsize": "0"})
        self._check_fetch(response)
        text = _text(response.body)
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise BadResponseError(text, response.headers, response.status_code) from exc
        if not isinstance(data, Mapping):
            raise BadResponseError(text, response.headers, response.status_code)
        cursor = _lookup(data, "cursor")
        return cursor if isinstance(cursor, str) else ""

    def get_logs_bytes(
        self,
        shard_id: int,
        cursor: str,
        end_cursor: str,
        log_group_max_count: int,
    ) -> tuple[bytes, str]:
        """Raw serialised log groups from ``cursor`` and the cursor to read next."""
        headers = {
            "x-log-bodyrawsize": "0",
            "Accept": "application/x-protobuf",
            "Accept-Encoding": "lz4",
        }
        base = f"/logstores/{self.name}/shards/{shard_id}?type=logs&cursor={cursor}"
        if end_cursor:
            uri = f"{base}&end_cursor={end_cursor}&count={log_group_max_count}"
        else:
            uri = f"{base}&count={log_group_max_count}"
        response = self._send("GET", uri, headers)
        self._check_fetch(response)

        compress_type = _header(response, "x-log-compresstype")
        if not compress_type:
            raise LogError(message="can't find 'x-log-compresstype' header")
        if compress_type != "lz4":
            raise LogError(message=f"unexpected compress type:{compress_type}")
        next_cursor = _header(response, "x-log-cursor")
        if not next_cursor:
            raise LogError(message="can't find 'x-log-cursor' header")
        raw_size_text = _header(response, "x-log-bodyrawsize")
        if not raw_size_text:
            raise LogError(message="can't find 'x-log-bodyrawsize' header")
        try:
            raw_size = int(raw_size_text)
        except ValueError as exc:
            raise LogError(message=f"invalid x-log-bodyrawsize: {raw_size_text}") from exc
        return uncompress_block(response.body or b"", raw_size), next_cursor

    def create_index(self, index: Any) -> None:
        """Create the index from an index object or a dict."""
        self.create_index_string(_index_body(index).decode("utf-8"))

    def create_index_string(self, index_str: str) -> None:
        """Create the index from its JSON text."""
        body = index_str.encode("utf-8")
        response = self._send(
            "POST", f"/logstores/{self.name}/index", _json_headers(body), body
        )
        self._check(response)

    def update_index(self, index: Any) -> None:
        """Replace the index with an index object or a dict."""
        self.update_index_string(_index_body(index).decode("utf-8"))

    def update_index_string(self, index_str: str) -> None:
        """Replace the index with its JSON text."""
        body = index_str.encode("utf-8")
        response = self._send(
            "PUT", f"/logstores/{self.name}/index", _json_headers(body), body
        )
        self._check(response)

    def delete_index(self) -> None:
        """Remove the index of this logstore."""
        headers = {
            "x-log-bodyrawsize": "0",
            "Content-Type": "application/json",
            "Accept-Encoding": "deflate",
        }
        response = self._send("DELETE", f"/logstores/{self.name}/index", headers)
        self._check(response)

    def _fetch_index(self) -> Response:
        headers = {
            "Content-Type": "application/json",
            "x-log-bodyrawsize": "0",
            "Accept-Encoding": "deflate",
        }
        response = self._send("GET", f"/logstores/{self.name}/index", headers)
        self._check(response)
        return response

    def get_index(self) -> dict[str, Any]:
        """The index of this logstore as a decoded JSON object."""
        response = self._fetch_index()
        text = _text(response.body)
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise BadResponseError(text, response.headers, response.status_code) from exc
        if not isinstance(data, Mapping):
            raise BadResponseError(text, response.headers, response.status_code)
        return dict(data)

    def get_index_string(self) -> str:
        """The index of this logstore as JSON text."""
        return _text(self._fetch_index().body)

    def check_index_exist(self) -> bool:
        """Whether this logstore has an index."""
        try:
            self.get_index()
        except LogError as exc:
            if exc.code == "IndexConfigNotExist":
                return False
            raise
        return True