"""Data objects for plugin inputs, project logging, shards and encryption."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

PLUGIN_INPUT_TYPE_DOCKER_STDOUT = "service_docker_stdout"
PLUGIN_INPUT_TYPE_CANAL = "service_canal"

LOGGING_URI = "logging"


def _detail_to_json(detail: Any) -> Any:
    to_dict = getattr(detail, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return detail


def _items_from_json(data: Any) -> list[PluginInputItem]:
    return [PluginInputItem.from_dict(item) for item in data or []]


@dataclass
class PluginInputItem:
    """One plugin entry: a type name and its free-form detail."""

    type: str = ""
    detail: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "detail": _detail_to_json(self.detail)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PluginInputItem:
        return cls(type=data.get("type", ""), detail=data.get("detail"))


def create_plugin_input_item(plugin_type: str, detail: Any) -> PluginInputItem:
    """Build a plugin item of the given type around ``detail``."""
    return PluginInputItem(type=plugin_type, detail=detail)


@dataclass
class LogConfigPluginInput:
    """Plugin pipeline of a log config."""

    inputs: list[PluginInputItem] = field(default_factory=list)
    processors: list[PluginInputItem] = field(default_factory=list)
    aggregators: list[PluginInputItem] = field(default_factory=list)
    flushers: list[PluginInputItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"inputs": [i.to_dict() for i in self.inputs]}
        for key, items in (
            ("processors", self.processors),
            ("aggregators", self.aggregators),
            ("flushers", self.flushers),
        ):
            if items:
                result[key] = [i.to_dict() for i in items]
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LogConfigPluginInput:
        return cls(
            inputs=_items_from_json(data.get("inputs")),
            processors=_items_from_json(data.get("processors")),
            aggregators=_items_from_json(data.get("aggregators")),
            flushers=_items_from_json(data.get("flushers")),
        )


@dataclass
class ConfigPluginCanal:
    """Detail of the MySQL binlog (canal) input plugin."""

    host: str = ""
    port: int = 0
    user: str = ""
    password: str = ""
    flavor: str = ""
    server_id: int = 0
    include_tables: list[str] | None = None
    exclude_tables: list[str] | None = None
    start_bin_name: str = ""
    start_bin_log_pos: int = 0
    heart_beat_period: int = 0
    read_timeout: int = 0
    enable_ddl: bool = False
    enable_xid: bool = False
    enable_gtid: bool = False
    enable_insert: bool = False
    enable_update: bool = False
    enable_delete: bool = False
    text_to_string: bool = False
    start_from_begining: bool = False
    charset: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "Host": self.host,
            "Port": self.port,
            "User": self.user,
            "Password": self.password,
            "Flavor": self.flavor,
            "ServerID": self.server_id,
            "IncludeTables": self.include_tables,
            "ExcludeTables": self.exclude_tables,
            "StartBinName": self.start_bin_name,
            "StartBinLogPos": self.start_bin_log_pos,
            "HeartBeatPeriod": self.heart_beat_period,
            "ReadTimeout": self.read_timeout,
            "EnableDDL": self.enable_ddl,
            "EnableXID": self.enable_xid,
            "EnableGTID": self.enable_gtid,
            "EnableInsert": self.enable_insert,
            "EnableUpdate": self.enable_update,
            "EnableDelete": self.enable_delete,
            "TextToString": self.text_to_string,
            "StartFromBegining": self.start_from_begining,
            "Charset": self.charset,
        }


def create_config_plugin_canal() -> ConfigPluginCanal:
    """Canal plugin detail with the service defaults."""
    return ConfigPluginCanal(
        host="127.0.0.1",
        port=3306,
        user="root",
        flavor="mysql",
        server_id=1205,
        heart_beat_period=60,
        read_timeout=90,
        enable_gtid=True,
        enable_insert=True,
        enable_update=True,
        enable_delete=True,
        charset="utf8",
    )


@dataclass
class ConfigPluginDockerStdout:
    """Detail of the docker stdout input plugin."""

    include_label: dict[str, str] | None = None
    exclude_label: dict[str, str] | None = None
    include_env: dict[str, str] | None = None
    exclude_env: dict[str, str] | None = None
    flush_interval_ms: int = 0
    timeout_ms: int = 0
    begin_line_regex: str = ""
    begin_line_timeout_ms: int = 0
    begin_line_check_length: int = 0
    max_log_size: int = 0
    stdout: bool = False
    stderr: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "IncludeLabel": self.include_label,
            "ExcludeLabel": self.exclude_label,
            "IncludeEnv": self.include_env,
            "ExcludeEnv": self.exclude_env,
            "FlushIntervalMs": self.flush_interval_ms,
            "TimeoutMs": self.timeout_ms,
            "BeginLineRegex": self.begin_line_regex,
            "BeginLineTimeoutMs": self.begin_line_timeout_ms,
            "BeginLineCheckLength": self.begin_line_check_length,
            "MaxLogSize": self.max_log_size,
            "Stdout": self.stdout,
            "Stderr": self.stderr,
        }


def create_config_plugin_docker_stdout() -> ConfigPluginDockerStdout:
    """Docker stdout plugin detail with the service defaults."""
    return ConfigPluginDockerStdout(
        flush_interval_ms=3000,
        timeout_ms=3000,
        stdout=True,
        stderr=True,
        begin_line_timeout_ms=3000,
        begin_line_check_length=10 * 1024,
        max_log_size=512 * 1024,
    )


@dataclass
class LoggingDetail:
    """One kind of service log and the logstore it goes to."""

    type: str = ""
    logstore: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "logstore": self.logstore}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoggingDetail:
        return cls(type=data.get("type", ""), logstore=data.get("logstore", ""))


@dataclass
class Logging:
    """Service logging settings of a project."""

    project: str = ""
    logging_details: list[LoggingDetail] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "loggingProject": self.project,
            "loggingDetails": [d.to_dict() for d in self.logging_details],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Logging:
        return cls(
            project=data.get("loggingProject", ""),
            logging_details=[
                LoggingDetail.from_dict(d) for d in data.get("loggingDetails") or []
            ],
        )


@dataclass
class Shard:
    """A shard of a logstore."""

    shard_id: int = 0
    status: str = ""
    inclusive_begin_key: str = ""
    exclusive_end_key: str = ""
    create_time: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "shardID": self.shard_id,
            "status": self.status,
            "inclusiveBeginKey": self.inclusive_begin_key,
            "exclusiveEndKey": self.exclusive_end_key,
            "createTime": self.create_time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Shard:
        return cls(
            shard_id=data.get("shardID", 0),
            status=data.get("status", ""),
            inclusive_begin_key=data.get("inclusiveBeginKey", ""),
            exclusive_end_key=data.get("exclusiveEndKey", ""),
            create_time=data.get("createTime", 0),
        )


@dataclass
class EncryptUserCmkConf:
    """User-managed key used for logstore encryption."""

    cmk_key_id: str = ""
    arn: str = ""
    region_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "cmk_key_id": self.cmk_key_id,
            "arn": self.arn,
            "region_id": self.region_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EncryptUserCmkConf:
        return cls(
            cmk_key_id=data.get("cmk_key_id", ""),
            arn=data.get("arn", ""),
            region_id=data.get("region_id", ""),
        )


@dataclass
class EncryptConf:
    """Encryption settings of a logstore."""

    enable: bool = False
    encrypt_type: str = ""
    user_cmk_info: EncryptUserCmkConf | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "enable": self.enable,
            "encrypt_type": self.encrypt_type,
        }
        if self.user_cmk_info is not None:
            result["user_cmk_info"] = self.user_cmk_info.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EncryptConf:
        cmk = data.get("user_cmk_info")
        return cls(
            enable=data.get("enable", False),
            encrypt_type=data.get("encrypt_type", ""),
            user_cmk_info=EncryptUserCmkConf.from_dict(cmk) if cmk else None,
        )