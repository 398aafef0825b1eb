"""Logtail collection configs: input details, output detail and the config itself."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from typing import Any, TypeVar

from slslog.models import LogConfigPluginInput

INPUT_TYPE_SYSLOG = "syslog"
INPUT_TYPE_STREAMLOG = "streamlog"
INPUT_TYPE_PLUGIN = "plugin"
INPUT_TYPE_FILE = "file"

LOG_FILE_TYPE_APSARA_LOG = "apsara_log"
LOG_FILE_TYPE_REGEX_LOG = "common_reg_log"
LOG_FILE_TYPE_JSON_LOG = "json_log"
LOG_FILE_TYPE_DELIMITER_LOG = "delimiter_log"

OUTPUT_TYPE_LOG_SERVICE = "LogService"

MERGE_TYPE_TOPIC = "topic"
MERGE_TYPE_LOGSTORE = "logstore"

# Any other topic format is a file path regex whose first group becomes the topic.
TOPIC_FORMAT_NONE = "none"
TOPIC_FORMAT_MACHINE_GROUP = "group_topic"


class NoConfigFieldError(LookupError):
    """The config has no field of the requested name."""

    def __init__(self, message: str = "no this config field") -> None:
        super().__init__(message)


class InvalidTypeError(TypeError):
    """The config detail is not of a type that can be edited."""

    def __init__(self, message: str = "invalid config type") -> None:
        super().__init__(message)


T = TypeVar("T")


def _str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


def _bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected a boolean, got {type(value).__name__}")
    return value


def _int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("expected an integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise TypeError(f"expected an integer, got {value!r}")


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        raise TypeError(f"expected a list, got {type(value).__name__}")
    return [_str(item) for item in value]


def _str_map(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        raise TypeError(f"expected an object, got {type(value).__name__}")
    return {_str(k): _str(v) for k, v in value.items()}


def _any_map(value: Any) -> dict[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"expected an object, got {type(value).__name__}")
    return dict(value)


def _any(value: Any) -> Any:
    return value


def _sensitive_keys(value: Any) -> list[SensitiveKey]:
    if not isinstance(value, list):
        raise TypeError(f"expected a list, got {type(value).__name__}")
    return [SensitiveKey.from_dict(item) for item in value]


def _plugin_input(value: Any) -> LogConfigPluginInput:
    if not isinstance(value, Mapping):
        raise TypeError(f"expected an object, got {type(value).__name__}")
    try:
        return LogConfigPluginInput.from_dict(value)
    except AttributeError as exc:
        raise TypeError(f"malformed plugin detail: {exc}") from exc


def _output_detail(value: Any) -> OutputDetail:
    return OutputDetail.from_dict(value)


def _json_field(
    key: str,
    default: Any = None,
    *,
    decode: Callable[[Any], Any],
    omitempty: bool = False,
    factory: Callable[[], Any] | None = None,
) -> Any:
    metadata = {"json": key, "decode": decode, "omitempty": omitempty}
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, dict, tuple)):
        return len(value) == 0
    if isinstance(value, (bool, int, float)):
        return not value
    return False


def _encode_value(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, list):
        return [_encode_value(item) for item in value]
    if isinstance(value, dict):
        return {k: _encode_value(v) for k, v in value.items()}
    return value


def _lookup(data: Mapping[str, Any], key: str) -> tuple[bool, Any]:
    if key in data:
        return True, data[key]
    lowered = key.lower()
    for name, value in data.items():
        if isinstance(name, str) and name.lower() == lowered:
            return True, value
    return False, None


def _to_json(obj: Any) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for f in fields(obj):
        key = f.metadata.get("json")
        if key is None:
            continue
        value = getattr(obj, f.name)
        if f.metadata.get("omitempty") and _is_empty(value):
            continue
        result[key] = _encode_value(value)
    return result


def _from_json(cls: type[T], data: Any) -> T:
    if not isinstance(data, Mapping):
        raise TypeError(f"expected an object, got {type(data).__name__}")
    kwargs: dict[str, Any] = {}
    for f in fields(cls):  # type: ignore[arg-type]
        key = f.metadata.get("json")
        if key is None:
            continue
        found, raw = _lookup(data, key)
        if not found or raw is None:
            continue
        kwargs[f.name] = f.metadata["decode"](raw)
    return cls(**kwargs)


@dataclass
class InputDetail:
    """Flat file input detail kept for older configs."""

    log_type: str = _json_field("logType", "", decode=_str)
    log_path: str = _json_field("logPath", "", decode=_str)
    file_pattern: str = _json_field("filePattern", "", decode=_str)
    local_storage: bool = _json_field("localStorage", False, decode=_bool)
    time_key: str = _json_field("timeKey", "", decode=_str)
    time_format: str = _json_field("timeFormat", "", decode=_str)
    log_begin_regex: str = _json_field("logBeginRegex", "", decode=_str)
    regex: str = _json_field("regex", "", decode=_str)
    keys: list[str] | None = _json_field("key", decode=_str_list)
    filter_keys: list[str] | None = _json_field("filterKey", decode=_str_list)
    filter_regex: list[str] | None = _json_field("filterRegex", decode=_str_list)
    topic_format: str = _json_field("topicFormat", "", decode=_str)
    separator: str = _json_field("separator", "", decode=_str)
    auto_extend: bool = _json_field("autoExtend", False, decode=_bool)

    def to_dict(self) -> dict[str, Any]:
        return _to_json(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InputDetail:
        return _from_json(cls, data)


@dataclass
class SensitiveKey:
    """A key whose values are masked before upload."""

    key: str = _json_field("key", "", decode=_str)
    type: str = _json_field("type", "", decode=_str)
    regex_begin: str = _json_field("regex_begin", "", decode=_str)
    regex_content: str = _json_field("regex_content", "", decode=_str)
    all: bool = _json_field("all", False, decode=_bool)
    const_string: str = _json_field("const", "", decode=_str)

    def to_dict(self) -> dict[str, Any]:
        return _to_json(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SensitiveKey:
        return _from_json(cls, data)


@dataclass
class CommonConfigInputDetail:
    """Settings shared by every input detail."""

    local_storage: bool = _json_field("localStorage", False, decode=_bool)
    filter_keys: list[str] | None = _json_field("filterKey", decode=_str_list, omitempty=True)
    filter_regex: list[str] | None = _json_field(
        "filterRegex", decode=_str_list, omitempty=True
    )
    shard_hash_key: list[str] | None = _json_field(
        "shardHashKey", decode=_str_list, omitempty=True
    )
    enable_tag: bool = _json_field("enableTag", False, decode=_bool)
    enable_raw_log: bool = _json_field("enableRawLog", False, decode=_bool)
    max_send_rate: int = _json_field("maxSendRate", 0, decode=_int)
    send_rate_expire: int = _json_field("sendRateExpire", 0, decode=_int)
    sensitive_keys: list[SensitiveKey] | None = _json_field(
        "sensitive_keys", decode=_sensitive_keys, omitempty=True
    )
    merge_type: str = _json_field("mergeType", "", decode=_str, omitempty=True)
    delay_alarm_bytes: int = _json_field("delayAlarmBytes", 0, decode=_int, omitempty=True)
    adjust_time_zone: bool = _json_field("adjustTimezone", False, decode=_bool)
    log_time_zone: str = _json_field("logTimezone", "", decode=_str, omitempty=True)
    priority: int = _json_field("priority", 0, decode=_int, omitempty=True)

    @classmethod
    def create(cls):
        """A detail with the service defaults filled in."""
        detail = cls()
        detail.local_storage = True
        detail.enable_tag = True
        detail.max_send_rate = -1
        detail.merge_type = MERGE_TYPE_TOPIC
        return detail

    def to_dict(self) -> dict[str, Any]:
        return _to_json(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        return _from_json(cls, data)


@dataclass
class LocalFileConfigInputDetail(CommonConfigInputDetail):
    """Settings shared by every file input."""

    log_type: str = _json_field("logType", "", decode=_str)
    log_path: str = _json_field("logPath", "", decode=_str)
    file_pattern: str = _json_field("filePattern", "", decode=_str)
    time_format: str = _json_field("timeFormat", "", decode=_str)
    topic_format: str = _json_field("topicFormat", "", decode=_str, omitempty=True)
    preserve: bool = _json_field("preserve", False, decode=_bool)
    preserve_depth: int = _json_field("preserveDepth", 0, decode=_int)
    file_encoding: str = _json_field("fileEncoding", "", decode=_str, omitempty=True)
    discard_unmatch: bool = _json_field("discardUnmatch", False, decode=_bool)
    max_depth: int = _json_field("maxDepth", 0, decode=_int)
    tail_existed: bool = _json_field("tailExisted", False, decode=_bool)
    discard_non_utf8: bool = _json_field("discardNonUtf8", False, decode=_bool)
    delay_skip_bytes: int = _json_field("delaySkipBytes", 0, decode=_int)
    is_docker_file: bool = _json_field("dockerFile", False, decode=_bool)
    docker_include_label: dict[str, str] | None = _json_field(
        "dockerIncludeLabel", decode=_str_map, omitempty=True
    )
    docker_exclude_label: dict[str, str] | None = _json_field(
        "dockerExcludeLabel", decode=_str_map, omitempty=True
    )
    docker_include_env: dict[str, str] | None = _json_field(
        "dockerIncludeEnv", decode=_str_map, omitempty=True
    )
    docker_exclude_env: dict[str, str] | None = _json_field(
        "dockerExcludeEnv", decode=_str_map, omitempty=True
    )
    plugin_detail: dict[str, Any] | None = _json_field(
        "plugin", decode=_any_map, omitempty=True
    )
    advanced: dict[str, Any] | None = _json_field(
        "advanced", decode=_any_map, omitempty=True
    )

    @classmethod
    def create(cls):
        detail = super().create()
        detail.file_encoding = "utf8"
        detail.max_depth = 100
        detail.topic_format = TOPIC_FORMAT_NONE
        detail.preserve = True
        detail.discard_unmatch = True
        return detail


@dataclass
class ApsaraLogConfigInputDetail(LocalFileConfigInputDetail):
    """Apsara-format file input."""

    log_begin_regex: str = _json_field("logBeginRegex", "", decode=_str)

    @classmethod
    def create(cls):
        detail = super().create()
        detail.log_begin_regex = ".*"
        detail.log_type = LOG_FILE_TYPE_APSARA_LOG
        return detail


@dataclass
class RegexConfigInputDetail(LocalFileConfigInputDetail):
    """File input parsed with a regular expression."""

    key: list[str] | None = _json_field("key", decode=_str_list)
    log_begin_regex: str = _json_field("logBeginRegex", "", decode=_str)
    regex: str = _json_field("regex", "", decode=_str)
    customized_fields: str = _json_field(
        "customizedFields", "", decode=_str, omitempty=True
    )

    @classmethod
    def create(cls):
        detail = super().create()
        detail.log_begin_regex = ".*"
        detail.regex = "(.*)"
        detail.log_type = LOG_FILE_TYPE_REGEX_LOG
        return detail


@dataclass
class JSONConfigInputDetail(LocalFileConfigInputDetail):
    """File input of one JSON object per line."""

    time_key: str = _json_field("timeKey", "", decode=_str)

    @classmethod
    def create(cls):
        detail = super().create()
        detail.log_type = LOG_FILE_TYPE_JSON_LOG
        return detail


@dataclass
class DelimiterConfigInputDetail(LocalFileConfigInputDetail):
    """File input split on a separator."""

    separator: str = _json_field("separator", "", decode=_str)
    quote: str = _json_field("quote", "", decode=_str)
    key: list[str] | None = _json_field("key", decode=_str_list)
    time_key: str = _json_field("timeKey", "", decode=_str)
    auto_extend: bool = _json_field("autoExtend", False, decode=_bool)
    accept_no_enough_keys: bool = _json_field("acceptNoEnoughKeys", False, decode=_bool)

    @classmethod
    def create(cls):
        detail = super().create()
        detail.quote = "\u0001"
        detail.auto_extend = True
        detail.log_type = LOG_FILE_TYPE_DELIMITER_LOG
        return detail


@dataclass
class PluginLogConfigInputDetail(CommonConfigInputDetail):
    """Input driven by plugins such as docker stdout or binlog."""

    plugin_detail: LogConfigPluginInput = _json_field(
        "plugin", decode=_plugin_input, factory=LogConfigPluginInput
    )

    @classmethod
    def create(cls):
        return super().create()


@dataclass
class StreamLogConfigInputDetail(CommonConfigInputDetail):
    """Syslog stream input."""

    tag: str = _json_field("tag", "", decode=_str)

    @classmethod
    def create(cls):
        return super().create()


@dataclass
class OutputDetail:
    """Where collected logs are written."""

    project_name: str = _json_field("projectName", "", decode=_str)
    logstore_name: str = _json_field("logstoreName", "", decode=_str)

    def to_dict(self) -> dict[str, Any]:
        return _to_json(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OutputDetail:
        return _from_json(cls, data)


@dataclass
class LogConfig:
    """A logtail collection config.

    ``input_detail`` is any detail object or, after decoding, a plain dict.
    """

    name: str = _json_field("configName", "", decode=_str)
    log_sample: str = _json_field("logSample", "", decode=_str)
    input_type: str = _json_field("inputType", "", decode=_str)
    input_detail: Any = _json_field("inputDetail", decode=_any)
    output_type: str = _json_field("outputType", "", decode=_str)
    output_detail: OutputDetail = _json_field(
        "outputDetail", decode=_output_detail, factory=OutputDetail
    )
    # The service has always received this one under its capitalised name.
    create_time: int = _json_field("CreateTime", 0, decode=_int)
    last_modify_time: int = _json_field("lastModifyTime", 0, decode=_int, omitempty=True)

    def to_dict(self) -> dict[str, Any]:
        return _to_json(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LogConfig:
        return _from_json(cls, data)