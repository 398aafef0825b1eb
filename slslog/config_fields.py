"""Helpers that inspect, convert and complete decoded logtail input details.

A config read back from the service carries its input detail as a plain
dict. These functions turn such a dict into the matching detail class, fill
in the fields the service expects, and edit single fields in place.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any, TypeVar

from slslog.config import (
    INPUT_TYPE_FILE,
    INPUT_TYPE_PLUGIN,
    INPUT_TYPE_STREAMLOG,
    INPUT_TYPE_SYSLOG,
    LOG_FILE_TYPE_APSARA_LOG,
    LOG_FILE_TYPE_DELIMITER_LOG,
    LOG_FILE_TYPE_JSON_LOG,
    LOG_FILE_TYPE_REGEX_LOG,
    MERGE_TYPE_TOPIC,
    TOPIC_FORMAT_NONE,
    ApsaraLogConfigInputDetail,
    DelimiterConfigInputDetail,
    InputDetail,
    InvalidTypeError,
    JSONConfigInputDetail,
    NoConfigFieldError,
    PluginLogConfigInputDetail,
    RegexConfigInputDetail,
    StreamLogConfigInputDetail,
)

T = TypeVar("T")

_VALID_INPUT_TYPES = frozenset(
    {INPUT_TYPE_SYSLOG, INPUT_TYPE_STREAMLOG, INPUT_TYPE_PLUGIN, INPUT_TYPE_FILE}
)


def is_valid_input_type(input_type: str) -> bool:
    """Whether ``input_type`` is one of the input types the service accepts."""
    return input_type in _VALID_INPUT_TYPES


def _convert(
    detail: Any,
    cls: type[T],
    *,
    log_type: str | None = None,
    required: tuple[str, ...] = (),
    forbidden: tuple[str, ...] = (),
) -> T | None:
    if not isinstance(detail, Mapping):
        return None
    if log_type is not None and ("logType" not in detail or detail["logType"] != log_type):
        return None
    if any(key not in detail for key in required):
        return None
    if any(key in detail for key in forbidden):
        return None
    try:
        return cls.from_dict(detail)  # type: ignore[attr-defined]
    except (TypeError, ValueError):
        return None


def convert_to_input_detail(detail: Any) -> InputDetail | None:
    """Read a regex file detail dict as the flat :class:`InputDetail`, or ``None``."""
    return _convert(detail, InputDetail, log_type=LOG_FILE_TYPE_REGEX_LOG)


def convert_to_apsara_log_config_input_detail(
    detail: Any,
) -> ApsaraLogConfigInputDetail | None:
    """Read an apsara log detail dict, or ``None`` if it is not one."""
    return _convert(detail, ApsaraLogConfigInputDetail, log_type=LOG_FILE_TYPE_APSARA_LOG)


def convert_to_regex_config_input_detail(detail: Any) -> RegexConfigInputDetail | None:
    """Read a regex log detail dict, or ``None`` if it is not one."""
    return _convert(detail, RegexConfigInputDetail, log_type=LOG_FILE_TYPE_REGEX_LOG)


def convert_to_json_config_input_detail(detail: Any) -> JSONConfigInputDetail | None:
    """Read a JSON log detail dict, or ``None`` if it is not one."""
    return _convert(detail, JSONConfigInputDetail, log_type=LOG_FILE_TYPE_JSON_LOG)


def convert_to_delimiter_config_input_detail(
    detail: Any,
) -> DelimiterConfigInputDetail | None:
    """Read a delimiter log detail dict, or ``None`` if it is not one."""
    return _convert(detail, DelimiterConfigInputDetail, log_type=LOG_FILE_TYPE_DELIMITER_LOG)


def convert_to_plugin_log_config_input_detail(
    detail: Any,
) -> PluginLogConfigInputDetail | None:
    """Read a plugin detail dict: it needs a plugin and must have no log type."""
    return _convert(
        detail,
        PluginLogConfigInputDetail,
        required=("plugin",),
        forbidden=("logType",),
    )


def convert_to_stream_log_config_input_detail(
    detail: Any,
) -> StreamLogConfigInputDetail | None:
    """Read a syslog stream detail dict: it needs a tag."""
    return _convert(detail, StreamLogConfigInputDetail, required=("tag",))


def get_file_config_input_detail_type(detail: Any) -> str | None:
    """The ``logType`` of a file detail dict, or ``None`` if it has none."""
    if not isinstance(detail, Mapping) or "logType" not in detail:
        return None
    log_type = detail["logType"]
    if not isinstance(log_type, str):
        raise TypeError(f"logType must be a string, got {type(log_type).__name__}")
    return log_type


def add_necessary_local_file_input_config_field(detail: MutableMapping[str, Any]) -> None:
    """Fill in the defaults every file input needs."""
    detail.setdefault("fileEncoding", "utf8")
    detail.setdefault("maxDepth", 100)
    detail.setdefault("topicFormat", TOPIC_FORMAT_NONE)
    detail.setdefault("preserve", True)
    detail.setdefault("discardUnmatch", True)
    detail.setdefault("timeFormat", "")


def add_necessary_apsara_log_input_config_field(detail: MutableMapping[str, Any]) -> None:
    """Fill in the defaults an apsara log input needs."""
    detail.setdefault("logBeginRegex", ".*")


def add_necessary_regex_log_input_config_field(detail: MutableMapping[str, Any]) -> None:
    """Fill in the defaults a regex log input needs."""
    detail.setdefault("logBeginRegex", ".*")
    detail.setdefault("regex", "(.*)")
    detail.setdefault("key", ["content"])


def add_necessary_json_log_input_config_field(detail: MutableMapping[str, Any]) -> None:
    """Fill in the defaults a JSON log input needs."""
    detail.setdefault("timeKey", "")


def add_necessary_delimiter_log_input_config_field(detail: MutableMapping[str, Any]) -> None:
    """Fill in the defaults a delimiter log input needs."""
    detail.setdefault("quote", "\u0001")
    detail.setdefault("autoExtend", True)
    detail.setdefault("timeKey", "")


_TYPE_DEFAULTS = {
    LOG_FILE_TYPE_APSARA_LOG: add_necessary_apsara_log_input_config_field,
    LOG_FILE_TYPE_REGEX_LOG: add_necessary_regex_log_input_config_field,
    LOG_FILE_TYPE_JSON_LOG: add_necessary_json_log_input_config_field,
    LOG_FILE_TYPE_DELIMITER_LOG: add_necessary_delimiter_log_input_config_field,
}


def add_necessary_input_config_field(detail: MutableMapping[str, Any]) -> None:
    """Fill in, in place, every default field the detail's kind requires."""
    detail.setdefault("localStorage", True)
    detail.setdefault("enableTag", True)
    detail.setdefault("maxSendRate", -1)
    detail.setdefault("mergeType", MERGE_TYPE_TOPIC)

    log_type = detail.get("logType")
    if isinstance(log_type, str):
        add_necessary_local_file_input_config_field(detail)
        fill = _TYPE_DEFAULTS.get(log_type)
        if fill is not None:
            fill(detail)


def update_input_config_field(detail: Any, key: str, value: Any) -> None:
    """Replace an existing field of a detail dict.

    Raises :class:`NoConfigFieldError` if the field is absent and
    :class:`InvalidTypeError` if ``detail`` is not a dict.
    """
    if not isinstance(detail, MutableMapping):
        raise InvalidTypeError()
    if key not in detail:
        raise NoConfigFieldError()
    detail[key] = value