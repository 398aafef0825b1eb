# slslog

A Python client for a hosted log service. It manages the logstores, machine
groups, collection (logtail) configs and service logging settings of a
project, reads shards, cursors and indexes of a logstore, and uploads and
downloads raw log data compressed as LZ4 blocks.

## Installation

```
pip install slslog
```

For running the test suite:

```
pip install "slslog[test]"
pytest
```

## Working with a project

`slslog.project.LogProject` talks to one project on an endpoint. Requests are
sent by a transport, by default `slslog.transport.UrllibTransport`; an
endpoint whose host is an IPv4 address is used as a proxy. Network failures
and 5xx replies are retried until `retry_timeout` seconds have passed.

Failed calls raise exceptions from `slslog.errors`: `LogError` for an error
the server reports, `ClientError` for a failure on the client side, and
`BadResponseError` for a reply that cannot be read.

```python
from slslog.errors import LogError
from slslog.project import LogProject


def sign(project, method, uri, headers, body):
    # Add authentication headers to ``headers`` in place.
    headers["Authorization"] = "Bearer token"


access_key_secret = "secret"
project = LogProject(
    "my-project", "log.example.com", "access-key-id", access_key_secret, signer=sign
)
project.with_request_timeout(10).with_retry_timeout(30)

project.create_log_store("app-logs", 30, 2, True, 16)
print(project.list_log_store())

store = project.get_log_store("app-logs")
for shard in store.list_shards():
    print(shard.to_dict())

try:
    project.get_config("missing-config")
except LogError as exc:
    print("server said:", exc)
```

Existence checks return a boolean instead of raising when the object is
absent: `check_logstore_exist`, `check_machine_group_exist`,
`check_config_exist`, and `LogStore.check_index_exist`.

Machine groups and indexes are passed and returned as plain dicts (or any
object with a `to_dict()` method).

`slslog.transport.parse_endpoint` shows where a project's requests go:

```python
from slslog.transport import parse_endpoint

parse_endpoint("https://log.example.com", "my-project")
# ('https://my-project.log.example.com', None)
```

## Logstores

A `slslog.store.LogStore` bound to a project can:

- `list_shards()` – the shards as `slslog.models.Shard` objects;
- `put_raw_log(data, hash_key=None)` – upload an already serialised log group,
  LZ4-compressed unless `set_put_log_compress_type(CompressType.NONE)` was
  called; a non-empty `hash_key` routes it to the shard owning that key;
- `get_cursor(shard_id, "begin" | "end" | "<unix seconds>")`;
- `get_logs_bytes(shard_id, cursor, end_cursor, count)` – the decompressed
  bytes and the next cursor;
- `create_index`, `update_index`, `delete_index`, `get_index`, and their
  `*_string` forms that take or return JSON text.

## Collection configs

`slslog.config` holds the config classes. Input details come with the
service's defaults filled in by their `create()` class methods:

```python
from slslog.config import LogConfig, OutputDetail, RegexConfigInputDetail

detail = RegexConfigInputDetail.create()
detail.log_path = "/var/log/app"
detail.file_pattern = "*.log"
config = LogConfig(
    name="app-config",
    input_type="file",
    input_detail=detail,
    output_type="LogService",
    output_detail=OutputDetail("my-project", "app-logs"),
)
print(config.to_dict()["inputDetail"]["logType"])   # common_reg_log
```

A config read back from the service carries its input detail as a plain
dict. The helpers in `slslog.config_fields` fill in required fields, edit
fields in place, and convert the dict into a typed detail; a converter
returns `None` when the dict is not of its kind:

```python
from slslog.config_fields import (
    add_necessary_input_config_field,
    convert_to_regex_config_input_detail,
    update_input_config_field,
)

raw = {"logType": "common_reg_log", "logPath": "/var/log/app", "filePattern": "*.log"}
add_necessary_input_config_field(raw)
update_input_config_field(raw, "filePattern", "access.log*")
detail = convert_to_regex_config_input_detail(raw)
print(detail.regex)   # (.*)
```

`update_input_config_field` raises `NoConfigFieldError` for a field the dict
does not have and `InvalidTypeError` when the detail is not a dict.

Plugin inputs, such as Docker stdout collection, are built from
`slslog.models`:

```python
from slslog.config import PluginLogConfigInputDetail
from slslog.models import (
    PLUGIN_INPUT_TYPE_DOCKER_STDOUT,
    create_config_plugin_docker_stdout,
    create_plugin_input_item,
)

stdout = create_config_plugin_docker_stdout()
detail = PluginLogConfigInputDetail.create()
detail.plugin_detail.inputs.append(
    create_plugin_input_item(PLUGIN_INPUT_TYPE_DOCKER_STDOUT, stdout)
)
```

## Compression

`slslog.compression` produces and reads the LZ4 block format used for log
upload and download:

```python
from slslog.compression import compress_block, uncompress_block

data = b"hello log service" * 10
packed = compress_block(data)
assert uncompress_block(packed, len(data)) == data
```

## What the package does not do

- It does not compute request signatures itself; pass a `signer` to
  `LogProject` to add authentication headers.
- It does not encode or decode log groups: `put_raw_log` takes bytes that are
  already serialised and `get_logs_bytes` returns the serialised bytes.
- It has no log search or query calls, no consumer groups, and no
  project-level create or delete; there is no command-line tool.