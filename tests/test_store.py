import json
from dataclasses import dataclass, field

import pytest

from slslog.compression import CompressType, uncompress_block, compress_block
from slslog.errors import BadResponseError, ClientError, InvalidCompressError, LogError
from slslog.models import EncryptConf, EncryptUserCmkConf
from slslog.store import LogStore


@dataclass
class FakeResponse:
    status_code: int = 200
    headers: dict = field(default_factory=dict)
    body: bytes = b""


class FakeProject:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, uri, headers, body=None):
        self.calls.append((method, uri, headers, body))
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


def _error_body(code, message):
    return json.dumps({"errorCode": code, "errorMessage": message}).encode()


def test_set_put_log_compress_type():
    store = LogStore(name="s")
    store.set_put_log_compress_type(CompressType.NONE)
    assert store.put_log_compress_type == CompressType.NONE
    with pytest.raises(InvalidCompressError):
        store.set_put_log_compress_type(CompressType.MAX)
    with pytest.raises(InvalidCompressError):
        store.set_put_log_compress_type(-1)
    assert store.put_log_compress_type == CompressType.NONE


def test_dict_round_trip():
    store = LogStore(
        name="s", ttl=7, shard_count=2, auto_split=True, max_split_shard=64,
        encrypt_conf=EncryptConf(enable=True, encrypt_type="default",
                                 user_cmk_info=EncryptUserCmkConf(arn="arn")),
    )
    data = store.to_dict()
    assert data["logstoreName"] == "s"
    assert data["enable_tracking"] is False
    assert "hot_ttl" not in data
    assert "createTime" not in data
    project = FakeProject()
    again = LogStore.from_dict(json.loads(json.dumps(data)), project)
    assert again == store
    assert again.project is project


def test_put_raw_log_empty_sends_nothing():
    project = FakeProject()
    LogStore(name="s", project=project).put_raw_log(b"")
    assert project.calls == []


def test_put_raw_log_uncompressed():
    project = FakeProject(FakeResponse())
    store = LogStore(name="s", project=project)
    store.set_put_log_compress_type(CompressType.NONE)
    raw = b"serialised log group"
    store.put_raw_log(raw)
    method, uri, headers, body = project.calls[0]
    assert (method, uri) == ("POST", "/logstores/s")
    assert body == raw
    assert headers["x-log-bodyrawsize"] == str(len(raw))
    assert headers["Content-Type"] == "application/x-protobuf"
    assert "x-log-compresstype" not in headers


def test_put_raw_log_lz4_round_trips():
    project = FakeProject(FakeResponse())
    store = LogStore(name="s", project=project)
    raw = b"abcabcabc" * 50
    store.put_raw_log(raw)
    _, _, headers, body = project.calls[0]
    assert headers["x-log-compresstype"] == "lz4"
    assert uncompress_block(body, len(raw)) == raw


def test_put_raw_log_with_hash_key_routes():
    project = FakeProject(FakeResponse())
    LogStore(name="s", project=project).put_raw_log(b"data", hash_key="abc")
    assert project.calls[0][1] == "/logstores/s/shards/route?key=abc"


def test_put_raw_log_service_error():
    project = FakeProject(FakeResponse(400, {}, _error_body("PostBodyInvalid", "bad")))
    with pytest.raises(LogError) as info:
        LogStore(name="s", project=project).put_raw_log(b"data")
    assert info.value.code == "PostBodyInvalid"


def test_transport_failure_is_client_error():
    project = FakeProject(OSError("connection refused"))
    with pytest.raises(ClientError):
        LogStore(name="s", project=project).list_shards()


def test_list_shards():
    shards = [{"shardID": 0, "status": "readwrite", "inclusiveBeginKey": "00",
               "exclusiveEndKey": "ff", "createTime": 1524539357}]
    project = FakeProject(FakeResponse(body=json.dumps(shards).encode()))
    got = LogStore(name="s", project=project).list_shards()
    assert project.calls[0][1] == "/logstores/s/shards"
    assert [s.to_dict() for s in got] == shards


def test_list_shards_bad_body():
    project = FakeProject(FakeResponse(body=b"not json"))
    with pytest.raises(BadResponseError):
        LogStore(name="s", project=project).list_shards()


def test_get_cursor():
    project = FakeProject(FakeResponse(body=b'{"cursor": "MTQ0NzI5OTYwNjg5NjYzMjM1Ng=="}'))
    cursor = LogStore(name="s", project=project).get_cursor(3, "begin")
    assert cursor == "MTQ0NzI5OTYwNjg5NjYzMjM1Ng=="
    assert project.calls[0][1] == "/logstores/s/shards/3?type=cursor&from=begin"


def test_get_cursor_errors():
    project = FakeProject(
        FakeResponse(404, {}, _error_body("ShardNotExist", "no shard")),
        FakeResponse(500, {}, b"<html>"),
    )
    store = LogStore(name="s", project=project)
    with pytest.raises(LogError) as info:
        store.get_cursor(9, "end")
    assert info.value.code == "ShardNotExist"
    with pytest.raises(LogError) as info:
        store.get_cursor(9, "end")
    assert info.value.message == "failed to get cursor"


def test_get_logs_bytes():
    raw = b"log group list payload " * 20
    headers = {"X-Log-Compresstype": "lz4", "X-Log-Cursor": "next",
               "X-Log-Bodyrawsize": str(len(raw))}
    project = FakeProject(FakeResponse(200, headers, compress_block(raw)))
    out, next_cursor = LogStore(name="s", project=project).get_logs_bytes(1, "c1", "", 100)
    assert out == raw
    assert next_cursor == "next"
    assert project.calls[0][1] == "/logstores/s/shards/1?type=logs&cursor=c1&count=100"
    assert project.calls[0][2]["Accept-Encoding"] == "lz4"


def test_get_logs_bytes_with_end_cursor_and_empty_body():
    headers = {"x-log-compresstype": "lz4", "x-log-cursor": "c2", "x-log-bodyrawsize": "0"}
    project = FakeProject(FakeResponse(200, headers, b""))
    out, next_cursor = LogStore(name="s", project=project).get_logs_bytes(1, "c1", "c9", 10)
    assert (out, next_cursor) == (b"", "c2")
    assert "end_cursor=c9" in project.calls[0][1]


@pytest.mark.parametrize(
    "headers, message",
    [
        ({"x-log-cursor": "c", "x-log-bodyrawsize": "0"},
         "can't find 'x-log-compresstype' header"),
        ({"x-log-compresstype": "deflate", "x-log-cursor": "c", "x-log-bodyrawsize": "0"},
         "unexpected compress type:deflate"),
        ({"x-log-compresstype": "lz4", "x-log-bodyrawsize": "0"},
         "can't find 'x-log-cursor' header"),
        ({"x-log-compresstype": "lz4", "x-log-cursor": "c"},
         "can't find 'x-log-bodyrawsize' header"),
    ],
)
def test_get_logs_bytes_header_errors(headers, message):
    project = FakeProject(FakeResponse(200, headers, b""))
    with pytest.raises(LogError) as info:
        LogStore(name="s", project=project).get_logs_bytes(1, "c", "", 1)
    assert info.value.message == message


def test_create_and_get_index():
    index = {"line": {"token": [",", " "], "caseSensitive": False}}
    project = FakeProject(FakeResponse(), FakeResponse(body=json.dumps(index).encode()))
    store = LogStore(name="s", project=project)
    store.create_index(index)
    method, uri, headers, body = project.calls[0]
    assert (method, uri) == ("POST", "/logstores/s/index")
    assert json.loads(body) == index
    assert headers["x-log-bodyrawsize"] == str(len(body))
    assert store.get_index() == index


def test_update_and_delete_index():
    project = FakeProject(FakeResponse(), FakeResponse())
    store = LogStore(name="s", project=project)
    store.update_index_string('{"keys": {}}')
    store.delete_index()
    assert [c[:2] for c in project.calls] == [
        ("PUT", "/logstores/s/index"),
        ("DELETE", "/logstores/s/index"),
    ]
    assert project.calls[0][3] == b'{"keys": {}}'


def test_get_index_string():
    project = FakeProject(FakeResponse(body=b'{"ttl": 30}'))
    assert LogStore(name="s", project=project).get_index_string() == '{"ttl": 30}'


def test_check_index_exist():
    project = FakeProject(
        FakeResponse(body=b"{}"),
        FakeResponse(404, {}, _error_body("IndexConfigNotExist", "none")),
        FakeResponse(403, {}, _error_body("Unauthorized", "denied")),
    )
    store = LogStore(name="s", project=project)
    assert store.check_index_exist() is True
    assert store.check_index_exist() is False
    with pytest.raises(LogError) as info:
        store.check_index_exist()
    assert info.value.code == "Unauthorized"


def test_unbound_store_raises():
    with pytest.raises(ClientError):
        LogStore(name="s").get_index()