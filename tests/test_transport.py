import socket
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest

from slslog.errors import ClientError
from slslog.transport import (
    HttpResponse,
    UrllibTransport,
    is_ip_host,
    parse_endpoint,
)


class _Handler(BaseHTTPRequestHandler):
    def log_message(self, format, *args):
        pass

    def _reply(self):
        length = int(self.headers.get("Content-Length") or 0)
        data = self.rfile.read(length) if length else b""
        if self.path.startswith("/missing"):
            payload = b'{"errorCode":"LogStoreNotExist","errorMessage":"gone"}'
            self.send_response(404)
        else:
            payload = self.command.encode() + b"|" + data
            self.send_response(200)
        self.send_header("x-log-requestid", self.headers.get("x-log-bodyrawsize", ""))
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    do_GET = _reply
    do_POST = _reply
    do_PUT = _reply
    do_DELETE = _reply


@pytest.fixture
def server_url():
    server = HTTPServer(("127.0.0.1", 0), _Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()


def test_is_ip_host_detects_addresses():
    assert is_ip_host("10.0.0.1")
    assert is_ip_host("192.168.1.20:8080")
    assert not is_ip_host("cn-hangzhou.log.aliyuncs.com")


def test_parse_endpoint_defaults_to_http_with_project():
    base, proxy = parse_endpoint("cn-hangzhou.log.aliyuncs.com", "proj")
    assert base == "http://proj.cn-hangzhou.log.aliyuncs.com"
    assert proxy is None


def test_parse_endpoint_keeps_https():
    base, proxy = parse_endpoint("https://cn-hangzhou.log.aliyuncs.com", "proj")
    assert base == "https://proj.cn-hangzhou.log.aliyuncs.com"
    assert proxy is None


def test_parse_endpoint_force_http_overrides_https():
    base, _ = parse_endpoint("https://cn-hangzhou.log.aliyuncs.com", "proj", True)
    assert base.startswith("http://")
    assert base.endswith("proj.cn-hangzhou.log.aliyuncs.com")


def test_parse_endpoint_without_project():
    base, _ = parse_endpoint("http://cn-hangzhou.log.aliyuncs.com")
    assert base == "http://cn-hangzhou.log.aliyuncs.com"


def test_parse_endpoint_ip_gives_proxy():
    base, proxy = parse_endpoint("https://10.0.0.1", "proj")
    assert proxy == "https://10.0.0.1"
    assert base == "https://proj.10.0.0.1"


def test_http_response_header_is_case_insensitive():
    response = HttpResponse(
        200, {"X-Log-Cursor": ["abc", "def"], "x-log-bodyrawsize": "12"}, b""
    )
    assert response.header("x-log-cursor") == "abc"
    assert response.header("X-LOG-BODYRAWSIZE") == "12"
    assert response.header("missing") is None


def test_http_response_empty_list_header():
    response = HttpResponse(200, {"X-Empty": []})
    assert response.header("x-empty") is None


def test_transport_sends_method_and_body(server_url):
    transport = UrllibTransport(timeout=5)
    response = transport(
        "POST", server_url + "/logstores", {"x-log-bodyrawsize": "5"}, b"hello"
    )
    assert response.status_code == 200
    assert response.body == b"POST|hello"
    assert response.header("x-log-requestid") == "5"


def test_transport_get_without_body(server_url):
    response = UrllibTransport(timeout=5)("GET", server_url + "/logstores", {}, None)
    assert response.status_code == 200
    assert response.body == b"GET|"


def test_transport_returns_error_status(server_url):
    response = UrllibTransport(timeout=5)("GET", server_url + "/missing", {}, None)
    assert response.status_code == 404
    assert b"LogStoreNotExist" in response.body


def test_transport_unreachable_raises_client_error():
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    with pytest.raises(ClientError):
        UrllibTransport(timeout=2)("GET", f"http://127.0.0.1:{port}/", {}, None)


def test_transport_invalid_url_raises_client_error():
    with pytest.raises(ClientError):
        UrllibTransport(timeout=2)("GET", "not a url", {}, None)