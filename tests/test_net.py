import socket

from scraperlib.errors import DomainNotAllowedError, HTTPStatusError, TransportError
from scraperlib.net import HttpClient


def make_client(**kwargs):
    return HttpClient("TestBot/1.0", request_timeout=5.0, **kwargs)


def test_fetch_ok(http_server):
    http_server.routes["/"] = (200, "<html><body><h1>Test</h1></body></html>")
    result = make_client().fetch(http_server.base_url + "/")
    assert result.ok
    assert result.status == 200
    assert "<h1>Test</h1>" in result.text
    assert result.size_bytes == len(result.text.encode())
    assert "text/html" in result.content_type


def test_fetch_http_error_status(http_server):
    result = make_client().fetch(http_server.base_url + "/missing")
    assert result.status == 404
    assert not result.ok
    assert isinstance(result.error, HTTPStatusError)
    assert result.error.status == 404


def test_rate_limit_status_is_reported_not_retried(http_server):
    http_server.routes["/busy"] = (429, "slow down")
    result = make_client().fetch(http_server.base_url + "/busy")
    assert result.status == 429
    assert http_server.requests == ["/busy"]


def test_disallowed_domain_makes_no_request(http_server):
    http_server.routes["/"] = (200, "ok")
    result = make_client(allowed_domains=["example.com"]).fetch(http_server.base_url + "/")
    assert isinstance(result.error, DomainNotAllowedError)
    assert result.status == 0
    assert http_server.requests == []


def test_allowed_domain_passes(http_server):
    http_server.routes["/"] = (200, "ok")
    result = make_client(allowed_domains=["127.0.0.1"]).fetch(http_server.base_url + "/")
    assert result.ok


def test_depth_limit():
    result = make_client(max_depth=1).fetch("http://127.0.0.1:1/", depth=2)
    assert isinstance(result.error, TransportError)
    assert "max depth" in str(result.error)


def test_connection_failure_is_transport_error():
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    result = make_client().fetch(f"http://127.0.0.1:{port}/")
    assert result.status == 0
    assert isinstance(result.error, TransportError)
