import pytest
import requests

from app.config import HTTP_CONNECT_TIMEOUT_S, HTTP_READ_TIMEOUT_S
from app.services.http_service_client import HTTPServiceClient, ServiceCallError

SERVICES = {
    "svc": {
        "timeout": 5,
        "base_url": "http://svc.test/",
        "api_key": "k",
        "auth": {"type": "api_key_header", "header": "X-Internal-Key"},
    },
}

@pytest.fixture
def client():
    return HTTPServiceClient(services=SERVICES)

def test_call_success(client, requests_mock):
    requests_mock.post("http://svc.test/v1/things", json={"id": "t-1"})

    assert client.call("svc", "POST", "/v1/things", json={"a": 1}) == {"id": "t-1"}
    assert requests_mock.last_request.headers["X-Internal-Key"] == "k"
    assert requests_mock.last_request.json() == {"a": 1}

def test_unknown_service(client):
    with pytest.raises(ServiceCallError) as e:
        client.call("nope", "GET", "/")
    assert e.value.code == "UNKNOWN_SERVICE"
    assert e.value.retryable is False

def test_rate_limit_is_retryable(client, requests_mock):
    requests_mock.get("http://svc.test/x", status_code=429, json={"detail": "slow down"})

    with pytest.raises(ServiceCallError) as e:
        client.call("svc", "GET", "/x")
    assert e.value.code == "RESOURCE_EXHAUSTED"
    assert e.value.retryable is True
    assert str(e.value) == "slow down"

def test_graph_error_body(client, requests_mock):
    requests_mock.get("http://svc.test/x", status_code=400,
                      json={"error": {"message": "Unsupported post request", "code": 100}})

    with pytest.raises(ServiceCallError) as e:
        client.call("svc", "GET", "/x")
    assert e.value.code == "100"
    assert e.value.retryable is False

def test_non_json_body(client, requests_mock):
    requests_mock.get("http://svc.test/x", text="<html>")

    with pytest.raises(ServiceCallError) as e:
        client.call("svc", "GET", "/x")
    assert e.value.code == "BAD_RESPONSE"

def test_timeout(client, requests_mock):
    requests_mock.get("http://svc.test/x", exc=requests.ConnectTimeout)

    with pytest.raises(ServiceCallError) as e:
        client.call("svc", "GET", "/x")
    assert e.value.code == "SERVICE_TIMEOUT"

def test_service_timeout_is_used_for_reads(requests_mock):
    services = dict(SERVICES, slow={"timeout": 180, "base_url": "http://slow.test/"}, plain={"base_url": "http://plain.test/"})
    client = HTTPServiceClient(services=services)
    requests_mock.post("http://slow.test/v1/images", json={"image_url": "https://cdn/x.png"})
    requests_mock.get("http://plain.test/x", json={})

    client.call("slow", "POST", "/v1/images", json={"prompt": "p"})
    assert requests_mock.last_request.timeout == (HTTP_CONNECT_TIMEOUT_S, 180.0)

    client.call("plain", "GET", "/x")
    assert requests_mock.last_request.timeout == (HTTP_CONNECT_TIMEOUT_S, HTTP_READ_TIMEOUT_S)
