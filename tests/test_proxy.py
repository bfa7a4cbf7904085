import httpx
import pytest
from fastapi.testclient import TestClient

from itemsvc.proxy import build_http_client, create_app
from itemsvc.registry import IPV4_ATTRIBUTE, PORT_ATTRIBUTE

from conftest import FakeRegistry, RecordingTransport

INSTANCE = {IPV4_ATTRIBUTE: "10.0.0.5", PORT_ATTRIBUTE: "8080"}


def _client(registry, handler):
    transport = RecordingTransport(handler)
    http_client = build_http_client(transport=transport)
    app = create_app(registry, http_client, service_name="catalog", namespace="dev")
    return TestClient(app), transport


def test_fetch_item_relays_downstream_item():
    registry = FakeRegistry(instances=[INSTANCE])
    client, transport = _client(registry, lambda req: httpx.Response(200, json={"id": "42", "name": "widget"}))

    r = client.get("/fetch-item", params={"id": "42"})
    assert r.status_code == 200
    assert r.json() == {"id": "42", "name": "widget"}

    assert registry.calls == [("catalog", "dev", 1)]
    assert len(transport.requests) == 1
    sent = transport.requests[0]
    assert sent.method == "GET"
    assert str(sent.url) == "http://10.0.0.5:8080/item?id=42"


def test_fetch_item_encodes_id_in_query():
    registry = FakeRegistry(instances=[INSTANCE])
    client, transport = _client(registry, lambda req: httpx.Response(200, json={"id": "a b&c", "name": "x"}))

    r = client.get("/fetch-item", params={"id": "a b&c"})
    assert r.status_code == 200
    assert transport.requests[0].url.params["id"] == "a b&c"


@pytest.mark.parametrize("params", [{}, {"id": ""}])
def test_fetch_item_requires_id_before_any_call(params):
    registry = FakeRegistry(instances=[INSTANCE])
    client, transport = _client(registry, lambda req: httpx.Response(200, json={}))

    r = client.get("/fetch-item", params=params)
    assert r.status_code == 400
    assert r.json()["detail"] == "Missing 'id' query parameter"
    assert registry.calls == []
    assert transport.requests == []


def test_no_instances_is_a_resolution_failure_without_outbound_get():
    registry = FakeRegistry(instances=[])
    client, transport = _client(registry, lambda req: httpx.Response(200, json={"id": "42", "name": "x"}))

    r = client.get("/fetch-item", params={"id": "42"})
    assert r.status_code == 500
    assert r.json()["detail"].startswith("Could not fetch service endpoint")
    assert "catalog" in r.json()["detail"]
    assert transport.requests == []


def test_registry_error_is_a_resolution_failure():
    registry = FakeRegistry(error="AccessDenied")
    client, transport = _client(registry, lambda req: httpx.Response(200))

    r = client.get("/fetch-item", params={"id": "42"})
    assert r.status_code == 500
    assert "AccessDenied" in r.json()["detail"]
    assert transport.requests == []


def test_instance_without_address_attributes_is_rejected():
    registry = FakeRegistry(instances=[{IPV4_ATTRIBUTE: "10.0.0.5"}])
    client, transport = _client(registry, lambda req: httpx.Response(200))

    r = client.get("/fetch-item", params={"id": "42"})
    assert r.status_code == 500
    assert PORT_ATTRIBUTE in r.json()["detail"]
    assert transport.requests == []


@pytest.mark.parametrize("status", [404, 400, 503])
def test_downstream_status_is_passed_through(status):
    registry = FakeRegistry(instances=[INSTANCE])
    client, _ = _client(registry, lambda req: httpx.Response(status, text="nope"))

    r = client.get("/fetch-item", params={"id": "42"})
    assert r.status_code == status
    assert r.json()["detail"] == f"Service returned status: {status}"


def test_transport_failure_is_upstream_unreachable():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = _client(FakeRegistry(instances=[INSTANCE]), refuse)

    r = client.get("/fetch-item", params={"id": "42"})
    assert r.status_code == 500
    assert r.json()["detail"].startswith("Failed to fetch item")


@pytest.mark.parametrize(
    "payload",
    [b"not json", b'{"id": 42, "name": "x"}', b'{"name": "missing id"}'],
)
def test_malformed_downstream_body_is_rejected(payload):
    client, _ = _client(FakeRegistry(instances=[INSTANCE]), lambda req: httpx.Response(200, content=payload))

    r = client.get("/fetch-item", params={"id": "42"})
    assert r.status_code == 500
    assert r.json()["detail"].startswith("Failed to unmarshal response body")


def test_proxy_healthcheck_is_static():
    registry = FakeRegistry(error="registry down")
    client, transport = _client(registry, lambda req: httpx.Response(500))

    r = client.get("/healthcheck")
    assert r.status_code == 200
    assert r.json() == {"status": "OK"}
    assert registry.calls == []
    assert transport.requests == []


def test_downstream_redirect_is_followed():
    def handler(request):
        if request.url.path == "/item":
            return httpx.Response(307, headers={"Location": "http://10.0.0.5:8080/v2/item?id=42"})
        return httpx.Response(200, json={"id": "42", "name": "widget"})

    client, transport = _client(FakeRegistry(instances=[INSTANCE]), handler)

    r = client.get("/fetch-item", params={"id": "42"})
    assert r.status_code == 200
    assert r.json() == {"id": "42", "name": "widget"}
    assert [req.url.path for req in transport.requests] == ["/item", "/v2/item"]
