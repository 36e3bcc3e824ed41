from starlette.requests import Request

from accesscheck.platform.utils.device import get_client_ip


def _request(headers=None, client=("192.0.2.10", 5000)):
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/v1/check",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_prefers_first_forwarded_hop():
    assert get_client_ip(_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})) == "203.0.113.7"


def test_falls_back_to_real_ip():
    assert get_client_ip(_request({"X-Real-IP": " 198.51.100.2 "})) == "198.51.100.2"


def test_falls_back_to_socket_peer():
    assert get_client_ip(_request()) == "192.0.2.10"


def test_unknown_without_any_source():
    assert get_client_ip(_request(client=None)) == "unknown"
