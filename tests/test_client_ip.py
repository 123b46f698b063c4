from fileshare.core.client_ip import LOOPBACK_PLACEHOLDER, resolve_client_ip
from fileshare.core.config import DEFAULT_TRUSTED_IP_HEADERS


def test_cdn_header_wins_over_proxy_headers():
    headers = {
        "cf-connecting-ip": "203.0.113.7",
        "x-real-ip": "10.0.0.2",
        "x-forwarded-for": "10.0.0.3",
    }
    assert resolve_client_ip(headers, DEFAULT_TRUSTED_IP_HEADERS, "10.0.0.9") == "203.0.113.7"


def test_forwarded_for_uses_first_hop():
    headers = {"x-forwarded-for": " 198.51.100.4 , 10.0.0.1, 10.0.0.2"}
    assert resolve_client_ip(headers, DEFAULT_TRUSTED_IP_HEADERS) == "198.51.100.4"


def test_empty_headers_are_skipped():
    headers = {"cf-connecting-ip": "", "x-real-ip": "192.0.2.10"}
    assert resolve_client_ip(headers, DEFAULT_TRUSTED_IP_HEADERS) == "192.0.2.10"


def test_falls_back_to_peer_then_loopback():
    assert resolve_client_ip({}, DEFAULT_TRUSTED_IP_HEADERS, "192.0.2.33") == "192.0.2.33"
    assert resolve_client_ip({}, DEFAULT_TRUSTED_IP_HEADERS, None) == LOOPBACK_PLACEHOLDER


def test_untrusted_headers_are_ignored():
    headers = {"cf-connecting-ip": "203.0.113.7", "x-forwarded-for": "198.51.100.4"}
    assert resolve_client_ip(headers, ["x-forwarded-for"], "10.0.0.9") == "198.51.100.4"
    assert resolve_client_ip(headers, [], "10.0.0.9") == "10.0.0.9"


def test_unparsable_header_values_fall_through():
    headers = {
        "cf-connecting-ip": "not-an-ip",
        "x-real-ip": "1" * 60,
        "x-forwarded-for": "198.51.100.4",
    }
    assert resolve_client_ip(headers, DEFAULT_TRUSTED_IP_HEADERS, "10.0.0.9") == "198.51.100.4"


def test_spoofed_headers_only_fall_back_to_peer():
    headers = {"x-forwarded-for": "<script>, 198.51.100.4"}
    assert resolve_client_ip(headers, DEFAULT_TRUSTED_IP_HEADERS, "10.0.0.9") == "10.0.0.9"


def test_ipv6_addresses_are_normalized():
    headers = {"x-real-ip": "2001:DB8:0:0:0:0:0:1"}
    assert resolve_client_ip(headers, DEFAULT_TRUSTED_IP_HEADERS) == "2001:db8::1"
