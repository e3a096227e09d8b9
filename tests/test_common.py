"""Tests for common utilities."""

from shorturl.common.validators import is_valid_url, is_valid_short_code
from shorturl.common.headers import (
    extract_forwarded_headers,
    get_client_ip,
    get_device_type,
    get_owner_id,
    get_referrer,
    get_user_agent,
    is_bot_request,
)
from shorturl.common.url_builder import build_base_url, build_short_url

IPHONE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148"
IPAD_UA = "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X)"
ANDROID_TABLET_UA = "Mozilla/5.0 (Linux; Android 13; SM-X700)"
DESKTOP_UA = "Mozilla/5.0 (X11; Linux x86_64) Firefox/125.0"
GOOGLEBOT_UA = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"


class TestValidators:
    """Test validation utilities."""

    def test_valid_urls(self):
        assert is_valid_url("https://example.com")[0]
        assert is_valid_url("http://example.com/path")[0]
        assert is_valid_url("https://sub.example.com:8080/path?query=value")[0]

    def test_invalid_urls(self):
        valid, error = is_valid_url("")
        assert not valid
        assert "required" in error.lower()

        valid, _ = is_valid_url("not-a-url")
        assert not valid

        valid, error = is_valid_url("ftp://example.com")
        assert not valid
        assert "http" in error.lower()

        valid, _ = is_valid_url("https://")
        assert not valid

        valid, _ = is_valid_url("https://example.com:99999/")
        assert not valid

        valid, _ = is_valid_url("https://exa mple.com")
        assert not valid

        valid, error = is_valid_url("https://example.com/" + "a" * 2048)
        assert not valid
        assert "too long" in error

    def test_valid_short_codes(self):
        assert is_valid_short_code("abc")[0]
        assert is_valid_short_code("abc123")[0]
        assert is_valid_short_code("test-code")[0]
        assert is_valid_short_code("test_code")[0]
        assert is_valid_short_code("a" * 20)[0]

    def test_invalid_short_codes(self):
        valid, error = is_valid_short_code("ab")
        assert not valid
        assert "3-20" in error

        valid, error = is_valid_short_code("a" * 21)
        assert not valid
        assert "3-20" in error

        valid, _ = is_valid_short_code("abc@123")
        assert not valid

        valid, error = is_valid_short_code("api")
        assert not valid
        assert "reserved" in error.lower()

        valid, _ = is_valid_short_code("ShortURL")
        assert not valid


class TestHeaders:
    """Test header utilities."""

    def test_extract_forwarded_headers(self):
        headers = {
            "X-Forwarded-Proto": "https",
            "X-Forwarded-Host": "example.com",
            "X-Forwarded-For": "1.2.3.4",
        }

        result = extract_forwarded_headers(headers)
        assert result["forwarded_proto"] == "https"
        assert result["forwarded_host"] == "example.com"
        assert result["forwarded_for"] == "1.2.3.4"

    def test_build_base_url_from_headers(self):
        headers = {
            "X-Forwarded-Proto": "https",
            "X-Forwarded-Host": "example.com",
        }

        assert build_base_url(headers=headers, fallback_base_url="http://localhost:9200") == "https://example.com"

    def test_build_base_url_from_request(self):
        base_url = build_base_url(
            headers={},
            fallback_base_url="http://localhost:9200",
            request_scheme="http",
            request_host="sho.rt",
        )
        assert base_url == "http://sho.rt"

    def test_build_base_url_fallback(self):
        assert build_base_url(headers={}, fallback_base_url="http://localhost:9200/") == "http://localhost:9200"

    def test_client_ip_prefers_first_forwarded_hop(self):
        headers = {"X-Forwarded-For": "198.51.100.4, 10.0.0.1"}
        assert get_client_ip(headers, "10.0.0.2") == "198.51.100.4"

    def test_client_ip_falls_back_to_peer_then_default(self):
        assert get_client_ip({}, "10.0.0.2") == "10.0.0.2"
        assert get_client_ip({}, None) == "0.0.0.0"

    def test_user_agent_and_referrer(self):
        assert get_user_agent({"User-Agent": DESKTOP_UA}) == DESKTOP_UA
        assert get_user_agent({}) == "unknown"
        assert get_referrer({"Referer": "https://news.ycombinator.com/"}) == "https://news.ycombinator.com/"
        assert get_referrer({"Origin": "https://example.org"}) == "https://example.org"
        assert get_referrer({}) is None

    def test_owner_id(self):
        assert get_owner_id({"x-owner-id": " alice "}, "X-Owner-Id") == "alice"
        assert get_owner_id({"x-owner-id": "  "}, "X-Owner-Id") is None
        assert get_owner_id({}, "X-Owner-Id") is None

    def test_bot_detection(self):
        assert is_bot_request(GOOGLEBOT_UA)
        assert not is_bot_request(DESKTOP_UA)
        assert not is_bot_request(None)

    def test_device_type(self):
        assert get_device_type(IPHONE_UA) == "mobile"
        assert get_device_type(IPAD_UA) == "tablet"
        assert get_device_type(ANDROID_TABLET_UA) == "tablet"
        assert get_device_type(DESKTOP_UA) == "desktop"
        assert get_device_type(GOOGLEBOT_UA) == "bot"
        assert get_device_type("unknown") == "unknown"
        assert get_device_type(None) == "unknown"


class TestURLBuilder:
    """Test URL building utilities."""

    def test_build_short_url_no_prefix(self):
        url = build_short_url(short_code="abc123", base_url="https://example.com", path_prefix="")
        assert url == "https://example.com/abc123"

    def test_build_short_url_with_prefix(self):
        url = build_short_url(short_code="abc123", base_url="https://example.com/", path_prefix="/s/")
        assert url == "https://example.com/s/abc123"
