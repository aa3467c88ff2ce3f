"""Tests for redaction module."""
from txscraper.parse.redact import redact_cookie, redact_dict, redact_json, redact_string


def test_redact_string_session_cookie():
    """Test redaction of session cookies in a Cookie header."""
    text = "Cookie: session-id=123-456; session-token=abcDEF123==; i18n-prefs=USD"
    result = redact_string(text)
    assert "abcDEF123" not in result
    assert "123-456" not in result
    assert "session-token=[REDACTED]" in result
    assert "i18n-prefs=USD" in result


def test_redact_string_bearer():
    """Test redaction of bearer tokens."""
    text = 'Authorization: "Bearer eyJhbGciOi.secret"'
    result = redact_string(text)
    assert "[REDACTED]" in result
    assert "eyJhbGciOi.secret" not in result


def test_redact_string_access_token():
    """Test redaction of access_token values."""
    result = redact_string('{"access_token": "tok-789"}')
    assert "tok-789" not in result


def test_redact_dict_secret_keys():
    """Test redaction of secret keys in dict."""
    data = {"at-main": "Atza|secret", "page": {"title": "Your Orders", "password": "hunter2"}}
    result = redact_dict(data)
    assert result["at-main"] == "[REDACTED]"
    assert result["page"]["password"] == "[REDACTED]"
    assert result["page"]["title"] == "Your Orders"


def test_redact_cookie():
    """Test Playwright cookie dicts are masked only for session cookies."""
    secret = {"name": "x-main", "value": "abc", "domain": ".amazon.com"}
    harmless = {"name": "i18n-prefs", "value": "USD", "domain": ".amazon.com"}
    assert redact_cookie(secret)["value"] == "[REDACTED]"
    assert redact_cookie(secret)["domain"] == ".amazon.com"
    assert redact_cookie(harmless) == harmless
    assert secret["value"] == "abc"


def test_redact_json_preserves_structure():
    """Test that redaction preserves JSON structure."""
    data = {
        "record": {"orderId": "111-0000000-0000001", "total": 12.5, "syntheticId": False},
        "strategies": {"date": "text-regex", "status": None},
        "notes": ["Cookie: ubid-main=130-0000000-0000000"],
    }
    result = redact_json(data)
    assert result["record"] == data["record"]
    assert result["strategies"] == data["strategies"]
    assert result["notes"] == ["Cookie: ubid-main=[REDACTED]"]
