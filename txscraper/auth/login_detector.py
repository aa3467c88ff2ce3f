"""Detect sign-in, MFA and challenge pages."""
import re
import logging

logger = logging.getLogger(__name__)

# URL fragments of the sign-in flow (password, 2FA, captcha, passkey claim)
AUTH_URL_MARKERS = ("ap/signin", "ap/mfa", "ap/cvf", "/ax/claim", "challenge")

PAYMENTS_URL_MARKERS = ("yourpayments", "your-account")

SIGNIN_FORM_SELECTORS = [
    "#ap_email",
    "input[name='email']",
    "input[type='email']",
    "#ap_password",
    "#signInSubmit",
]


def is_auth_url(url: str | None) -> bool:
    """True when the URL belongs to the sign-in / verification flow."""
    if not url:
        return False
    url_lower = url.lower()
    return any(marker in url_lower for marker in AUTH_URL_MARKERS)


def is_payments_url(url: str | None) -> bool:
    if not url:
        return False
    url_lower = url.lower()
    return any(marker in url_lower for marker in PAYMENTS_URL_MARKERS)


def is_login_page(html_content: str | None, url: str | None) -> bool:
    """
    Detect if a rendered page asks the user to authenticate.
    Returns True if at least one condition is met:
    - the URL is part of the sign-in flow
    - the HTML carries the sign-in form fields
    - the HTML shows several weak sign-in indicators
    """
    if is_auth_url(url):
        return True

    if not html_content:
        return False

    html_lower = html_content.lower()

    # Strong indicators
    login_indicators = [
        r'id=["\']ap_email["\']',
        r'id=["\']ap_password["\']',
        r'id=["\']signinsubmit["\']',
        r'name=["\']signin["\']',
        r'<title[^>]*>[^<]*sign[ -]in[^<]*</title>',
    ]

    for pattern in login_indicators:
        if re.search(pattern, html_lower):
            return True

    # Weak indicators (need multiple)
    weak_indicators = [
        "sign in",
        "two-step verification",
        "enter the characters you see",
        "forgot your password",
    ]

    count = sum(1 for indicator in weak_indicators if indicator in html_lower)
    return count >= 2
