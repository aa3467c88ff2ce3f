"""Text patterns shared by the row and detail extractors."""
import re
from typing import Optional

# Order ids: 3 digits (or D + 2 digits), then 7 and 7 digits
ORDER_ID_RE = re.compile(r"\b([0-9D]\d{2}-\d{7}-\d{7})\b")
ORDER_ID_PARAM_RE = re.compile(r"[?&]orderI[Dd]=([^&#]+)")

# $12.50, $1,234.56, $7
CURRENCY_RE = re.compile(r"\$\s?(\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)")

# Ordered: "Jul 2, 2024" / "July 2, 2024", then "2/7/2024", then "2024-07-02"
DATE_PATTERNS = [
    re.compile(
        r"\b((?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.? \d{1,2}, \d{4})\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(\d{1,2}/\d{1,2}/\d{4})\b"),
    re.compile(r"\b(\d{4}-\d{2}-\d{2})\b"),
]

TRACKING_PATTERNS = [
    re.compile(r"Tracking\s+(?:ID|number)\s*:?\s*([A-Z0-9]{8,40})", re.IGNORECASE),
    re.compile(r"\b(1Z[0-9A-Z]{16})\b"),
    re.compile(r"\b(TBA\d{9,15})\b"),
]

PAYMENT_PATTERNS = [
    re.compile(
        r"((?:Visa|Mastercard|MasterCard|American Express|Amex|Discover|Amazon Visa)[^\n$]{0,20}?\d{4})",
    ),
    re.compile(r"((?:ending|ending in)\s+\d{4})", re.IGNORECASE),
]

WHITESPACE_RE = re.compile(r"\s+")


def normalize_space(text: Optional[str]) -> str:
    """Collapse runs of whitespace and strip."""
    if not text:
        return ""
    return WHITESPACE_RE.sub(" ", text).strip()


def parse_currency(text: Optional[str]) -> Optional[float]:
    """Return the first $ amount in text, or None."""
    if not text:
        return None
    match = CURRENCY_RE.search(text)
    if not match:
        return None
    try:
        return float(match.group(1).replace(",", ""))
    except ValueError:
        return None


def find_date(text: Optional[str]) -> Optional[str]:
    """Return the first date in text, trying each format in order."""
    if not text:
        return None
    for pattern in DATE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def find_order_id(text: Optional[str]) -> Optional[str]:
    """Return the first id-shaped token in text."""
    if not text:
        return None
    match = ORDER_ID_RE.search(text)
    return match.group(1) if match else None


def order_id_from_href(href: Optional[str]) -> Optional[str]:
    """Extract the orderID query parameter from a link target."""
    if not href:
        return None
    match = ORDER_ID_PARAM_RE.search(href)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def first_match(patterns: list[re.Pattern], text: Optional[str]) -> Optional[str]:
    """Return group 1 of the first pattern that matches."""
    if not text:
        return None
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return normalize_space(match.group(1))
    return None
