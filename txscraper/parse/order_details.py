"""Extract a DetailedRecord from a rendered order details page."""
import logging
import re
from typing import Optional

from txscraper.parse.items import extract_items
from txscraper.parse.models import Address, DetailedRecord, RecordRef
from txscraper.parse.patterns import (
    PAYMENT_PATTERNS,
    TRACKING_PATTERNS,
    find_date,
    first_match,
    normalize_space,
    parse_currency,
)
from txscraper.parse.refund import REFUND_CHAIN
from txscraper.parse.strategies import (
    Document,
    FieldChain,
    Resolution,
    Strategy,
    resolve_all,
    selector_text,
    text_regex,
)

logger = logging.getLogger(__name__)

DATE_SELECTORS = [
    "[data-component='orderDate']",
    ".order-date-invoice-item",
    ".order-date",
    "[data-testid='order-date']",
    "time",
]
TOTAL_SELECTORS = [
    "[data-component='chargeSummary'] .od-line-item-row:last-child .a-text-right",
    "#od-subtotals .a-text-bold + .a-text-right",
    ".grand-total",
    ".order-total",
]
STATUS_SELECTORS = [
    ".yohtmlc-shipment-status-primaryText",
    ".od-status-message",
    ".order-status",
    ".delivery-status",
    "[data-testid='order-status']",
]
ADDRESS_SELECTORS = [
    "[data-component='shippingAddress'] ul",
    "[data-component='shippingAddress']",
    ".displayAddressDiv",
    ".shipping-address",
    ".delivery-address",
]
RECIPIENT_SELECTORS = [
    ".displayAddressFullName",
    "[data-component='shippingAddress'] li:first-child",
    ".recipient-name",
]
PAYMENT_SELECTORS = [
    "[data-component='viewPaymentPlanSummaryWidget'] .pmts-payments-instrument-detail-box-paystationpaymentmethod",
    ".pmts-payments-instrument-detail-box-paystationpaymentmethod",
    ".payment-method",
    ".payment-info",
]
TRACKING_SELECTORS = [
    ".pt-delivery-card-trackingId",
    ".tracking-id",
    "[data-testid='tracking-number']",
]

GRAND_TOTAL_RE = re.compile(r"(?:Grand Total|Order Total)\s*:?\s*(\$\s?[\d,]+(?:\.\d{1,2})?)", re.IGNORECASE)
STATUS_RE = re.compile(
    r"\b((?:Delivered|Arriving|Shipped|Refunded|Return complete|Cancelled|Canceled)"
    r"(?: [A-Z][a-z]+ \d{1,2})?)\b"
)
SHIP_TO_RE = re.compile(
    r"(?:Shipping Address|Ship to)\s*:?\s*(.{10,200}?)\s+(?:Payment [Mm]ethod|Order Summary|Payment information)",
)
CITY_STATE_ZIP_RE = re.compile(r"^(?P<city>[^,]+),\s*(?P<state>[A-Z]{2}|[A-Za-z .]+?)\s+(?P<zip>\d{5}(?:-\d{4})?)\b")
TRACKING_LABEL_RE = re.compile(r"Tracking\s+(?:ID|number)\s*:?\s*", re.IGNORECASE)


def _address_lines(doc: Document) -> list[str]:
    for selector in ADDRESS_SELECTORS:
        node = doc.css_first(selector)
        if node is None:
            continue
        lines = [normalize_space(line) for line in node.text(separator="\n").split("\n")]
        lines = [line for line in lines if line]
        if lines:
            return lines
    return []


def parse_address(lines: list[str]) -> Address:
    """Address from display lines (name, street..., "City, ST 12345", country)."""
    if not lines:
        return Address()
    address = Address(full=", ".join(lines))
    for index, line in enumerate(lines):
        match = CITY_STATE_ZIP_RE.match(line)
        if match:
            street_lines = lines[1:index] if index > 1 else []
            return address.model_copy(
                update={
                    "street": ", ".join(street_lines),
                    "city": match.group("city").strip(),
                    "state": match.group("state").strip(),
                    "zip": match.group("zip"),
                }
            )
    return address


def _structural_address(doc: Document) -> Optional[Address]:
    lines = _address_lines(doc)
    return parse_address(lines) if lines else None


def _text_address(doc: Document) -> Optional[Address]:
    match = SHIP_TO_RE.search(doc.text)
    if not match:
        return None
    return Address(full=normalize_space(match.group(1)))


def _structural_date(doc: Document) -> Optional[str]:
    text = selector_text(*DATE_SELECTORS)(doc)
    if not text:
        return None
    return find_date(text) or text


def _structural_total(doc: Document) -> Optional[float]:
    return parse_currency(selector_text(*TOTAL_SELECTORS)(doc))


def _text_total(doc: Document) -> Optional[float]:
    return parse_currency(first_match([GRAND_TOTAL_RE], doc.text))


def _recipient_from_address(doc: Document) -> Optional[str]:
    lines = _address_lines(doc)
    return lines[0] if lines else None


def _structural_tracking(doc: Document) -> Optional[str]:
    text = selector_text(*TRACKING_SELECTORS)(doc)
    if not text:
        return None
    return TRACKING_LABEL_RE.sub("", text).strip() or None


DATE_CHAIN: FieldChain[str] = FieldChain(
    name="date",
    strategies=[
        Strategy("date-block", _structural_date),
        Strategy("text-regex", text_regex(find_date)),
    ],
    default="",
)

AMOUNT_CHAIN: FieldChain[float] = FieldChain(
    name="amount",
    strategies=[
        Strategy("summary-block", _structural_total),
        Strategy("text-regex", _text_total),
    ],
    default=None,
)

STATUS_CHAIN: FieldChain[str] = FieldChain(
    name="status",
    strategies=[
        Strategy("status-block", selector_text(*STATUS_SELECTORS)),
        Strategy("text-regex", text_regex(lambda text: first_match([STATUS_RE], text))),
    ],
    default="unknown",
)

ADDRESS_CHAIN: FieldChain[Address] = FieldChain(
    name="address",
    strategies=[
        Strategy("address-block", _structural_address),
        Strategy("text-regex", _text_address),
    ],
    default_factory=Address,
)

RECIPIENT_CHAIN: FieldChain[str] = FieldChain(
    name="recipient",
    strategies=[
        Strategy("recipient-block", selector_text(*RECIPIENT_SELECTORS)),
        Strategy("address-first-line", _recipient_from_address),
    ],
    default="",
)

PAYMENT_CHAIN: FieldChain[str] = FieldChain(
    name="payment_method",
    strategies=[
        Strategy("payment-block", selector_text(*PAYMENT_SELECTORS)),
        Strategy("text-regex", text_regex(lambda text: first_match(PAYMENT_PATTERNS, text))),
    ],
    default="",
)

TRACKING_CHAIN: FieldChain[str] = FieldChain(
    name="tracking_number",
    strategies=[
        Strategy("tracking-block", _structural_tracking),
        Strategy("text-regex", text_regex(lambda text: first_match(TRACKING_PATTERNS, text))),
    ],
    default="",
)

FIELD_CHAINS: list[FieldChain] = [
    DATE_CHAIN,
    AMOUNT_CHAIN,
    REFUND_CHAIN,
    STATUS_CHAIN,
    ADDRESS_CHAIN,
    RECIPIENT_CHAIN,
    PAYMENT_CHAIN,
    TRACKING_CHAIN,
]


def extract_order_fields(html_content: str) -> dict[str, Resolution]:
    """Resolve every field chain against a rendered page."""
    return resolve_all(Document(html_content), FIELD_CHAINS)


def extract_detailed_record(
    ref: RecordRef,
    html_content: str,
    artifact_path: str = "",
    base_url: str = "",
) -> DetailedRecord:
    """Build a DetailedRecord; missing fields fall back to defaults."""
    doc = Document(html_content)
    fields = resolve_all(doc, FIELD_CHAINS)

    misses = [name for name, resolution in fields.items() if resolution.soft_miss]
    if misses:
        logger.debug(f"Order {ref.id}: soft misses {misses}")

    amount = fields["amount"].value
    if amount is None:
        amount = ref.raw_amount

    try:
        items = extract_items(doc, base_url)
    except Exception as e:
        logger.warning(f"Order {ref.id}: item extraction failed: {e}")
        items = []

    return DetailedRecord(
        id=ref.id,
        date=fields["date"].value,
        amount=amount,
        refund_amount=fields["refund_amount"].value,
        status=fields["status"].value,
        recipient=fields["recipient"].value,
        address=fields["address"].value,
        payment_method=fields["payment_method"].value,
        tracking_number=fields["tracking_number"].value,
        items=items,
        artifact_path=artifact_path,
        detail_url=ref.detail_url,
        synthetic_id=ref.synthetic_id,
    )
