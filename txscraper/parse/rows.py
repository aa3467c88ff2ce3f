"""Extract RecordRefs from transaction list rows."""
import logging
import uuid
from typing import Optional
from urllib.parse import urljoin

from selectolax.parser import HTMLParser, Node

from txscraper.parse.models import RecordRef
from txscraper.parse.patterns import (
    find_order_id,
    normalize_space,
    order_id_from_href,
    parse_currency,
)

logger = logging.getLogger(__name__)

ROW_SELECTOR = ".apx-transactions-line-item-component-container"
ORDER_LINK_SELECTOR = "a[href*='orderID'], a[href*='order'], a[href*='gp/your-account']"


def synthesize_id() -> str:
    """Fallback id, unique per extraction attempt."""
    return f"unknown-{uuid.uuid4().hex[:12]}"


def find_rows(html_content: str) -> list[Node]:
    """All transaction row elements on a rendered list page."""
    if not html_content:
        return []
    return HTMLParser(html_content).css(ROW_SELECTOR)


def _id_from_query_param(row: Node, base_url: str) -> Optional[tuple[str, str]]:
    for link in row.css(ORDER_LINK_SELECTOR):
        href = link.attributes.get("href") or ""
        order_id = order_id_from_href(href)
        if order_id:
            return order_id, urljoin(base_url, href)
    return None


def _id_from_shape(row: Node, row_text: str, order_url_pattern: str) -> Optional[tuple[str, str]]:
    for link in row.css("a[href]"):
        order_id = find_order_id(link.attributes.get("href") or "")
        if order_id:
            return order_id, order_url_pattern.format(order_id=order_id)
    order_id = find_order_id(row_text)
    if order_id:
        return order_id, order_url_pattern.format(order_id=order_id)
    return None


def extract_ref_from_row(row: Node, base_url: str, order_url_pattern: str) -> Optional[RecordRef]:
    """Three-tier fallback: orderID link, id-shaped token, then amount with synthetic id."""
    row_text = normalize_space(row.text(separator=" "))
    amount = parse_currency(row_text) or 0.0

    found = _id_from_query_param(row, base_url)
    if found is None:
        found = _id_from_shape(row, row_text, order_url_pattern)
    if found is not None:
        order_id, detail_url = found
        return RecordRef(id=order_id, detail_url=detail_url, raw_amount=amount)

    if amount > 0:
        return RecordRef(id=synthesize_id(), detail_url="", raw_amount=amount, synthetic_id=True)

    logger.debug(f"Row yielded no id and no amount: {row_text[:120]}")
    return None


def extract_refs(html_content: str, base_url: str, order_url_pattern: str) -> list[RecordRef]:
    """RecordRefs for every row of one list page, in document order."""
    refs = []
    for index, row in enumerate(find_rows(html_content)):
        try:
            ref = extract_ref_from_row(row, base_url, order_url_pattern)
        except Exception as e:
            logger.warning(f"Error extracting row {index}: {e}")
            continue
        if ref is not None:
            refs.append(ref)
    return refs
