"""Extract line items from an order details page."""
import logging
import re
from typing import Any, Optional
from urllib.parse import urljoin

from selectolax.parser import Node

from txscraper.parse.models import Item
from txscraper.parse.patterns import normalize_space, parse_currency
from txscraper.parse.strategies import Document

logger = logging.getLogger(__name__)

ITEM_ROW_SELECTORS = [
    "[data-component='purchasedItems'] .a-fixed-left-grid",
    ".yohtmlc-item",
    ".order-item",
    ".item-row",
    "[data-testid='order-item']",
]

# Per-field selectors, tried in order inside one item row
ITEM_FIELD_SELECTORS = {
    "name": [
        "[data-component='itemTitle']",
        ".yohtmlc-product-title",
        ".product-title",
        ".item-title",
        "a[href*='/dp/']",
        "a[href*='/gp/product/']",
    ],
    "price": [
        "[data-component='unitPrice'] .a-offscreen",
        "[data-component='unitPrice']",
        ".a-color-price",
        ".item-price",
        ".price",
        ".cost",
    ],
    "seller": [
        "[data-component='orderedMerchant']",
        ".a-size-small.a-color-secondary",
        ".seller",
        "[class*='seller']",
    ],
    "quantity": [
        ".item-view-qty",
        ".product-image__qty",
        "[data-component='quantity']",
        ".quantity",
    ],
}

PRODUCT_LINK_SELECTORS = ["a[href*='/dp/']", "a[href*='/gp/product/']"]

SOLD_BY_RE = re.compile(r"Sold by:?\s*(.+)", re.IGNORECASE)
QTY_RE = re.compile(r"(\d+)")


def find_item_rows(doc: Document) -> list[Node]:
    """Item rows from the first selector that matches anything."""
    for selector in ITEM_ROW_SELECTORS:
        rows = doc.css(selector)
        if rows:
            return rows
    return []


def _first_text(row: Node, selectors: list[str]) -> Optional[str]:
    for selector in selectors:
        node = row.css_first(selector)
        if node is not None:
            text = normalize_space(node.text(separator=" "))
            if text:
                return text
    return None


def _first_attr(row: Node, selectors: list[str], attr: str) -> Optional[str]:
    for selector in selectors:
        node = row.css_first(selector)
        if node is not None:
            value = node.attributes.get(attr)
            if value:
                return value.strip()
    return None


def extract_item(row: Node, base_url: str = "") -> Optional[Item]:
    """Build an Item from one row; None when neither name nor price is present."""
    fields: dict[str, Any] = {}

    name = _first_text(row, ITEM_FIELD_SELECTORS["name"])
    if name:
        fields["name"] = name

    price = parse_currency(_first_text(row, ITEM_FIELD_SELECTORS["price"]))
    if price is not None:
        fields["price"] = price

    if not fields:
        return None

    image_url = _first_attr(row, ["img"], "src")
    if image_url:
        fields["image_url"] = image_url

    product_href = _first_attr(row, PRODUCT_LINK_SELECTORS, "href")
    if product_href:
        fields["product_url"] = urljoin(base_url, product_href) if base_url else product_href

    seller = _first_text(row, ITEM_FIELD_SELECTORS["seller"])
    if seller:
        sold_by = SOLD_BY_RE.search(seller)
        fields["seller"] = normalize_space(sold_by.group(1)) if sold_by else seller

    quantity_text = _first_text(row, ITEM_FIELD_SELECTORS["quantity"])
    if quantity_text:
        qty = QTY_RE.search(quantity_text)
        if qty and int(qty.group(1)) > 0:
            fields["quantity"] = int(qty.group(1))

    return Item(**fields)


def extract_items(doc: Document, base_url: str = "") -> list[Item]:
    """Extract all items; a row that fails is dropped, not fatal."""
    items = []
    for index, row in enumerate(find_item_rows(doc)):
        try:
            item = extract_item(row, base_url)
        except Exception as e:
            logger.debug(f"Dropping item row {index}: {e}")
            continue
        if item is not None:
            items.append(item)
    return items
