"""Refund total extraction.

The refund label and its amount are laid out differently between render
variants (inline row, two-column grid, tooltip popover), so the amount is
searched for relative to the label: first in the full text of the element
owning the label text, then in that element's siblings.
"""
import logging
import re
from typing import Optional

from selectolax.parser import Node

from txscraper.parse.patterns import CURRENCY_RE, normalize_space, parse_currency
from txscraper.parse.strategies import Document, FieldChain, Strategy

logger = logging.getLogger(__name__)

REFUND_LABEL = "Refund Total"

REFUND_TEXT_RE = re.compile(
    r"Refund\s+Total\b[^$]{0,120}?" + CURRENCY_RE.pattern,
    re.IGNORECASE,
)


def find_label_nodes(doc: Document, label: str = REFUND_LABEL) -> list[Node]:
    """Elements owning a text node whose trimmed content equals the label."""
    wanted = label.lower()
    found = []
    body = doc.parser.body
    if body is None:
        return found
    for node in body.css("*"):
        own_text = normalize_space(node.text(deep=False)).rstrip(":").strip().lower()
        if own_text == wanted:
            found.append(node)
    return found


def _parent_text_amount(doc: Document) -> Optional[float]:
    for label_node in find_label_nodes(doc):
        amount = parse_currency(normalize_space(label_node.text(separator=" ")))
        if amount is not None:
            return amount
    return None


def _sibling_text_amount(doc: Document) -> Optional[float]:
    for label_node in find_label_nodes(doc):
        parent = label_node.parent
        if parent is None:
            continue
        sibling_texts = [
            sibling.text(separator=" ")
            for sibling in parent.iter(include_text=False)
            if sibling.mem_id != label_node.mem_id
        ]
        amount = parse_currency(normalize_space(" ".join(sibling_texts)))
        if amount is not None:
            return amount
    return None


def _document_text_amount(doc: Document) -> Optional[float]:
    match = REFUND_TEXT_RE.search(doc.text)
    if not match:
        return None
    return float(match.group(1).replace(",", ""))


REFUND_CHAIN: FieldChain[float] = FieldChain(
    name="refund_amount",
    strategies=[
        Strategy("label-parent", _parent_text_amount),
        Strategy("label-siblings", _sibling_text_amount),
        Strategy("text-regex", _document_text_amount),
    ],
    default=0.0,
)


def extract_refund_amount(doc: Document) -> float:
    """Refund total of the order, 0.0 when none is shown."""
    return REFUND_CHAIN.resolve(doc).value
