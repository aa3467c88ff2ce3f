"""Tests for transaction row extraction."""
from txscraper.parse.rows import extract_refs, find_rows

BASE_URL = "https://www.amazon.com"
PATTERN = "https://www.amazon.com/gp/your-account/order-details?orderID={order_id}"


def _row(inner: str) -> str:
    return f'<div class="apx-transactions-line-item-component-container">{inner}</div>'


def _page(*rows: str) -> str:
    return f"<html><body><div class='apx-transactions'>{''.join(rows)}</div></body></html>"


def test_order_id_query_param_in_href():
    """A row whose only id evidence is an orderID= href yields that id."""
    html = _page(
        _row(
            '<span>Visa ****1234</span>'
            '<a href="/gp/css/summary/edit.html?orderID=113-1234567-1234567&ref=ppx">Order details</a>'
            '<span>-$25.99</span>'
        )
    )
    refs = extract_refs(html, BASE_URL, PATTERN)

    assert len(refs) == 1
    assert refs[0].id == "113-1234567-1234567"
    assert refs[0].detail_url == (
        "https://www.amazon.com/gp/css/summary/edit.html?orderID=113-1234567-1234567&ref=ppx"
    )
    assert refs[0].raw_amount == 25.99
    assert refs[0].synthetic_id is False


def test_id_shaped_token_in_row_text():
    """Without a link, an id-shaped token in the text builds the detail URL from the pattern."""
    html = _page(_row("<span>Order #D01-7654321-1234567</span><span>$8.00</span>"))
    refs = extract_refs(html, BASE_URL, PATTERN)

    assert refs[0].id == "D01-7654321-1234567"
    assert refs[0].detail_url == PATTERN.format(order_id="D01-7654321-1234567")


def test_id_shaped_token_in_other_link():
    """An id-shaped token inside an unrelated link href is picked up."""
    html = _page(_row('<a href="/returns/center/112-0000001-0000002/">Return</a><span>$3.50</span>'))
    refs = extract_refs(html, BASE_URL, PATTERN)

    assert refs[0].id == "112-0000001-0000002"


def test_amount_only_row_gets_synthetic_id():
    """A row with an amount but no id evidence gets a flagged synthetic id."""
    html = _page(_row("<span>AMZN Mktp US</span><span>$1,234.56</span>"))
    refs = extract_refs(html, BASE_URL, PATTERN)

    assert len(refs) == 1
    assert refs[0].synthetic_id is True
    assert refs[0].id.startswith("unknown-")
    assert refs[0].detail_url == ""
    assert refs[0].raw_amount == 1234.56


def test_synthetic_ids_are_unique():
    """Two unidentifiable rows never share an id."""
    html = _page(_row("<span>$5.00</span>"), _row("<span>$5.00</span>"))
    refs = extract_refs(html, BASE_URL, PATTERN)

    assert len(refs) == 2
    assert refs[0].id != refs[1].id


def test_row_without_id_or_amount_yields_nothing():
    """A row with neither an id nor a positive amount is skipped."""
    html = _page(_row("<span>Pending</span>"), _row("<span>$0.00</span>"))
    assert extract_refs(html, BASE_URL, PATTERN) == []


def test_rows_keep_document_order():
    """Refs come back in row order."""
    html = _page(
        _row("<span>Order #111-1111111-1111111</span><span>$1.00</span>"),
        _row("<span>Order #222-2222222-2222222</span><span>$2.00</span>"),
    )
    refs = extract_refs(html, BASE_URL, PATTERN)

    assert [ref.id for ref in refs] == ["111-1111111-1111111", "222-2222222-2222222"]


def test_find_rows_empty_page():
    """No rows on a page without the row marker."""
    assert find_rows("<html><body><p>No transactions</p></body></html>") == []
    assert find_rows("") == []
