"""Tests for screenshot capture."""
import asyncio

from fakes import FakeElement, FakePage

from txscraper.store.artifacts import REFUND_LABEL_SELECTOR, ArtifactCache


def test_capture_is_idempotent(tmp_path):
    """Capturing twice to the same path renders only once; both calls succeed."""
    cache = ArtifactCache(tmp_path / "screenshots")
    page = FakePage()
    target = cache.path_for("113-1234567-1234567")

    async def scenario():
        return await cache.capture(page, target), await cache.capture(page, target)

    first, second = asyncio.run(scenario())

    assert first is True and second is True
    assert len(page.captures) == 1
    assert target.name == "order-113-1234567-1234567.png"
    assert target.exists()


def test_existing_file_skips_capture(tmp_path):
    """A file left by an earlier run counts as captured."""
    cache = ArtifactCache(tmp_path)
    target = cache.path_for("113-0000000-0000001")
    target.write_bytes(b"old")
    page = FakePage(screenshot_fails=True)

    assert asyncio.run(cache.capture(page, target)) is True
    assert page.captures == []
    assert target.read_bytes() == b"old"


def test_smart_capture_scrolls_hovers_and_shoots_container(tmp_path):
    """A tall order container is scrolled into view, the refund label hovered, and the container captured."""
    page = FakePage()
    container = FakeElement(page, box={"x": 0, "y": 600, "width": 900, "height": 500})
    label = FakeElement(page)
    page.elements = {"#orderDetails": container, REFUND_LABEL_SELECTOR: label}
    cache = ArtifactCache(tmp_path)

    assert asyncio.run(cache.capture(page, cache.path_for("113-0000000-0000002"))) is True
    assert container.scrolled == 1
    assert label.hovered == 1
    assert [kind for kind, _ in page.captures] == ["element"]


def test_falls_back_to_viewport(tmp_path):
    """If the container capture fails, a plain viewport screenshot is taken."""
    page = FakePage()
    page.elements = {"#orderDetails": FakeElement(page, fail=True)}
    cache = ArtifactCache(tmp_path)

    assert asyncio.run(cache.capture(page, cache.path_for("113-0000000-0000003"))) is True
    assert [kind for kind, _ in page.captures] == ["page"]


def test_capture_failure_reports_false(tmp_path):
    """When every capture path fails, capture returns False and leaves no file."""
    page = FakePage(screenshot_fails=True)
    cache = ArtifactCache(tmp_path)
    target = cache.path_for("113-0000000-0000004")

    assert asyncio.run(cache.capture(page, target)) is False
    assert not target.exists()
