"""Selector-fallback engine.

A field is described by a :class:`FieldChain`: an ordered list of tagged,
pure strategies ``(Document) -> value | None``. The first strategy that
returns a non-empty value wins. When every strategy misses, the chain's
default is used (a soft miss) and the caller carries on with the next field.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, TypeVar

from selectolax.parser import HTMLParser, Node

from txscraper.parse.patterns import normalize_space

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Document:
    """Parsed detail page with cached plain text."""

    def __init__(self, html_content: str):
        self.html = html_content or ""
        self.parser = HTMLParser(self.html)
        self._text: Optional[str] = None

    @property
    def text(self) -> str:
        """Visible body text, whitespace-normalized (scripts/styles removed)."""
        if self._text is None:
            body = self.parser.body
            if body is None:
                self._text = ""
            else:
                for node in body.css("script, style, noscript"):
                    node.decompose()
                self._text = normalize_space(body.text(separator=" "))
        return self._text

    def css_first(self, selector: str) -> Optional[Node]:
        return self.parser.css_first(selector)

    def css(self, selector: str) -> list[Node]:
        return self.parser.css(selector)


@dataclass(frozen=True)
class Strategy(Generic[T]):
    """One tagged extraction attempt."""

    tag: str
    fn: Callable[[Document], Optional[T]]


@dataclass
class Resolution(Generic[T]):
    value: T
    tag: Optional[str]

    @property
    def soft_miss(self) -> bool:
        return self.tag is None


@dataclass
class FieldChain(Generic[T]):
    name: str
    strategies: list[Strategy[T]]
    default: Any = None
    default_factory: Optional[Callable[[], T]] = field(default=None)

    def resolve(self, doc: Document) -> Resolution[T]:
        """Run strategies in order; never raises."""
        for strategy in self.strategies:
            try:
                value = strategy.fn(doc)
            except Exception as e:
                logger.debug(f"[{self.name}] strategy {strategy.tag} raised: {e}")
                continue
            if _is_present(value):
                return Resolution(value=value, tag=strategy.tag)
        logger.debug(f"[{self.name}] soft miss, using default")
        default = self.default_factory() if self.default_factory else self.default
        return Resolution(value=default, tag=None)


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def selector_text(*selectors: str) -> Callable[[Document], Optional[str]]:
    """Strategy: text of the first element matching any selector, in order."""

    def run(doc: Document) -> Optional[str]:
        for selector in selectors:
            node = doc.css_first(selector)
            if node is not None:
                text = normalize_space(node.text(separator=" "))
                if text:
                    return text
        return None

    return run


def text_regex(search: Callable[[str], Optional[T]]) -> Callable[[Document], Optional[T]]:
    """Strategy: apply a text search function to the full document text."""

    def run(doc: Document) -> Optional[T]:
        return search(doc.text)

    return run


def resolve_all(doc: Document, chains: list[FieldChain]) -> dict[str, Resolution]:
    """Resolve every chain independently."""
    return {chain.name: chain.resolve(doc) for chain in chains}
