"""
Field Resolvers for the Instant Quote extractor.

Each resolver is an ordered list of strategies over the parsed page and
its structured-data candidates. The first strategy that yields a value
wins; there is no scoring or voting.
"""
import re
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple
from urllib.parse import unquote, urlparse

from bs4 import Tag

from instant_quote.layers.document import ProductDocument, normalize_whitespace
from instant_quote.layers.pricing import currency_from_marker, find_price_in_text, parse_price
from instant_quote.models.product import StructuredCandidate
from instant_quote.utils.logger import LayerLogger


Strategy = Callable[[ProductDocument, List[StructuredCandidate]], Any]

# Path segments that name a route, not a product
SLUG_SKIP_SEGMENTS = {"dp", "gp", "p", "product", "products", "ip", "pdp", "item", "items", "catalog"}
SLUG_EXTENSION_RE = re.compile(r"\.(?:html?|php|aspx?)$", re.I)
# ASINs, SKUs and other opaque identifiers
SLUG_ID_RE = re.compile(r"^(?=.*\d)[A-Za-z0-9]{8,}$")
MIN_SLUG_LETTERS = 3


@dataclass
class Resolution:
    """Outcome of one resolver: the value and the strategy that produced it."""
    value: Any = None
    source: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.value is not None


class FieldResolver:
    """Run strategies in order; a failing strategy is logged and skipped."""

    field_name = "field"

    def __init__(self):
        self.logger = LayerLogger(f"{self.field_name}_resolver")

    def strategies(self) -> List[Tuple[str, Strategy]]:
        raise NotImplementedError

    def resolve(self, document: ProductDocument, candidates: List[StructuredCandidate]) -> Resolution:
        for name, strategy in self.strategies():
            try:
                value = strategy(document, candidates)
            except Exception as e:
                self.logger.log_skip(f"{self.field_name}.{name}", str(e), url=document.url)
                continue
            if value:
                return Resolution(value=value, source=name)
        return Resolution()


class TitleResolver(FieldResolver):
    """structured data -> social title -> <title> -> first <h1> -> URL path."""

    field_name = "title"

    def strategies(self):
        return [
            ("structured_data", self._from_structured_data),
            ("social_meta", self._from_social_meta),
            ("title_tag", self._from_title_tag),
            ("h1", self._from_h1),
            ("url_slug", self._from_url_slug),
        ]

    def _from_structured_data(self, document, candidates):
        for candidate in candidates:
            name = normalize_whitespace(candidate.name)
            if name:
                return name
        return None

    def _from_social_meta(self, document, candidates):
        return document.meta("og:title", "twitter:title")

    def _from_title_tag(self, document, candidates):
        tag = document.soup.find("title")
        return normalize_whitespace(tag.get_text()) if tag else None

    def _from_h1(self, document, candidates):
        tag = document.soup.find("h1")
        return normalize_whitespace(tag.get_text(" ")) if tag else None

    def _from_url_slug(self, document, candidates):
        """Readable words from the URL path, else "<host> item"."""
        parsed = urlparse(document.url)
        for segment in reversed([s for s in parsed.path.split("/") if s]):
            slug = SLUG_EXTENSION_RE.sub("", unquote(segment))
            if slug.lower() in SLUG_SKIP_SEGMENTS or "=" in slug or SLUG_ID_RE.match(slug):
                continue
            if sum(ch.isalpha() for ch in slug) < MIN_SLUG_LETTERS:
                continue
            return normalize_whitespace(re.sub(r"[-_+]+", " ", slug))
        host = (parsed.hostname or "").lower()
        host = host[4:] if host.startswith("www.") else host
        return f"{host} item" if host else None


@dataclass(frozen=True)
class PriceMatch:
    amount: float
    currency: Optional[str] = None


# Amazon buy-box price; the first hit wins
AMAZON_PRICE_SELECTORS = [
    "#corePriceDisplay_desktop_feature_div .a-price .a-offscreen",
    "#corePrice_feature_div .a-price .a-offscreen",
    "#priceblock_dealprice",
    "#priceblock_ourprice",
    "#priceblock_saleprice",
]

# Generic storefront price containers
GENERIC_PRICE_SELECTORS = [
    "[data-price]",
    "[data-product-price]",
    ".price",
    ".product-price",
    ".price__regular",
    ".price-item",
    ".money",
    "[class*='price']",
    "[id*='price']",
]

PRICE_ATTRIBUTES = ("data-price", "data-product-price")
STRIKE_TAGS = {"s", "del", "strike"}
STRIKE_CLASSES = {"a-text-price", "was-price", "compare-at-price", "price--compare", "old-price"}
MAX_PRICE_CONTAINER_TEXT = 200


def _is_struck(element: Tag) -> bool:
    """True if the element or any ancestor marks a crossed-out price."""
    for node in [element, *element.parents]:
        if not isinstance(node, Tag):
            continue
        if node.name in STRIKE_TAGS:
            return True
        classes = node.get("class") or []
        if STRIKE_CLASSES.intersection(classes):
            return True
    return False


def _is_struck_within(node: Optional[Tag], root: Tag) -> bool:
    while node is not None and node is not root:
        if node.name in STRIKE_TAGS or STRIKE_CLASSES.intersection(node.get("class") or []):
            return True
        node = node.parent
    return False


def _unstruck_text(element: Tag) -> str:
    """Element text without its crossed-out descendants."""
    parts = [
        str(string)
        for string in element.find_all(string=True)
        if not _is_struck_within(string.parent, element)
    ]
    return normalize_whitespace(" ".join(parts)) or ""


class PriceResolver(FieldResolver):
    """
    structured data -> price meta tags -> most prominent visible price ->
    first currency amount anywhere in the page text.
    """

    field_name = "price"

    def strategies(self):
        return [
            ("structured_data", self._from_structured_data),
            ("meta_tags", self._from_meta_tags),
            ("visible_price", self._from_visible_price),
            ("text_scan", self._from_text_scan),
        ]

    def _page_currency(self, document: ProductDocument) -> Optional[str]:
        currency = document.meta("product:price:currency", "og:price:currency", "priceCurrency")
        if currency:
            return currency_from_marker(currency)
        tag = document.soup.find(attrs={"itemprop": "priceCurrency"})
        if tag is not None:
            return currency_from_marker(tag.get("content") or tag.get_text(strip=True))
        return None

    def _from_structured_data(self, document, candidates):
        for candidate in candidates:
            if candidate.price is not None and candidate.price > 0:
                return PriceMatch(candidate.price, candidate.currency)
        return None

    def _from_meta_tags(self, document, candidates):
        raws = [
            document.meta("product:price:amount"),
            document.meta("og:price:amount"),
            document.meta("price"),
        ]
        raws.extend(
            tag.get("content") or tag.get_text(" ", strip=True)
            for tag in document.soup.select("[itemprop='price']")
        )

        for raw in raws:
            amount = parse_price(raw)
            if amount is None:
                continue
            currency = self._page_currency(document)
            if currency is None:
                found = find_price_in_text(raw)
                currency = found[1] if found else None
            return PriceMatch(amount, currency)
        return None

    def _from_visible_price(self, document, candidates):
        for selector in AMAZON_PRICE_SELECTORS:
            for element in document.soup.select(selector):
                match = self._element_price(document, element)
                if match:
                    return match

        # themes repeat the live price (sticky bar, mobile block) while
        # related-item prices appear once; most repeated wins, ties go first
        elements = document.soup.select(", ".join(GENERIC_PRICE_SELECTORS))
        priced = set()
        found: List[Tuple[int, PriceMatch]] = []
        for position in reversed(range(len(elements))):
            element = elements[position]
            # a priced descendant already counted this amount
            if any(id(child) in priced for child in element.find_all(True)):
                continue
            match = self._element_price(document, element)
            if match is None:
                continue
            priced.add(id(element))
            found.append((position, match))

        if not found:
            return None
        # most_common keeps first-seen order on ties
        counts = Counter(match for _, match in sorted(found, key=lambda item: item[0]))
        return counts.most_common(1)[0][0]

    def _element_price(self, document: ProductDocument, element: Tag) -> Optional[PriceMatch]:
        if _is_struck(element):
            return None

        text = _unstruck_text(element)
        if len(text) > MAX_PRICE_CONTAINER_TEXT:
            return None

        found = find_price_in_text(text)
        if found:
            return PriceMatch(*found)

        for attr in PRICE_ATTRIBUTES:
            amount = parse_price(element.get(attr))
            if amount is not None:
                return PriceMatch(amount, self._page_currency(document))
        return None

    def _from_text_scan(self, document, candidates):
        found = find_price_in_text(document.text)
        return PriceMatch(*found) if found else None


def _is_absolute(url: Optional[str]) -> bool:
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class ImageResolver(FieldResolver):
    """structured data -> social image -> image_src link -> first absolute <img>."""

    field_name = "image"

    def strategies(self):
        return [
            ("structured_data", self._from_structured_data),
            ("social_meta", self._from_social_meta),
            ("image_src_link", self._from_image_src_link),
            ("first_img", self._from_first_img),
        ]

    def _from_structured_data(self, document, candidates):
        for candidate in candidates:
            for image in candidate.images:
                resolved = document.absolute(image)
                if resolved:
                    return resolved
        return None

    def _from_social_meta(self, document, candidates):
        return document.absolute(
            document.meta(
                "og:image",
                "og:image:secure_url",
                "og:image:url",
                "twitter:image",
                "twitter:image:src",
            )
        )

    def _from_image_src_link(self, document, candidates):
        link = document.soup.find("link", rel="image_src")
        return document.absolute(link.get("href")) if link else None

    def _from_first_img(self, document, candidates):
        for img in document.soup.find_all("img"):
            for attr in ("src", "data-src", "data-old-hires"):
                src = normalize_whitespace(img.get(attr))
                if _is_absolute(src):
                    return src
        return None
