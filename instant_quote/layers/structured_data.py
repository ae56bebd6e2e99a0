"""
Structured Data Layer for the Instant Quote extractor.
Turns embedded JSON-LD product markup into ordered product candidates.
"""
import json
import re
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from instant_quote.errors import StructuredDataError
from instant_quote.layers.document import normalize_whitespace
from instant_quote.layers.pricing import parse_price
from instant_quote.models.product import StructuredCandidate
from instant_quote.utils.logger import LayerLogger


PRODUCT_TYPES = {
    "Product",
    "ProductGroup",
    "IndividualProduct",
    "ProductModel",
    "SomeProducts",
    "Vehicle",
}

# Containers that carry a "name" but never describe the product itself
NON_PRODUCT_TYPES = {
    "Organization",
    "Corporation",
    "LocalBusiness",
    "Store",
    "OnlineStore",
    "WebSite",
    "WebPage",
    "ItemPage",
    "CollectionPage",
    "SearchAction",
    "BreadcrumbList",
    "ListItem",
    "ItemList",
    "Person",
    "Brand",
    "ImageObject",
    "VideoObject",
    "SiteNavigationElement",
    "FAQPage",
    "Question",
    "Answer",
    "Review",
    "AggregateRating",
    "Offer",
    "AggregateOffer",
}

VARIANT_ATTRIBUTES = ("color", "size", "material", "pattern")

WRAPPER_RE = re.compile(r"^\s*(?:<!--|<!\[CDATA\[)|(?:-->|\]\]>)\s*$")


class StructuredDataExtractor:
    """
    Parse every JSON-LD block on a page, in document order.

    Each block is decoded on its own: third-party pages routinely ship
    invalid JSON-LD, and one bad block must not hide the others.
    """

    def __init__(self):
        self.logger = LayerLogger("structured_data")

    def parse(self, soup: BeautifulSoup) -> List[StructuredCandidate]:
        """Return product candidates in document order (possibly empty)."""
        candidates: List[StructuredCandidate] = []
        blocks = soup.find_all("script", type=lambda t: bool(t) and "ld+json" in t.lower())

        for index, script in enumerate(blocks):
            try:
                data = self._decode_block(script.string or script.get_text())
            except StructuredDataError as e:
                self.logger.log_skip("jsonld_block", str(e), block_index=index)
                continue

            for node in self._flatten(data):
                if self._is_candidate(node):
                    candidates.append(self._to_candidate(node))

        if candidates:
            self.logger.log_action(
                "jsonld_parse",
                "completed",
                blocks=len(blocks),
                candidates=len(candidates),
            )
        else:
            self.logger.log_action("jsonld_parse", "no_candidates", blocks=len(blocks))

        return candidates

    def _decode_block(self, raw: Optional[str]) -> Any:
        text = WRAPPER_RE.sub("", raw or "").strip()
        if not text:
            raise StructuredDataError("empty block")
        try:
            return json.loads(text)
        except (ValueError, RecursionError) as e:
            raise StructuredDataError(f"invalid JSON-LD: {e}") from e

    def _flatten(self, data: Any) -> List[Dict[str, Any]]:
        """
        Flatten a decoded block into schema nodes.

        Handles a single object, an array of objects, and @graph containers.
        """
        nodes = []

        if isinstance(data, dict):
            if "@graph" in data and isinstance(data["@graph"], list):
                for item in data["@graph"]:
                    nodes.extend(self._flatten(item))
            if "@type" in data or "name" in data:
                nodes.append(data)

        elif isinstance(data, list):
            for item in data:
                nodes.extend(self._flatten(item))

        return nodes

    def _types(self, node: Dict[str, Any]) -> List[str]:
        schema_type = node.get("@type")
        if isinstance(schema_type, list):
            return [str(t).split("/")[-1] for t in schema_type]
        if schema_type:
            return [str(schema_type).split("/")[-1]]
        return []

    def _is_candidate(self, node: Dict[str, Any]) -> bool:
        types = self._types(node)
        if any(t in PRODUCT_TYPES for t in types):
            return True
        if any(t in NON_PRODUCT_TYPES for t in types):
            return False
        return isinstance(node.get("name"), str) and bool(node["name"].strip())

    def _to_candidate(self, node: Dict[str, Any]) -> StructuredCandidate:
        price, currency = self._parse_offer(node.get("offers"))

        sku = node.get("sku") or node.get("productID")
        name = node.get("name")

        attributes = {}
        for key in VARIANT_ATTRIBUTES:
            value = node.get(key)
            if isinstance(value, dict):
                value = value.get("name")
            if isinstance(value, (str, int, float)) and not isinstance(value, bool):
                cleaned = normalize_whitespace(str(value))
                if cleaned:
                    attributes[key] = cleaned

        return StructuredCandidate(
            name=normalize_whitespace(name) if isinstance(name, str) else None,
            sku=str(sku).strip() if isinstance(sku, (str, int)) and str(sku).strip() else None,
            price=price,
            currency=currency,
            images=self._normalize_images(node.get("image")),
            attributes=attributes,
        )

    def _parse_offer(self, offers: Any):
        """Price and currency from the first offer."""
        if isinstance(offers, list):
            offers = offers[0] if offers else None
        if not isinstance(offers, dict):
            return None, None

        price_spec = offers.get("priceSpecification")
        if isinstance(price_spec, list):
            price_spec = price_spec[0] if price_spec else None
        if not isinstance(price_spec, dict):
            price_spec = {}

        price = None
        for raw in (offers.get("price"), offers.get("lowPrice"), price_spec.get("price")):
            price = parse_price(raw)
            if price is not None:
                break

        currency = offers.get("priceCurrency") or price_spec.get("priceCurrency")
        if not isinstance(currency, str) or not currency.strip():
            currency = None
        else:
            currency = currency.strip().upper()

        return price, currency

    def _normalize_images(self, image_data: Any) -> List[str]:
        """
        Normalize JSON-LD image field to list of URLs.

        Handles a URL string, a list of strings or ImageObjects, and a
        single ImageObject.
        """
        images = []

        if isinstance(image_data, str):
            image_data = [image_data]
        elif isinstance(image_data, dict):
            image_data = [image_data]
        elif not isinstance(image_data, list):
            return images

        for img in image_data:
            if isinstance(img, dict):
                img = img.get("url") or img.get("contentUrl") or img.get("@id")
            if isinstance(img, str) and img.strip():
                images.append(img.strip())

        return images
