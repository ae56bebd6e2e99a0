"""
Variant Inferencer for the Instant Quote extractor.

Reconstructs the selected options (color, size, finish, orientation...)
of a product page from several weak signals, most reliable first.
"""
import re
from typing import List, Optional
from urllib.parse import parse_qs, urlparse

from instant_quote.layers.document import ProductDocument, normalize_whitespace
from instant_quote.layers.resolvers import Resolution
from instant_quote.models.product import StructuredCandidate
from instant_quote.utils.logger import LayerLogger


# Label-scan priority order
VARIANT_LABELS = [
    "Color",
    "Colour",
    "Finish",
    "Orientation",
    "Configuration",
    "Size",
    "Style",
    "Material",
]

STRUCTURED_ATTRIBUTE_LABELS = [
    ("color", "Color"),
    ("size", "Size"),
    ("material", "Material"),
    ("pattern", "Pattern"),
]

URL_PARAMETER_LABELS = [
    ("color_name", "Color"),
    ("color", "Color"),
    ("size_name", "Size"),
    ("size", "Size"),
]

MAX_VALUE_WORDS = 4

# Words that end a label value run in flattened page text
TERMINATORS = {label.lower() for label in VARIANT_LABELS} | {
    "quantity", "qty", "price", "add", "buy", "sku", "item", "model", "brand",
    "ships", "select", "choose", "stock", "availability", "details", "sold",
    "reviews", "rating", "pattern",
}

PLACEHOLDER_VALUES = {"select", "choose", "please", "none", "n/a"}

TITLE_DELTA_STRIP = " \t\r\n-–—:()|,"

LABEL_PATTERNS = [
    (label, re.compile(rf"\b{label}\s*[:：]\s*(?P<value>[^\s:|•;][^:|•;]*)", re.I))
    for label in VARIANT_LABELS
]


class VariantInferencer:
    """
    Ordered signals, first non-empty wins:

    1. title delta (resolved title extends the social-preview title)
    2. color/size/material/pattern declared in structured data
    3. options marked as selected in the page (swatches, selects)
    4. "Label: value" pairs in the visible text
    5. color/size URL query parameters
    """

    def __init__(self):
        self.logger = LayerLogger("variant_inferencer")

    def infer(
        self,
        candidates: List[StructuredCandidate],
        document: ProductDocument,
        title: Optional[str],
        url: str,
    ) -> Resolution:
        signals = [
            ("title_delta", lambda: self._from_title_delta(document, title)),
            ("structured_attributes", lambda: self._from_structured_attributes(candidates)),
            ("selected_options", lambda: self._from_selected_options(document)),
            ("label_scan", lambda: self._from_label_scan(document.text)),
            ("url_parameters", lambda: self._from_url_parameters(url)),
        ]

        for name, signal in signals:
            try:
                value = normalize_whitespace(signal())
            except Exception as e:
                self.logger.log_skip(f"variant.{name}", str(e), url=url)
                continue
            if value:
                return Resolution(value=value, source=name)
        return Resolution()

    def _from_title_delta(self, document: ProductDocument, title: Optional[str]) -> Optional[str]:
        title = normalize_whitespace(title)
        social = document.meta("og:title", "twitter:title")
        if not title or not social or title == social or not title.startswith(social):
            return None
        delta = title[len(social):]
        # "Blue Sofas" does not extend "Blue Sofa"
        if delta[0] not in TITLE_DELTA_STRIP:
            return None
        return delta.strip(TITLE_DELTA_STRIP) or None

    def _from_structured_attributes(self, candidates: List[StructuredCandidate]) -> Optional[str]:
        for candidate in candidates:
            pairs = [
                f"{label}: {candidate.attributes[key]}"
                for key, label in STRUCTURED_ATTRIBUTE_LABELS
                if candidate.attributes.get(key)
            ]
            if pairs:
                return ", ".join(pairs)
        return None

    def _from_selected_options(self, document: ProductDocument) -> Optional[str]:
        pairs = []
        # Amazon twister: <div id="variation_color_name">...<span class="selection">Brown</span>
        for block in document.soup.select("[id^='variation_']"):
            selection = block.select_one(".selection")
            value = normalize_whitespace(selection.get_text(" ")) if selection else None
            if not value:
                continue
            key = block["id"][len("variation_"):]
            if key.endswith("_name"):
                key = key[: -len("_name")]
            label = key.replace("_", " ").strip().title() or "Option"
            pair = f"{label}: {value}"
            if pair not in pairs:
                pairs.append(pair)
        if pairs:
            return ", ".join(pairs)

        for select in document.soup.select("select[name*='variant'], select[id*='variant']"):
            option = select.select_one("option[selected]")
            value = normalize_whitespace(option.get_text(" ")) if option else None
            if value and value.lower() not in PLACEHOLDER_VALUES:
                return value
        return None

    def _from_label_scan(self, text: str) -> Optional[str]:
        if not text:
            return None
        for label, pattern in LABEL_PATTERNS:
            for match in pattern.finditer(text):
                value = self._trim_value(match.group("value"))
                if value:
                    return f"{label}: {value}"
        return None

    def _trim_value(self, raw: str) -> Optional[str]:
        words = []
        for word in raw.split()[:MAX_VALUE_WORDS]:
            if word.lower().strip(".,") in TERMINATORS:
                break
            words.append(word)
        value = " ".join(words).strip(" .,-–")
        if not value or value.lower() in PLACEHOLDER_VALUES:
            return None
        return value

    def _from_url_parameters(self, url: str) -> Optional[str]:
        try:
            params = parse_qs(urlparse(url).query)
        except ValueError:
            return None

        found = {}
        for key, label in URL_PARAMETER_LABELS:
            if label in found:
                continue
            value = normalize_whitespace(params.get(key, [""])[0])
            if value:
                found[label] = value
        if not found:
            return None
        return ", ".join(f"{label}: {value}" for label, value in found.items())
