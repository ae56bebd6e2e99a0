"""
URL helpers: input validation, retailer detection and canonicalization.
"""
import re
from typing import List, Optional
from urllib.parse import parse_qs, urlparse

import httpx


# Retailer domain label -> retailer identifier. A label matches only as the
# registered name, i.e. followed by a short public suffix (com, co.uk, ca...).
KNOWN_STORES = [
    ("amazon", "amazon"),
    ("wayfair", "wayfair"),
    ("walmart", "walmart"),
    ("target", "target"),
    ("ikea", "ikea"),
    ("homedepot", "homedepot"),
    ("lowes", "lowes"),
    ("bestbuy", "bestbuy"),
    ("costco", "costco"),
    ("overstock", "overstock"),
    ("crateandbarrel", "crateandbarrel"),
    ("potterybarn", "potterybarn"),
    ("westelm", "westelm"),
    ("allmodern", "allmodern"),
    ("jossandmain", "jossandmain"),
    ("ashleyfurniture", "ashleyfurniture"),
    ("etsy", "etsy"),
    ("ebay", "ebay"),
    ("article", "article"),
    ("rh", "rh"),
]

MAX_SUFFIX_LABELS = 2
MAX_SUFFIX_LABEL_LENGTH = 3

ASIN_RE = re.compile(r"^[A-Z0-9]{10}$", re.I)
DP_PATH_RE = re.compile(r"/(?:dp|gp/product)/([A-Z0-9]{10})", re.I)


def is_http_url(url: Optional[str]) -> bool:
    """True for absolute http(s) URLs whose host httpx can encode."""
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return False
        # .host decodes punycode labels and rejects malformed ones
        return bool(httpx.URL(url.strip()).host)
    except (ValueError, httpx.InvalidURL):
        return False


def get_hostname(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def detect_store(url: str) -> str:
    """
    Infer a retailer identifier from the URL hostname.

    Known retailers map to a short id; anything else is the bare hostname
    without a leading "www.".
    """
    hostname = get_hostname(url)
    if not hostname:
        return "unknown"

    bare = hostname[4:] if hostname.startswith("www.") else hostname
    labels = bare.split(".")
    for needle, store in KNOWN_STORES:
        if needle in labels and _is_public_suffix(labels[labels.index(needle) + 1:]):
            return store
    return bare


def _is_public_suffix(labels: List[str]) -> bool:
    """Loose check for com / co.uk / ca style endings."""
    return (
        0 < len(labels) <= MAX_SUFFIX_LABELS
        and all(0 < len(label) <= MAX_SUFFIX_LABEL_LENGTH for label in labels)
    )


def canonicalize_product_url(url: str) -> str:
    """
    Reduce Amazon ad/sponsored links to https://www.amazon.com/dp/<ASIN>.

    "?th=1" is preserved because it selects the exact variant page. Other
    URLs are returned unchanged.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return url

    if "amazon." not in (parsed.hostname or "").lower():
        return url

    asin = None
    match = DP_PATH_RE.search(parsed.path)
    if match:
        asin = match.group(1)
    else:
        candidate = parse_qs(parsed.query).get("pd_rd_i", [""])[0]
        if ASIN_RE.match(candidate):
            asin = candidate

    if not asin:
        return url

    params = parse_qs(parsed.query)
    suffix = "?th=1" if params.get("th", [""])[0] == "1" else ""
    return f"https://www.amazon.com/dp/{asin}{suffix}"
