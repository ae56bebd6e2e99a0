"""Instant Quote: product-page extraction and landed-cost quoting."""
