"""Layers package initialization."""
from instant_quote.layers.document import ProductDocument
from instant_quote.layers.extraction import ExtractionOrchestrator
from instant_quote.layers.fetching import HTMLFetcher, find_bot_challenge
from instant_quote.layers.resolvers import ImageResolver, PriceResolver, Resolution, TitleResolver
from instant_quote.layers.structured_data import StructuredDataExtractor
from instant_quote.layers.variant import VariantInferencer

__all__ = [
    "ProductDocument",
    "ExtractionOrchestrator",
    "HTMLFetcher",
    "find_bot_challenge",
    "ImageResolver",
    "PriceResolver",
    "Resolution",
    "TitleResolver",
    "StructuredDataExtractor",
    "VariantInferencer",
]
