"""Adapters package initialization."""
from instant_quote.adapters.direct_fetcher import DirectFetcher
from instant_quote.adapters.rendering_proxy import RenderingProxyClient

__all__ = ["DirectFetcher", "RenderingProxyClient"]
