"""
Fetch Layer for the Instant Quote extractor.
Single entry point over the direct and rendering-proxy fetch strategies.
"""
from typing import Optional

from instant_quote.adapters.direct_fetcher import DirectFetcher
from instant_quote.adapters.rendering_proxy import RenderingProxyClient
from instant_quote.config import Config
from instant_quote.models.product import FetchResult, FetchStrategy


# Case-insensitive substrings of anti-bot interstitials
BOT_CHALLENGE_SIGNATURES = (
    "captcha",
    "access denied",
    "verify you are human",
    "are you a robot",
    "robot check",
    "unusual traffic",
)


def find_bot_challenge(html: str) -> Optional[str]:
    """Return the first bot-challenge signature present in the HTML, if any."""
    lowered = html.lower()
    for signature in BOT_CHALLENGE_SIGNATURES:
        if signature in lowered:
            return signature
    return None


class HTMLFetcher:
    """
    Fetch HTML with a named strategy.

    The fetcher does not decide when to escalate; the orchestrator does.
    """

    def __init__(self, direct: DirectFetcher, rendered: RenderingProxyClient):
        self.direct = direct
        self.rendered = rendered

    @classmethod
    def from_config(cls, cfg: Config, transport=None, sleep=None) -> "HTMLFetcher":
        return cls(
            direct=DirectFetcher(
                timeout=cfg.DIRECT_TIMEOUT,
                max_redirects=cfg.MAX_REDIRECTS,
                transport=transport,
            ),
            rendered=RenderingProxyClient.from_config(cfg, transport=transport, sleep=sleep),
        )

    async def fetch(self, url: str, strategy: FetchStrategy = FetchStrategy.DIRECT) -> FetchResult:
        """
        Fetch a URL with one strategy.

        Raises:
            FetchError: the strategy could not produce HTML
        """
        if strategy == FetchStrategy.RENDERED:
            return await self.rendered.fetch(url)
        return await self.direct.fetch(url)
