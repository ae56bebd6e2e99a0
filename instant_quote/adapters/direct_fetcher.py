"""
Direct HTTP fetch adapter.
Fetches a page the way a browser would, without any JavaScript execution.
"""
from typing import Optional

import httpx

from instant_quote.errors import FetchError, FetchErrorKind
from instant_quote.models.product import FetchResult, FetchStrategy
from instant_quote.utils.logger import LayerLogger


class DirectFetcher:
    """
    Plain HTTP GET with a browser identity.

    Any final status in [200, 400) counts as success.
    """

    def __init__(
        self,
        timeout: float = 18.0,
        max_redirects: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.transport = transport
        self.logger = LayerLogger("direct_fetcher")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch HTML for a URL.

        Raises:
            FetchError: TIMEOUT, NETWORK or HTTP_STATUS
        """
        self.logger.log_action("fetch_html", "started", url=url, strategy="direct")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                max_redirects=self.max_redirects,
                transport=self.transport,
            ) as client:
                response = await client.get(url, headers=self._get_headers())
                html = response.text
        except httpx.TimeoutException as e:
            self.logger.log_fetch(url, "direct", None, "timeout")
            raise FetchError(FetchErrorKind.TIMEOUT, f"Timed out fetching {url}") from e
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as e:
            self.logger.log_fetch(url, "direct", None, "network_error", error=str(e))
            raise FetchError(FetchErrorKind.NETWORK, str(e) or type(e).__name__) from e

        status = response.status_code
        if not 200 <= status < 400:
            self.logger.log_fetch(url, "direct", status, "http_error")
            raise FetchError(
                FetchErrorKind.HTTP_STATUS,
                f"Unexpected status from {url}",
                status_code=status,
            )

        self.logger.log_fetch(url, "direct", status, "ok", content_length=len(html))
        return FetchResult(html=html, strategy=FetchStrategy.DIRECT, status_code=status)

    def _get_headers(self) -> dict:
        """Get request headers mimicking a browser."""
        return {
            "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }
