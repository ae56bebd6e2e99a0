"""
Rendering proxy adapter (ScrapingBee).
Used when a direct fetch fails or lands on a bot-challenge page.
"""
import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from tenacity import RetryCallState

from instant_quote.config import Config
from instant_quote.errors import ConfigurationError, FetchError, FetchErrorKind
from instant_quote.models.product import FetchResult, FetchStrategy
from instant_quote.utils.logger import LayerLogger
from instant_quote.utils.retry import RetryPolicy
from instant_quote.utils.urls import canonicalize_product_url


STATUS_HEADERS = ("scrapingbee-status-code", "spb-status-code")
ERROR_HEADERS = ("scrapingbee-error", "x-scrapingbee-error", "spb-error")


class RenderingProxyClient:
    """
    Fetch pages through a headless-browser proxy.

    The proxy executes page JavaScript and waits a fixed settle delay.
    Rate-limit (429) and 5xx answers are retried with exponential backoff;
    every other proxy error is terminal. One semaphore per client bounds
    concurrent proxy calls.
    """

    def __init__(
        self,
        api_key: Optional[str],
        endpoint: str = "https://app.scrapingbee.com/api/v1/",
        timeout_ms: int = 30000,
        wait_ms: int = 3200,
        country_code: str = "us",
        premium_proxy: bool = True,
        retry_policy: Optional[RetryPolicy] = None,
        max_concurrency: int = 4,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        if not api_key:
            raise ConfigurationError("SCRAPINGBEE_API_KEY is required for the rendering proxy")

        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout_ms = timeout_ms
        self.wait_ms = wait_ms
        self.country_code = country_code
        self.premium_proxy = premium_proxy
        self.retry_policy = retry_policy or RetryPolicy()
        self.transport = transport
        self._sleep = sleep
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self.logger = LayerLogger("rendering_proxy")

    @classmethod
    def from_config(
        cls,
        cfg: Config,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> "RenderingProxyClient":
        return cls(
            api_key=cfg.SCRAPINGBEE_API_KEY,
            endpoint=cfg.SCRAPINGBEE_ENDPOINT,
            timeout_ms=cfg.PROXY_TIMEOUT_MS,
            wait_ms=cfg.PROXY_WAIT_MS,
            country_code=cfg.PROXY_COUNTRY,
            premium_proxy=cfg.PROXY_PREMIUM,
            retry_policy=RetryPolicy(
                max_retries=cfg.PROXY_MAX_RETRIES,
                base_delay=cfg.PROXY_BACKOFF_BASE,
            ),
            max_concurrency=cfg.PROXY_MAX_CONCURRENCY,
            transport=transport,
            sleep=sleep,
        )

    def build_params(self, url: str) -> Dict[str, str]:
        """Query parameters for one proxy request."""
        return {
            "api_key": self.api_key,
            "url": url,
            "render_js": "true",
            "wait": str(self.wait_ms),
            "premium_proxy": "true" if self.premium_proxy else "false",
            "country_code": self.country_code,
            "block_resources": "false",
            "timeout": str(self.timeout_ms),
        }

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch rendered HTML for a URL.

        Raises:
            FetchError: PROXY_ERROR, PROXY_RATE_LIMITED, TIMEOUT or NETWORK,
                once the retry budget is spent or on a terminal proxy error
        """
        target = canonicalize_product_url(url)
        if target != url:
            self.logger.log_decision(
                decision="canonicalize_url",
                reason="Amazon link reduced to /dp/<ASIN>",
                url=url,
                target=target,
            )

        self.logger.log_action("fetch_html", "started", url=target, strategy="rendered")

        # Outlive the proxy's own timeout so its error status reaches us
        client_timeout = self.timeout_ms / 1000 + 10

        async with self._semaphore:
            async with httpx.AsyncClient(timeout=client_timeout, transport=self.transport) as client:
                async for attempt in self.retry_policy.retrying(
                    sleep=self._sleep, on_retry=self._log_retry
                ):
                    with attempt:
                        return await self._fetch_once(client, target)

    async def _fetch_once(self, client: httpx.AsyncClient, url: str) -> FetchResult:
        try:
            response = await client.get(self.endpoint, params=self.build_params(url))
        except httpx.TimeoutException as e:
            self.logger.log_fetch(url, "rendered", None, "timeout")
            raise FetchError(
                FetchErrorKind.TIMEOUT, "Rendering proxy timed out", retryable=True
            ) from e
        except httpx.HTTPError as e:
            self.logger.log_fetch(url, "rendered", None, "network_error", error=str(e))
            raise FetchError(
                FetchErrorKind.NETWORK, str(e) or type(e).__name__, retryable=True
            ) from e

        status = self._proxy_status(response)
        if 200 <= status < 300:
            html = response.text
            self.logger.log_fetch(url, "rendered", status, "ok", content_length=len(html))
            return FetchResult(html=html, strategy=FetchStrategy.RENDERED, status_code=status)

        detail = self._error_detail(response)
        self.logger.log_fetch(url, "rendered", status, "proxy_error", detail=detail[:200])

        if status == 429:
            raise FetchError(
                FetchErrorKind.PROXY_RATE_LIMITED, detail, status_code=status, retryable=True
            )
        if 500 <= status < 600:
            raise FetchError(
                FetchErrorKind.PROXY_ERROR, detail, status_code=status, retryable=True
            )
        raise FetchError(FetchErrorKind.PROXY_ERROR, detail, status_code=status)

    def _proxy_status(self, response: httpx.Response) -> int:
        """Status reported by the proxy, falling back to the HTTP status."""
        for header in STATUS_HEADERS:
            value = response.headers.get(header)
            if value and value.strip().isdigit():
                return int(value.strip())
        return response.status_code

    def _error_detail(self, response: httpx.Response) -> str:
        for header in ERROR_HEADERS:
            value = response.headers.get(header)
            if value:
                return value
        return response.text[:500] or f"HTTP {response.status_code}"

    def _log_retry(self, retry_state: RetryCallState):
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        self.logger.log_fallback(
            from_source=f"rendered_attempt_{retry_state.attempt_number}",
            to_source=f"rendered_attempt_{retry_state.attempt_number + 1}",
            reason=str(exc),
            backoff_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        )
