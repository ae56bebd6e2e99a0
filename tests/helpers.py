"""Test helpers: page builders and fake transports."""
import json
from typing import Dict, List, Optional

import httpx


PROXY_HOST = "app.scrapingbee.com"


def page(body: str = "", head: str = "", jsonld: Optional[List] = None) -> str:
    """Build a small HTML page; jsonld entries may be dicts or raw strings."""
    scripts = ""
    for block in jsonld or []:
        text = block if isinstance(block, str) else json.dumps(block)
        scripts += f'<script type="application/ld+json">{text}</script>\n'
    return f"<html><head>{head}{scripts}</head><body>{body}</body></html>"


class FakeSleep:
    """Records backoff delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float):
        self.delays.append(seconds)


class Router:
    """
    MockTransport handler that answers direct and proxy requests separately.

    Each side is a list of responses consumed in order; the last one repeats.
    """

    def __init__(self, direct=None, proxy=None):
        self.direct: List = list(direct or [])
        self.proxy: List = list(proxy or [])
        self.requests: List[httpx.Request] = []

    @property
    def proxy_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == PROXY_HOST]

    @property
    def direct_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host != PROXY_HOST]

    def _next(self, queue: List, request: httpx.Request):
        if not queue:
            raise AssertionError(f"unexpected request to {request.url}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        # fresh copy so a repeated response is never shared between requests
        return httpx.Response(item.status_code, headers=item.headers, content=item.content)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == PROXY_HOST:
            return self._next(self.proxy, request)
        return self._next(self.direct, request)


def html_response(html: str, status: int = 200, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
    return httpx.Response(
        status,
        text=html,
        headers={"content-type": "text/html; charset=utf-8", **(headers or {})},
    )
