"""
Extraction Layer for the Instant Quote extractor.
Sequences fetch -> parse -> resolve -> assemble for one product URL.
"""
import asyncio
from typing import Callable, Dict, List, Optional

from instant_quote.config import Config
from instant_quote.errors import FetchError
from instant_quote.layers.document import ProductDocument
from instant_quote.layers.fetching import HTMLFetcher, find_bot_challenge
from instant_quote.layers.resolvers import ImageResolver, PriceResolver, Resolution, TitleResolver
from instant_quote.layers.structured_data import StructuredDataExtractor
from instant_quote.layers.variant import VariantInferencer
from instant_quote.models.product import FetchResult, FetchStrategy, ProductRecord
from instant_quote.utils.logger import LayerLogger
from instant_quote.utils.urls import detect_store


class ExtractionOrchestrator:
    """
    Extraction Orchestrator - turns a product URL into a ProductRecord.

    This layer:
    - Tries a direct fetch first and escalates to the rendering proxy when
      the direct fetch fails or lands on a bot-challenge page
    - Parses the page once and runs every field resolver over it
    - Never raises to the caller: failures degrade to absent fields

    Within one extraction the fetch strategies run sequentially, because
    escalation depends on the outcome of the direct attempt.
    """

    def __init__(self, app_config: Config, fetcher: Optional[HTMLFetcher] = None):
        app_config.validate()
        self.config = app_config
        self.fetcher = fetcher or HTMLFetcher.from_config(app_config)
        self.structured_data = StructuredDataExtractor()
        self.title_resolver = TitleResolver()
        self.price_resolver = PriceResolver()
        self.image_resolver = ImageResolver()
        self.variant_inferencer = VariantInferencer()
        self.logger = LayerLogger("extraction_orchestrator")

    async def extract(self, url: str) -> ProductRecord:
        """
        Extract product data for a URL.

        Args:
            url: The product page URL

        Returns:
            ProductRecord; all resolvable fields absent if no HTML could be
            obtained within the extraction deadline
        """
        store = detect_store(url)
        self.logger.log_action("extraction", "started", url=url, store=store)

        try:
            fetched = await asyncio.wait_for(
                self._fetch_with_escalation(url),
                timeout=self.config.EXTRACTION_DEADLINE,
            )
        except asyncio.TimeoutError:
            self.logger.log_error(
                "Extraction deadline exceeded",
                error_type="deadline",
                url=url,
                deadline_seconds=self.config.EXTRACTION_DEADLINE,
            )
            fetched = None
        except Exception as e:
            # e.g. a host name httpx cannot encode; not a FetchError
            self.logger.log_error(
                f"Fetch stage failed: {e}",
                error_type=type(e).__name__,
                url=url,
            )
            fetched = None

        if fetched is None:
            self.logger.log_decision(
                decision="return_empty_record",
                reason="No HTML obtained from any fetch strategy",
                url=url,
            )
            return ProductRecord.empty(url, store)

        try:
            return self._assemble(url, store, fetched)
        except Exception as e:
            self.logger.log_error(str(e), error_type=type(e).__name__, url=url)
            return ProductRecord.empty(url, store)

    async def extract_many(self, urls: List[str]) -> List[ProductRecord]:
        """Extract several URLs concurrently; results keep the input order."""
        return list(await asyncio.gather(*(self.extract(url) for url in urls)))

    async def _fetch_with_escalation(self, url: str) -> Optional[FetchResult]:
        try:
            result = await self.fetcher.fetch(url, FetchStrategy.DIRECT)
        except FetchError as e:
            self.logger.log_fallback(
                from_source="direct",
                to_source="rendered",
                reason=str(e),
                url=url,
                error_kind=e.kind.value,
            )
        else:
            reason = self._blocked_reason(result.html)
            if reason is None:
                return result
            self.logger.log_fallback(
                from_source="direct",
                to_source="rendered",
                reason=reason,
                url=url,
            )

        try:
            return await self.fetcher.fetch(url, FetchStrategy.RENDERED)
        except FetchError as e:
            self.logger.log_error(
                f"Rendered fetch failed: {e}",
                error_type=e.kind.value,
                url=url,
                status_code=e.status_code,
            )
            return None

    def _blocked_reason(self, html: str) -> Optional[str]:
        if not html or not html.strip():
            return "empty_body"
        signature = find_bot_challenge(html)
        if signature:
            return f"bot_challenge:{signature}"
        return None

    def _resolve(self, field_name: str, resolve: Callable[[], Resolution], url: str) -> Resolution:
        """Run one resolver; a crash costs only that field."""
        try:
            return resolve()
        except Exception as e:
            self.logger.log_error(
                f"{field_name} resolution failed: {e}",
                error_type=type(e).__name__,
                url=url,
            )
            return Resolution()

    def _assemble(self, url: str, store: str, fetched: FetchResult) -> ProductRecord:
        document = ProductDocument(fetched.html, url)
        candidates = self.structured_data.parse(document.soup)

        title = self._resolve(
            "title", lambda: self.title_resolver.resolve(document, candidates), url
        )
        price = self._resolve(
            "price", lambda: self.price_resolver.resolve(document, candidates), url
        )
        image = self._resolve(
            "image", lambda: self.image_resolver.resolve(document, candidates), url
        )
        variant = self._resolve(
            "variant",
            lambda: self.variant_inferencer.infer(candidates, document, title.value, url),
            url,
        )

        record = ProductRecord(
            url=url,
            store=store,
            title=title.value,
            price=price.value.amount if price.found else None,
            currency=price.value.currency if price.found else None,
            image=image.value,
            variant=variant.value,
            fetch_strategy=fetched.strategy,
        )

        sources: Dict[str, str] = {
            name: resolution.source
            for name, resolution in (
                ("title", title),
                ("price", price),
                ("image", image),
                ("variant", variant),
            )
            if resolution.found
        }
        self.logger.log_resolution(
            fields_present=record.get_present_fields(),
            fields_missing=record.get_missing_fields(),
            sources=sources,
            url=url,
            strategy=fetched.strategy.value,
            candidates=len(candidates),
        )
        return record
