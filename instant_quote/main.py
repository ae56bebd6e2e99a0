"""
Instant Quote - FastAPI Application
Main entry point with REST API endpoints.
"""
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from instant_quote.config import config
from instant_quote.generators.quote_calculator import QuoteCalculator, estimate_dimensions
from instant_quote.layers.extraction import ExtractionOrchestrator
from instant_quote.models.product import ProductRecord
from instant_quote.models.quote import CostBreakdown, Dimensions, QuoteLineItem
from instant_quote.utils.logger import get_logger, set_trace_id
from instant_quote.utils.urls import is_http_url


logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the orchestrator at startup; a missing proxy key fails startup."""
    if getattr(app.state, "orchestrator", None) is None:
        app.state.orchestrator = ExtractionOrchestrator(config)
        logger.info("orchestrator_ready", proxy_configured=config.is_proxy_configured())
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Instant Quote",
    description="Extracts product data from retail pages and computes landed-cost quotes",
    version=config.APP_VERSION,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    max_age=600,
)

# Per-client rate limit; the limit string is read on every request
limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


def _rate_limit() -> str:
    return f"{config.RATE_LIMIT_PER_MIN}/minute"


quote_calculator = QuoteCalculator()


# Request/Response models
class ExtractRequest(BaseModel):
    """Request model for product extraction."""
    url: Optional[str] = None


class ExtractResponse(BaseModel):
    """Response model for product extraction."""
    ok: bool = True
    url: str
    store: str
    title: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    image: Optional[str] = None
    variant: Optional[str] = None
    confidence: Dict[str, bool]
    fetch_strategy: Optional[str] = None
    trace_id: str


class BatchExtractRequest(BaseModel):
    """Request model for extracting several URLs at once."""
    urls: List[str] = Field(min_length=1, max_length=25)


class BatchExtractResponse(BaseModel):
    ok: bool = True
    results: List[ExtractResponse]
    trace_id: str


class QuoteItemRequest(BaseModel):
    """One quote line; either a known first cost or a URL to extract it from."""
    title: Optional[str] = None
    url: Optional[str] = None
    first_cost: Optional[float] = Field(default=None, ge=0)
    qty: int = Field(default=1, ge=1)
    volume_ft3: Optional[float] = Field(default=None, gt=0)
    dimensions: Optional[Dimensions] = None


class QuoteRequest(BaseModel):
    """Request model for a landed-cost quote."""
    items: List[QuoteItemRequest] = Field(min_length=1)
    estimate_dimensions: bool = False


class QuoteResponse(BaseModel):
    """Response model for a landed-cost quote."""
    ok: bool = True
    items: List[QuoteLineItem]
    breakdown: CostBreakdown
    total_items: int
    total_volume: float
    trace_id: str


def _to_response(record: ProductRecord, trace_id: str) -> ExtractResponse:
    return ExtractResponse(trace_id=trace_id, **record.model_dump(mode="json"))


def _require_url(url: Optional[str]) -> str:
    if not is_http_url(url):
        raise HTTPException(status_code=400, detail="A valid http(s) product URL is required")
    return url.strip()


# API Routes
@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": config.APP_VERSION,
        "proxy_configured": config.is_proxy_configured(),
    }


@app.get("/robots.txt", response_class=PlainTextResponse)
async def robots():
    """Keep the quoting tool out of search indexes."""
    return "User-agent: *\nDisallow: /\n"


@app.post("/api/extract", response_model=ExtractResponse)
@limiter.limit(_rate_limit)
async def extract_product(body: ExtractRequest, request: Request):
    """
    Extract title, price, image and variant for a product URL.

    Always answers 200 for a valid URL; per-field confidence flags say
    what was found. Only a missing or malformed URL is rejected.
    """
    trace_id = set_trace_id()
    url = _require_url(body.url)

    logger.info("extraction_request", url=url, trace_id=trace_id)

    record = await request.app.state.orchestrator.extract(url)
    return _to_response(record, trace_id)


@app.get("/api/extract", response_model=ExtractResponse)
@limiter.limit(_rate_limit)
async def extract_product_get(
    request: Request,
    url: Optional[str] = Query(None, description="Product page URL"),
):
    """Query-string variant of POST /api/extract."""
    trace_id = set_trace_id()
    url = _require_url(url)

    logger.info("extraction_request", url=url, trace_id=trace_id)

    record = await request.app.state.orchestrator.extract(url)
    return _to_response(record, trace_id)


@app.post("/api/extract/batch", response_model=BatchExtractResponse)
@limiter.limit(_rate_limit)
async def extract_batch(body: BatchExtractRequest, request: Request):
    """Extract several product URLs concurrently."""
    trace_id = set_trace_id()

    invalid = [url for url in body.urls if not is_http_url(url)]
    if invalid:
        raise HTTPException(status_code=400, detail={"error": "invalid_urls", "urls": invalid})

    urls = [url.strip() for url in body.urls]
    logger.info("batch_extraction_request", count=len(urls), trace_id=trace_id)

    records = await request.app.state.orchestrator.extract_many(urls)
    return BatchExtractResponse(
        results=[_to_response(record, trace_id) for record in records],
        trace_id=trace_id,
    )


@app.post("/api/quote", response_model=QuoteResponse)
@limiter.limit(_rate_limit)
async def create_quote(body: QuoteRequest, request: Request):
    """
    Compute a landed-cost quote.

    Lines that only carry a URL are extracted first. A line whose price
    cannot be found is priced at 0 and flagged for manual entry.
    """
    trace_id = set_trace_id()

    to_extract = []
    for index, item in enumerate(body.items):
        if item.first_cost is not None:
            continue
        if item.url is None:
            raise HTTPException(
                status_code=400,
                detail=f"Item {index} needs either first_cost or url",
            )
        to_extract.append((index, _require_url(item.url)))

    logger.info(
        "quote_request",
        items=len(body.items),
        extractions=len(to_extract),
        trace_id=trace_id,
    )

    records: Dict[int, ProductRecord] = {}
    if to_extract:
        extracted = await request.app.state.orchestrator.extract_many([url for _, url in to_extract])
        records = {index: record for (index, _), record in zip(to_extract, extracted)}

    lines = []
    for index, item in enumerate(body.items):
        record = records.get(index)
        first_cost = item.first_cost
        title = item.title
        needs_manual_price = False

        if record is not None:
            first_cost = record.price if record.price is not None else 0.0
            needs_manual_price = record.price is None
            title = title or record.title

        dimensions = item.dimensions
        if body.estimate_dimensions and item.volume_ft3 is None and dimensions is None:
            dimensions = Dimensions(**estimate_dimensions(title or "", first_cost))

        lines.append(
            QuoteLineItem(
                title=title or "Item",
                first_cost=first_cost,
                qty=item.qty,
                volume_ft3=item.volume_ft3,
                dimensions=dimensions,
                url=item.url,
                needs_manual_price=needs_manual_price,
            )
        )

    try:
        calculation = quote_calculator.calculate(lines)
    except Exception as e:
        logger.error("quote_calculation_error", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))

    return QuoteResponse(trace_id=trace_id, **calculation.model_dump())


def run():
    """Console entry point."""
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
