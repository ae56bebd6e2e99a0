"""Shared fixtures: config, fake sleep and orchestrator factory."""
from typing import Callable

import httpx
import pytest

from instant_quote.config import Config
from instant_quote.layers.extraction import ExtractionOrchestrator
from instant_quote.layers.fetching import HTMLFetcher
from tests.helpers import PROXY_HOST, FakeSleep, Router


@pytest.fixture
def app_config() -> Config:
    cfg = Config()
    cfg.SCRAPINGBEE_API_KEY = "test-key"
    cfg.SCRAPINGBEE_ENDPOINT = f"https://{PROXY_HOST}/api/v1/"
    cfg.PROXY_MAX_RETRIES = 2
    cfg.PROXY_BACKOFF_BASE = 0.8
    cfg.EXTRACTION_DEADLINE = 30
    return cfg


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def make_orchestrator(app_config, fake_sleep) -> Callable[[Router], ExtractionOrchestrator]:
    def build(router: Router) -> ExtractionOrchestrator:
        fetcher = HTMLFetcher.from_config(
            app_config, transport=httpx.MockTransport(router), sleep=fake_sleep
        )
        return ExtractionOrchestrator(app_config, fetcher=fetcher)

    return build
