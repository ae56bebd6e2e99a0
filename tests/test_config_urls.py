import pytest

from instant_quote.config import Config
from instant_quote.errors import ConfigurationError
from instant_quote.layers.extraction import ExtractionOrchestrator
from instant_quote.utils.urls import canonicalize_product_url, detect_store, is_http_url


class TestConfig:
    def test_missing_proxy_key(self):
        cfg = Config()
        cfg.SCRAPINGBEE_API_KEY = None

        assert not cfg.is_proxy_configured()
        assert cfg.get_missing_vars() == ["SCRAPINGBEE_API_KEY"]
        with pytest.raises(ConfigurationError, match="SCRAPINGBEE_API_KEY"):
            cfg.validate()

    def test_orchestrator_validates_at_construction(self):
        cfg = Config()
        cfg.SCRAPINGBEE_API_KEY = ""

        with pytest.raises(ConfigurationError):
            ExtractionOrchestrator(cfg)

    @pytest.mark.parametrize(
        "name, value",
        [("EXTRACTION_DEADLINE", 0), ("DIRECT_TIMEOUT", -1), ("PROXY_MAX_RETRIES", -1), ("PROXY_MAX_CONCURRENCY", 0)],
    )
    def test_out_of_range_settings(self, app_config, name, value):
        setattr(app_config, name, value)

        with pytest.raises(ConfigurationError):
            app_config.validate()

    def test_valid_config(self, app_config):
        app_config.validate()
        assert app_config.is_proxy_configured()


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.amazon.com/dp/B0ABCDEFGH", "amazon"),
        ("https://smile.amazon.co.uk/gp/product/B0ABCDEFGH", "amazon"),
        ("https://www.wayfair.com/furniture/pdp/sofa.html", "wayfair"),
        ("https://www.target.com/p/chair/-/A-1", "target"),
        ("https://WWW.Example-Furniture.com/p/1", "example-furniture.com"),
        ("https://shop.example.com/p/1", "shop.example.com"),
        ("https://www.amazon.co.uk/dp/B0ABCDEFGH", "amazon"),
        ("https://www.rh.com/catalog/product", "rh"),
        ("https://shop.myarticle.com/p/1", "shop.myarticle.com"),
        ("https://www.northrh.com/p/1", "northrh.com"),
        ("https://target.example.org/p/1", "target.example.org"),
        ("not a url", "unknown"),
    ],
)
def test_detect_store(url, expected):
    assert detect_store(url) == expected


@pytest.mark.parametrize(
    "url, expected",
    [
        (
            "https://www.amazon.com/Velvet-Sofa/dp/B0ABCDEFGH/ref=sr_1_1?keywords=sofa",
            "https://www.amazon.com/dp/B0ABCDEFGH",
        ),
        (
            "https://www.amazon.com/dp/B0ABCDEFGH?th=1&psc=1",
            "https://www.amazon.com/dp/B0ABCDEFGH?th=1",
        ),
        (
            "https://www.amazon.com/sspa/click?pd_rd_i=B0ZZZZZZZZ&sp_csd=abc",
            "https://www.amazon.com/dp/B0ZZZZZZZZ",
        ),
        ("https://www.amazon.com/s?k=sofa", "https://www.amazon.com/s?k=sofa"),
        ("https://www.wayfair.com/p/sofa?color=blue", "https://www.wayfair.com/p/sofa?color=blue"),
    ],
)
def test_canonicalize_product_url(url, expected):
    assert canonicalize_product_url(url) == expected


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://example.com/p", True),
        ("http://example.com", True),
        (" https://example.com/p ", True),
        ("ftp://example.com", False),
        ("example.com/p", False),
        ("", False),
        ("http://xn--.com/", False),
        (None, False),
    ],
)
def test_is_http_url(url, expected):
    assert is_http_url(url) == expected
