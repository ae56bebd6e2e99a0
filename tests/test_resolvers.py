import pytest

from instant_quote.layers.document import ProductDocument
from instant_quote.layers.pricing import find_price_in_text, parse_price
from instant_quote.layers.resolvers import ImageResolver, PriceMatch, PriceResolver, TitleResolver
from instant_quote.models.product import StructuredCandidate
from tests.helpers import page


URL = "https://shop.example.com/products/chair"


def doc(html):
    return ProductDocument(html, URL)


class TestParsePrice:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("$149.99", 149.99),
            ("1,299.00", 1299.0),
            ("1.299,95 €", 1299.95),
            ("12,5", 12.5),
            ("1,299", 1299.0),
            (" USD 2 ", 2.0),
            (42, 42.0),
        ],
    )
    def test_parses(self, raw, expected):
        assert parse_price(raw) == expected

    @pytest.mark.parametrize(
        "raw", [None, "", "0.00", "free", 0, float("inf"), float("nan"), True, "9" * 400, 10 ** 400]
    )
    def test_no_result(self, raw):
        assert parse_price(raw) is None

    def test_find_price_in_text_reports_currency(self):
        assert find_price_in_text("Was nothing, now £1,050.00 today") == (1050.0, "GBP")
        assert find_price_in_text("Only 20 left") is None


class TestTitleResolver:
    def test_structured_name_wins(self):
        html = page(head='<meta property="og:title" content="OG Title"><title>Tag</title>')
        candidates = [StructuredCandidate(name=None), StructuredCandidate(name="  Blue\n Sofa ")]

        resolution = TitleResolver().resolve(doc(html), candidates)

        assert resolution.value == "Blue Sofa"
        assert resolution.source == "structured_data"

    def test_social_title_then_title_tag_then_h1(self):
        resolver = TitleResolver()

        social = doc(page(head='<meta property="og:title" content="Red Chair - Walnut"><title>T</title>'))
        assert resolver.resolve(social, []).value == "Red Chair - Walnut"

        tag = doc(page(head="<title>\n  Page   Title </title>", body="<h1>Heading</h1>"))
        assert resolver.resolve(tag, []).value == "Page Title"

        heading = doc(page(body="<h1> Big <span>Lamp</span></h1>"))
        assert resolver.resolve(heading, []).value == "Big Lamp"

    def test_url_slug_is_last_resort(self):
        resolution = TitleResolver().resolve(doc(page(body="<p>x</p>")), [])

        assert resolution.value == "chair"
        assert resolution.source == "url_slug"

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://www.walmart.com/ip/Blue-Velvet_Sofa/123456789", "Blue Velvet Sofa"),
            ("https://www.amazon.com/Oak-Desk/dp/B0ABCDEFGH/ref=sr_1_1", "Oak Desk"),
            ("https://www.wayfair.com/furniture/pdp/accent-chair.html", "accent chair"),
            ("https://www.target.com/p/-/A-12345", "target.com item"),
            ("https://www.example.com/", "example.com item"),
        ],
    )
    def test_url_slug_skips_route_and_id_segments(self, url, expected):
        document = ProductDocument(page(body="<p>x</p>"), url)

        assert TitleResolver().resolve(document, []).value == expected


class TestPriceResolver:
    def test_first_positive_candidate_price(self):
        candidates = [
            StructuredCandidate(name="A", price=None),
            StructuredCandidate(name="B", price=250.0, currency="CAD"),
            StructuredCandidate(name="C", price=10.0),
        ]
        resolution = PriceResolver().resolve(doc(page()), candidates)

        assert resolution.value == PriceMatch(250.0, "CAD")
        assert resolution.source == "structured_data"

    def test_meta_tags(self):
        head = (
            '<meta property="product:price:amount" content="1,049.00">'
            '<meta property="product:price:currency" content="usd">'
        )
        resolution = PriceResolver().resolve(doc(page(head=head, body="<p>$5.00</p>")), [])

        assert resolution.value == PriceMatch(1049.0, "USD")
        assert resolution.source == "meta_tags"

    def test_itemprop_price_element(self):
        body = '<span itemprop="price" content="89.50">$89.50</span>'
        resolution = PriceResolver().resolve(doc(page(body=body)), [])

        assert resolution.value.amount == 89.5
        assert resolution.source == "meta_tags"

    def test_visible_price_skips_strikethrough(self):
        body = (
            '<div class="product-price"><s>$1,500.00</s> <span>$1,199.00</span></div>'
            "<p>Free shipping over $50</p>"
        )
        resolution = PriceResolver().resolve(doc(page(body=body)), [])

        assert resolution.value == PriceMatch(1199.0, "USD")
        assert resolution.source == "visible_price"

    def test_most_repeated_visible_price_wins(self):
        body = (
            '<div class="related"><span class="price">$49.99</span></div>'
            '<div class="product-price">$129.00</div>'
            '<div class="sticky-bar"><span class="price">$129.00</span></div>'
        )
        resolution = PriceResolver().resolve(doc(page(body=body)), [])

        assert resolution.value == PriceMatch(129.0, "USD")
        assert resolution.source == "visible_price"

    def test_nested_price_containers_count_once(self):
        body = (
            '<div class="price-box"><span class="money">$20.00</span></div>'
            '<span class="price">$35.00</span>'
        )
        resolution = PriceResolver().resolve(doc(page(body=body)), [])

        assert resolution.value.amount == 20.0

    def test_price_attribute_without_text(self):
        head = '<meta property="og:price:currency" content="EUR">'
        body = '<div data-product-price="74.5"></div>'
        resolution = PriceResolver().resolve(doc(page(head=head, body=body)), [])

        assert resolution.value == PriceMatch(74.5, "EUR")

    def test_amazon_core_price_ignores_list_price(self):
        body = (
            '<div id="corePriceDisplay_desktop_feature_div">'
            '<span class="a-price a-text-price"><span class="a-offscreen">$899.99</span></span>'
            '<span class="a-price"><span class="a-offscreen">$649.99</span></span>'
            "</div>"
        )
        resolution = PriceResolver().resolve(doc(page(body=body)), [])

        assert resolution.value.amount == 649.99

    def test_text_scan_is_last_resort(self):
        resolution = PriceResolver().resolve(doc(page(body="<p>Sale $149.99</p>")), [])

        assert resolution.value == PriceMatch(149.99, "USD")
        assert resolution.source == "text_scan"

    def test_zero_prices_are_no_result(self):
        head = '<meta property="product:price:amount" content="0">'
        candidates = [StructuredCandidate(name="A", price=None)]
        resolution = PriceResolver().resolve(doc(page(head=head, body="<p>$0.00</p>")), candidates)

        assert not resolution.found

    def test_script_text_is_not_scanned(self):
        body = "<script>var price = '$12.00';</script><p>No price here</p>"
        assert not PriceResolver().resolve(doc(page(body=body)), []).found


class TestImageResolver:
    def test_candidate_image_resolved_against_page(self):
        candidates = [StructuredCandidate(images=[]), StructuredCandidate(images=["/media/chair.jpg"])]
        resolution = ImageResolver().resolve(doc(page()), candidates)

        assert resolution.value == "https://shop.example.com/media/chair.jpg"

    def test_social_image(self):
        head = '<meta property="og:image" content="//cdn.example.com/og.jpg">'
        resolution = ImageResolver().resolve(doc(page(head=head)), [])

        assert resolution.value == "https://cdn.example.com/og.jpg"
        assert resolution.source == "social_meta"

    def test_image_src_link(self):
        head = '<link rel="image_src" href="https://cdn.example.com/link.jpg">'
        resolution = ImageResolver().resolve(doc(page(head=head)), [])

        assert resolution.value == "https://cdn.example.com/link.jpg"

    def test_first_absolute_img(self):
        body = (
            '<img src="/logo.png">'
            '<img src="data:image/gif;base64,R0lGOD">'
            '<img data-src="https://cdn.example.com/lazy.jpg">'
            '<img src="https://cdn.example.com/second.jpg">'
        )
        resolution = ImageResolver().resolve(doc(page(body=body)), [])

        assert resolution.value == "https://cdn.example.com/lazy.jpg"
        assert resolution.source == "first_img"


def test_failing_strategy_is_skipped(monkeypatch):
    resolver = TitleResolver()

    def explode(document, candidates):
        raise ValueError("bad markup")

    monkeypatch.setattr(resolver, "_from_social_meta", explode)
    resolution = resolver.resolve(doc(page(head="<title>Fallback</title>")), [])

    assert resolution.value == "Fallback"
    assert resolution.source == "title_tag"
