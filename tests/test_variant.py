from instant_quote.layers.document import ProductDocument
from instant_quote.layers.variant import VariantInferencer
from instant_quote.models.product import StructuredCandidate
from tests.helpers import page


URL = "https://shop.example.com/products/sofa"


def infer(html, title=None, url=URL, candidates=None):
    document = ProductDocument(html, url)
    return VariantInferencer().infer(candidates or [], document, title, url)


def test_title_extension_of_social_title():
    html = page(head='<meta property="og:title" content="Red Chair">')
    resolution = infer(html, title="Red Chair - (Walnut)")

    assert resolution.value == "Walnut"
    assert resolution.source == "title_delta"


def test_identical_or_unrelated_titles_give_no_delta():
    html = page(head='<meta property="og:title" content="Red Chair">')

    assert not infer(html, title="Red Chair").found
    assert not infer(html, title="Blue Chair - Walnut").found


def test_title_delta_must_start_at_a_word_boundary():
    html = page(head='<meta property="og:title" content="Blue Sofa">')

    assert not infer(html, title="Blue Sofas").found
    assert infer(html, title="Blue Sofa (Navy)").value == "Navy"


def test_structured_attributes():
    candidates = [
        StructuredCandidate(name="Sofa"),
        StructuredCandidate(name="Sofa", attributes={"size": "Large", "color": "Walnut"}),
    ]
    resolution = infer(page(), candidates=candidates)

    assert resolution.value == "Color: Walnut, Size: Large"
    assert resolution.source == "structured_attributes"


def test_amazon_selected_options():
    body = (
        '<div id="variation_color_name"><label>Color:</label> <span class="selection">Brown</span></div>'
        '<div id="variation_size_name"><span class="selection"> Queen </span></div>'
        '<div id="variation_style_name"><span class="selection"></span></div>'
    )
    resolution = infer(page(body=body))

    assert resolution.value == "Color: Brown, Size: Queen"
    assert resolution.source == "selected_options"


def test_selected_variant_option():
    body = (
        '<select name="variant-id">'
        '<option value="1">Grey</option>'
        '<option value="2" selected>Navy / Left-Facing</option>'
        "</select>"
    )
    assert infer(page(body=body)).value == "Navy / Left-Facing"


def test_placeholder_option_falls_through_to_label_scan():
    body = (
        '<select name="variant"><option selected>Select</option></select>'
        "<p>Finish: Matte Black</p>"
    )
    resolution = infer(page(body=body))

    assert resolution.value == "Finish: Matte Black"
    assert resolution.source == "label_scan"


def test_label_scan_uses_label_priority_and_stops_at_next_field():
    body = "<p>Size: Large</p><p>Colour: Brown Quantity: 1</p>"
    assert infer(page(body=body)).value == "Colour: Brown"


def test_label_scan_caps_value_length():
    body = "<p>Orientation: Left Facing Sectional With Ottoman And Pillows</p>"
    assert infer(page(body=body)).value == "Orientation: Left Facing Sectional With"


def test_url_parameters():
    url = "https://www.amazon.com/dp/ABC?color_name=Forest+Green&size_name=Large"
    resolution = infer(page(body="<p>Great sofa</p>"), url=url)

    assert resolution.value == "Color: Forest Green, Size: Large"
    assert resolution.source == "url_parameters"


def test_url_parameter_first_key_wins_per_label():
    url = "https://shop.example.com/p?color=red&color_name=Deep+Red"
    assert infer(page(), url=url).value == "Color: Deep Red"


def test_no_signal():
    resolution = infer(page(body="<p>A plain page</p>"), title="A plain page")
    assert not resolution.found
    assert resolution.source is None
