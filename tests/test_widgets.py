import pytest

from squadgrid.ledger import PaymentLinkNotFound, ValidationError
from squadgrid.ledger.model import WIDGET_TYPES


@pytest.fixture
def link(store):
    return store.create_payment_link(amount="25", currency="PYUSD", merchant_wallet="w", description="Tip jar")


def test_unknown_link_raises(store):
    with pytest.raises(PaymentLinkNotFound) as exc:
        store.create_widget(name="W", type="button", payment_link_id="missing1", button_text="Pay")
    assert "Payment link not found" in str(exc.value)
    assert store.get_all_widgets() == []


def test_button_embed_uses_public_id(store, link):
    w = store.create_widget(name="W", type="button", payment_link_id=link.link_id, button_text="Pay Now")
    assert link.link_id in w.embed_code
    assert link.id not in w.embed_code
    assert w.embed_code == (
        '<script src="https://pay.example/widget.js" data-widget-type="button" '
        f'data-link-id="{link.link_id}" data-button-text="Pay Now" data-style="default" data-size="md"></script>'
    )
    assert w.style == "default" and w.size == "md" and w.is_active


@pytest.mark.parametrize("widget_type", WIDGET_TYPES)
def test_every_type_renders_with_public_id(store, link, widget_type):
    w = store.create_widget(name="W", type=widget_type, payment_link_id=link.link_id, button_text="Go")
    assert link.link_id in w.embed_code
    assert link.id not in w.embed_code


def test_checkout_is_iframe_with_default_radius(store, link):
    w = store.create_widget(name="W", type="checkout", payment_link_id=link.link_id, button_text="Go")
    assert w.embed_code.startswith(f'<iframe src="https://pay.example/checkout/{link.link_id}?embed=true"')
    assert "border-radius: 8px;" in w.embed_code


def test_card_optional_attributes(store, link):
    w = store.create_widget(
        name="W", type="card", payment_link_id=link.link_id, button_text="Buy",
        description="Tip", image_url="https://img.example/a.png", show_amount=True,
        show_currency=False, primary_color="#ff0000",
    )
    assert w.embed_code.startswith('<div data-squadgrid-widget="card"')
    assert 'data-amount="25.00"' in w.embed_code
    assert "data-currency" not in w.embed_code
    assert 'data-image="https://img.example/a.png"' in w.embed_code
    assert 'data-color="#ff0000"' in w.embed_code
    assert w.embed_code.endswith('<script src="https://pay.example/widget.js"></script>')


def test_attribute_values_are_escaped(store, link):
    w = store.create_widget(name="W", type="donation", payment_link_id=link.link_id, button_text='Give "now"')
    assert 'data-button-text="Give &quot;now&quot;"' in w.embed_code


def test_invalid_style_rejected(store, link):
    with pytest.raises(ValidationError):
        store.create_widget(name="W", type="button", payment_link_id=link.link_id, button_text="Go", style="neon")


def test_update_widget_rerenders(store, link, clock):
    w = store.create_widget(name="W", type="button", payment_link_id=link.link_id, button_text="Go")
    clock.advance(minutes=1)
    store.update_widget(w.id, button_text="Pay", size="lg")
    assert 'data-button-text="Pay"' in w.embed_code
    assert 'data-size="lg"' in w.embed_code
    assert w.updated_at == clock.now
    with pytest.raises(ValidationError):
        store.update_widget(w.id, embed_code="<script>")
    assert store.update_widget("nope", name="x") is None


def test_widgets_newest_first_and_delete(store, link, clock):
    first = store.create_widget(name="A", type="inline", payment_link_id=link.link_id, button_text="Go")
    clock.advance(seconds=1)
    second = store.create_widget(name="B", type="subscription", payment_link_id=link.link_id, button_text="Go")
    assert [w.id for w in store.get_all_widgets()] == [second.id, first.id]
    assert store.get_widget_by_id(first.id) is first
    assert store.delete_widget(first.id) is True
    assert store.delete_widget(first.id) is False


@pytest.mark.parametrize("field,value", [
    ("border_radius", "abc"),
    ("border_radius", -4),
    ("border_radius", True),
    ("show_amount", "yes"),
    ("show_currency", 1),
])
def test_create_widget_rejects_bad_options(store, link, field, value):
    with pytest.raises(ValidationError):
        store.create_widget(name="W", type="checkout", payment_link_id=link.link_id, button_text="Pay", **{field: value})
    assert store.get_all_widgets() == []


def test_update_widget_bad_radius_leaves_widget_untouched(store, link):
    w = store.create_widget(name="W", type="checkout", payment_link_id=link.link_id, button_text="Pay", border_radius=4)
    before = w.embed_code
    with pytest.raises(ValidationError):
        store.update_widget(w.id, border_radius="abc", button_text="Buy")
    assert w.border_radius == 4 and w.button_text == "Pay"
    assert w.embed_code == before
    store.update_widget(w.id, border_radius=16)
    assert "border-radius: 16px;" in w.embed_code
