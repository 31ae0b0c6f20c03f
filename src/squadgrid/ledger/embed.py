"""
Embed snippets for checkout widgets.

Each widget type maps to exactly one template:
- button: a `<script>` tag carrying data attributes
- checkout: an `<iframe>` onto the hosted checkout page
- card / inline / donation / subscription: a `data-squadgrid-widget` div
  followed by the widget script

Only the payment link's public short id is embedded. Attribute values are
HTML-escaped.
"""

from __future__ import annotations

from html import escape
from typing import List, Optional

from .model import PaymentLink, WIDGET_TYPES, check_choice


def _attr(name: str, value) -> str:
    return f' {name}="{escape(str(value), quote=True)}"'


def _opt(name: str, value, when=None) -> str:
    if when is None:
        when = value
    return _attr(name, value) if when else ""


def render_embed_code(
    widget_type: str,
    link: PaymentLink,
    button_text: str,
    style: str,
    size: str,
    origin: str,
    primary_color: Optional[str] = None,
    border_radius: Optional[int] = None,
    show_amount: Optional[bool] = None,
    show_currency: Optional[bool] = None,
    description: Optional[str] = None,
    image_url: Optional[str] = None,
) -> str:
    check_choice(widget_type, WIDGET_TYPES, "type")
    origin = origin.rstrip("/")
    script = f'<script src="{escape(origin, quote=True)}/widget.js"></script>'
    common = _attr("data-link-id", link.link_id) + _attr("data-button-text", button_text) + _attr("data-style", style) + _attr("data-size", size)

    if widget_type == "button":
        return (
            f'<script src="{escape(origin, quote=True)}/widget.js"'
            + _attr("data-widget-type", "button")
            + common
            + _opt("data-color", primary_color)
            + _opt("data-radius", border_radius)
            + "></script>"
        )

    if widget_type == "checkout":
        radius = border_radius or 8
        src = f"{origin}/checkout/{link.link_id}?embed=true"
        return (
            f'<iframe src="{escape(src, quote=True)}" width="100%" height="600" frameborder="0"'
            f' style="border-radius: {int(radius)}px;"></iframe>'
        )

    parts: List[str] = [_attr("data-squadgrid-widget", widget_type), common]
    if widget_type == "card":
        parts += [
            _opt("data-description", description),
            _opt("data-image", image_url),
            _opt("data-amount", link.amount, show_amount),
            _opt("data-currency", link.currency, show_currency),
        ]
    elif widget_type == "inline":
        parts += [
            _opt("data-amount", link.amount, show_amount),
            _opt("data-currency", link.currency, show_currency),
        ]
    else:
        # donation, subscription
        parts.append(_opt("data-description", description))
    parts.append(_opt("data-color", primary_color))
    return "<div" + "".join(parts) + "></div>" + script
