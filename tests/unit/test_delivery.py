"""
Tests for delivery window helpers.
"""
import pytest

from storefront_shipping.modules.shipping.delivery import (
    clamp_window,
    delivery_label,
    parse_delivery_window,
)


@pytest.mark.parametrize("text,expected", [
    ("1-3 días", (1, 3)),
    ("2 a 4 días hábiles", (2, 4)),
    ("5 días", (5, 5)),
    ("24 horas", (1, 1)),
    ("48 horas", (2, 2)),
    ("Consultar", (None, None)),
    ("", (None, None)),
    (None, (None, None)),
])
def test_parse_delivery_window(text, expected):
    assert parse_delivery_window(text) == expected


def test_clamp_window_lifts_max_to_min():
    assert clamp_window(5, 3) == (5, 5)
    assert clamp_window(1, 3) == (1, 3)
    assert clamp_window(None, 3) == (None, 3)


@pytest.mark.parametrize("window,label", [
    ((1, 1), "Entrega en 1 día hábil"),
    ((3, 3), "Entrega en 3 días hábiles"),
    ((3, 5), "Entrega en 3-5 días hábiles"),
    ((None, 5), ""),
])
def test_delivery_label(window, label):
    assert delivery_label(*window) == label
