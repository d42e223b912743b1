"""Tests for SVG rasterisation and the chart-service URL."""

from __future__ import annotations

import re

import pytest

from otpcore.errors import InvalidArgument
from otpcore.qr import ErrorCorrectionLevel, chart_url, encode, rasterize
from otpcore.qr.render import module_size


def _svg_side(svg: str) -> int:
    width = int(re.search(r'<svg[^>]* width="(\d+)"', svg).group(1))
    height = int(re.search(r'<svg[^>]* height="(\d+)"', svg).group(1))
    assert width == height
    return width


def test_module_size_is_smallest_covering_integer():
    assert module_size(29, 200, 200) == 7
    assert module_size(29, 203, 100) == 7
    assert module_size(29, 204, 0) == 8
    assert module_size(29, 0, 0) == 1


@pytest.mark.parametrize("width,height", [(200, 200), (100, 300), (57, 57), (1, 1)])
def test_rasterize_covers_requested_size_with_square_modules(width, height):
    m = encode("HELLO WORLD", ErrorCorrectionLevel.QUARTILE)
    svg = rasterize(m, width, height)
    side = _svg_side(svg)
    across = m.size + 8
    assert side % across == 0
    unit = side // across
    assert side >= max(width, height)
    assert (unit - 1) * across < max(width, height) or unit == 1


def test_rasterize_draws_dark_modules_inside_quiet_zone():
    m = encode("HELLO WORLD", ErrorCorrectionLevel.LOW)
    svg = rasterize(m, 0, 0)
    assert svg.startswith('<?xml version="1.0" standalone="yes"?><svg')
    assert svg.endswith("</svg>")
    assert 'fill="#ffffff"' in svg and 'fill="#000000"' in svg
    # first dark run is the top-left finder edge at (4, 4) with 1px modules
    assert 'd="M4 4h7v1h-7z' in svg


def test_rasterize_rejects_small_quiet_zone():
    m = encode("HELLO", ErrorCorrectionLevel.LOW)
    with pytest.raises(InvalidArgument):
        rasterize(m, 100, 100, quiet_zone=2)


def test_chart_url():
    url = chart_url("otpauth://totp/A:b?secret=JBSWY3DPEHPK3PXP&issuer=A", 200, 150, ErrorCorrectionLevel.HIGH)
    assert url.startswith("https://chart.googleapis.com/chart?chs=200x150&chld=H|0&cht=qr&chl=")
    assert url.endswith("otpauth%3A%2F%2Ftotp%2FA%3Ab%3Fsecret%3DJBSWY3DPEHPK3PXP%26issuer%3DA")
