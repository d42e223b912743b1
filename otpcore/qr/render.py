"""
render.py — Rasterize QRMatrix.

Chỉ xuất SVG: mỗi module là một ô vuông có cạnh là số nguyên pixel, bao quanh
bởi quiet zone màu sáng.

CHART_API_URL là endpoint QR cũ của Google Charts, đã ngừng hoạt động; dùng
chart_url(..., base_url=...) với một service tương thích nếu cần URL dùng được.
"""

from typing import List
from urllib.parse import quote

from otpcore.errors import InvalidArgument
from otpcore.qr.levels import ErrorCorrectionLevel
from otpcore.qr.matrix import QRMatrix

QUIET_ZONE = 4  # quiet zone tối thiểu (số module)
CHART_API_URL = "https://chart.googleapis.com/chart"


def module_size(modules_across: int, width: int, height: int) -> int:
    """Số pixel nguyên nhỏ nhất cho mỗi module để ảnh phủ được width x height."""
    target = max(width, height, 1)
    return max(1, -(-target // modules_across))


def rasterize(
    matrix: QRMatrix,
    width: int,
    height: int,
    quiet_zone: int = QUIET_ZONE,
    dark: str = "#000000",
    light: str = "#ffffff",
) -> str:
    """
    Render `matrix` thành SVG có kích thước tối thiểu `width` x `height` pixel.

    Module luôn vuông nên cạnh ảnh = (matrix.size + 2 * quiet_zone) * unit,
    với unit là số nguyên được chọn.
    """
    if width < 0 or height < 0:
        raise InvalidArgument("width and height must not be negative")
    if quiet_zone < QUIET_ZONE:
        raise InvalidArgument(f"quiet zone must be at least {QUIET_ZONE} modules")
    across = matrix.size + 2 * quiet_zone
    unit = module_size(across, width, height)
    side = across * unit

    path: List[str] = []
    for r, row in enumerate(matrix.modules):
        c = 0
        while c < matrix.size:
            if not row[c]:
                c += 1
                continue
            start = c
            while c < matrix.size and row[c]:
                c += 1
            x = (start + quiet_zone) * unit
            y = (r + quiet_zone) * unit
            path.append(f"M{x} {y}h{(c - start) * unit}v{unit}h-{(c - start) * unit}z")

    return (
        '<?xml version="1.0" standalone="yes"?>'
        f'<svg xmlns="http://www.w3.org/2000/svg" version="1.1" width="{side}" height="{side}"'
        f' viewBox="0 0 {side} {side}" shape-rendering="crispEdges">'
        f'<rect x="0" y="0" width="{side}" height="{side}" fill="{light}"/>'
        f'<path fill="{dark}" d="{"".join(path)}"/>'
        "</svg>"
    )


def chart_url(
    payload: str,
    width: int,
    height: int,
    level: ErrorCorrectionLevel,
    base_url: str = CHART_API_URL,
) -> str:
    """URL của chart service render `payload` thành ảnh QR (margin 0)."""
    return (
        f"{base_url}?chs={width}x{height}&chld={level.letter}|0&cht=qr"
        f"&chl={quote(payload, safe='')}"
    )
