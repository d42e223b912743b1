"""
qr — QR code encoder (ISO/IEC 18004, Model 2, version 1-40) xuất ra SVG.

Ví dụ:
    >>> from otpcore.qr import ErrorCorrectionLevel, encode, rasterize
    >>> m = encode("otpauth://totp/Acme:bob?secret=JBSWY3DPEHPK3PXP", ErrorCorrectionLevel.MEDIUM)
    >>> svg = rasterize(m, 200, 200)
"""

from otpcore.qr.encoder import encode
from otpcore.qr.levels import ErrorCorrectionLevel
from otpcore.qr.matrix import QRMatrix
from otpcore.qr.render import chart_url, rasterize

__all__ = ["ErrorCorrectionLevel", "QRMatrix", "chart_url", "encode", "rasterize"]
