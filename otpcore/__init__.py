"""
otpcore package
===============

TOTP / HOTP theo RFC 4226 & RFC 6238, otpauth:// provisioning URI và bộ mã
hóa QR (ISO/IEC 18004) để enroll ứng dụng Authenticator.

──────────────────────────────────────────────
Ví dụ sử dụng nhanh
──────────────────────────────────────────────
>>> from otpcore import generate_base32_secret, totp, verify_code
>>> secret = generate_base32_secret()
>>> code = totp(secret)
>>> verify_code(secret, code, discrepancy=1)
True

>>> from otpcore import format_otpauth_uri, qr
>>> uri = format_otpauth_uri(secret, "alice@example.com", "MyService")
>>> svg = qr.rasterize(qr.encode(uri, qr.ErrorCorrectionLevel.MEDIUM), 200, 200)
"""

from otpcore.errors import (
    CapacityExceeded,
    EncodingError,
    InvalidArgument,
    InvalidSecretEncoding,
    OTPError,
    RandomSourceUnavailable,
)
from otpcore.otp_core import (
    current_time_slice,
    decode_secret,
    format_otpauth_uri,
    generate_base32_secret,
    hotp,
    seconds_remaining,
    totp,
    verify_code,
)

__version__ = "0.1.0"

__all__ = [
    "CapacityExceeded",
    "EncodingError",
    "InvalidArgument",
    "InvalidSecretEncoding",
    "OTPError",
    "RandomSourceUnavailable",
    "current_time_slice",
    "decode_secret",
    "format_otpauth_uri",
    "generate_base32_secret",
    "hotp",
    "seconds_remaining",
    "totp",
    "verify_code",
]
