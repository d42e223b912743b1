"""
errors.py — Các exception dùng chung cho otpcore.

Core luôn raise; lớp boundary (otpcore.api) đổi chúng thành None/False,
backend Flask đổi chúng thành HTTP status.
"""


class OTPError(Exception):
    """Base class cho mọi lỗi của otpcore."""


class RandomSourceUnavailable(OTPError):
    """Không đọc được entropy từ hệ điều hành. Không retry."""


class InvalidSecretEncoding(OTPError, ValueError):
    """Secret không phải Base32 hợp lệ (RFC 4648)."""


class InvalidArgument(OTPError, ValueError):
    """Tham số rỗng / ngoài miền giá trị cho phép."""


class EncodingError(OTPError):
    """Payload không thể mã hóa thành QR (rỗng, quá dài...)."""


class CapacityExceeded(EncodingError):
    """Payload vượt dung lượng của version 40 ở error-correction level đã chọn."""
