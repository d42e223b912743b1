"""
api.py — Boundary surface cho caller bên ngoài (FFI, plugin, ...).

Quy ước:
- Mọi hàm trả về chuỗi đều trả về một OwnedString mới; caller sở hữu nó và
  phải giải phóng đúng một lần bằng free_str().
- Không exception nào đi qua lớp này: lỗi được log và trả về None (hoặc False
  với verify_code). Ngoại lệ duy nhất là vi phạm hợp đồng của caller
  (level không phải ErrorCorrectionLevel, free_str trên giá trị lạ) -> TypeError.
- Giá trị mặc định được áp dụng ở đây qua các dataclass option, core luôn nhận
  tham số đầy đủ.

Ví dụ:
    >>> from otpcore import api
    >>> secret = api.create_secret()
    >>> code = api.get_code(str(secret))
    >>> api.verify_code(str(secret), str(code), discrepancy=1)
    True
    >>> api.free_str(code); api.free_str(secret)
"""

from dataclasses import dataclass
import logging
from typing import Optional

from otpcore import otp_core
from otpcore.errors import InvalidArgument, OTPError
from otpcore.qr import ErrorCorrectionLevel, chart_url, encode, rasterize
from otpcore.qr.render import CHART_API_URL

logger = logging.getLogger(__name__)

DEFAULT_QR_SIZE = 200


class OwnedString:
    """
    Chuỗi được cấp phát cho caller, lưu trong bytearray để có thể xóa (zero)
    khi giải phóng. Sau free_str(), đọc giá trị sẽ raise ValueError.
    """

    __slots__ = ("_buf", "_released")

    def __init__(self, value: str):
        self._buf = bytearray(value.encode("utf-8"))
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def value(self) -> str:
        if self._released:
            raise ValueError("string has already been released")
        return self._buf.decode("utf-8")

    def release(self) -> None:
        for i in range(len(self._buf)):
            self._buf[i] = 0
        del self._buf[:]
        self._released = True

    def __str__(self) -> str:
        return self.value

    def __len__(self) -> int:
        return len(self._buf)

    def __eq__(self, other) -> bool:
        if isinstance(other, OwnedString):
            return self.value == other.value
        if isinstance(other, str):
            return self.value == other
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return "<OwnedString released>" if self._released else f"<OwnedString len={len(self._buf)}>"


@dataclass(frozen=True)
class QRCodeOptions:
    """Kích thước 0 nghĩa là mặc định 200px; level mặc định MEDIUM."""

    width: int = 0
    height: int = 0
    level: ErrorCorrectionLevel = ErrorCorrectionLevel.MEDIUM

    def resolved(self) -> "QRCodeOptions":
        """
        Raises:
            TypeError: level không phải ErrorCorrectionLevel (lỗi của caller)
            InvalidArgument: width / height âm hoặc không phải số nguyên
        """
        if not isinstance(self.level, ErrorCorrectionLevel):
            raise TypeError(f"level must be an ErrorCorrectionLevel, got {self.level!r}")
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidArgument(f"{name} must be a non-negative integer, got {value!r}")
        return QRCodeOptions(
            width=self.width or DEFAULT_QR_SIZE,
            height=self.height or DEFAULT_QR_SIZE,
            level=self.level,
        )


@dataclass(frozen=True)
class VerifyOptions:
    """time_slice None hoặc 0 nghĩa là thời điểm hiện tại."""

    discrepancy: int = 0
    time_slice: Optional[int] = None

    def resolved(self) -> "VerifyOptions":
        return VerifyOptions(
            discrepancy=self.discrepancy,
            time_slice=self.time_slice or otp_core.current_time_slice(),
        )


def create_secret(length: int = otp_core.SECRET_BYTES) -> Optional[OwnedString]:
    """Base32 secret mới (length bytes), None nếu nguồn random lỗi."""
    try:
        return OwnedString(otp_core.generate_base32_secret(length))
    except OTPError as e:
        logger.warning("create_secret failed: %s", e)
        return None


def _render_qr(secret, account_name, issuer_title, options: QRCodeOptions, base_url=None):
    if not isinstance(options.level, ErrorCorrectionLevel):
        raise TypeError(f"level must be an ErrorCorrectionLevel, got {options.level!r}")
    try:
        opts = options.resolved()
        uri = otp_core.format_otpauth_uri(secret, account_name, issuer_title)
        matrix = encode(uri, opts.level)
        if base_url is not None:
            return OwnedString(chart_url(uri, opts.width, opts.height, opts.level, base_url))
        return OwnedString(rasterize(matrix, opts.width, opts.height))
    except OTPError as e:
        logger.warning("QR rendering failed: %s", e)
        return None


def qr_code(
    secret: str,
    account_name: str,
    issuer_title: str,
    width: int = 0,
    height: int = 0,
    level: ErrorCorrectionLevel = ErrorCorrectionLevel.MEDIUM,
) -> Optional[OwnedString]:
    """SVG của QR chứa provisioning URI; None khi lỗi encode / dung lượng."""
    return _render_qr(secret, account_name, issuer_title, QRCodeOptions(width, height, level))


def qr_code_url(
    secret: str,
    account_name: str,
    issuer_title: str,
    width: int = 0,
    height: int = 0,
    level: ErrorCorrectionLevel = ErrorCorrectionLevel.MEDIUM,
    base_url: str = CHART_API_URL,
) -> Optional[OwnedString]:
    """
    URL ảnh QR (chart service) cho provisioning URI; None khi lỗi.

    Endpoint QR mặc định của Google Charts đã ngừng hoạt động; truyền base_url
    của một chart service tương thích (chs / chld / cht / chl) để có URL dùng được.
    """
    return _render_qr(secret, account_name, issuer_title, QRCodeOptions(width, height, level), base_url)


def get_code(secret: str, time_slice: Optional[int] = None) -> Optional[OwnedString]:
    """Mã 6 chữ số; None nếu secret không decode được."""
    try:
        return OwnedString(otp_core.totp(secret, time_slice or otp_core.current_time_slice()))
    except OTPError as e:
        logger.warning("get_code failed: %s", e)
        return None


def verify_code(
    secret: str,
    code: str,
    discrepancy: int = 0,
    time_slice: Optional[int] = None,
) -> bool:
    """
    True nếu code hợp lệ trong cửa sổ ±discrepancy.

    False cho cả "sai mã" lẫn secret hỏng; hai trường hợp chỉ phân biệt được
    qua log (secret hỏng là lỗi của caller).
    """
    try:
        opts = VerifyOptions(discrepancy, time_slice).resolved()
        return otp_core.verify_code(secret, code, opts.discrepancy, opts.time_slice)
    except OTPError as e:
        logger.warning("verify_code rejected malformed input: %s", e)
        return False


def free_str(s: OwnedString) -> None:
    """Xóa và giải phóng chuỗi đã trả về; gọi lần hai là no-op."""
    if not isinstance(s, OwnedString):
        raise TypeError(f"free_str expects an OwnedString, got {type(s).__name__}")
    s.release()
