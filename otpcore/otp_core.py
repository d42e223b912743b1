"""
otp_core.py — Core library cho TOTP / HOTP: sinh secret, tính mã, xác minh mã
và tạo otpauth:// URI.

Mục tiêu:
- Chứa các hàm thuần (pure functions) để dùng trực tiếp bởi otpcore.api,
  backend Flask hoặc CLI.
- Không đọc/ghi file, không giữ state, ngoại trừ nguồn random (CSPRNG) của hệ điều hành.
- Lỗi được raise bằng các exception trong otpcore.errors.

Lưu ý bảo mật:
- Không log secret hay mã OTP.
- Mặc định dùng HMAC-SHA1 theo RFC4226/6238 (tương thích Google Authenticator);
  SHA256 / SHA512 được hỗ trợ như phần mở rộng.
"""

from typing import Callable, Dict, Optional
import base64
import hmac
import hashlib
import logging
import os
import struct
import threading
import time
from urllib.parse import quote

from otpcore.errors import InvalidArgument, InvalidSecretEncoding, RandomSourceUnavailable

logger = logging.getLogger(__name__)

# --- Config / constants ----------------------------------------------------
DEFAULT_DIGITS = 6          # chuẩn: 6 chữ số
MIN_DIGITS = 6
MAX_DIGITS = 10             # 31-bit truncation -> tối đa 10 chữ số
DEFAULT_TIME_STEP = 30      # TOTP step (giây)
DEFAULT_ALGORITHM = "SHA1"
SECRET_BYTES = 32           # 256-bit secret
MAX_COUNTER = 2 ** 64 - 1   # counter là uint64

_DIGESTS: Dict[str, Callable] = {
    "SHA1": hashlib.sha1,
    "SHA256": hashlib.sha256,
    "SHA512": hashlib.sha512,
}


# --- Random source ---------------------------------------------------------
class SystemRandomSource:
    """
    Nguồn random dùng chung cho cả process, gắn với CSPRNG của hệ điều hành.

    os.urandom đã thread-safe nên object này không giữ seed hay state nào.
    """

    def read(self, n: int) -> bytes:
        try:
            data = os.urandom(n)
        except (OSError, NotImplementedError) as e:
            raise RandomSourceUnavailable("operating system random source unavailable") from e
        if len(data) != n:
            raise RandomSourceUnavailable(f"short read from random source ({len(data)}/{n} bytes)")
        return data


_random_source: Optional[SystemRandomSource] = None
_random_source_lock = threading.Lock()


def get_random_source() -> SystemRandomSource:
    """Khởi tạo lazy (một lần, có lock) và trả về nguồn random của process."""
    global _random_source
    if _random_source is None:
        with _random_source_lock:
            if _random_source is None:
                _random_source = SystemRandomSource()
    return _random_source


# --- Secret ----------------------------------------------------------------
def generate_base32_secret(length: int = SECRET_BYTES) -> str:
    """
    Sinh một secret ngẫu nhiên, trả về Base32 (chuỗi in hoa, không có padding).

    - `length` bytes được đọc từ CSPRNG của hệ điều hành.
    - Mã hóa Base32 (RFC 4648) để import vào Google Authenticator / Authy.

    Arguments:
        length: số byte của secret (mặc định 32)

    Trả về:
        str: Base32 secret (ví dụ "JBSWY3DPEHPK3PXP")

    Raises:
        InvalidArgument: length không phải số nguyên dương
        RandomSourceUnavailable: không đọc được entropy
    """
    if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
        raise InvalidArgument(f"secret length must be a positive integer, got {length!r}")
    raw = get_random_source().read(length)
    return base64.b32encode(raw).decode("ascii").rstrip("=")


def decode_secret(secret_b32: str) -> bytes:
    """
    Decode Base32 secret thành raw key bytes.

    - Không phân biệt hoa/thường, bỏ qua khoảng trắng.
    - Tự thêm padding '=' nếu thiếu (secret thường được lưu không có padding).

    Raises:
        InvalidSecretEncoding: secret rỗng hoặc không decode được
    """
    if not isinstance(secret_b32, str):
        raise InvalidSecretEncoding("secret must be a Base32 string")
    cleaned = "".join(secret_b32.split()).rstrip("=").upper()
    if not cleaned:
        raise InvalidSecretEncoding("secret is empty")
    padded = cleaned + "=" * (-len(cleaned) % 8)
    if not padded.isascii():
        raise InvalidSecretEncoding("secret must contain only Base32 characters")
    try:
        return base64.b32decode(padded, casefold=False)
    except ValueError as e:
        raise InvalidSecretEncoding("secret must be base32 decodeable") from e


# --- RFC helpers -----------------------------------------------------------
def int_to_bytes(i: int) -> bytes:
    """
    Chuyển counter sang 8-byte big-endian như RFC4226 yêu cầu.

    Ví dụ: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'
    """
    if isinstance(i, bool) or not isinstance(i, int) or not 0 <= i <= MAX_COUNTER:
        raise InvalidArgument(f"counter must be an unsigned 64-bit integer, got {i!r}")
    return struct.pack(">Q", i)


def dynamic_truncate(hmac_digest: bytes) -> int:
    """
    Dynamic truncation theo RFC4226.

    - offset = last_byte & 0x0F
    - Lấy 4 bytes từ offset (big-endian), clear MSB
    - Trả về integer 31-bit (unsigned)
    """
    offset = hmac_digest[-1] & 0x0F
    return struct.unpack(">I", hmac_digest[offset:offset + 4])[0] & 0x7FFFFFFF


def _digest_for(algorithm: str) -> Callable:
    try:
        return _DIGESTS[algorithm.upper()]
    except (KeyError, AttributeError):
        raise InvalidArgument(f"unsupported algorithm: {algorithm!r}") from None


def _check_digits(digits: int) -> None:
    if isinstance(digits, bool) or not isinstance(digits, int) or not MIN_DIGITS <= digits <= MAX_DIGITS:
        raise InvalidArgument(f"digits must be between {MIN_DIGITS} and {MAX_DIGITS}, got {digits!r}")


def hotp(
    secret_b32: str,
    counter: int,
    digits: int = DEFAULT_DIGITS,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """
    Sinh mã HOTP theo RFC4226.

    Steps:
    1. Base32-decode secret -> raw key bytes
    2. Message = 8-byte counter (big-endian)
    3. HMAC(key, message), mặc định SHA1
    4. Dynamic truncate -> dbc
    5. otp = dbc % 10^digits, zero-pad đủ "digits" chữ số

    Hàm thuần: cùng (secret, counter) luôn cho cùng một mã.

    Raises:
        InvalidSecretEncoding: secret Base32 không hợp lệ
        InvalidArgument: counter / digits / algorithm không hợp lệ
    """
    _check_digits(digits)
    digestmod = _digest_for(algorithm)
    key = decode_secret(secret_b32)
    msg = int_to_bytes(counter)
    digest = hmac.new(key, msg, digestmod).digest()
    return str(dynamic_truncate(digest) % (10 ** digits)).zfill(digits)


def current_time_slice(
    timestamp: Optional[float] = None,
    timestep: int = DEFAULT_TIME_STEP,
    t0: int = 0,
) -> int:
    """Counter TOTP: floor((timestamp - T0) / timestep). timestamp=None -> time.time()."""
    if timestamp is None:
        timestamp = time.time()
    if timestep <= 0:
        raise InvalidArgument("timestep must be positive")
    return int((int(timestamp) - t0) // timestep)


def seconds_remaining(
    timestamp: Optional[float] = None,
    timestep: int = DEFAULT_TIME_STEP,
    t0: int = 0,
) -> int:
    """Số giây còn lại trước khi mã TOTP hiện tại hết hạn."""
    if timestamp is None:
        timestamp = time.time()
    return int(timestep - ((int(timestamp) - t0) % timestep))


def totp(
    secret_b32: str,
    time_slice: Optional[int] = None,
    digits: int = DEFAULT_DIGITS,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """
    Sinh mã TOTP theo RFC6238: HOTP với counter = time_slice.

    Arguments:
        secret_b32: Base32 secret
        time_slice: counter thời gian (unix_time // 30); None -> thời điểm hiện tại
        digits: số chữ số OTP
        algorithm: SHA1 / SHA256 / SHA512

    Trả về:
        str: mã OTP
    """
    if time_slice is None:
        time_slice = current_time_slice()
    return hotp(secret_b32, time_slice, digits, algorithm)


# --- Verification ----------------------------------------------------------
def verify_code(
    secret_b32: str,
    code: str,
    discrepancy: int = 0,
    time_slice: Optional[int] = None,
    digits: int = DEFAULT_DIGITS,
    algorithm: str = DEFAULT_ALGORITHM,
) -> bool:
    """
    Xác minh mã TOTP do user nhập trong cửa sổ [time_slice - d, time_slice + d].

    - So sánh constant-time (hmac.compare_digest), duyệt hết cửa sổ, không dừng sớm.
    - Counter âm bị bỏ qua (cửa sổ bị "kẹp" tại 0).
    - Mã sai độ dài / không phải chữ số -> False.
    - discrepancy càng lớn càng dễ bị brute-force; nên giữ <= 2.

    Raises:
        InvalidSecretEncoding: secret không hợp lệ (lỗi của caller, khác với "sai mã")
        InvalidArgument: discrepancy âm
    """
    if isinstance(discrepancy, bool) or not isinstance(discrepancy, int) or discrepancy < 0:
        raise InvalidArgument(f"discrepancy must be a non-negative integer, got {discrepancy!r}")
    # decode trước để secret hỏng luôn raise, kể cả khi mã sai định dạng
    decode_secret(secret_b32)
    if time_slice is None:
        time_slice = current_time_slice()
    elif isinstance(time_slice, bool) or not isinstance(time_slice, int):
        raise InvalidArgument(f"time_slice must be an integer, got {time_slice!r}")

    candidate = code if isinstance(code, str) else ""
    well_formed = len(candidate) == digits and candidate.isascii() and candidate.isdigit()
    if not well_formed:
        candidate = "0" * digits

    matched = False
    for offset in range(-discrepancy, discrepancy + 1):
        test_counter = time_slice + offset
        if test_counter < 0 or test_counter > MAX_COUNTER:
            continue
        expected = hotp(secret_b32, test_counter, digits, algorithm)
        matched |= hmac.compare_digest(expected.encode("ascii"), candidate.encode("ascii"))
    logger.debug("checked %d counters around time slice %d", 2 * discrepancy + 1, time_slice)
    return matched and well_formed


# --- Provisioning URI ------------------------------------------------------
def _check_label(name: str, value) -> None:
    if not isinstance(value, str):
        raise InvalidArgument(f"{name} must be a string, got {type(value).__name__}")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidArgument(f"{name} is not valid UTF-8 text") from e


def format_otpauth_uri(
    secret_b32: str,
    account: str,
    issuer: str,
    algorithm: str = DEFAULT_ALGORITHM,
    digits: int = DEFAULT_DIGITS,
    period: int = DEFAULT_TIME_STEP,
    kind: str = "totp",
    counter: int = 0,
) -> str:
    """
    Tạo otpauth:// URI để import vào ứng dụng Authenticator.

    - TOTP: otpauth://totp/{issuer}:{account}?secret=...&issuer=...
    - HOTP: otpauth://hotp/{issuer}:{account}?secret=...&issuer=...&counter=...
    - algorithm / digits / period chỉ được thêm khi khác mặc định (SHA1 / 6 / 30).
    - account và issuer được percent-encode; issuer rỗng -> bỏ prefix và tham số issuer.

    Raises:
        InvalidArgument: account rỗng hoặc account/issuer không phải chuỗi UTF-8,
            kind không phải totp/hotp
        InvalidSecretEncoding: secret không decode được
    """
    _check_label("account", account)
    _check_label("issuer", issuer)
    if not account:
        raise InvalidArgument("account name must not be empty")
    if kind not in ("totp", "hotp"):
        raise InvalidArgument(f"kind must be 'totp' or 'hotp', got {kind!r}")
    _check_digits(digits)
    _digest_for(algorithm)
    decode_secret(secret_b32)
    secret = "".join(secret_b32.split()).rstrip("=").upper()

    label = quote(account, safe="@")
    params = [f"secret={secret}"]
    if issuer:
        label = f"{quote(issuer, safe='')}:{label}"
        params.append(f"issuer={quote(issuer, safe='')}")
    if algorithm.upper() != DEFAULT_ALGORITHM:
        params.append(f"algorithm={algorithm.upper()}")
    if digits != DEFAULT_DIGITS:
        params.append(f"digits={digits}")
    if kind == "totp":
        if period != DEFAULT_TIME_STEP:
            params.append(f"period={period}")
    else:
        params.append(f"counter={counter}")
    return f"otpauth://{kind}/{label}?{'&'.join(params)}"
