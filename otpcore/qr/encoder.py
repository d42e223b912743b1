"""
encoder.py — QR encoder: text -> bit stream -> codewords -> QRMatrix.

- Chỉ sinh symbol một segment.
- Mode được chọn là mode gọn nhất chứa được mọi ký tự (numeric / alphanumeric / byte).
- Byte mode mang UTF-8, không có ECI header.
"""

import logging
from typing import List, Optional, Sequence

from otpcore.errors import CapacityExceeded, EncodingError, InvalidArgument
from otpcore.qr import reed_solomon
from otpcore.qr.levels import ErrorCorrectionLevel
from otpcore.qr.matrix import QRMatrix, build_matrix
from otpcore.qr.tables import MAX_VERSION, MIN_VERSION, block_layout, num_data_codewords

logger = logging.getLogger(__name__)

MODE_NUMERIC = "numeric"
MODE_ALPHANUMERIC = "alphanumeric"
MODE_BYTE = "byte"

ALPHANUMERIC_CHARSET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ $%*+-./:"

_MODE_INDICATOR = {
    MODE_NUMERIC: 0b0001,
    MODE_ALPHANUMERIC: 0b0010,
    MODE_BYTE: 0b0100,
}

# độ rộng character count indicator cho version 1-9, 10-26, 27-40
_COUNT_BITS = {
    MODE_NUMERIC: (10, 12, 14),
    MODE_ALPHANUMERIC: (9, 11, 13),
    MODE_BYTE: (8, 16, 16),
}

PAD_BYTES = (0xEC, 0x11)


class BitBuffer:
    def __init__(self):
        self.bits: List[int] = []

    def __len__(self) -> int:
        return len(self.bits)

    def append_bits(self, value: int, length: int) -> None:
        if length < 0 or value >> length != 0:
            raise ValueError(f"value {value} does not fit in {length} bits")
        self.bits.extend((value >> i) & 1 for i in reversed(range(length)))

    def to_bytes(self) -> List[int]:
        out = [0] * ((len(self.bits) + 7) // 8)
        for i, bit in enumerate(self.bits):
            out[i >> 3] |= bit << (7 - (i & 7))
        return out


def detect_mode(text: str) -> str:
    if text.isascii() and text.isdigit():
        return MODE_NUMERIC
    if all(ch in ALPHANUMERIC_CHARSET for ch in text):
        return MODE_ALPHANUMERIC
    return MODE_BYTE


def char_count_bits(mode: str, version: int) -> int:
    widths = _COUNT_BITS[mode]
    if version <= 9:
        return widths[0]
    if version <= 26:
        return widths[1]
    return widths[2]


def encode_payload(text: str, mode: str) -> BitBuffer:
    """Bit dữ liệu của segment (chưa có mode indicator và character count)."""
    bb = BitBuffer()
    if mode == MODE_NUMERIC:
        for i in range(0, len(text), 3):
            chunk = text[i:i + 3]
            bb.append_bits(int(chunk), len(chunk) * 3 + 1)
    elif mode == MODE_ALPHANUMERIC:
        for i in range(0, len(text) - 1, 2):
            pair = ALPHANUMERIC_CHARSET.index(text[i]) * 45 + ALPHANUMERIC_CHARSET.index(text[i + 1])
            bb.append_bits(pair, 11)
        if len(text) % 2:
            bb.append_bits(ALPHANUMERIC_CHARSET.index(text[-1]), 6)
    else:
        for b in text.encode("utf-8"):
            bb.append_bits(b, 8)
    return bb


def _char_count(text: str, mode: str) -> int:
    if mode == MODE_BYTE:
        return len(text.encode("utf-8"))
    return len(text)


def select_version(
    mode: str,
    count: int,
    payload_bits: int,
    level: ErrorCorrectionLevel,
    min_version: int = MIN_VERSION,
) -> int:
    """Version nhỏ nhất >= min_version đủ dung lượng cho segment."""
    for version in range(min_version, MAX_VERSION + 1):
        count_bits = char_count_bits(mode, version)
        if count >= 1 << count_bits:
            continue
        needed = 4 + count_bits + payload_bits
        if needed <= num_data_codewords(version, level) * 8:
            return version
    raise CapacityExceeded(
        f"{mode} payload of {count} characters does not fit any QR version at level {level.letter}"
    )


def data_codewords(text: str, mode: str, version: int, level: ErrorCorrectionLevel) -> List[int]:
    """Mode header + payload + terminator + padding, đóng gói thành data codewords."""
    capacity_bits = num_data_codewords(version, level) * 8
    bb = BitBuffer()
    bb.append_bits(_MODE_INDICATOR[mode], 4)
    bb.append_bits(_char_count(text, mode), char_count_bits(mode, version))
    bb.bits.extend(encode_payload(text, mode).bits)

    bb.append_bits(0, min(4, capacity_bits - len(bb)))
    bb.append_bits(0, -len(bb) % 8)
    codewords = bb.to_bytes()
    i = 0
    while len(codewords) * 8 < capacity_bits:
        codewords.append(PAD_BYTES[i % 2])
        i += 1
    return codewords


def add_error_correction(data: Sequence[int], version: int, level: ErrorCorrectionLevel) -> List[int]:
    """Chia block, thêm RS codewords cho từng block rồi interleave."""
    lengths, ecc_len = block_layout(version, level)
    blocks = []
    pos = 0
    for length in lengths:
        chunk = list(data[pos:pos + length])
        pos += length
        blocks.append((chunk, reed_solomon.ec_codewords(chunk, ecc_len)))

    result = []
    for i in range(max(lengths)):
        for chunk, _ in blocks:
            if i < len(chunk):
                result.append(chunk[i])
    for i in range(ecc_len):
        for _, ecc in blocks:
            result.append(ecc[i])
    return result


def encode(
    text: str,
    level: ErrorCorrectionLevel = ErrorCorrectionLevel.MEDIUM,
    version: Optional[int] = None,
    mask: Optional[int] = None,
) -> QRMatrix:
    """
    Encode `text` thành QR matrix ở mức sửa lỗi `level`.

    Arguments:
        version: version tối thiểu; None -> version nhỏ nhất vừa payload
        mask: ép dùng mask 0-7; None -> mask có penalty thấp nhất

    Raises:
        TypeError: level không phải ErrorCorrectionLevel
        EncodingError: payload rỗng
        CapacityExceeded: payload không vừa version 40 ở `level`
        InvalidArgument: version / mask ngoài khoảng
    """
    if not isinstance(level, ErrorCorrectionLevel):
        raise TypeError(f"level must be an ErrorCorrectionLevel, got {level!r}")
    if not isinstance(text, str) or not text:
        raise EncodingError("cannot encode an empty payload")
    if version is not None and not MIN_VERSION <= version <= MAX_VERSION:
        raise InvalidArgument(f"version must be between {MIN_VERSION} and {MAX_VERSION}")
    if mask is not None and not 0 <= mask <= 7:
        raise InvalidArgument("mask must be between 0 and 7")

    mode = detect_mode(text)
    payload = encode_payload(text, mode)
    chosen = select_version(mode, _char_count(text, mode), len(payload), level, version or MIN_VERSION)
    logger.debug("%s mode, %d data bits -> version %d-%s", mode, len(payload), chosen, level.letter)

    codewords = add_error_correction(data_codewords(text, mode, chosen, level), chosen, level)
    return build_matrix(chosen, level, codewords, mask)
