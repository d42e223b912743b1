"""
tables.py — Bảng version / error correction cho QR Model 2 (ISO/IEC 18004).

- Index 0 của mỗi hàng bỏ trống để tra bảng trực tiếp theo số version.
- Thứ tự hàng: L, M, Q, H (xem ErrorCorrectionLevel.ordinal).
"""

from typing import List, Tuple

from otpcore.qr.levels import ErrorCorrectionLevel

MIN_VERSION = 1
MAX_VERSION = 40

# Số EC codeword mỗi block.
ECC_CODEWORDS_PER_BLOCK = (
    (-1, 7, 10, 15, 20, 26, 18, 20, 24, 30, 18, 20, 24, 26, 30, 22, 24, 28, 30, 28, 28,
     28, 28, 30, 30, 26, 28, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30),
    (-1, 10, 16, 26, 18, 24, 16, 18, 22, 22, 26, 30, 22, 22, 24, 24, 28, 28, 26, 26, 26,
     26, 28, 28, 28, 28, 28, 28, 28, 28, 28, 28, 28, 28, 28, 28, 28, 28, 28, 28, 28),
    (-1, 13, 22, 18, 26, 18, 24, 18, 22, 20, 24, 28, 26, 24, 20, 30, 24, 28, 28, 26, 30,
     28, 30, 30, 30, 30, 28, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30),
    (-1, 17, 28, 22, 16, 22, 28, 26, 26, 24, 28, 24, 28, 22, 24, 24, 30, 28, 28, 26, 28,
     30, 24, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30, 30),
)

# Số EC block.
NUM_ERROR_CORRECTION_BLOCKS = (
    (-1, 1, 1, 1, 1, 1, 2, 2, 2, 2, 4, 4, 4, 4, 4, 6, 6, 6, 6, 7, 8,
     8, 9, 9, 10, 12, 12, 12, 13, 14, 15, 16, 17, 18, 19, 19, 20, 21, 22, 24, 25),
    (-1, 1, 1, 1, 2, 2, 4, 4, 4, 5, 5, 5, 8, 9, 9, 10, 10, 11, 13, 14, 16,
     17, 17, 18, 20, 21, 23, 25, 26, 28, 29, 31, 33, 35, 37, 38, 40, 43, 45, 47, 49),
    (-1, 1, 1, 2, 2, 4, 4, 6, 6, 8, 8, 8, 10, 12, 16, 12, 17, 16, 18, 21, 20,
     23, 23, 25, 27, 29, 34, 34, 35, 38, 40, 43, 45, 48, 51, 53, 56, 59, 62, 65, 68),
    (-1, 1, 1, 2, 4, 4, 4, 5, 6, 8, 8, 11, 11, 16, 16, 18, 16, 19, 21, 25, 25,
     25, 34, 30, 32, 35, 37, 40, 42, 45, 48, 51, 54, 57, 60, 63, 66, 70, 74, 77, 81),
)


def symbol_size(version: int) -> int:
    return version * 4 + 17


def alignment_pattern_positions(version: int) -> List[int]:
    """Tâm (row/col) của các alignment pattern, tăng dần."""
    if version == 1:
        return []
    count = version // 7 + 2
    step = (version * 8 + count * 3 + 5) // (count * 4 - 4) * 2
    positions = [symbol_size(version) - 7 - i * step for i in range(count - 1)]
    return [6] + sorted(positions)


def num_raw_data_modules(version: int) -> int:
    """Số module còn lại cho codeword sau khi đặt hết function pattern."""
    result = (16 * version + 128) * version + 64
    if version >= 2:
        count = version // 7 + 2
        result -= (25 * count - 10) * count - 55
        if version >= 7:
            result -= 36
    return result


def num_raw_codewords(version: int) -> int:
    return num_raw_data_modules(version) // 8


def num_data_codewords(version: int, level: ErrorCorrectionLevel) -> int:
    row = level.ordinal
    return (num_raw_codewords(version)
            - ECC_CODEWORDS_PER_BLOCK[row][version] * NUM_ERROR_CORRECTION_BLOCKS[row][version])


def block_layout(version: int, level: ErrorCorrectionLevel) -> Tuple[List[int], int]:
    """
    Cách chia data codewords thành các block.

    Returns:
        (số data codeword mỗi block, số EC codeword mỗi block).
        Block ngắn đứng trước; block dài hơn một data codeword.
    """
    row = level.ordinal
    num_blocks = NUM_ERROR_CORRECTION_BLOCKS[row][version]
    ecc_len = ECC_CODEWORDS_PER_BLOCK[row][version]
    raw = num_raw_codewords(version)
    num_short = num_blocks - raw % num_blocks
    short_len = raw // num_blocks - ecc_len
    return [short_len if i < num_short else short_len + 1 for i in range(num_blocks)], ecc_len
