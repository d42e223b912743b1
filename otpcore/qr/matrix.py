"""
matrix.py — Dựng QR matrix: function patterns, đặt codeword, masking.

Tọa độ là (row, col), row 0 ở trên cùng.
"""

from dataclasses import dataclass
import logging
from typing import Callable, List, Optional, Sequence, Tuple

from otpcore.qr.levels import ErrorCorrectionLevel
from otpcore.qr.tables import alignment_pattern_positions, symbol_size

logger = logging.getLogger(__name__)

# Trọng số penalty
PENALTY_N1 = 3
PENALTY_N2 = 3
PENALTY_N3 = 40
PENALTY_N4 = 10

_FINDER_LIKE = ("10111010000", "00001011101")

MASK_PATTERNS: Tuple[Callable[[int, int], bool], ...] = (
    lambda r, c: (r + c) % 2 == 0,
    lambda r, c: r % 2 == 0,
    lambda r, c: c % 3 == 0,
    lambda r, c: (r + c) % 3 == 0,
    lambda r, c: (r // 2 + c // 3) % 2 == 0,
    lambda r, c: (r * c) % 2 + (r * c) % 3 == 0,
    lambda r, c: ((r * c) % 2 + (r * c) % 3) % 2 == 0,
    lambda r, c: ((r + c) % 2 + (r * c) % 3) % 2 == 0,
)


@dataclass(frozen=True)
class QRMatrix:
    """Lưới module vuông; True = module tối."""

    version: int
    level: ErrorCorrectionLevel
    mask: int
    modules: Tuple[Tuple[bool, ...], ...]

    @property
    def size(self) -> int:
        return len(self.modules)

    def is_dark(self, row: int, col: int) -> bool:
        return self.modules[row][col]

    def __str__(self) -> str:
        return "\n".join("".join("#" if m else "." for m in row) for row in self.modules)


def format_bits(level: ErrorCorrectionLevel, mask: int) -> int:
    """Format information 15 bit: mã BCH(15,5) XOR 0x5412."""
    data = level.format_bits << 3 | mask
    rem = data
    for _ in range(10):
        rem = (rem << 1) ^ ((rem >> 9) * 0x537)
    return (data << 10 | rem) ^ 0x5412


def version_bits(version: int) -> int:
    """Version information 18 bit: mã BCH(18,6)."""
    rem = version
    for _ in range(12):
        rem = (rem << 1) ^ ((rem >> 11) * 0x1F25)
    return version << 12 | rem


def _bit(value: int, i: int) -> bool:
    return (value >> i) & 1 != 0


class _Canvas:
    def __init__(self, version: int):
        self.version = version
        self.size = symbol_size(version)
        self.modules = [[False] * self.size for _ in range(self.size)]
        self.is_function = [[False] * self.size for _ in range(self.size)]

    def set_function(self, row: int, col: int, dark: bool) -> None:
        self.modules[row][col] = dark
        self.is_function[row][col] = True

    def draw_function_patterns(self) -> None:
        size = self.size
        for i in range(size):
            self.set_function(6, i, i % 2 == 0)
            self.set_function(i, 6, i % 2 == 0)

        # finder pattern kèm separator
        for row, col in ((3, 3), (3, size - 4), (size - 4, 3)):
            for dr in range(-4, 5):
                for dc in range(-4, 5):
                    r, c = row + dr, col + dc
                    if 0 <= r < size and 0 <= c < size:
                        self.set_function(r, c, max(abs(dr), abs(dc)) not in (2, 4))

        positions = alignment_pattern_positions(self.version)
        last = len(positions) - 1
        for i, row in enumerate(positions):
            for j, col in enumerate(positions):
                if (i, j) in ((0, 0), (0, last), (last, 0)):
                    continue
                for dr in range(-2, 3):
                    for dc in range(-2, 3):
                        self.set_function(row + dr, col + dc, max(abs(dr), abs(dc)) != 1)

        # giữ chỗ vùng format; bit thật được ghi theo từng mask
        self.draw_format_bits(0)
        self.draw_version()

    def draw_format_bits(self, bits: int) -> None:
        size = self.size
        for i in range(6):
            self.set_function(i, 8, _bit(bits, i))
        self.set_function(7, 8, _bit(bits, 6))
        self.set_function(8, 8, _bit(bits, 7))
        self.set_function(8, 7, _bit(bits, 8))
        for i in range(9, 15):
            self.set_function(8, 14 - i, _bit(bits, i))

        for i in range(8):
            self.set_function(8, size - 1 - i, _bit(bits, i))
        for i in range(8, 15):
            self.set_function(size - 15 + i, 8, _bit(bits, i))
        self.set_function(size - 8, 8, True)

    def draw_version(self) -> None:
        if self.version < 7:
            return
        bits = version_bits(self.version)
        for i in range(18):
            a = self.size - 11 + i % 3
            b = i // 3
            self.set_function(b, a, _bit(bits, i))
            self.set_function(a, b, _bit(bits, i))

    def place_codewords(self, codewords: Sequence[int]) -> None:
        """Đặt codeword theo zig-zag, từng dải 2 cột, bắt đầu từ góc dưới phải."""
        size = self.size
        total_bits = len(codewords) * 8
        i = 0
        right = size - 1
        while right >= 1:
            if right == 6:
                right = 5
            upward = ((right + 1) & 2) == 0
            for vert in range(size):
                row = size - 1 - vert if upward else vert
                for j in range(2):
                    col = right - j
                    if self.is_function[row][col] or i >= total_bits:
                        continue
                    self.modules[row][col] = _bit(codewords[i >> 3], 7 - (i & 7))
                    i += 1
            right -= 2

    def apply_mask(self, mask: int) -> None:
        pattern = MASK_PATTERNS[mask]
        for r in range(self.size):
            for c in range(self.size):
                if not self.is_function[r][c] and pattern(r, c):
                    self.modules[r][c] = not self.modules[r][c]

    def snapshot(self) -> List[List[bool]]:
        return [list(row) for row in self.modules]


def penalty_score(modules: Sequence[Sequence[bool]]) -> int:
    size = len(modules)
    columns = [[modules[r][c] for r in range(size)] for c in range(size)]
    lines = list(modules) + columns
    score = 0

    # N1: chuỗi >= 5 module cùng màu
    for line in lines:
        run = 1
        for k in range(1, size):
            if line[k] == line[k - 1]:
                run += 1
                continue
            if run >= 5:
                score += PENALTY_N1 + run - 5
            run = 1
        if run >= 5:
            score += PENALTY_N1 + run - 5

    # N2: khối 2x2 cùng màu
    for r in range(size - 1):
        row, below = modules[r], modules[r + 1]
        for c in range(size - 1):
            if row[c] == row[c + 1] == below[c] == below[c + 1]:
                score += PENALTY_N2

    # N3: mẫu giống finder 1:1:3:1:1 cạnh 4 module sáng
    for line in lines:
        text = "".join("1" if m else "0" for m in line)
        for pattern in _FINDER_LIKE:
            start = text.find(pattern)
            while start != -1:
                score += PENALTY_N3
                start = text.find(pattern, start + 1)

    # N4: cân bằng tối/sáng
    dark = sum(sum(1 for m in row if m) for row in modules)
    total = size * size
    deviation = abs(dark * 100 / total - 50)
    score += int(deviation // 5) * PENALTY_N4
    return score


def build_matrix(
    version: int,
    level: ErrorCorrectionLevel,
    codewords: Sequence[int],
    mask: Optional[int] = None,
) -> QRMatrix:
    """Vẽ symbol và chọn mask có penalty thấp nhất (hoặc dùng `mask` nếu được truyền)."""
    canvas = _Canvas(version)
    canvas.draw_function_patterns()
    canvas.place_codewords(codewords)
    base = canvas.snapshot()

    candidates = range(8) if mask is None else (mask,)
    best = None
    for m in candidates:
        canvas.modules = [list(row) for row in base]
        canvas.apply_mask(m)
        canvas.draw_format_bits(format_bits(level, m))
        score = penalty_score(canvas.modules) if mask is None else 0
        if best is None or score < best[0]:
            best = (score, m, canvas.snapshot())
    score, chosen, modules = best
    logger.debug("version %d-%s: mask %d (penalty %d)", version, level.letter, chosen, score)
    return QRMatrix(
        version=version,
        level=level,
        mask=chosen,
        modules=tuple(tuple(row) for row in modules),
    )
