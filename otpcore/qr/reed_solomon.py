"""
reed_solomon.py — Mã sửa lỗi Reed-Solomon trên GF(256) cho QR code.

- Trường sinh bởi đa thức nguyên thủy x^8 + x^4 + x^3 + x^2 + 1 (0x11D).
- Đa thức sinh g(x) = (x - a^0)(x - a^1)...(x - a^(n-1)).
"""

from functools import lru_cache
from typing import List, Sequence, Tuple

PRIMITIVE = 0x11D


def _build_tables() -> Tuple[List[int], List[int]]:
    exp = [0] * 512
    log = [0] * 256
    x = 1
    for i in range(255):
        exp[i] = x
        log[x] = i
        x <<= 1
        if x & 0x100:
            x ^= PRIMITIVE
    # nhân đôi bảng để gf_mul không cần modulo
    for i in range(255, 512):
        exp[i] = exp[i - 255]
    return exp, log


EXP_TABLE, LOG_TABLE = _build_tables()


def gf_mul(a: int, b: int) -> int:
    if a == 0 or b == 0:
        return 0
    return EXP_TABLE[LOG_TABLE[a] + LOG_TABLE[b]]


def poly_mul(p: Sequence[int], q: Sequence[int]) -> List[int]:
    """Tích hai đa thức; hệ số xếp từ bậc cao xuống."""
    result = [0] * (len(p) + len(q) - 1)
    for i, a in enumerate(p):
        for j, b in enumerate(q):
            result[i + j] ^= gf_mul(a, b)
    return result


@lru_cache(maxsize=None)
def generator_polynomial(degree: int) -> Tuple[int, ...]:
    if not 1 <= degree <= 255:
        raise ValueError(f"degree out of range: {degree}")
    g = [1]
    for i in range(degree):
        g = poly_mul(g, [1, EXP_TABLE[i]])
    return tuple(g)


def ec_codewords(data: Sequence[int], degree: int) -> List[int]:
    """Phần dư của data(x) * x^degree chia cho đa thức sinh."""
    generator = generator_polynomial(degree)
    msg = list(data) + [0] * degree
    for i in range(len(data)):
        coef = msg[i]
        if coef:
            for j in range(1, len(generator)):
                msg[i + j] ^= gf_mul(generator[j], coef)
    return msg[len(data):]
