"""levels.py — Các mức sửa lỗi (error correction) của QR symbol."""

from enum import Enum


class ErrorCorrectionLevel(Enum):
    """
    Mức chịu lỗi của QR code.

    Mỗi member gồm: chữ cái (L/M/Q/H), tỉ lệ codeword có thể khôi phục,
    và 2 bit indicator ghi vào format information.
    """

    LOW = ("L", 0.07, 0b01)
    MEDIUM = ("M", 0.15, 0b00)
    QUARTILE = ("Q", 0.25, 0b11)
    HIGH = ("H", 0.30, 0b10)

    def __init__(self, letter: str, recoverable: float, format_bits: int):
        self.letter = letter
        self.recoverable = recoverable
        self.format_bits = format_bits

    @property
    def ordinal(self) -> int:
        return _ORDER.index(self)

    @classmethod
    def from_letter(cls, letter: str) -> "ErrorCorrectionLevel":
        for level in cls:
            if level.letter == letter.upper():
                return level
        raise ValueError(f"unknown error correction level: {letter!r}")

    def __str__(self) -> str:
        return self.letter


_ORDER = (
    ErrorCorrectionLevel.LOW,
    ErrorCorrectionLevel.MEDIUM,
    ErrorCorrectionLevel.QUARTILE,
    ErrorCorrectionLevel.HIGH,
)
