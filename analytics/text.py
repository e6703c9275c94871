"""Context windows and pattern counting shared by the analytics passes."""
import re
from typing import Optional


def forward(content: str, offset: int, size: int, upper: Optional[int] = None) -> str:
    """Text starting at offset, at most size chars, never past upper."""
    end = offset + size
    if upper is not None and upper > offset:
        end = min(end, upper)
    return content[offset:end]


def backward(content: str, offset: int, size: int) -> str:
    return content[max(0, offset - size):offset]


def count(pattern: re.Pattern, text: str) -> int:
    return sum(1 for _ in pattern.finditer(text))
