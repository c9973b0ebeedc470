from __future__ import annotations

import math
import re

GroupPair = tuple[str, str]

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def tokenize(text: str) -> list[GroupPair]:
    """Split DXF text into ordered ``(code, value)`` pairs.

    Every line is stripped. Trailing blank lines are ignored and a dangling
    final line without a value is dropped. Interior blank lines are kept since
    DXF allows empty values. Only CR, LF and CRLF end a line; other Unicode
    line separators stay inside their value.
    """
    lines = [line.strip() for line in _LINE_BREAK.split(text)]
    while lines and lines[-1] == "":
        lines.pop()
    return [(lines[i], lines[i + 1]) for i in range(0, len(lines) - 1, 2)]


def parse_number(value: str) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_int(value: str) -> int | None:
    number = parse_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def format_number(value: float) -> str:
    number = float(value)
    if number.is_integer() and abs(number) < 1e15:
        return str(int(number))
    return repr(number)


def render_pairs(pairs: list[GroupPair]) -> str:
    return "".join(f"{code}\n{value}\n" for code, value in pairs)
