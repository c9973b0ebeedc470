"""AutoCAD command script (``.scr``) output.

Each supported entity becomes one command line. A space in a script acts as
Enter, so the LINE command carries a trailing space to end its point prompt.
Scripts are 2D: Z coordinates and the Z scale factor are not written.
"""

from __future__ import annotations

from typing import Any, Callable

from .document import CadDocument, coerce_document
from .encoder import EncodeResult, EncodeTally, checked_number, checked_point
from .entity import Circle, Insert, Line
from .groupcodes import format_number


def encode_script(doc: CadDocument | dict[str, Any], *, strict: bool = False) -> EncodeResult:
    doc = coerce_document(doc)
    tally = EncodeTally("script")

    lines: list[str] = []
    for index, entity in enumerate(doc.entities):
        tally.total += 1
        if isinstance(entity, Insert) and _unscriptable(entity.block):
            tally.skip(
                index,
                entity,
                "unscriptable-name",
                f"block name {entity.block!r} contains a double quote or line break and cannot be scripted, skipped",
            )
            continue
        command = _COMMANDS.get(type(entity))
        if command is None:
            tally.unsupported(index, entity)
            continue
        lines.append(command(entity, index))
        tally.written += 1

    text = "".join(f"{line}\n" for line in lines)
    return tally.result(text, strict=strict)


def _unscriptable(name: str) -> bool:
    return any(char in name for char in '"\r\n')


def _xy(point: Any, index: int, name: str) -> str:
    x, y, _ = checked_point(point, index, name)
    return f"{format_number(x)},{format_number(y)}"


def _line_command(entity: Line, index: int) -> str:
    return f"LINE {_xy(entity.start, index, 'start')} {_xy(entity.end, index, 'end')} "


def _insert_command(entity: Insert, index: int) -> str:
    sx, sy, _ = checked_point(entity.scale, index, "scale")
    rotation = checked_number(entity.rotation, index, "rotation")
    return (
        f'-INSERT "{entity.block}" {_xy(entity.insertion_point, index, "insertion_point")} '
        f"{format_number(sx)} {format_number(sy)} {format_number(rotation)}"
    )


def _circle_command(entity: Circle, index: int) -> str:
    radius = checked_number(entity.radius, index, "radius")
    return f"CIRCLE {_xy(entity.center, index, 'center')} {format_number(radius)}"


_COMMANDS: dict[type, Callable[[Any, int], str]] = {
    Line: _line_command,
    Insert: _insert_command,
    Circle: _circle_command,
}
