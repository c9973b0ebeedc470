from __future__ import annotations

from dataclasses import dataclass


class SchemaError(ValueError):
    """Raised when a value handed to an encoder is not a well-formed document."""

    def __init__(self, message: str, *, index: int | None = None, field: str | None = None) -> None:
        location = ""
        if index is not None:
            location = f"entity {index}"
            if field is not None:
                location += f" field {field!r}"
        elif field is not None:
            location = f"field {field!r}"
        super().__init__(f"{location}: {message}" if location else message)
        self.index = index
        self.field = field


@dataclass(frozen=True)
class DecodeWarning:
    kind: str
    message: str
    entity_index: int | None = None
    group_code: str | None = None


@dataclass(frozen=True)
class EncodeWarning:
    kind: str
    message: str
    entity_index: int | None = None
    dxftype: str | None = None
