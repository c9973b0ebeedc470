from typing import Sequence

from .convert import ConvertResult, save_dxf, to_ezdxf
from .document import CadDocument, DecodeResult, DocumentMetadata, decode
from .encoder import EncodeResult, encode_dxf
from .entity import (
    Arc,
    CadEntity,
    Circle,
    Dimension,
    Ellipse,
    Insert,
    Line,
    LWPolyline,
    MText,
    Polyline,
    Spline,
    Text,
    Unknown,
    Vertex,
)
from .errors import DecodeWarning, EncodeWarning, SchemaError
from .groupcodes import tokenize
from .script import encode_script
from .sections import Section, SectionStateMachine

__all__ = [
    "decode",
    "encode_dxf",
    "encode_script",
    "tokenize",
    "CadDocument",
    "DocumentMetadata",
    "DecodeResult",
    "EncodeResult",
    "Section",
    "SectionStateMachine",
    "CadEntity",
    "Line",
    "Insert",
    "Circle",
    "Arc",
    "Ellipse",
    "LWPolyline",
    "Polyline",
    "Vertex",
    "Text",
    "MText",
    "Dimension",
    "Spline",
    "Unknown",
    "DecodeWarning",
    "EncodeWarning",
    "SchemaError",
    "to_ezdxf",
    "save_dxf",
    "ConvertResult",
]


def main(argv: Sequence[str] | None = None) -> int:
    from cadsync.cli import main as cli_main

    return cli_main(argv)
