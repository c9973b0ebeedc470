from __future__ import annotations

import json
from pathlib import Path

import pytest

import cadsync.cli as cli_module
from tests._dxf_helpers import dxf_entities_of_type, dxf_text

SOURCE = dxf_text(
    "0\nLINE\n8\nWALLS\n10\n0\n20\n0\n30\n0\n11\n10\n21\n0\n31\n0",
    "0\nINSERT\n2\nCHAIR\n8\nFURN\n10\n1\n20\n2\n30\n0\n50\n45",
    "0\nHATCH\n8\nFILL\n2\nSOLID",
    "0\nCIRCLE\n8\nHOLES\n10\n5\n20\n5\n30\n0\n40\nbad",
)


def _write_source(tmp_path: Path) -> Path:
    path = tmp_path / "plan.dxf"
    path.write_text(SOURCE, encoding="utf-8")
    return path


def test_cli_inspect_reports_counts_and_warnings(tmp_path: Path, capsys) -> None:
    path = _write_source(tmp_path)

    code = cli_module.main(["inspect", str(path)])
    out = capsys.readouterr().out

    assert code == 0
    assert "total_entities: 4" in out
    assert "LINE: 1" in out
    assert "INSERT: 1" in out
    assert "unknown[HATCH]: 1" in out
    assert "layers: 0, WALLS, FURN, FILL, HOLES" in out
    assert "warnings[invalid-number]: 1" in out
    assert "warnings[unknown-entity]: 1" in out


def test_cli_inspect_missing_file(tmp_path: Path, capsys) -> None:
    code = cli_module.main(["inspect", str(tmp_path / "missing.dxf")])
    assert code == 2
    assert "error: file not found" in capsys.readouterr().err


def test_cli_to_json_writes_document_value(tmp_path: Path, capsys) -> None:
    path = _write_source(tmp_path)
    output = tmp_path / "plan.json"

    code = cli_module.main(["to-json", str(path), "-o", str(output)])

    assert code == 0
    value = json.loads(output.read_text(encoding="utf-8"))
    assert [entity["type"] for entity in value["entities"]] == ["LINE", "INSERT", "UNKNOWN", "CIRCLE"]
    assert value["metadata"]["filename"] == "plan.dxf"
    assert value["entities"][3]["radius"] == 1.0
    assert "warning:" in capsys.readouterr().err


def test_cli_to_dxf_reports_skipped(tmp_path: Path, capsys) -> None:
    path = _write_source(tmp_path)
    output = tmp_path / "out.dxf"

    code = cli_module.main(["to-dxf", str(path), str(output)])
    out = capsys.readouterr().out

    assert code == 0
    assert "written_entities: 3" in out
    assert "skipped[HATCH]: 1" in out
    assert len(dxf_entities_of_type(output.read_text(encoding="utf-8"), "INSERT")) == 1


def test_cli_to_dxf_passthrough_keeps_unknown(tmp_path: Path, capsys) -> None:
    path = _write_source(tmp_path)
    output = tmp_path / "out.dxf"

    code = cli_module.main(["to-dxf", str(path), str(output), "--passthrough-unknown"])

    assert code == 0
    assert "skipped_entities: 0" in capsys.readouterr().out
    assert len(dxf_entities_of_type(output.read_text(encoding="utf-8"), "HATCH")) == 1


def test_cli_to_dxf_strict_fails(tmp_path: Path, capsys) -> None:
    path = _write_source(tmp_path)

    code = cli_module.main(["to-dxf", str(path), str(tmp_path / "out.dxf"), "--strict"])

    assert code == 2
    assert "error: failed to encode DXF" in capsys.readouterr().err


def test_cli_to_script_from_json(tmp_path: Path, capsys) -> None:
    source = tmp_path / "doc.json"
    source.write_text(
        json.dumps({"entities": [{"type": "INSERT", "block": "CHAIR", "insertion_point": [1, 2, 0], "rotation": 45}]}),
        encoding="utf-8",
    )
    output = tmp_path / "doc.scr"

    code = cli_module.main(["to-script", str(source), str(output)])

    assert code == 0
    assert output.read_text(encoding="utf-8") == '-INSERT "CHAIR" 1,2 1 1 45\n'


def test_cli_reports_schema_errors(tmp_path: Path, capsys) -> None:
    source = tmp_path / "doc.json"
    source.write_text(json.dumps({"entities": [{"layer": "A"}]}), encoding="utf-8")

    code = cli_module.main(["to-script", str(source), str(tmp_path / "doc.scr")])

    assert code == 2
    assert "entity 0" in capsys.readouterr().err


def test_cli_convert_uses_ezdxf(tmp_path: Path, capsys) -> None:
    pytest.importorskip("ezdxf")
    path = _write_source(tmp_path)
    output = tmp_path / "full.dxf"

    code = cli_module.main(["convert", str(path), str(output)])
    out = capsys.readouterr().out

    assert code == 0
    assert output.exists()
    assert "written_entities: 3" in out
    assert "skipped[HATCH]: 1" in out


def test_cli_without_command_prints_help(capsys) -> None:
    assert cli_module.main([]) == 0
    assert "usage: cadsync" in capsys.readouterr().out
