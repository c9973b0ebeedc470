import sys
from pathlib import Path

import cadsync

HERE = Path(__file__).resolve().parent


def main(argv: list[str]) -> None:
    source = Path(argv[0]) if argv else HERE / "data" / "floor_plan.dxf"
    target = Path(argv[1]) if len(argv) > 1 else source.with_suffix(".scr")

    result = cadsync.decode(source.read_text(encoding="utf-8"), filename=source.name)
    print(f"entities: {len(result.document.entities)}")
    for warning in result.warnings:
        print("warning:", warning.message)

    script = cadsync.encode_script(result.document)
    target.write_text(script.text, encoding="utf-8")
    print(f"output: {target}")
    print(f"script lines: {script.written_entities}, skipped: {script.skipped_by_type}")


if __name__ == "__main__":
    main(sys.argv[1:])
