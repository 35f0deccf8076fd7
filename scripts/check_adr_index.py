#!/usr/bin/env python3
from __future__ import annotations

import sys
from pathlib import Path


def main(argv: list[str]) -> int:
    root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(root / "src"))
    from adl.records import ADR_DIR_NAME, list_adr_entries  # type: ignore

    project = Path(argv[0]) if argv else Path.cwd()
    adr_dir = project / ADR_DIR_NAME
    index = adr_dir / "README.md"
    if not adr_dir.is_dir():
        print(f"ADR directory missing: {adr_dir}", file=sys.stderr)
        return 1
    if not index.exists():
        print(f"ADR index missing: {index}", file=sys.stderr)
        return 1
    content = index.read_text(encoding="utf-8")
    missing = [e for e in sorted(list_adr_entries(adr_dir)) if f"(./{e})" not in content]
    if missing:
        print("ADR index missing entries (run `adl regen`):\n - " + "\n - ".join(missing), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
