#!/usr/bin/env python3
from __future__ import annotations

import sys
import tomllib
from pathlib import Path


def main() -> int:
    root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(root / "src"))

    try:
        import adl  # type: ignore
    except Exception as e:
        print(f"Import error during version check: {e}", file=sys.stderr)
        return 1

    with open(root / "pyproject.toml", "rb") as f:
        v_project = tomllib.load(f).get("project", {}).get("version")
    v_pkg = getattr(adl, "__version__", None)

    if not v_project or not v_pkg:
        print(
            f"Missing version: pyproject={v_project!r} adl={v_pkg!r}",
            file=sys.stderr,
        )
        return 1

    if v_project != v_pkg:
        print(
            f"Version mismatch: pyproject.toml={v_project} vs adl.__version__={v_pkg}",
            file=sys.stderr,
        )
        return 1

    print(f"Versions OK: {v_pkg}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
