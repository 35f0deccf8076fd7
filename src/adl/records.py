from __future__ import annotations

"""ADR directory conventions: paths, templates, locked writes, numbering and the index."""

import datetime as _dt
import fcntl
import os
import re
from contextlib import contextmanager
from dataclasses import dataclass
from email.utils import formatdate
from pathlib import Path
from typing import Iterator, Optional

__all__ = [
    "ADR_DIR_NAME",
    "RESERVED_NAMES",
    "from_cwd",
    "from_install_dir",
    "load_with_fallback",
    "write",
    "locked_directory",
    "list_adr_entries",
    "sanitize_name",
    "generate",
    "http_date",
    "rebuild",
    "establish_core_files",
    "AdrEntry",
    "summarize_entry",
]

ADR_DIR_NAME = "adr"
RESERVED_NAMES = frozenset({"README.md", "assets", "templates"})

ADR_TEMPLATE_OVERRIDE = "template_adr.md"
ADR_TEMPLATE_DEFAULT = "adr_template.md"
README_TEMPLATE_OVERRIDE = "template_readme.md"
README_TEMPLATE_DEFAULT = "readme_template.md"

# Replaced one after the other, in this order
_UNSAFE_FILENAME_CHARS = ("/", "\\", ":", "*", "?", '"', "<", ">", "|")

_ENTRY_RX = re.compile(r"^(\d{5})-(.*)\.md$")


# ---- Paths ----


def from_cwd(*parts: str) -> Path:
    return Path.cwd().joinpath(*parts)


def from_install_dir(*parts: str) -> Path:
    return Path(__file__).resolve().parent.joinpath(*parts)


# ---- Templates ----


def load_with_fallback(override_path: Path, default_name: str) -> str:
    """Return the project override if it exists, else the bundled default template.

    A missing bundled template raises FileNotFoundError.
    """
    if override_path.is_file():
        return override_path.read_text(encoding="utf-8")
    return from_install_dir("templates", default_name).read_text(encoding="utf-8")


# ---- Writing & locking ----


def write(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        fcntl.flock(f, fcntl.LOCK_EX)
        try:
            f.write(content)
            f.flush()
        finally:
            fcntl.flock(f, fcntl.LOCK_UN)


@contextmanager
def locked_directory(path: Path) -> Iterator[None]:
    """Hold an exclusive advisory lock on a directory for the duration of the block.

    Serializes count-then-create across concurrent adl processes.
    """
    fd = os.open(path, os.O_RDONLY)
    try:
        fcntl.flock(fd, fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)


# ---- Scanning ----


def list_adr_entries(adr_dir: Path) -> list[str]:
    """Base names inside the ADR directory, reserved names excluded. Unsorted."""
    return [p.name for p in adr_dir.iterdir() if p.name not in RESERVED_NAMES]


@dataclass(frozen=True)
class AdrEntry:
    number: Optional[str]
    title: str
    file: str


def summarize_entry(name: str) -> AdrEntry:
    """Split ``NNNNN-title.md``; names off that pattern keep ``number=None``."""
    m = _ENTRY_RX.match(name)
    if not m:
        return AdrEntry(number=None, title=name, file=name)
    return AdrEntry(number=m.group(1), title=m.group(2), file=name)


# ---- Generation ----


def sanitize_name(name: str) -> str:
    for char in _UNSAFE_FILENAME_CHARS:
        name = name.replace(char, " ")
    return name


def generate(sequence_number: int, name: str, adr_dir: Path) -> Path:
    """Write a new ADR record numbered ``sequence_number`` and return its path.

    The ADR template's ``{{name}}`` placeholder becomes ``"NNNNN - name"``;
    the filename uses the sanitized name.
    """
    padded = f"{sequence_number:05d}"
    heading = f"{padded} - {name}"
    template = load_with_fallback(adr_dir / "templates" / ADR_TEMPLATE_OVERRIDE, ADR_TEMPLATE_DEFAULT)
    contents = template.replace("{{name}}", heading)
    path = adr_dir / f"{padded}-{sanitize_name(name)}.md"
    write(path, contents)
    return path


def http_date(now: Optional[_dt.datetime] = None) -> str:
    """IMF-fixdate, e.g. ``Sun, 06 Nov 1994 08:49:37 GMT``."""
    ts = now.timestamp() if now is not None else None
    return formatdate(ts, usegmt=True)


def rebuild(adr_dir: Path, now: Optional[_dt.datetime] = None) -> Path:
    template = load_with_fallback(
        adr_dir / "templates" / README_TEMPLATE_OVERRIDE, README_TEMPLATE_DEFAULT
    )
    output = template.replace("{{timestamp}}", http_date(now))
    lines = [f" - [{name}](./{name})" for name in sorted(list_adr_entries(adr_dir))]
    output = output.replace("{{contents}}", "\n".join(lines))
    path = adr_dir / "README.md"
    write(path, output)
    return path


def establish_core_files(adr_dir: Path) -> None:
    """Create ``assets/`` and ``templates/`` and seed README.md on first run."""
    (adr_dir / "assets").mkdir(parents=True, exist_ok=True)
    (adr_dir / "templates").mkdir(parents=True, exist_ok=True)
    readme = adr_dir / "README.md"
    if not readme.exists():
        write(readme, from_install_dir("templates", README_TEMPLATE_DEFAULT).read_text(encoding="utf-8"))
