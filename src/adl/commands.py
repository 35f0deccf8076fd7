from __future__ import annotations

"""adl subcommands: regen, create, list."""

import argparse
import sys
from typing import Optional, Sequence

from . import records
from .cli import UsageError, add_output_format_flags, command, dispatch

PROG = "adl"


@command
def cmd_regen(args: argparse.Namespace) -> None:
    """Rebuild the core ADR files and regenerate adr/README.md"""
    adr_dir = records.from_cwd(records.ADR_DIR_NAME)
    records.establish_core_files(adr_dir)
    with records.locked_directory(adr_dir):
        records.rebuild(adr_dir)


@command(raw_args=True)
def cmd_create(args: argparse.Namespace) -> None:
    """Create the next numbered ADR and regenerate adr/README.md

    Every token after `create` is part of the name, dashes included.
    """
    name = "".join(args.words)
    if not name:
        raise UsageError(
            "No name supplied for the ADR.\n"
            f"Command should be: `{PROG} create <Name of ADR here>`"
        )
    adr_dir = records.from_cwd(records.ADR_DIR_NAME)
    records.establish_core_files(adr_dir)
    with records.locked_directory(adr_dir):
        count = len(records.list_adr_entries(adr_dir))
        records.generate(count, name, adr_dir)
        records.rebuild(adr_dir)


@command("list", add_args=lambda p: add_output_format_flags(p, columns="number,title"))
def cmd_entries(args: argparse.Namespace) -> list[records.AdrEntry]:
    """List ADR records in filename order"""
    adr_dir = records.from_cwd(records.ADR_DIR_NAME)
    if not adr_dir.is_dir():
        return []
    return [records.summarize_entry(name) for name in sorted(records.list_adr_entries(adr_dir))]


def _unknown_command(token: str) -> int:
    print(f"Unknown command '{token}'.", file=sys.stderr)
    print(records.from_install_dir("templates", "help.txt").read_text(encoding="utf-8"), file=sys.stderr)
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    return dispatch(argv, prog=PROG, on_unknown=_unknown_command)
