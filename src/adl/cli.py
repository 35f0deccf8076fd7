from __future__ import annotations

"""Subcommand plumbing for adl.

Features:
- @command registry with docstring-powered help/description
- JSON/YAML/table renderers (rich, or tabulate with --no-color)
- Central dispatch owning exit codes and stderr diagnostics
"""

import argparse
import enum as _enum
import inspect
import json
import os
import pathlib as _pathlib
import sys
import textwrap
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Callable, Optional, Sequence, cast

__all__ = [
    "UsageError",
    "command",
    "build_subcommand_parser",
    "dispatch",
    "add_output_format_flags",
    "add_debug_flags",
    "render",
]


class UsageError(Exception):
    """Raised by a command when its arguments cannot be acted on."""


# =========================================================
# Section: Subcommand registry/decorator
# =========================================================

_CommandFn = Callable[..., Any]


@dataclass(frozen=True)
class _CmdSpec:
    help: str
    description: Optional[str]
    fn: _CommandFn
    add_args: Optional[Callable[[argparse.ArgumentParser], None]] = None
    raw_args: bool = False


_COMMANDS: dict[str, _CmdSpec] = {}


def command(
    _fn: Any = None,
    *,
    name: Optional[str] = None,
    help: Optional[str] = None,
    add_args: Optional[Callable[[argparse.ArgumentParser], None]] = None,
    raw_args: bool = False,
) -> Any:
    """
    Decorator to register a subcommand.

    Usage:
        @command                      # name derives from function (cmd_regen -> "regen")
        def cmd_regen(args): ...

        @command("list", add_args=add_output_format_flags)
        def cmd_entries(args): ...

        @command(raw_args=True)      # args.words holds every token after the name, unparsed
        def cmd_create(args): ...
    """
    cmd_name_from_positional = None
    if isinstance(_fn, str) and name is None:
        cmd_name_from_positional = _fn
        _fn = None

    def _register(fn: _CommandFn) -> _CommandFn:
        derived = fn.__name__
        if derived.startswith("cmd_"):
            derived = derived[4:]
        cmd_name = name or cmd_name_from_positional or derived
        if not cmd_name:
            raise ValueError("Command name cannot be empty")
        if cmd_name in _COMMANDS:
            raise ValueError(f"Command '{cmd_name}' is already registered")

        doc = inspect.getdoc(fn)
        if doc:
            lines = doc.splitlines()
            summary = lines[0].strip() if lines else ""
            description = textwrap.dedent(doc)
        else:
            summary = help or cmd_name
            description = help

        _COMMANDS[cmd_name] = _CmdSpec(
            help=help or summary or cmd_name,
            description=description,
            fn=fn,
            add_args=add_args,
            raw_args=raw_args,
        )
        return fn

    if _fn is None:
        return _register
    if callable(_fn):
        return _register(_fn)
    raise TypeError("command decorator expects a function or an optional positional name string")


# =========================================================
# Section: Output formatting flags & renderer
# =========================================================


def add_output_format_flags(p: argparse.ArgumentParser, *, columns: Optional[str] = None) -> None:
    g = p.add_argument_group("Output")
    g.add_argument(
        "--format", choices=["json", "pretty", "yaml", "table", "repr"], help="Select output format"
    )
    g.add_argument("--table", action="store_true", help="Render as a table")
    g.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    g.add_argument("--yaml", action="store_true", help="YAML output")
    g.add_argument("--repr", action="store_true", help="Python repr() output")
    g.add_argument(
        "--columns", metavar="COLS", default=columns, help="Comma-separated column list for --table"
    )
    g.add_argument("--limit", type=int, help="Limit rows for --table")
    g.add_argument("--no-color", action="store_true", help="Plain table without ANSI styling")


def _resolve_format(args: argparse.Namespace) -> str:
    fmt = getattr(args, "format", None)
    if fmt:
        return str(fmt)
    for name in ("table", "pretty", "yaml", "repr"):
        if getattr(args, name, False):
            return name
    return "json"


def _to_serializable(x: Any) -> Any:
    if is_dataclass(x):
        return asdict(cast(Any, x))
    if isinstance(x, (list, tuple)):
        return [_to_serializable(i) for i in x]
    if isinstance(x, dict):
        return {k: _to_serializable(v) for k, v in x.items()}
    if isinstance(x, _pathlib.Path):
        return str(x)
    if isinstance(x, _enum.Enum):
        return _to_serializable(x.value)
    return x


def _rows_from_data(data: Any) -> tuple[list[dict[str, Any]], list[str]]:
    """
    Normalize input into (rows, columns).
    - dict -> [dict]
    - list[dict] -> as-is (columns = stable union of keys in order of first appearance)
    - list[scalar] -> [{"value": item}]
    """
    data = _to_serializable(data)
    if isinstance(data, dict):
        rows: list[dict[str, Any]] = [data]
    elif isinstance(data, list):
        if not data:
            return [], []
        if isinstance(data[0], dict):
            rows = cast(list[dict[str, Any]], data)
        else:
            rows = [{"value": v} for v in data]
    else:
        rows = [{"value": data}]
    cols: list[str] = []
    for r in rows:
        for k in r.keys():
            if k not in cols:
                cols.append(k)
    return rows, cols


def _split_columns(arg: Optional[str], available: list[str]) -> list[str]:
    if not arg:
        return available
    requested = [c.strip() for c in arg.split(",") if c.strip()]
    return [c for c in requested if c in available] or available


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def render(obj: Any, args: argparse.Namespace) -> None:
    if obj is None:
        return
    fmt = _resolve_format(args)
    if fmt == "yaml":
        import yaml

        print(yaml.safe_dump(_to_serializable(obj), sort_keys=False, allow_unicode=True), end="")
        return

    if fmt == "table":
        rows, cols = _rows_from_data(obj)
        limit = getattr(args, "limit", None)
        if limit is not None:
            rows = rows[: max(0, limit)]
        cols = _split_columns(getattr(args, "columns", None), cols)
        if not rows:
            print("(no rows)")
            return
        if not getattr(args, "no_color", False):
            from rich.console import Console
            from rich.table import Table as RichTable

            console = Console(stderr=False, force_jupyter=False)
            t = RichTable(show_header=True, header_style="bold")
            for c in cols:
                t.add_column(c)
            for r in rows:
                t.add_row(*[_cell(r.get(c)) for c in cols])
            console.print(t)
            return
        from tabulate import tabulate as _tabulate

        print(
            _tabulate(
                [[_cell(r.get(c)) for c in cols] for r in rows], headers=cols, tablefmt="github"
            )
        )
        return

    if fmt == "pretty":
        print(json.dumps(_to_serializable(obj), indent=2, ensure_ascii=False))
        return

    if fmt == "repr":
        print(repr(obj))
        return

    print(json.dumps(_to_serializable(obj), separators=(",", ":"), ensure_ascii=False))


# =========================================================
# Section: Subcommand parser & dispatcher
# =========================================================


def add_debug_flags(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("Debugging")
    g.add_argument("--trace", action="store_true", help="On error, print full traceback")


def build_subcommand_parser(
    prog: str = "adl",
    description: Optional[str] = None,
    epilog: Optional[str] = None,
) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=prog,
        description=description,
        epilog=epilog,
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sub = p.add_subparsers(dest="cmd", metavar="COMMAND", required=True)
    for name, spec in _COMMANDS.items():
        sp = sub.add_parser(name, help=spec.help, description=spec.description or spec.help)
        if spec.raw_args:
            sp.add_argument("words", nargs="*", help="taken verbatim, options included")
        else:
            if spec.add_args:
                spec.add_args(sp)
            add_debug_flags(sp)
        sp.set_defaults(_fn=spec.fn)
    return p


def dispatch(
    argv: Optional[Sequence[str]] = None,
    *,
    prog: Optional[str] = None,
    on_unknown: Optional[Callable[[str], int]] = None,
) -> int:
    """Run the subcommand named by ``argv[0]`` and return the process exit code.

    Tokens that name no registered command never reach argparse: they go to
    ``on_unknown`` (or a short stderr notice) and yield exit code 1.
    Commands registered with ``raw_args`` skip argparse as well and receive
    the remaining tokens untouched in ``args.words``.
    """
    argv = list(argv) if argv is not None else sys.argv[1:]
    token = argv[0] if argv else ""
    if token not in _COMMANDS:
        if on_unknown is not None:
            return on_unknown(token)
        print(f"Unknown command '{token}'.", file=sys.stderr)
        return 1

    spec = _COMMANDS[token]
    if spec.raw_args:
        args = argparse.Namespace(cmd=token, words=argv[1:], _fn=spec.fn)
    else:
        prog_name = prog or os.path.basename(sys.argv[0]) or "adl"
        p = build_subcommand_parser(prog=prog_name)
        args = p.parse_args(argv)
    try:
        fn = cast(Callable[[argparse.Namespace], Any], getattr(args, "_fn"))
        result = fn(args)
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 130  # standard SIGINT exit
    except SystemExit:
        raise
    except UsageError as e:
        print(str(e), file=sys.stderr)
        return 1
    except Exception as e:
        if getattr(args, "trace", False):
            import traceback

            traceback.print_exc()
        else:
            print(f"Error: {e.__class__.__name__}: {e}", file=sys.stderr)
        return 1
    render(result, args)
    return 0
