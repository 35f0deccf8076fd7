from __future__ import annotations

"""
adl: create numbered Architectural Decision Records and keep their index current.

Importing the package registers the regen/create/list subcommands.
"""

from .cli import (
    UsageError,
    add_debug_flags,
    add_output_format_flags,
    build_subcommand_parser,
    command,
    dispatch,
    render,
)
from .commands import main
from .records import (
    establish_core_files,
    from_cwd,
    from_install_dir,
    generate,
    list_adr_entries,
    load_with_fallback,
    rebuild,
    sanitize_name,
    write,
)

__version__ = "0.1.0"

__all__ = [
    "command",
    "build_subcommand_parser",
    "dispatch",
    "add_output_format_flags",
    "add_debug_flags",
    "render",
    "UsageError",
    "main",
    "from_cwd",
    "from_install_dir",
    "load_with_fallback",
    "write",
    "list_adr_entries",
    "sanitize_name",
    "generate",
    "rebuild",
    "establish_core_files",
    "__version__",
]
