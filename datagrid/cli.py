"""Command-line interface for datagrid configuration and exports."""

from __future__ import annotations

import argparse
import json
import os
import sys

from pathlib import Path
from typing import TYPE_CHECKING, Any

from .config import _REDACTED, _SENSITIVE_FIELDS, _user_config_path, apply_log_settings


if TYPE_CHECKING:
    from .config import DataGridSettings


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="datagrid",
        description="datagrid configuration and export tools",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Show or export configuration",
    )
    config_group = config_parser.add_mutually_exclusive_group()
    config_group.add_argument(
        "--show",
        action="store_true",
        help="Show current configuration",
    )
    config_group.add_argument(
        "--toml",
        action="store_true",
        help="Export configuration as TOML",
    )
    config_group.add_argument(
        "--env",
        action="store_true",
        help="Export configuration as environment variables",
    )
    config_group.add_argument(
        "--sources",
        action="store_true",
        help="Show configuration file sources",
    )
    config_parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output file path (default: stdout)",
    )

    # init command
    init_parser = subparsers.add_parser(
        "init",
        help="Initialize a datagrid.toml configuration file",
    )
    init_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Overwrite existing configuration file",
    )
    init_parser.add_argument(
        "--path",
        "-p",
        type=str,
        default="datagrid.toml",
        help="Path for configuration file (default: datagrid.toml)",
    )

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Export rows from a JSON file",
    )
    export_parser.add_argument("rows", type=str, help="JSON file: a list of row objects")
    export_parser.add_argument(
        "--format",
        "-F",
        dest="export_format",
        type=str,
        default="csv",
        help="Export format: csv, excel, word, pdf, html, print (default: csv)",
    )
    export_parser.add_argument(
        "--columns",
        type=str,
        default=None,
        help="JSON file with a list of column definitions",
    )
    export_parser.add_argument(
        "--scope",
        choices=["all", "current-page", "selected"],
        default="all",
        help="Rows to export (default: all)",
    )
    export_parser.add_argument("--search", type=str, default=None, help="Free-text search")
    export_parser.add_argument(
        "--filter",
        dest="filters",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Column filter, repeatable (use KEY_start/KEY_end for date ranges)",
    )
    export_parser.add_argument(
        "--sort",
        type=str,
        default=None,
        metavar="KEY[:desc]",
        help="Sort column with optional direction",
    )
    export_parser.add_argument(
        "--select",
        dest="selected",
        action="append",
        default=[],
        metavar="ROW_ID",
        help="Row id to include with --scope selected, repeatable",
    )
    export_parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    export_parser.add_argument("--page-size", type=int, default=None, help="Rows per page")
    export_parser.add_argument("--title", type=str, default=None, help="Report title")
    export_parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Output file or directory (default: generated filename)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the main CLI entry point.

    Returns
    -------
    int
        Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    apply_log_settings()

    if args.command == "config":
        return handle_config(args)
    if args.command == "init":
        return handle_init(args)
    if args.command == "export":
        return handle_export(args)
    parser.print_help()
    return 0


def handle_config(args: argparse.Namespace) -> int:
    """Handle the config command.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line arguments.

    Returns
    -------
    int
        Exit code.
    """
    from .config import DataGridSettings

    settings = DataGridSettings()

    if args.sources:
        return show_config_sources()

    if args.toml:
        output = settings.to_toml()
    elif args.env:
        output = settings.to_env()
    else:
        output = format_config_show(settings)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Configuration written to {args.output}")
    else:
        print(output)

    return 0


def handle_init(args: argparse.Namespace) -> int:
    """Handle the init command.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line arguments.

    Returns
    -------
    int
        Exit code.
    """
    from .config import DataGridSettings

    path = Path(args.path)

    if path.exists() and not args.force:
        print(f"Error: {path} already exists. Use --force to overwrite.", file=sys.stderr)
        return 1

    settings = DataGridSettings()
    toml_content = settings.to_toml()

    header = """# datagrid configuration file
#
# Environment variables can override any setting:
#   DATAGRID_STORAGE__BACKEND=file
#   DATAGRID_TABLE__DEFAULT_PAGE_SIZE=50
#   DATAGRID_EXPORT__ORIENTATION=landscape
#   DATAGRID_LOG__LEVEL=DEBUG
#
# Use nested keys with __ (double underscore) delimiter.

"""
    path.write_text(header + toml_content, encoding="utf-8")
    print(f"Created {path}")

    return 0


def _load_json(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _parse_filters(items: list[str]) -> dict[str, str]:
    filters: dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid filter '{item}', expected KEY=VALUE")
        filters[key.strip()] = value
    return filters


def _coerce_row_id(value: str, known_ids: set[Any]) -> Any:
    """Match a command-line id against the row ids (which may be numbers)."""
    if value in known_ids:
        return value
    try:
        number = int(value)
    except ValueError:
        return value
    return number if number in known_ids else value


def handle_export(args: argparse.Namespace) -> int:
    """Handle the export command.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line arguments.

    Returns
    -------
    int
        Exit code.
    """
    from .config import get_settings
    from .exceptions import DataGridException
    from .export import ExportOptions
    from .state import MemoryKeyValueStore
    from .table import DataTable

    try:
        rows = _load_json(args.rows)
        if isinstance(rows, dict) and "rows" in rows:
            rows = rows["rows"]
        columns = _load_json(args.columns) if args.columns else None
        filters = _parse_filters(args.filters)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    settings = get_settings()
    try:
        table = DataTable(
            "cli",
            columns=columns,
            rows=rows,
            store=MemoryKeyValueStore(),
            settings=settings,
            page_size=args.page_size,
        )
        if filters:
            table.filter(filters)
        if args.search:
            table.search(args.search)
        if args.sort:
            key, _, direction = args.sort.partition(":")
            table.sort(key, "desc" if direction.lower() == "desc" else "asc")
        table.go_to_page(args.page)

        if args.selected:
            known_ids = {row.get(table.row_id_key) for row in table.state.rows}
            for row_id in args.selected:
                table.toggle_row(_coerce_row_id(row_id, known_ids))

        options = ExportOptions.from_settings(
            settings.export,
            title=args.title or settings.export.default_title,
        )
        result = table.export(args.export_format, scope=args.scope, options=options)
    except (DataGridException, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        target = result.save(args.output)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Exported {args.export_format} ({result.size} bytes) to {target}")
    return 0


def show_config_sources() -> int:
    """Show configuration file sources and their status.

    Returns
    -------
    int
        Exit code.
    """
    sources = [
        ("Built-in defaults", "Always loaded", True),
        ("pyproject.toml [tool.datagrid]", "pyproject.toml", None),
        ("./datagrid.toml", "datagrid.toml", None),
        ("User config", str(_user_config_path().expanduser()), None),
        ("DATAGRID_CONFIG_FILE", os.environ.get("DATAGRID_CONFIG_FILE", ""), None),
        ("Environment variables", "DATAGRID_* vars", None),
    ]

    print("Configuration Sources (in order of precedence):\n")
    print(f"{'Source':<40} {'Status':<15} {'Path'}")
    print("-" * 80)

    for name, path_str, forced_status in sources:
        if forced_status is True:
            status = "✓ Active"
            path_display = ""
        elif name == "Environment variables":
            datagrid_vars = [
                k for k in os.environ if k.startswith("DATAGRID_") and k != "DATAGRID_CONFIG_FILE"
            ]
            if datagrid_vars:
                status = f"✓ {len(datagrid_vars)} vars"
                path_display = ", ".join(datagrid_vars[:3])
                if len(datagrid_vars) > 3:
                    path_display += "..."
            else:
                status = "✗ No vars"
                path_display = ""
        elif not path_str:
            status = "✗ Not set"
            path_display = ""
        else:
            path = Path(path_str).expanduser()
            status = "✓ Found" if path.exists() else "✗ Not found"
            path_display = str(path)

        print(f"{name:<40} {status:<15} {path_display}")

    return 0


def format_config_show(settings: DataGridSettings) -> str:
    """Format configuration for display.

    Parameters
    ----------
    settings : DataGridSettings
        The settings object to format.

    Returns
    -------
    str
        Formatted configuration string.
    """
    lines = []
    lines.append("datagrid configuration\n" + "=" * 40 + "\n")

    sections = [
        ("storage", settings.storage),
        ("table", settings.table),
        ("export", settings.export),
        ("log", settings.log),
    ]

    for section_name, section in sections:
        if lines[-1] != "":
            lines.append("")
        lines.append(f"[{section_name}]")
        for field, value in section.model_dump(exclude=_SENSITIVE_FIELDS).items():
            lines.append(f"  {field} = {value!r}")
        lines.extend(
            f"  {rn} = '{_REDACTED}'"
            for rn in sorted(_SENSITIVE_FIELDS & type(section).model_fields.keys())
        )

    return "\n".join(lines)


if __name__ == "__main__":
    sys.exit(main())
