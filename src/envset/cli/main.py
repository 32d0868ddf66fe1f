#!/usr/bin/env python3
"""
ENVSET CLI
----------
Command-line front end: translates subcommands into EnvFileEngine calls
and renders the outcome with rich.

Author: Envset Team
Date: 2026-10-18
"""

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from rich.markup import escape
from rich.panel import Panel

from envset.cli.formatter import EnvFormatter, console
from envset.core.config import EnvsetConfig
from envset.core.engine import EditReport, EnvFileEngine
from envset.core.errors import EnvsetError
from envset.grammar.lexer import is_valid_key

VERSION = "0.1.0"

logger = logging.getLogger("envset.cli")


def strip_surrounding_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def parse_pairs(pairs: List[str]) -> Dict[str, str]:
    """
    Turns KEY=value arguments into a mapping. The shell has already done
    its own unquoting, so the value is taken verbatim apart from one
    optional pair of surrounding quotes.
    """
    result = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not is_valid_key(key):
            console.print(f"[yellow]Invalid argument: {escape(pair)}. Skipping.[/yellow]", highlight=False)
            continue
        result[key] = strip_surrounding_quotes(value.strip())
    return result


class EnvsetCLI:
    """
    CLI wrapper that translates user commands into Engine actions.
    """

    def __init__(self):
        """Initializes the CLI and sets up the argument parser."""
        self.parser = argparse.ArgumentParser(
            prog="envset",
            description="envset - edit .env files without disturbing comments, order or quoting",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self._setup_args()

    def _setup_args(self):
        """Configures the global flags and subcommands."""
        self.parser.add_argument("--version", action="version", version=f"envset v{VERSION}")
        self.parser.add_argument("-f", "--file", default=".env", help="Path to the .env file (default: .env)")
        self.parser.add_argument("--strict", action="store_true", help="Fail on malformed lines instead of keeping them")
        self.parser.add_argument("--literal-newlines", action="store_true",
                                 help="Write newlines/tabs literally inside quotes instead of as \\n/\\t")
        self.parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        set_parser = subparsers.add_parser("set", help="Add or update KEY=value pairs")
        set_parser.add_argument("pairs", nargs="*", metavar="KEY=VALUE", help="Pairs to set (read from stdin if omitted)")
        set_parser.add_argument("-n", "--no-overwrite", action="store_true", help="Do not overwrite existing keys")
        set_parser.add_argument("--drop-comment", action="store_true", help="Drop the inline comment of updated keys")
        self._add_write_flags(set_parser)

        get_parser = subparsers.add_parser("get", help="Print the value of a key")
        get_parser.add_argument("key")

        subparsers.add_parser("keys", help="List the keys in the file")

        print_parser = subparsers.add_parser("print", help="Print the file")
        print_parser.add_argument("--json", action="store_true", help="Print the key/value map as JSON")

        delete_parser = subparsers.add_parser("delete", help="Remove keys from the file")
        delete_parser.add_argument("keys", nargs="+", metavar="KEY")
        self._add_write_flags(delete_parser)

        format_parser = subparsers.add_parser("format", help="Sort keys and drop empty values")
        format_parser.add_argument("--prune-comments", action="store_true", help="Also drop whole-line comments")
        self._add_write_flags(format_parser)

        ast_parser = subparsers.add_parser("ast", help="Dump the parsed lines")
        ast_parser.add_argument("--json", action="store_true", help="JSON instead of YAML")

    def _add_write_flags(self, parser: argparse.ArgumentParser):
        parser.add_argument("--dry-run", action="store_true", help="Preview results without writing")
        parser.add_argument("--diff", action="store_true", help="Show a unified diff of the file")
        parser.add_argument("--backup", action="store_true", help="Keep a copy of the previous file")

    def _configure_logging(self, verbosity: int):
        level = logging.WARNING
        if verbosity == 1:
            level = logging.INFO
        elif verbosity > 1:
            level = logging.DEBUG
        logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    def _report_edit(self, report: EditReport, formatter: EnvFormatter, args: argparse.Namespace):
        if args.diff:
            formatter.display_diff(report.old_content, report.new_content, report.file_path)
        formatter.show_key_diff(report.old_map, report.new_map)
        if report.backup_created:
            console.print(f"[dim]Backup written to {escape(report.backup_created)}[/dim]")
        if args.dry_run and report.changed:
            console.print("[bold yellow]Dry run: nothing was written.[/bold yellow]")

    def _read_stdin_pairs(self, engine: EnvFileEngine) -> Dict[str, str]:
        if sys.stdin is None or sys.stdin.isatty():
            return {}
        return engine.editor.to_map(engine.lexer.parse(sys.stdin.read()))

    def _dispatch(self, args: argparse.Namespace) -> int:
        config = EnvsetConfig.from_args(args)
        engine = EnvFileEngine(config)
        formatter = EnvFormatter(engine.exporter)

        if args.command == "set":
            updates = parse_pairs(args.pairs) if args.pairs else self._read_stdin_pairs(engine)
            if not updates:
                console.print("[yellow]Nothing to set.[/yellow]")
                return 0
            self._report_edit(engine.set_values(updates), formatter, args)
        elif args.command == "get":
            console.out(engine.get(args.key), highlight=False)
        elif args.command == "keys":
            for key in engine.read_map():
                console.out(key, highlight=False)
        elif args.command == "print":
            doc, _ = engine.load()
            if args.json:
                console.out(json.dumps(engine.editor.to_map(doc), indent=2, ensure_ascii=False), highlight=False)
            else:
                console.file.write(engine.exporter.export(doc))
        elif args.command == "delete":
            self._report_edit(engine.delete_keys(args.keys), formatter, args)
        elif args.command == "format":
            self._report_edit(engine.format_file(prune_comments=args.prune_comments), formatter, args)
        elif args.command == "ast":
            doc, _ = engine.load()
            console.file.write(formatter.render_ast(doc, as_json=args.json))
        return 0

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point. Returns the process exit code."""
        args = self.parser.parse_args(argv)
        self._configure_logging(args.verbose)

        if not args.command:
            console.print(Panel.fit(f"[bold cyan]envset v{VERSION}[/bold cyan]", border_style="cyan"))
            self.parser.print_help()
            return 0

        try:
            return self._dispatch(args)
        except EnvsetError as e:
            logger.debug("Command failed", exc_info=True)
            console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", highlight=False, soft_wrap=True)
            return 1


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(EnvsetCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(130)


if __name__ == "__main__":
    main()
