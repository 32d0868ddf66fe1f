# src/envset/cli/formatter.py
import difflib
import io
import json
from typing import Dict

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text
from ruamel.yaml import YAML

from envset.core.models import Document
from envset.grammar.exporter import DotenvExporter

# Initialize the Rich console for high-quality terminal output
console = Console()


class EnvFormatter:
    """
    EnvFormatter: the visual side of the CLI.
    Responsible for rendering key diffs, text diffs and parse-tree dumps.
    """

    def __init__(self, exporter: DotenvExporter):
        self.exporter = exporter

    def show_key_diff(self, original: Dict[str, str], updated: Dict[str, str]):
        """
        Prints -KEY=old / +KEY=new lines for every key whose value changed,
        appeared or disappeared. Values are shown in their quoted form.
        """
        for key, value in updated.items():
            old = original.get(key)
            if old == value:
                continue
            if old is not None:
                console.print(Text(f"-{key}={self.exporter.quote(old)}", style="red"), soft_wrap=True)
            console.print(Text(f"+{key}={self.exporter.quote(value)}", style="green"), soft_wrap=True)

        for key, value in original.items():
            if key not in updated:
                console.print(Text(f"-{key}={self.exporter.quote(value)}", style="red"), soft_wrap=True)

    def display_diff(self, original_text: str, updated_text: str, file_name: str):
        """
        Renders a colorized unified diff between the file before and after the edit.
        """
        diff_list = list(difflib.unified_diff(
            original_text.splitlines(),
            updated_text.splitlines(),
            fromfile=f"original/{file_name}",
            tofile=f"updated/{file_name}",
            lineterm=""
        ))

        if not diff_list:
            console.print(f"[dim]No changes for {file_name}.[/dim]")
            return

        syntax = Syntax("\n".join(diff_list), "diff", theme="monokai", line_numbers=True)
        console.print(Panel(syntax, title=f"Proposed edit: {file_name}", border_style="green"))

    def render_ast(self, doc: Document, as_json: bool = False) -> str:
        """Dumps the parsed nodes as YAML (default) or JSON."""
        records = self.exporter.to_records(doc)
        if as_json:
            return json.dumps(records, indent=2, ensure_ascii=False) + "\n"

        yaml = YAML(typ='rt')
        yaml.default_flow_style = False
        yaml.width = 4096
        stream = io.StringIO()
        yaml.dump(records, stream)
        return stream.getvalue()
