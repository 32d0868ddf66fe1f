#!/usr/bin/env python3
"""
ENVSET EXPORTER - High-Fidelity Round-Trip
------------------------------------------
Converts a Document back to .env text.

Nodes that still carry their original source text are written back
verbatim, so lines nobody touched keep their exact bytes and quoting
style. Everything else goes through the canonical rendering and the
quoting policy in quote().

Author: Envset Team
Date: 2026-10-18
"""

from typing import Any, Dict, List

from envset.core.models import Document, Node, NodeKind

# Characters that force a value into double quotes.
SPECIAL_CHARS = frozenset("'\"\\$#")

CONTROL_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

# A raw CR would merge with the following LF on the next read.
ALWAYS_ESCAPED = {"\r": "\\r"}


def needs_quoting(value: str) -> bool:
    if not value:
        return True
    for char in value:
        code = ord(char)
        if char.isspace() or char in SPECIAL_CHARS:
            return True
        if code < 0x20 or code == 0x7f or code > 0x7f:
            return True
    return False


class DotenvExporter:
    """
    The Reconstructor: renders Nodes back to text.
    """

    def __init__(self, escape_control_chars: bool = True, preserve_source: bool = True):
        """
        Args:
            escape_control_chars: write newline, CR and tab as \\n, \\r, \\t
                inside double quotes instead of emitting them literally.
            preserve_source: emit untouched nodes exactly as they were read.
        """
        self.escape_control_chars = escape_control_chars
        self.preserve_source = preserve_source

    def quote(self, value: str) -> str:
        if not needs_quoting(value):
            return value
        escaped = value.replace('\\', '\\\\').replace('"', '\\"')
        escapes = CONTROL_ESCAPES if self.escape_control_chars else ALWAYS_ESCAPED
        for char, replacement in escapes.items():
            escaped = escaped.replace(char, replacement)
        return f'"{escaped}"'

    def render_node(self, node: Node) -> str:
        """Renders a single node without its line terminator."""
        if node.kind is NodeKind.UNPARSED:
            return node.raw
        if self.preserve_source and node.source is not None:
            return node.source

        if node.kind is NodeKind.EMPTY_LINE:
            return ""
        if node.kind is NodeKind.COMMENT:
            return f"#{node.text}"

        line = f"{node.key}={self.quote(node.value)}"
        if node.exported:
            line = f"export {line}"
        if node.trailing_comment is not None:
            line = f"{line} {node.trailing_comment}"
        return line

    def export(self, doc: Document) -> str:
        """Joins the rendered nodes with the Document's own line terminator."""
        lines = [self.render_node(node) for node in doc]
        if doc.newline != "\n":
            # multi-line quoted values carry their inner breaks too
            lines = [line.replace("\n", doc.newline) for line in lines]
        text = "".join(f"{line}{doc.newline}" for line in lines)
        return f"\ufeff{text}" if doc.bom else text

    def to_records(self, doc: Document) -> List[Dict[str, Any]]:
        """
        Plain-dict view of the Document, one record per node.
        Used by the CLI for JSON and YAML dumps of the parse tree.
        """
        records = []
        for node in doc:
            record: Dict[str, Any] = {"kind": node.kind.value, "line": node.line_no}
            if node.kind is NodeKind.KEY_VALUE:
                record["key"] = node.key
                record["value"] = node.value
                record["trailing_comment"] = node.trailing_comment
                record["exported"] = node.exported
            elif node.kind is NodeKind.COMMENT:
                record["text"] = node.text
            elif node.kind is NodeKind.UNPARSED:
                record["raw"] = node.raw
                record["reason"] = node.reason
            records.append(record)
        return records
