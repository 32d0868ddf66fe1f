"""
Module-level entry points for the envset core.

    doc = parse(text)
    doc = upsert(doc, "PORT", "8080")
    text = serialize(doc)
"""

from typing import Dict, Iterable, Mapping, Optional

from envset.core.models import Document
from envset.editing.editor import EnvEditor
from envset.grammar.exporter import DotenvExporter
from envset.grammar.lexer import DotenvLexer


def parse(text: str, strict: bool = False) -> Document:
    return DotenvLexer(strict=strict).parse(text)


def serialize(doc: Document, escape_control_chars: bool = True, preserve_source: bool = True) -> str:
    exporter = DotenvExporter(escape_control_chars=escape_control_chars, preserve_source=preserve_source)
    return exporter.export(doc)


def quote(value: str, escape_control_chars: bool = True) -> str:
    return DotenvExporter(escape_control_chars=escape_control_chars).quote(value)


def upsert(doc: Document, key: str, value: str, keep_trailing_comment: bool = True) -> Document:
    return EnvEditor(keep_trailing_comment=keep_trailing_comment).upsert(doc, key, value)


def apply(doc: Document, updates: Mapping[str, str], no_overwrite: bool = False,
          keep_trailing_comment: bool = True) -> Document:
    editor = EnvEditor(keep_trailing_comment=keep_trailing_comment)
    return editor.apply(doc, updates, no_overwrite=no_overwrite)


def delete(doc: Document, keys: Iterable[str]) -> Document:
    return EnvEditor().delete(doc, keys)


def lookup(doc: Document, key: str) -> Optional[str]:
    return EnvEditor().lookup(doc, key)


def to_map(doc: Document) -> Dict[str, str]:
    return EnvEditor().to_map(doc)


def format_document(doc: Document, prune_comments: bool = False) -> Document:
    return EnvEditor().format(doc, prune_comments=prune_comments)
