#!/usr/bin/env python3
"""
ENVSET LEXER - Line Parser
--------------------------
Decomposes raw .env text into a Document of semantic Nodes.

The scanner walks the whole text with a cursor rather than splitting it
into lines first: a quoted value may run across line breaks, so the search
for the closing quote has to continue past the end of the physical line.

Malformed assignments either degrade to an Unparsed node (default) or
raise ParseError (strict mode).

Author: Envset Team
Date: 2026-10-18
"""

import logging
import re
import string
from typing import List, Optional, Tuple

from envset.core.errors import ParseError
from envset.core.models import Comment, Document, EmptyLine, KeyValue, Node, Unparsed

logger = logging.getLogger("envset.lexer")

BLANKS = " \t"
KEY_CHARS = frozenset(string.ascii_letters + string.digits + "_.")
KEY_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_.]*\Z")
EXPORT_TOKEN = "export"

# Escapes honoured inside double quotes; anything else is copied verbatim.
DOUBLE_QUOTE_ESCAPES = {
    "\\": "\\",
    '"': '"',
    "'": "'",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "$": "$",
    " ": " ",
}


def is_valid_key(key: str) -> bool:
    return bool(KEY_PATTERN.match(key))


class DotenvLexer:
    """
    Turns .env text into a Document.
    One instance may be reused; all scan state is reset per parse() call.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict
        self.text = ""
        self.pos = 0
        self.line_no = 1

    def _clean_artifacts(self, text: str) -> str:
        """Drops a UTF-8 BOM and standardizes CRLF line endings."""
        text = text.lstrip('\ufeff')
        return text.replace('\r\n', '\n')

    def _detect_newline(self, text: str) -> str:
        """The first line break decides the terminator for the whole file."""
        first = text.find('\n')
        if first > 0 and text[first - 1] == '\r':
            return '\r\n'
        return '\n'

    def parse(self, text: str) -> Document:
        """Primary interface: consumes the full file text."""
        bom = text.startswith('\ufeff')
        newline = self._detect_newline(text)
        self.text = self._clean_artifacts(text)
        self.pos = 0
        self.line_no = 1

        nodes: List[Node] = []
        while self.pos < len(self.text):
            nodes.append(self._next_node())
        return Document(nodes, newline=newline, bom=bom)

    # --- Cursor helpers ---

    def _line_end(self, start: int) -> int:
        end = self.text.find('\n', start)
        return len(self.text) if end == -1 else end

    def _skip_blanks(self, i: int) -> int:
        while i < len(self.text) and self.text[i] in BLANKS:
            i += 1
        return i

    def _advance_to(self, end: int):
        """Moves the cursor past `end` (a newline index or EOF), tracking line numbers."""
        self.line_no += self.text.count('\n', self.pos, end)
        if end < len(self.text):
            self.line_no += 1
        self.pos = end + 1

    # --- Line classification ---

    def _next_node(self) -> Node:
        start = self.pos
        line_no = self.line_no
        line_end = self._line_end(start)
        line = self.text[start:line_end]
        content = line.strip()

        if not content:
            self._advance_to(line_end)
            return EmptyLine(line_no=line_no, source=line)

        if content.startswith('#'):
            self._advance_to(line_end)
            return Comment(text=line.lstrip()[1:], line_no=line_no, source=line)

        try:
            key, exported, value, comment, end = self._scan_assignment(start, line_no)
        except ParseError as e:
            if self.strict:
                raise
            logger.warning(f"Keeping malformed line {line_no} verbatim: {e.reason}")
            self._advance_to(line_end)
            return Unparsed(raw=line, reason=e.reason, line_no=line_no, source=line)

        source = self.text[start:end]
        self._advance_to(end)
        return KeyValue(
            key=key,
            value=value,
            trailing_comment=comment,
            exported=exported,
            line_no=line_no,
            source=source,
        )

    # --- Key phase ---

    def _scan_assignment(self, start: int, line_no: int) -> Tuple[str, bool, str, Optional[str], int]:
        """
        Scans one assignment beginning at `start`.
        Returns (key, exported, value, trailing_comment, end) where `end` is
        the index of the terminating newline (or EOF).
        """
        text = self.text
        i = self._skip_blanks(start)
        exported = False

        # 'export FOO=1' strips the keyword; 'export=1' assigns the key 'export'.
        after = i + len(EXPORT_TOKEN)
        if text.startswith(EXPORT_TOKEN, i) and after < len(text) and text[after] in BLANKS:
            j = self._skip_blanks(after)
            if j < len(text) and text[j] != '=':
                exported = True
                i = j

        key_start = i
        while i < len(text) and text[i] in KEY_CHARS:
            i += 1
        key = text[key_start:i]
        i = self._skip_blanks(i)

        if i >= len(text) or text[i] == '\n':
            raise ParseError(line_no, "missing '=' in assignment")
        if text[i] != '=':
            raise ParseError(line_no, f"invalid character {text[i]!r} in key")
        if not key:
            raise ParseError(line_no, "empty key")
        if not is_valid_key(key):
            raise ParseError(line_no, f"invalid key {key!r}")

        value, comment, end = self._scan_value(i + 1, line_no)
        return key, exported, value, comment, end

    # --- Value phase ---

    def _scan_value(self, i: int, line_no: int) -> Tuple[str, Optional[str], int]:
        text = self.text
        i = self._skip_blanks(i)
        chunks: List[str] = []
        pending = ""        # Unquoted whitespace, kept only if more value follows
        comment = None

        while i < len(text):
            char = text[i]
            if char == '\n':
                break
            if char in BLANKS:
                pending += char
                i += 1
                continue
            if char == '#':
                end = self._line_end(i)
                comment = text[i:end]
                i = end
                break

            if pending:
                chunks.append(pending)
                pending = ""

            if char == "'":
                close = text.find("'", i + 1)
                if close == -1:
                    raise ParseError(line_no, "unterminated single-quoted value")
                chunks.append(text[i + 1:close])
                i = close + 1
            elif char == '"':
                segment, i = self._scan_double_quoted(i + 1, line_no)
                chunks.append(segment)
            elif char == '\\':
                if i + 1 >= len(text) or text[i + 1] == '\n':
                    raise ParseError(line_no, "dangling escape at end of line")
                escaped = text[i + 1]
                chunks.append('\n' if escaped == 'n' else escaped)
                i += 2
            else:
                chunks.append(char)
                i += 1

        return "".join(chunks), comment, i

    def _scan_double_quoted(self, i: int, line_no: int) -> Tuple[str, int]:
        """Scans from just after an opening '"'; returns (segment, index after closing quote)."""
        text = self.text
        out: List[str] = []
        while i < len(text):
            char = text[i]
            if char == '"':
                return "".join(out), i + 1
            if char == '\\' and i + 1 < len(text):
                escaped = text[i + 1]
                out.append(DOUBLE_QUOTE_ESCAPES.get(escaped, char + escaped))
                i += 2
                continue
            out.append(char)
            i += 1
        raise ParseError(line_no, "unterminated double-quoted value")
