#!/usr/bin/env python3
"""
ENVSET EDITOR - Mutation Layer
------------------------------
Lookups and edits over a parsed Document. Every edit returns a new
Document; the input is never modified.

Duplicate keys are legal. The last assignment of a key is the
authoritative one: lookups read it and updates rewrite it, while earlier
duplicates stay in the file untouched.

Author: Envset Team
Date: 2026-10-18
"""

import dataclasses
import logging
from typing import Dict, Iterable, List, Mapping, Optional

from envset.core.errors import InvalidKeyError
from envset.core.models import Document, KeyValue, NodeKind
from envset.grammar.lexer import is_valid_key

logger = logging.getLogger("envset.editor")


class EnvEditor:
    """
    Applies key-level edits to a Document.
    """

    def __init__(self, keep_trailing_comment: bool = True):
        """
        Args:
            keep_trailing_comment: when a value is updated, keep the comment
                that followed it on the same line. When False the comment
                is dropped together with the old value.
        """
        self.keep_trailing_comment = keep_trailing_comment

    # --- Read-only queries ---

    def _last_index(self, doc: Document, key: str) -> Optional[int]:
        for index in range(len(doc.nodes) - 1, -1, -1):
            node = doc.nodes[index]
            if node.kind is NodeKind.KEY_VALUE and node.key == key:
                return index
        return None

    def lookup(self, doc: Document, key: str) -> Optional[str]:
        index = self._last_index(doc, key)
        return None if index is None else doc.nodes[index].value

    def to_map(self, doc: Document) -> Dict[str, str]:
        """Last-occurrence-wins mapping; keys keep their first-seen order."""
        return {node.key: node.value for node in doc.key_values()}

    def keys(self, doc: Document) -> List[str]:
        return list(self.to_map(doc))

    # --- Edits ---

    def upsert(self, doc: Document, key: str, value: str) -> Document:
        """
        Rewrites the last assignment of `key`, or appends a new one.
        """
        if not is_valid_key(key):
            raise InvalidKeyError(key)

        nodes = list(doc.nodes)
        index = self._last_index(doc, key)

        if index is None:
            logger.debug(f"Appending new key {key}")
            nodes.append(KeyValue(key=key, value=value))
            return dataclasses.replace(doc, nodes=nodes)

        current = nodes[index]
        comment = current.trailing_comment if self.keep_trailing_comment else None
        if current.value == value and current.trailing_comment == comment:
            # Nothing changes, so the original bytes stay as they were.
            return dataclasses.replace(doc, nodes=nodes)

        logger.debug(f"Updating {key} at line {current.line_no}")
        nodes[index] = dataclasses.replace(current, value=value, trailing_comment=comment, source=None)
        return dataclasses.replace(doc, nodes=nodes)

    def apply(self, doc: Document, updates: Mapping[str, str], no_overwrite: bool = False) -> Document:
        """
        Upserts every pair of `updates` in mapping order.
        With `no_overwrite`, keys already present are left alone.
        """
        existing = set(self.keys(doc)) if no_overwrite else set()
        for key, value in updates.items():
            if key in existing:
                logger.info(f"Skipping existing key {key} (no-overwrite)")
                continue
            doc = self.upsert(doc, key, value)
        return doc

    def delete(self, doc: Document, keys: Iterable[str]) -> Document:
        """Removes every assignment of the given keys, duplicates included."""
        doomed = set(keys)
        kept = [
            node for node in doc.nodes
            if not (node.kind is NodeKind.KEY_VALUE and node.key in doomed)
        ]
        logger.debug(f"Deleted {len(doc.nodes) - len(kept)} assignment(s)")
        return dataclasses.replace(doc, nodes=kept)

    def format(self, doc: Document, prune_comments: bool = False) -> Document:
        """
        Canonicalizes a Document:
        1. Assignments with an empty value are dropped.
        2. Whole-line comments are dropped when `prune_comments` is set.
        3. Remaining assignments are sorted by key (stable) and placed back
           into the slots assignments occupied; other lines keep their place.
        """
        survivors = []
        for node in doc.nodes:
            if node.kind is NodeKind.KEY_VALUE and node.value == "":
                continue
            if prune_comments and node.kind is NodeKind.COMMENT:
                continue
            survivors.append(node)

        ordered = iter(sorted(
            (n for n in survivors if n.kind is NodeKind.KEY_VALUE),
            key=lambda n: n.key,
        ))
        nodes = [next(ordered) if n.kind is NodeKind.KEY_VALUE else n for n in survivors]
        return dataclasses.replace(doc, nodes=nodes)
