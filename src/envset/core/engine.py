#!/usr/bin/env python3
"""
ENVSET ENGINE - File Orchestrator
---------------------------------
EnvFileEngine runs the read -> parse -> edit -> serialize -> write cycle
for a single .env file. The grammar and editing layers never touch the
disk; everything involving paths, encodings and atomic replacement
lives here.

Author: Envset Team
Date: 2026-10-18
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple

from envset.core.config import EnvsetConfig
from envset.core.errors import EnvIOError, KeyNotFoundError
from envset.core.models import Document
from envset.editing.editor import EnvEditor
from envset.grammar.exporter import DotenvExporter
from envset.grammar.lexer import DotenvLexer

logger = logging.getLogger("envset.engine")

BACKUP_SUFFIX = ".envset.backup"
TEMP_SUFFIX = ".envset.tmp"


@dataclass
class EditReport:
    """Outcome of one edit cycle on a file."""
    file_path: str
    old_content: str
    new_content: str
    old_map: Dict[str, str] = field(default_factory=dict)
    new_map: Dict[str, str] = field(default_factory=dict)
    written: bool = False
    backup_created: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.old_content != self.new_content


class EnvFileEngine:
    """
    Principal orchestrator for .env edits.
    Wires the lexer, editor and exporter together according to EnvsetConfig.
    """

    def __init__(self, config: Optional[EnvsetConfig] = None):
        self.config = config or EnvsetConfig()
        self.lexer = DotenvLexer(strict=self.config.strict)
        self.editor = EnvEditor(keep_trailing_comment=self.config.keep_trailing_comment)
        self.exporter = DotenvExporter(
            escape_control_chars=self.config.escape_control_chars,
            preserve_source=self.config.preserve_source,
        )

    def _resolve(self, path: Optional[str]) -> Path:
        return Path(path or self.config.env_file)

    # --- Reading ---

    def _read_text(self, target: Path, missing_ok: bool) -> str:
        if not target.exists():
            if missing_ok:
                logger.info(f"{target} does not exist yet, starting from an empty file")
                return ""
            raise EnvIOError(str(target), "file not found")
        try:
            # Untranslated read: the lexer records CRLF and a BOM for the way back
            with target.open(encoding='utf-8', newline='') as handle:
                return handle.read()
        except UnicodeDecodeError:
            raise EnvIOError(str(target), "file is not valid UTF-8")
        except OSError as e:
            raise EnvIOError(str(target), e.strerror or str(e))

    def load(self, path: Optional[str] = None, missing_ok: bool = False) -> Tuple[Document, str]:
        """Reads and parses a file; returns the Document and the raw text."""
        target = self._resolve(path)
        text = self._read_text(target, missing_ok)
        return self.lexer.parse(text), text

    def read_map(self, path: Optional[str] = None) -> Dict[str, str]:
        doc, _ = self.load(path)
        return self.editor.to_map(doc)

    def get(self, key: str, path: Optional[str] = None) -> str:
        doc, _ = self.load(path)
        value = self.editor.lookup(doc, key)
        if value is None:
            raise KeyNotFoundError(key)
        return value

    # --- Edit cycles ---

    def set_values(self, updates: Mapping[str, str], path: Optional[str] = None) -> EditReport:
        """Upserts `updates`; a missing file is created."""
        return self._edit(
            path,
            lambda doc: self.editor.apply(doc, updates, no_overwrite=self.config.no_overwrite),
            missing_ok=True,
        )

    def delete_keys(self, keys: Iterable[str], path: Optional[str] = None) -> EditReport:
        keys = list(keys)
        return self._edit(path, lambda doc: self.editor.delete(doc, keys))

    def format_file(self, prune_comments: bool = False, path: Optional[str] = None) -> EditReport:
        return self._edit(path, lambda doc: self.editor.format(doc, prune_comments=prune_comments))

    def _edit(self, path: Optional[str], mutate: Callable[[Document], Document],
              missing_ok: bool = False) -> EditReport:
        target = self._resolve(path)
        existed = target.exists()
        old_doc, old_text = self.load(str(target), missing_ok=missing_ok)
        new_doc = mutate(old_doc)
        new_text = self.exporter.export(new_doc)

        report = EditReport(
            file_path=str(target),
            old_content=old_text,
            new_content=new_text,
            old_map=self.editor.to_map(old_doc),
            new_map=self.editor.to_map(new_doc),
        )

        if self.config.dry_run or (existed and not report.changed):
            logger.info(f"Not writing {target} (dry_run={self.config.dry_run}, changed={report.changed})")
            return report

        if existed and self.config.create_backup:
            backup_path = self._create_unique_backup(target)
            try:
                shutil.copy2(target, backup_path)
            except OSError as e:
                raise EnvIOError(str(backup_path), f"backup failed: {e}")
            report.backup_created = str(backup_path)
            logger.info(f"Backed up {target} to {backup_path}")

        self._atomic_write(target, new_text)
        report.written = True
        logger.info(f"Wrote {target}")
        return report

    # --- Writing ---

    def _atomic_write(self, target_path: Path, content: str):
        parent = target_path.parent
        if not os.access(parent, os.W_OK):
            raise EnvIOError(str(target_path), f"no write access to {parent}")
        temp_file = target_path.with_name(target_path.name + TEMP_SUFFIX)
        try:
            with temp_file.open('w', encoding='utf-8', newline='') as handle:
                handle.write(content)
            if target_path.exists():
                shutil.copymode(target_path, temp_file)
            os.replace(temp_file, target_path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise EnvIOError(str(target_path), f"atomic write failed: {e}")

    def _create_unique_backup(self, target_path: Path) -> Path:
        backup_path = target_path.with_name(target_path.name + BACKUP_SUFFIX)
        counter = 1
        while backup_path.exists():
            backup_path = target_path.with_name(f"{target_path.name}-{counter}{BACKUP_SUFFIX}")
            counter += 1
        return backup_path
