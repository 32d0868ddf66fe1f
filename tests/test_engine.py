#!/usr/bin/env python3
"""
ENVSET ENGINE SUITE
-------------------
File-level edit cycles against a temporary workspace:
1. Creation of missing files
2. Layout preservation on update
3. Dry runs and no-op writes
4. Backups and atomic replacement
5. I/O and lookup failures

Author: Envset Team
Date: 2026-10-18
"""

import os
import stat

import pytest

from envset.core.config import EnvsetConfig
from envset.core.engine import EnvFileEngine
from envset.core.errors import EnvIOError, KeyNotFoundError, ParseError


@pytest.fixture
def env_path(tmp_path):
    return tmp_path / ".env"


def make_engine(env_path, **overrides):
    return EnvFileEngine(EnvsetConfig(env_file=str(env_path), **overrides))


def test_set_creates_missing_file(env_path):
    report = make_engine(env_path).set_values({"A": "1"})
    assert report.written is True
    assert report.old_content == ""
    assert env_path.read_text() == "A=1\n"


def test_set_preserves_layout(env_path):
    env_path.write_text("# c\nA='x' # note\n\nB=2\n")
    report = make_engine(env_path).set_values({"B": "3", "C": "new value"})

    assert env_path.read_text() == "# c\nA='x' # note\n\nB=3\nC=\"new value\"\n"
    assert report.old_map == {"A": "x", "B": "2"}
    assert report.new_map == {"A": "x", "B": "3", "C": "new value"}
    assert report.changed is True


def test_dry_run_writes_nothing(env_path):
    env_path.write_text("A=1\n")
    report = make_engine(env_path, dry_run=True).set_values({"A": "2"})
    assert report.changed is True
    assert report.written is False
    assert report.new_content == "A=2\n"
    assert env_path.read_text() == "A=1\n"


def test_dry_run_does_not_create_file(env_path):
    make_engine(env_path, dry_run=True).set_values({"A": "1"})
    assert not env_path.exists()


def test_unchanged_content_is_not_rewritten(env_path):
    env_path.write_text("A='x'\n")
    report = make_engine(env_path).set_values({"A": "x"})
    assert report.changed is False
    assert report.written is False


def test_no_overwrite(env_path):
    env_path.write_text("A=1\n")
    make_engine(env_path, no_overwrite=True).set_values({"A": "2", "B": "3"})
    assert env_path.read_text() == "A=1\nB=3\n"


def test_backups_get_unique_names(env_path):
    env_path.write_text("A=1\n")
    engine = make_engine(env_path, create_backup=True)

    first = engine.set_values({"A": "2"})
    second = engine.set_values({"A": "3"})

    assert first.backup_created == str(env_path.with_name(".env.envset.backup"))
    assert second.backup_created == str(env_path.with_name(".env-1.envset.backup"))
    assert env_path.with_name(".env.envset.backup").read_text() == "A=1\n"
    assert env_path.with_name(".env-1.envset.backup").read_text() == "A=2\n"


def test_no_temp_files_left_behind(env_path, tmp_path):
    env_path.write_text("A=1\n")
    engine = make_engine(env_path)
    engine.set_values({"B": "2"})
    engine.delete_keys(["A"])
    assert list(tmp_path.glob("*.envset.tmp")) == []


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_file_mode_is_kept(env_path):
    env_path.write_text("A=1\n")
    os.chmod(env_path, 0o600)
    make_engine(env_path).set_values({"A": "2"})
    assert stat.S_IMODE(env_path.stat().st_mode) == 0o600


def test_delete_keys(env_path):
    env_path.write_text("A=a\nFOO=bar\nB=b\n")
    report = make_engine(env_path).delete_keys(["FOO"])
    assert env_path.read_text() == "A=a\nB=b\n"
    assert "FOO" not in report.new_map


def test_delete_on_missing_file_fails(env_path):
    with pytest.raises(EnvIOError) as excinfo:
        make_engine(env_path).delete_keys(["A"])
    assert "file not found" in str(excinfo.value)


def test_format_file(env_path):
    env_path.write_text("# c\nB=2\nEMPTY=\nA=1\n")
    make_engine(env_path).format_file(prune_comments=True)
    assert env_path.read_text() == "A=1\nB=2\n"


def test_get_and_read_map(env_path):
    env_path.write_text("A=1\nA='last'\n")
    engine = make_engine(env_path)
    assert engine.get("A") == "last"
    assert engine.read_map() == {"A": "last"}


def test_get_missing_key(env_path):
    env_path.write_text("A=1\n")
    with pytest.raises(KeyNotFoundError) as excinfo:
        make_engine(env_path).get("B")
    assert isinstance(excinfo.value, KeyError)
    assert str(excinfo.value) == "key not found: B"


def test_bom_is_accepted(env_path):
    env_path.write_bytes("\ufeffA=1\n".encode("utf-8"))
    assert make_engine(env_path).get("A") == "1"


def test_invalid_utf8_is_an_io_error(env_path):
    env_path.write_bytes(b"A=\xff\xfe\n")
    with pytest.raises(EnvIOError) as excinfo:
        make_engine(env_path).load()
    assert "UTF-8" in str(excinfo.value)


def test_strict_config_rejects_malformed_file(env_path):
    env_path.write_text("A=1\nBAD LINE\n")
    with pytest.raises(ParseError):
        make_engine(env_path, strict=True).load()


def test_lenient_config_keeps_malformed_lines(env_path):
    env_path.write_text("A=1\nBAD LINE\n")
    make_engine(env_path).set_values({"A": "2"})
    assert env_path.read_text() == "A=2\nBAD LINE\n"


def test_explicit_path_overrides_config(tmp_path):
    other = tmp_path / "other.env"
    engine = EnvFileEngine(EnvsetConfig(env_file=str(tmp_path / "unused.env")))
    engine.set_values({"X": "1"}, path=str(other))
    assert other.read_text() == "X=1\n"
    assert not (tmp_path / "unused.env").exists()


def test_crlf_file_keeps_its_line_endings(env_path):
    env_path.write_bytes(b"A=1\r\nB=2\r\n")
    make_engine(env_path).set_values({"C": "3"})
    assert env_path.read_bytes() == b"A=1\r\nB=2\r\nC=3\r\n"


def test_bom_survives_an_edit(env_path):
    env_path.write_bytes("\ufeffA=1\n".encode("utf-8"))
    report = make_engine(env_path).set_values({"A": "2"})
    assert report.new_map == {"A": "2"}
    assert env_path.read_bytes() == "\ufeffA=2\n".encode("utf-8")


def test_bom_only_file_is_not_rewritten(env_path):
    env_path.write_bytes("\ufeffA=1\n".encode("utf-8"))
    report = make_engine(env_path).set_values({"A": "1"})
    assert report.changed is False
    assert report.written is False
