#!/usr/bin/env python3
"""
ENVSET CONFIGURATION
--------------------
Runtime switches shared by the File Engine and the CLI.

Author: Envset Team
Date: 2026-10-18
"""

import argparse
from dataclasses import dataclass


@dataclass
class EnvsetConfig:
    env_file: str = ".env"                 # Target file, relative to the working directory
    strict: bool = False                   # Raise ParseError instead of keeping bad lines
    escape_control_chars: bool = True      # Write \n, \r, \t escaped inside double quotes
    preserve_source: bool = True           # Untouched lines are written back byte-for-byte
    keep_trailing_comment: bool = True     # Updated values keep their inline comment
    no_overwrite: bool = False             # 'set' only adds keys that are absent
    create_backup: bool = False            # Copy the old file aside before writing
    dry_run: bool = False                  # Compute everything, write nothing

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "EnvsetConfig":
        """Builds a config from parsed CLI flags; flags a subcommand lacks keep their default."""
        return cls(
            env_file=args.file,
            strict=args.strict,
            escape_control_chars=not args.literal_newlines,
            keep_trailing_comment=not getattr(args, "drop_comment", False),
            no_overwrite=getattr(args, "no_overwrite", False),
            create_backup=getattr(args, "backup", False),
            dry_run=getattr(args, "dry_run", False),
        )
