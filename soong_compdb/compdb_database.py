#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Assembly of the compilation command database from graph executor output."""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Set

from soong_compdb.compdb_entry import CompilerCommandInfo, parse_compdb_entry
from soong_compdb.ninja_utils import NinjaContext, run_compdb, run_compdb_targets

logger = logging.getLogger(__name__)


class CommandDatabase:
    """Ordered collection of CompilerCommandInfo, unique by (command, output, inputs).

    Only records with a compiler type and at least one input file are kept.
    """

    def __init__(self, commands: Optional[Iterable[CompilerCommandInfo]] = None) -> None:
        self.commands: List[CompilerCommandInfo] = []
        self._keys: Set[tuple] = set()
        for info in commands or ():
            self.add(info)

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self) -> Iterator[CompilerCommandInfo]:
        return iter(self.commands)

    def add(self, info: CompilerCommandInfo) -> bool:
        """Append a record unless it is invalid or already present.

        Returns:
            True if the record was appended
        """
        if not info.is_valid():
            return False

        key = info.dedup_key()
        if key in self._keys:
            return False

        self._keys.add(key)
        self.commands.append(info)
        return True

    def add_entries(self, entries: Iterable[Dict[str, Any]], default_working_dir: str) -> int:
        """Normalize raw compdb records and add them.

        Returns:
            Number of records appended
        """
        added = 0
        for entry in entries:
            if self.add(parse_compdb_entry(entry, default_working_dir)):
                added += 1
        return added

    def to_dict(self) -> Dict[str, Any]:
        """JSON document written to compile_commands.json."""
        return {"commands": [info.to_dict() for info in self.commands]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommandDatabase":
        return cls(CompilerCommandInfo.from_dict(item) for item in data.get("commands") or [])


def get_all_compilation_commands(ctx: NinjaContext, default_working_dir: str) -> CommandDatabase:
    """All compilation commands of the graph (full build mode).

    Args:
        ctx: Graph executor context
        default_working_dir: Working directory for records without "directory"

    Returns:
        CommandDatabase; empty if the query failed or returned malformed JSON
    """
    logger.info("Getting all compilation commands from ninja file")
    commands = CommandDatabase()
    commands.add_entries(run_compdb(ctx), default_working_dir)
    return commands


def get_compilation_database(ctx: NinjaContext, targets: Sequence[str]) -> CommandDatabase:
    """Compilation commands of the given graph targets (module build mode).

    Each target is queried separately; a failing target is logged and skipped.
    With no targets, the whole graph is queried once instead.

    Args:
        ctx: Graph executor context
        targets: Resolved graph targets

    Returns:
        Merged, deduplicated CommandDatabase
    """
    if not targets:
        logger.info("Getting all compilation commands (no targets specified)")
        return get_all_compilation_commands(ctx, ctx.ninja_dir)

    logger.info("Starting to get compilation commands for %s targets", len(targets))
    commands = CommandDatabase()
    failed = 0

    for i, target in enumerate(targets, start=1):
        logger.info("Processing target %s/%s: %s", i, len(targets), target)

        entries = run_compdb_targets(ctx, target)
        if entries is None:
            logger.warning("Failed to get compilation commands for target %s", target)
            failed += 1
            continue

        commands.add_entries(entries, ctx.ninja_dir)

    if failed:
        logger.warning("%s of %s targets could not be queried", failed, len(targets))

    logger.info("Successfully got %s compilation commands for %s targets", len(commands), len(targets))
    return commands
