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
"""Interaction with the ninja-compatible graph executor.

All graph queries go through `<tool> -f <ninja file> -t <subtool> ...` run from
the source root:

- `-t targets` lists every target (parse_ninja_targets_output)
- `-t compdb` dumps the whole compilation database
- `-t compdb-targets <target>` dumps the compilation database of one target

Failures of individual queries are logged and reported as None so callers can
continue; only a missing executor is fatal (see check_ninja_exists).
"""

import os
import json
import logging
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from soong_compdb.constants import (
    DatabaseWriteError,
    HIGHMEM_POOL_DEPTH,
    HIGHMEM_POOL_NAME,
    NinjaError,
    RAW_OUTPUT_ECHO_LIMIT,
    TEMP_NINJA_SUFFIX,
)
from soong_compdb.tool_detection import find_tool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NinjaContext:
    """Everything needed to run a graph executor subtool.

    Attributes:
        tool: Executable name or path (e.g. "distninja")
        ninja_file: Build graph file passed with -f
        cwd: Directory the executor runs in (the source root), None for inherited
        timeout: Seconds before a call is abandoned, None to wait indefinitely
    """

    tool: str
    ninja_file: str
    cwd: Optional[str] = None
    timeout: Optional[float] = None

    @property
    def ninja_dir(self) -> str:
        return os.path.dirname(self.ninja_file)


def check_ninja_exists(tool: str) -> str:
    """Make sure the graph executor is available.

    Args:
        tool: Executable name or path

    Returns:
        Resolved path of the executable

    Raises:
        NinjaError: If the executable cannot be found
    """
    tool_info = find_tool(tool)
    if not tool_info.is_found():
        raise NinjaError(f"{tool} tool not found, please install ninja build tool first")

    assert tool_info.full_command is not None, "Tool command should not be None when found"
    logger.debug("Using graph executor %s (%s)", tool_info.full_command, tool_info.version or "unknown version")
    return tool_info.full_command


def temp_ninja_file_content(ninja_file: str) -> str:
    """Content of the wrapper ninja file: the highmem pool, then the real graph."""
    pool_defs = f"\npool {HIGHMEM_POOL_NAME}\n  depth = {HIGHMEM_POOL_DEPTH}"
    return f"{pool_defs}\nsubninja {ninja_file}\n"


def create_temp_ninja_file(ninja_file: str, source_root: str = "") -> str:
    """Write the wrapper ninja file next to the real build graph.

    Args:
        ninja_file: Real build graph file; relative paths are taken from source_root
        source_root: Android source tree root

    Returns:
        Path of the wrapper file (<ninja_file>.tmp_commands)

    Raises:
        DatabaseWriteError: If the file cannot be written
    """
    if source_root and not os.path.isabs(ninja_file):
        ninja_file = os.path.join(source_root, ninja_file)

    tmp_ninja_file = ninja_file + TEMP_NINJA_SUFFIX
    try:
        with open(tmp_ninja_file, "w", encoding="utf-8") as f:
            f.write(temp_ninja_file_content(ninja_file))
    except OSError as e:
        logger.error("Failed to create temporary ninja file %s: %s", tmp_ninja_file, e)
        raise DatabaseWriteError(f"error creating temporary ninja file: {tmp_ninja_file}") from e

    logger.debug("Temporary ninja file: %s", tmp_ninja_file)
    return tmp_ninja_file


def run_ninja_tool(ctx: NinjaContext, tool_args: Sequence[str]) -> Optional[str]:
    """Run a graph executor subtool and return its stdout.

    Args:
        ctx: Executor, graph file and working directory
        tool_args: Arguments after -t (e.g. ["compdb-targets", "libutils"])

    Returns:
        Standard output, or None if the call failed (already logged)
    """
    cmd = [ctx.tool, "-f", ctx.ninja_file, "-t", *tool_args]
    description = " ".join(tool_args)
    logger.debug("Running: %s", " ".join(cmd))

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, cwd=ctx.cwd or None, timeout=ctx.timeout)
    except subprocess.TimeoutExpired:
        logger.warning("%s -t %s timed out after %s seconds", ctx.tool, description, ctx.timeout)
        return None
    except OSError as e:
        logger.warning("Failed to run %s -t %s: %s", ctx.tool, description, e)
        return None

    if result.returncode != 0:
        logger.warning("%s -t %s failed with code %s", ctx.tool, description, result.returncode)
        if result.stderr:
            logger.debug("Stderr: %s", result.stderr[:500])
        return None

    return result.stdout


def parse_ninja_targets_output(output: str) -> List[str]:
    """Parse `-t targets` output into target names.

    Each line looks like "target: rule ..."; the text before the first ':' is
    the target. Blank lines and '#' comment lines are skipped.
    """
    targets: List[str] = []

    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        target = line.split(":", 1)[0].strip()
        if target:
            targets.append(target)

    logger.info("Found %s targets", len(targets))
    return targets


def get_ninja_targets(ctx: NinjaContext) -> List[str]:
    """List every target of the build graph ([] when the query fails)."""
    output = run_ninja_tool(ctx, ["targets"])
    if output is None:
        logger.warning("Failed to get ninja targets")
        return []
    return parse_ninja_targets_output(output)


def decode_compdb_output(output: str, context: str) -> List[Dict[str, Any]]:
    """Decode compdb JSON output into a list of records.

    Malformed JSON or a non-list document is reported and treated as empty.
    Non-object items are skipped.

    Args:
        output: Raw stdout of a compdb subtool
        context: What was queried, for diagnostics

    Returns:
        List of JSON objects
    """
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse compilation database JSON for %s: %s", context, e)
        return []

    if not isinstance(data, list):
        logger.warning("Invalid compilation database for %s: expected list, got %s", context, type(data).__name__)
        return []

    entries = []
    for entry in data:
        if not isinstance(entry, dict):
            logger.warning("Skipping invalid compdb entry for %s: %s", context, entry)
            continue
        entries.append(entry)
    return entries


def run_compdb(ctx: NinjaContext) -> List[Dict[str, Any]]:
    """Whole-graph compilation database (`-t compdb`)."""
    output = run_ninja_tool(ctx, ["compdb"])
    if output is None:
        logger.warning("Failed to get compilation database")
        return []
    return decode_compdb_output(output, "all targets")


def run_compdb_targets(ctx: NinjaContext, target: str) -> Optional[List[Dict[str, Any]]]:
    """Compilation database of a single target (`-t compdb-targets <target>`).

    Returns:
        Records of the target, or None when the executor call itself failed
    """
    output = run_ninja_tool(ctx, ["compdb-targets", target])
    if output is None:
        return None

    logger.debug("Raw output length: %s bytes", len(output))
    if len(output) < RAW_OUTPUT_ECHO_LIMIT:
        logger.debug("Raw output content: %s", output)
    return decode_compdb_output(output, f"target {target}")
