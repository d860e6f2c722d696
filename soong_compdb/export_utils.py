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
"""Writing compile_commands.json and handing it to the downstream proxy."""

import os
import json
import logging
import tempfile
import subprocess
from typing import Optional

from soong_compdb.color_utils import print_success
from soong_compdb.compdb_database import CommandDatabase
from soong_compdb.constants import (
    COMPILE_COMMANDS_JSON,
    DatabaseWriteError,
    JSON_INDENT,
    ProxyError,
    TEMP_OUTPUT_PREFIX,
    TEMP_OUTPUT_SUFFIX,
)

logger = logging.getLogger(__name__)


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to remove temporary file %s: %s", path, e)


def _default_file_mode() -> int:
    # mkstemp creates 0600; match what open() would create under the current umask
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_compile_commands(output_dir: str, commands: CommandDatabase) -> str:
    """Write the database to <output_dir>/compile_commands.json.

    Uses atomic write (uniquely named temp file + rename) so a failed run never
    leaves a partial compile_commands.json behind. The file gets the regular
    umask-derived mode (0644 under umask 022) so other users can read it.

    Args:
        output_dir: Output directory, created if missing
        commands: Database to serialize

    Returns:
        Path of the written file

    Raises:
        DatabaseWriteError: If the directory, temp file or rename fails
    """
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        raise DatabaseWriteError(f"failed to create output directory: {e}") from e

    try:
        fd, temp_path = tempfile.mkstemp(prefix=TEMP_OUTPUT_PREFIX, suffix=TEMP_OUTPUT_SUFFIX, dir=output_dir)
    except OSError as e:
        raise DatabaseWriteError(f"failed to create temporary file: {e}") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(commands.to_dict(), f, indent=JSON_INDENT)
    except (OSError, TypeError, ValueError) as e:
        _remove_quietly(temp_path)
        raise DatabaseWriteError(f"failed to write temporary file: {e}") from e

    try:
        os.chmod(temp_path, _default_file_mode())
    except OSError as e:
        _remove_quietly(temp_path)
        raise DatabaseWriteError(f"failed to set file mode: {e}") from e

    final_path = os.path.join(output_dir, COMPILE_COMMANDS_JSON)
    try:
        os.replace(temp_path, final_path)
    except OSError as e:
        _remove_quietly(temp_path)
        raise DatabaseWriteError(f"failed to rename file: {e}") from e

    logger.info("Wrote %s commands to %s", len(commands), final_path)
    return final_path


def load_compile_commands(path: str) -> CommandDatabase:
    """Read a compile_commands.json written by write_compile_commands().

    Read-back helper for consumers of the database (editor integrations, tests).
    """
    with open(path, "r", encoding="utf-8") as f:
        return CommandDatabase.from_dict(json.load(f))


def run_proxy(proxy_tool: str, source_root: str, output_dir: str, timeout: Optional[float] = None) -> None:
    """Hand compile_commands.json to the downstream proxy.

    Runs `<proxy> -w <source_root> -c compile_commands.json` from output_dir.

    Raises:
        ProxyError: If the proxy cannot be started or exits non-zero
    """
    cmd = [proxy_tool, "-w", source_root, "-c", COMPILE_COMMANDS_JSON]
    logger.info("Running proxy: %s", " ".join(cmd))

    try:
        result = subprocess.run(cmd, cwd=output_dir, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise ProxyError(f"{proxy_tool} timed out after {timeout} seconds") from e
    except OSError as e:
        raise ProxyError(f"failed to run proxy command: {e}") from e

    if result.returncode != 0:
        raise ProxyError(f"failed to run proxy command: {proxy_tool} exited with code {result.returncode}")

    print_success(f"Proxy {proxy_tool} accepted {COMPILE_COMMANDS_JSON}", prefix=False)
