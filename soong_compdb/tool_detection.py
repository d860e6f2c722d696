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
"""Centralized external tool detection for soong-compdb.

Locates the graph executor (distninja or another ninja-compatible tool) and the
downstream proxy on PATH. A tool counts as found when it is on PATH; its
--version output is recorded when the tool answers, but is not required.

Tool detection results are cached within the Python process session to avoid repeated
subprocess calls.

CLI Interface:
    python3 -m soong_compdb.tool_detection --find-ninja    # Output command path, exit 0/1
    python3 -m soong_compdb.tool_detection --check-all     # Output JSON with all tools
    python3 -m soong_compdb.tool_detection --verbose       # Enable debug logging
"""

import sys
import json
import shutil
import logging
import argparse
import subprocess
from typing import Optional, Dict, List
from dataclasses import dataclass

from soong_compdb.constants import DEFAULT_NINJA_TOOL, DEFAULT_PROXY_TOOL

logger = logging.getLogger(__name__)

VERSION_TIMEOUT = 5

# Session-level cache for tool detection results (keyed by tool name)
_tool_cache: Dict[str, "ToolInfo"] = {}


@dataclass
class ToolInfo:
    """Information about a detected external tool.

    Attributes:
        command: Tool name as requested (e.g., "distninja")
        full_command: Resolved executable path (e.g., "/usr/local/bin/distninja")
        version: First line of --version output, None if the tool did not answer
        error_message: Why the tool was not found
    """

    command: Optional[str]
    full_command: Optional[str]
    version: Optional[str]
    error_message: Optional[str] = None

    def is_found(self) -> bool:
        """Check if tool was found.

        Returns:
            True if command is not None
        """
        return self.command is not None


def clear_cache() -> None:
    """Clear the tool detection cache.

    Useful for testing or when PATH changes during process lifetime.
    """
    _tool_cache.clear()
    logger.debug("Tool detection cache cleared")


def _try_command(cmd_parts: List[str], timeout: int = VERSION_TIMEOUT) -> Optional[str]:
    """Try to run a command with --version and return version output.

    Returns:
        Version output string if successful, None otherwise
    """
    try:
        result = subprocess.run(cmd_parts + ["--version"], capture_output=True, text=True, check=True, timeout=timeout)
        return result.stdout.strip()
    except (subprocess.CalledProcessError, OSError, subprocess.TimeoutExpired):
        return None


def _extract_version(output: str) -> str:
    """Return the first line of version output."""
    lines = output.split("\n")
    return lines[0].strip() if lines else output.strip()


def find_tool(name: str) -> ToolInfo:
    """Find an executable on PATH.

    Args:
        name: Executable name or path

    Returns:
        ToolInfo with path and version if found, or empty ToolInfo with error_message if not found
    """
    if name in _tool_cache:
        return _tool_cache[name]

    logger.debug("Trying %s...", name)
    path = shutil.which(name)
    if path is None:
        logger.debug("%s not found", name)
        tool_info = ToolInfo(command=None, full_command=None, version=None, error_message=f"{name} not in PATH")
        _tool_cache[name] = tool_info
        return tool_info

    version_output = _try_command([path])
    version = _extract_version(version_output) if version_output else None
    logger.debug("Found %s at %s (version %s)", name, path, version or "unknown")

    tool_info = ToolInfo(command=name, full_command=path, version=version)
    _tool_cache[name] = tool_info
    return tool_info


def find_ninja(name: str = DEFAULT_NINJA_TOOL) -> ToolInfo:
    """Find the graph executor (default: distninja)."""
    return find_tool(name)


def find_proxy(name: str = DEFAULT_PROXY_TOOL) -> ToolInfo:
    """Find the downstream compile_commands.json consumer (default: proxy)."""
    return find_tool(name)


def check_all_tools(ninja_tool: str = DEFAULT_NINJA_TOOL, proxy_tool: str = DEFAULT_PROXY_TOOL) -> Dict[str, Dict[str, str]]:
    """Check all known tools and return their status.

    Returns:
        Dictionary with tool names as keys, each containing path and version.
        Missing tools are omitted from the result.
    """
    tools: Dict[str, Dict[str, str]] = {}

    for tool_name, find_func in ((ninja_tool, find_ninja), (proxy_tool, find_proxy)):
        tool_info = find_func(tool_name)
        if tool_info.is_found():
            assert tool_info.full_command is not None  # For type checker
            tools[tool_name] = {"command": tool_info.full_command, "version": tool_info.version or "unknown"}

    return tools


def main() -> int:
    """Main entry point for CLI usage.

    Returns:
        Exit code: 0 if tool found (or check-all succeeds), 1 if not found
    """
    parser = argparse.ArgumentParser(description="Detect external tools for soong-compdb", formatter_class=argparse.RawDescriptionHelpFormatter)

    parser.add_argument("--find-ninja", action="store_true", help="Find the graph executor")
    parser.add_argument("--find-proxy", action="store_true", help="Find the downstream proxy")
    parser.add_argument("--ninja-tool", default=DEFAULT_NINJA_TOOL, help=f"Graph executor name (default: {DEFAULT_NINJA_TOOL})")
    parser.add_argument("--proxy-tool", default=DEFAULT_PROXY_TOOL, help=f"Proxy name (default: {DEFAULT_PROXY_TOOL})")
    parser.add_argument("--check-all", action="store_true", help="Check all tools and output JSON")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose debug logging")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s", stream=sys.stderr)
    else:
        logging.basicConfig(level=logging.WARNING)

    if args.check_all:
        output = {"tools": check_all_tools(args.ninja_tool, args.proxy_tool)}
        print(json.dumps(output, indent=2))
        return 0

    for flag_value, find_func, name in ((args.find_ninja, find_ninja, args.ninja_tool), (args.find_proxy, find_proxy, args.proxy_tool)):
        if flag_value:
            tool_info = find_func(name)
            if tool_info.is_found():
                print(tool_info.full_command)
                return 0
            return 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
