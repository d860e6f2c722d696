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
"""End-to-end pipeline: build arguments in, compile_commands.json out.

run_ninja_with_command_logging() classifies the invocation, narrows the build
graph to the relevant targets for module builds, extracts and normalizes their
compiler commands, writes compile_commands.json and hands it to the proxy.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from soong_compdb.color_utils import print_info, print_success, print_warning
from soong_compdb.compdb_database import CommandDatabase, get_all_compilation_commands, get_compilation_database
from soong_compdb.constants import DEFAULT_NINJA_TOOL, DEFAULT_PROXY_TOOL, NINJA_COMMAND_TIMEOUT
from soong_compdb.export_utils import run_proxy, write_compile_commands
from soong_compdb.invocation import CompileType, EnvironmentSnapshot, detect_module_targets, determine_compile_type
from soong_compdb.ninja_utils import NinjaContext, check_ninja_exists, create_temp_ninja_file, get_ninja_targets
from soong_compdb.target_resolver import expand_module_targets, find_ninja_targets_by_fuzzy_match, get_relevant_targets

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WrapperConfig:
    """Configuration of one wrapper run.

    Attributes:
        out_dir: Directory receiving compile_commands.json
        soong_ninja_file: Real build graph file (relative paths are under the source root)
        soong_out_dir: Soong output directory
        source_root_dirs: Source directories of the tree
        build_arguments: Arguments given to the build wrapper (e.g. ["mmm", "system/core"])
        highmem_parallel: Parallelism configured for high-memory steps
        combined_ninja_file: Combined build graph file
        ninja_tool: Graph executor executable
        proxy_tool: Downstream consumer of compile_commands.json
        run_proxy: Whether to invoke proxy_tool after writing
        timeout: Per subprocess timeout in seconds, None to wait indefinitely
    """

    out_dir: str
    soong_ninja_file: str
    soong_out_dir: str = ""
    source_root_dirs: List[str] = field(default_factory=list)
    build_arguments: List[str] = field(default_factory=list)
    highmem_parallel: int = 1
    combined_ninja_file: str = ""
    ninja_tool: str = DEFAULT_NINJA_TOOL
    proxy_tool: str = DEFAULT_PROXY_TOOL
    run_proxy: bool = True
    timeout: Optional[float] = NINJA_COMMAND_TIMEOUT


@dataclass
class WrapperResult:
    """Outcome of a wrapper run.

    Attributes:
        compile_type: Classified invocation
        module_targets: Expanded module targets (module builds only)
        relevant_targets: Graph targets queried (module builds only)
        commands: Assembled database
        output_path: Written compile_commands.json, None for env-check runs
    """

    compile_type: CompileType
    module_targets: List[str] = field(default_factory=list)
    relevant_targets: List[str] = field(default_factory=list)
    commands: CommandDatabase = field(default_factory=CommandDatabase)
    output_path: Optional[str] = None


def _collect_module_commands(ctx: NinjaContext, module_targets: List[str], env: EnvironmentSnapshot, result: WrapperResult) -> CommandDatabase:
    if not module_targets:
        module_targets = detect_module_targets(env)
        logger.info("Detected module targets: %s", ", ".join(module_targets))

    result.module_targets = expand_module_targets(module_targets)
    logger.info("Expanded module targets: %s", ", ".join(result.module_targets))

    all_targets = get_ninja_targets(ctx)
    module = " ".join(module_targets)
    result.relevant_targets = get_relevant_targets(all_targets, module)

    if not result.relevant_targets:
        print_warning("No ninja targets found for modules, trying fallbacks", prefix=False)
        result.relevant_targets = find_ninja_targets_by_fuzzy_match(all_targets, result.module_targets)

    if not result.relevant_targets:
        print_warning("No ninja targets matched the modules, the compilation database will be empty")
        return CommandDatabase()

    commands = get_compilation_database(ctx, result.relevant_targets)
    print_info(f"Extracted {len(commands)} compilation commands for modules")
    return commands


def run_ninja_with_command_logging(config: WrapperConfig, env: EnvironmentSnapshot) -> WrapperResult:
    """Extract the compilation database relevant to a build invocation.

    Environment-check invocations (nothing, showcommands, dumpvars) stop after
    classification: no graph query, no compile_commands.json, no proxy call.

    Args:
        config: Run configuration
        env: Environment snapshot captured at start-up

    Returns:
        WrapperResult describing what was resolved and written

    Raises:
        NinjaError: If the graph executor is not installed
        DatabaseWriteError: If the intermediate ninja file or the output cannot be written
        ProxyError: If the downstream proxy fails
    """
    ninja_tool = check_ninja_exists(config.ninja_tool)

    compile_type, module_targets = determine_compile_type(config.build_arguments, env)
    print_info(f"Detected compile type: {compile_type}")
    result = WrapperResult(compile_type=compile_type)

    if compile_type is CompileType.ENV_CHECK:
        print_info("Environment check only, no compilation database generated")
        return result

    temp_ninja_file = create_temp_ninja_file(config.soong_ninja_file, env.source_root)
    ctx = NinjaContext(tool=ninja_tool, ninja_file=temp_ninja_file, cwd=env.source_root or None, timeout=config.timeout)

    if compile_type is CompileType.FULL:
        print_info("Full build mode (m): generating complete compilation database")
        result.commands = get_all_compilation_commands(ctx, env.source_root or ctx.ninja_dir)
        print_info(f"Extracted {len(result.commands)} compilation commands")
    else:
        print_info(f"Module build mode ({' '.join(config.build_arguments)}): {', '.join(module_targets)}")
        result.commands = _collect_module_commands(ctx, module_targets, env, result)

    result.output_path = write_compile_commands(config.out_dir, result.commands)
    print_success(f"Compilation command database has been written to: {result.output_path}")

    if config.run_proxy:
        run_proxy(config.proxy_tool, env.source_root, config.out_dir, config.timeout)

    return result
