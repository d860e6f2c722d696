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
"""Generate compile_commands.json for an Android build invocation.

Given the arguments of a build (full build, `mm`, `mmm <dirs>`, `m <modules>`,
`MODULES-IN-<dir>`, `./build.sh <module>`), this script works out which part of
the ninja build graph is relevant, extracts the compiler invocations for it
through the graph executor's compdb tools, normalizes them and writes
<out-dir>/compile_commands.json before handing it to the proxy.

Requirements:
    - Python 3.8+
    - distninja (or another ninja-compatible graph executor supporting -t compdb-targets)
    - colorama, packaging: pip install colorama packaging

Usage:
    soongCompdb.py --ninja-file out/soong/build.ninja [options] [--] [build arguments...]

Environment:
    ANDROID_BUILD_TOP    Source tree root (graph executor working directory)
    ONE_SHOT_MAKEFILE    Makefile path used to infer the module directory
    MODULES              Whitespace separated module list

Exit Codes:
    0: Success
    1: Invalid arguments
    2: Graph executor missing, write failure or unexpected error
    3: Proxy failed
"""

import os
import sys
import signal
import logging
import argparse
import dataclasses
from typing import Any, List, Optional

__version__ = "1.0.0"

from soong_compdb.color_utils import Colors, print_error, print_warning, should_use_color
from soong_compdb.constants import (
    ArgumentError,
    BuildDirectoryError,
    CompdbError,
    DEFAULT_NINJA_TOOL,
    DEFAULT_PROXY_TOOL,
    EXIT_KEYBOARD_INTERRUPT,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
)
from soong_compdb.invocation import EnvironmentSnapshot
from soong_compdb.package_verification import require_package
from soong_compdb.wrapper import WrapperConfig, run_ninja_with_command_logging

# Export for tests
__all__ = ["EXIT_SUCCESS", "main", "build_config"]


def signal_handler(signum: int, frame: Any) -> None:
    """Handle interrupt signals gracefully."""
    print_warning("\nInterrupted by user. Exiting...", prefix=False)
    sys.exit(EXIT_KEYBOARD_INTERRUPT)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate compile_commands.json for an Android full or module build.",
        epilog=f"Version {__version__}\n\nExamples:\n"
        f"  %(prog)s --ninja-file out/soong/build.ninja\n"
        f"  %(prog)s --ninja-file out/soong/build.ninja mmm system/core\n"
        f"  %(prog)s --ninja-file out/soong/build.ninja --no-proxy -- m libutils -j8\n",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--ninja-file", required=True, help="Build graph file (relative paths are under the source root)")
    parser.add_argument("--out-dir", help="Directory receiving compile_commands.json (default: <source root>/out)")
    parser.add_argument("--soong-out-dir", default="", help="Soong output directory")
    parser.add_argument("--combined-ninja-file", default="", help="Combined build graph file")
    parser.add_argument("--source-root", help="Source tree root (default: $ANDROID_BUILD_TOP)")
    parser.add_argument("--ninja-tool", default=DEFAULT_NINJA_TOOL, help=f"Graph executor (default: {DEFAULT_NINJA_TOOL})")
    parser.add_argument("--proxy", default=DEFAULT_PROXY_TOOL, help=f"Downstream consumer of the database (default: {DEFAULT_PROXY_TOOL})")
    parser.add_argument("--no-proxy", action="store_true", help="Do not run the proxy after writing")
    parser.add_argument("--timeout", type=float, help="Seconds to wait for each graph executor call (default: no limit)")
    parser.add_argument("--highmem-parallel", type=int, default=1, help="Parallelism of high-memory build steps")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("build_args", nargs=argparse.REMAINDER, help="Build arguments (e.g. mm, mmm system/core, m libutils)")

    return parser


def build_config(args: argparse.Namespace, env: EnvironmentSnapshot) -> WrapperConfig:
    """Validate parsed arguments and turn them into a WrapperConfig.

    Raises:
        ArgumentError: If the arguments are inconsistent
        BuildDirectoryError: If the source root is not a directory
    """
    if args.timeout is not None and args.timeout <= 0:
        raise ArgumentError(f"--timeout must be positive, got {args.timeout}")

    if env.source_root and not os.path.isdir(env.source_root):
        raise BuildDirectoryError(f"Source root is not a directory: {env.source_root}")

    ninja_file = args.ninja_file
    if env.source_root and not os.path.isabs(ninja_file):
        resolved = os.path.join(env.source_root, ninja_file)
    else:
        resolved = os.path.abspath(ninja_file)
    if not os.path.isfile(resolved):
        raise ArgumentError(f"Ninja file not found: {resolved}")

    out_dir = args.out_dir or os.path.join(env.source_root or env.cwd, "out")
    build_args: List[str] = list(args.build_args)
    if build_args and build_args[0] == "--":
        build_args = build_args[1:]

    return WrapperConfig(
        out_dir=out_dir,
        soong_ninja_file=ninja_file,
        soong_out_dir=args.soong_out_dir,
        source_root_dirs=[env.source_root] if env.source_root else [],
        build_arguments=build_args,
        highmem_parallel=args.highmem_parallel,
        combined_ninja_file=args.combined_ninja_file,
        ninja_tool=args.ninja_tool,
        proxy_tool=args.proxy,
        run_proxy=not args.no_proxy,
        timeout=args.timeout,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the script.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    args = create_parser().parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not should_use_color(no_color=args.no_color):
        Colors.disable()

    require_package("colorama", "colored output")

    env = EnvironmentSnapshot.capture()
    if args.source_root:
        env = dataclasses.replace(env, source_root=args.source_root)

    try:
        config = build_config(args, env)
        run_ninja_with_command_logging(config, env)
    except CompdbError as e:
        print_error(str(e))
        return e.exit_code
    except KeyboardInterrupt:
        print_warning("\nInterrupted by user.", prefix=False)
        return EXIT_KEYBOARD_INTERRUPT
    except Exception as e:  # pylint: disable=broad-except
        print_error(f"Unexpected failure: {e}")
        if args.verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
