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
"""Shared constants for the soong-compdb tools.

This module provides centralized constants used across the soong_compdb modules
so the tokens recognized on the build command line, the Android output naming
conventions and the exit codes stay consistent in one place.
"""

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_SUCCESS = 0
EXIT_INVALID_ARGS = 1
EXIT_RUNTIME_ERROR = 2
EXIT_KEYBOARD_INTERRUPT = 130

EXIT_NINJA_FAILED = 2  # Graph executor missing
EXIT_PROXY_FAILED = 3  # Downstream proxy missing or failed

# =============================================================================
# Build Invocation Tokens
# =============================================================================

# Single-argument commands that only inspect the build environment
ENV_CHECK_COMMANDS = frozenset({"nothing", "showcommands", "dumpvars"})

# MODULES-IN-system-core -> system/core
MODULES_IN_PREFIX = "MODULES-IN-"
MODULES_IN_SEPARATOR = "-"

MM_COMMAND = "mm"  # Build modules in the current directory
MMM_COMMAND = "mmm"  # Build the listed modules/directories
MAKE_COMMANDS = ("m", "make")
ALL_TARGET = "all"
BUILD_SCRIPT = "build.sh"
FLAG_PREFIX = "-"

# Environment variables captured into the EnvironmentSnapshot
ENV_BUILD_TOP = "ANDROID_BUILD_TOP"
ENV_ONE_SHOT_MAKEFILE = "ONE_SHOT_MAKEFILE"
ENV_MODULES = "MODULES"

# =============================================================================
# Android Naming Conventions
# =============================================================================

LIBRARY_PREFIX = "lib"
INTERMEDIATES_SUFFIX = "_intermediates"

# Output categories used by the make-based part of the build
MODULE_CATEGORIES = ("SHARED_LIBRARIES", "STATIC_LIBRARIES", "EXECUTABLES", "APPS")

# Targets produced by analysis tooling rather than the real build
AUXILIARY_TARGET_MARKERS = (".tidy", ".lint", ".analyze")

# Generic directory names that never name a module
EXCLUDED_PATH_SEGMENTS = frozenset({"out", "intermediates", "obj", "include", "lib", "bin"} | set(MODULE_CATEGORIES))

# =============================================================================
# Graph Executor
# =============================================================================

DEFAULT_NINJA_TOOL = "distninja"
DEFAULT_PROXY_TOOL = "proxy"

TEMP_NINJA_SUFFIX = ".tmp_commands"
HIGHMEM_POOL_NAME = "highmem_pool"
HIGHMEM_POOL_DEPTH = 1

# None = wait for the graph executor indefinitely
NINJA_COMMAND_TIMEOUT = None

# Raw per-target output below this size is echoed at debug level
RAW_OUTPUT_ECHO_LIMIT = 1000

# =============================================================================
# Output
# =============================================================================

COMPILE_COMMANDS_JSON = "compile_commands.json"  # Standard compilation database filename
TEMP_OUTPUT_PREFIX = ".compile_commands."
TEMP_OUTPUT_SUFFIX = ".tmp"
JSON_INDENT = 2

# =============================================================================
# Exception Classes
# =============================================================================


class CompdbError(Exception):
    """Base exception for all soong-compdb errors.

    All soong-compdb exceptions carry an exit_code attribute that indicates
    what exit code the program should use when this error is caught at the
    main entry point.
    """

    def __init__(self, message: str, exit_code: int = EXIT_RUNTIME_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


# Validation errors (EXIT_INVALID_ARGS)
class ValidationError(CompdbError):
    """Raised when input validation fails (arguments, paths, etc)."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_INVALID_ARGS)


class BuildDirectoryError(ValidationError):
    """Raised when the source root or output directory is invalid."""


class ArgumentError(ValidationError):
    """Raised when command-line arguments are invalid."""


# External tool errors
class ExternalToolError(CompdbError):
    """Raised when external tools (graph executor, proxy) fail."""

    def __init__(self, message: str, exit_code: int = EXIT_RUNTIME_ERROR):  # pylint: disable=useless-parent-delegation
        super().__init__(message, exit_code)


class NinjaError(ExternalToolError):
    """Raised when the graph executor is not found."""

    def __init__(self, message: str):  # pylint: disable=useless-parent-delegation
        super().__init__(message, EXIT_NINJA_FAILED)


class ProxyError(ExternalToolError):
    """Raised when the downstream proxy is missing or exits non-zero."""

    def __init__(self, message: str):  # pylint: disable=useless-parent-delegation
        super().__init__(message, EXIT_PROXY_FAILED)


# Filesystem errors (EXIT_RUNTIME_ERROR)
class DatabaseWriteError(CompdbError):
    """Raised when the intermediate ninja file or compile_commands.json cannot be written."""
