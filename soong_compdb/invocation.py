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
"""Classification of build invocations into full, module and env-check builds.

The classifier never reads the process environment itself. The values it needs
(source root, current directory, ONE_SHOT_MAKEFILE, MODULES) are captured once
into an EnvironmentSnapshot and passed in.
"""

import os
import enum
import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple

from soong_compdb.constants import (
    ALL_TARGET,
    BUILD_SCRIPT,
    ENV_BUILD_TOP,
    ENV_CHECK_COMMANDS,
    ENV_MODULES,
    ENV_ONE_SHOT_MAKEFILE,
    FLAG_PREFIX,
    MAKE_COMMANDS,
    MM_COMMAND,
    MMM_COMMAND,
    MODULES_IN_PREFIX,
    MODULES_IN_SEPARATOR,
)

logger = logging.getLogger(__name__)


class CompileType(enum.Enum):
    """Kind of build requested by the invocation."""

    FULL = "full"
    MODULE = "module"
    ENV_CHECK = "env_check"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class EnvironmentSnapshot:
    """Immutable view of the environment values consulted during a run.

    Attributes:
        source_root: Android source tree root (ANDROID_BUILD_TOP), "" if unset
        cwd: Current working directory at start-up
        one_shot_makefile: ONE_SHOT_MAKEFILE, "" if unset
        modules: MODULES, "" if unset
    """

    source_root: str = ""
    cwd: str = ""
    one_shot_makefile: str = ""
    modules: str = ""

    @classmethod
    def capture(cls, environ: Optional[Mapping[str, str]] = None, cwd: Optional[str] = None) -> "EnvironmentSnapshot":
        """Capture the snapshot from the process (or a given) environment."""
        if environ is None:
            environ = os.environ
        return cls(
            source_root=environ.get(ENV_BUILD_TOP, ""),
            cwd=cwd if cwd is not None else os.getcwd(),
            one_shot_makefile=environ.get(ENV_ONE_SHOT_MAKEFILE, ""),
            modules=environ.get(ENV_MODULES, ""),
        )

    def cwd_relative_to_root(self) -> Optional[str]:
        """Current directory relative to the source root.

        Returns:
            Relative path, or None when the root is unset, the directory is
            outside the root, or the directory is the root itself
        """
        if not self.source_root or not self.cwd:
            return None

        root = os.path.abspath(self.source_root)
        cwd = os.path.abspath(self.cwd)
        try:
            if os.path.commonpath([root, cwd]) != root:
                return None
        except ValueError:
            # Different drives on Windows
            return None

        rel = os.path.relpath(cwd, root)
        return None if rel == "." else rel

    def cwd_basename(self) -> str:
        return os.path.basename(os.path.abspath(self.cwd)) if self.cwd else ""

    def makefile_dir(self) -> str:
        return os.path.dirname(self.one_shot_makefile) if self.one_shot_makefile else ""

    def module_list(self) -> List[str]:
        return self.modules.split()


def _is_flag(arg: str) -> bool:
    return arg.startswith(FLAG_PREFIX)


def _is_build_script(arg: str) -> bool:
    return arg == f"./{BUILD_SCRIPT}" or arg.endswith(f"/{BUILD_SCRIPT}")


def _mm_targets(env: EnvironmentSnapshot) -> List[str]:
    rel = env.cwd_relative_to_root()
    if rel is not None:
        logger.info("mm command detected in directory: %s", rel)
        return [rel]

    makefile_dir = env.makefile_dir()
    if makefile_dir:
        logger.info("mm command with %s: %s", ENV_ONE_SHOT_MAKEFILE, makefile_dir)
        return [makefile_dir]

    logger.info("mm command, using current directory name: %s", env.cwd_basename())
    return [env.cwd_basename()]


def _mmm_targets(remaining: Sequence[str], env: EnvironmentSnapshot) -> List[str]:
    if remaining:
        logger.info("mmm command detected with targets: %s", list(remaining))
        return list(remaining)

    modules = env.module_list()
    if modules:
        logger.info("mmm command, using %s env: %s", ENV_MODULES, modules)
        return modules

    logger.info("mmm command without targets, using current dir: %s", env.cwd_basename())
    return [env.cwd_basename()]


def determine_compile_type(build_args: Sequence[str], env: EnvironmentSnapshot) -> Tuple[CompileType, List[str]]:
    """Decide whether the invocation is a full build, a module build or an env check.

    Args:
        build_args: Arguments given to the build wrapper
        env: Environment snapshot for mm/mmm target inference

    Returns:
        Tuple of (compile type, module targets); targets are empty unless MODULE
    """
    if not build_args:
        logger.info("No build arguments provided, assuming full build")
        return CompileType.FULL, []

    if len(build_args) == 1 and build_args[0] in ENV_CHECK_COMMANDS:
        logger.info("Environment check command detected: %s", build_args[0])
        return CompileType.ENV_CHECK, []

    for arg in build_args:
        if arg.startswith(MODULES_IN_PREFIX):
            dir_path = arg[len(MODULES_IN_PREFIX) :].replace(MODULES_IN_SEPARATOR, "/")
            logger.info("Module directory build detected: %s", dir_path)
            return CompileType.MODULE, [dir_path]

    for i, arg in enumerate(build_args):
        if arg == MM_COMMAND:
            return CompileType.MODULE, _mm_targets(env)
        if arg == MMM_COMMAND:
            return CompileType.MODULE, _mmm_targets(build_args[i + 1 :], env)

    if _is_build_script(build_args[0]):
        if len(build_args) >= 2 and not _is_flag(build_args[1]):
            logger.info("%s module build detected: %s", BUILD_SCRIPT, build_args[1])
            return CompileType.MODULE, [build_args[1]]
        logger.info("%s full build detected", BUILD_SCRIPT)
        return CompileType.FULL, []

    if build_args[0] != ALL_TARGET:
        start = 1 if build_args[0] in MAKE_COMMANDS else 0
        targets = [arg for arg in build_args[start:] if not _is_flag(arg)]
        if targets:
            logger.info("Module build detected: %s", targets)
            return CompileType.MODULE, targets

    logger.info("Full build mode detected with args: %s", list(build_args))
    return CompileType.FULL, []


def detect_module_targets(env: EnvironmentSnapshot) -> List[str]:
    """Infer module targets from the environment when the invocation named none.

    Uses the ONE_SHOT_MAKEFILE directory and the MODULES list when set, otherwise
    the current directory relative to the source root, otherwise its base name.
    """
    targets: List[str] = []

    makefile_dir = env.makefile_dir()
    if makefile_dir:
        targets.append(makefile_dir)
        logger.info("Module target detected from %s: %s", ENV_ONE_SHOT_MAKEFILE, makefile_dir)

    modules = env.module_list()
    if modules:
        targets.extend(modules)
        logger.info("Module targets detected from %s env: %s", ENV_MODULES, modules)

    if not targets:
        rel = env.cwd_relative_to_root()
        if rel is not None:
            targets.append(rel)
            logger.info("Using current directory as module target: %s", rel)
        elif env.cwd:
            targets.append(env.cwd_basename())
            logger.info("Using current directory name as module target: %s", env.cwd_basename())

    return targets
