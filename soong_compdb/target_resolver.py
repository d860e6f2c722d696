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
"""Resolution of module targets to build graph targets.

Resolution is two-tier. get_relevant_targets() does structural matching of the
module string against every graph target. Only when that yields nothing,
find_ninja_targets_by_fuzzy_match() retries with case-insensitive fuzzy patterns
derived from the expanded module targets.
"""

import logging
import posixpath
from typing import Iterable, List, Sequence

from soong_compdb.constants import AUXILIARY_TARGET_MARKERS, LIBRARY_PREFIX, MODULE_CATEGORIES

logger = logging.getLogger(__name__)


def toggle_library_prefix(name: str) -> str:
    """libfoo -> foo, foo -> libfoo."""
    if name.startswith(LIBRARY_PREFIX):
        return name[len(LIBRARY_PREFIX) :]
    return LIBRARY_PREFIX + name


def expand_module_targets(targets: Sequence[str]) -> List[str]:
    """Expand module targets into the naming variants used by the build graph.

    For each target: the target itself, the underscore form of a path
    (system/core/init -> system_core_init), the base name, and the base name
    with the "lib" prefix toggled.

    Examples:
        >>> expand_module_targets(["system/core/init"])
        ['system/core/init', 'system_core_init', 'init', 'libinit']
        >>> expand_module_targets(["libutils"])
        ['libutils', 'utils']
    """
    expanded: List[str] = []

    for target in targets:
        expanded.append(target)

        if "/" in target:
            expanded.append(target.replace("/", "_"))

        base_name = posixpath.basename(target.rstrip("/")) or target
        if base_name != target:
            expanded.append(base_name)

        expanded.append(toggle_library_prefix(base_name))

    return expanded


def find_targets_by_module_path(all_targets: Iterable[str], module: str) -> List[str]:
    """Find graph targets that structurally match a module string.

    A target matches when it contains the module string, contains every
    '/'-separated part of it, or contains its base name.
    A trailing slash on the module string is ignored for the base name.
    """
    if not module:
        logger.debug("Empty module string, nothing to match")
        return []

    module_parts = [part for part in module.split("/") if part]
    module_name = posixpath.basename(module.rstrip("/"))
    matched: List[str] = []

    for target in all_targets:
        if module in target:
            matched.append(target)
        elif module_parts and all(part in target for part in module_parts):
            matched.append(target)
        elif module_name and module_name in target:
            matched.append(target)

    return matched


def is_auxiliary_target(target: str) -> bool:
    """Check for lint/tidy/analysis targets."""
    return any(marker in target for marker in AUXILIARY_TARGET_MARKERS)


def filter_build_targets(targets: Iterable[str]) -> List[str]:
    """Drop auxiliary targets (.tidy, .lint, .analyze)."""
    return [target for target in targets if not is_auxiliary_target(target)]


def get_relevant_targets(all_targets: Sequence[str], module: str) -> List[str]:
    """Graph targets related to a module, without auxiliary targets.

    Args:
        all_targets: Every target reported by `-t targets`
        module: Combined module string

    Returns:
        Matching build targets in graph order
    """
    logger.info("Got %s targets", len(all_targets))

    matched = find_targets_by_module_path(all_targets, module)
    logger.info("Matched %s relevant targets", len(matched))

    build_targets = filter_build_targets(matched)
    logger.info("After filtering, got %s build targets", len(build_targets))
    return build_targets


def build_fuzzy_patterns(module_targets: Sequence[str]) -> List[str]:
    """Fuzzy patterns for the last path part of each module target.

    The part itself, its lib-toggled variant, and the part prefixed with each
    output category (SHARED_LIBRARIES_foo, ...).
    """
    patterns: List[str] = []

    for target in module_targets:
        last = target.split("/")[-1]
        if not last:
            continue
        patterns.append(last)
        patterns.append(toggle_library_prefix(last))
        for category in MODULE_CATEGORIES:
            patterns.append(f"{category}_{last}")

    return patterns


def find_ninja_targets_by_fuzzy_match(all_targets: Sequence[str], module_targets: Sequence[str]) -> List[str]:
    """Find graph targets by case-insensitive substring match on fuzzy patterns.

    Args:
        all_targets: Every target reported by `-t targets`
        module_targets: Expanded module targets

    Returns:
        Matching targets in graph order, each at most once
    """
    logger.info("Trying fuzzy matching for module targets")

    patterns = build_fuzzy_patterns(module_targets)
    logger.info("Fuzzy patterns: %s", patterns)

    lowered_patterns = [pattern.lower() for pattern in patterns]
    matched = [target for target in all_targets if any(pattern in target.lower() for pattern in lowered_patterns)]

    logger.info("Found %s targets by fuzzy matching", len(matched))
    return matched
