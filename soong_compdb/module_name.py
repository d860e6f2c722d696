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
"""Best-effort Android module name extraction from build output paths."""

import re
import logging
from typing import List, Pattern, Tuple

from soong_compdb.constants import EXCLUDED_PATH_SEGMENTS, INTERMEDIATES_SUFFIX

logger = logging.getLogger(__name__)

# Ordered (pattern, group) rules; the first pattern that matches wins.
MODULE_PATH_PATTERNS: List[Tuple[Pattern[str], int]] = [
    # out/target/product/XXX/obj/SHARED_LIBRARIES/libxxx_intermediates/
    (re.compile(r"/obj/([A-Z_]+)/([^/]+)_intermediates/"), 2),
    # out/soong/.intermediates/path/to/module/variant/
    (re.compile(r"/\.intermediates/([^/]+/)*([^/]+)/[^/]+/"), 2),
    # name/_intermediates/
    (re.compile(r"([^/]+)/_intermediates/"), 1),
]


def _match_structural_patterns(path: str) -> str:
    for pattern, group in MODULE_PATH_PATTERNS:
        match = pattern.search(path)
        if match:
            return match.group(group)
    return ""


def _fallback_segment(path: str) -> str:
    parts = path.split("/")
    # The last segment is the artifact itself
    for part in reversed(parts[:-1]):
        if not part or part in EXCLUDED_PATH_SEGMENTS or part.startswith("."):
            continue
        if part.endswith(INTERMEDIATES_SUFFIX):
            return part[: -len(INTERMEDIATES_SUFFIX)]
        return part
    return ""


def extract_module_name_from_path(path: str) -> str:
    """Extract the Android module name from an output artifact path.

    Tries the structural intermediates layouts first, then falls back to the
    closest parent directory that is not a generic output directory.

    Args:
        path: Output artifact path as reported in the compilation database

    Returns:
        Module name, or "" when nothing plausible is found

    Examples:
        >>> extract_module_name_from_path("out/target/product/generic/obj/SHARED_LIBRARIES/libutils_intermediates/utils.o")
        'libutils'
        >>> extract_module_name_from_path("out/soong/.intermediates/system/core/libutils/android_arm64_armv8-a_shared/libutils.so")
        'libutils'
    """
    module = _match_structural_patterns(path)
    if module:
        return module

    module = _fallback_segment(path)
    if not module:
        logger.debug("No module name found in %s", path)
    return module
