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
"""Command-line tokenizing and compiler identification for compdb records.

Two small pieces used by the compdb entry normalizer:

- split_command_line() splits a recorded compiler command into argument tokens,
  honoring single and double quotes.
- determine_compiler_type() maps the command's leading token to a canonical
  compiler identity using an ordered rule table (first match wins).
"""

import logging
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

QUOTE_CHARS = ('"', "'")

# Leading "PWD=/proc/self/cwd" style assignment emitted by Soong
ENV_ASSIGNMENT_PREFIX = "PWD="

DEX_TOOL = "android-dex"

# Ordered (predicate, compiler identity) rules; the first matching predicate wins.
# "clang++" must be tested before "clang", "g++" before "gcc".
COMPILER_RULES: Tuple[Tuple[Callable[[str], bool], str], ...] = (
    (lambda token: "clang++" in token, "clang++"),
    (lambda token: "clang" in token and "++" not in token, "clang"),
    (lambda token: "g++" in token, "g++"),
    (lambda token: "gcc" in token and "++" not in token, "gcc"),
    (lambda token: "javac" in token, "javac"),
    (lambda token: "kotlinc" in token, "kotlinc"),
    (lambda token: "r8" in token or "d8" in token, DEX_TOOL),
)


def split_command_line(command: str) -> List[str]:
    """Split a command string into arguments, handling quotes.

    Quote characters delimit spans and are not part of the token, except that
    inside a span opened by one quote character the other one is literal.
    Whitespace outside a quoted span separates tokens.

    Args:
        command: Raw shell command string

    Returns:
        List of argument tokens (never contains empty strings)

    Examples:
        >>> split_command_line('clang -DNAME="a b" -c x.c')
        ['clang', '-DNAME=a b', '-c', 'x.c']
        >>> split_command_line("echo \\"it's\\"")
        ['echo', "it's"]
    """
    args: List[str] = []
    current: List[str] = []
    quote_char: Optional[str] = None

    for char in command:
        if char in QUOTE_CHARS:
            if quote_char is None:
                quote_char = char
            elif char == quote_char:
                quote_char = None
            else:
                current.append(char)
        elif char.isspace() and quote_char is None:
            if current:
                args.append("".join(current))
                current = []
        else:
            current.append(char)

    if current:
        args.append("".join(current))

    return args


def leading_command_token(command: str) -> str:
    """Return the executable token of a command, skipping a leading PWD= assignment."""
    parts = command.split()
    if parts and parts[0].startswith(ENV_ASSIGNMENT_PREFIX):
        parts = parts[1:]
    return parts[0] if parts else ""


def classify_compiler(token: str) -> str:
    """Map an executable token to its canonical compiler identity.

    Args:
        token: Leading command token (e.g. "prebuilts/clang/host/linux-x86/clang-r498229b/bin/clang++")

    Returns:
        Canonical identity from COMPILER_RULES, or the token itself when no rule matches
    """
    for predicate, compiler_type in COMPILER_RULES:
        if predicate(token):
            return compiler_type
    return token


def determine_compiler_type(command: str) -> str:
    """Determine the compiler type of a recorded command.

    Returns:
        Canonical compiler identity, or "" for an empty command
    """
    token = leading_command_token(command)
    if not token:
        return ""

    logger.debug("Compiler token: %s", token)
    return classify_compiler(token)
