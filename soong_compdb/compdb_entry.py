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
"""Normalization of raw graph-executor compdb records into CompilerCommandInfo.

A compdb record from `ninja -t compdb` / `-t compdb-targets` is a loosely typed
JSON object. RawCompdbEntry reads the known fields once, keeping "absent" apart
from "present with the wrong type", and parse_compdb_entry() turns it into the
structured CompilerCommandInfo written to compile_commands.json.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from soong_compdb.command_line import determine_compiler_type, split_command_line
from soong_compdb.module_name import extract_module_name_from_path

logger = logging.getLogger(__name__)

INCLUDE_FLAG = "-I"
DEFINE_FLAG = "-D"
OUTPUT_FLAG = "-o"


@dataclass
class CompilerCommandInfo:
    """One normalized compiler invocation.

    Attributes:
        command: Original complete command
        compiler_type: Canonical compiler identity (clang, clang++, gcc, g++, javac, ...)
        input_files: Input files in record order
        output_file: Output artifact path ("" when unknown)
        flags: Flags other than includes, defines and -o, in encounter order
        includes: Include paths from -I
        defines: Macro definitions from -D (NAME or NAME=VALUE)
        working_dir: Directory the command runs in
        module: Module name inferred from the output path ("" when unknown)
    """

    command: str = ""
    compiler_type: str = ""
    input_files: List[str] = field(default_factory=list)
    output_file: str = ""
    flags: List[str] = field(default_factory=list)
    includes: List[str] = field(default_factory=list)
    defines: List[str] = field(default_factory=list)
    working_dir: str = ""
    module: str = ""

    def is_valid(self) -> bool:
        """Check whether the record belongs in the final database."""
        return bool(self.compiler_type) and bool(self.input_files)

    def dedup_key(self) -> tuple:
        """Identity used to collapse duplicate records."""
        return (self.command, self.output_file, ",".join(self.input_files))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the compile_commands.json field names."""
        return {
            "command": self.command,
            "compilerType": self.compiler_type,
            "inputFiles": list(self.input_files),
            "outputFile": self.output_file,
            "flags": list(self.flags),
            "includes": list(self.includes),
            "defines": list(self.defines),
            "workingDir": self.working_dir,
            "module": self.module,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompilerCommandInfo":
        """Inverse of to_dict(); missing fields fall back to their empty defaults."""
        return cls(
            command=data.get("command", ""),
            compiler_type=data.get("compilerType", ""),
            input_files=list(data.get("inputFiles") or []),
            output_file=data.get("outputFile", ""),
            flags=list(data.get("flags") or []),
            includes=list(data.get("includes") or []),
            defines=list(data.get("defines") or []),
            working_dir=data.get("workingDir", ""),
            module=data.get("module", ""),
        )


@dataclass(frozen=True)
class RawCompdbEntry:
    """Typed view of a raw compdb record.

    Every known field is None when absent. A field that is present but has an
    unexpected type is also None and its key is listed in type_errors.
    """

    command: Optional[str] = None
    directory: Optional[str] = None
    file: Optional[str] = None
    input_files: Optional[List[str]] = None
    sources: Optional[List[str]] = None
    output: Optional[str] = None
    target: Optional[str] = None
    type_errors: tuple = ()

    @classmethod
    def from_json(cls, entry: Dict[str, Any]) -> "RawCompdbEntry":
        """Read the known fields of a decoded JSON object."""
        type_errors: List[str] = []

        def string_field(key: str) -> Optional[str]:
            if key not in entry:
                return None
            value = entry[key]
            if isinstance(value, str):
                return value
            type_errors.append(key)
            return None

        def string_list_field(key: str) -> Optional[List[str]]:
            if key not in entry:
                return None
            value = entry[key]
            if isinstance(value, list):
                # Non-string items are dropped, the list itself still counts
                return [item for item in value if isinstance(item, str)]
            type_errors.append(key)
            return None

        raw = cls(
            command=string_field("command"),
            directory=string_field("directory"),
            file=string_field("file"),
            input_files=string_list_field("input_files"),
            sources=string_list_field("sources"),
            output=string_field("output"),
            target=string_field("target"),
            type_errors=tuple(type_errors),
        )
        if raw.type_errors:
            logger.debug("Ignoring compdb fields with unexpected types: %s", ", ".join(raw.type_errors))
        return raw

    def resolve_input_files(self) -> List[str]:
        """Input files by priority: file, then input_files, then sources."""
        if self.file is not None:
            return [self.file]
        if self.input_files is not None:
            return list(self.input_files)
        if self.sources is not None:
            return list(self.sources)
        return []

    def resolve_output_file(self) -> str:
        """Output path from output, else target."""
        if self.output is not None:
            return self.output
        if self.target is not None:
            return self.target
        return ""


def parse_additional_command_info(info: CompilerCommandInfo) -> None:
    """Fill includes, defines and flags of info from its command string.

    Every token starting with "-" except "-o" ends up in exactly one of the
    three lists. A bare -I or -D consumes the following token as its value.
    """
    args = split_command_line(info.command)

    i = 0
    while i < len(args):
        arg = args[i]

        if arg.startswith(INCLUDE_FLAG):
            if len(arg) > len(INCLUDE_FLAG):
                info.includes.append(arg[len(INCLUDE_FLAG) :])
            elif i + 1 < len(args):
                info.includes.append(args[i + 1])
                i += 1
        elif arg.startswith(DEFINE_FLAG):
            if len(arg) > len(DEFINE_FLAG):
                info.defines.append(arg[len(DEFINE_FLAG) :])
            elif i + 1 < len(args):
                info.defines.append(args[i + 1])
                i += 1
        elif arg.startswith("-") and arg != OUTPUT_FLAG:
            info.flags.append(arg)

        i += 1


def parse_compdb_entry(entry: Dict[str, Any], default_working_dir: str) -> CompilerCommandInfo:
    """Parse one raw compilation database record.

    Args:
        entry: Decoded JSON object from the graph executor
        default_working_dir: Working directory when the record has no usable "directory"

    Returns:
        CompilerCommandInfo; callers keep it only when is_valid() holds
    """
    raw = RawCompdbEntry.from_json(entry)

    info = CompilerCommandInfo(working_dir=default_working_dir)
    if raw.command is not None:
        info.command = raw.command
    if raw.directory:
        info.working_dir = raw.directory

    info.input_files = raw.resolve_input_files()
    info.output_file = raw.resolve_output_file()
    info.compiler_type = determine_compiler_type(info.command)

    if info.command:
        parse_additional_command_info(info)

    if info.output_file:
        info.module = extract_module_name_from_path(info.output_file)

    return info
