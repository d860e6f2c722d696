#!/usr/bin/env python3
#****************************************************************************************************************************************************
#* BSD 3-Clause License
#*
#* Copyright (c) 2025, Mana Battery
#* All rights reserved.
#*
#* Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
#*
#* 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
#* 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
#*    documentation and/or other materials provided with the distribution.
#* 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
#*    software without specific prior written permission.
#*
#* THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
#* THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
#* CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
#* PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
#* LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
#* EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
#****************************************************************************************************************************************************
"""Pytest configuration and shared fixtures for soong-compdb tests.

Fixtures provide a fake Android source tree with a build graph file, an
EnvironmentSnapshot pointing at it, and a FakeNinja that stands in for the
graph executor and the proxy by replacing subprocess.run.
"""

import os
import sys
import json
import shutil
import tempfile
import subprocess
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional
import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from soong_compdb import tool_detection
from soong_compdb.invocation import EnvironmentSnapshot


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for tests.

    Scope: function (default)
    Use for: File I/O operations that need isolation
    """
    tmpdir = tempfile.mkdtemp(prefix="soong_compdb_test_")
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def source_root(temp_dir: str) -> str:
    """Create a fake Android source tree with out/soong/build.ninja.

    Scope: function
    Dependencies: temp_dir
    """
    root = Path(temp_dir) / "aosp"
    soong_dir = root / "out" / "soong"
    soong_dir.mkdir(parents=True)
    (root / "system" / "core" / "libutils").mkdir(parents=True)
    (soong_dir / "build.ninja").write_text("rule cc\n  command = clang $in -o $out\n")
    return str(root)


@pytest.fixture
def env_snapshot(source_root: str) -> EnvironmentSnapshot:
    """Environment snapshot rooted at the fake source tree, run from its root."""
    return EnvironmentSnapshot(source_root=source_root, cwd=source_root)


@pytest.fixture(autouse=True)
def clear_tool_cache() -> Generator[None, None, None]:
    """Tool detection caches per process; isolate tests from each other."""
    tool_detection.clear_cache()
    yield
    tool_detection.clear_cache()


def compdb_record(source: str, output: str, compiler: str = "clang++", directory: Optional[str] = None) -> Dict[str, Any]:
    """Build a raw compdb record as emitted by the graph executor."""
    record: Dict[str, Any] = {
        "command": f"{compiler} -Isystem/core/include -DANDROID -O2 -c {source} -o {output}",
        "file": source,
        "output": output,
    }
    if directory is not None:
        record["directory"] = directory
    return record


class MockResult:
    """Minimal stand-in for subprocess.CompletedProcess."""

    def __init__(self, stdout: str = "", stderr: str = "", returncode: int = 0) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode


class FakeNinja:
    """Replacement for subprocess.run answering graph executor and proxy calls.

    Attributes:
        targets: Lines returned by `-t targets`
        compdb: Records returned by `-t compdb`
        target_compdb: Per-target records (str values are returned verbatim as raw output)
        failing_targets: Targets whose compdb-targets call exits non-zero
        proxy_returncode: Exit status of the proxy
        calls: Every command received
    """

    def __init__(self) -> None:
        self.targets: List[str] = []
        self.compdb: Any = []
        self.target_compdb: Dict[str, Any] = {}
        self.failing_targets: List[str] = []
        self.proxy_returncode = 0
        self.calls: List[List[str]] = []
        self.call_kwargs: List[Dict[str, Any]] = []

    def __call__(self, cmd: List[str], **kwargs: Any) -> MockResult:
        self.calls.append(list(cmd))
        self.call_kwargs.append(kwargs)

        if "--version" in cmd:
            return MockResult(stdout="1.12.0")

        if "-t" not in cmd:
            return MockResult(returncode=self.proxy_returncode)

        tool_args = cmd[cmd.index("-t") + 1 :]
        if tool_args[0] == "targets":
            return MockResult(stdout="".join(f"{target}: phony\n" for target in self.targets))
        if tool_args[0] == "compdb":
            return MockResult(stdout=self._dump(self.compdb))
        if tool_args[0] == "compdb-targets":
            target = tool_args[1]
            if target in self.failing_targets:
                return MockResult(stderr=f"unknown target '{target}'", returncode=1)
            return MockResult(stdout=self._dump(self.target_compdb.get(target, [])))
        return MockResult(returncode=1)

    @staticmethod
    def _dump(value: Any) -> str:
        return value if isinstance(value, str) else json.dumps(value)

    def compdb_target_calls(self) -> List[str]:
        return [cmd[-1] for cmd in self.calls if "compdb-targets" in cmd]

    def proxy_calls(self) -> List[List[str]]:
        return [cmd for cmd in self.calls if "-t" not in cmd and "--version" not in cmd]


@pytest.fixture
def fake_ninja(monkeypatch: Any) -> FakeNinja:
    """Install a FakeNinja as subprocess.run and put distninja/proxy on PATH."""
    fake = FakeNinja()
    monkeypatch.setattr(subprocess, "run", fake)
    monkeypatch.setattr(shutil, "which", lambda name: f"/usr/bin/{os.path.basename(name)}")
    return fake
