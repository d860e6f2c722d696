#!/usr/bin/env python3
"""Tests for soong_compdb/tool_detection.py"""

import json
import subprocess
import sys
from typing import Any, List
from unittest.mock import MagicMock, Mock

import pytest

from soong_compdb.tool_detection import (
    ToolInfo,
    _tool_cache,
    check_all_tools,
    clear_cache,
    find_ninja,
    find_proxy,
    find_tool,
    main,
)


@pytest.mark.unit
class TestToolInfo:
    """Tests for ToolInfo dataclass."""

    def test_is_found_with_command(self) -> None:
        """Test is_found returns True when command is set."""
        tool_info = ToolInfo(command="distninja", full_command="/usr/bin/distninja", version="1.12.0")
        assert tool_info.is_found() is True

    def test_is_found_without_command(self) -> None:
        """Test is_found returns False when command is None."""
        tool_info = ToolInfo(command=None, full_command=None, version=None, error_message="distninja not in PATH")
        assert tool_info.is_found() is False
        assert tool_info.error_message == "distninja not in PATH"


@pytest.mark.unit
class TestFindTool:
    """Tests for PATH lookup."""

    def test_found_with_version(self, monkeypatch: Any) -> None:
        """Test a tool on PATH with --version output."""
        mock_result = MagicMock()
        mock_result.stdout = "1.12.0\nextra line"
        monkeypatch.setattr("subprocess.run", Mock(return_value=mock_result))
        monkeypatch.setattr("shutil.which", lambda x: f"/opt/bin/{x}")

        tool_info = find_ninja()
        assert tool_info.command == "distninja"
        assert tool_info.full_command == "/opt/bin/distninja"
        assert tool_info.version == "1.12.0"

    def test_found_without_version(self, monkeypatch: Any) -> None:
        """Test a tool that rejects --version still counts as found."""
        monkeypatch.setattr("subprocess.run", Mock(side_effect=subprocess.CalledProcessError(1, "proxy")))
        monkeypatch.setattr("shutil.which", lambda x: f"/opt/bin/{x}")

        tool_info = find_proxy()
        assert tool_info.is_found()
        assert tool_info.version is None

    def test_not_found(self, monkeypatch: Any) -> None:
        """Test a tool missing from PATH."""
        mock_run = Mock()
        monkeypatch.setattr("subprocess.run", mock_run)
        monkeypatch.setattr("shutil.which", lambda x: None)

        tool_info = find_tool("distninja")
        assert not tool_info.is_found()
        assert tool_info.error_message == "distninja not in PATH"
        assert mock_run.call_count == 0

    def test_find_uses_cache(self, monkeypatch: Any) -> None:
        """Test that a second lookup does not run the tool again."""
        mock_result = MagicMock()
        mock_result.stdout = "1.12.0"
        mock_run = Mock(return_value=mock_result)
        monkeypatch.setattr("subprocess.run", mock_run)
        monkeypatch.setattr("shutil.which", lambda x: f"/usr/bin/{x}")

        find_ninja()
        find_ninja()
        assert mock_run.call_count == 1

    def test_clear_cache(self) -> None:
        """Test clear_cache empties the cache."""
        _tool_cache["test_key"] = ToolInfo(command="test", full_command="test", version="1.0")
        clear_cache()
        assert len(_tool_cache) == 0


@pytest.mark.unit
class TestCheckAllTools:
    """Tests for the combined tool report."""

    def test_missing_tools_omitted(self, monkeypatch: Any) -> None:
        """Test only found tools are listed."""
        mock_result = MagicMock()
        mock_result.stdout = "1.12.0"
        monkeypatch.setattr("subprocess.run", Mock(return_value=mock_result))
        monkeypatch.setattr("shutil.which", lambda x: "/usr/bin/distninja" if x == "distninja" else None)

        assert check_all_tools() == {"distninja": {"command": "/usr/bin/distninja", "version": "1.12.0"}}


@pytest.mark.unit
class TestMain:
    """Tests for the CLI."""

    def _run(self, monkeypatch: Any, argv: List[str]) -> int:
        monkeypatch.setattr(sys, "argv", ["tool_detection.py"] + argv)
        return main()

    def test_find_ninja_found(self, monkeypatch: Any, capsys: pytest.CaptureFixture[str]) -> None:
        """Test --find-ninja prints the path and exits 0."""
        monkeypatch.setattr("subprocess.run", Mock(side_effect=OSError("no exec")))
        monkeypatch.setattr("shutil.which", lambda x: f"/usr/bin/{x}")

        assert self._run(monkeypatch, ["--find-ninja", "--ninja-tool", "ninja"]) == 0
        assert capsys.readouterr().out.strip() == "/usr/bin/ninja"

    def test_find_proxy_missing(self, monkeypatch: Any) -> None:
        """Test --find-proxy exits 1 when missing."""
        monkeypatch.setattr("shutil.which", lambda x: None)
        assert self._run(monkeypatch, ["--find-proxy"]) == 1

    def test_check_all_json(self, monkeypatch: Any, capsys: pytest.CaptureFixture[str]) -> None:
        """Test --check-all outputs JSON."""
        monkeypatch.setattr("shutil.which", lambda x: None)
        assert self._run(monkeypatch, ["--check-all"]) == 0
        assert json.loads(capsys.readouterr().out) == {"tools": {}}
