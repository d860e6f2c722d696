#!/usr/bin/env python3
"""Tests for soong_compdb/command_line.py"""

import pytest

from soong_compdb.command_line import (
    COMPILER_RULES,
    DEX_TOOL,
    classify_compiler,
    determine_compiler_type,
    leading_command_token,
    split_command_line,
)


@pytest.mark.unit
class TestSplitCommandLine:
    """Tests for quote-aware tokenizing."""

    def test_plain_whitespace(self) -> None:
        """Test tokens are split on runs of whitespace."""
        assert split_command_line("clang  -c   foo.c\t-o foo.o") == ["clang", "-c", "foo.c", "-o", "foo.o"]

    def test_double_quoted_span_keeps_spaces(self) -> None:
        """Test a double-quoted span is one token without the quotes."""
        assert split_command_line('clang -DNAME="a b" -c x.c') == ["clang", "-DNAME=a b", "-c", "x.c"]

    def test_single_quoted_span_keeps_spaces(self) -> None:
        """Test a single-quoted span is one token without the quotes."""
        assert split_command_line("echo 'hello world'") == ["echo", "hello world"]

    def test_other_quote_is_literal_inside_span(self) -> None:
        """Test the other quote character is content inside a quoted span."""
        assert split_command_line("echo \"it's\"") == ["echo", "it's"]
        assert split_command_line("echo '\"x\"'") == ["echo", '"x"']

    def test_empty_quotes_produce_no_token(self) -> None:
        """Test an empty quoted string yields no empty token."""
        assert split_command_line('a "" b') == ["a", "b"]

    def test_unterminated_quote_runs_to_end(self) -> None:
        """Test an unterminated quote swallows the rest of the line."""
        assert split_command_line('clang "-DX=1 -c') == ["clang", "-DX=1 -c"]

    def test_empty_string(self) -> None:
        """Test the empty command has no tokens."""
        assert split_command_line("") == []
        assert split_command_line("   ") == []


@pytest.mark.unit
class TestLeadingCommandToken:
    """Tests for locating the executable token."""

    def test_skips_pwd_assignment(self) -> None:
        """Test a leading PWD= assignment is skipped."""
        assert leading_command_token("PWD=/proc/self/cwd prebuilts/clang/bin/clang++ -c a.cpp") == "prebuilts/clang/bin/clang++"

    def test_pwd_only(self) -> None:
        """Test a command with only an assignment has no executable."""
        assert leading_command_token("PWD=/proc/self/cwd") == ""

    def test_first_token(self) -> None:
        """Test the first token is returned without assignment."""
        assert leading_command_token("javac -d out Foo.java") == "javac"


@pytest.mark.unit
class TestClassifyCompiler:
    """Tests for the ordered compiler rule table."""

    @pytest.mark.parametrize(
        "token,expected",
        [
            ("prebuilts/clang/host/linux-x86/clang-r498229b/bin/clang++", "clang++"),
            ("prebuilts/clang/host/linux-x86/clang-r498229b/bin/clang", "clang"),
            ("/usr/bin/g++", "g++"),
            ("x86_64-linux-gnu-gcc", "gcc"),
            ("prebuilts/jdk/jdk17/linux-x86/bin/javac", "javac"),
            ("external/kotlinc/bin/kotlinc", "kotlinc"),
            ("out/host/linux-x86/bin/r8-compat-proguard", DEX_TOOL),
            ("out/host/linux-x86/bin/d8", DEX_TOOL),
            ("out/host/linux-x86/bin/aidl", "out/host/linux-x86/bin/aidl"),
        ],
    )
    def test_classification(self, token: str, expected: str) -> None:
        """Test each rule maps to its canonical identity."""
        assert classify_compiler(token) == expected

    def test_clang_plus_plus_precedence(self) -> None:
        """Test a token with both clang and ++ is never bare clang."""
        assert classify_compiler("clang++-17") == "clang++"
        assert classify_compiler("clang-17++") != "clang"

    def test_gcc_plus_plus_precedence(self) -> None:
        """Test a token with gcc and ++ is never bare gcc."""
        assert classify_compiler("gcc++") != "gcc"
        assert classify_compiler("arm-none-eabi-g++") == "g++"

    def test_clang_rule_precedes_gcc(self) -> None:
        """Test rules are evaluated first-match-wins in table order."""
        assert classify_compiler("clang-gcc-wrapper") == "clang"

    def test_rule_table_order(self) -> None:
        """Test the rule table lists ++ variants before bare variants."""
        identities = [identity for _, identity in COMPILER_RULES]
        assert identities.index("clang++") < identities.index("clang")
        assert identities.index("g++") < identities.index("gcc")


@pytest.mark.unit
class TestDetermineCompilerType:
    """Tests for compiler identification from a whole command."""

    def test_with_pwd_prefix(self) -> None:
        """Test the PWD= assignment is skipped before classifying."""
        assert determine_compiler_type("PWD=/proc/self/cwd prebuilts/clang/bin/clang -c a.c -o a.o") == "clang"

    def test_empty_command(self) -> None:
        """Test an empty command has no compiler type."""
        assert determine_compiler_type("") == ""

    def test_unknown_tool_returns_token(self) -> None:
        """Test unknown tools are returned verbatim."""
        assert determine_compiler_type("out/host/bin/hidl-gen -o out x.hal") == "out/host/bin/hidl-gen"
