from __future__ import annotations

import helpdoc  # type: ignore


def test_git_usage_tokens():
    document = helpdoc.parse(
        "usage: git [-v | --version] [-h | --help] [-C <path>] [-c <name>=<value>]\n"
        "           [--exec-path[=<path>]] [--html-path] [--man-path] [--info-path]\n"
        "           <command> [<args>]\n"
    )

    tokens = helpdoc.extract_usage_tokens(document.usage_lines, binary="git")

    assert tokens.required_args == ("<command>",)
    assert tokens.optional_args == ("<args>",)
    assert tokens.flags == (
        "--version",
        "--help",
        "-C <path>",
        "-c <name>=<value>",
        "--exec-path[=<path>]",
        "--html-path",
        "--man-path",
        "--info-path",
    )


def test_flag_values_are_coalesced():
    tokens = helpdoc.extract_usage_tokens(["tool -o FILE <input>"], binary="tool")

    assert tokens.flags == ("-o FILE",)
    assert tokens.required_args == ("<input>",)
    assert tokens.optional_args == ()


def test_binary_path_basename_is_dropped():
    tokens = helpdoc.extract_usage_tokens(["git <command>"], binary="/usr/bin/git")
    assert tokens.required_args == ("<command>",)


def test_tokens_are_unique_across_lines():
    tokens = helpdoc.extract_usage_tokens(
        ["tool [options] <file>", "tool [options] <file> <dest>"], binary="tool"
    )

    assert tokens.required_args == ("<file>", "<dest>")
    assert tokens.optional_args == ("options",)


def test_blank_lines_yield_nothing():
    tokens = helpdoc.extract_usage_tokens(["", "   "], binary="tool")
    assert tokens == helpdoc.UsageTokens(required_args=(), optional_args=(), flags=())


def test_to_dict():
    tokens = helpdoc.extract_usage_tokens(["tool [-q] <x>"], binary="tool")
    assert tokens.to_dict() == {
        "required_args": ["<x>"],
        "optional_args": [],
        "flags": ["-q"],
    }
