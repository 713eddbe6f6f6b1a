#!/usr/bin/env -S uv run --script
# /// script
# requires-python = ">=3.10"
# dependencies = []
# ///
"""Helpdoc - structured documents from CLI help output.

Turns the free-form text a tool prints for `--help` into a `ParsedDocument`:
usage lines, commands, options, examples, environment variables and
extraction warnings. There is no schema for help output, so parsing is a
cascade of line-shape heuristics that degrades into warnings instead of
raising.

Parsing model:
- The Section Splitter cuts the text into labeled regions by header lines.
- Extractors read the regions tagged `usage`, `commands`, `options`,
  `examples` and `env`.
- `parse()` composes them and appends a warning for each missing kind of
  structure (commands, options).

Usage:
    helpdoc parse gh-help.txt                     # JSON document
    helpdoc parse --format text gh-help.txt       # Terminal rendering
    helpdoc parse help.txt h.txt                  # Fall back to h.txt if help.txt is empty
    some-tool --help | helpdoc parse -            # Read from stdin
    helpdoc sections gh-help.txt                  # Show detected regions
    helpdoc usage git-help.txt --binary git       # Required/optional usage args
"""

from __future__ import annotations

import argparse
import json
import os
import re
import sys
import textwrap
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Final, Iterable, Sequence, TypedDict

# Constants
SCHEMA_VERSION: Final[int] = 1

WARN_NO_COMMANDS: Final[str] = "No commands detected."
WARN_NO_OPTIONS: Final[str] = "No options detected."

TAG_USAGE: Final[str] = "usage"
TAG_COMMANDS: Final[str] = "commands"
TAG_OPTIONS: Final[str] = "options"
TAG_EXAMPLES: Final[str] = "examples"
TAG_ENV: Final[str] = "env"

# Ordered by precedence: a header such as "COMMAND OPTIONS" takes the first
# tag whose keywords it contains.
HEADER_KEYWORDS: Final[tuple[tuple[str, frozenset[str]], ...]] = (
    (
        TAG_COMMANDS,
        frozenset({"COMMAND", "COMMANDS", "SUBCOMMAND", "SUBCOMMANDS", "SERVICE", "SERVICES"}),
    ),
    (TAG_OPTIONS, frozenset({"OPTION", "OPTIONS", "FLAG", "FLAGS"})),
    (TAG_EXAMPLES, frozenset({"EXAMPLE", "EXAMPLES"})),
    (TAG_ENV, frozenset({"ENV", "ENVIRONMENT"})),
    (TAG_USAGE, frozenset({"USAGE"})),
)

MAX_HEADER_INDENT: Final[int] = 2
MAX_HEADER_WORDS: Final[int] = 4
# Colon-terminated headers may be a short sentence introducing a list, e.g.
# git's "These are common Git commands used in various situations:".
MAX_COLON_HEADER_WORDS: Final[int] = 10

_ANSI_RE: Final = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
_OVERSTRIKE_RE: Final = re.compile(r".\x08")
_COLUMN_GAP_RE: Final = re.compile(r"\s{2,}|\t")
_HEADER_TEXT_RE: Final = re.compile(r"[A-Za-z][\w /&-]*")
_HEADER_WORD_RE: Final = re.compile(r"[A-Za-z]+")
_INLINE_USAGE_RE: Final = re.compile(r"^\s*usage:\s*(.*)$", re.IGNORECASE)

_COMMAND_NAME_RE: Final = re.compile(r"[A-Za-z0-9][\w.+:/@-]*")
_LOWER_NAME_RE: Final = re.compile(r"[a-z][\w.:-]*")
_SIGNATURE_MARKER_RE: Final = re.compile(r"[(\[<]")
_BULLET_COMMAND_RE: Final = re.compile(r"^o\s+([a-z][a-z0-9-]*)$")
_LEADING_PLACEHOLDER_RE: Final = re.compile(r"^(?:\[[^\]]*\]|<[^>]*>)\s{2,}")

_FLAG_START_RE: Final = re.compile(r"^-{1,2}[A-Za-z0-9?#]")
_FLAG_TOKEN: Final[str] = (
    r"-{1,2}[A-Za-z0-9?#][\w.?#-]*"
    r"(?:[= ]?(?:<[^>]+>|\[[^\]]+\]|\{[^}]+\}|[A-Z][A-Z0-9_-]*(?![a-z])))?"
)
_FLAG_RUN_RE: Final = re.compile(rf"{_FLAG_TOKEN}(?:\s*[,|/]\s*{_FLAG_TOKEN})*")

# ANSI colors for terminal output
DIM: Final[str] = "\033[2m"
RESET: Final[str] = "\033[0m"
CYAN: Final[str] = "\033[36m"
YELLOW: Final[str] = "\033[33m"


class CommandData(TypedDict, total=False):
    name: str
    summary: str
    has_subcommands: bool


class OptionData(TypedDict):
    flags: str
    description: str


class EnvVarData(TypedDict):
    name: str
    description: str


class ParsedDocumentData(TypedDict):
    schema_version: int
    usage_lines: list[str]
    commands: list[CommandData]
    options: list[OptionData]
    examples: list[str]
    env: list[EnvVarData]
    warnings: list[str]


def _described_entry_schema(*, key: str) -> dict:
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            key: {"type": "string", "minLength": 1},
            "description": {"type": "string"},
        },
        "required": [key, "description"],
    }


def parsed_document_json_schema() -> dict:
    """JSON Schema for `ParsedDocument.to_dict()` payloads."""
    string_list = {"type": "array", "items": {"type": "string"}}
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "schema_version": {"type": "integer"},
            "usage_lines": string_list,
            "commands": {
                "type": "array",
                "items": {
                    "type": "object",
                    "additionalProperties": False,
                    "properties": {
                        "name": {"type": "string", "minLength": 1},
                        "summary": {"type": "string"},
                        "has_subcommands": {"const": True},
                    },
                    "required": ["name", "summary"],
                },
            },
            "options": {
                "type": "array",
                "items": _described_entry_schema(key="flags"),
            },
            "examples": string_list,
            "env": {
                "type": "array",
                "items": _described_entry_schema(key="name"),
            },
            "warnings": string_list,
        },
        "required": [
            "schema_version",
            "usage_lines",
            "commands",
            "options",
            "examples",
            "env",
            "warnings",
        ],
    }


@dataclass(frozen=True, slots=True)
class Command:
    """A subcommand listed in help output."""

    name: str  # e.g., "auth", never "auth:" or "drive (drv)"
    summary: str
    has_subcommands: bool = False  # signature carried a <command> placeholder

    def to_dict(self) -> CommandData:
        data: CommandData = {"name": self.name, "summary": self.summary}
        if self.has_subcommands:
            data["has_subcommands"] = True
        return data


@dataclass(frozen=True, slots=True)
class Option:
    """A flag spec exactly as written, e.g. `-o, --output <file>`."""

    flags: str
    description: str

    def to_dict(self) -> OptionData:
        return {"flags": self.flags, "description": self.description}


@dataclass(frozen=True, slots=True)
class EnvVar:
    name: str
    description: str

    def to_dict(self) -> EnvVarData:
        return {"name": self.name, "description": self.description}


@dataclass(frozen=True, slots=True)
class Header:
    label: str  # literal header text without the trailing colon
    tag: str | None  # None for a plain heading such as "DESCRIPTION"


@dataclass(frozen=True, slots=True)
class Section:
    """A header plus the non-blank body lines beneath it (indentation kept)."""

    label: str
    tag: str | None
    lines: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SectionSplit:
    """Result of splitting help text into regions."""

    preamble: tuple[str, ...]
    sections: tuple[Section, ...]
    inline_usage: tuple[str, ...]

    def tagged(self, tag: str) -> tuple[Section, ...]:
        return tuple(section for section in self.sections if section.tag == tag)

    def to_dict(self) -> dict:
        return {
            "preamble": list(self.preamble),
            "inline_usage": list(self.inline_usage),
            "sections": [
                {"label": s.label, "tag": s.tag, "lines": list(s.lines)}
                for s in self.sections
            ],
        }


@dataclass(frozen=True, slots=True)
class ParsedDocument:
    """Structured form of one tool's help output."""

    usage_lines: tuple[str, ...] = ()
    commands: tuple[Command, ...] = ()
    options: tuple[Option, ...] = ()
    examples: tuple[str, ...] = ()
    env: tuple[EnvVar, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def entry_count(self) -> int:
        return len(self.commands) + len(self.options) + len(self.examples) + len(self.env)

    def to_dict(self) -> ParsedDocumentData:
        return {
            "schema_version": SCHEMA_VERSION,
            "usage_lines": list(self.usage_lines),
            "commands": [command.to_dict() for command in self.commands],
            "options": [option.to_dict() for option in self.options],
            "examples": list(self.examples),
            "env": [var.to_dict() for var in self.env],
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True, slots=True)
class UsageTokens:
    """Arguments and flags named by a tool's usage lines."""

    required_args: tuple[str, ...]
    optional_args: tuple[str, ...]
    flags: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "required_args": list(self.required_args),
            "optional_args": list(self.optional_args),
            "flags": list(self.flags),
        }


class HelpSourceError(RuntimeError):
    pass


def normalize_help_text(raw: object) -> str:
    """Coerce captured help output into plain LF-terminated text.

    Strips ANSI escapes and man-page overstrike (`N\\bN`, `_\\bX`). Tabs are
    kept because they delimit some command tables.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str):
        return ""
    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    text = _ANSI_RE.sub("", text)
    return _OVERSTRIKE_RE.sub("", text)


def _indent_width(line: str) -> int:
    return len(line) - len(line.lstrip())


def _header_tag(
    core: str, *, keywords: Sequence[tuple[str, frozenset[str]]]
) -> str | None:
    words = {word.upper() for word in _HEADER_WORD_RE.findall(core)}
    for tag, names in keywords:
        if words & names:
            return tag
    return None


def classify_header(
    line: str,
    *,
    keywords: Sequence[tuple[str, frozenset[str]]] = HEADER_KEYWORDS,
) -> Header | None:
    """Return the header a line introduces, or None for body text.

    Keyword headers ("CORE COMMANDS", "Global Options:", "usage:") get a tag.
    Unindented colon-terminated or ALL CAPS lines without a keyword are plain
    headings: they close the current region but are not extracted.
    """
    indent = _indent_width(line)
    text = line.strip()
    if not text or indent > MAX_HEADER_INDENT or text.startswith("-"):
        return None

    colon = text.endswith(":")
    core = text[:-1].rstrip() if colon else text
    if (
        not core
        or ":" in core
        or _COLUMN_GAP_RE.search(core)
        or not _HEADER_TEXT_RE.fullmatch(core)
    ):
        return None

    words = core.split()
    tag = _header_tag(core, keywords=keywords)
    if tag is not None:
        # Without a colon every word of a multi-word header must be
        # capitalized ("Global Options"), which keeps prose like "Options may
        # be combined" in the body. A lone keyword matches in any case.
        titled = len(words) == 1 or all(
            word[0].isupper() or not word[0].isalpha() for word in words
        )
        limit = MAX_COLON_HEADER_WORDS if colon else MAX_HEADER_WORDS
        if len(words) <= limit and (colon or titled):
            return Header(label=core, tag=tag)
        return None

    if indent == 0 and len(words) <= MAX_HEADER_WORDS and (colon or core.isupper()):
        return Header(label=core, tag=None)
    return None


def _collect_usage_continuation(
    lines: Sequence[str],
    start: int,
    *,
    indent: int,
    keywords: Sequence[tuple[str, frozenset[str]]],
) -> tuple[list[str], int]:
    """Collect lines indented deeper than an inline `usage:` marker.

    Returns the collected lines and the index of the first unconsumed line.
    """
    collected: list[str] = []
    index = start
    while index < len(lines):
        line = lines[index].rstrip()
        if not line.strip() or _indent_width(line) <= indent:
            break
        if classify_header(line, keywords=keywords) is not None:
            break
        collected.append(line.strip())
        index += 1
    return collected, index


def split_sections(
    text: str,
    *,
    keywords: Sequence[tuple[str, frozenset[str]]] = HEADER_KEYWORDS,
) -> SectionSplit:
    """Partition help text into the preamble and labeled regions.

    An inline `usage: tool ...` line (and its deeper-indented continuation)
    is routed to `inline_usage` instead of the preamble or region body.
    """
    lines = text.split("\n")
    preamble: list[str] = []
    sections: list[Section] = []
    inline_usage: list[str] = []
    current: Header | None = None
    body: list[str] = []

    index = 0
    while index < len(lines):
        line = lines[index].rstrip()
        index += 1
        if not line.strip():
            continue

        header = classify_header(line, keywords=keywords)
        if header is not None:
            if current is not None:
                sections.append(Section(current.label, current.tag, tuple(body)))
            current = header
            body = []
            continue

        marker = _INLINE_USAGE_RE.match(line)
        if marker:
            remainder = marker.group(1).strip()
            if remainder:
                inline_usage.append(remainder)
            continuation, index = _collect_usage_continuation(
                lines, index, indent=_indent_width(line), keywords=keywords
            )
            inline_usage.extend(continuation)
            continue

        if current is None:
            preamble.append(line)
        else:
            body.append(line)

    if current is not None:
        sections.append(Section(current.label, current.tag, tuple(body)))

    return SectionSplit(
        preamble=tuple(preamble),
        sections=tuple(sections),
        inline_usage=tuple(inline_usage),
    )


def extract_usage(split: SectionSplit) -> tuple[str, ...]:
    region_lines = tuple(
        line.strip()
        for section in split.tagged(TAG_USAGE)
        for line in section.lines
    )
    if region_lines:
        return region_lines
    return split.inline_usage


# Command line shapes. Each recogniser takes the region's lines and a cursor
# and returns the entry plus the index of the next unconsumed line.
CommandShape = Callable[[Sequence[str], int], "tuple[Command, int] | None"]


def _command_signature(signature: str) -> tuple[str, bool] | None:
    """Name and nested-command marker from a signature like `drive (drv) <command>`."""
    tokens = signature.split()
    if not tokens:
        return None
    name = tokens[0].rstrip(":,")
    if not _COMMAND_NAME_RE.fullmatch(name):
        return None
    has_subcommands = any(token.lower() == "<command>" for token in tokens[1:])
    return name, has_subcommands


def _strip_leading_placeholders(summary: str) -> str:
    # vercel: "deploy   [path]   Performs a deployment"
    while True:
        stripped = _LEADING_PLACEHOLDER_RE.sub("", summary, count=1)
        if stripped == summary:
            return summary
        summary = stripped


def _tab_command(lines: Sequence[str], index: int) -> tuple[Command, int] | None:
    trimmed = lines[index].strip()
    if trimmed.count("\t") != 1:
        return None
    name_part, _, summary = trimmed.partition("\t")
    summary = summary.strip()
    if not summary or len(name_part.split()) != 1:
        return None
    signature = _command_signature(name_part)
    if signature is None:
        return None
    name, has_subcommands = signature
    return Command(name=name, summary=summary, has_subcommands=has_subcommands), index + 1


def _column_command(lines: Sequence[str], index: int) -> tuple[Command, int] | None:
    trimmed = lines[index].strip()
    parts = _COLUMN_GAP_RE.split(trimmed, maxsplit=1)
    if len(parts) != 2:
        return None
    signature = _command_signature(parts[0])
    if signature is None:
        return None
    name, has_subcommands = signature
    summary = _strip_leading_placeholders(parts[1].strip())
    return Command(name=name, summary=summary, has_subcommands=has_subcommands), index + 1


def _bullet_command(lines: Sequence[str], index: int) -> tuple[Command, int] | None:
    # Man-page service lists: "o s3"
    match = _BULLET_COMMAND_RE.match(lines[index].strip())
    if not match:
        return None
    return Command(name=match.group(1), summary=""), index + 1


def _next_deeper_line(lines: Sequence[str], index: int) -> int | None:
    """Index of the next non-blank line if it is indented deeper than `index`."""
    nxt = index + 1
    while nxt < len(lines) and not lines[nxt].strip():
        nxt += 1
    if nxt >= len(lines) or _indent_width(lines[nxt]) <= _indent_width(lines[index]):
        return None
    return nxt


def _opens_signature_block(lines: Sequence[str], index: int) -> bool:
    # "drive (drv) <command> [flags]" with its summary indented below it.
    return (
        _SIGNATURE_MARKER_RE.search(lines[index]) is not None
        and _next_deeper_line(lines, index) is not None
    )


def _signature_command(lines: Sequence[str], index: int) -> tuple[Command, int] | None:
    trimmed = lines[index].strip()
    if _COLUMN_GAP_RE.search(trimmed):
        return None
    first = trimmed.split()[0]
    if not (_SIGNATURE_MARKER_RE.search(trimmed) or _LOWER_NAME_RE.fullmatch(first)):
        return None
    signature = _command_signature(trimmed)
    if signature is None:
        return None

    nxt = _next_deeper_line(lines, index)
    if nxt is None:
        return None
    summary = lines[nxt].strip()
    # A lowercase group label ("storage") sits above its own entries.
    if (
        summary.startswith("-")
        or _column_command(lines, nxt) is not None
        or _opens_signature_block(lines, nxt)
    ):
        return None

    name, has_subcommands = signature
    return Command(name=name, summary=summary, has_subcommands=has_subcommands), nxt + 1


COMMAND_SHAPES: Final[tuple[CommandShape, ...]] = (
    _tab_command,
    _column_command,
    _bullet_command,
    _signature_command,
)


def _scan_commands(
    lines: Sequence[str], *, shapes: Sequence[CommandShape]
) -> list[Command]:
    commands: list[Command] = []
    index = 0
    while index < len(lines):
        line = lines[index]
        trimmed = line.strip()
        # Entries are indented; column-0 lines are group titles or prose.
        if not trimmed or trimmed.startswith("-") or not _indent_width(line):
            index += 1
            continue
        for shape in shapes:
            matched = shape(lines, index)
            if matched is not None:
                command, index = matched
                commands.append(command)
                break
        else:
            # Category label ("Basic") or prose: not an entry.
            index += 1
    return commands


def extract_commands(
    split: SectionSplit, *, shapes: Sequence[CommandShape] = COMMAND_SHAPES
) -> tuple[Command, ...]:
    """Merge the entries of every commands region, first appearance wins."""
    commands: list[Command] = []
    seen: set[str] = set()
    for section in split.tagged(TAG_COMMANDS):
        for command in _scan_commands(section.lines, shapes=shapes):
            if command.name in seen:
                continue
            seen.add(command.name)
            commands.append(command)
    return tuple(commands)


def _split_flag_line(trimmed: str) -> tuple[str, str]:
    parts = _COLUMN_GAP_RE.split(trimmed, maxsplit=1)
    if len(parts) == 2:
        return parts[0].strip(), parts[1].strip()

    match = _FLAG_RUN_RE.match(trimmed)
    if match:
        rest = trimmed[match.end():]
        if not rest:
            return trimmed, ""
        if rest[0].isspace():
            return match.group(0).strip(), rest.strip()
    return trimmed, ""


def _option_entry(lines: Sequence[str], index: int) -> tuple[Option, int] | None:
    line = lines[index]
    trimmed = line.strip()
    if not _FLAG_START_RE.match(trimmed):
        return None
    flags, description = _split_flag_line(trimmed)
    parts = [description] if description else []

    indent = _indent_width(line)
    nxt = index + 1
    while nxt < len(lines):
        follow = lines[nxt]
        text = follow.strip()
        if not text or text.startswith("-") or _indent_width(follow) <= indent:
            break
        parts.append(text)
        nxt += 1
    return Option(flags=flags, description=" ".join(parts)), nxt


def _scan_options(lines: Sequence[str]) -> list[Option]:
    options: list[Option] = []
    index = 0
    while index < len(lines):
        matched = _option_entry(lines, index)
        if matched is None:
            index += 1
            continue
        option, index = matched
        options.append(option)
    return options


def extract_options(split: SectionSplit, text: str) -> tuple[Option, ...]:
    """Options from every options region, or from the whole text if there is none."""
    regions = split.tagged(TAG_OPTIONS)
    if regions:
        lines: Sequence[str] = [line for section in regions for line in section.lines]
    else:
        lines = text.split("\n")

    options: list[Option] = []
    seen: set[str] = set()
    for option in _scan_options(lines):
        if option.flags in seen:
            continue
        seen.add(option.flags)
        options.append(option)
    return tuple(options)


def extract_examples(split: SectionSplit) -> tuple[str, ...]:
    examples: list[str] = []
    for section in split.tagged(TAG_EXAMPLES):
        block = textwrap.dedent("\n".join(section.lines))
        examples.extend(line.rstrip() for line in block.split("\n") if line.strip())
    return tuple(examples)


def extract_env(split: SectionSplit) -> tuple[EnvVar, ...]:
    env: list[EnvVar] = []
    for section in split.tagged(TAG_ENV):
        for line in section.lines:
            parts = _COLUMN_GAP_RE.split(line.strip(), maxsplit=1)
            if len(parts) != 2:
                continue
            env.append(EnvVar(name=parts[0].strip(), description=parts[1].strip()))
    return tuple(env)


def synthesize_warnings(
    *, commands: Sequence[Command], options: Sequence[Option]
) -> tuple[str, ...]:
    warnings: list[str] = []
    if not commands:
        warnings.append(WARN_NO_COMMANDS)
    if not options:
        warnings.append(WARN_NO_OPTIONS)
    return tuple(warnings)


def parse(raw_help: str) -> ParsedDocument:
    """Parse one tool's help output into a `ParsedDocument`.

    Total and deterministic: empty or unrecognisable input yields an empty
    document carrying both warnings.
    """
    text = normalize_help_text(raw_help)
    split = split_sections(text)
    commands = extract_commands(split)
    options = extract_options(split, text)
    return ParsedDocument(
        usage_lines=extract_usage(split),
        commands=commands,
        options=options,
        examples=extract_examples(split),
        env=extract_env(split),
        warnings=synthesize_warnings(commands=commands, options=options),
    )


def needs_fallback(document: ParsedDocument) -> bool:
    """True when neither commands nor options were found.

    Callers are expected to retry with another help invocation (`-h`,
    `help`) and keep the result chosen by `prefer_document`.
    """
    return WARN_NO_COMMANDS in document.warnings and WARN_NO_OPTIONS in document.warnings


def prefer_document(primary: ParsedDocument, fallback: ParsedDocument) -> ParsedDocument:
    """Fewer warnings wins, then more entries; ties keep the primary."""
    primary_key = (len(primary.warnings), -primary.entry_count)
    fallback_key = (len(fallback.warnings), -fallback.entry_count)
    return fallback if fallback_key < primary_key else primary


def _is_flag(token: str) -> bool:
    return token.startswith("-")


def _unique(tokens: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(tokens))


def _split_optional_segments(text: str) -> list[tuple[str, bool]]:
    """Split a usage line into (text, optional) runs at top-level brackets.

    Only brackets on a token boundary count, so `--exec-path[=<path>]` stays
    one token.
    """
    segments: list[tuple[str, bool]] = []
    current: list[str] = []
    optional = False
    depth = 0

    def flush() -> None:
        chunk = "".join(current).strip()
        if chunk:
            segments.append((chunk, optional))
        current.clear()

    for idx, char in enumerate(text):
        prev = text[idx - 1] if idx > 0 else ""
        nxt = text[idx + 1] if idx + 1 < len(text) else ""

        if char == "[" and depth == 0 and (not prev or prev.isspace()):
            flush()
            optional = True
            depth = 1
            continue
        if char == "]" and depth == 1 and (not nxt or nxt.isspace()):
            flush()
            optional = False
            depth = 0
            continue
        if char == "[" and depth > 0:
            depth += 1
        elif char == "]" and depth > 0:
            depth -= 1
        current.append(char)

    flush()
    return segments


def _coalesce_flags(tokens: Sequence[str]) -> list[str]:
    # "-o FILE" -> one token
    result: list[str] = []
    idx = 0
    while idx < len(tokens):
        token = tokens[idx]
        following = tokens[idx + 1] if idx + 1 < len(tokens) else None
        if _is_flag(token) and following and not _is_flag(following) and following != "|":
            result.append(f"{token} {following}")
            idx += 2
            continue
        result.append(token)
        idx += 1
    return result


def _collapse_alternatives(tokens: Sequence[str]) -> list[str]:
    # "-v | --version" -> "--version"
    result: list[str] = []
    group: list[str] = []
    for idx, token in enumerate(tokens):
        if token == "|":
            continue
        group.append(token)
        following = tokens[idx + 1] if idx + 1 < len(tokens) else None
        if following != "|":
            result.append(next((t for t in group if t.startswith("--")), group[0]))
            group = []
    if group:
        result.append(next((t for t in group if t.startswith("--")), group[0]))
    return result


def extract_usage_tokens(lines: Iterable[str], *, binary: str) -> UsageTokens:
    """Collect required args, optional args and flags from usage lines."""
    base = binary.rsplit("/", 1)[-1]
    required: list[str] = []
    optional: list[str] = []
    flags: list[str] = []

    for line in lines:
        for segment, is_optional in _split_optional_segments(line.strip()):
            tokens = _collapse_alternatives(_coalesce_flags(segment.split()))
            for token in tokens:
                if _is_flag(token):
                    flags.append(token)
                elif is_optional:
                    optional.append(token)
                elif token not in (binary, base):
                    required.append(token)

    return UsageTokens(
        required_args=_unique(required),
        optional_args=_unique(optional),
        flags=_unique(flags),
    )


def helpdoc_home() -> Path:
    """Return helpdoc's home directory.

    Defaults to `~/.config/helpdoc`, overridable via `HELPDOC_HOME`.
    """
    raw = os.environ.get("HELPDOC_HOME")
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".config" / "helpdoc"


def helpdoc_config_path() -> Path:
    return helpdoc_home() / "config.json"


def _load_config() -> dict:
    """Read config.json; a missing or malformed file means defaults."""
    try:
        payload = json.loads(helpdoc_config_path().read_text())
    except (json.JSONDecodeError, OSError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _config_get(*, key: str) -> object | None:
    # Keys: verbose, color, wrap_width, format. `HELPDOC_FORMAT=text` beats
    # {"format": "json"} in config.json.
    env_key = f"HELPDOC_{key.upper()}"
    env_val = os.environ.get(env_key)
    if env_val is not None and env_val.strip() != "":
        return env_val
    return _load_config().get(key)


def _setting_int(*, config_key: str, default: int) -> int:
    cfg = _config_get(key=config_key)
    if cfg is None:
        return default
    try:
        return int(cfg)
    except (TypeError, ValueError):
        return default


def _setting_bool(*, config_key: str) -> bool | None:
    raw = _config_get(key=config_key)
    if raw is None:
        return None
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int):
        return raw > 0
    if isinstance(raw, str):
        value = raw.strip().lower()
        if value in {"0", "false", "no", "off"}:
            return False
        if value in {"1", "true", "yes", "on"}:
            return True
    return None


def _verbose_level() -> int:
    raw = _config_get(key="verbose")
    if raw is None:
        return 0
    if isinstance(raw, bool):
        return 1 if raw else 0
    if isinstance(raw, int):
        if raw <= 0:
            return 0
        return 2 if raw > 1 else 1
    if isinstance(raw, str):
        value = raw.strip().lower()
        if value in {"", "0", "false", "no", "off"}:
            return 0
        if value in {"1", "true", "yes", "on", "basic"}:
            return 1
        return 2
    return 0


def _default_format() -> str:
    cfg = _config_get(key="format")
    if isinstance(cfg, str) and cfg.strip().lower() in {"json", "text"}:
        return cfg.strip().lower()
    return "json"


def _use_color(*, disabled: bool) -> bool:
    if disabled:
        return False
    configured = _setting_bool(config_key="color")
    if configured is not None:
        return configured
    return sys.stdout.isatty()


def read_help_source(source: str) -> str:
    """Read captured help text from a file path, or stdin for `-`."""
    if source == "-":
        return sys.stdin.read()
    path = Path(source).expanduser()
    try:
        data = path.read_bytes()
    except OSError as e:
        reason = e.strerror or str(e)
        raise HelpSourceError(f"Cannot read help text from {source}: {reason}") from e
    return data.decode("utf-8", errors="replace")


def _trace_document(*, source: str, text: str, document: ParsedDocument) -> None:
    verbosity = _verbose_level()
    if not verbosity:
        return
    print(
        f"[helpdoc] {source}: {len(document.commands)} commands, "
        f"{len(document.options)} options, {len(document.warnings)} warnings",
        file=sys.stderr,
    )
    if verbosity > 1:
        split = split_sections(normalize_help_text(text))
        print(f"[helpdoc] preamble lines: {len(split.preamble)}", file=sys.stderr)
        for section in split.sections:
            print(
                f"[helpdoc] region {section.label!r} tag={section.tag} "
                f"lines={len(section.lines)}",
                file=sys.stderr,
            )


def parse_sources(sources: Sequence[str]) -> ParsedDocument:
    """Parse the first source, falling back to later ones while nothing is found."""
    document: ParsedDocument | None = None
    for source in sources:
        text = read_help_source(source)
        candidate = parse(text)
        _trace_document(source=source, text=text, document=candidate)
        document = candidate if document is None else prefer_document(document, candidate)
        if not needs_fallback(document):
            break
    return document if document is not None else parse("")


def wrap_text(text: str, width: int = 80) -> list[str]:
    """Wrap a description column; an empty summary still yields one row."""
    # Long URLs and flag runs are hard-split rather than overflowing.
    return textwrap.wrap(text, width=width, break_on_hyphens=False) or [""]


def _append_rows(
    lines: list[str],
    *,
    title: str,
    rows: Sequence[tuple[str, str]],
    use_color: bool,
    width: int,
) -> None:
    if not rows:
        return
    lines.append(f"{CYAN}{title}{RESET}" if use_color else title)
    key_width = max(len(key) for key, _ in rows)
    desc_width = max(20, width - key_width - 4)
    indent = " " * (key_width + 4)  # 2 spaces + key + 2 spaces

    for key, description in rows:
        desc_lines = wrap_text(description, width=desc_width)
        padded = key.ljust(key_width)
        if use_color:
            lines.append(f"  {CYAN}{padded}{RESET}  {DIM}{desc_lines[0]}{RESET}")
        else:
            lines.append(f"  {padded}  {desc_lines[0]}".rstrip())
        for cont_line in desc_lines[1:]:
            if use_color:
                lines.append(f"{DIM}{indent}{cont_line}{RESET}")
            else:
                lines.append(f"{indent}{cont_line}")
    lines.append("")


def format_document(
    *, document: ParsedDocument, use_color: bool = True, width: int = 80
) -> str:
    """Format a parsed document for terminal display."""
    lines: list[str] = []

    if document.usage_lines:
        lines.append(f"{CYAN}Usage{RESET}" if use_color else "Usage")
        lines.extend(f"  {usage}" for usage in document.usage_lines)
        lines.append("")

    _append_rows(
        lines,
        title="Commands",
        rows=[
            (f"{c.name} <command>" if c.has_subcommands else c.name, c.summary)
            for c in document.commands
        ],
        use_color=use_color,
        width=width,
    )
    _append_rows(
        lines,
        title="Options",
        rows=[(o.flags, o.description) for o in document.options],
        use_color=use_color,
        width=width,
    )
    _append_rows(
        lines,
        title="Environment",
        rows=[(e.name, e.description) for e in document.env],
        use_color=use_color,
        width=width,
    )

    if document.examples:
        lines.append(f"{CYAN}Examples{RESET}" if use_color else "Examples")
        lines.extend(f"  {example}" for example in document.examples)
        lines.append("")

    for warning in document.warnings:
        if use_color:
            lines.append(f"{YELLOW}! {warning}{RESET}")
        else:
            lines.append(f"! {warning}")

    return "\n".join(lines).rstrip("\n")


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Structured documents from CLI help output",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="action")

    # parse command
    parse_p = subparsers.add_parser("parse", help="Parse captured help text")
    parse_p.add_argument(
        "sources",
        nargs="*",
        default=["-"],
        help="Help text files ('-' for stdin); later files are fallbacks",
    )
    parse_p.add_argument(
        "--format", choices=["json", "text"], default=_default_format()
    )
    parse_p.add_argument("--no-color", action="store_true", help="Disable colors")

    # sections command
    sections_p = subparsers.add_parser("sections", help="Show detected regions")
    sections_p.add_argument("source", help="Help text file ('-' for stdin)")

    # usage command
    usage_p = subparsers.add_parser("usage", help="Extract usage arguments")
    usage_p.add_argument("source", help="Help text file ('-' for stdin)")
    usage_p.add_argument("--binary", required=True, help="Tool binary name")

    subparsers.add_parser("schema", help="Print the document JSON Schema")

    args = parser.parse_args(argv)

    if args.action is None:
        parser.print_usage(sys.stderr)
        return 2

    try:
        if args.action == "parse":
            document = parse_sources(args.sources)
            if args.format == "text":
                output = format_document(
                    document=document,
                    use_color=_use_color(disabled=args.no_color),
                    width=_setting_int(config_key="wrap_width", default=80),
                )
                if output:
                    print(output)
            else:
                print(json.dumps(document.to_dict(), indent=2))
            return 0

        elif args.action == "sections":
            text = normalize_help_text(read_help_source(args.source))
            print(json.dumps(split_sections(text).to_dict(), indent=2))
            return 0

        elif args.action == "usage":
            document = parse(read_help_source(args.source))
            tokens = extract_usage_tokens(document.usage_lines, binary=args.binary)
            print(json.dumps(tokens.to_dict(), indent=2))
            return 0

        elif args.action == "schema":
            print(json.dumps(parsed_document_json_schema(), indent=2, sort_keys=True))
            return 0

    except HelpSourceError as e:
        print(f"[helpdoc] {e}", file=sys.stderr)
        return 2

    return 1


if __name__ == "__main__":
    sys.exit(main())
