"""Managed regions — regenerate marked spans of a document, keep everything else.

A document is read as an alternation of literal text and named regions:

    # My notes                                  <- literal, never touched
    <!-- agentgen:managed:start:quickstart -->
    ...generated content...                     <- region "quickstart"
    <!-- agentgen:managed:end:quickstart -->
    More notes                                  <- literal

Markers must occupy a whole line, so marker-looking text inside a sentence or
an inline code span is plain literal text. Parsing is one linear pass;
nested, stray, mismatched, unterminated or duplicated markers raise
MalformedDocument and nothing is produced.
"""

import re
from dataclasses import dataclass

from agentgen.errors import MalformedDocument

MARKER_NAMESPACE = "agentgen:managed"

_MARKER_RE = re.compile(
    r"^[ \t]*<!--[ \t]*" + re.escape(MARKER_NAMESPACE) + r":(start|end):([A-Za-z0-9_.-]+)[ \t]*-->[ \t]*\r?\n?$"
)
_NAME_RE = re.compile(r"[A-Za-z0-9_.-]+")


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Region:
    name: str
    start: str  # start marker line, verbatim (including its line ending)
    content: str
    end: str


def check_region_name(name: str) -> str:
    if not isinstance(name, str) or not _NAME_RE.fullmatch(name):
        raise ValueError(f"Invalid region name {name!r}: use letters, digits, '-', '_' or '.'")
    return name


def is_marker_line(line: str) -> bool:
    return _MARKER_RE.match(line) is not None


def check_region_content(name: str, content: str) -> str:
    """Reject region bodies that contain a marker line of their own.

    Such a body would end or nest the region when the document is read back.
    """
    for line in content.splitlines(keepends=True):
        if is_marker_line(line):
            raise ValueError(f"Content of region {name!r} contains a marker line: {line.strip()!r}")
    return content


def escape_markers(text: str) -> str:
    """Render marker-looking lines of free text as inline code so they stay literal."""
    out = []
    for line in text.splitlines(keepends=True):
        if is_marker_line(line):
            body = line.rstrip("\r\n")
            line = f"`{body.strip()}`" + line[len(body):]
        out.append(line)
    return "".join(out)


def start_marker(name: str) -> str:
    return f"<!-- {MARKER_NAMESPACE}:start:{name} -->"


def end_marker(name: str) -> str:
    return f"<!-- {MARKER_NAMESPACE}:end:{name} -->"


def _normalize(content: str) -> str:
    """Region bodies end with a newline so the end marker keeps its own line."""
    if content and not content.endswith("\n"):
        return content + "\n"
    return content


def wrap_region(name: str, content: str) -> str:
    """Return `content` enclosed in the start/end marker pair for `name`."""
    check_region_content(name, content)
    return f"{start_marker(name)}\n{_normalize(content)}{end_marker(name)}\n"


def parse_document(text: str) -> list:
    """Split `text` into Literal and Region segments, preserving every byte.

    Raises MalformedDocument on nested, stray, mismatched, unterminated or
    duplicate markers.
    """
    segments: list = []
    literal: list[str] = []
    seen: set[str] = set()

    open_name = None
    open_line = 0
    open_marker = ""
    body: list[str] = []

    for lineno, line in enumerate(text.splitlines(keepends=True), 1):
        match = _MARKER_RE.match(line)
        if not match:
            (body if open_name is not None else literal).append(line)
            continue

        kind, name = match.groups()
        if kind == "start":
            if open_name is not None:
                raise MalformedDocument(
                    f"Region '{name}' starts inside region '{open_name}' (opened on line {open_line})",
                    line, lineno,
                )
            if name in seen:
                raise MalformedDocument(f"Duplicate region name '{name}'", line, lineno)
            segments.append(Literal("".join(literal)))
            literal = []
            open_name, open_line, open_marker, body = name, lineno, line, []
            continue

        if open_name is None:
            raise MalformedDocument(f"End marker for '{name}' without a matching start", line, lineno)
        if name != open_name:
            raise MalformedDocument(
                f"End marker for '{name}' does not match open region '{open_name}' (opened on line {open_line})",
                line, lineno,
            )
        segments.append(Region(open_name, open_marker, "".join(body), line))
        seen.add(open_name)
        open_name = None

    if open_name is not None:
        raise MalformedDocument(f"Region '{open_name}' is never closed", open_marker, open_line)

    segments.append(Literal("".join(literal)))
    return [s for s in segments if not (isinstance(s, Literal) and not s.text)]


def extract_regions(text: str) -> dict[str, str]:
    """Return {region name: current content} for a document."""
    return {s.name: s.content for s in parse_document(text) if isinstance(s, Region)}


def merge(existing: str, fresh: list[tuple[str, str]]) -> str:
    """Regenerate the managed regions of `existing` from `fresh` (name, content) pairs.

    - regions named in `fresh` get the fresh content, markers kept verbatim
    - regions not named in `fresh` are left exactly as they are
    - fresh regions the document lacks are appended at the end, in order
    - literal text outside regions is copied byte for byte

    Raises MalformedDocument before producing anything if `existing` is broken.
    Raises ValueError for an invalid region name or a body holding a marker line.
    """
    # Later duplicates of a name win, like repeated keys in a dict
    fresh_map = {
        check_region_name(name): check_region_content(name, content) for name, content in fresh
    }
    segments = parse_document(existing)

    out: list[str] = []
    consumed: set[str] = set()
    for segment in segments:
        if isinstance(segment, Literal):
            out.append(segment.text)
        elif segment.name in fresh_map:
            # A start marker always ends its line; otherwise the region would be unterminated
            out.append(segment.start + _normalize(fresh_map[segment.name]) + segment.end)
            consumed.add(segment.name)
        else:
            out.append(segment.start + segment.content + segment.end)

    result = "".join(out)

    for name in fresh_map:
        if name in consumed:
            continue
        if result and not result.endswith("\n"):
            result += "\n"
        result += "\n" + wrap_region(name, fresh_map[name])

    return result
