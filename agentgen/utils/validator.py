"""Answer validation rules — the closed set of rule tags a question may declare.

Tags are parsed when a question graph is loaded, so an unknown tag is an
authoring error instead of a rule that silently never fires.
"""

import math
import re
from typing import NamedTuple

from agentgen.errors import QuestionGraphError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NUMERIC_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")
_MIN_LENGTH_PREFIX = "min-length:"


class Rule(NamedTuple):
    name: str
    arg: int | None = None

    @property
    def tag(self) -> str:
        return f"{self.name}:{self.arg}" if self.arg is not None else self.name


def parse_rule(tag: str | None) -> Rule | None:
    """Parse a rule tag such as 'required' or 'min-length:3'.

    Returns None for an absent tag.
    Raises QuestionGraphError for anything outside the supported set.
    """
    if tag is None:
        return None
    if not isinstance(tag, str) or not tag.strip():
        raise QuestionGraphError(f"Validation rule must be a non-empty string, got {tag!r}.")

    tag = tag.strip()
    if tag in ("required", "email", "numeric"):
        return Rule(tag)

    if tag.startswith(_MIN_LENGTH_PREFIX):
        raw = tag[len(_MIN_LENGTH_PREFIX):]
        if not raw.isdigit():
            raise QuestionGraphError(f"Rule '{tag}' needs a non-negative integer length.")
        return Rule("min-length", int(raw))

    raise QuestionGraphError(
        f"Unknown validation rule '{tag}'. Must be one of: "
        "required, min-length:N, email, numeric"
    )


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def check_rule(value, rule: Rule | None) -> str | None:
    """Apply a parsed rule to an answer value.

    Returns a human-readable error message, or None when the value passes.
    """
    if rule is None:
        return None

    if rule.name == "required":
        if isinstance(value, list):
            if not [v for v in value if _as_text(v).strip()]:
                return "This field is required"
            return None
        if not _as_text(value).strip():
            return "This field is required"
        return None

    text = _as_text(value)

    if rule.name == "min-length":
        if len(text) < rule.arg:
            return f"Must be at least {rule.arg} characters"
        return None

    if rule.name == "email":
        if not _EMAIL_RE.fullmatch(text):
            return "Must be a valid email address"
        return None

    if rule.name == "numeric":
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return None if math.isfinite(value) else "Must be a valid number"
        if isinstance(value, bool) or not _NUMERIC_RE.fullmatch(text.strip()):
            return "Must be a valid number"
        return None

    # parse_rule is the only constructor callers use
    raise QuestionGraphError(f"Unsupported rule '{rule.name}'.")
