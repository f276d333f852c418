"""Answer collector — walks a QuestionGraph and accumulates an AnswerSet.

Questions are visited strictly in definition order. Each visibility predicate
sees the AnswerSet exactly as it stands after the previous question, so an
answer recorded earlier in the same walk immediately changes what is asked
later.
"""

from typing import Callable

from agentgen.errors import IncompleteAnswer, InvalidAnswer
from agentgen.interview.questions import Question, QuestionGraph
from agentgen.utils.validator import check_rule

# ask(question, previous_error) -> raw reply, "" for "use the default", None when input is exhausted
Asker = Callable[[Question, str | None], object]

_TRUE_WORDS = {"y", "yes", "true", "1", "on"}
_FALSE_WORDS = {"n", "no", "false", "0", "off"}
_MISSING = object()


def coerce_answer(question: Question, raw):
    """Convert a raw reply into the value type of the question's kind.

    Raises InvalidAnswer (rule "type" or "choice") when the reply cannot be
    converted.
    """
    kind = question.kind

    if kind == "confirm":
        if isinstance(raw, bool):
            return raw
        word = str(raw).strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise InvalidAnswer(question.id, "type", f"Expected yes or no, got {raw!r}")

    if kind == "number":
        if isinstance(raw, bool):
            raise InvalidAnswer(question.id, "type", f"Expected a number, got {raw!r}")
        if isinstance(raw, (int, float)):
            return raw
        text = str(raw).strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            raise InvalidAnswer(question.id, "type", f"Expected a number, got {raw!r}") from None

    if kind == "select":
        value = str(raw).strip()
        if value not in question.choice_values:
            raise InvalidAnswer(
                question.id, "choice",
                f"'{value}' is not one of: {', '.join(question.choice_values)}",
            )
        return value

    if kind == "multiselect":
        if isinstance(raw, str):
            values = [v.strip() for v in raw.split(",") if v.strip()]
        elif isinstance(raw, (list, tuple)):
            values = [str(v).strip() for v in raw]
        else:
            raise InvalidAnswer(question.id, "type", f"Expected a list of choices, got {raw!r}")
        unknown = [v for v in values if v not in question.choice_values]
        if unknown:
            raise InvalidAnswer(
                question.id, "choice",
                f"{unknown} not among: {', '.join(question.choice_values)}",
            )
        return values

    return raw if isinstance(raw, str) else str(raw)


def _accept(question: Question, raw):
    """Coerce and validate one reply; returns the value or raises InvalidAnswer."""
    value = coerce_answer(question, raw)
    # numeric judges the reply as written; str(float) may switch to exponent form
    checked = raw if question.rule is not None and question.rule.name == "numeric" else value
    error = check_rule(checked, question.rule)
    if error:
        raise InvalidAnswer(question.id, question.validate, error)
    return value


def _is_blank(raw) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def _is_required(question: Question) -> bool:
    return question.rule is not None and question.rule.name == "required"


def _solicit_interactive(question: Question, ask: Asker):
    error = None
    while True:
        raw = ask(question, error)
        if raw is None:
            raise IncompleteAnswer(question.id, "input ended before a value was given")
        if _is_blank(raw):
            if question.default is not None:
                raw = question.default
            elif not _is_required(question):
                # Optional and no default: leave it unanswered
                return _MISSING
        try:
            return _accept(question, raw)
        except InvalidAnswer as exc:
            error = exc.message


def _is_empty_selection(raw) -> bool:
    return isinstance(raw, (list, tuple)) and not raw


def _solicit_supplied(question: Question, supplied: dict):
    raw = supplied.get(question.id)
    if not _is_blank(raw) and not (_is_required(question) and _is_empty_selection(raw)):
        return _accept(question, raw)

    if _is_required(question):
        raise IncompleteAnswer(question.id, "required answer not supplied in non-interactive mode")

    if question.default is None:
        return _MISSING
    return _accept(question, question.default)


def collect(
    graph: QuestionGraph,
    ask: Asker | None = None,
    supplied: dict | None = None,
    interactive: bool = True,
) -> dict:
    """Walk the graph and return the AnswerSet.

    Interactive mode asks `ask` for every visible question, re-asking with the
    error message until the value validates. Non-interactive mode reads
    `supplied` and fails on the first bad or missing required answer.

    Raises IncompleteAnswer or InvalidAnswer naming the question.
    """
    if interactive and ask is None:
        raise ValueError("Interactive collection needs an ask callable.")
    supplied = supplied or {}

    answers: dict = {}
    for question in graph:
        if not question.is_visible(answers):
            continue

        if interactive:
            value = _solicit_interactive(question, ask)
        else:
            value = _solicit_supplied(question, supplied)

        if value is not _MISSING:
            answers[question.id] = value

    return answers


def terminal_ask(question: Question, error: str | None) -> str | list[str] | None:
    """Prompt for one question in the terminal.

    Returns the raw reply ("" = default), or None on end of input.
    """
    if error:
        print(f"  ! {error}")

    default = question.default
    hint = ""
    if question.kind == "confirm":
        hint = " [Y/n]" if default else " [y/N]"
    elif default not in (None, "", []):
        shown = ", ".join(default) if isinstance(default, list) else default
        hint = f" [{shown}]"

    print(f"{question.message}{hint}")
    if question.choices:
        for i, choice in enumerate(question.choices, 1):
            desc = f" — {choice.description}" if choice.description else ""
            print(f"  {i}. {choice.name}{desc}")

    try:
        reply = input("> ").strip()
    except EOFError:
        return None

    if not question.choices or not reply:
        return reply

    # Numbers pick choices by position; anything else is passed through as a value
    picked = []
    for token in reply.split(","):
        token = token.strip()
        if token.isdigit() and 1 <= int(token) <= len(question.choices):
            picked.append(question.choices[int(token) - 1].value)
        else:
            picked.append(token)
    return picked if question.kind == "multiselect" else picked[0]
