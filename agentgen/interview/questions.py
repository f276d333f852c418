"""Question graph — static question definitions and their visibility predicates.

A pack's interview.yaml is a flat, ordered list of questions. Order is the only
ordering guarantee: a question's `when` predicate may only look at questions
defined before it, which is checked once here at load time.

    questions:
      - id: database_enabled
        type: confirm
        message: Add a database?
        default: false
      - id: database_type
        type: select
        message: Which database?
        choices: [{name: PostgreSQL, value: postgresql}, ...]
        when: {field: database_enabled, equals: true}
"""

from dataclasses import dataclass, field
from typing import Any, Literal

from agentgen.errors import QuestionGraphError
from agentgen.utils.validator import Rule, parse_rule

QuestionKind = Literal["text", "select", "multiselect", "confirm", "number"]

VALID_KINDS = {"text", "select", "multiselect", "confirm", "number"}
CHOICE_KINDS = {"select", "multiselect"}
COMPARATORS = ("equals", "not_equals", "contains")

# Accepted spellings in YAML for each comparator
_COMPARATOR_ALIASES = {
    "equals": "equals",
    "not_equals": "not_equals",
    "notEquals": "not_equals",
    "contains": "contains",
    "includes": "contains",
}


@dataclass(frozen=True)
class Choice:
    name: str
    value: str
    description: str = ""


@dataclass(frozen=True)
class VisibilityPredicate:
    """`{field, comparator, value}` — evaluated against earlier answers only."""

    field: str
    comparator: str
    value: Any

    def evaluate(self, answers: dict) -> bool:
        if self.field not in answers:
            # Unanswered (skipped) questions never equal anything
            return self.comparator == "not_equals"

        actual = answers[self.field]
        if self.comparator == "equals":
            return actual == self.value
        if self.comparator == "not_equals":
            return actual != self.value
        if isinstance(actual, (list, tuple)):
            return self.value in actual
        return False


@dataclass(frozen=True)
class Question:
    id: str
    kind: QuestionKind
    message: str
    default: Any = None
    choices: tuple[Choice, ...] = ()
    validate: str | None = None
    when: VisibilityPredicate | None = None
    rule: Rule | None = field(default=None, compare=False, repr=False)

    @property
    def choice_values(self) -> list[str]:
        return [c.value for c in self.choices]

    def is_visible(self, answers: dict) -> bool:
        """Return True when the question should be asked given `answers`."""
        return self.when is None or self.when.evaluate(answers)


@dataclass(frozen=True)
class QuestionGraph:
    version: str
    questions: tuple[Question, ...]

    def __iter__(self):
        return iter(self.questions)

    def __len__(self) -> int:
        return len(self.questions)

    def get(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    @property
    def ids(self) -> list[str]:
        return [q.id for q in self.questions]


def _parse_choices(qid: str, raw) -> tuple[Choice, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise QuestionGraphError(f"Question '{qid}': choices must be a list.")

    choices = []
    for item in raw:
        if isinstance(item, dict):
            if "value" not in item:
                raise QuestionGraphError(f"Question '{qid}': every choice needs a value.")
            value = str(item["value"])
            choices.append(Choice(
                name=str(item.get("name", value)),
                value=value,
                description=str(item.get("description", "")),
            ))
        else:
            choices.append(Choice(name=str(item), value=str(item)))
    return tuple(choices)


def _parse_predicate(qid: str, raw, earlier: set[str]) -> VisibilityPredicate | None:
    if raw is None:
        return None
    if not isinstance(raw, dict) or "field" not in raw:
        raise QuestionGraphError(f"Question '{qid}': 'when' needs a 'field' key.")

    target = raw["field"]
    if target == qid:
        raise QuestionGraphError(f"Question '{qid}': 'when' cannot reference itself.")
    if target not in earlier:
        raise QuestionGraphError(
            f"Question '{qid}': 'when' references '{target}', which is not defined "
            "before it. Predicates may only look at earlier questions."
        )

    given = [key for key in raw if key != "field"]
    unknown = [key for key in given if key not in _COMPARATOR_ALIASES]
    if unknown:
        raise QuestionGraphError(f"Question '{qid}': unknown comparator(s) {unknown}.")
    if len(given) != 1:
        raise QuestionGraphError(
            f"Question '{qid}': 'when' needs exactly one of {', '.join(COMPARATORS)}."
        )

    key = given[0]
    return VisibilityPredicate(field=target, comparator=_COMPARATOR_ALIASES[key], value=raw[key])


def _parse_question(raw: dict, earlier: set[str]) -> Question:
    qid = raw.get("id")
    if not isinstance(qid, str) or not qid.strip():
        raise QuestionGraphError(f"Question is missing a string 'id': {raw!r}")

    kind = raw.get("type", "text")
    if kind not in VALID_KINDS:
        raise QuestionGraphError(
            f"Question '{qid}' has invalid type '{kind}'. Must be one of: {sorted(VALID_KINDS)}"
        )

    choices = _parse_choices(qid, raw.get("choices"))
    if kind in CHOICE_KINDS and not choices:
        raise QuestionGraphError(f"Question '{qid}' is a {kind} question without choices.")

    default = raw.get("default")
    values = [c.value for c in choices]
    if kind == "select" and default is not None and str(default) not in values:
        raise QuestionGraphError(f"Question '{qid}': default '{default}' is not a declared choice.")
    if kind == "multiselect" and default is not None:
        if not isinstance(default, list) or any(str(d) not in values for d in default):
            raise QuestionGraphError(f"Question '{qid}': default must be a list of declared choices.")
        default = [str(d) for d in default]

    validate = raw.get("validate")
    rule = parse_rule(validate)

    return Question(
        id=qid,
        kind=kind,
        message=str(raw.get("message", qid)),
        default=default,
        choices=choices,
        validate=rule.tag if rule else None,
        when=_parse_predicate(qid, raw.get("when"), earlier),
        rule=rule,
    )


def load_question_graph(data: dict) -> QuestionGraph:
    """Build a QuestionGraph from a parsed interview definition.

    Raises QuestionGraphError on duplicate ids, forward or unknown predicate
    references, unknown types or rule tags, and malformed choices.
    """
    if not isinstance(data, dict) or not isinstance(data.get("questions"), list):
        raise QuestionGraphError("Interview definition must contain a 'questions' list.")

    seen: set[str] = set()
    questions = []
    for raw in data["questions"]:
        if not isinstance(raw, dict):
            raise QuestionGraphError(f"Question entries must be mappings, got {raw!r}")
        question = _parse_question(raw, seen)
        if question.id in seen:
            raise QuestionGraphError(f"Duplicate question id '{question.id}'.")
        seen.add(question.id)
        questions.append(question)

    return QuestionGraph(version=str(data.get("version", "1.0")), questions=tuple(questions))


def visible_questions(graph: QuestionGraph, answers: dict) -> list[str]:
    """Return the ids of the questions that are asked for a fixed AnswerSet.

    Questions whose ids already have an answer keep it; the rest are treated as
    unanswered. Deterministic for a given graph and answer prefix.
    """
    visible = []
    partial: dict = {}
    for question in graph:
        if not question.is_visible(partial):
            continue
        visible.append(question.id)
        if question.id in answers:
            partial[question.id] = answers[question.id]
    return visible
