"""Generation state — single source of truth passed through the pipeline graph."""

from typing import Any, Literal, TypedDict


class GenState(TypedDict):
    pack_id: str  # Pack the answers were collected with. Immutable after init.
    answers: dict[str, Any]  # AnswerSet from the interview. Immutable after init.
    blueprint: Any  # Candidate Blueprint produced by the build node.
    violations: list  # Constraint violations from the validate node, in rule order.
    regions: list  # (name, content) pairs rendered from an accepted blueprint.
    status: Literal["pending", "accepted", "rejected"]
