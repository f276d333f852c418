"""LangGraph StateGraph for the answers -> blueprint -> regions pipeline."""

from datetime import datetime

from langgraph.graph import END, StateGraph

from agentgen.blueprint.builder import build
from agentgen.blueprint.validator import validate
from agentgen.packs.loader import Pack, load_pack
from agentgen.state import GenState


def _build_node(state: GenState, pack: Pack, now: datetime | None = None) -> dict:
    """Build the candidate blueprint from the collected answers."""
    return {"blueprint": build(state["answers"], pack, now=now)}


def _validate_node(state: GenState) -> dict:
    """Run every constraint rule and record the outcome."""
    violations = validate(state["blueprint"])
    return {"violations": violations, "status": "rejected" if violations else "accepted"}


def _regions_node(state: GenState, pack: Pack) -> dict:
    """Render the managed regions for an accepted blueprint."""
    return {"regions": pack.generate_regions(state["blueprint"])}


def _route_after_validate(state: GenState) -> str:
    """Conditional edge: only accepted blueprints get regions rendered."""
    return "accepted" if state["status"] == "accepted" else "rejected"


def build_graph(pack: Pack, now: datetime | None = None):
    """Compile the pipeline graph bound to one pack."""
    workflow = StateGraph(GenState)

    workflow.add_node("build", lambda state: _build_node(state, pack, now))
    workflow.add_node("validate", _validate_node)
    workflow.add_node("regions", lambda state: _regions_node(state, pack))

    workflow.set_entry_point("build")
    workflow.add_edge("build", "validate")
    workflow.add_conditional_edges(
        "validate",
        _route_after_validate,
        {
            "accepted": "regions",
            "rejected": END,
        },
    )
    workflow.add_edge("regions", END)

    return workflow.compile()


def initial_state(pack_id: str, answers: dict) -> GenState:
    return {
        "pack_id": pack_id,
        "answers": dict(answers),
        "blueprint": None,
        "violations": [],
        "regions": [],
        "status": "pending",
    }


def run_pipeline(pack: Pack | str, answers: dict, now: datetime | None = None) -> GenState:
    """Run answers through build -> validate -> regions.

    Returns the final state; check `status` for "accepted" or "rejected".
    """
    if isinstance(pack, str):
        pack = load_pack(pack)
    graph = build_graph(pack, now=now)
    return graph.invoke(initial_state(pack.id, answers))
