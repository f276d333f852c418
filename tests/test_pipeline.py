"""Tests for the generation graph: routing and end-to-end runs."""

from datetime import datetime, timezone

from agentgen.blueprint.validator import Violation
from agentgen.pipeline import (
    _route_after_validate,
    _validate_node,
    initial_state,
    run_pipeline,
)

FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class TestRouteAfterValidate:
    def test_accepted(self):
        state = initial_state("python-api", {})
        state["status"] = "accepted"
        assert _route_after_validate(state) == "accepted"

    def test_rejected(self):
        state = initial_state("python-api", {})
        state["status"] = "rejected"
        assert _route_after_validate(state) == "rejected"


class TestValidateNode:
    def test_clean_blueprint_accepted(self, blueprint):
        state = {**initial_state("python-api", {}), "blueprint": blueprint}
        assert _validate_node(state) == {"violations": [], "status": "accepted"}

    def test_violations_reject(self, blueprint):
        broken = blueprint.model_copy(update={
            "infrastructure": blueprint.infrastructure.model_copy(update={
                "docker": blueprint.infrastructure.docker.model_copy(update={"compose": True}),
            }),
        })
        state = {**initial_state("python-api", {}), "blueprint": broken}
        result = _validate_node(state)
        assert result["status"] == "rejected"
        assert result["violations"][0] == Violation(
            "parent-toggle", "infrastructure.docker.compose", "Cannot enable Docker Compose when Docker is disabled."
        )


class TestRunPipeline:
    def test_accepted_run_renders_regions(self, python_pack, full_answers):
        state = run_pipeline(python_pack, full_answers, now=FIXED_NOW)
        assert state["status"] == "accepted"
        assert state["violations"] == []
        assert state["blueprint"].meta.generated_at == "2024-01-15T12:00:00Z"
        assert [name for name, _ in state["regions"]][0] == "quickstart"

    def test_pack_id_is_loaded(self, base_answers):
        state = run_pipeline("python-api", base_answers, now=FIXED_NOW)
        assert state["pack_id"] == "python-api"
        assert state["status"] == "accepted"

    def test_answers_not_mutated(self, python_pack, base_answers):
        before = dict(base_answers)
        run_pipeline(python_pack, base_answers, now=FIXED_NOW)
        assert base_answers == before

    def test_rejected_run_skips_regions(self, python_pack, base_answers):
        answers = {**base_answers, "coverage_enabled": True, "coverage_threshold": 150}
        state = run_pipeline(python_pack, answers, now=FIXED_NOW)
        assert state["status"] == "rejected"
        assert state["regions"] == []
        assert [v.path for v in state["violations"]] == ["tooling.testing.coverage_threshold"]
