"""Tests for managed region content generated from a blueprint."""

from agentgen.utils.guidance import REGION_NAMES, generate_regions, module_name
from agentgen.utils.managed import extract_regions, merge, start_marker


def _regions(bp, pack):
    return dict(pack.generate_regions(bp))


class TestModuleName:
    def test_hyphens_and_case(self):
        assert module_name("Todo-API") == "todo_api"

    def test_empty_falls_back(self):
        assert module_name("--") == "app"


class TestGenerateRegions:
    def test_region_order(self, blueprint, python_pack):
        assert [name for name, _ in python_pack.generate_regions(blueprint)] == list(REGION_NAMES)

    def test_every_region_ends_with_newline(self, full_blueprint, python_pack):
        for _, content in python_pack.generate_regions(full_blueprint):
            assert content.endswith("\n")
            assert not content.endswith("\n\n")

    def test_deterministic(self, full_blueprint, python_pack):
        assert python_pack.generate_regions(full_blueprint) == python_pack.generate_regions(full_blueprint)

    def test_without_commands(self, blueprint):
        regions = dict(generate_regions(blueprint))
        assert regions["quickstart"].startswith("## Quickstart")


class TestQuickstart:
    def test_commands_use_module_name(self, blueprint, python_pack):
        quickstart = _regions(blueprint, python_pack)["quickstart"]
        assert "poetry install" in quickstart
        assert "poetry run uvicorn todo_api.main:app --reload" in quickstart
        assert "http://localhost:8000/docs" in quickstart

    def test_migrations_step_only_with_database(self, blueprint, full_blueprint, python_pack):
        assert "alembic upgrade head" not in _regions(blueprint, python_pack)["quickstart"]
        assert "alembic upgrade head" in _regions(full_blueprint, python_pack)["quickstart"]


class TestStack:
    def test_lists_runtime_and_dependencies(self, blueprint, python_pack):
        stack = _regions(blueprint, python_pack)["stack"]
        assert "python (>=3.12,<4.0)" in stack
        assert "`fastapi` ^0.104.1" in stack
        assert "Database" not in stack

    def test_enabled_features(self, full_blueprint, python_pack):
        stack = _regions(full_blueprint, python_pack)["stack"]
        assert "**Database:** postgresql via sqlalchemy (async, migrations)" in stack
        assert "**Authentication:** jwt" in stack
        assert "CORS" in stack


class TestStructure:
    def test_entrypoint_and_optional_files(self, full_blueprint, python_pack):
        structure = _regions(full_blueprint, python_pack)["structure"]
        assert "src/todo_api/main.py" in structure
        assert "src/todo_api/db/" in structure
        assert "alembic/" in structure
        assert "docker-compose.yml" in structure
        assert ".github/workflows/ci.yml" in structure

    def test_minimal_project(self, blueprint, python_pack):
        structure = _regions(blueprint, python_pack)["structure"]
        assert "Dockerfile" not in structure
        assert "alembic/" not in structure


class TestVerification:
    def test_checks_and_coverage(self, full_blueprint, python_pack):
        verification = _regions(full_blueprint, python_pack)["verification"]
        assert "poetry run mypy src" in verification
        assert "coverage at least 90%" in verification
        assert "CI (github-actions) runs: lint, typecheck, test." in verification

    def test_no_ci_line_without_provider(self, blueprint, python_pack):
        assert "CI (" not in _regions(blueprint, python_pack)["verification"]


class TestAgentPolicy:
    def test_policy_lines(self, blueprint, python_pack):
        policy = _regions(blueprint, python_pack)["agent-policy"]
        assert policy.startswith("## Agent Policy")
        assert "**Autonomy:** balanced." in policy
        assert "`disable-type-checking`" in policy
        assert "- All endpoints should have docstrings" in policy

    def test_marker_line_in_custom_rule_is_escaped(self, blueprint, python_pack):
        agent = blueprint.agent.model_copy(update={"custom_rules": ["ok", f"x\n{start_marker('zz')}"]})
        regions = python_pack.generate_regions(blueprint.model_copy(update={"agent": agent}))
        policy = dict(regions)["agent-policy"]
        assert f"`{start_marker('zz')}`" in policy
        once = merge("", regions)
        assert merge(once, regions) == once
        assert "zz" not in extract_regions(once)
