"""Tests for the blueprint constraint validator."""

import pytest

from agentgen.blueprint.schema import Blueprint
from agentgen.blueprint.serializer import blueprint_to_dict
from agentgen.blueprint.validator import (
    Violation,
    check_completeness,
    ensure_valid,
    is_valid_version_constraint,
    validate,
)
from agentgen.errors import BlueprintRejected


def _variant(bp: Blueprint, changes: dict) -> Blueprint:
    """Copy of `bp` with dotted-path fields replaced."""
    data = blueprint_to_dict(bp)
    for dotted, value in changes.items():
        *parents, leaf = dotted.split(".")
        node = data
        for part in parents:
            node = node[part]
        node[leaf] = value
    return Blueprint.model_validate(data)


def _paths(violations: list[Violation]) -> list[str]:
    return [v.path for v in violations]


class TestDisabledFeatureNeutral:
    def test_disabled_database_with_type(self, blueprint):
        bp = _variant(blueprint, {"features.database.type": "mysql"})
        violations = validate(bp)
        assert _paths(violations) == ["features.database.type"]
        assert violations[0].rule == "disabled-feature-neutral"

    def test_disabled_database_with_migrations_and_async(self, blueprint):
        bp = _variant(blueprint, {"features.database.migrations": True, "features.database.async": True})
        assert _paths(validate(bp)) == ["features.database.migrations", "features.database.async"]

    def test_disabled_auth_with_method(self, blueprint):
        bp = _variant(blueprint, {"features.authentication.method": "jwt"})
        assert _paths(validate(bp)) == ["features.authentication.method"]

    def test_checks_without_ci_provider(self, blueprint):
        bp = _variant(blueprint, {"infrastructure.ci.checks": ["test"]})
        assert _paths(validate(bp)) == ["infrastructure.ci.checks"]


class TestEnabledFeatureComplete:
    def test_enabled_database_needs_type_and_orm(self, blueprint):
        bp = _variant(blueprint, {"features.database.enabled": True})
        violations = validate(bp)
        assert _paths(violations) == ["features.database.type", "features.database.orm"]
        assert {v.rule for v in violations} == {"enabled-feature-complete"}

    def test_enabled_auth_needs_method(self, blueprint):
        bp = _variant(blueprint, {"features.authentication.enabled": True})
        assert _paths(validate(bp)) == ["features.authentication.method"]

    def test_ci_provider_needs_checks(self, blueprint):
        bp = _variant(blueprint, {"infrastructure.ci.provider": "github-actions"})
        assert _paths(validate(bp)) == ["infrastructure.ci.checks"]


class TestCoverageThreshold:
    @pytest.mark.parametrize("threshold", [0, 50, 100])
    def test_in_range(self, blueprint, threshold):
        bp = _variant(blueprint, {"tooling.testing.coverage": True, "tooling.testing.coverage_threshold": threshold})
        assert validate(bp) == []

    @pytest.mark.parametrize("threshold", [-1, 100.5, 150])
    def test_out_of_range(self, blueprint, threshold):
        bp = _variant(blueprint, {"tooling.testing.coverage": True, "tooling.testing.coverage_threshold": threshold})
        violations = validate(bp)
        assert _paths(violations) == ["tooling.testing.coverage_threshold"]
        assert violations[0].rule == "coverage-threshold"

    def test_enabled_coverage_needs_threshold(self, blueprint):
        bp = _variant(blueprint, {"tooling.testing.coverage": True, "tooling.testing.coverage_threshold": None})
        assert _paths(validate(bp)) == ["tooling.testing.coverage_threshold"]


class TestParentToggles:
    def test_compose_without_docker(self, blueprint):
        bp = _variant(blueprint, {"infrastructure.docker.compose": True})
        violations = validate(bp)
        assert _paths(violations) == ["infrastructure.docker.compose"]
        assert violations[0].rule == "parent-toggle"


class TestDependencyVersions:
    @pytest.mark.parametrize("version", [
        "1.0.0", "^1.0.0", "~1.2.3", ">=1.0.0", "<=2.0.0", ">1.0.0", "<2.0.0",
        ">=1.0.0,<2.0.0", "*", "latest",
    ])
    def test_valid_grammar(self, blueprint, version):
        assert is_valid_version_constraint(version)
        bp = _variant(blueprint, {"stack.dependencies": {**blueprint.stack.dependencies, "pkg": version}})
        assert validate(bp) == []

    @pytest.mark.parametrize("version", [
        "1.0", "v1.0.0", "^1.0", ">= 1.0.0", ">=1.0.0, <2.0.0", "1.0.0-beta", "1.0.0\n", "", "latest ",
    ])
    def test_invalid_grammar_names_the_key(self, blueprint, version):
        assert not is_valid_version_constraint(version)
        bp = _variant(blueprint, {"stack.dependencies": {**blueprint.stack.dependencies, "pkg": version}})
        violations = validate(bp)
        assert _paths(violations) == ["stack.dependencies.pkg"]
        assert violations[0].rule == "dependency-version"
        assert "pkg" in violations[0].message

    def test_dev_dependencies_checked(self, blueprint):
        bp = _variant(blueprint, {"stack.dev_dependencies": {"pytest": "seven"}})
        assert _paths(validate(bp)) == ["stack.dev_dependencies.pytest"]

    def test_non_string_is_invalid(self):
        assert not is_valid_version_constraint(1)
        assert not is_valid_version_constraint(None)


class TestCompleteness:
    def test_blank_identity_fields(self, blueprint):
        bp = _variant(blueprint, {"project.name": " ", "stack.framework": ""})
        assert _paths(check_completeness(bp)) == ["project.name", "stack.framework"]


class TestValidate:
    def test_collects_every_violation(self, blueprint):
        bp = _variant(blueprint, {
            "features.database.type": "mysql",
            "infrastructure.docker.compose": True,
            "stack.dependencies": {"fastapi": "latest!"},
            "tooling.testing.coverage_threshold": 120,
        })
        violations = validate(bp)
        assert {v.rule for v in violations} == {
            "disabled-feature-neutral", "parent-toggle", "dependency-version", "coverage-threshold",
        }

    def test_ensure_valid_passes_through(self, blueprint):
        assert ensure_valid(blueprint) is blueprint

    def test_ensure_valid_raises_with_all_violations(self, blueprint):
        bp = _variant(blueprint, {"features.database.type": "mysql", "infrastructure.docker.compose": True})
        with pytest.raises(BlueprintRejected) as exc_info:
            ensure_valid(bp)
        assert len(exc_info.value.violations) == 2
        assert "features.database.type" in str(exc_info.value)
