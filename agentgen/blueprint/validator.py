"""Constraint validator — cross-field consistency rules over a candidate Blueprint.

Each rule is a pure function returning the violations it found. validate()
runs every rule and returns all of them; an empty list means the blueprint is
accepted. Nothing here fails fast, so callers can show the full list at once.
"""

import re
from typing import Callable, NamedTuple

from agentgen.blueprint.schema import Blueprint
from agentgen.errors import BlueprintRejected

NEUTRAL = "none"

_SEMVER = r"\d+\.\d+\.\d+"
VERSION_PATTERNS = [
    re.compile(rf"^{_SEMVER}$"),  # exact: 1.0.0
    re.compile(rf"^(?:\^|~|>=|<=|>|<){_SEMVER}$"),  # prefixed: ^1.0.0, >=1.0.0, ...
    re.compile(rf"^>={_SEMVER},<{_SEMVER}$"),  # range: >=1.0.0,<2.0.0
    re.compile(r"^\*$"),
    re.compile(r"^latest$"),
]


class Violation(NamedTuple):
    rule: str
    path: str
    message: str


Rule = Callable[[Blueprint], list[Violation]]


def is_valid_version_constraint(version) -> bool:
    """Return True if `version` matches one of the supported constraint grammars."""
    if not isinstance(version, str):
        return False
    return any(p.fullmatch(version) for p in VERSION_PATTERNS)


def _is_neutral(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() in ("", NEUTRAL))


# --- Rule 1: disabled features carry only neutral sub-fields ---

def check_disabled_features_neutral(bp: Blueprint) -> list[Violation]:
    rule = "disabled-feature-neutral"
    issues = []

    db = bp.features.database
    if not db.enabled:
        if not _is_neutral(db.type):
            issues.append(Violation(rule, "features.database.type",
                                    f"Database is disabled but type is '{db.type}' (expected 'none')."))
        if not _is_neutral(db.orm):
            issues.append(Violation(rule, "features.database.orm",
                                    f"Database is disabled but ORM is '{db.orm}' (expected 'none')."))
        if db.migrations:
            issues.append(Violation(rule, "features.database.migrations",
                                    "Cannot enable migrations when database is disabled."))
        if db.async_:
            issues.append(Violation(rule, "features.database.async",
                                    "Cannot enable async database access when database is disabled."))

    auth = bp.features.authentication
    if not auth.enabled and not _is_neutral(auth.method):
        issues.append(Violation(rule, "features.authentication.method",
                                f"Authentication is disabled but method is '{auth.method}' (expected 'none')."))

    ci = bp.infrastructure.ci
    if _is_neutral(ci.provider) and ci.checks:
        issues.append(Violation(rule, "infrastructure.ci.checks",
                                "CI checks are listed but no CI provider is configured."))

    return issues


# --- Rule 2: enabled features name their required choices ---

def check_enabled_features_complete(bp: Blueprint) -> list[Violation]:
    rule = "enabled-feature-complete"
    issues = []

    db = bp.features.database
    if db.enabled:
        if _is_neutral(db.type):
            issues.append(Violation(rule, "features.database.type",
                                    "Database type must be specified when database is enabled."))
        if _is_neutral(db.orm):
            issues.append(Violation(rule, "features.database.orm",
                                    "Database ORM must be specified when database is enabled."))

    auth = bp.features.authentication
    if auth.enabled and _is_neutral(auth.method):
        issues.append(Violation(rule, "features.authentication.method",
                                "Authentication method must be specified when authentication is enabled."))

    ci = bp.infrastructure.ci
    if not _is_neutral(ci.provider) and not ci.checks:
        issues.append(Violation(rule, "infrastructure.ci.checks",
                                "CI checks must be specified when a CI provider is configured."))

    return issues


# --- Rule 3: coverage threshold ---

def check_coverage_threshold(bp: Blueprint) -> list[Violation]:
    rule = "coverage-threshold"
    testing = bp.tooling.testing
    path = "tooling.testing.coverage_threshold"

    if testing.coverage and testing.coverage_threshold is None:
        return [Violation(rule, path, "Coverage threshold must be specified when coverage is enabled.")]
    if testing.coverage_threshold is not None and not 0 <= testing.coverage_threshold <= 100:
        return [Violation(rule, path,
                          f"Coverage threshold must be between 0 and 100, got {testing.coverage_threshold:g}.")]
    return []


# --- Rule 4: sub-features need their parent toggle ---

def check_parent_toggles(bp: Blueprint) -> list[Violation]:
    docker = bp.infrastructure.docker
    if docker.compose and not docker.enabled:
        return [Violation("parent-toggle", "infrastructure.docker.compose",
                          "Cannot enable Docker Compose when Docker is disabled.")]
    return []


# --- Rule 5: dependency version grammar ---

def check_dependency_versions(bp: Blueprint) -> list[Violation]:
    rule = "dependency-version"
    issues = []
    for section, deps in (("dependencies", bp.stack.dependencies),
                          ("dev_dependencies", bp.stack.dev_dependencies)):
        for name, version in deps.items():
            if not is_valid_version_constraint(version):
                issues.append(Violation(rule, f"stack.{section}.{name}",
                                        f"Invalid version constraint for '{name}': {version!r}"))
    return issues


# --- Rule 6: identity and stack completeness ---

def check_completeness(bp: Blueprint) -> list[Violation]:
    rule = "completeness"
    required = [
        ("project.name", bp.project.name, "Project name is required."),
        ("project.description", bp.project.description, "Project description is required."),
        ("stack.language", bp.stack.language, "Stack language is required."),
        ("stack.framework", bp.stack.framework, "Stack framework is required."),
        ("stack.runtime.version", bp.stack.runtime.version, "Runtime version is required."),
        ("stack.runtime.manager", bp.stack.runtime.manager, "Runtime manager is required."),
    ]
    return [Violation(rule, path, message) for path, value, message in required if not str(value or "").strip()]


RULES: list[Rule] = [
    check_disabled_features_neutral,
    check_enabled_features_complete,
    check_coverage_threshold,
    check_parent_toggles,
    check_dependency_versions,
    check_completeness,
]


def validate(blueprint: Blueprint) -> list[Violation]:
    """Run every rule and return all violations. Empty list = accepted."""
    violations = []
    for rule in RULES:
        violations.extend(rule(blueprint))
    return violations


def ensure_valid(blueprint: Blueprint) -> Blueprint:
    """Return the blueprint unchanged, or raise BlueprintRejected with every violation."""
    violations = validate(blueprint)
    if violations:
        raise BlueprintRejected(violations)
    return blueprint
