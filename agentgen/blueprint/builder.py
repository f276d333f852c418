"""Blueprint builder — turns an AnswerSet into a fully populated Blueprint.

build() never fails on missing or odd answers: every field falls back to the
pack's `defaults` section and then to a neutral value. Whether the result is
consistent is decided afterwards by agentgen.blueprint.validator.
"""

from datetime import datetime, timezone

from agentgen.blueprint.schema import (
    AgentConfig,
    AuthenticationFeature,
    Blueprint,
    BlueprintMeta,
    CIConfig,
    DatabaseFeature,
    DeploymentConfig,
    DockerConfig,
    FeaturesConfig,
    InfrastructureConfig,
    PathsConfig,
    ProjectConfig,
    RuntimeConfig,
    StackConfig,
    TestingConfig,
    ToolConfig,
    ToolingConfig,
)

GENERATOR_NAME = "agentgen"
GENERATOR_VERSION = "0.1.0"

_STRICTNESS = {"strict", "balanced", "permissive"}
_TEST_REQUIREMENTS = {"always", "on-request", "never"}
_NEUTRAL = "none"


def _lookup(data: dict, path: str, fallback=None):
    """Dotted-path lookup into nested dicts ("features.database.type")."""
    node = data
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return fallback
        node = node[part]
    return node


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _flag(value, fallback: bool = False) -> bool:
    if value is None:
        return fallback
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("y", "yes", "true", "1", "on")


def _number(value, fallback):
    if value is None or isinstance(value, bool):
        return fallback
    try:
        return float(value)
    except (TypeError, ValueError):
        return fallback


def _tool(defaults: dict, name: str, tool: str, config_file: str) -> ToolConfig:
    raw = _lookup(defaults, f"tooling.{name}", {}) or {}
    return ToolConfig(
        tool=str(raw.get("tool", tool)),
        config_file=str(raw.get("config_file", config_file)),
    )


def map_runtime_version(token, runtime: dict) -> str:
    """Map a runtime version token ("3.11") to its version range.

    Unknown or missing tokens map to the pack's default token.
    """
    versions = runtime.get("versions", {})
    key = _text(token) or _text(runtime.get("default"))
    if key in versions:
        return versions[key]
    return versions.get(_text(runtime.get("default")), "*")


def _feature_state(features: FeaturesConfig, path: str):
    """Resolve a feature path such as "database" or "database.migrations"."""
    node = features
    for part in path.split("."):
        node = getattr(node, part, None)
        if node is None:
            return None
    return node


def _is_enabled(node) -> bool:
    if node is None:
        return False
    if hasattr(node, "enabled"):
        return bool(node.enabled)
    return bool(node)


def derive_dependencies(base: dict, features: FeaturesConfig, feature_dependencies: list) -> dict:
    """Fold enabled features' packages into a copy of the base dependency map.

    Entries are applied in the order the pack lists its features and are never
    removed; a package name injected twice keeps the later feature's version.
    """
    dependencies = dict(base)
    for entry in feature_dependencies:
        node = _feature_state(features, entry["feature"])
        if not _is_enabled(node):
            continue

        dependencies.update(entry.get("packages") or {})

        option = entry.get("option")
        if option:
            choice = getattr(node, option, None)
            dependencies.update((entry.get("options") or {}).get(choice) or {})

    return dependencies


def _build_database(answers: dict, defaults: dict) -> DatabaseFeature:
    enabled = _flag(answers.get("database_enabled"), _flag(_lookup(defaults, "features.database.enabled")))
    if not enabled:
        return DatabaseFeature()

    return DatabaseFeature(
        enabled=True,
        type=_text(answers.get("database_type")) or _lookup(defaults, "features.database.type", "postgresql"),
        orm=_lookup(defaults, "features.database.orm", _NEUTRAL),
        migrations=_flag(answers.get("database_migrations"), _flag(_lookup(defaults, "features.database.migrations"), True)),
        async_=_flag(_lookup(defaults, "features.database.async"), True),
    )


def _build_authentication(answers: dict, defaults: dict) -> AuthenticationFeature:
    enabled = _flag(answers.get("auth_enabled"), _flag(_lookup(defaults, "features.authentication.enabled")))
    if not enabled:
        return AuthenticationFeature()
    method = _text(answers.get("auth_method")) or _lookup(defaults, "features.authentication.method", "jwt")
    return AuthenticationFeature(enabled=True, method=method)


def _build_features(answers: dict, defaults: dict) -> FeaturesConfig:
    extras = answers.get("extras")
    if isinstance(extras, (list, tuple)):
        toggles = {
            "cors": "cors" in extras,
            "rate_limiting": "rate-limiting" in extras,
            "openapi": "openapi" in extras,
            "health_check": "health-check" in extras,
        }
    else:
        toggles = {
            "cors": _flag(_lookup(defaults, "features.cors")),
            "rate_limiting": _flag(_lookup(defaults, "features.rate_limiting")),
            "openapi": _flag(_lookup(defaults, "features.openapi"), True),
            "health_check": _flag(_lookup(defaults, "features.health_check"), True),
        }

    return FeaturesConfig(
        database=_build_database(answers, defaults),
        authentication=_build_authentication(answers, defaults),
        **toggles,
    )


def _build_infrastructure(answers: dict, defaults: dict, database_enabled: bool) -> InfrastructureConfig:
    docker_enabled = _flag(answers.get("docker_enabled"), _flag(_lookup(defaults, "infrastructure.docker.enabled")))
    docker = DockerConfig(
        enabled=docker_enabled,
        # Without an explicit answer a compose file is only useful next to a database
        compose=docker_enabled and _flag(answers.get("compose_enabled"), database_enabled),
        registry=_lookup(defaults, "infrastructure.docker.registry", "docker.io"),
    )

    ci_enabled = _flag(answers.get("ci_enabled"), False)
    if ci_enabled:
        ci = CIConfig(
            provider=_text(answers.get("ci_provider")) or _lookup(defaults, "infrastructure.ci.provider", "github-actions"),
            checks=list(_lookup(defaults, "infrastructure.ci.checks", None) or ["lint", "typecheck", "test"]),
        )
    else:
        ci = CIConfig()

    return InfrastructureConfig(
        docker=docker,
        ci=ci,
        deployment=DeploymentConfig(target=_lookup(defaults, "infrastructure.deployment.target", "docker")),
    )


def _build_tooling(answers: dict, defaults: dict) -> ToolingConfig:
    testing = _lookup(defaults, "tooling.testing", {}) or {}
    return ToolingConfig(
        linter=_tool(defaults, "linter", _NEUTRAL, ""),
        formatter=_tool(defaults, "formatter", _NEUTRAL, ""),
        type_checker=_tool(defaults, "type_checker", _NEUTRAL, ""),
        testing=TestingConfig(
            framework=str(testing.get("framework", _NEUTRAL)),
            coverage=_flag(answers.get("coverage_enabled"), _flag(testing.get("coverage"))),
            coverage_threshold=_number(answers.get("coverage_threshold"), testing.get("coverage_threshold", 80)),
        ),
    )


def _build_agent(answers: dict, defaults: dict) -> AgentConfig:
    strictness = _text(answers.get("strictness")) or _lookup(defaults, "agent.strictness", "balanced")
    if strictness not in _STRICTNESS:
        strictness = "balanced"
    tests = _text(answers.get("test_requirements")) or _lookup(defaults, "agent.test_requirements", "on-request")
    if tests not in _TEST_REQUIREMENTS:
        tests = "on-request"

    raw_rules = answers.get("custom_rules")
    if isinstance(raw_rules, list):
        custom_rules = [_text(r) for r in raw_rules if _text(r)]
    elif _text(raw_rules):
        custom_rules = [r.strip() for r in str(raw_rules).split(";") if r.strip()]
    else:
        custom_rules = list(_lookup(defaults, "agent.custom_rules", None) or [])

    return AgentConfig(
        strictness=strictness,
        test_requirements=tests,
        allowed_operations=list(_lookup(defaults, "agent.allowed_operations", None) or []),
        prohibited_operations=list(_lookup(defaults, "agent.prohibited_operations", None) or []),
        custom_rules=custom_rules,
    )


def build(answers: dict, pack, now: datetime | None = None) -> Blueprint:
    """Build a Blueprint from collected answers and a loaded pack.

    `now` pins the generation timestamp (tests, reproducible output).
    """
    defaults = pack.defaults or {}
    stamp = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)

    features = _build_features(answers, defaults)

    runtime = pack.runtime or {}
    runtime_token = answers.get(runtime.get("question", "")) if runtime.get("question") else None

    stack = StackConfig(
        language=pack.language,
        framework=pack.framework,
        runtime=RuntimeConfig(
            version=map_runtime_version(runtime_token, runtime),
            manager=str(runtime.get("manager", _NEUTRAL)),
        ),
        dependencies=derive_dependencies(pack.dependencies, features, pack.feature_dependencies),
        dev_dependencies=dict(pack.dev_dependencies),
    )

    project = ProjectConfig(
        name=_text(answers.get("project_name")) or _lookup(defaults, "project.name", "my-project"),
        description=(
            _text(answers.get("description"))
            or _lookup(defaults, "project.description")
            or f"A {pack.framework} application"
        ),
        author=_text(answers.get("author")) or None,
        license=_lookup(defaults, "project.license"),
    )

    return Blueprint(
        meta=BlueprintMeta(
            generator=GENERATOR_NAME,
            generator_version=GENERATOR_VERSION,
            generated_at=stamp.strftime("%Y-%m-%dT%H:%M:%SZ"),
            template_id=pack.id,
            template_version=pack.version,
        ),
        project=project,
        stack=stack,
        features=features,
        tooling=_build_tooling(answers, defaults),
        infrastructure=_build_infrastructure(answers, defaults, features.database.enabled),
        agent=_build_agent(answers, defaults),
        paths=PathsConfig(
            source_dir=_lookup(defaults, "paths.source_dir", "src"),
            test_dir=_lookup(defaults, "paths.test_dir", "tests"),
        ),
    )
