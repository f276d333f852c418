"""Managed region content for AGENT.md, derived from a Blueprint.

Every region is regenerated on each update, so everything here must be a pure
function of the blueprint and the pack's command table. Region order is the
order new regions are appended to an existing document.
"""

from agentgen.blueprint.schema import Blueprint
from agentgen.utils.managed import escape_markers

REGION_NAMES = ("quickstart", "stack", "structure", "verification", "agent-policy")

_STRICTNESS_NOTES = {
    "strict": "Ask before any change that touches more than one module, adds a dependency, "
              "or alters public interfaces.",
    "balanced": "Make routine changes directly; ask before adding dependencies or changing "
                "public interfaces.",
    "permissive": "Make any change needed to complete the task; summarize structural changes "
                  "afterwards.",
}

_TEST_NOTES = {
    "always": "Every behavior change ships with tests.",
    "on-request": "Write tests when asked or when fixing a bug.",
    "never": "Do not add tests unless explicitly asked.",
}

_CI_FILES = {
    "github-actions": ".github/workflows/ci.yml",
    "gitlab-ci": ".gitlab-ci.yml",
}


def module_name(project_name: str) -> str:
    """Import-safe form of a project name ("my-api" -> "my_api")."""
    cleaned = "".join(ch if ch.isalnum() else "_" for ch in project_name.strip().lower())
    return cleaned.strip("_") or "app"


def _command(commands: dict, key: str, blueprint: Blueprint) -> str:
    template = str(commands.get(key, ""))
    return (
        template
        .replace("{module}", module_name(blueprint.project.name))
        .replace("{source_dir}", blueprint.paths.source_dir)
    )


def _quickstart(bp: Blueprint, commands: dict) -> str:
    steps = ["install"]
    if bp.features.database.enabled and bp.features.database.migrations:
        steps.append("migrate")
    steps.append("run")

    lines = ["## Quickstart", "", "```bash"]
    lines.extend(cmd for cmd in (_command(commands, step, bp) for step in steps) if cmd)
    lines.append("```")
    lines.append("")
    url = commands.get("url")
    if url:
        lines.append(f"The server listens on {url}.")
        if bp.features.openapi:
            lines.append(f"Interactive API docs: {url}/docs")
        if bp.features.health_check:
            lines.append(f"Health check: {url}/health")
    return "\n".join(lines).rstrip("\n") + "\n"


def _stack(bp: Blueprint, commands: dict) -> str:
    stack = bp.stack
    lines = ["## Stack", ""]
    lines.append(f"- **Language:** {stack.language} ({stack.runtime.version})")
    lines.append(f"- **Framework:** {stack.framework}")
    lines.append(f"- **Package manager:** {stack.runtime.manager}")

    db = bp.features.database
    if db.enabled:
        mode = "async" if db.async_ else "sync"
        migrations = ", migrations" if db.migrations else ""
        lines.append(f"- **Database:** {db.type} via {db.orm} ({mode}{migrations})")
    if bp.features.authentication.enabled:
        lines.append(f"- **Authentication:** {bp.features.authentication.method}")

    toggles = [
        name for name, on in (
            ("CORS", bp.features.cors),
            ("rate limiting", bp.features.rate_limiting),
            ("OpenAPI", bp.features.openapi),
            ("health check", bp.features.health_check),
        ) if on
    ]
    if toggles:
        lines.append(f"- **HTTP features:** {', '.join(toggles)}")
    lines.append("")

    if stack.dependencies:
        lines.append("**Dependencies:**")
        lines.append("")
        for name, version in stack.dependencies.items():
            lines.append(f"- `{name}` {version}")
        lines.append("")
    if stack.dev_dependencies:
        lines.append("**Dev dependencies:**")
        lines.append("")
        for name, version in stack.dev_dependencies.items():
            lines.append(f"- `{name}` {version}")
        lines.append("")

    lines.append(f"Dependencies are declared in `{commands.get('manifest', 'the project manifest')}`.")
    return "\n".join(lines) + "\n"


def _structure(bp: Blueprint, commands: dict) -> str:
    entries = []
    entrypoint = _command(commands, "entrypoint", bp)
    if entrypoint:
        entries.append((entrypoint, "# Application entry point"))
        if bp.features.database.enabled:
            package_dir = entrypoint.rsplit("/", 1)[0]
            entries.append((f"{package_dir}/db/", "# Database configuration"))
        if bp.features.authentication.enabled:
            package_dir = entrypoint.rsplit("/", 1)[0]
            entries.append((f"{package_dir}/auth/", f"# {bp.features.authentication.method} authentication"))
    else:
        entries.append((f"{bp.paths.source_dir}/", "# Application code"))

    if bp.features.database.enabled and bp.features.database.migrations and commands.get("migrations_dir"):
        entries.append((f"{commands['migrations_dir']}/", "# Database migrations"))
    entries.append((f"{bp.paths.test_dir}/", "# Test suite"))
    if bp.infrastructure.docker.enabled:
        entries.append(("Dockerfile", ""))
        if bp.infrastructure.docker.compose:
            entries.append(("docker-compose.yml", ""))
    ci_file = _CI_FILES.get(bp.infrastructure.ci.provider)
    if ci_file:
        entries.append((ci_file, "# CI pipeline"))
    if commands.get("manifest"):
        entries.append((commands["manifest"], ""))
    entries.append(("AGENT.md", "# This file"))

    width = max(len(path) for path, _ in entries) + 2
    lines = ["## Project Structure", "", "```", f"{bp.project.name}/"]
    for path, note in entries:
        lines.append(f"  {path.ljust(width)}{note}".rstrip())
    lines.append("```")
    return "\n".join(lines) + "\n"


def _verification(bp: Blueprint, commands: dict) -> str:
    tooling = bp.tooling
    lines = ["## Verification", "", "Run before handing work back:", "", "```bash"]
    for key in ("lint", "typecheck", "test"):
        cmd = _command(commands, key, bp)
        if cmd:
            lines.append(cmd)
    lines.append("```")
    lines.append("")
    lines.append(f"- Linter: {tooling.linter.tool} (`{tooling.linter.config_file}`)")
    lines.append(f"- Formatter: {tooling.formatter.tool} (`{tooling.formatter.config_file}`)")
    lines.append(f"- Type checker: {tooling.type_checker.tool} (`{tooling.type_checker.config_file}`)")
    testing = tooling.testing
    if testing.coverage and testing.coverage_threshold is not None:
        lines.append(f"- Tests: {testing.framework}, coverage at least {testing.coverage_threshold:g}%")
    else:
        lines.append(f"- Tests: {testing.framework}")

    lock, check = _command(commands, "lock", bp), _command(commands, "check", bp)
    if lock or check:
        lines.append("")
        lines.append("After changing dependencies:")
        lines.append("")
        if lock:
            lines.append(f"1. Lock dependencies: `{lock}`")
        if check:
            lines.append(f"{2 if lock else 1}. Check the installed set: `{check}`")

    ci = bp.infrastructure.ci
    if ci.provider != "none":
        lines.append("")
        lines.append(f"CI ({ci.provider}) runs: {', '.join(ci.checks)}.")
    return "\n".join(lines) + "\n"


def _agent_policy(bp: Blueprint, commands: dict) -> str:
    agent = bp.agent
    lines = ["## Agent Policy", ""]
    lines.append(f"**Autonomy:** {agent.strictness}. {_STRICTNESS_NOTES[agent.strictness]}")
    lines.append("")
    lines.append(f"**Tests:** {_TEST_NOTES[agent.test_requirements]}")
    lines.append("")
    if agent.allowed_operations:
        lines.append("**Allowed without asking:** " + ", ".join(f"`{op}`" for op in agent.allowed_operations))
        lines.append("")
    if agent.prohibited_operations:
        lines.append("**Never:** " + ", ".join(f"`{op}`" for op in agent.prohibited_operations))
        lines.append("")
    if agent.custom_rules:
        lines.append("**Project rules:**")
        lines.append("")
        for rule in agent.custom_rules:
            lines.append(f"- {rule}")
        lines.append("")
    return "\n".join(lines).rstrip("\n") + "\n"


_GENERATORS = {
    "quickstart": _quickstart,
    "stack": _stack,
    "structure": _structure,
    "verification": _verification,
    "agent-policy": _agent_policy,
}


def generate_regions(blueprint: Blueprint, commands: dict | None = None) -> list[tuple[str, str]]:
    """Return the ordered (region name, content) pairs for a blueprint.

    Answers such as the project name or custom rules end up in the text, so a
    line that would parse as a region marker is rendered as inline code.
    """
    commands = commands or {}
    return [(name, escape_markers(_GENERATORS[name](blueprint, commands))) for name in REGION_NAMES]
