"""Output Formatter — writes project.blueprint.json and the AGENT.md guidance file."""

from pathlib import Path

from agentgen.blueprint.schema import Blueprint
from agentgen.blueprint.serializer import load_blueprint, save_blueprint
from agentgen.blueprint.validator import ensure_valid
from agentgen.config import get_config
from agentgen.packs.loader import Pack, load_pack
from agentgen.utils.managed import escape_markers, merge, wrap_region


def _read_verbatim(path: Path) -> str:
    # newline="" keeps CRLF line endings as they are on disk
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def _write_verbatim(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


def render_guidance(blueprint: Blueprint, regions: list[tuple[str, str]]) -> str:
    """Render a fresh AGENT.md: human header, managed regions, human notes area."""
    lines = []

    project = blueprint.project
    # Name and description are user input; a line of theirs must never read as a marker
    lines.append(escape_markers(f"# {project.name} — Agent Guide"))
    lines.append("")
    if project.description:
        lines.append(escape_markers(project.description))
        lines.append("")
    lines.append(
        "Sections between `agentgen:managed` markers are regenerated by "
        "`agentgen update-agent`. Edit anything outside them freely."
    )
    lines.append("")

    for name, content in regions:
        lines.append(wrap_region(name, content))

    lines.append("## Notes")
    lines.append("")
    lines.append("<!-- Project-specific notes for agents. Never overwritten. -->")
    lines.append("")

    return "\n".join(lines)


def write_project(blueprint: Blueprint, pack: Pack, output_dir: Path, regions: list | None = None) -> tuple[Path, Path]:
    """Write the blueprint and a fresh guidance file into `output_dir`.

    An existing guidance file is merged rather than replaced, so hand-written
    text survives re-running `new` on the same directory.
    Both contents are prepared before anything is written; if writing the
    guidance file fails, the blueprint file is restored to its prior state.

    Returns (blueprint path, guidance path).
    """
    config = get_config()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if regions is None:
        regions = pack.generate_regions(blueprint)

    guidance_path = output_dir / config["guidance_filename"]
    if guidance_path.exists():
        # Parse errors surface before anything is written
        content = merge(_read_verbatim(guidance_path), regions)
    else:
        content = render_guidance(blueprint, regions)

    blueprint_path = output_dir / config["blueprint_filename"]
    previous = _read_verbatim(blueprint_path) if blueprint_path.exists() else None

    save_blueprint(blueprint, blueprint_path)
    try:
        _write_verbatim(guidance_path, content)
    except OSError:
        # Never leave a blueprint behind without the guidance written next to it
        if previous is None:
            blueprint_path.unlink(missing_ok=True)
        else:
            _write_verbatim(blueprint_path, previous)
        raise

    return blueprint_path, guidance_path


def update_guidance(project_dir: Path, packs_dir: Path | None = None) -> tuple[Path, bool]:
    """Regenerate the managed regions of an existing project's guidance file.

    The blueprint names the pack that produced it; that pack renders the fresh
    regions. The file is only rewritten when the merge changes it.

    Returns (guidance path, whether the file changed).
    Raises BlueprintLoadError, BlueprintRejected (a hand-edited blueprint that
    breaks a constraint), TemplateLoadError, TemplateNotFound or
    MalformedDocument; on any of them the file is left untouched.
    """
    config = get_config()
    project_dir = Path(project_dir)

    blueprint = ensure_valid(load_blueprint(project_dir / config["blueprint_filename"]))
    pack = load_pack(blueprint.meta.template_id, packs_dir)
    regions = pack.generate_regions(blueprint)

    guidance_path = project_dir / config["guidance_filename"]
    if not guidance_path.exists():
        _write_verbatim(guidance_path, render_guidance(blueprint, regions))
        return guidance_path, True

    existing = _read_verbatim(guidance_path)
    updated = merge(existing, regions)
    if updated == existing:
        return guidance_path, False

    _write_verbatim(guidance_path, updated)
    return guidance_path, True
