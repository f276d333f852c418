"""Pack loading — a pack bundles a question graph, blueprint defaults and the
data used to render managed regions.

    <packs_dir>/<pack-id>/pack.yaml        identity, stack tables, defaults, commands
    <packs_dir>/<pack-id>/interview.yaml   question graph
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from agentgen.config import get_packs_dir
from agentgen.errors import QuestionGraphError, TemplateLoadError, TemplateNotFound
from agentgen.interview.questions import QuestionGraph, load_question_graph
from agentgen.utils.guidance import generate_regions

PACK_ID_PATTERN = re.compile(r"^[A-Za-z0-9-]+$")
REQUIRED_FIELDS = ("id", "name", "version", "language", "framework")


@dataclass(frozen=True)
class Pack:
    id: str
    name: str
    version: str
    language: str
    framework: str
    root: Path
    questions: QuestionGraph
    description: str = ""
    runtime: dict = field(default_factory=dict)
    dependencies: dict = field(default_factory=dict)
    dev_dependencies: dict = field(default_factory=dict)
    feature_dependencies: list = field(default_factory=list)
    defaults: dict = field(default_factory=dict)
    commands: dict = field(default_factory=dict)

    def generate_regions(self, blueprint) -> list[tuple[str, str]]:
        """Render this pack's managed regions for `blueprint`."""
        return generate_regions(blueprint, self.commands)


def _read_yaml(pack_id: str, path: Path) -> dict:
    if not path.is_file():
        raise TemplateLoadError(pack_id, f"{path.name} not found")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise TemplateLoadError(pack_id, f"Failed to parse {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise TemplateLoadError(pack_id, f"{path.name} must contain a mapping")
    return data


def _string_map(pack_id: str, data, where: str) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TemplateLoadError(pack_id, f"{where} must be a mapping of package -> version")
    return {str(k): str(v) for k, v in data.items()}


def _feature_dependencies(pack_id: str, raw) -> list:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise TemplateLoadError(pack_id, "feature_dependencies must be a list")

    entries = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict) or not entry.get("feature"):
            raise TemplateLoadError(pack_id, f"feature_dependencies[{i}] needs a 'feature' key")
        options = entry.get("options") or {}
        if not isinstance(options, dict):
            raise TemplateLoadError(pack_id, f"feature_dependencies[{i}].options must be a mapping")
        entries.append({
            "feature": str(entry["feature"]),
            "packages": _string_map(pack_id, entry.get("packages"), f"feature_dependencies[{i}].packages"),
            "option": entry.get("option"),
            "options": {
                str(choice): _string_map(pack_id, pkgs, f"feature_dependencies[{i}].options.{choice}")
                for choice, pkgs in options.items()
            },
        })
    return entries


def resolve_pack_path(pack_id: str, packs_dir: Path | None = None) -> Path:
    """Validate a pack id and return its directory inside the packs dir.

    Raises TemplateLoadError for ids with anything but letters, digits and
    hyphens, or that would resolve outside the packs directory.
    """
    if not isinstance(pack_id, str) or not PACK_ID_PATTERN.fullmatch(pack_id):
        raise TemplateLoadError(str(pack_id), "Invalid pack id (letters, digits and '-' only)")

    base = (packs_dir or get_packs_dir()).resolve()
    path = (base / pack_id).resolve()
    if path.parent != base:
        raise TemplateLoadError(pack_id, "Invalid pack path")
    return path


def load_pack(pack_id: str, packs_dir: Path | None = None) -> Pack:
    """Load and validate a pack by id.

    Raises TemplateLoadError (bad id, bad files, identity mismatch, broken
    question graph) or TemplateNotFound (no such pack directory).
    """
    path = resolve_pack_path(pack_id, packs_dir)
    if not path.is_dir():
        raise TemplateNotFound(pack_id)

    meta = _read_yaml(pack_id, path / "pack.yaml")

    missing = [f for f in REQUIRED_FIELDS if not meta.get(f)]
    if missing:
        raise TemplateLoadError(pack_id, f"pack.yaml missing required fields: {', '.join(missing)}")
    if str(meta["id"]) != pack_id:
        raise TemplateLoadError(pack_id, f"pack.yaml id '{meta['id']}' does not match requested id '{pack_id}'")

    try:
        questions = load_question_graph(_read_yaml(pack_id, path / "interview.yaml"))
    except QuestionGraphError as exc:
        raise TemplateLoadError(pack_id, f"interview.yaml: {exc}") from exc

    runtime = meta.get("runtime") or {}
    if not isinstance(runtime, dict):
        raise TemplateLoadError(pack_id, "runtime must be a mapping")
    runtime = {**runtime, "versions": {str(k): str(v) for k, v in (runtime.get("versions") or {}).items()}}
    if "default" in runtime:
        runtime["default"] = str(runtime["default"])

    return Pack(
        id=pack_id,
        name=str(meta["name"]),
        version=str(meta["version"]),
        language=str(meta["language"]),
        framework=str(meta["framework"]),
        description=str(meta.get("description", "")),
        root=path,
        questions=questions,
        runtime=runtime,
        dependencies=_string_map(pack_id, meta.get("dependencies"), "dependencies"),
        dev_dependencies=_string_map(pack_id, meta.get("dev_dependencies"), "dev_dependencies"),
        feature_dependencies=_feature_dependencies(pack_id, meta.get("feature_dependencies")),
        defaults=meta.get("defaults") or {},
        commands={str(k): str(v) for k, v in (meta.get("commands") or {}).items()},
    )


def list_packs(packs_dir: Path | None = None) -> list[str]:
    """Return the ids of all packs that have a pack.yaml, sorted."""
    base = packs_dir or get_packs_dir()
    if not base.is_dir():
        return []
    return sorted(
        entry.name for entry in base.iterdir()
        if entry.is_dir() and PACK_ID_PATTERN.fullmatch(entry.name) and (entry / "pack.yaml").is_file()
    )
