"""Blueprint persistence — project.blueprint.json round-trips field for field."""

import json
from pathlib import Path

from pydantic import ValidationError

from agentgen.blueprint.schema import Blueprint
from agentgen.errors import BlueprintLoadError


def blueprint_to_dict(blueprint: Blueprint) -> dict:
    return blueprint.model_dump(mode="json", by_alias=True)


def blueprint_to_json(blueprint: Blueprint) -> str:
    """Serialize with stable two-space indentation and a trailing newline."""
    return json.dumps(blueprint_to_dict(blueprint), indent=2) + "\n"


def blueprint_from_json(text: str) -> Blueprint:
    """Parse a serialized blueprint.

    Raises BlueprintLoadError when the text is not JSON or does not match the schema.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        raise BlueprintLoadError(f"Blueprint is not valid JSON: {exc}") from exc

    try:
        return Blueprint.model_validate(data)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise BlueprintLoadError(f"Blueprint does not match the schema: {errors}") from exc


def save_blueprint(blueprint: Blueprint, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(blueprint_to_json(blueprint), encoding="utf-8")
    return path


def load_blueprint(path: Path) -> Blueprint:
    path = Path(path)
    if not path.is_file():
        raise BlueprintLoadError(f"{path.name} not found in {path.parent}")
    return blueprint_from_json(path.read_text(encoding="utf-8"))
