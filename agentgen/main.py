"""Entry point: collects answers, runs the pipeline, writes or updates guidance."""

import sys
from pathlib import Path

import yaml

from agentgen.config import get_config
from agentgen.errors import (
    BlueprintLoadError,
    BlueprintRejected,
    IncompleteAnswer,
    InvalidAnswer,
    MalformedDocument,
    TemplateLoadError,
    TemplateNotFound,
)
from agentgen.interview.collector import collect, terminal_ask
from agentgen.packs.loader import list_packs, load_pack
from agentgen.pipeline import run_pipeline
from agentgen.utils.formatter import update_guidance, write_project

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_TEMPLATE = 2
EXIT_MALFORMED = 3
EXIT_ANSWER = 4
# Bad command lines share the code of bad answers
EXIT_USAGE = EXIT_ANSWER

USAGE = """usage:
  agentgen new <dir> [--pack ID] [--non-interactive] [--answers FILE.yaml] [--set id=value ...]
  agentgen update-agent <dir>
  agentgen packs"""


def _error(message: str) -> None:
    print(f"[agentgen] {message}", file=sys.stderr)


def _load_answers_file(path: str) -> dict:
    """Read a YAML mapping of question id -> answer."""
    file_path = Path(path)
    if not file_path.is_file():
        raise ValueError(f"Answers file not found: {path}")
    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Failed to parse answers file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Answers file {path} must contain a mapping of question id -> answer")
    return {str(k): v for k, v in data.items()}


def _parse_new_args(args: list[str]) -> dict:
    """Parse the arguments of `new`. Raises ValueError on bad usage."""
    opts = {
        "dir": None,
        "pack": None,
        "interactive": None,
        "answers_file": None,
        "set": {},
    }

    i = 0
    while i < len(args):
        arg = args[i]
        if arg in ("--pack", "--answers", "--set"):
            if i + 1 >= len(args):
                raise ValueError(f"{arg} needs a value")
            value = args[i + 1]
            if arg == "--pack":
                opts["pack"] = value
            elif arg == "--answers":
                opts["answers_file"] = value
            else:
                key, sep, answer = value.partition("=")
                if not sep or not key.strip():
                    raise ValueError(f"--set expects id=value, got '{value}'")
                opts["set"][key.strip()] = answer
            i += 2
            continue
        if arg == "--non-interactive":
            opts["interactive"] = False
        elif arg.startswith("--"):
            raise ValueError(f"Unknown option {arg}")
        elif opts["dir"] is None:
            opts["dir"] = arg
        else:
            raise ValueError(f"Unexpected argument '{arg}'")
        i += 1

    if opts["dir"] is None:
        raise ValueError("new needs a target directory")
    return opts


def _print_violations(violations: list) -> None:
    _error(f"Configuration rejected — {len(violations)} violation(s):")
    for v in violations:
        print(f"  - {v.path}: {v.message} [{v.rule}]", file=sys.stderr)


def run_new(
    output_dir: str,
    pack_id: str | None = None,
    interactive: bool | None = None,
    supplied: dict | None = None,
) -> int:
    """Interview, build, validate and write a new project's files.

    Supplying answers (file or --set) implies non-interactive collection.
    """
    config = get_config()
    pack_id = pack_id or config.get("default_pack", "python-api")
    if interactive is None:
        interactive = config.get("interactive", True) and not supplied

    pack = load_pack(pack_id)
    print(f"[agentgen] Pack: {pack.id} {pack.version} ({pack.name})")

    answers = collect(
        pack.questions,
        ask=terminal_ask if interactive else None,
        supplied=supplied,
        interactive=interactive,
    )

    final_state = run_pipeline(pack, answers)
    if final_state["status"] != "accepted":
        raise BlueprintRejected(final_state["violations"])

    blueprint_path, guidance_path = write_project(
        final_state["blueprint"], pack, Path(output_dir), regions=final_state["regions"]
    )
    print(f"[agentgen] Blueprint written to: {blueprint_path}")
    print(f"[agentgen] Guidance written to: {guidance_path}")
    return EXIT_OK


def run_update(project_dir: str) -> int:
    """Regenerate the managed regions of an existing project's guidance file."""
    guidance_path, changed = update_guidance(Path(project_dir))
    if changed:
        print(f"[agentgen] Updated managed regions in: {guidance_path}")
    else:
        print(f"[agentgen] Already up to date: {guidance_path}")
    return EXIT_OK


def run_packs() -> int:
    config = get_config()
    default = config.get("default_pack")
    for pack_id in list_packs():
        try:
            pack = load_pack(pack_id)
        except (TemplateLoadError, TemplateNotFound) as exc:
            _error(f"Skipping {pack_id}: {exc}")
            continue
        marker = " (default)" if pack_id == default else ""
        print(f"{pack.id:<16} {pack.version:<8} {pack.name}{marker}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns the process exit code."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0] in ("-h", "--help"):
        print(USAGE)
        return EXIT_OK if args else EXIT_USAGE

    command, rest = args[0], args[1:]
    try:
        if command == "new":
            try:
                opts = _parse_new_args(rest)
                supplied = _load_answers_file(opts["answers_file"]) if opts["answers_file"] else {}
            except ValueError as exc:
                _error(str(exc))
                print(USAGE, file=sys.stderr)
                return EXIT_USAGE
            supplied.update(opts["set"])
            return run_new(opts["dir"], opts["pack"], opts["interactive"], supplied)

        if command == "update-agent":
            if len(rest) != 1:
                print(USAGE, file=sys.stderr)
                return EXIT_USAGE
            return run_update(rest[0])

        if command == "packs":
            return run_packs()

    except BlueprintRejected as exc:
        _print_violations(exc.violations)
        return EXIT_REJECTED
    except (TemplateLoadError, TemplateNotFound, BlueprintLoadError) as exc:
        _error(str(exc))
        return EXIT_TEMPLATE
    except MalformedDocument as exc:
        _error(str(exc))
        _error("Guidance file left unchanged. Fix the markers and run update-agent again.")
        return EXIT_MALFORMED
    except (InvalidAnswer, IncompleteAnswer) as exc:
        _error(str(exc))
        return EXIT_ANSWER

    _error(f"Unknown command '{command}'")
    print(USAGE, file=sys.stderr)
    return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
