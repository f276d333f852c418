"""Centralized config loading — read once at import time."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Load .env from project root (parent of agentgen/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"
BUNDLED_PACKS_DIR = Path(__file__).resolve().parent / "packs"

_config = yaml.safe_load(CONFIG_PATH.read_text())


def get_config() -> dict:
    """Return the loaded config dictionary."""
    return _config


def get_packs_dir() -> Path:
    """Return the directory packs are loaded from.

    AGENTGEN_PACKS_DIR (environment or .env) wins over the packs_dir config
    key; an empty value falls back to the packs bundled with agentgen.
    """
    configured = os.environ.get("AGENTGEN_PACKS_DIR") or get_config().get("packs_dir")
    if configured:
        return Path(configured).expanduser().resolve()
    return BUNDLED_PACKS_DIR
