"""Shared fixtures for the agentgen test suite."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from agentgen.blueprint.builder import build
from agentgen.packs.loader import load_pack

FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_config():
    """Patch the config singleton with test-friendly values."""
    test_config = {
        "default_pack": "python-api",
        "packs_dir": "",
        "blueprint_filename": "project.blueprint.json",
        "guidance_filename": "AGENT.md",
        "interactive": False,
    }
    with patch("agentgen.config._config", test_config):
        yield test_config


@pytest.fixture
def python_pack():
    return load_pack("python-api")


@pytest.fixture
def node_pack():
    return load_pack("node-api")


@pytest.fixture
def base_answers():
    """Minimal AnswerSet: every optional feature off."""
    return {
        "project_name": "todo-api",
        "description": "Todo REST API",
        "python_version": "3.12",
        "database_enabled": False,
        "auth_enabled": False,
        "extras": ["openapi", "health-check"],
        "docker_enabled": False,
        "ci_enabled": False,
        "coverage_enabled": False,
        "strictness": "balanced",
        "test_requirements": "on-request",
    }


@pytest.fixture
def full_answers(base_answers):
    """AnswerSet with database, auth, docker and CI all enabled."""
    return {
        **base_answers,
        "database_enabled": True,
        "database_type": "postgresql",
        "database_migrations": True,
        "auth_enabled": True,
        "auth_method": "jwt",
        "extras": ["openapi", "health-check", "cors", "rate-limiting"],
        "docker_enabled": True,
        "compose_enabled": True,
        "ci_enabled": True,
        "ci_provider": "github-actions",
        "coverage_enabled": True,
        "coverage_threshold": 90,
    }


@pytest.fixture
def blueprint(python_pack, base_answers):
    return build(base_answers, python_pack, now=FIXED_NOW)


@pytest.fixture
def full_blueprint(python_pack, full_answers):
    return build(full_answers, python_pack, now=FIXED_NOW)


@pytest.fixture
def packs_dir(tmp_path):
    """Empty packs directory, patched in as the configured location."""
    path = tmp_path / "packs"
    path.mkdir()
    with patch.dict("os.environ", {"AGENTGEN_PACKS_DIR": str(path)}):
        yield path
