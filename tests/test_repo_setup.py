# /// script
# requires-python = ">=3.12"
# dependencies = ["pytest>=7.0", "pydantic>=2.0"]
# ///
"""Tests for the repo_setup feature.

Validates the project bootstrap:
  1. Every runnable module has PEP 723 inline metadata declaring its dependencies
  2. pyproject.toml declares the runtime and test dependencies and every module
  3. The sample game is valid grid-format JSON
  4. Core modules import cleanly
"""

import importlib
import json
import sys
import tomllib
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent

MODULES = [
    "app", "attribution", "boxscore", "game_state", "incremental", "models",
    "notation", "recompute", "roster", "session", "stats",
]


# ---------------------------------------------------------------------------
# Step 1: PEP 723 metadata
# ---------------------------------------------------------------------------

class TestStep1PEP723Metadata:

    @pytest.mark.parametrize("module", MODULES)
    def test_module_has_pep723_block(self, module):
        text = (PROJECT_ROOT / f"{module}.py").read_text()
        assert text.startswith("# /// script")
        assert 'requires-python = ">=3.12"' in text

    @pytest.mark.parametrize("module", MODULES)
    def test_module_declares_pydantic(self, module):
        header = (PROJECT_ROOT / f"{module}.py").read_text().split("# ///\n", 1)[0]
        assert "pydantic" in header

    def test_app_declares_flask(self):
        text = (PROJECT_ROOT / "app.py").read_text()
        assert '"flask' in text.split('"""', 1)[0]


# ---------------------------------------------------------------------------
# Step 2: pyproject.toml
# ---------------------------------------------------------------------------

class TestStep2Pyproject:

    @pytest.fixture
    def pyproject(self):
        with open(PROJECT_ROOT / "pyproject.toml", "rb") as f:
            return tomllib.load(f)

    def test_runtime_dependencies(self, pyproject):
        deps = " ".join(pyproject["project"]["dependencies"])
        assert "pydantic" in deps
        assert "flask" in deps

    def test_test_extra(self, pyproject):
        assert any("pytest" in d for d in pyproject["project"]["optional-dependencies"]["test"])

    def test_every_module_installed(self, pyproject):
        installed = set(pyproject["tool"]["setuptools"]["py-modules"])
        assert set(MODULES) | {"config"} <= installed

    def test_cli_entry_point(self, pyproject):
        assert pyproject["project"]["scripts"]["boxscore"] == "boxscore:main"


# ---------------------------------------------------------------------------
# Step 3-4: Sample data and imports
# ---------------------------------------------------------------------------

class TestStep3SampleData:

    def test_sample_game_is_grid_format(self):
        with open(PROJECT_ROOT / "data" / "sample_game.json") as f:
            payload = json.load(f)
        assert "grid" in payload
        assert "roster" in payload


class TestStep4Imports:

    @pytest.mark.parametrize("module", MODULES + ["config", "data.store"])
    def test_imports(self, module):
        assert importlib.import_module(module) is not None
