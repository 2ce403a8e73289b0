"""Shared pytest fixtures for the crudgen test suite.

Provides reusable fixtures for:
- A scripted prompter that replays operator answers
- Scaffold configurations rooted in a temporary project directory
- A sample ``Task`` entity specification
- A project initialised with the bootstrap file and shared controller
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from crudgen.config import ScaffoldConfig
from crudgen.scaffolder.models import EntitySpec, FieldSpec
from crudgen.scaffolder.renderer import ArtifactRenderer


# ---------------------------------------------------------------------------
# Scripted prompter
# ---------------------------------------------------------------------------


class ScriptedPrompter:
    """Answers questions from a fixed script.

    ``answers`` is consumed in order for every question.  ``by_key`` maps a
    question key (e.g. ``"overwrite"``) to an answer that is returned
    without consuming the ordered script; it takes precedence.  Every
    question asked and every reported error is recorded for assertions.
    """

    def __init__(self, answers: list[Any] | None = None, by_key: dict[str, Any] | None = None) -> None:
        self.answers = list(answers or [])
        self.by_key = dict(by_key or {})
        self.questions: list[Any] = []
        self.errors: list[str] = []

    def ask(self, question: Any) -> Any:
        self.questions.append(question)
        if question.key in self.by_key:
            return self.by_key[question.key]
        if not self.answers:
            raise AssertionError(f"Unexpected question {question.key!r}: {question.message}")
        return self.answers.pop(0)

    def report_error(self, message: str) -> None:
        self.errors.append(message)

    @property
    def keys(self) -> list[str]:
        return [question.key for question in self.questions]


@pytest.fixture
def prompter_factory():
    """Build a ``ScriptedPrompter`` from answers and keyed overrides."""

    def _factory(answers: list[Any] | None = None, **by_key: Any) -> ScriptedPrompter:
        return ScriptedPrompter(answers, by_key)

    return _factory


# ---------------------------------------------------------------------------
# Paths & configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Empty target project directory (auto-cleanup)."""
    root = tmp_path / "todo-api"
    root.mkdir()
    yield root


@pytest.fixture
def config(project_root: Path) -> ScaffoldConfig:
    """Default configuration rooted at ``project_root``."""
    return ScaffoldConfig(root=project_root)


@pytest.fixture
def force_config(project_root: Path) -> ScaffoldConfig:
    """Configuration that overwrites without asking."""
    return ScaffoldConfig(root=project_root, confirm_overwrite=False)


@pytest.fixture
def initialized_project(config: ScaffoldConfig) -> ScaffoldConfig:
    """Project with ``src/index.js`` and the shared files already written."""
    for path, content in ArtifactRenderer(config).project_files():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return config


# ---------------------------------------------------------------------------
# Entity specifications
# ---------------------------------------------------------------------------


@pytest.fixture
def task_spec() -> EntitySpec:
    """``Task`` with a required string title and an optional boolean."""
    return EntitySpec(
        name="Task",
        fields=[
            FieldSpec(name="title", type="string", required=True),
            FieldSpec(name="done", type="boolean", required=False),
        ],
        timestamps=True,
    )


@pytest.fixture
def task_answers() -> list[Any]:
    """Collector answers that produce ``task_spec``."""
    return [
        "Task",
        "title", "string", True, True,
        "done", "boolean", False, False,
        True,
    ]
